"""Tests for deanmachines/tools/delegate_tools.py"""

import asyncio
from unittest.mock import MagicMock

import pytest

from deanmachines.agents.agent import AgentResponse
from deanmachines.runtime_context import use_runtime_context
from deanmachines.tools.delegate_tools import (
    AgentAsTool,
    DelegateTaskTool,
    DelegationError,
    ListAgentsTool,
    delegate,
    get_delegation_depth,
    var_delegation_depth,
)


class FakeAgent:
    """Records the depth and context each generate call runs with."""

    def __init__(self, key: str = "weather", delay: float = 0.0) -> None:
        self.key = key
        self.description = f"{key} specialist"
        self.delay = delay
        self.calls: list[dict] = []

    async def generate(self, message, runtime_context=None, **kwargs) -> AgentResponse:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append(
            {
                "message": message,
                "depth": get_delegation_depth(),
                "context": runtime_context.to_dict(),
            }
        )
        return AgentResponse(text=f"{self.key} done", success=True, steps=2)


@pytest.mark.asyncio
async def test_delegate_runs_one_level_deeper():
    agent = FakeAgent()
    with use_runtime_context({"user-id": "u-1"}):
        output = await delegate(agent, "Weather in Paris", context={"city": "Paris"})

    assert output.result == "weather done"
    assert output.agent_used == "weather"
    assert output.execution_time_ms >= 0
    assert output.metadata["delegation_depth"] == 1
    assert output.metadata["steps"] == 2
    assert output.metadata["priority"] == "normal"

    call = agent.calls[0]
    assert call["depth"] == 1
    assert call["context"]["user-id"] == "u-1"
    assert call["context"]["delegation-depth"] == 1
    assert call["context"]["thread-id"] == "default:weather:delegated"
    assert call["message"].startswith("Task: Weather in Paris")
    assert '"city": "Paris"' in call["message"]
    # the depth is restored after the call
    assert get_delegation_depth() == 0


@pytest.mark.asyncio
async def test_default_depth_limit():
    token = var_delegation_depth.set(5)
    try:
        with pytest.raises(DelegationError, match=r"Maximum delegation depth \(5\) exceeded"):
            await delegate(FakeAgent(), "task")
    finally:
        var_delegation_depth.reset(token)


@pytest.mark.asyncio
async def test_depth_limit_from_context():
    token = var_delegation_depth.set(1)
    try:
        with use_runtime_context({"max-delegation-depth": 1}):
            with pytest.raises(DelegationError, match=r"\(1\)"):
                await delegate(FakeAgent(), "task")
    finally:
        var_delegation_depth.reset(token)


@pytest.mark.asyncio
async def test_timeout():
    with use_runtime_context({"execution-timeout": 10}):
        with pytest.raises(DelegationError, match="timeout"):
            await delegate(FakeAgent(delay=1.0), "slow task")
    assert get_delegation_depth() == 0


@pytest.mark.asyncio
async def test_delegate_task_tool():
    agent = FakeAgent("code")
    tool = DelegateTaskTool(resolver=lambda agent_id: agent)

    output = await tool.acall({"task": "Review", "agent_id": "code", "priority": "high"})

    assert tool.name == "DELEGATE_TASK"
    assert output.agent_used == "code"
    assert output.metadata["priority"] == "high"
    assert output.metadata["specialization"] == "code specialist"


@pytest.mark.asyncio
async def test_delegate_task_tool_unknown_agent():
    tool = DelegateTaskTool(llm_client=MagicMock())
    with pytest.raises(DelegationError, match="Unknown agent ID: nope"):
        await tool.acall({"task": "x", "agent_id": "nope"})


@pytest.mark.asyncio
async def test_agent_as_tool():
    agent = FakeAgent("weather")
    tool = AgentAsTool(agent)

    assert tool.name == "WEATHER_AGENT"
    assert tool.raw_name == "weather-agent"
    assert tool.description == "weather specialist"

    output = await tool.acall({"task": "Weather in Rome"})
    assert output.result == "weather done"


def test_list_agents():
    output = ListAgentsTool()({})
    assert output.total_agents == 24
    assert "weather: Weather information and forecasting assistant" in output.result


def test_list_agents_by_domain():
    output = ListAgentsTool()({"domain": "weather", "include_specializations": False})
    assert output.total_agents == 1
    assert output.result.endswith("weather")
    assert output.metadata["domain"] == "weather"


@pytest.mark.asyncio
async def test_delegated_thread_replaces_caller_thread():
    agent = FakeAgent("code")
    context = {"user-id": "u-1", "session-id": "s-1", "thread-id": "caller-thread"}
    with use_runtime_context(context):
        await delegate(agent, "Review")

    delegated = agent.calls[0]["context"]
    assert delegated["thread-id"] == "s-1:code:delegated"
    assert delegated["session-id"] == "s-1"
