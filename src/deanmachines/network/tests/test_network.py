"""Tests for AgentNetwork and execute_task."""

import json
from unittest.mock import AsyncMock

import pytest

from deanmachines.agents.agent import AgentResponse
from deanmachines.agents.registry import create_agent
from deanmachines.agents.tests.common_fixtures import finish_response, tool_response
from deanmachines.llm_core.llm_client import LLMAPIError
from deanmachines.network.network import (
    AgentNetwork,
    NetworkExecutionError,
    execute_task,
)
from deanmachines.observability.monitoring import error_tracker


@pytest.fixture
def network(scripted_llm_client) -> AgentNetwork:
    return AgentNetwork(
        name="Test Network",
        instructions="You coordinate tests.",
        agents=[
            create_agent("weather", llm_client=scripted_llm_client),
            create_agent("code", llm_client=scripted_llm_client),
        ],
        llm_client=scripted_llm_client,
    )


def test_get_agents(network):
    assert [agent.key for agent in network.get_agents()] == ["weather", "code"]


def test_groups_default_to_category(network):
    assert network.groups == {"data": ["weather"], "development": ["code"]}


def test_explicit_groups(scripted_llm_client):
    agents = [
        create_agent("weather", llm_client=scripted_llm_client),
        create_agent("code", llm_client=scripted_llm_client),
    ]
    network = AgentNetwork("N", "x", agents, groups={"forecasting": ["weather"]})
    assert network.groups == {"forecasting": ["weather"], "other": ["code"]}

    with pytest.raises(ValueError, match="outside the network"):
        AgentNetwork("N", "x", agents, groups={"g": ["git"]})


def test_invalid_members(scripted_llm_client):
    weather = create_agent("weather", llm_client=scripted_llm_client)
    with pytest.raises(ValueError, match="Duplicate"):
        AgentNetwork("N", "x", [weather, weather])
    with pytest.raises(ValueError, match="at least one agent"):
        AgentNetwork("N", "x", [])


def test_routing_instructions_defaults(network):
    text = network.routing_instructions()
    assert text.startswith("You coordinate tests.")
    assert "DATA:" in text
    assert "- WEATHER_AGENT: Weather information and forecasting assistant" in text
    assert "- CODE_AGENT:" in text
    assert "- Task Complexity: moderate" in text
    assert "Preferred Agents" not in text
    assert "Answer in a detailed style." in text


def test_routing_instructions_from_context(network):
    text = network.routing_instructions(
        {
            "execution-mode": "single-agent",
            "priority-level": "critical",
            "preferred-agents": ["weather"],
            "max-agents": 1,
            "response-format": "concise",
            "domain-context": "travel",
        }
    )
    assert "Route the whole request to the single best-fit agent." in text
    assert "- Preferred Agents: weather" in text
    assert "- Domain: travel" in text
    assert "Do not involve more than 1 agents." in text
    assert "call independent agents in parallel" in text
    assert "Answer in a concise style." in text


def test_routing_instructions_invalid_context(network):
    with pytest.raises(ValueError, match="NetworkContext"):
        network.routing_instructions({"execution-mode": "chaotic"})


@pytest.mark.asyncio
async def test_generate_routes_through_agent_tools(network, scripted_llm_client):
    # coordinator calls the weather agent, the weather agent finishes,
    # then the coordinator finishes
    scripted_llm_client.agenerate.side_effect = [
        tool_response("WEATHER_AGENT", {"task": "Weather in Oslo"}),
        finish_response("Oslo: 4 degrees"),
        finish_response("It is 4 degrees in Oslo."),
    ]

    response = await network.generate(
        "How cold is Oslo?", runtime_context={"user-id": "u-1"}
    )

    assert isinstance(response, AgentResponse)
    assert response.text == "It is 4 degrees in Oslo."
    assert response.success
    assert response.tool_calls == 1

    tool_message = next(m for m in response.messages if m["role"] == "tool")
    delegated = json.loads(tool_message["content"])
    assert delegated["result"] == "Oslo: 4 degrees"
    assert delegated["agent_used"] == "weather"

    coordinator_call = scripted_llm_client.agenerate.call_args_list[0].kwargs
    assert coordinator_call["temperature"] == 0.7
    tool_names = {tool.name for tool in coordinator_call["tools"]}
    assert tool_names == {"WEATHER_AGENT", "CODE_AGENT", "FINISH"}
    # the member agent sees the caller's context
    member_system = scripted_llm_client.agenerate.call_args_list[1].kwargs["messages"][0]
    assert "- User: u-1" in member_system["content"]


@pytest.mark.asyncio
async def test_execute_task_success(network, scripted_llm_client):
    scripted_llm_client.agenerate.return_value = finish_response("Done")
    response = await execute_task(network, [{"role": "user", "content": "Hi"}])
    assert response.text == "Done"


@pytest.mark.asyncio
async def test_execute_task_wraps_failures(network, scripted_llm_client):
    error_tracker.clear_errors()
    scripted_llm_client.agenerate = AsyncMock(side_effect=LLMAPIError("quota exceeded"))

    with pytest.raises(NetworkExecutionError) as exc_info:
        await execute_task(network, "Hi")

    assert str(exc_info.value) == "Network execution failed: quota exceeded"
    assert isinstance(exc_info.value.__cause__, LLMAPIError)

    [record] = error_tracker.get_recent_errors()
    assert record.operation == "network.execute_task"
    assert record.error_type == "LLMAPIError"
    assert record.context["network"] == "Test Network"
    assert record.context["task_id"].startswith("task-")
