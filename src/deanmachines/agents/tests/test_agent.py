"""Tests for the Agent runtime."""

import json

import pytest
from loguru import logger
from pydantic import BaseModel

from deanmachines.agents.agent import Agent, AgentResponse, normalize_messages
from deanmachines.agents.definition import AgentDefinition
from deanmachines.agents.tests.common_fixtures import finish_response, tool_response
from deanmachines.llm_core.llm_configs import Provider
from deanmachines.runtime_context import RuntimeContext, get_runtime_context
from deanmachines.tools.delegate_tools import AgentAsTool
from deanmachines.tools_core.base_tool import BaseTool


class WhoAmIInput(BaseModel):
    pass


class WhoAmIOutput(BaseModel):
    user_id: str | None
    frozen: bool


class WhoAmITool(BaseTool[WhoAmIInput, WhoAmIOutput]):
    """Reports the runtime context it runs under."""

    _name = "who-am-i"
    description = "Return the current user id"
    _input = WhoAmIInput
    _output = WhoAmIOutput

    def invoke(self, input: WhoAmIInput) -> WhoAmIOutput:
        context = get_runtime_context()
        return WhoAmIOutput(user_id=context.get("user-id"), frozen=context.frozen)

    async def ainvoke(self, input: WhoAmIInput) -> WhoAmIOutput:
        return self.invoke(input)


def make_definition(**overrides) -> AgentDefinition:
    values = dict(
        key="tester",
        name="Tester Agent",
        description="Agent used in tests",
        category="core",
        instructions=lambda ctx: f"You help user {ctx.get('user-id', 'anonymous')}.",
        model="gemini-test",
    )
    values.update(overrides)
    return AgentDefinition(**values)


def sent_messages(client, call: int = 0) -> list[dict]:
    return client.agenerate.call_args_list[call].kwargs["messages"]


class TestNormalizeMessages:
    def test_string(self):
        assert normalize_messages("hi") == [{"role": "user", "content": "hi"}]

    def test_list_is_copied(self):
        original = [{"role": "user", "content": "hi"}]
        normalized = normalize_messages(original)
        assert normalized == original
        assert normalized[0] is not original[0]

    @pytest.mark.parametrize("messages", ["", "   ", [], [{"content": "no role"}]])
    def test_invalid(self, messages):
        with pytest.raises(ValueError):
            normalize_messages(messages)


class TestAgent:
    def test_properties(self, scripted_llm_client):
        agent = Agent(make_definition(), llm_client=scripted_llm_client)
        assert agent.key == "tester"
        assert agent.name == "Tester Agent"
        assert agent.description == "Agent used in tests"
        assert agent.model == "gemini-test"

    @pytest.mark.parametrize(
        "provider, expected",
        [
            (Provider.GOOGLE, "gemini-2.0-flash"),
            (Provider.OPENAI, None),
            (Provider.OLLAMA, None),
        ],
    )
    def test_model_only_for_serving_provider(self, scripted_llm_client, provider, expected):
        scripted_llm_client.provider = provider
        agent = Agent(make_definition(model="gemini-2.0-flash"), llm_client=scripted_llm_client)
        assert agent.model == expected

    def test_instructions_from_context(self, scripted_llm_client):
        agent = Agent(make_definition(), llm_client=scripted_llm_client)
        assert agent.instructions({"user-id": "u-7"}) == "You help user u-7."
        assert agent.instructions() == "You help user anonymous."

    @pytest.mark.asyncio
    async def test_generate_returns_finish_result(self, scripted_llm_client):
        scripted_llm_client.agenerate.return_value = finish_response("Hello there")
        agent = Agent(make_definition(), llm_client=scripted_llm_client)

        response = await agent.generate("Hi", runtime_context={"user-id": "u-1"})

        assert isinstance(response, AgentResponse)
        assert response.text == "Hello there"
        assert response.success is True
        assert response.steps == 1
        assert response.tool_calls == 0

        messages = sent_messages(scripted_llm_client)
        assert messages[0] == {"role": "system", "content": "You help user u-1."}
        assert "FINISH" in messages[1]["content"]
        assert {"role": "user", "content": "Hi"} in messages
        assert scripted_llm_client.agenerate.call_args.kwargs["model"] == "gemini-test"

    @pytest.mark.asyncio
    async def test_generate_is_timed(self, scripted_llm_client):
        captured = []
        handler_id = logger.add(lambda message: captured.append(message.record["message"]))
        try:
            await Agent(make_definition(), llm_client=scripted_llm_client).generate("Hi")
        finally:
            logger.remove(handler_id)

        assert any(
            m.startswith("Operation completed: agent.generate:tester") for m in captured
        )

    @pytest.mark.asyncio
    async def test_tools_see_frozen_context(self, scripted_llm_client):
        scripted_llm_client.agenerate.side_effect = [
            tool_response("WHO_AM_I", {}),
            finish_response("You are u-9"),
        ]
        agent = Agent(
            make_definition(tools={"who-am-i": lambda _: WhoAmITool()}),
            llm_client=scripted_llm_client,
        )

        response = await agent.generate("Who am I?", runtime_context={"user-id": "u-9"})

        assert response.tool_calls == 1
        tool_messages = [m for m in response.messages if m["role"] == "tool"]
        assert json.loads(tool_messages[0]["content"]) == {"user_id": "u-9", "frozen": True}
        # the context is only published during the call
        assert get_runtime_context().to_dict() == {}

    @pytest.mark.asyncio
    async def test_memory_round_trip(self, scripted_llm_client, memory):
        scripted_llm_client.agenerate.side_effect = [
            finish_response("Nice to meet you, Ada"),
            finish_response("Your name is Ada"),
        ]
        agent = Agent(make_definition(memory=memory), llm_client=scripted_llm_client)
        context = RuntimeContext({"user-id": "ada", "session-id": "s-1"})

        await agent.generate("My name is Ada", runtime_context=context)
        await agent.generate("What is my name?", runtime_context=context)

        second = sent_messages(scripted_llm_client, call=1)
        assert {"role": "user", "content": "My name is Ada"} in second
        assert {"role": "assistant", "content": "Nice to meet you, Ada"} in second
        assert len(memory.get_messages("ada", "s-1")) == 4

    @pytest.mark.asyncio
    async def test_delegated_agent_keeps_own_thread(self, scripted_llm_client, memory):
        scripted_llm_client.agenerate.side_effect = [
            tool_response("WORKER_AGENT", {"task": "do X"}),
            finish_response("worker result"),
            finish_response("final answer"),
        ]
        worker = Agent(
            make_definition(key="worker", memory=memory), llm_client=scripted_llm_client
        )
        boss = Agent(
            make_definition(
                key="boss", memory=memory, tools={"worker-agent": lambda _: AgentAsTool(worker)}
            ),
            llm_client=scripted_llm_client,
        )

        response = await boss.generate(
            "hello", runtime_context={"user-id": "u", "session-id": "s"}
        )

        assert response.text == "final answer"
        assert memory.get_messages("u", "s") == [
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "final answer"},
        ]
        delegated = memory.get_messages("u", "s:worker:delegated")
        assert delegated[0]["content"].startswith("Task: do X")
        assert delegated[1] == {"role": "assistant", "content": "worker result"}

    @pytest.mark.asyncio
    async def test_explicit_thread_ids_win(self, scripted_llm_client, memory):
        agent = Agent(make_definition(memory=memory), llm_client=scripted_llm_client)
        await agent.generate(
            "Hi",
            runtime_context={"user-id": "ada", "session-id": "s-1"},
            thread_id="t-x",
            resource_id="r-x",
        )
        assert memory.get_messages("r-x", "t-x")
        assert memory.get_messages("ada", "s-1") == []

    @pytest.mark.asyncio
    async def test_no_memory_without_ids(self, scripted_llm_client, memory):
        agent = Agent(make_definition(memory=memory), llm_client=scripted_llm_client)
        await agent.generate("Hi")
        assert memory.list_threads("anonymous") == []

    @pytest.mark.asyncio
    async def test_max_steps(self, scripted_llm_client):
        scripted_llm_client.agenerate.return_value = tool_response("WHO_AM_I", {})
        agent = Agent(
            make_definition(tools={"who-am-i": lambda _: WhoAmITool()}),
            llm_client=scripted_llm_client,
        )
        response = await agent.generate("loop", max_steps=2)
        assert response.success is False
        assert response.steps == 2
        assert response.text == "Max iterations reached without completing the task"
