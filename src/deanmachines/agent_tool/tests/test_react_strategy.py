"""Tests for ReactStrategy."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from deanmachines.agent_tool.agent_tool import create_finish_tool
from deanmachines.agent_tool.react_strategy import ReactStrategy
from deanmachines.agent_tool.tests.common_fixtures import QuoteTool
from deanmachines.llm_core.llm_client import TextResponse, ToolCall, ToolCallResponse


@pytest.mark.asyncio
async def test_reasoning_then_action(mock_llm_client: MagicMock, quote_tool: QuoteTool):
    call = ToolCall(id="c1", tool_name="QUOTE", arguments={"symbol": "MSFT"})
    mock_llm_client.agenerate.side_effect = [
        TextResponse(content="I need the MSFT price first."),
        ToolCallResponse(tool_calls=[call]),
    ]

    output = await ReactStrategy(action_client=mock_llm_client).plan(
        messages=[{"role": "user", "content": "MSFT?"}],
        tools=[quote_tool, create_finish_tool()],
    )

    assert output.tool_calls == [call]
    assert output.messages == [
        {"role": "assistant", "content": "I need the MSFT price first."}
    ]
    reasoning_call, action_call = mock_llm_client.agenerate.call_args_list
    assert reasoning_call.kwargs["mode"] == "text"
    assert action_call.kwargs["mode"] == "tool_calling"
    action_messages = action_call.kwargs["messages"]
    assert action_messages[-2]["content"] == "I need the MSFT price first."


@pytest.mark.asyncio
async def test_reasoning_kept_on_finish(mock_llm_client: MagicMock):
    mock_llm_client.agenerate.side_effect = [
        TextResponse(content="Everything is known."),
        ToolCallResponse(
            tool_calls=[ToolCall(id="f", tool_name="FINISH", arguments={"result": "done"})]
        ),
    ]

    output = await ReactStrategy(action_client=mock_llm_client).plan(
        messages=[], tools=[create_finish_tool()]
    )

    assert output.finished
    assert output.result == "done"
    assert output.messages[0]["content"] == "Everything is known."


@pytest.mark.asyncio
async def test_separate_reasoning_client(mock_llm_client: MagicMock):
    reasoning_client = MagicMock()
    reasoning_client.agenerate = AsyncMock(return_value=TextResponse(content="plan"))
    mock_llm_client.agenerate.return_value = ToolCallResponse(tool_calls=[])

    output = await ReactStrategy(
        action_client=mock_llm_client,
        action_model="gpt-4o-mini",
        reasoning_client=reasoning_client,
        reasoning_model="gpt-4o",
    ).plan(messages=[], tools=[])

    assert reasoning_client.agenerate.call_args.kwargs["model"] == "gpt-4o"
    assert mock_llm_client.agenerate.call_args.kwargs["model"] == "gpt-4o-mini"
    # no tool call: the reasoning becomes the result
    assert output.finished
    assert not output.success
    assert output.result == "plan"
