"""
Chainlit steps for a finished agent run.

The agent loop runs behind ``generate``. Its tool calls are read back from the
returned message history and shown as one step per call.
"""

import json
import typing as t
from dataclasses import dataclass

import chainlit as cl

from deanmachines.agents.agent import AgentResponse

FINISH_TOOL = "FINISH"


@dataclass(frozen=True)
class ToolCallRecord:
    tool_name: str
    arguments: str | dict[str, t.Any]
    output: str | dict[str, t.Any]
    is_error: bool = False


def convert_for_chainlit(raw: str | None) -> str | dict[str, t.Any]:
    """JSON objects become dicts, anything else stays text."""
    if not raw:
        return ""
    try:
        data = json.loads(raw)
    except ValueError:
        return raw
    return data if isinstance(data, dict) else raw


def extract_tool_calls(messages: list[dict[str, t.Any]]) -> list[ToolCallRecord]:
    """Pair each assistant tool call with its tool result. FINISH is skipped."""
    outputs = {
        message.get("tool_call_id"): message.get("content")
        for message in messages
        if message.get("role") == "tool"
    }
    records = []
    for message in messages:
        if message.get("role") != "assistant":
            continue
        for call in message.get("tool_calls") or []:
            name = call["function"]["name"]
            if name.upper() == FINISH_TOOL:
                continue
            output = convert_for_chainlit(outputs.get(call["id"]))
            records.append(
                ToolCallRecord(
                    tool_name=name,
                    arguments=convert_for_chainlit(call["function"].get("arguments")),
                    output=output,
                    is_error=isinstance(output, dict) and "error" in output,
                )
            )
    return records


async def send_tool_steps(response: AgentResponse) -> int:
    """Show the run's tool calls as nested steps. Returns how many were shown."""
    records = extract_tool_calls(response.messages)
    for record in records:
        async with cl.Step(name=record.tool_name, type="tool") as step:
            step.input = record.arguments
            step.output = record.output
            step.is_error = record.is_error
    return len(records)
