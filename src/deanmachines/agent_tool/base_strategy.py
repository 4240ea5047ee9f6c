"""
Planning strategy contract for AgentTool.

A strategy owns the LLM interaction for one step of the agent loop: it looks
at the conversation so far and returns either tool calls to execute or a
finished result. AgentTool owns the loop, the message history and tool
execution.
"""

import typing as t
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from openai.types.chat import ChatCompletionMessageParam

from deanmachines.llm_core.llm_client import ToolCall, ToolCallResponse
from deanmachines.tools_core.base_tool import BaseTool


@dataclass
class StrategyOutput:
    """Result of one planning step."""

    messages: list[ChatCompletionMessageParam] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    finished: bool = False
    success: bool = True
    result: str | None = None


class PlanningStrategy(ABC):
    """Base class for planning strategies."""

    finish_tool_name: str = "finish"
    temperature: float | None = None

    @abstractmethod
    async def plan(
        self,
        messages: list[ChatCompletionMessageParam],
        tools: list[BaseTool[t.Any, t.Any]],
        parallel_tool_calls: bool = True,
    ) -> StrategyOutput:
        """Decide the next step given the conversation so far."""
        ...

    def _generation_kwargs(self) -> dict[str, t.Any]:
        if self.temperature is None:
            return {}
        return {"temperature": self.temperature}

    def _to_output(
        self,
        response: ToolCallResponse,
        messages: list[ChatCompletionMessageParam] | None = None,
        no_call_result: str | None = None,
    ) -> StrategyOutput:
        """Map a tool calling response onto the loop's next step.

        - No tool calls: finished without success
        - Finish tool called: finished with its result and success flag
        - Other tools called: continue with those tool calls
        """
        messages = messages or []
        if not response.tool_calls:
            return StrategyOutput(
                messages=messages,
                finished=True,
                success=False,
                result=no_call_result
                or response.content
                or "No tool calls returned by LLM",
            )

        for tc in response.tool_calls:
            if tc.tool_name.upper() == self.finish_tool_name.upper():
                return StrategyOutput(
                    messages=messages,
                    finished=True,
                    success=bool(tc.arguments.get("success", True)),
                    result=str(tc.arguments.get("result", "Task completed")),
                )

        return StrategyOutput(messages=messages, tool_calls=response.tool_calls)
