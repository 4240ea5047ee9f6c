"""
AgentTool - tool-calling agent loop with a pluggable planning strategy.

AgentTool handles:
- Message history (list[ChatCompletionMessageParam])
- Tool execution and error capture
- Iteration control

The planning strategy handles the LLM interaction of each step.
"""

import asyncio
import json
import typing as t

from loguru import logger
from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel, Field

from deanmachines.agent_tool.base_strategy import PlanningStrategy
from deanmachines.configs import get_agent_tool_template_module
from deanmachines.llm_core.llm_client import ToolCall
from deanmachines.tools_core.base_tool import BaseTool, create_fn_tool
from deanmachines.utilities.utils import truncate

_templates = get_agent_tool_template_module("agent_tool.jinja")

DEFAULT_MAX_ITERATIONS = 10


class AgentToolInput(BaseModel):
    """Input for the AgentTool."""

    objective: str = Field(description="The task/objective to accomplish.")
    context: str | None = Field(
        default=None,
        description="Additional context to help accomplish the objective.",
    )
    max_iterations: int = Field(
        default=DEFAULT_MAX_ITERATIONS,
        ge=1,
        description="Maximum number of iterations before stopping.",
    )


class AgentToolOutput(BaseModel):
    """Output from the AgentTool."""

    result: str = Field(description="The result of the task.")
    success: bool = Field(description="Whether the task was completed successfully.")
    iterations_used: int = Field(description="Number of iterations used.")
    tool_calls_count: int = Field(default=0, description="Number of tools executed.")
    # dicts rather than ChatCompletionMessageParam: OpenAI's TypedDict unions
    # do not serialize cleanly with pydantic
    messages: list[dict[str, t.Any]] = Field(
        default_factory=list,
        description="Full conversation history (for debugging/inspection).",
    )


class FinishOutput(BaseModel):
    """Output from the finish tool."""

    acknowledged: bool = Field(default=True)


def create_finish_tool() -> BaseTool[t.Any, FinishOutput]:
    """Create the finish tool that signals task completion."""

    @create_fn_tool(
        name="finish",
        description="Call this when the task is complete to return the final result.",
    )
    def finish(result: str, success: bool = True) -> FinishOutput:  # noqa: ARG001
        return FinishOutput(acknowledged=True)

    return finish  # type: ignore[return-value]


class AgentTool(BaseTool[AgentToolInput, AgentToolOutput]):
    """
    General-purpose agent loop.

    1. Strategy decides what to do (reasoning + tool selection)
    2. AgentTool executes the tools
    3. Results are added to message history
    4. Repeat until the task is finished or max iterations is reached

    Usage:
        agent = AgentTool(
            tools=[weather_tool, stock_tool],
            strategy=DirectStrategy(llm_client),
            system_prompt="You are a market assistant.",
        )

        # One-off objective
        result = await agent.ainvoke(AgentToolInput(objective="Price of AAPL?"))

        # Continue a chat conversation
        result = await agent.run([{"role": "user", "content": "Hi"}])
    """

    _name = "agent"
    description = "A general-purpose agent that can use tools to accomplish objectives."
    _input = AgentToolInput
    _output = AgentToolOutput

    def __init__(
        self,
        tools: t.Sequence[BaseTool[t.Any, t.Any]],
        strategy: PlanningStrategy,
        system_prompt: str | None = None,
        include_finish_tool: bool = True,
        parallel_tool_calls: bool = True,
        guidance_messages: list[str] | None = None,
    ) -> None:
        """
        Args:
            tools: Tools available to the agent
            strategy: Planning strategy (owns its LLM client and model config)
            system_prompt: Custom system prompt (uses template if None)
            include_finish_tool: Whether to auto-add finish tool
            parallel_tool_calls: Allow parallel tool calls (LLM and execution)
            guidance_messages: Extra system messages injected after the system prompt
        """
        super().__init__()
        self.strategy = strategy
        self._system_prompt = system_prompt
        self.parallel_tool_calls = parallel_tool_calls
        self.guidance_messages = guidance_messages or []

        self.tools = list(tools)
        if include_finish_tool:
            self.tools.append(create_finish_tool())

    def _get_system_prompt(self) -> str:
        if self._system_prompt:
            return self._system_prompt
        return _templates.system_prompt(tools=self.tools)

    def _initial_messages(self) -> list[ChatCompletionMessageParam]:
        messages: list[ChatCompletionMessageParam] = [
            {"role": "system", "content": self._get_system_prompt()}
        ]
        for guidance in self.guidance_messages:
            messages.append({"role": "system", "content": guidance})
        return messages

    def invoke(self, input: AgentToolInput) -> AgentToolOutput:
        """Sync execution - wraps async implementation."""
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: AgentToolInput) -> AgentToolOutput:
        """Execute an objective from a fresh conversation."""
        logger.info(
            "Starting agent task | objective={} | max_iterations={} | strategy={}",
            truncate(input.objective),
            input.max_iterations,
            type(self.strategy).__name__,
        )
        task_message: ChatCompletionMessageParam = {
            "role": "user",
            "content": _templates.task_prompt(
                objective=input.objective, context=input.context
            ),
        }
        return await self.run([task_message], max_iterations=input.max_iterations)

    async def run(
        self,
        conversation: t.Sequence[ChatCompletionMessageParam],
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> AgentToolOutput:
        """Run the loop on top of an existing conversation."""
        messages = self._initial_messages() + list(conversation)
        result = await self._agent_loop(messages, max_iterations)

        if result.success:
            logger.success(
                "Task completed | iterations={} | tool_calls={}",
                result.iterations_used,
                result.tool_calls_count,
            )
        else:
            logger.warning(
                "Task failed | iterations={} | result={}",
                result.iterations_used,
                truncate(result.result or "No result", 100),
            )
        return result

    async def _agent_loop(
        self,
        messages: list[ChatCompletionMessageParam],
        max_iterations: int,
    ) -> AgentToolOutput:
        # tool.name is normalized to uppercase
        tool_map = {tool.name.upper(): tool for tool in self.tools}
        tool_calls_count = 0

        for iteration in range(max_iterations):
            logger.debug(
                "Agent iteration {}/{} | messages={}",
                iteration + 1,
                max_iterations,
                len(messages),
            )

            strategy_output = await self.strategy.plan(
                messages=messages,
                tools=self.tools,
                parallel_tool_calls=self.parallel_tool_calls,
            )
            messages.extend(strategy_output.messages)

            if strategy_output.finished:
                return AgentToolOutput(
                    result=strategy_output.result or "",
                    success=strategy_output.success,
                    iterations_used=iteration + 1,
                    tool_calls_count=tool_calls_count,
                    messages=t.cast(list[dict[str, t.Any]], messages),
                )

            if strategy_output.tool_calls:
                await self._execute_tool_calls(
                    tool_calls=strategy_output.tool_calls,
                    tool_map=tool_map,
                    messages=messages,
                )
                tool_calls_count += len(strategy_output.tool_calls)

        logger.warning("Max iterations reached | max={}", max_iterations)
        return AgentToolOutput(
            result="Max iterations reached without completing the task",
            success=False,
            iterations_used=max_iterations,
            tool_calls_count=tool_calls_count,
            messages=t.cast(list[dict[str, t.Any]], messages),
        )

    async def _execute_single_tool(
        self, tool_call: ToolCall, tool_map: dict[str, BaseTool[t.Any, t.Any]]
    ) -> str:
        tool_input = tool_call.parsed if tool_call.parsed is not None else tool_call.arguments
        logger.info(
            "Tool call | tool={} | args={}",
            tool_call.tool_name,
            truncate(json.dumps(tool_call.arguments, default=str), 100),
        )

        tool = tool_map.get(tool_call.tool_name.upper())
        if tool is None:
            logger.error("Unknown tool: {}", tool_call.tool_name)
            return json.dumps({"error": f"Unknown tool '{tool_call.tool_name}'"})

        try:
            result = await tool.acall(tool_input)
        except Exception as e:  # errors go back to the model as tool output
            logger.error("Tool execution error | tool={} | error={}", tool_call.tool_name, e)
            return json.dumps({"error": f"Error executing {tool_call.tool_name}: {e}"})

        tool_result = result.model_dump_json()
        logger.debug("Tool result: {}", truncate(tool_result, 200))
        return tool_result

    async def _execute_tool_calls(
        self,
        tool_calls: list[ToolCall],
        tool_map: dict[str, BaseTool[t.Any, t.Any]],
        messages: list[ChatCompletionMessageParam],
    ) -> None:
        """Execute tool calls and append the assistant/tool messages."""
        messages.append(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.tool_name,
                            "arguments": json.dumps(tc.arguments, default=str),
                        },
                    }
                    for tc in tool_calls
                ],
            }
        )

        if self.parallel_tool_calls:
            results = await asyncio.gather(
                *[self._execute_single_tool(tc, tool_map) for tc in tool_calls]
            )
        else:
            results = [await self._execute_single_tool(tc, tool_map) for tc in tool_calls]

        for tool_call, tool_result in zip(tool_calls, results):
            messages.append(
                {"role": "tool", "tool_call_id": tool_call.id, "content": tool_result}
            )
