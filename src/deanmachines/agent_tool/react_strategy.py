"""
React Strategy - Reason-Act-Observe.

Each step first asks the model for free-text reasoning about the state of
the conversation and the immediate next action, then asks it to act on that
reasoning with a tool call. The reasoning is kept in the conversation.

Reference: "ReAct: Synergizing Reasoning and Acting in Language Models" (2022)
"""

import typing as t

from loguru import logger
from openai.types.chat import ChatCompletionMessageParam

from deanmachines.agent_tool.base_strategy import PlanningStrategy, StrategyOutput
from deanmachines.configs import get_agent_tool_template_module
from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.tools_core.base_tool import BaseTool

_templates = get_agent_tool_template_module("react_strategy.jinja")


class ReactStrategy(PlanningStrategy):
    """
    React strategy: reasoning (text) followed by action (tool_calling).

    The action phase only commits to the IMMEDIATE next step so the agent can
    adapt to each tool result. Reasoning is always included in the output
    messages, also when the step finishes the task.
    """

    def __init__(
        self,
        action_client: LLMClient,
        action_model: str | None = None,
        reasoning_client: LLMClient | None = None,
        reasoning_model: str | None = None,
        finish_tool_name: str = "finish",
        temperature: float | None = None,
    ):
        """
        Args:
            action_client: LLM client for the action phase (tool selection)
            action_model: Model for the action phase (client default if None)
            reasoning_client: LLM client for reasoning (action_client if None)
            reasoning_model: Model for reasoning (action_model if None)
            finish_tool_name: Name of the tool that signals task completion
            temperature: Sampling temperature for both phases
        """
        self.action_client = action_client
        self.action_model = action_model
        self.reasoning_client = reasoning_client or action_client
        self.reasoning_model = reasoning_model or action_model
        self.finish_tool_name = finish_tool_name
        self.temperature = temperature

    async def plan(
        self,
        messages: list[ChatCompletionMessageParam],
        tools: list[BaseTool[t.Any, t.Any]],
        parallel_tool_calls: bool = True,
    ) -> StrategyOutput:
        reasoning_prompt = _templates.reasoning_prompt(
            tool_names=[tool.name for tool in tools]
        )
        reasoning_response = await self.reasoning_client.agenerate(
            messages=list(messages) + [{"role": "user", "content": reasoning_prompt}],
            model=self.reasoning_model,
            mode="text",
            **self._generation_kwargs(),
        )
        reasoning = reasoning_response.content or ""
        logger.debug("Reasoning: {}", reasoning[:200])

        reasoning_message: ChatCompletionMessageParam = {
            "role": "assistant",
            "content": reasoning,
        }
        response = await self.action_client.agenerate(
            messages=list(messages)
            + [
                reasoning_message,
                {
                    "role": "user",
                    "content": _templates.action_prompt(
                        finish_tool_name=self.finish_tool_name.upper()
                    ),
                },
            ],
            model=self.action_model,
            mode="tool_calling",
            tools=tools,
            parallel_tool_calls=parallel_tool_calls,
            **self._generation_kwargs(),
        )
        return self._to_output(
            response,
            messages=[reasoning_message],
            no_call_result=response.content or reasoning or None,
        )
