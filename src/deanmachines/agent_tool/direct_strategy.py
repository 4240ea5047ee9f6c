"""
Direct Strategy - one tool calling LLM request per step.

The model reads the conversation and directly selects and parameterizes
tools. Agents reply to the user by calling the finish tool.
"""

import typing as t

from openai.types.chat import ChatCompletionMessageParam

from deanmachines.agent_tool.base_strategy import PlanningStrategy, StrategyOutput
from deanmachines.configs import get_agent_tool_template_module
from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.tools_core.base_tool import BaseTool

_templates = get_agent_tool_template_module("direct_strategy.jinja")


class DirectStrategy(PlanningStrategy):
    """
    Direct strategy: messages -> LLM (tool_calling) -> tool_calls -> execute.

    Return behavior:
        - No tool_calls -> finished=True, success=False
        - FINISH tool called -> finished=True, success=<from FINISH args>
        - Other tools called -> finished=False, tool_calls=[...]
    """

    def __init__(
        self,
        llm_client: LLMClient,
        model: str | None = None,
        direct_prompt: str | None = None,
        finish_tool_name: str = "finish",
        temperature: float | None = None,
    ):
        """
        Args:
            llm_client: LLM client for generation
            model: Optional model override
            direct_prompt: Custom prompt for tool selection (uses template if None)
            finish_tool_name: Name of the tool that signals task completion
            temperature: Sampling temperature forwarded to the provider
        """
        self.llm_client = llm_client
        self.model = model
        self.direct_prompt = direct_prompt
        self.finish_tool_name = finish_tool_name
        self.temperature = temperature

    def _get_direct_prompt(self, tools: list[BaseTool[t.Any, t.Any]]) -> str:
        if self.direct_prompt:
            return self.direct_prompt
        return _templates.direct_prompt(
            tool_names=[tool.name for tool in tools],
            finish_tool_name=self.finish_tool_name.upper(),
        )

    async def plan(
        self,
        messages: list[ChatCompletionMessageParam],
        tools: list[BaseTool[t.Any, t.Any]],
        parallel_tool_calls: bool = True,
    ) -> StrategyOutput:
        request_messages = list(messages) + [
            {"role": "user", "content": self._get_direct_prompt(tools)}
        ]
        response = await self.llm_client.agenerate(
            messages=request_messages,
            model=self.model,
            mode="tool_calling",
            tools=tools,
            parallel_tool_calls=parallel_tool_calls,
            **self._generation_kwargs(),
        )
        return self._to_output(response)
