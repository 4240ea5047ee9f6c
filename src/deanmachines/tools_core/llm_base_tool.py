"""
Tools whose invocation is a single structured LLM call.
"""

import typing as t
from abc import abstractmethod

from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel

from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.tools_core.base_tool import BaseTool, InputT, OutputT


class LLMTool(BaseTool[InputT, OutputT]):
    """
    Tool that asks an LLM for a response shaped like its `_output` model.

    Subclasses implement `format_messages()`. They may override
    `post_process()` to adjust the parsed model (e.g. clamp a score).

    Example:
        class RelevancyJudge(LLMTool[JudgeInput, JudgeVerdict]):
            _name = "answer_relevancy"
            description = "Judge how relevant an answer is"
            _input = JudgeInput
            _output = JudgeVerdict

            def format_messages(self, input: JudgeInput) -> list[ChatCompletionMessageParam]:
                return [{"role": "user", "content": f"Q: {input.input}\\nA: {input.output}"}]

        verdict = RelevancyJudge(llm_client=client)({"input": "...", "output": "..."})
    """

    def __init__(
        self,
        llm_client: LLMClient,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        super().__init__()
        self.llm_client = llm_client
        self._model = model  # None = use client's default_model
        self.temperature = temperature

    @abstractmethod
    def format_messages(self, input: InputT) -> list[ChatCompletionMessageParam]:
        """Convert the validated tool input to chat messages."""
        raise NotImplementedError()

    def post_process(self, input: InputT, output: OutputT) -> OutputT:
        return output

    def _generation_kwargs(self) -> dict[str, t.Any]:
        if self.temperature is None:
            return {}
        return {"temperature": self.temperature}

    def invoke(self, input: InputT) -> OutputT:
        messages = self.format_messages(input)
        response = self.llm_client.generate(
            messages=messages,
            model=self._model,
            mode="pydantic",
            response_model=self._output,
            **self._generation_kwargs(),
        )
        return self.post_process(input, t.cast(OutputT, response.parsed))

    async def ainvoke(self, input: InputT) -> OutputT:
        messages = self.format_messages(input)
        response = await self.llm_client.agenerate(
            messages=messages,
            model=self._model,
            mode="pydantic",
            response_model=self._output,
            **self._generation_kwargs(),
        )
        return self.post_process(input, t.cast(OutputT, response.parsed))
