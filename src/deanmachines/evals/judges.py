"""
LLM judged metrics.

Each judge is an LLMTool returning a JudgeVerdict. The score is clamped into
[0, scale]. JudgeMetric adapts a judge to the Metric contract by dividing by
the scale.
"""

import typing as t
from abc import abstractmethod

from openai.types.chat import ChatCompletionMessageParam
from pydantic import BaseModel, Field

from deanmachines.configs import get_evals_template_module
from deanmachines.evals.base import Metric, MetricResult
from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.tools_core.llm_base_tool import LLMTool

_templates = get_evals_template_module("judges.jinja")


class JudgeInput(BaseModel):
    input: str = Field(description="The question or source text")
    output: str = Field(description="The answer being judged")
    context: list[str] = Field(default_factory=list)


class StatementVerdict(BaseModel):
    verdict: t.Literal["yes", "no", "unsure"]
    reason: str = ""


class JudgeVerdict(BaseModel):
    score: float = Field(description="Score between 0 and the judge's scale")
    reason: str = Field(description="Why the score was given")
    verdicts: list[StatementVerdict] = Field(
        default_factory=list, description="Per statement verdicts, when the judge splits the answer"
    )


class Judge(LLMTool[JudgeInput, JudgeVerdict]):
    _input = JudgeInput
    _output = JudgeVerdict

    def __init__(
        self,
        llm_client: LLMClient,
        model: str | None = None,
        scale: float = 1,
        temperature: float | None = 0,
    ) -> None:
        super().__init__(llm_client=llm_client, model=model, temperature=temperature)
        if scale <= 0:
            raise ValueError("scale must be positive")
        self.scale = scale

    @abstractmethod
    def prompt(self, input: JudgeInput) -> str:
        """Render the judge prompt for one input."""

    def format_messages(self, input: JudgeInput) -> list[ChatCompletionMessageParam]:
        return [{"role": "user", "content": self.prompt(input)}]

    def post_process(self, input: JudgeInput, output: JudgeVerdict) -> JudgeVerdict:
        return output.model_copy(update={"score": min(max(output.score, 0.0), self.scale)})


class AnswerRelevancyJudge(Judge):
    _name = "answer-relevancy"
    description = "Judge how relevant an answer is to the question"

    def __init__(
        self,
        llm_client: LLMClient,
        model: str | None = None,
        scale: float = 1,
        uncertainty_weight: float = 0.3,
    ) -> None:
        super().__init__(llm_client=llm_client, model=model, scale=scale)
        self.uncertainty_weight = uncertainty_weight

    def prompt(self, input: JudgeInput) -> str:
        return _templates.answer_relevancy(
            input=input.input,
            output=input.output,
            scale=self.scale,
            uncertainty_weight=self.uncertainty_weight,
        )

    def post_process(self, input: JudgeInput, output: JudgeVerdict) -> JudgeVerdict:
        if output.verdicts:
            weights = {"yes": 1.0, "unsure": self.uncertainty_weight, "no": 0.0}
            relevant = sum(weights[v.verdict] for v in output.verdicts)
            output = output.model_copy(
                update={"score": relevant / len(output.verdicts) * self.scale}
            )
        return super().post_process(input, output)


class FaithfulnessJudge(Judge):
    _name = "faithfulness"
    description = "Judge whether an answer is supported by its context"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.faithfulness(
            input=input.input, output=input.output, context=input.context, scale=self.scale
        )


class HallucinationJudge(Judge):
    _name = "hallucination"
    description = "Judge how much of an answer is not grounded in its context"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.hallucination(
            input=input.input, output=input.output, context=input.context, scale=self.scale
        )


class BiasJudge(Judge):
    _name = "bias"
    description = "Judge whether an answer contains biased opinions"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.bias(input=input.input, output=input.output, scale=self.scale)


class ToxicityJudge(Judge):
    _name = "toxicity"
    description = "Judge whether an answer is toxic"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.toxicity(input=input.input, output=input.output, scale=self.scale)


class PromptAlignmentJudge(Judge):
    _name = "prompt-alignment"
    description = "Judge how well an answer follows instructions"

    def __init__(
        self,
        llm_client: LLMClient,
        instructions: list[str],
        model: str | None = None,
        scale: float = 1,
    ) -> None:
        super().__init__(llm_client=llm_client, model=model, scale=scale)
        if not instructions:
            raise ValueError("instructions must not be empty")
        self.instructions = instructions

    def prompt(self, input: JudgeInput) -> str:
        return _templates.prompt_alignment(
            input=input.input,
            output=input.output,
            instructions=self.instructions,
            scale=self.scale,
        )


class SummarizationJudge(Judge):
    _name = "summarization"
    description = "Judge the alignment and coverage of a summary"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.summarization(input=input.input, output=input.output, scale=self.scale)


class ContextPrecisionJudge(Judge):
    _name = "context-precision"
    description = "Judge whether useful context is ranked first"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.context_precision(
            input=input.input, output=input.output, context=input.context, scale=self.scale
        )


class ContextualRecallJudge(Judge):
    _name = "contextual-recall"
    description = "Judge how much of an answer the context supports"

    def prompt(self, input: JudgeInput) -> str:
        return _templates.contextual_recall(
            input=input.input, output=input.output, context=input.context, scale=self.scale
        )


class CustomEvalJudge(Judge):
    """Judge with free-form evaluation instructions."""

    _name = "custom-eval"
    description = "Judge an output against custom instructions"

    def __init__(
        self,
        llm_client: LLMClient,
        instructions: str,
        model: str | None = None,
        scale: float = 1,
    ) -> None:
        super().__init__(llm_client=llm_client, model=model, scale=scale)
        self.instructions = instructions

    def prompt(self, input: JudgeInput) -> str:
        return _templates.custom_eval(
            input=input.input,
            output=input.output,
            instructions=self.instructions,
            scale=self.scale,
        )


class JudgeMetric(Metric):
    def __init__(self, judge: Judge, context: list[str] | None = None) -> None:
        self.judge = judge
        self.name = judge.raw_name
        self.context = context or []

    async def measure(self, input: str, output: str) -> MetricResult:
        verdict = await self.judge.acall(
            JudgeInput(input=input, output=output, context=self.context)
        )
        return MetricResult(
            score=verdict.score / self.judge.scale,
            info={"reason": verdict.reason},
        )
