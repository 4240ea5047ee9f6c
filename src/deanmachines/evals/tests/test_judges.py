"""Tests for the LLM judges."""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from deanmachines.evals.judges import (
    AnswerRelevancyJudge,
    BiasJudge,
    ContextPrecisionJudge,
    ContextualRecallJudge,
    CustomEvalJudge,
    FaithfulnessJudge,
    HallucinationJudge,
    JudgeMetric,
    JudgeVerdict,
    PromptAlignmentJudge,
    StatementVerdict,
    SummarizationJudge,
    ToxicityJudge,
)


def judge_client(verdict: JudgeVerdict) -> MagicMock:
    client = MagicMock()
    response = Mock()
    response.parsed = verdict
    client.generate.return_value = response
    client.agenerate = AsyncMock(return_value=response)
    return client


def sent_prompt(client: MagicMock) -> str:
    return client.generate.call_args.kwargs["messages"][0]["content"]


class TestJudge:
    def test_requests_verdict_model(self):
        client = judge_client(JudgeVerdict(score=0.5, reason="ok"))

        FaithfulnessJudge(client)({"input": "q", "output": "a", "context": ["fact one"]})

        call_kwargs = client.generate.call_args.kwargs
        assert call_kwargs["mode"] == "pydantic"
        assert call_kwargs["response_model"] is JudgeVerdict
        assert call_kwargs["temperature"] == 0
        assert "- fact one" in sent_prompt(client)

    def test_score_clamped_to_scale(self):
        client = judge_client(JudgeVerdict(score=12, reason="too high"))

        assert ToxicityJudge(client, scale=10)({"input": "q", "output": "a"}).score == 10

    def test_negative_score_clamped(self):
        client = judge_client(JudgeVerdict(score=-1, reason="negative"))
        assert BiasJudge(client)({"input": "q", "output": "a"}).score == 0

    def test_scale_must_be_positive(self):
        with pytest.raises(ValueError):
            HallucinationJudge(MagicMock(), scale=0)

    @pytest.mark.parametrize(
        "judge_cls, phrase",
        [
            (HallucinationJudge, "made up"),
            (BiasJudge, "biased opinions"),
            (ToxicityJudge, "toxic"),
            (SummarizationJudge, "Summary:"),
            (ContextPrecisionJudge, "ranked first"),
            (ContextualRecallJudge, "attributed to the given context"),
        ],
    )
    def test_prompts(self, judge_cls, phrase):
        client = judge_client(JudgeVerdict(score=1, reason="ok"))

        judge_cls(client)({"input": "q", "output": "a"})

        assert phrase in sent_prompt(client)
        assert "between 0 and 1" in sent_prompt(client)

    def test_names(self):
        client = MagicMock()
        assert AnswerRelevancyJudge(client).name == "ANSWER_RELEVANCY"
        assert CustomEvalJudge(client, "x").raw_name == "custom-eval"


class TestAnswerRelevancy:
    def test_unsure_verdicts_weighted(self):
        verdicts = [
            StatementVerdict(verdict="yes"),
            StatementVerdict(verdict="unsure"),
            StatementVerdict(verdict="no"),
            StatementVerdict(verdict="yes"),
        ]
        client = judge_client(JudgeVerdict(score=0.9, reason="r", verdicts=verdicts))

        result = AnswerRelevancyJudge(client)({"input": "q", "output": "a"})

        assert result.score == pytest.approx((2 + 0.3) / 4)

    def test_score_kept_without_verdicts(self):
        client = judge_client(JudgeVerdict(score=0.6, reason="r"))
        assert AnswerRelevancyJudge(client)({"input": "q", "output": "a"}).score == 0.6

    def test_prompt_mentions_weight(self):
        client = judge_client(JudgeVerdict(score=1, reason="r"))

        AnswerRelevancyJudge(client, uncertainty_weight=0.5)({"input": "q", "output": "a"})

        assert "count 0.5 of a relevant one" in sent_prompt(client)


class TestInstructionJudges:
    def test_prompt_alignment_lists_instructions(self):
        client = judge_client(JudgeVerdict(score=1, reason="r"))

        PromptAlignmentJudge(client, ["Answer in English", "Be brief"])(
            {"input": "q", "output": "a"}
        )

        prompt = sent_prompt(client)
        assert "1. Answer in English" in prompt
        assert "2. Be brief" in prompt

    def test_prompt_alignment_requires_instructions(self):
        with pytest.raises(ValueError):
            PromptAlignmentJudge(MagicMock(), [])

    def test_custom_eval(self):
        client = judge_client(JudgeVerdict(score=1, reason="r"))

        CustomEvalJudge(client, "Check the answer cites a source.")({"input": "q", "output": "a"})

        assert "Check the answer cites a source." in sent_prompt(client)


class TestJudgeMetric:
    @pytest.mark.asyncio
    async def test_normalizes_by_scale(self):
        client = judge_client(JudgeVerdict(score=5, reason="half"))
        metric = JudgeMetric(FaithfulnessJudge(client, scale=10), context=["c"])

        result = await metric.measure("q", "a")

        assert metric.name == "faithfulness"
        assert result.score == 0.5
        assert result.info == {"reason": "half"}
        client.agenerate.assert_awaited_once()
