from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from deanmachines.evals.evaluation import evaluate
from deanmachines.evals.judges import BiasJudge, JudgeMetric, JudgeVerdict
from deanmachines.evals.nlp import CompletenessMetric


@pytest.mark.asyncio
async def test_evaluate_sync_metric():
    record = await evaluate(CompletenessMetric(["sunny"]), "weather?", "It is sunny")

    assert record.metric_name == "completeness"
    assert record.score == 1
    assert record.reasoning is None
    assert record.info["met_requirements"] == ["sunny"]


@pytest.mark.asyncio
async def test_evaluate_judge_metric():
    client = MagicMock()
    response = Mock()
    response.parsed = JudgeVerdict(score=0.25, reason="slightly biased")
    client.agenerate = AsyncMock(return_value=response)

    record = await evaluate(JudgeMetric(BiasJudge(client)), "q", "a")

    assert record.metric_name == "bias"
    assert record.score == 0.25
    assert record.reasoning == "slightly biased"
