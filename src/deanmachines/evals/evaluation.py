"""Run a metric on one input/output pair and keep the outcome."""

import inspect
import typing as t
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger

from deanmachines.evals.base import Metric, MetricResult
from deanmachines.observability.langfuse_tracing import langfuse_span
from deanmachines.utilities.utils import truncate


@dataclass(frozen=True)
class EvaluationRecord:
    metric_name: str
    input: str
    output: str
    score: float
    reasoning: str | None = None
    info: dict[str, t.Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def evaluate(metric: Metric, input: str, output: str) -> EvaluationRecord:
    """Measure ``output`` against ``input``. Sync and async metrics are both accepted."""
    logger.debug("Evaluating | metric={} | output={}", metric.name, truncate(output, 80))
    with langfuse_span(f"eval:{metric.name}", input={"input": input, "output": output}) as span:
        measured = metric.measure(input, output)
        result: MetricResult = await measured if inspect.isawaitable(measured) else measured
        if span is not None:
            span.update(output=result.model_dump())

    record = EvaluationRecord(
        metric_name=metric.name,
        input=input,
        output=output,
        score=result.score,
        reasoning=result.info.get("reason"),
        info=result.info,
    )
    logger.info("Evaluation | metric={} | score={:.2f}", record.metric_name, record.score)
    return record
