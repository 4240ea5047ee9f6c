"""
Metric contract.

A metric scores an (input, output) pair and returns a MetricResult whose
score lies in [0, 1]. Deterministic metrics measure synchronously, LLM judged
metrics are async; ``evaluate`` accepts both.
"""

import typing as t
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class MetricResult(BaseModel):
    score: float = Field(ge=0, le=1)
    info: dict[str, t.Any] = Field(default_factory=dict)


class Metric(ABC):
    name: str = "metric"

    @abstractmethod
    def measure(
        self, input: str, output: str
    ) -> MetricResult | t.Awaitable[MetricResult]:
        ...
