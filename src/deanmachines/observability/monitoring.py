"""Operation timing and an in-process error log."""

import functools
import inspect
import time
import typing as t
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from loguru import logger

F = t.TypeVar("F", bound=t.Callable[..., t.Any])


class Timer:
    """Logs how long an operation took and whether it failed.

    Usable as ``with``/``async with`` block or as a decorator. Failures are
    logged and re-raised.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.duration_ms: float | None = None
        self._start = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: t.Any, exc: BaseException | None, tb: t.Any) -> None:
        self.duration_ms = (time.perf_counter() - self._start) * 1000
        if exc is None:
            logger.info(
                "Operation completed: {} | duration={:.0f}ms | status=success",
                self.operation,
                self.duration_ms,
            )
        else:
            logger.error(
                "Operation failed: {} | duration={:.0f}ms | status=error | error={}",
                self.operation,
                self.duration_ms,
                exc,
            )

    async def __aenter__(self) -> "Timer":
        return self.__enter__()

    async def __aexit__(self, exc_type: t.Any, exc: BaseException | None, tb: t.Any) -> None:
        self.__exit__(exc_type, exc, tb)

    def __call__(self, fn: F) -> F:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: t.Any, **kwargs: t.Any) -> t.Any:
                async with Timer(self.operation):
                    return await fn(*args, **kwargs)

            return t.cast(F, async_wrapper)

        @functools.wraps(fn)
        def wrapper(*args: t.Any, **kwargs: t.Any) -> t.Any:
            with Timer(self.operation):
                return fn(*args, **kwargs)

        return t.cast(F, wrapper)


def measure_time(operation: str) -> Timer:
    return Timer(operation)


@dataclass(frozen=True)
class ErrorRecord:
    operation: str
    error: str
    error_type: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    context: dict[str, t.Any] = field(default_factory=dict)


class ErrorTracker:
    """Keeps the most recent errors, oldest dropped first."""

    def __init__(self, max_errors: int = 100) -> None:
        self._errors: deque[ErrorRecord] = deque(maxlen=max_errors)

    def track(
        self,
        error: BaseException | str,
        context: dict[str, t.Any] | None = None,
        operation: str = "unknown",
    ) -> ErrorRecord:
        record = ErrorRecord(
            operation=operation,
            error=str(error),
            error_type=type(error).__name__ if isinstance(error, BaseException) else "str",
            context=dict(context or {}),
        )
        self._errors.append(record)
        logger.error("Error in {} | {}: {}", operation, record.error_type, record.error)
        return record

    def get_recent_errors(self, limit: int = 10) -> list[ErrorRecord]:
        if limit <= 0:
            return []
        return list(self._errors)[-limit:]

    def clear_errors(self) -> None:
        self._errors.clear()

    def __len__(self) -> int:
        return len(self._errors)


error_tracker = ErrorTracker()
