"""
Langfuse spans for agent and network calls.

Everything here is a no-op when the Langfuse keys are not configured, so call
sites never have to check.
"""

import typing as t
from collections.abc import Iterator
from contextlib import contextmanager

from langfuse import Langfuse
from loguru import logger

from deanmachines.settings import get_settings, is_langfuse_enabled

_client: Langfuse | None = None


def get_langfuse_client() -> Langfuse | None:
    """Shared Langfuse client, or None when Langfuse is not configured."""
    global _client
    if not is_langfuse_enabled():
        return None
    if _client is None:
        settings = get_settings()
        _client = Langfuse(
            public_key=settings.langfuse_public_key,
            secret_key=settings.langfuse_secret_key,
            host=settings.langfuse_host,
        )
        logger.info("Langfuse client created | host={}", settings.langfuse_host)
    return _client


def reset_langfuse_client() -> None:
    global _client
    _client = None


def start_span(
    name: str,
    metadata: dict[str, t.Any] | None = None,
    input: t.Any = None,
) -> t.Any:
    client = get_langfuse_client()
    if client is None:
        return None
    return client.span(name=name, metadata=metadata, input=input)


def end_span(span: t.Any, output: t.Any = None, error: BaseException | None = None) -> None:
    if span is None:
        return
    if error is not None:
        span.end(level="ERROR", status_message=str(error))
    else:
        span.end(output=output)


@contextmanager
def langfuse_span(
    name: str,
    metadata: dict[str, t.Any] | None = None,
    input: t.Any = None,
) -> Iterator[t.Any]:
    """Span around a block. Exceptions are recorded on the span and re-raised."""
    span = start_span(name, metadata=metadata, input=input)
    try:
        yield span
    except Exception as e:
        end_span(span, error=e)
        raise
    else:
        end_span(span)
