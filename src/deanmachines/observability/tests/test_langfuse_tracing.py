"""Tests for deanmachines/observability/langfuse_tracing.py"""

from unittest.mock import MagicMock, patch

import pytest

from deanmachines.observability import langfuse_tracing
from deanmachines.settings import configure_settings


@pytest.fixture(autouse=True)
def fresh_client():
    langfuse_tracing.reset_langfuse_client()
    yield
    langfuse_tracing.reset_langfuse_client()


def test_no_client_without_keys():
    assert langfuse_tracing.get_langfuse_client() is None
    assert langfuse_tracing.start_span("noop") is None
    langfuse_tracing.end_span(None, output="ignored")


def test_client_disabled_by_flag():
    configure_settings(langfuse_public_key="pk", langfuse_secret_key="sk", langfuse_tracing=False)
    assert langfuse_tracing.get_langfuse_client() is None


@pytest.fixture
def mock_langfuse():
    configure_settings(langfuse_public_key="pk", langfuse_secret_key="sk")
    with patch.object(langfuse_tracing, "Langfuse") as cls:
        yield cls


def test_client_created_once(mock_langfuse: MagicMock):
    first = langfuse_tracing.get_langfuse_client()
    second = langfuse_tracing.get_langfuse_client()

    assert first is second
    mock_langfuse.assert_called_once_with(
        public_key="pk", secret_key="sk", host="https://cloud.langfuse.com"
    )


def test_span_success(mock_langfuse: MagicMock):
    span = mock_langfuse.return_value.span.return_value

    with langfuse_tracing.langfuse_span("agent-generate", metadata={"agent": "code"}) as active:
        assert active is span

    mock_langfuse.return_value.span.assert_called_once_with(
        name="agent-generate", metadata={"agent": "code"}, input=None
    )
    span.end.assert_called_once_with(output=None)


def test_span_error_recorded_and_reraised(mock_langfuse: MagicMock):
    span = mock_langfuse.return_value.span.return_value

    with pytest.raises(RuntimeError):
        with langfuse_tracing.langfuse_span("network-execute"):
            raise RuntimeError("boom")

    span.end.assert_called_once_with(level="ERROR", status_message="boom")
