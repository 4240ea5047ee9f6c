"""Fixtures for agent_tool tests."""

from deanmachines.agent_tool.tests.common_fixtures import (
    convert_tool,
    mock_llm_client,
    quote_tool,
)

__all__ = ["convert_tool", "mock_llm_client", "quote_tool"]
