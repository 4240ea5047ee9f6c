"""
LangSmith tracing for agent and network operations.

Wrappers are built on ``langsmith.traceable``. When tracing is disabled the
wrapped callables run unchanged, the SDK only records runs when
``LANGSMITH_TRACING`` is set.
"""

import os
import typing as t

from langsmith import traceable
from loguru import logger

from deanmachines.settings import get_settings, is_langsmith_enabled

if t.TYPE_CHECKING:
    from deanmachines.agents.agent import Agent

F = t.TypeVar("F", bound=t.Callable[..., t.Any])


def configure_langsmith() -> bool:
    """Export the LangSmith settings for the SDK. Returns whether tracing is on."""
    if not is_langsmith_enabled():
        logger.debug("LangSmith tracing disabled")
        return False

    settings = get_settings()
    os.environ["LANGSMITH_TRACING"] = "true"
    os.environ["LANGSMITH_API_KEY"] = settings.langsmith_api_key
    os.environ["LANGSMITH_ENDPOINT"] = settings.langsmith_endpoint
    os.environ["LANGSMITH_PROJECT"] = settings.langsmith_project
    logger.info("LangSmith tracing enabled | project={}", settings.langsmith_project)
    return True


def create_traceable_function(
    fn: F,
    name: str,
    run_type: t.Literal["llm", "chain", "tool", "retriever", "embedding", "parser"] = "chain",
    tags: list[str] | None = None,
    metadata: dict[str, t.Any] | None = None,
) -> F:
    return t.cast(
        F,
        traceable(
            name=name,
            run_type=run_type,
            tags=tags,
            metadata={"framework": "deanmachines", **(metadata or {})},
        )(fn),
    )


def trace_agent_operation(
    agent_name: str,
    operation: str,
    fn: F,
    metadata: dict[str, t.Any] | None = None,
) -> F:
    return create_traceable_function(
        fn,
        name=f"{agent_name}-{operation}",
        run_type="llm" if operation == "generate" else "chain",
        tags=["agent", agent_name, operation],
        metadata={
            "agent_name": agent_name,
            "operation": operation,
            "component": "agent",
            **(metadata or {}),
        },
    )


def trace_network_operation(
    network_name: str,
    operation: str,
    fn: F,
    metadata: dict[str, t.Any] | None = None,
) -> F:
    return create_traceable_function(
        fn,
        name=f"{network_name}-{operation}",
        tags=["network", network_name, operation],
        metadata={
            "network_name": network_name,
            "operation": operation,
            "component": "network",
            **(metadata or {}),
        },
    )


def create_traceable_agent(agent: "Agent") -> "Agent":
    """Trace every ``generate`` call of an agent instance as ``agent:<key>``."""
    agent.generate = create_traceable_function(  # type: ignore[method-assign]
        agent.generate,
        name=f"agent:{agent.key}",
        tags=["agent", agent.key],
        metadata={"agent_type": "deanmachines-agent"},
    )
    return agent
