"""
Agent registry.

Lookup by key, by category and the metadata the delegation tools list.

Usage:
    agent = create_agent("weather")
    response = await agent.generate("Weather in Berlin?")
"""

import typing as t
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from deanmachines.agents.agent import Agent
from deanmachines.agents.definition import AgentDefinition
from deanmachines.agents.definitions import AGENT_DEFINITIONS

if t.TYPE_CHECKING:
    from deanmachines.llm_core.llm_client import LLMClient


class AgentNotFoundError(KeyError):
    """Raised for an agent key that is not registered."""

    def __init__(self, name: str, available: t.Iterable[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Agent '{name}' not found. Available agents: {', '.join(self.available)}"
        )

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True)
class AgentMetadata:
    description: str
    tags: tuple[str, ...]


AGENT_REGISTRY: Mapping[str, AgentDefinition] = MappingProxyType(
    {definition.key: definition for definition in AGENT_DEFINITIONS}
)

# an agent may appear in several categories
AGENT_CATEGORIES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "core": ("master", "supervisor", "analyzer", "strategizer", "evolve", "react", "langgraph"),
        "development": ("code", "git", "docker", "debug"),
        "data": ("data", "graph", "processing", "research", "weather"),
        "management": ("manager", "supervisor", "marketing"),
        "operations": ("sysadmin", "browser", "utility"),
        "creative": ("design", "documentation"),
        "specialized": ("special",),
    }
)

AGENT_METADATA: Mapping[str, AgentMetadata] = MappingProxyType(
    {
        key: AgentMetadata(description=definition.description, tags=definition.tags)
        for key, definition in AGENT_REGISTRY.items()
    }
)


def get_agent(name: str) -> AgentDefinition:
    try:
        return AGENT_REGISTRY[name]
    except KeyError:
        raise AgentNotFoundError(name, AGENT_REGISTRY) from None


def create_agent(name: str, llm_client: "LLMClient | None" = None) -> Agent:
    return Agent(get_agent(name), llm_client=llm_client)


def get_agents_by_category(category: str) -> list[AgentDefinition]:
    if category not in AGENT_CATEGORIES:
        raise KeyError(
            f"Unknown category '{category}'. Available: {', '.join(AGENT_CATEGORIES)}"
        )
    return [AGENT_REGISTRY[key] for key in AGENT_CATEGORIES[category]]


def get_all_agent_names() -> list[str]:
    return list(AGENT_REGISTRY)


def has_agent(name: str) -> bool:
    return name in AGENT_REGISTRY


def get_agent_metadata(name: str) -> AgentMetadata:
    try:
        return AGENT_METADATA[name]
    except KeyError:
        raise AgentNotFoundError(name, AGENT_REGISTRY) from None
