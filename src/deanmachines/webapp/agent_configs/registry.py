"""
Chat profile registry.

Add a profile here to make it selectable through ``AGENT_NAME``.
"""

from deanmachines.webapp.agent_configs.profiles import (
    CODE_CONFIG,
    MASTER_CONFIG,
    NETWORK_CONFIG,
    RESEARCH_CONFIG,
    SUPERVISOR_CONFIG,
    WEATHER_CONFIG,
)
from deanmachines.webapp.runner.agent_config import AgentConfig

AGENT_REGISTRY: dict[str, AgentConfig] = {
    "network": NETWORK_CONFIG,
    "master": MASTER_CONFIG,
    "weather": WEATHER_CONFIG,
    "code": CODE_CONFIG,
    "research": RESEARCH_CONFIG,
    "supervisor": SUPERVISOR_CONFIG,
}


def get_agent_config(name: str) -> AgentConfig:
    name_lower = name.lower()
    if name_lower not in AGENT_REGISTRY:
        available = ", ".join(sorted(AGENT_REGISTRY))
        raise ValueError(f"Unknown agent: '{name}'. Available agents: {available}")
    return AGENT_REGISTRY[name_lower]


def list_agents() -> list[str]:
    return sorted(AGENT_REGISTRY)


def get_agent_info() -> list[dict[str, str]]:
    return [
        {"name": name, "description": config.description}
        for name, config in sorted(AGENT_REGISTRY.items())
    ]
