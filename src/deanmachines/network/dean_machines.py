"""
The two Dean Machines networks.

- Base Network: 17 agents for development work
- Dean Machines Network: 22 agents covering development, data, operations
  and creative work
"""

import typing as t

from deanmachines.agents.agent import AgentResponse, MessagesInput
from deanmachines.agents.registry import create_agent
from deanmachines.network.network import AgentNetwork, execute_task
from deanmachines.runtime_context import ContextLike

if t.TYPE_CHECKING:
    from deanmachines.llm_core.llm_client import LLMClient

BASE_NETWORK_GROUPS: dict[str, list[str]] = {
    "core agents": ["master", "code", "git", "debug", "documentation"],
    "data & analysis agents": ["data", "analyzer"],
    "infrastructure agents": ["browser", "processing", "docker"],
    "management & operations": ["manager", "sysadmin", "utility"],
    "creative & specialized": ["special", "strategizer", "supervisor", "evolve"],
}

DEAN_MACHINES_GROUPS: dict[str, list[str]] = {
    "core coordination": ["master", "strategizer", "supervisor"],
    "development": ["code", "git", "debug", "documentation", "docker"],
    "data & analysis": ["data", "graph", "analyzer", "research", "weather"],
    "operations": ["manager", "browser", "sysadmin", "processing", "utility"],
    "creative & specialized": ["design", "marketing", "special", "evolve"],
}

BASE_NETWORK_INSTRUCTIONS = (
    "You are the coordinator for the Base Network, an AI development platform "
    "with specialized agents for code, data, infrastructure and planning work."
)

DEAN_MACHINES_INSTRUCTIONS = (
    "You are the coordinator for the Dean Machines Network, an AI platform whose "
    "specialized agents cover development, data analysis, research, operations "
    "and creative work."
)

# name, category, description of the Dean Machines members
NETWORK_AGENTS: tuple[tuple[str, str, str], ...] = (
    ("Master Agent", "Core", "Central orchestrator and primary coordinator"),
    ("Strategizer Agent", "Core", "Strategic planning and decision making"),
    ("Supervisor Agent", "Core", "Quality assurance and oversight"),
    ("Code Agent", "Development", "Code analysis, generation, and optimization"),
    ("Git Agent", "Development", "Version control and repository management"),
    ("Debug Agent", "Development", "Error detection and debugging assistance"),
    ("Documentation Agent", "Development", "Technical documentation generation"),
    ("Docker Agent", "Development", "Container management and deployment"),
    ("Data Agent", "Analysis", "Data processing and analysis"),
    ("Graph Agent", "Analysis", "Knowledge graph operations"),
    ("Analyzer Agent", "Analysis", "Deep analysis and pattern recognition"),
    ("Research Agent", "Analysis", "Information gathering and synthesis"),
    ("Weather Agent", "Analysis", "Weather data and forecasting"),
    ("Manager Agent", "Operations", "Project management and coordination"),
    ("Browser Agent", "Operations", "Web automation and testing"),
    ("Sysadmin Agent", "Operations", "System administration and DevOps"),
    ("Processing Agent", "Operations", "Data processing and computation"),
    ("Utility Agent", "Operations", "General-purpose helper functions"),
    ("Design Agent", "Creative", "UI/UX design and visual assets"),
    ("Marketing Agent", "Creative", "Content and promotional materials"),
    ("Special Agent", "Creative", "Multi-domain expert for complex problems"),
    ("Evolve Agent", "Creative", "Continuous improvement and optimization"),
)


def _build_network(
    name: str,
    instructions: str,
    groups: dict[str, list[str]],
    llm_client: "LLMClient | None",
    model: str | None,
) -> AgentNetwork:
    keys = [key for members in groups.values() for key in members]
    return AgentNetwork(
        name=name,
        instructions=instructions,
        agents=[create_agent(key, llm_client=llm_client) for key in keys],
        llm_client=llm_client,
        model=model,
        groups=groups,
    )


def create_base_network(
    llm_client: "LLMClient | None" = None, model: str | None = None
) -> AgentNetwork:
    return _build_network(
        "Base Network", BASE_NETWORK_INSTRUCTIONS, BASE_NETWORK_GROUPS, llm_client, model
    )


def create_dean_machines_network(
    llm_client: "LLMClient | None" = None, model: str | None = None
) -> AgentNetwork:
    return _build_network(
        "Dean Machines Network",
        DEAN_MACHINES_INSTRUCTIONS,
        DEAN_MACHINES_GROUPS,
        llm_client,
        model,
    )


async def execute_dean_machines_task(
    messages: MessagesInput,
    runtime_context: ContextLike = None,
    max_steps: int = 10,
    temperature: float = 0.7,
    llm_client: "LLMClient | None" = None,
) -> AgentResponse:
    """Run a task on a fresh Dean Machines network.

    Raises:
        NetworkExecutionError: If the network run fails.
    """
    network = create_dean_machines_network(llm_client=llm_client)
    return await execute_task(
        network,
        messages,
        runtime_context=runtime_context,
        max_steps=max_steps,
        temperature=temperature,
    )


def get_network_agents() -> list[dict[str, str]]:
    return [
        {"name": name, "category": category, "description": description}
        for name, category, description in NETWORK_AGENTS
    ]
