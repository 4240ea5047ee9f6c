"""Dean Machines network and single agent chat profiles."""

from deanmachines.agents.registry import create_agent
from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.network.dean_machines import create_dean_machines_network
from deanmachines.webapp.runner.agent_config import AgentConfig


def agent_factory(key: str):
    def create(llm_client: LLMClient | None = None):
        return create_agent(key, llm_client=llm_client)

    return create


NETWORK_CONFIG = AgentConfig(
    name="Dean Machines Network",
    description="Routes each request to the best suited specialist agents",
    welcome_message=(
        "Hello! I coordinate a team of specialist agents: research, code, data, "
        "weather, markets and more. What do you need?"
    ),
    target_factory=lambda llm_client=None: create_dean_machines_network(llm_client=llm_client),
    settings_widgets=[
        {
            "type": "select",
            "id": "task-complexity",
            "label": "Task complexity",
            "values": ["simple", "moderate", "complex", "advanced", "enterprise"],
            "initial": "moderate",
        },
        {
            "type": "select",
            "id": "response-format",
            "label": "Response format",
            "values": ["detailed", "concise", "technical", "business"],
            "initial": "detailed",
        },
        {"type": "tags", "id": "preferred-agents", "label": "Preferred agents", "initial": []},
        {"type": "switch", "id": "trace-execution", "label": "Log routing", "initial": False},
    ],
    send_history=True,
    max_steps=15,
)

MASTER_CONFIG = AgentConfig(
    name="Master Agent",
    description="General purpose assistant with weather and stock tools",
    welcome_message="Hi, I'm the master agent. Ask me anything.",
    target_factory=agent_factory("master"),
    settings_widgets=[
        {"type": "text", "id": "project", "label": "Project", "initial": ""},
        {"type": "switch", "id": "debug", "label": "Debug logging", "initial": False},
    ],
)

WEATHER_CONFIG = AgentConfig(
    name="Weather Agent",
    description="Current conditions and weather based planning",
    welcome_message="Ask me about the weather anywhere in the world.",
    target_factory=agent_factory("weather"),
    settings_widgets=[
        {
            "type": "select",
            "id": "temperature-unit",
            "label": "Temperature unit",
            "values": ["celsius", "fahrenheit"],
            "initial": "celsius",
        },
        {"type": "text", "id": "default-location", "label": "Default location", "initial": ""},
    ],
)

CODE_CONFIG = AgentConfig(
    name="Code Agent",
    description="Code generation, review and refactoring",
    welcome_message="Share code or describe what you want to build.",
    target_factory=agent_factory("code"),
    settings_widgets=[
        {"type": "text", "id": "language", "label": "Language", "initial": "typescript"},
        {"type": "text", "id": "framework", "label": "Framework", "initial": "react"},
        {
            "type": "select",
            "id": "quality-level",
            "label": "Quality level",
            "values": ["strict", "standard", "relaxed"],
            "initial": "standard",
        },
        {"type": "switch", "id": "security-scan", "label": "Security scan", "initial": False},
    ],
)

RESEARCH_CONFIG = AgentConfig(
    name="Research Agent",
    description="Web research with cited sources",
    welcome_message="What should I research for you?",
    target_factory=agent_factory("research"),
    settings_widgets=[
        {
            "type": "select",
            "id": "research-depth",
            "label": "Research depth",
            "values": ["quick", "standard", "deep"],
            "initial": "standard",
        },
    ],
)

SUPERVISOR_CONFIG = AgentConfig(
    name="Supervisor Agent",
    description="Breaks work down and delegates it to other agents",
    welcome_message="Give me a multi step task and I'll delegate it to the right agents.",
    target_factory=agent_factory("supervisor"),
    default_context={"max-delegation-depth": 3},
    max_steps=15,
)
