"""The Dean Machines agents."""

import typing as t
from collections.abc import Callable

from deanmachines.agents import contexts
from deanmachines.agents.definition import AgentDefinition, ToolFactory
from deanmachines.configs import get_agents_template_module
from deanmachines.llm_core.llm_configs import GeminiModel
from deanmachines.memory.agent_memory import agent_memory
from deanmachines.runtime_context import ContextModel, RuntimeContext, parse_context
from deanmachines.tools.agentic_search import (
    ArxivSearchTool,
    HackerNewsSearchTool,
    HackerNewsTopStoriesTool,
)
from deanmachines.tools.calculator import CalculatorTool
from deanmachines.tools.delegate_tools import DelegateTaskTool, ListAgentsTool
from deanmachines.tools.git_tool import GitTool
from deanmachines.tools.stock_tools import StockPriceTool, ThreadInfoTool
from deanmachines.tools.tavily import TavilySearchTool
from deanmachines.tools.weather_tool import WeatherTool

_templates = get_agents_template_module("agents.jinja")

FLASH = GeminiModel.FLASH.value
FLASH_LITE = GeminiModel.FLASH_LITE.value


def from_context(macro: str, model: type[ContextModel]) -> Callable[[RuntimeContext], str]:
    """Instructions rendered by ``macro`` from the typed request context."""

    def render(context: RuntimeContext) -> str:
        return getattr(_templates, macro)(ctx=parse_context(model, context))

    render.__name__ = f"{macro}_instructions"
    return render


def static(macro: str) -> str:
    return str(getattr(_templates, macro)())


WEATHER: dict[str, ToolFactory] = {"get-weather": lambda _: WeatherTool()}
STOCK: dict[str, ToolFactory] = {"stock-price": lambda _: StockPriceTool()}
SEARCH: dict[str, ToolFactory] = {"web-search": lambda _: TavilySearchTool()}
ACADEMIC: dict[str, ToolFactory] = {
    "hacker-news-search": lambda _: HackerNewsSearchTool(),
    "hacker-news-top-stories": lambda _: HackerNewsTopStoriesTool(),
    "arxiv-search": lambda _: ArxivSearchTool(),
}
GIT: dict[str, ToolFactory] = {"git-operations": lambda _: GitTool()}
CALCULATOR: dict[str, ToolFactory] = {"calculator": lambda _: CalculatorTool()}
THREAD: dict[str, ToolFactory] = {"thread-info": lambda _: ThreadInfoTool()}
DELEGATION: dict[str, ToolFactory] = {
    "delegate-task": lambda llm_client: DelegateTaskTool(llm_client=llm_client),
    "list-available-agents": lambda _: ListAgentsTool(),
}


def _define(
    key: str,
    name: str,
    description: str,
    category: str,
    tags: tuple[str, ...],
    instructions: str | Callable[[RuntimeContext], str],
    tools: dict[str, ToolFactory] | None = None,
    context_model: type[ContextModel] | None = None,
    **kwargs: t.Any,
) -> AgentDefinition:
    return AgentDefinition(
        key=key,
        name=name,
        description=description,
        category=category,
        tags=tags,
        instructions=instructions,
        tools=tools or {},
        context_model=context_model,
        memory=kwargs.pop("memory", agent_memory),
        model=kwargs.pop("model", FLASH),
        **kwargs,
    )


AGENT_DEFINITIONS: tuple[AgentDefinition, ...] = (
    # core
    _define(
        "master", "Master Agent",
        "Master assistant for debugging and problem-solving",
        "core", ("core", "debug", "master"),
        from_context("master", contexts.MasterAgentContext),
        tools={**WEATHER, **STOCK},
        context_model=contexts.MasterAgentContext,
    ),
    _define(
        "strategizer", "Strategizer Agent",
        "Strategic planning and goal setting expert",
        "core", ("core", "planning", "strategy"),
        from_context("strategizer", contexts.StrategizerAgentContext),
        tools={**STOCK, **SEARCH},
        context_model=contexts.StrategizerAgentContext,
    ),
    _define(
        "analyzer", "Analyzer Agent",
        "Data analysis and insights generation specialist",
        "core", ("core", "data", "analysis"),
        from_context("analyzer", contexts.AnalyzerAgentContext),
        tools=CALCULATOR,
        context_model=contexts.AnalyzerAgentContext,
    ),
    _define(
        "evolve", "Evolve Agent",
        "Agent evolution and improvement specialist",
        "core", ("core", "evolution", "improvement"),
        static("evolve"),
    ),
    _define(
        "supervisor", "Supervisor Agent",
        "Agent coordination and orchestration specialist",
        "core", ("supervisor", "coordination", "orchestration"),
        from_context("supervisor", contexts.SupervisorAgentContext),
        tools=DELEGATION,
        context_model=contexts.SupervisorAgentContext,
    ),
    # domain specialists
    _define(
        "browser", "Browser Agent",
        "Web automation and browser interaction specialist",
        "operations", ("web", "automation", "scraping"),
        static("browser"),
        tools=SEARCH,
    ),
    _define(
        "code", "Code Agent",
        "Code analysis, generation, and optimization expert",
        "development", ("development", "code", "analysis"),
        from_context("code", contexts.CodeAgentContext),
        context_model=contexts.CodeAgentContext,
    ),
    _define(
        "data", "Data Agent",
        "Data analysis and statistical insights specialist",
        "data", ("data", "analytics", "statistics"),
        from_context("data", contexts.DataAgentContext),
        tools={**CALCULATOR, **STOCK},
        context_model=contexts.DataAgentContext,
    ),
    _define(
        "debug", "Debug Agent",
        "Debugging and troubleshooting expert",
        "development", ("debug", "troubleshooting", "analysis"),
        from_context("debug", contexts.DebugAgentContext),
        context_model=contexts.DebugAgentContext,
    ),
    _define(
        "design", "Design Agent",
        "UI/UX design and visual aesthetics specialist",
        "creative", ("design", "ui", "ux"),
        static("design"),
        tools=SEARCH,
    ),
    _define(
        "docker", "Docker Agent",
        "Containerization and deployment expert",
        "development", ("docker", "containers", "deployment"),
        static("docker"),
    ),
    _define(
        "documentation", "Documentation Agent",
        "Technical writing and documentation specialist",
        "creative", ("documentation", "writing", "knowledge"),
        static("documentation"),
    ),
    _define(
        "git", "Git Agent",
        "Version control and Git workflow expert",
        "development", ("git", "version-control", "workflow"),
        from_context("git", contexts.GitAgentContext),
        tools=GIT,
        context_model=contexts.GitAgentContext,
        model=FLASH_LITE,
    ),
    _define(
        "graph", "Graph Agent",
        "Knowledge graph analysis and reasoning specialist",
        "data", ("graph", "knowledge", "analysis"),
        static("graph"),
    ),
    _define(
        "manager", "Manager Agent",
        "Project management and coordination expert",
        "management", ("management", "coordination", "planning"),
        static("manager"),
    ),
    _define(
        "marketing", "Marketing Agent",
        "Marketing strategy and content creation specialist",
        "management", ("marketing", "content", "strategy"),
        static("marketing"),
        tools=SEARCH,
    ),
    _define(
        "processing", "Processing Agent",
        "Data processing and workflow automation expert",
        "data", ("processing", "automation", "workflow"),
        static("processing"),
        tools=CALCULATOR,
    ),
    _define(
        "research", "Research Agent",
        "Research and information analysis specialist",
        "data", ("research", "analysis", "information"),
        from_context("research", contexts.ResearchAgentContext),
        tools={**SEARCH, **ACADEMIC},
        context_model=contexts.ResearchAgentContext,
    ),
    _define(
        "special", "Special Agent",
        "Multi-domain expert for unique and complex tasks",
        "specialized", ("special", "multi-domain", "innovation"),
        static("special"),
    ),
    _define(
        "sysadmin", "Sysadmin Agent",
        "System administration and DevOps expert",
        "operations", ("sysadmin", "devops", "infrastructure"),
        static("sysadmin"),
    ),
    _define(
        "utility", "Utility Agent",
        "General-purpose utility and helper functions",
        "operations", ("utility", "general", "helper"),
        static("utility"),
        tools={**CALCULATOR, **THREAD},
    ),
    _define(
        "weather", "Weather Agent",
        "Weather information and forecasting assistant",
        "data", ("weather", "data", "api"),
        from_context("weather", contexts.WeatherAgentContext),
        tools=WEATHER,
        context_model=contexts.WeatherAgentContext,
    ),
    # reasoning
    _define(
        "react", "React Agent",
        "ReAct agent for reasoning and reflection",
        "core", ("react", "reasoning", "reflection"),
        from_context("react", contexts.ReactAgentContext),
        tools={**SEARCH, **CALCULATOR},
        context_model=contexts.ReactAgentContext,
        strategy="react",
    ),
    _define(
        "langgraph", "LangGraph Agent",
        "LangGraph agent for graph-based reasoning and analysis",
        "core", ("langgraph", "graph", "reasoning"),
        static("langgraph"),
        tools=CALCULATOR,
        strategy="react",
    ),
)
