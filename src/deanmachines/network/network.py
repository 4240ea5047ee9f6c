"""
AgentNetwork - LLM-routed coordination of member agents.

The routing decision is made by the model: every member is exposed as an
AgentAsTool and the coordinator calls the ones it picks. The routing prompt
lists the members by group and is extended with the request's context
(complexity, execution mode, priority, preferred agents, response format).
"""

import typing as t
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger
from pydantic import Field

from deanmachines.agent_tool.agent_tool import AgentTool
from deanmachines.agent_tool.direct_strategy import DirectStrategy
from deanmachines.agents.agent import Agent, AgentResponse, MessagesInput, normalize_messages
from deanmachines.configs import get_agent_tool_template_module, get_network_template_module
from deanmachines.llm_core.llm_client import LLMClient, create_default_client
from deanmachines.observability.langfuse_tracing import langfuse_span
from deanmachines.observability.monitoring import error_tracker, measure_time
from deanmachines.observability.tracing import trace_network_operation
from deanmachines.runtime_context import (
    ContextLike,
    ContextModel,
    RuntimeContext,
    as_runtime_context,
    get_runtime_context,
    parse_context,
    use_runtime_context,
)
from deanmachines.tools.delegate_tools import AgentAsTool
from deanmachines.utilities.utils import generate_id, truncate

_routing_templates = get_network_template_module("routing.jinja")
_tool_templates = get_agent_tool_template_module("agent_tool.jinja")


class NetworkExecutionError(Exception):
    """Raised by execute_task when a network run fails."""


class NetworkContext(ContextModel):
    user_id: str = Field(default="anonymous", alias="user-id")
    session_id: str = Field(default="default", alias="session-id")
    task_complexity: t.Literal["simple", "moderate", "complex", "advanced", "enterprise"] = Field(
        default="moderate", alias="task-complexity"
    )
    execution_mode: t.Literal[
        "single-agent", "multi-agent", "collaborative", "autonomous", "hybrid", "intelligent"
    ] = Field(default="intelligent", alias="execution-mode")
    priority_level: t.Literal["low", "normal", "high", "urgent", "critical"] = Field(
        default="normal", alias="priority-level"
    )
    domain_context: str = Field(default="", alias="domain-context")
    preferred_agents: list[str] = Field(default_factory=list, alias="preferred-agents")
    max_agents: int = Field(default=5, ge=1, alias="max-agents")
    routing_strategy: t.Literal["auto", "manual", "hybrid", "intelligent"] = Field(
        default="auto", alias="routing-strategy"
    )
    debug_mode: bool = Field(default=False, alias="debug-mode")
    trace_execution: bool = Field(default=False, alias="trace-execution")
    response_format: t.Literal["detailed", "concise", "technical", "business"] = Field(
        default="detailed", alias="response-format"
    )


@dataclass(frozen=True)
class RoutingEntry:
    tool_name: str
    description: str


class AgentNetwork:
    """
    A coordinator LLM plus its member agents.

    Usage:
        network = AgentNetwork(
            name="Support Network",
            instructions="You answer customer questions.",
            agents=[create_agent("weather"), create_agent("research")],
        )
        response = await network.generate("Will it rain in Oslo tomorrow?")
    """

    def __init__(
        self,
        name: str,
        instructions: str,
        agents: Sequence[Agent],
        llm_client: LLMClient | None = None,
        model: str | None = None,
        groups: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        """
        Args:
            name: Display name, used in traces and the routing prompt
            instructions: Opening of the routing prompt
            agents: Member agents, keys must be unique
            llm_client: Client of the coordinator (default client if None)
            model: Coordinator model override
            groups: Group label -> member keys for the routing prompt
                (grouped by agent category if None)
        """
        keys = [agent.key for agent in agents]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate agents in network '{name}': {keys}")
        if not agents:
            raise ValueError(f"Network '{name}' needs at least one agent")

        self.name = name
        self.instructions = instructions
        self._agents = {agent.key: agent for agent in agents}
        self._llm_client = llm_client
        self.model = model
        self.groups = self._resolve_groups(groups)

    def _resolve_groups(
        self, groups: Mapping[str, Sequence[str]] | None
    ) -> dict[str, list[str]]:
        if groups is None:
            resolved: dict[str, list[str]] = {}
            for agent in self._agents.values():
                resolved.setdefault(agent.definition.category, []).append(agent.key)
            return resolved

        resolved = {label: list(keys) for label, keys in groups.items()}
        grouped = {key for keys in resolved.values() for key in keys}
        unknown = grouped - set(self._agents)
        if unknown:
            raise ValueError(f"Groups reference agents outside the network: {sorted(unknown)}")
        ungrouped = [key for key in self._agents if key not in grouped]
        if ungrouped:
            resolved["other"] = ungrouped
        return resolved

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = create_default_client()
        return self._llm_client

    def get_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def routing_instructions(self, runtime_context: ContextLike = None) -> str:
        ctx = parse_context(NetworkContext, runtime_context)
        entries = {
            label: [
                RoutingEntry(AgentAsTool(self._agents[key]).name, self._agents[key].description)
                for key in keys
            ]
            for label, keys in self.groups.items()
        }
        return _routing_templates.routing_instructions(
            name=self.name, instructions=self.instructions, groups=entries, ctx=ctx
        )

    async def generate(
        self,
        messages: MessagesInput,
        runtime_context: ContextLike = None,
        max_steps: int = 10,
        temperature: float = 0.7,
    ) -> AgentResponse:
        conversation = normalize_messages(messages)
        context = (
            get_runtime_context()
            if runtime_context is None
            else as_runtime_context(runtime_context)
        )
        with use_runtime_context(context) as frozen:
            run = trace_network_operation(self.name, "generate", self._generate)
            return await run(conversation, frozen, max_steps, temperature)

    async def _generate(
        self,
        conversation: list[t.Any],
        context: RuntimeContext,
        max_steps: int,
        temperature: float,
    ) -> AgentResponse:
        ctx = parse_context(NetworkContext, context)
        system_prompt = self.routing_instructions(context)
        if ctx.debug_mode:
            logger.debug("Routing prompt | network={}\n{}", self.name, system_prompt)

        tools = [AgentAsTool(agent) for agent in self._agents.values()]
        agent_tool = AgentTool(
            tools=tools,
            strategy=DirectStrategy(self.llm_client, model=self.model, temperature=temperature),
            system_prompt=system_prompt,
            guidance_messages=[_tool_templates.tool_guidance(tools=tools)],
        )

        with langfuse_span(
            f"network:{self.name}",
            metadata={
                "user_id": ctx.user_id,
                "session_id": ctx.session_id,
                "task_complexity": ctx.task_complexity,
                "execution_mode": ctx.execution_mode,
            },
            input=conversation,
        ) as span:
            output = await agent_tool.run(conversation, max_iterations=max_steps)
            if span is not None:
                span.update(output=output.result)

        if ctx.trace_execution:
            routed = [
                call["function"]["name"]
                for message in output.messages
                for call in message.get("tool_calls") or []
            ]
            logger.info("Network routing | network={} | agents={}", self.name, routed)

        return AgentResponse(
            text=output.result,
            success=output.success,
            steps=output.iterations_used,
            tool_calls=output.tool_calls_count,
            messages=output.messages,
        )

    def __repr__(self) -> str:
        return f"AgentNetwork(name={self.name!r}, agents={list(self._agents)})"


async def execute_task(
    network: AgentNetwork,
    messages: MessagesInput,
    runtime_context: ContextLike = None,
    max_steps: int = 10,
    temperature: float = 0.7,
) -> AgentResponse:
    """Run a network with task logging.

    Raises:
        NetworkExecutionError: Wrapping whatever made the run fail.
    """
    task_id = generate_id("task")
    log = logger.bind(task_id=task_id, network=network.name)
    preview = messages if isinstance(messages, str) else str(list(messages)[-1:])
    log.info(
        "task_started | task_id={} | network={} | message={}",
        task_id,
        network.name,
        truncate(preview, 100),
    )

    timer = measure_time(f"network.execute_task:{network.name}")
    try:
        async with timer:
            response = await network.generate(
                messages,
                runtime_context=runtime_context,
                max_steps=max_steps,
                temperature=temperature,
            )
    except Exception as e:
        error_tracker.track(
            e,
            context={"task_id": task_id, "network": network.name},
            operation="network.execute_task",
        )
        log.error(
            "task_failed | task_id={} | duration={:.0f}ms | error={}",
            task_id,
            timer.duration_ms,
            e,
        )
        raise NetworkExecutionError(f"Network execution failed: {e}") from e

    log.success(
        "task_completed | task_id={} | duration={:.0f}ms | steps={}",
        task_id,
        timer.duration_ms,
        response.steps,
    )
    return response
