"""
Delegation tools - hand a task to another registered agent.

- DelegateTaskTool: delegate by agent id, the caller picks the agent
- AgentAsTool: one agent exposed as a tool, the network routes through these
- ListAgentsTool: list the agents available for delegation

Each delegated call runs a fresh agent conversation on its own memory thread
(``<session>:<agent>:delegated``), so the caller's thread only holds its own
turns. The caller only sees the final text plus timing metadata. Nesting depth
is tracked in a ContextVar and bounded by the ``max-delegation-depth`` runtime
context value.
"""

import asyncio
import json
import time
import typing as t
from collections.abc import Callable
from contextvars import ContextVar

from loguru import logger
from pydantic import BaseModel, Field

from deanmachines.runtime_context import ContextModel, get_runtime_context, parse_context
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError
from deanmachines.utilities.utils import truncate

if t.TYPE_CHECKING:
    from deanmachines.agents.agent import Agent
    from deanmachines.llm_core.llm_client import LLMClient

AgentResolver = Callable[[str], "Agent"]

DEFAULT_MAX_DELEGATION_DEPTH = 5

# 0 = not inside a delegated call
var_delegation_depth: ContextVar[int] = ContextVar("delegation_depth", default=0)


class DelegationError(ToolExecutionError):
    """Raised when a task cannot be delegated."""


class DelegationContext(ContextModel):
    user_id: str = Field(default="anonymous", alias="user-id")
    session_id: str = Field(default="default", alias="session-id")
    max_delegation_depth: int = Field(
        default=DEFAULT_MAX_DELEGATION_DEPTH, alias="max-delegation-depth"
    )
    # milliseconds
    execution_timeout: int = Field(default=30_000, alias="execution-timeout")


class DelegationOutput(BaseModel):
    result: str = Field(description="The result from the delegated agent")
    agent_used: str = Field(description="The agent that executed the task")
    execution_time_ms: float = Field(description="Execution time in milliseconds")
    metadata: dict[str, t.Any] = Field(default_factory=dict)


def default_agent_resolver(llm_client: "LLMClient | None" = None) -> AgentResolver:
    def resolve(agent_id: str) -> "Agent":
        # registry imports the tool modules, resolve lazily
        from deanmachines.agents.registry import create_agent

        return create_agent(agent_id, llm_client=llm_client)

    return resolve


def get_delegation_depth() -> int:
    return var_delegation_depth.get()


def delegated_thread_id(session_id: str, agent_key: str) -> str:
    return f"{session_id}:{agent_key}:delegated"


async def delegate(
    agent: "Agent",
    task: str,
    context: dict[str, t.Any] | None = None,
    priority: str = "normal",
    metadata: dict[str, t.Any] | None = None,
) -> DelegationOutput:
    """Run a task on an agent one delegation level deeper.

    Raises:
        DelegationError: Depth limit reached, timeout, or a failed run.
    """
    runtime_context = get_runtime_context()
    ctx = parse_context(DelegationContext, runtime_context)
    depth = get_delegation_depth()
    if depth >= ctx.max_delegation_depth:
        raise DelegationError(
            f"Maximum delegation depth ({ctx.max_delegation_depth}) exceeded"
        )

    logger.info(
        "Delegating task | agent={} | depth={} | user={} | task={}",
        agent.key,
        depth + 1,
        ctx.user_id,
        truncate(task, 100),
    )
    delegation_context = {
        **(context or {}),
        "delegated_by": "delegation-tool",
        "priority": priority,
        "delegation_depth": depth + 1,
    }
    message = f"Task: {task}\n\nContext: {json.dumps(delegation_context, indent=2, default=str)}"

    start = time.perf_counter()
    token = var_delegation_depth.set(depth + 1)
    try:
        response = await asyncio.wait_for(
            agent.generate(
                message,
                runtime_context=runtime_context.merged(
                    delegation_depth=depth + 1,
                    thread_id=delegated_thread_id(ctx.session_id, agent.key),
                ),
            ),
            timeout=ctx.execution_timeout / 1000,
        )
    except TimeoutError as e:
        raise DelegationError(f"Task execution timeout ({ctx.execution_timeout}ms)") from e
    finally:
        var_delegation_depth.reset(token)

    execution_time_ms = (time.perf_counter() - start) * 1000
    logger.success(
        "Delegation completed | agent={} | success={} | duration={:.0f}ms",
        agent.key,
        response.success,
        execution_time_ms,
    )
    return DelegationOutput(
        result=response.text,
        agent_used=agent.key,
        execution_time_ms=execution_time_ms,
        metadata={
            **(metadata or {}),
            "success": response.success,
            "steps": response.steps,
            "delegation_depth": depth + 1,
            "priority": priority,
        },
    )


class DelegateTaskInput(BaseModel):
    task: str = Field(min_length=1, description="The task to delegate to a specialized agent")
    agent_id: str = Field(description="The id of the agent to delegate the task to")
    context: dict[str, t.Any] | None = Field(
        default=None, description="Additional context for the delegated task"
    )
    priority: t.Literal["low", "normal", "high", "urgent"] = "normal"


class DelegateTaskTool(BaseTool[DelegateTaskInput, DelegationOutput]):
    _name = "delegate-task"
    description = "Delegate a specific task to a specialized agent by agent id"
    _input = DelegateTaskInput
    _output = DelegationOutput

    def __init__(
        self,
        resolver: AgentResolver | None = None,
        llm_client: "LLMClient | None" = None,
    ) -> None:
        self.resolver = resolver or default_agent_resolver(llm_client)

    def invoke(self, input: DelegateTaskInput) -> DelegationOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: DelegateTaskInput) -> DelegationOutput:
        try:
            agent = self.resolver(input.agent_id)
        except KeyError as e:
            raise DelegationError(f"Unknown agent ID: {input.agent_id}") from e
        return await delegate(
            agent,
            input.task,
            context=input.context,
            priority=input.priority,
            metadata={"specialization": agent.description},
        )


class AgentTaskInput(BaseModel):
    task: str = Field(min_length=1, description="The task for the agent, with all needed details")
    context: dict[str, t.Any] | None = Field(
        default=None, description="Additional context for the task"
    )


class AgentAsTool(BaseTool[AgentTaskInput, DelegationOutput]):
    """One agent exposed as a tool named ``<key>-agent``."""

    _input = AgentTaskInput
    _output = DelegationOutput

    def __init__(self, agent: "Agent") -> None:
        self.agent = agent
        self._name = f"{agent.key}-agent"
        self.description = agent.description

    def invoke(self, input: AgentTaskInput) -> DelegationOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: AgentTaskInput) -> DelegationOutput:
        return await delegate(self.agent, input.task, context=input.context)


class ListAgentsInput(BaseModel):
    domain: str | None = Field(
        default=None, description="Filter agents by domain or specialization area"
    )
    include_specializations: bool = True


class ListAgentsOutput(BaseModel):
    result: str
    total_agents: int
    metadata: dict[str, t.Any] = Field(default_factory=dict)


class ListAgentsTool(BaseTool[ListAgentsInput, ListAgentsOutput]):
    _name = "list-available-agents"
    description = "List all available agents and their specializations for delegation"
    _input = ListAgentsInput
    _output = ListAgentsOutput

    def invoke(self, input: ListAgentsInput) -> ListAgentsOutput:
        from deanmachines.agents.registry import AGENT_METADATA

        agents = [(key, meta.description) for key, meta in AGENT_METADATA.items()]
        if input.domain:
            domain = input.domain.lower()
            agents = [(key, desc) for key, desc in agents if domain in desc.lower()]

        if input.include_specializations:
            listing = "\n".join(f"{key}: {desc}" for key, desc in agents)
            result = f"Available agents and their specializations:\n\n{listing}"
        else:
            listing = "\n".join(key for key, _ in agents)
            result = f"Available agent IDs:\n\n{listing}"

        return ListAgentsOutput(
            result=result,
            total_agents=len(agents),
            metadata={"domain": input.domain, "all_agents": list(AGENT_METADATA)},
        )
