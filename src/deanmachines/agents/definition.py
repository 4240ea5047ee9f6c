"""
Immutable agent configuration records.

An AgentDefinition says what an agent is: its instructions, the model it
prefers, the tools it may call and the memory it keeps. Definitions are
created once at import time and never change. ``Agent`` instances built from
them are cheap and hold the per-process LLM client.
"""

import typing as t
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from deanmachines.memory.agent_memory import AgentMemory
from deanmachines.runtime_context import ContextModel, RuntimeContext
from deanmachines.tools_core.base_tool import BaseTool

if t.TYPE_CHECKING:
    from deanmachines.llm_core.llm_client import LLMClient

Instructions = str | Callable[[RuntimeContext], str]
ToolFactory = Callable[["LLMClient"], BaseTool[t.Any, t.Any]]
StrategyName = t.Literal["direct", "react"]


@dataclass(frozen=True)
class AgentDefinition:
    key: str
    name: str
    description: str
    category: str
    instructions: Instructions
    tags: tuple[str, ...] = ()
    model: str | None = None
    tools: Mapping[str, ToolFactory] = field(default_factory=dict)
    memory: AgentMemory | None = None
    context_model: type[ContextModel] | None = None
    strategy: StrategyName = "direct"

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Agent key must not be empty")
        # read-only view so the tool map cannot be changed after registration
        object.__setattr__(self, "tools", MappingProxyType(dict(self.tools)))
        object.__setattr__(self, "tags", tuple(self.tags))

    def render_instructions(self, context: RuntimeContext) -> str:
        if callable(self.instructions):
            return self.instructions(context)
        return self.instructions
