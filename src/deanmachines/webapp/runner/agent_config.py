"""
Chat profile configuration.

A profile pairs display information with a factory building the agent or
network that answers the chat. Both expose the same ``generate`` call and
return an AgentResponse.
"""

import typing as t
from collections.abc import Callable
from dataclasses import dataclass, field

from deanmachines.agents.agent import AgentResponse, MessagesInput
from deanmachines.llm_core.llm_client import LLMClient
from deanmachines.runtime_context import ContextLike

LLMClientOrFactory = LLMClient | Callable[[], LLMClient]


class ChatTarget(t.Protocol):
    name: str

    async def generate(
        self,
        messages: MessagesInput,
        runtime_context: ContextLike = None,
        max_steps: int = 10,
    ) -> AgentResponse: ...


class TargetFactory(t.Protocol):
    def __call__(self, llm_client: LLMClient | None = None) -> ChatTarget: ...


@dataclass
class AgentConfig:
    """
    Example:
        config = AgentConfig(
            name="Weather",
            description="Weather conditions and planning",
            welcome_message="Ask me about the weather anywhere.",
            target_factory=lambda llm_client=None: create_agent("weather", llm_client),
            default_context={"temperature-unit": "celsius"},
        )
    """

    name: str
    description: str
    welcome_message: str
    target_factory: TargetFactory

    # runtime context values every chat starts with
    default_context: dict[str, t.Any] = field(default_factory=dict)

    # Chainlit ChatSettings widgets. The widget id is the runtime context key.
    # Supported types: text, select, slider, switch, tags
    settings_widgets: list[dict[str, t.Any]] = field(default_factory=list)

    # agents keep their own thread memory, networks get the chat history
    send_history: bool = False

    llm_client: LLMClientOrFactory | None = None
    max_steps: int = 10
    show_tool_calls: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Agent name is required")
        if self.max_steps < 1:
            raise ValueError("max_steps must be at least 1")

    def get_llm_client(self) -> LLMClient | None:
        if self.llm_client is None or isinstance(self.llm_client, LLMClient):
            return self.llm_client
        return self.llm_client()

    def create_target(self) -> ChatTarget:
        return self.target_factory(llm_client=self.get_llm_client())
