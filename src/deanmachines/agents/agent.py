"""
Agent runtime.

``Agent.generate`` runs one conversational turn:

1. publish the (frozen) runtime context for the call
2. render the instructions from the context
3. load the thread history from memory
4. run the AgentTool loop with the agent's tools
5. save the new user/assistant turns back to memory

Agents answer through the FINISH tool, so the final text of a turn is the
FINISH result.
"""

import typing as t
from dataclasses import dataclass, field

from loguru import logger
from openai.types.chat import ChatCompletionMessageParam

from deanmachines.agent_tool.agent_tool import AgentTool
from deanmachines.agent_tool.base_strategy import PlanningStrategy
from deanmachines.agent_tool.direct_strategy import DirectStrategy
from deanmachines.agent_tool.react_strategy import ReactStrategy
from deanmachines.agents.definition import AgentDefinition
from deanmachines.configs import get_agent_tool_template_module
from deanmachines.llm_core.llm_client import LLMClient, create_default_client
from deanmachines.observability.langfuse_tracing import langfuse_span
from deanmachines.observability.monitoring import measure_time
from deanmachines.observability.tracing import trace_agent_operation
from deanmachines.runtime_context import (
    ContextLike,
    RuntimeContext,
    as_runtime_context,
    get_runtime_context,
    use_runtime_context,
)
from deanmachines.tools_core.base_tool import BaseTool
from deanmachines.utilities.utils import truncate

_templates = get_agent_tool_template_module("agent_tool.jinja")

MessagesInput = str | t.Sequence[ChatCompletionMessageParam | dict[str, t.Any]]


@dataclass
class AgentResponse:
    text: str
    success: bool
    steps: int
    tool_calls: int = 0
    messages: list[dict[str, t.Any]] = field(default_factory=list)


def normalize_messages(messages: MessagesInput) -> list[ChatCompletionMessageParam]:
    """Accept a plain string or a list of ``{role, content}`` messages."""
    if isinstance(messages, str):
        if not messages.strip():
            raise ValueError("Message must not be empty")
        return [{"role": "user", "content": messages}]
    normalized: list[ChatCompletionMessageParam] = []
    for message in messages:
        if "role" not in message or "content" not in message:
            raise ValueError(f"Message needs 'role' and 'content': {message!r}")
        normalized.append(t.cast(ChatCompletionMessageParam, dict(message)))
    if not normalized:
        raise ValueError("At least one message is required")
    return normalized


class Agent:
    """A runnable agent built from an AgentDefinition.

    The LLM client is created on first use, so importing the registry never
    needs API keys.
    """

    def __init__(self, definition: AgentDefinition, llm_client: LLMClient | None = None) -> None:
        self.definition = definition
        self._llm_client = llm_client

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = create_default_client()
        return self._llm_client

    @property
    def model(self) -> str | None:
        # a model the provider does not serve falls back to the client default
        provider = self.llm_client.provider
        model = self.definition.model
        if model is not None and (provider is None or provider.knows_model(model)):
            return model
        return None

    def instructions(self, runtime_context: ContextLike = None) -> str:
        return self.definition.render_instructions(as_runtime_context(runtime_context))

    def create_tools(self) -> list[BaseTool[t.Any, t.Any]]:
        return [factory(self.llm_client) for factory in self.definition.tools.values()]

    def _strategy(self, temperature: float | None) -> PlanningStrategy:
        if self.definition.strategy == "react":
            return ReactStrategy(self.llm_client, action_model=self.model, temperature=temperature)
        return DirectStrategy(self.llm_client, model=self.model, temperature=temperature)

    async def generate(
        self,
        messages: MessagesInput,
        runtime_context: ContextLike = None,
        thread_id: str | None = None,
        resource_id: str | None = None,
        max_steps: int = 10,
        temperature: float | None = None,
    ) -> AgentResponse:
        """Run one turn of the agent.

        Without an explicit ``runtime_context`` the context of the enclosing
        call is used, so delegated agents see the caller's preferences.
        """
        conversation = normalize_messages(messages)
        context = (
            get_runtime_context()
            if runtime_context is None
            else as_runtime_context(runtime_context)
        )
        with use_runtime_context(context) as frozen:
            run = trace_agent_operation(
                self.key,
                "generate",
                self._generate,
                metadata={"agent_display_name": self.name},
            )
            async with measure_time(f"agent.generate:{self.key}"):
                return await run(
                    conversation, frozen, thread_id, resource_id, max_steps, temperature
                )

    async def _generate(
        self,
        conversation: list[ChatCompletionMessageParam],
        context: RuntimeContext,
        thread_id: str | None,
        resource_id: str | None,
        max_steps: int,
        temperature: float | None,
    ) -> AgentResponse:
        thread_id = thread_id or context.get("thread-id") or context.get("session-id")
        resource_id = resource_id or context.get("resource-id") or context.get("user-id")
        memory = self.definition.memory
        use_memory = memory is not None and bool(thread_id) and bool(resource_id)

        history = memory.get_messages(resource_id, thread_id) if use_memory else []
        tools = self.create_tools()
        agent_tool = AgentTool(
            tools=tools,
            strategy=self._strategy(temperature),
            system_prompt=self.instructions(context),
            guidance_messages=[_templates.tool_guidance(tools=tools)],
        )
        logger.info(
            "Agent generate | agent={} | thread={} | history={} | message={}",
            self.key,
            thread_id,
            len(history),
            truncate(str(conversation[-1].get("content", "")), 80),
        )

        with langfuse_span(
            f"agent:{self.key}",
            metadata={"thread_id": thread_id, "resource_id": resource_id},
            input=conversation,
        ) as span:
            output = await agent_tool.run(
                t.cast(list[ChatCompletionMessageParam], history) + conversation,
                max_iterations=max_steps,
            )
            if span is not None:
                span.update(output=output.result)

        if use_memory:
            memory.save_messages(
                resource_id,
                thread_id,
                [*conversation, {"role": "assistant", "content": output.result}],
            )

        return AgentResponse(
            text=output.result,
            success=output.success,
            steps=output.iterations_used,
            tool_calls=output.tool_calls_count,
            messages=output.messages,
        )

    def __repr__(self) -> str:
        return f"Agent(key={self.key!r}, name={self.name!r})"
