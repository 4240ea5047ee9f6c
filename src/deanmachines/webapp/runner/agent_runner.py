"""
Chainlit chat handlers shared by every profile.

The runner handles:
- Runtime context setup per chat (settings panel, session and resource ids)
- Message handling with a step per run and per tool call
- Chat history for targets without their own memory
"""

import typing as t

import chainlit as cl
from chainlit.input_widget import Select, Slider, Switch, Tags, TextInput
from loguru import logger

from deanmachines.runtime_context import RuntimeContext
from deanmachines.utilities.utils import truncate
from deanmachines.webapp.runner.agent_config import AgentConfig
from deanmachines.webapp.runner.chainlit_steps import send_tool_steps


def _create_widget(widget_config: dict[str, t.Any]) -> t.Any:
    widget_type = widget_config.get("type", "text")
    widget_id = widget_config["id"]
    label = widget_config.get("label", widget_id)
    description = widget_config.get("description")

    if widget_type == "text":
        return TextInput(
            id=widget_id,
            label=label,
            initial=widget_config.get("initial", ""),
            description=description,
        )
    if widget_type == "select":
        return Select(
            id=widget_id,
            label=label,
            values=widget_config.get("values", []),
            initial_value=widget_config.get("initial"),
            description=description,
        )
    if widget_type == "slider":
        return Slider(
            id=widget_id,
            label=label,
            initial=widget_config.get("initial", 0),
            min=widget_config.get("min", 0),
            max=widget_config.get("max", 100),
            step=widget_config.get("step", 1),
            description=description,
        )
    if widget_type == "switch":
        return Switch(
            id=widget_id,
            label=label,
            initial=widget_config.get("initial", False),
            description=description,
        )
    if widget_type == "tags":
        return Tags(
            id=widget_id,
            label=label,
            initial=widget_config.get("initial", []),
            description=description,
        )
    raise ValueError(f"Unknown widget type: {widget_type}")


def build_runtime_context(
    config: AgentConfig,
    session_id: str,
    resource_id: str,
    user_id: str | None = None,
    settings: dict[str, t.Any] | None = None,
) -> RuntimeContext:
    """Fresh context for one chat: profile defaults, then user settings, then ids."""
    values: dict[str, t.Any] = {
        **config.default_context,
        **(settings or {}),
        "session-id": session_id,
        "resource-id": resource_id,
    }
    if user_id:
        values["user-id"] = user_id
    return RuntimeContext(values)


class AgentRunner:
    """
    Usage:
        runner = AgentRunner(get_agent_config("network"))

        @cl.on_chat_start
        async def on_chat_start():
            await runner.on_chat_start()

        @cl.on_message
        async def on_message(message):
            await runner.on_message(message)
    """

    def __init__(self, config: AgentConfig, resource_id: str = "TEST") -> None:
        self.config = config
        self.resource_id = resource_id

    def _default_settings(self) -> dict[str, t.Any]:
        return {
            widget["id"]: widget["initial"]
            for widget in self.config.settings_widgets
            if "initial" in widget
        }

    async def on_chat_start(self) -> None:
        logger.info("Starting chat | profile={}", self.config.name)

        settings = self._default_settings()
        if self.config.settings_widgets:
            widgets = [_create_widget(w) for w in self.config.settings_widgets]
            chosen = await cl.ChatSettings(widgets).send()
            if chosen:
                settings.update(chosen)

        self._start_session(settings)
        cl.user_session.set("target", self.config.create_target())
        await cl.Message(content=self.config.welcome_message).send()

    def _start_session(self, settings: dict[str, t.Any]) -> None:
        user = cl.user_session.get("user")
        user_id = user.identifier if user is not None else None
        runtime_context = build_runtime_context(
            self.config,
            session_id=cl.context.session.id,
            resource_id=user_id or self.resource_id,
            user_id=user_id,
            settings=settings,
        )
        cl.user_session.set("runtime_context", runtime_context)
        cl.user_session.set("history", [])

    async def on_message(self, message: cl.Message) -> None:
        target = cl.user_session.get("target")
        if target is None:
            await cl.Message(
                content="Error: Agent not initialized. Please refresh the page."
            ).send()
            return

        runtime_context: RuntimeContext = cl.user_session.get("runtime_context")
        history: list[dict[str, str]] = cl.user_session.get("history") or []
        history.append({"role": "user", "content": message.content})
        messages = list(history) if self.config.send_history else message.content

        logger.info(
            "Processing message | profile={} | message={}",
            self.config.name,
            truncate(message.content),
        )
        try:
            async with cl.Step(name=self.config.name, type="run") as step:
                step.input = message.content
                response = await target.generate(
                    messages,
                    runtime_context=runtime_context,
                    max_steps=self.config.max_steps,
                )
                if self.config.show_tool_calls:
                    await send_tool_steps(response)
                step.output = response.text
        except Exception as e:  # reported in the chat, the session stays usable
            logger.exception("Agent execution failed | profile={}", self.config.name)
            history.pop()
            await cl.Message(content=f"[Error] An error occurred: {e}").send()
            return

        history.append({"role": "assistant", "content": response.text})
        cl.user_session.set("history", history)
        content = response.text if response.success else f"[Warning] {response.text}"
        await cl.Message(content=content).send()
        logger.info(
            "Agent completed | success={} | steps={} | tool_calls={}",
            response.success,
            response.steps,
            response.tool_calls,
        )

    async def on_settings_update(self, new_settings: dict[str, t.Any]) -> None:
        logger.info("Settings updated | profile={} | settings={}", self.config.name, new_settings)
        runtime_context: RuntimeContext = cl.user_session.get("runtime_context")
        cl.user_session.set("runtime_context", runtime_context.merged(**new_settings))
        await cl.Message(content="Settings updated.").send()
