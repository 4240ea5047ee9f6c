"""
LLM client for OpenAI-compatible chat completion APIs.

Gemini (through Google's OpenAI-compatible endpoint), OpenAI and Ollama are
all reached with the ``openai`` SDK. The client exposes one call shape with
four output modes:

    - text: Free text response (TextResponse)
    - json_schema: JSON constrained by a schema dict (StructuredResponse[dict])
    - pydantic: JSON parsed into a pydantic model (StructuredResponse[T])
    - tool_calling: Function/tool calling (ToolCallResponse)

``strict=True`` asks the provider for constrained decoding. When a Provider
is given, capabilities it lacks are downgraded with a logged warning:

    - strict -> non-strict
    - parallel tool calls -> sequential
    - json_schema/pydantic without native support -> json_object format with
      the schema injected as a system message, parsed back client side

Usage:
    client = create_google_client()
    response = client.generate(
        messages=[{"role": "user", "content": "Hello"}],
        mode="text",
    )

    class Answer(BaseModel):
        answer: str

    response = await client.agenerate(messages, mode="pydantic", response_model=Answer)
    print(response.parsed.answer)
"""

from __future__ import annotations

import json
import typing as t
from copy import deepcopy
from dataclasses import dataclass

from loguru import logger
from openai import APIConnectionError, APIError, AsyncOpenAI, OpenAI, RateLimitError
from openai.types.chat import ChatCompletion, ChatCompletionMessageParam
from pydantic import BaseModel, ValidationError

from deanmachines.llm_core.llm_configs import Provider
from deanmachines.settings import get_api_key, get_endpoint, get_settings

if t.TYPE_CHECKING:
    from deanmachines.tools_core.base_tool import BaseTool

T = t.TypeVar("T", bound=BaseModel)

OutputMode = t.Literal["text", "json_schema", "pydantic", "tool_calling"]

SCHEMA_PROMPT_TEMPLATE = """You must respond with valid JSON that conforms to this schema:

```json
{schema}
```

Respond ONLY with valid JSON matching this schema, no additional text."""


class LLMError(Exception):
    """Base exception for LLM errors."""


class LLMAPIError(LLMError):
    """API-level error from the LLM provider."""


class LLMParsingError(LLMError):
    """Failed to parse LLM response into expected format."""

    def __init__(self, message: str, raw_content: str | None = None):
        super().__init__(message)
        self.raw_content = raw_content


class LLMValidationError(LLMError):
    """Schema validation failed."""

    def __init__(self, message: str, validation_error: ValidationError | None = None):
        super().__init__(message)
        self.validation_error = validation_error


@dataclass
class TextResponse:
    """Response for text mode."""

    content: str
    finish_reason: str | None = None
    raw_response: ChatCompletion | None = None


@dataclass
class StructuredResponse(t.Generic[T]):
    """Response for json_schema and pydantic modes."""

    parsed: T
    raw_content: str | None = None
    finish_reason: str | None = None
    raw_response: ChatCompletion | None = None


@dataclass
class ToolCall:
    """A single tool call requested by the model."""

    id: str
    tool_name: str
    arguments: dict[str, t.Any]
    parsed: BaseModel | None = None


@dataclass
class ToolCallResponse:
    """Response for tool calling mode."""

    tool_calls: list[ToolCall]
    content: str | None = None
    finish_reason: str | None = None
    raw_response: ChatCompletion | None = None


@dataclass
class _RequestPlan:
    mode: OutputMode
    strict: bool
    parallel_tool_calls: bool
    schema_in_prompt: bool


def strict_schema(schema: dict[str, t.Any]) -> dict[str, t.Any]:
    """Make a JSON schema acceptable for strict structured outputs.

    Every object gets ``additionalProperties: false`` and lists all of its
    properties as required. Defaults are dropped.
    """
    schema = deepcopy(schema)

    def visit(node: t.Any) -> None:
        if isinstance(node, dict):
            node.pop("default", None)
            if node.get("type") == "object" and "properties" in node:
                node["additionalProperties"] = False
                node["required"] = list(node["properties"])
            for value in node.values():
                visit(value)
        elif isinstance(node, list):
            for item in node:
                visit(item)

    visit(schema)
    return schema


def model_schema(model: type[BaseModel], strict: bool = False) -> dict[str, t.Any]:
    schema = model.model_json_schema()
    return strict_schema(schema) if strict else schema


def tool_schema(tool: BaseTool[t.Any, t.Any], strict: bool = False) -> dict[str, t.Any]:
    """OpenAI function definition for a tool."""
    parameters = model_schema(tool.input_model(), strict=strict)
    parameters.pop("title", None)
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": parameters,
            "strict": strict,
        },
    }


def _inject_schema(
    messages: list[ChatCompletionMessageParam], schema: dict[str, t.Any]
) -> list[ChatCompletionMessageParam]:
    schema_message: ChatCompletionMessageParam = {
        "role": "system",
        "content": SCHEMA_PROMPT_TEMPLATE.format(schema=json.dumps(schema, indent=2)),
    }
    return [schema_message, *messages]


def _parse_tool_calls(
    raw_tool_calls: t.Sequence[t.Any],
    tools: t.Sequence[BaseTool[t.Any, t.Any]],
) -> list[ToolCall]:
    """Parse raw tool calls into ToolCall objects with validated inputs.

    Unknown tools (not in the provided tools list) are skipped with a warning.
    """
    tool_map = {tool.name: tool for tool in tools}
    parsed_calls: list[ToolCall] = []

    for raw in raw_tool_calls:
        name = raw.function.name
        tool = tool_map.get(name) or tool_map.get(name.upper())
        if tool is None:
            logger.warning("LLM returned unknown tool '{}', skipping", name)
            continue

        try:
            arguments = json.loads(raw.function.arguments or "{}")
        except json.JSONDecodeError as e:
            raise LLMParsingError(
                f"Failed to parse tool arguments as JSON: {e}",
                raw_content=raw.function.arguments,
            ) from e

        try:
            parsed = tool.input_model().model_validate(arguments)
        except ValidationError as e:
            raise LLMValidationError(
                f"Tool arguments failed validation for {name}: {e}",
                validation_error=e,
            ) from e

        parsed_calls.append(
            ToolCall(id=raw.id, tool_name=tool.name, arguments=arguments, parsed=parsed)
        )

    return parsed_calls


class LLMClient:
    """
    LLM client supporting text, structured and tool calling output.

    Args:
        client: Sync OpenAI client for blocking calls
        async_client: Async OpenAI client for non-blocking calls
        default_model: Model used when generate() gets none
        provider: Enables capability-based fallbacks for that provider

    Example:
        >>> client = LLMClient(OpenAI(), default_model="gpt-4o-mini")
        >>> client.generate(messages, mode="text").content
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        async_client: AsyncOpenAI | None = None,
        default_model: str | None = None,
        provider: Provider | None = None,
    ):
        self._client = client
        self._async_client = async_client
        self._default_model = default_model
        self._provider = provider

    @property
    def provider(self) -> Provider | None:
        return self._provider

    @property
    def default_model(self) -> str | None:
        return self._default_model

    def _plan_request(
        self, mode: OutputMode, strict: bool, parallel_tool_calls: bool
    ) -> _RequestPlan:
        """Downgrade the request to what the provider supports."""
        plan = _RequestPlan(mode, strict, parallel_tool_calls, schema_in_prompt=False)
        provider = self._provider
        if provider is None:
            return plan

        if mode == "tool_calling":
            if not provider.supports_tool_calling:
                raise LLMError(
                    f"Provider {provider.name} does not support tool calling."
                )
            if parallel_tool_calls and not provider.supports_parallel_tool_calls:
                logger.warning(
                    "Provider {} does not support parallel tool calls, "
                    "falling back to sequential tool calls",
                    provider.name,
                )
                plan.parallel_tool_calls = False

        if strict and not provider.supports_strict_mode:
            logger.warning(
                "Provider {} does not support strict mode, falling back to non-strict '{}'",
                provider.name,
                mode,
            )
            plan.strict = False

        if mode in ("json_schema", "pydantic") and not provider.supports_json_schema:
            plan.schema_in_prompt = True

        return plan

    def _build_request(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str,
        plan: _RequestPlan,
        response_model: type[BaseModel] | None,
        response_schema: dict[str, t.Any] | None,
        tools: t.Sequence[BaseTool[t.Any, t.Any]] | None,
        extra: dict[str, t.Any],
    ) -> dict[str, t.Any]:
        request: dict[str, t.Any] = {"model": model, **extra}
        final_messages = list(messages)

        if plan.mode in ("json_schema", "pydantic"):
            if plan.mode == "pydantic":
                if response_model is None:
                    raise ValueError("response_model is required for mode 'pydantic'")
                schema = model_schema(response_model, strict=plan.strict)
                schema_name = response_model.__name__
            else:
                if response_schema is None:
                    raise ValueError("response_schema is required for mode 'json_schema'")
                schema = strict_schema(response_schema) if plan.strict else response_schema
                schema_name = schema.get("title", "response")

            if plan.schema_in_prompt:
                final_messages = _inject_schema(final_messages, schema)
                request["response_format"] = {"type": "json_object"}
            else:
                request["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {
                        "name": schema_name,
                        "strict": plan.strict,
                        "schema": schema,
                    },
                }

        elif plan.mode == "tool_calling":
            if not tools:
                raise ValueError("tools is required for mode 'tool_calling'")
            request["tools"] = [tool_schema(tool, strict=plan.strict) for tool in tools]
            request["tool_choice"] = "required"
            if plan.parallel_tool_calls:
                request["parallel_tool_calls"] = True

        request["messages"] = final_messages
        return request

    def _parse_response(
        self,
        response: ChatCompletion,
        plan: _RequestPlan,
        response_model: type[BaseModel] | None,
        tools: t.Sequence[BaseTool[t.Any, t.Any]] | None,
    ) -> TextResponse | StructuredResponse[t.Any] | ToolCallResponse:
        choice = response.choices[0]
        message = choice.message
        content = message.content or ""

        if plan.mode == "text":
            return TextResponse(
                content=content,
                finish_reason=choice.finish_reason,
                raw_response=response,
            )

        if plan.mode == "tool_calling":
            tool_calls = _parse_tool_calls(message.tool_calls or [], tools or [])
            if not plan.parallel_tool_calls:
                tool_calls = tool_calls[:1]
            return ToolCallResponse(
                tool_calls=tool_calls,
                content=message.content,
                finish_reason=choice.finish_reason,
                raw_response=response,
            )

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise LLMParsingError(
                f"Failed to parse response as JSON: {e}", raw_content=content
            ) from e

        parsed: t.Any = data
        if plan.mode == "pydantic" and response_model is not None:
            try:
                parsed = response_model.model_validate(data)
            except ValidationError as e:
                raise LLMValidationError(
                    f"Response failed schema validation: {e}", validation_error=e
                ) from e

        return StructuredResponse(
            parsed=parsed,
            raw_content=content,
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    def _prepare(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None,
        mode: OutputMode,
        strict: bool,
        parallel_tool_calls: bool,
        response_model: type[BaseModel] | None,
        response_schema: dict[str, t.Any] | None,
        tools: t.Sequence[BaseTool[t.Any, t.Any]] | None,
        extra: dict[str, t.Any],
    ) -> tuple[_RequestPlan, dict[str, t.Any]]:
        resolved_model = model or self._default_model
        if resolved_model is None:
            raise ValueError("model must be specified or set default_model")
        plan = self._plan_request(mode, strict, parallel_tool_calls)
        request = self._build_request(
            messages, resolved_model, plan, response_model, response_schema, tools, extra
        )
        logger.debug(
            "LLM request | model={} | mode={} | messages={}",
            resolved_model,
            plan.mode,
            len(request["messages"]),
        )
        return plan, request

    @t.overload
    def generate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["text"] = "text",
        **kwargs: t.Any,
    ) -> TextResponse: ...

    @t.overload
    def generate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["pydantic"],
        response_model: type[T],
        **kwargs: t.Any,
    ) -> StructuredResponse[T]: ...

    @t.overload
    def generate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["json_schema"],
        response_schema: dict[str, t.Any],
        **kwargs: t.Any,
    ) -> StructuredResponse[dict[str, t.Any]]: ...

    @t.overload
    def generate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["tool_calling"],
        tools: t.Sequence[BaseTool[t.Any, t.Any]],
        parallel_tool_calls: bool = False,
        **kwargs: t.Any,
    ) -> ToolCallResponse: ...

    def generate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: OutputMode = "text",
        strict: bool = False,
        response_model: type[BaseModel] | None = None,
        response_schema: dict[str, t.Any] | None = None,
        tools: t.Sequence[BaseTool[t.Any, t.Any]] | None = None,
        parallel_tool_calls: bool = False,
        **kwargs: t.Any,
    ) -> TextResponse | StructuredResponse[t.Any] | ToolCallResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: List of chat messages
            model: Model name (uses default_model if not specified)
            mode: "text", "json_schema", "pydantic" or "tool_calling"
            strict: Request constrained decoding where the provider supports it
            response_model: Pydantic model for pydantic mode
            response_schema: JSON schema dict for json_schema mode
            tools: BaseTool instances for tool calling mode
            parallel_tool_calls: Allow several tool calls in one response
            **kwargs: Passed to chat.completions.create() (e.g. temperature)

        Raises:
            RuntimeError: If sync client not configured
            LLMAPIError: API connection, rate limit or provider errors
            LLMParsingError: Failed to parse response
            LLMValidationError: Schema validation failed
        """
        if self._client is None:
            raise RuntimeError("Sync client not configured. Pass 'client' to __init__.")

        plan, request = self._prepare(
            messages, model, mode, strict, parallel_tool_calls,
            response_model, response_schema, tools, kwargs,
        )
        try:
            response = self._client.chat.completions.create(**request)
        except (APIConnectionError, RateLimitError) as e:
            raise LLMAPIError(f"API error: {e}") from e
        except APIError as e:
            raise LLMAPIError(f"Provider API error: {e}") from e

        return self._parse_response(response, plan, response_model, tools)

    @t.overload
    async def agenerate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["text"] = "text",
        **kwargs: t.Any,
    ) -> TextResponse: ...

    @t.overload
    async def agenerate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["pydantic"],
        response_model: type[T],
        **kwargs: t.Any,
    ) -> StructuredResponse[T]: ...

    @t.overload
    async def agenerate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["json_schema"],
        response_schema: dict[str, t.Any],
        **kwargs: t.Any,
    ) -> StructuredResponse[dict[str, t.Any]]: ...

    @t.overload
    async def agenerate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: t.Literal["tool_calling"],
        tools: t.Sequence[BaseTool[t.Any, t.Any]],
        parallel_tool_calls: bool = False,
        **kwargs: t.Any,
    ) -> ToolCallResponse: ...

    async def agenerate(
        self,
        messages: list[ChatCompletionMessageParam],
        model: str | None = None,
        *,
        mode: OutputMode = "text",
        strict: bool = False,
        response_model: type[BaseModel] | None = None,
        response_schema: dict[str, t.Any] | None = None,
        tools: t.Sequence[BaseTool[t.Any, t.Any]] | None = None,
        parallel_tool_calls: bool = False,
        **kwargs: t.Any,
    ) -> TextResponse | StructuredResponse[t.Any] | ToolCallResponse:
        """Async version of generate()."""
        if self._async_client is None:
            raise RuntimeError(
                "Async client not configured. Pass 'async_client' to __init__."
            )

        plan, request = self._prepare(
            messages, model, mode, strict, parallel_tool_calls,
            response_model, response_schema, tools, kwargs,
        )
        try:
            response = await self._async_client.chat.completions.create(**request)
        except (APIConnectionError, RateLimitError) as e:
            raise LLMAPIError(f"API error: {e}") from e
        except APIError as e:
            raise LLMAPIError(f"Provider API error: {e}") from e

        return self._parse_response(response, plan, response_model, tools)


def _create_client(
    provider: Provider,
    api_key: str | None,
    base_url: str | None,
    timeout: float,
    default_model: str | None,
    async_client: bool,
) -> LLMClient:
    client_kwargs: dict[str, t.Any] = {
        "api_key": api_key or get_api_key(provider) or None,
        "base_url": base_url or get_endpoint(provider),
        "timeout": timeout,
    }
    return LLMClient(
        client=OpenAI(**client_kwargs),
        async_client=AsyncOpenAI(**client_kwargs) if async_client else None,
        default_model=default_model or provider.default_model,
        provider=provider,
    )


def create_google_client(
    api_key: str | None = None,
    timeout: float = 120.0,
    default_model: str | None = None,
    async_client: bool = False,
) -> LLMClient:
    """
    Create an LLMClient for Gemini through Google's OpenAI-compatible endpoint.

    Args:
        api_key: Google AI API key (uses GOOGLE_GENERATIVE_AI_API_KEY if not set)
        timeout: Request timeout in seconds
        default_model: Default model (settings.default_model if not set)
        async_client: If True, also create async client
    """
    return _create_client(
        Provider.GOOGLE,
        api_key=api_key,
        base_url=None,
        timeout=timeout,
        default_model=default_model or get_settings().default_model,
        async_client=async_client,
    )


def create_openai_client(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float = 120.0,
    default_model: str | None = None,
    async_client: bool = False,
) -> LLMClient:
    """Create an LLMClient configured for OpenAI."""
    return _create_client(
        Provider.OPENAI, api_key, base_url, timeout, default_model, async_client
    )


def create_ollama_client(
    base_url: str | None = None,
    timeout: float = 120.0,
    default_model: str | None = None,
    async_client: bool = False,
) -> LLMClient:
    """Create an LLMClient for a local Ollama server with automatic fallbacks."""
    return _create_client(
        Provider.OLLAMA, None, base_url, timeout, default_model, async_client
    )


def create_default_client(async_client: bool = True) -> LLMClient:
    """Gemini when a Google key is configured, otherwise OpenAI."""
    if get_api_key(Provider.GOOGLE):
        return create_google_client(async_client=async_client)
    if get_api_key(Provider.OPENAI):
        return create_openai_client(async_client=async_client)
    raise LLMError(
        "No LLM provider configured. "
        "Set GOOGLE_GENERATIVE_AI_API_KEY or OPENAI_API_KEY."
    )
