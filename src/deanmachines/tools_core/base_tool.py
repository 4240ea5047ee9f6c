"""
Tool base class with a single pydantic model for input and for output.

Every call through ``__call__``/``acall`` is validated on both sides:

- the input is validated against ``_input`` before the tool runs
- the result is validated against ``_output`` after it returns

Validation is pydantic's own ``model_validate``. Mismatches raise
InputValidationError / OutputValidationError carrying the pydantic error.
"""

import asyncio
import inspect
import typing as t
from abc import ABC, abstractmethod

from loguru import logger
from pydantic import BaseModel, RootModel, ValidationError, create_model
from pydantic.errors import PydanticSchemaGenerationError

from deanmachines.utilities.utils import normalize_tool_name

InputT = t.TypeVar("InputT", bound=BaseModel)
OutputT = t.TypeVar("OutputT", bound=BaseModel)


class ToolValidationError(Exception):
    """Raised when a tool's arguments or result do not match its schema."""

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        validation_error: ValidationError | None = None,
    ) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.validation_error = validation_error


class InputValidationError(ToolValidationError):
    """Raised when input validation fails."""


class OutputValidationError(ToolValidationError):
    """Raised when a tool returns a result that does not match its output schema."""


class ToolExecutionError(Exception):
    """Raised when a tool's external dependency fails."""


def _coerce(
    value: t.Any,
    model: type[BaseModel],
    error_cls: type[ToolValidationError],
    tool_name: str,
) -> BaseModel:
    if isinstance(value, model):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if not isinstance(value, dict):
        raise error_cls(
            f"{tool_name}: expected {model.__name__} or dict, got {type(value).__name__}",
            tool_name=tool_name,
        )
    try:
        return model.model_validate(value)
    except ValidationError as e:
        raise error_cls(
            f"{tool_name}: failed to validate as {model.__name__}: {e}",
            tool_name=tool_name,
            validation_error=e,
        ) from e


class BaseTool(ABC, t.Generic[InputT, OutputT]):
    """
    Base class for tools with pydantic input and output models.

    Subclasses must:
    1. Set `_name` and `description` as class attributes
    2. Define `_input` and `_output` as pydantic BaseModel types
    3. Override `invoke()` for sync implementation or `ainvoke()` for async

    Example:
        class EchoInput(BaseModel):
            text: str

        class EchoOutput(BaseModel):
            text: str

        class EchoTool(BaseTool[EchoInput, EchoOutput]):
            _name = "echo"
            description = "Echo the text back"
            _input = EchoInput
            _output = EchoOutput

            def invoke(self, input: EchoInput) -> EchoOutput:
                return EchoOutput(text=input.text)
    """

    _name: str
    description: str

    _input: t.ClassVar[type[BaseModel]]
    _output: t.ClassVar[type[BaseModel]]

    example_inputs: t.ClassVar[t.Sequence[BaseModel]] = ()
    example_outputs: t.ClassVar[t.Sequence[BaseModel]] = ()

    def __init_subclass__(cls, **kwargs: t.Any) -> None:
        """Validate the subclass configuration on definition."""
        super().__init_subclass__(**kwargs)

        if inspect.isabstract(cls):
            return

        for attr in ("_input", "_output"):
            model = getattr(cls, attr, None)
            if model is None:
                raise TypeError(
                    f"{cls.__name__} must define '{attr}' as a pydantic BaseModel type"
                )
            if not (inspect.isclass(model) and issubclass(model, BaseModel)):
                raise TypeError(
                    f"{cls.__name__}.{attr} must be a pydantic BaseModel subclass, "
                    f"got {model}"
                )

    @property
    def name(self) -> str:
        """Normalized tool name for LLM compatibility."""
        return normalize_tool_name(self._name)

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def raw_name(self) -> str:
        """Original tool name without normalization."""
        return self._name

    def _validate_input(self, input: t.Any) -> InputT:
        return t.cast(InputT, _coerce(input, self._input, InputValidationError, self.name))

    def _validate_output(self, output: t.Any) -> OutputT:
        return t.cast(
            OutputT, _coerce(output, self._output, OutputValidationError, self.name)
        )

    @abstractmethod
    def invoke(self, input: InputT) -> OutputT:
        """Synchronous execution of the tool."""
        ...

    async def ainvoke(self, input: InputT) -> OutputT:
        """
        Asynchronous execution of the tool.

        Default implementation calls invoke() in a thread pool.
        Override for native async implementation.
        """
        return await asyncio.to_thread(self.invoke, input)

    @classmethod
    def input_model(cls) -> type[InputT]:
        return t.cast(type[InputT], cls._input)

    @classmethod
    def output_model(cls) -> type[OutputT]:
        return t.cast(type[OutputT], cls._output)

    @classmethod
    def input_schema(cls) -> dict[str, t.Any]:
        return cls._input.model_json_schema()

    @classmethod
    def output_schema(cls) -> dict[str, t.Any]:
        return cls._output.model_json_schema()

    def create_input(self, **kwargs: t.Any) -> InputT:
        return self._validate_input(kwargs)

    def __call__(self, input: InputT | dict[str, t.Any]) -> OutputT:
        """Validate input, run the tool synchronously, validate the result."""
        validated_input = self._validate_input(input)
        return self._validate_output(self.invoke(validated_input))

    async def acall(self, input: InputT | dict[str, t.Any]) -> OutputT:
        """Validate input, run the tool asynchronously, validate the result."""
        validated_input = self._validate_input(input)
        result = await self.ainvoke(validated_input)
        return self._validate_output(result)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, description={self.description!r})"


def _model_from_signature(fn: t.Callable[..., t.Any], schema_name: str) -> type[BaseModel]:
    """Build a pydantic model from a function's parameter signature."""
    fields: dict[str, t.Any] = {}
    for name, param in inspect.signature(fn).parameters.items():
        if name in ("self", "cls") or param.kind in (
            inspect.Parameter.VAR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        ):
            continue
        annotation = (
            t.Any if param.annotation is inspect.Parameter.empty else param.annotation
        )
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[name] = (annotation, default)

    try:
        return create_model(schema_name, **fields)
    except PydanticSchemaGenerationError as e:
        raise ValueError(
            f"Cannot create pydantic model from signature of {fn.__name__}. "
            "Use supported types or provide an explicit input model."
        ) from e


def _model_from_return(fn: t.Callable[..., t.Any], schema_name: str) -> type[BaseModel]:
    """Use the return annotation, wrapping non-model types in a RootModel."""
    annotation = inspect.signature(fn).return_annotation
    if annotation is inspect.Signature.empty:
        annotation = t.Any
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation
    return create_model(schema_name, __base__=RootModel[annotation])  # type: ignore[valid-type]


def _build_function_tool(
    fn: t.Callable[..., t.Any],
    tool_name: str,
    description: str,
    input_model: type[BaseModel],
    output_model: type[BaseModel],
    call: t.Callable[[BaseModel], t.Any],
    example_inputs: t.Sequence[t.Any] | None,
    example_outputs: t.Sequence[t.Any] | None,
) -> BaseTool[BaseModel, BaseModel]:
    def wrap(result: t.Any) -> BaseModel:
        if isinstance(result, BaseModel):
            return result
        return output_model.model_validate(result)

    def invoke(self: BaseTool[BaseModel, BaseModel], input: BaseModel) -> BaseModel:
        if inspect.iscoroutinefunction(fn):
            raise NotImplementedError(
                f"{tool_name} is async-only. Use ainvoke() or acall()."
            )
        return wrap(call(input))

    async def ainvoke(self: BaseTool[BaseModel, BaseModel], input: BaseModel) -> BaseModel:
        if inspect.iscoroutinefunction(fn):
            return wrap(await call(input))
        return await asyncio.to_thread(lambda: wrap(call(input)))

    class_attrs: dict[str, t.Any] = {
        "_name": tool_name,
        "_input": input_model,
        "_output": output_model,
        "description": description,
        "example_inputs": tuple(example_inputs or ()),
        "example_outputs": tuple(example_outputs or ()),
        "invoke": invoke,
        "ainvoke": ainvoke,
    }
    FunctionTool = type("FunctionTool", (BaseTool,), class_attrs)
    logger.debug("Created function tool | name={}", tool_name)
    return FunctionTool()  # type: ignore[return-value]


def create_fn_tool(
    name: str | None = None,
    description: str | None = None,
    example_inputs: t.Sequence[dict[str, t.Any]] | None = None,
    example_outputs: t.Sequence[t.Any] | None = None,
) -> t.Callable[[t.Callable[..., t.Any]], BaseTool[BaseModel, BaseModel]]:
    """
    Decorator to create a BaseTool from a plain function.

    The input model is generated from the parameter signature and the output
    model from the return annotation.

    Example:
        @create_fn_tool(name="add_numbers", description="Adds two numbers")
        def add(x: int, y: int) -> int:
            return x + y
    """

    def decorator(fn: t.Callable[..., t.Any]) -> BaseTool[BaseModel, BaseModel]:
        tool_name = name or fn.__name__
        input_model = _model_from_signature(fn, f"{tool_name}Input")
        return _build_function_tool(
            fn,
            tool_name=tool_name,
            description=description or fn.__doc__ or "",
            input_model=input_model,
            output_model=_model_from_return(fn, f"{tool_name}Output"),
            call=lambda validated: fn(**dict(validated)),
            example_inputs=example_inputs,
            example_outputs=example_outputs,
        )

    return decorator


def create_tool(
    name: str | None = None,
    description: str | None = None,
    input_model: type[BaseModel] | None = None,
    output_model: type[BaseModel] | None = None,
    example_inputs: t.Sequence[BaseModel] | None = None,
    example_outputs: t.Sequence[BaseModel] | None = None,
) -> t.Callable[[t.Callable[[t.Any], t.Any]], BaseTool[BaseModel, BaseModel]]:
    """
    Decorator to create a BaseTool from a function taking one pydantic model.

    Input/output models are inferred from the type hints when not given.

    Example:
        @create_tool(name="add_numbers", description="Adds two numbers")
        def add(input: AddInput) -> AddOutput:
            return AddOutput(result=input.x + input.y)
    """

    def decorator(fn: t.Callable[[t.Any], t.Any]) -> BaseTool[BaseModel, BaseModel]:
        tool_name = name or fn.__name__
        hints = t.get_type_hints(fn)
        params = list(inspect.signature(fn).parameters.values())

        inferred_input = input_model
        if inferred_input is None:
            if len(params) != 1:
                raise ValueError(
                    f"Function {fn.__name__} must have exactly one parameter, "
                    f"got {len(params)}"
                )
            inferred_input = hints.get(params[0].name)
            if inferred_input is None:
                raise ValueError(
                    f"Function {fn.__name__} parameter '{params[0].name}' must have a type hint"
                )

        inferred_output = output_model or hints.get("return")
        if inferred_output is None:
            raise ValueError(f"Function {fn.__name__} must have a return type hint")

        for kind, model in (("Input", inferred_input), ("Output", inferred_output)):
            if not (inspect.isclass(model) and issubclass(model, BaseModel)):
                raise TypeError(
                    f"{kind} type must be a pydantic BaseModel subclass, got {model}"
                )

        return _build_function_tool(
            fn,
            tool_name=tool_name,
            description=description or fn.__doc__ or "",
            input_model=inferred_input,
            output_model=inferred_output,
            call=fn,
            example_inputs=example_inputs,
            example_outputs=example_outputs,
        )

    return decorator
