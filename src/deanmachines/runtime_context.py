"""
Per-request runtime context.

A RuntimeContext is a small key/value bag (``user-id``, ``session-id``,
``language``, ...) created for one request. Agent instruction templates and
tools read their preferences from it. Entry points freeze the context for the
duration of a call and publish it through a ContextVar, so tools executed deep
inside the agent loop can read it without threading it through every call.
"""

import typing as t
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar

from pydantic import BaseModel, ConfigDict, ValidationError

ModelT = t.TypeVar("ModelT", bound=BaseModel)


class RuntimeContext(Mapping[str, t.Any]):
    """Key/value store of per-request preferences."""

    def __init__(
        self, values: Mapping[str, t.Any] | None = None, frozen: bool = False
    ) -> None:
        self._values: dict[str, t.Any] = dict(values or {})
        self._frozen = frozen

    def __getitem__(self, key: str) -> t.Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set(self, key: str, value: t.Any) -> None:
        if self._frozen:
            raise TypeError(
                f"RuntimeContext is read-only during a call, cannot set '{key}'"
            )
        self._values[key] = value

    def has(self, key: str) -> bool:
        return key in self._values

    def to_dict(self) -> dict[str, t.Any]:
        return dict(self._values)

    def merged(self, **values: t.Any) -> "RuntimeContext":
        """Return a new context with extra values. Keyword names use underscores
        in place of dashes (``user_id`` -> ``user-id``)."""
        updated = self.to_dict()
        updated.update({key.replace("_", "-"): value for key, value in values.items()})
        return RuntimeContext(updated)

    def freeze(self) -> "RuntimeContext":
        if self._frozen:
            return self
        return RuntimeContext(self._values, frozen=True)

    def __repr__(self) -> str:
        return f"RuntimeContext({self._values!r}, frozen={self._frozen})"


ContextLike = RuntimeContext | Mapping[str, t.Any] | None

var_runtime_context: ContextVar[RuntimeContext | None] = ContextVar(
    "runtime_context", default=None
)


def as_runtime_context(value: ContextLike) -> RuntimeContext:
    if isinstance(value, RuntimeContext):
        return value
    return RuntimeContext(value)


def get_runtime_context() -> RuntimeContext:
    """Get the context of the current call, or an empty one outside a call."""
    return var_runtime_context.get() or RuntimeContext(frozen=True)


@contextmanager
def use_runtime_context(value: ContextLike) -> Iterator[RuntimeContext]:
    """Publish a frozen copy of the context for the enclosed block."""
    context = as_runtime_context(value).freeze()
    token = var_runtime_context.set(context)
    try:
        yield context
    finally:
        var_runtime_context.reset(token)


class ContextModel(BaseModel):
    """Base for typed views over a RuntimeContext.

    Fields declare their kebab-case key as alias, e.g.
    ``user_id: str = Field(default="anonymous", alias="user-id")``.
    Unknown keys are ignored so one context can serve several agents.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


def parse_context(model: type[ModelT], context: ContextLike) -> ModelT:
    """Validate a runtime context into a typed model.

    Raises:
        ValueError: If a present key has an invalid value.
    """
    values = as_runtime_context(context).to_dict()
    try:
        return model.model_validate(values)
    except ValidationError as e:
        raise ValueError(
            f"Invalid runtime context for {model.__name__}: {e}"
        ) from e
