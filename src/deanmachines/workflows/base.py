"""
Sequential workflows over agents.

A Workflow is an ordered list of steps. Each step is an async function that
takes the workflow state (a pydantic model) and returns the next state. A step
that raises stops the run with a WorkflowError naming the step.
"""

import typing as t
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from loguru import logger
from pydantic import BaseModel

from deanmachines.observability.langfuse_tracing import langfuse_span
from deanmachines.observability.monitoring import measure_time

StateT = t.TypeVar("StateT", bound=BaseModel)


class WorkflowError(Exception):
    """Raised when a workflow step fails."""

    def __init__(self, step_id: str, message: str) -> None:
        super().__init__(f"Step '{step_id}' failed: {message}")
        self.step_id = step_id


class AgentRunError(Exception):
    """Raised by a step when its agent did not complete."""


@dataclass(frozen=True)
class WorkflowStep(t.Generic[StateT]):
    id: str
    description: str
    run: Callable[[StateT], Awaitable[StateT]]


class Workflow(t.Generic[StateT]):
    def __init__(self, id: str, description: str, steps: Sequence[WorkflowStep[StateT]]) -> None:
        if not steps:
            raise ValueError("A workflow needs at least one step")
        step_ids = [step.id for step in steps]
        if len(set(step_ids)) != len(step_ids):
            raise ValueError(f"Duplicate step ids in workflow '{id}': {step_ids}")
        self.id = id
        self.description = description
        self.steps = tuple(steps)

    async def run(self, state: StateT, run_id: str = "") -> StateT:
        """Run every step in order.

        Raises:
            WorkflowError: The first step that failed, chained to its cause.
        """
        log = logger.bind(workflow=self.id, run_id=run_id)
        with langfuse_span(f"workflow:{self.id}", metadata={"run_id": run_id}) as span:
            for step in self.steps:
                log.info("[{}] Step started | {}", run_id or self.id, step.id)
                try:
                    async with measure_time(f"workflow.{self.id}.{step.id}"):
                        state = await step.run(state)
                except Exception as e:
                    raise WorkflowError(step.id, str(e)) from e
            if span is not None:
                span.update(output={"steps": [step.id for step in self.steps]})
        return state

    def __repr__(self) -> str:
        return f"Workflow(id={self.id!r}, steps={[step.id for step in self.steps]})"
