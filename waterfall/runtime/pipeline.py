from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Iterable, Tuple, TypeVar, Union

from .errors import PipelineDefinitionError

# First step is called with no arguments, every later step with the
# accumulator produced by its predecessor.
Step = Callable[..., Union[Awaitable[Any], Any]]
Pipeline = Tuple[Step, ...]

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class StepCall:
    """One invocation of a step inside a run."""

    index: int
    name: str
    attempt: int = 1

    @property
    def call_id(self) -> str:
        return f"{self.index}:{self.name}"


def step_name(step: Any) -> str:
    explicit = getattr(step, "NAME", None)
    if explicit:
        return str(explicit)
    if isinstance(step, partial):
        return step_name(step.func)
    for attr in ("__qualname__", "__name__"):
        value = getattr(step, attr, None)
        if value:
            return str(value)
    return step.__class__.__name__


def named(name: str) -> Callable[[F], F]:
    """Attach a display name used in logs and failures."""

    def decorator(fn: F) -> F:
        setattr(fn, "NAME", name)
        return fn

    return decorator


def as_pipeline(steps: Iterable[Step]) -> Pipeline:
    pipeline = tuple(steps)
    for index, step in enumerate(pipeline):
        if not callable(step):
            raise PipelineDefinitionError(
                f"Pipeline item {index} is not callable: {step!r}"
            )
    return pipeline


__all__ = ["Step", "Pipeline", "StepCall", "step_name", "named", "as_pipeline"]
