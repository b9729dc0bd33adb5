from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base exception for pipeline runtime failures."""


class RetryableStepError(PipelineError):
    """Raised by a step to signal a logical failure; retried like any error."""

    def __init__(self, message: str, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)


class PipelineDefinitionError(PipelineError, TypeError):
    """Raised when a pipeline contains something that is not a step."""


class StepFailure(PipelineError):
    """Raised when a step has exhausted its retry budget."""

    def __init__(
        self,
        step_index: int,
        step_name: str,
        attempts: int,
        cause: BaseException,
    ) -> None:
        self.step_index = step_index
        self.step_name = step_name
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Step {step_index} ({step_name}) failed after {attempts} attempt(s): {cause!r}"
        )


__all__ = [
    "PipelineError",
    "RetryableStepError",
    "PipelineDefinitionError",
    "StepFailure",
]
