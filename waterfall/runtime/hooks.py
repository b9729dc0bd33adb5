from __future__ import annotations

from typing import Any, Callable, Iterable, List

from .pipeline import StepCall


HookFn = Callable[[StepCall], None]
ResultHookFn = Callable[[StepCall, Any], None]
RetryHookFn = Callable[[StepCall, Exception, float], None]
ErrorHookFn = Callable[[StepCall, Exception], None]


class HookRegistry:
    """Registry of callbacks executed around each step of a run."""

    def __init__(
        self,
        before_step: Iterable[HookFn] | None = None,
        after_step: Iterable[ResultHookFn] | None = None,
        on_retry: Iterable[RetryHookFn] | None = None,
        on_error: Iterable[ErrorHookFn] | None = None,
    ) -> None:
        self._before_step: List[HookFn] = list(before_step or [])
        self._after_step: List[ResultHookFn] = list(after_step or [])
        self._on_retry: List[RetryHookFn] = list(on_retry or [])
        self._on_error: List[ErrorHookFn] = list(on_error or [])

    def register_before(self, fn: HookFn) -> None:
        self._before_step.append(fn)

    def register_after(self, fn: ResultHookFn) -> None:
        self._after_step.append(fn)

    def register_retry(self, fn: RetryHookFn) -> None:
        self._on_retry.append(fn)

    def register_error(self, fn: ErrorHookFn) -> None:
        self._on_error.append(fn)

    def run_before(self, call: StepCall) -> None:
        for fn in self._before_step:
            fn(call)

    def run_after(self, call: StepCall, result: Any) -> None:
        for fn in self._after_step:
            fn(call, result)

    def run_retry(self, call: StepCall, error: Exception, delay_sec: float) -> None:
        for fn in self._on_retry:
            fn(call, error, delay_sec)

    def run_error(self, call: StepCall, error: Exception) -> None:
        for fn in self._on_error:
            fn(call, error)


__all__ = ["HookRegistry", "HookFn", "ResultHookFn", "RetryHookFn", "ErrorHookFn"]
