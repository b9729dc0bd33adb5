from __future__ import annotations

import time
from typing import Any, Iterable, Optional

from waterfall.config import RetrySettings

from .errors import StepFailure
from .hooks import HookRegistry
from .logging import log_context, logger, run_scope
from .pipeline import Step, StepCall, as_pipeline, step_name
from .retrying import SleepFn, attempt


class WaterfallRunner:
    """Run steps strictly in order, feeding each result into the next step.

    All state of a run lives inside :meth:`run`, so a single runner can
    serve any number of concurrent runs.
    """

    def __init__(
        self,
        retry: Optional[RetrySettings] = None,
        hooks: Optional[HookRegistry] = None,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self.retry_settings: RetrySettings = retry or RetrySettings()
        self.hooks = hooks or HookRegistry()
        self._sleep = sleep

    async def run(self, pipeline: Iterable[Step]) -> Any:
        steps = as_pipeline(pipeline)
        if not steps:
            logger.info("[BUSINESS] Empty pipeline | nothing to run")
            return None

        retries = self.retry_settings.retries
        delay_sec = self.retry_settings.delay_sec

        with run_scope():
            logger.info(
                "Pipeline started | steps={} retries={} delay={}s",
                len(steps),
                retries,
                delay_sec,
            )
            started_at = time.perf_counter()
            result: Any = None
            for index, step in enumerate(steps):
                args = () if index == 0 else (result,)
                result = await self._run_step(index, step, args, retries, delay_sec)

            logger.info(
                "Pipeline completed | steps={} duration={:.2f}s",
                len(steps),
                time.perf_counter() - started_at,
            )
            return result

    async def _run_step(
        self,
        index: int,
        step: Step,
        args: tuple,
        retries: int,
        delay_sec: float,
    ) -> Any:
        name = step_name(step)
        attempts = 1
        hook_error: Optional[Exception] = None

        def _on_retry(attempt_no: int, error: Exception, delay: float) -> None:
            nonlocal attempts, hook_error
            try:
                self.hooks.run_retry(StepCall(index, name, attempt_no), error, delay)
            except Exception as exc:
                hook_error = exc
                raise
            attempts = attempt_no + 1

        with log_context(name):
            self.hooks.run_before(StepCall(index, name))
            started_at = time.perf_counter()
            try:
                value = await attempt(
                    step,
                    *args,
                    retries=retries,
                    delay_sec=delay_sec,
                    sleep=self._sleep,
                    on_retry=_on_retry,
                    label=name,
                )
            except Exception as err:
                if err is hook_error:
                    raise
                self.hooks.run_error(StepCall(index, name, attempts), err)
                logger.error(
                    "[BUSINESS] Step failed after retries | index={} attempts={}",
                    index,
                    attempts,
                )
                raise StepFailure(index, name, attempts, err) from err

            self.hooks.run_after(StepCall(index, name, attempts), value)
            logger.info(
                "[BUSINESS] Step completed | index={} attempts={} duration={:.2f}s",
                index,
                attempts,
                time.perf_counter() - started_at,
            )
            return value


async def run_waterfall(
    pipeline: Iterable[Step],
    *,
    retry: Optional[RetrySettings] = None,
    hooks: Optional[HookRegistry] = None,
    sleep: Optional[SleepFn] = None,
) -> Any:
    """Run ``pipeline`` once and return the last step's result."""
    runner = WaterfallRunner(retry=retry, hooks=hooks, sleep=sleep)
    return await runner.run(pipeline)


__all__ = ["WaterfallRunner", "run_waterfall"]
