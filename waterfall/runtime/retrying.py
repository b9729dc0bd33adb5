from __future__ import annotations

import asyncio
import inspect
from functools import partial, wraps
from typing import Any, Awaitable, Callable, Optional

from waterfall.config import RETRY_BUDGET, RETRY_DELAY_SEC

from .logging import attempt_scope, logger
from .pipeline import Step, step_name

SleepFn = Callable[[float], Awaitable[Any]]
RetryCallback = Callable[[int, Exception, float], None]


async def _invoke(step: Step, args: tuple) -> Any:
    result = step(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def attempt(
    step: Step,
    *args: Any,
    retries: int = RETRY_BUDGET,
    delay_sec: float = RETRY_DELAY_SEC,
    sleep: Optional[SleepFn] = None,
    on_retry: Optional[RetryCallback] = None,
    label: Optional[str] = None,
) -> Any:
    """Invoke ``step(*args)``, retrying up to ``retries`` times on failure.

    Every attempt receives the same ``args``. A fixed ``delay_sec`` pause
    separates a failed attempt from the next one; no pause follows the last
    attempt. When the budget is spent the exception raised by the final
    attempt propagates unchanged. Only ``Exception`` subclasses are retried,
    so task cancellation passes straight through.
    """
    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")

    sleep_fn = sleep or asyncio.sleep
    name = label or step_name(step)
    remaining = retries
    attempt_no = 0
    while True:
        attempt_no += 1
        with attempt_scope(attempt_no):
            try:
                return await _invoke(step, args)
            except Exception as err:
                if remaining == 0:
                    logger.error(
                        "Retry attempts exhausted | step={} attempts={} error={!r}",
                        name,
                        attempt_no,
                        err,
                    )
                    raise
                failure = err

            logger.warning(
                "Retrying after failure | step={} attempt={} delay={}s error={!r}",
                name,
                attempt_no,
                delay_sec,
                failure,
            )

        remaining -= 1
        # Outside the except block: a failing callback is never retried.
        if on_retry is not None:
            on_retry(attempt_no, failure, delay_sec)
        await sleep_fn(delay_sec)


def retry(
    retries: int = RETRY_BUDGET,
    delay_sec: float = RETRY_DELAY_SEC,
    sleep: Optional[SleepFn] = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Retry decorator for coroutine functions with a fixed delay between attempts."""

    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await attempt(
                partial(fn, *args, **kwargs),
                retries=retries,
                delay_sec=delay_sec,
                sleep=sleep,
                label=step_name(fn),
            )

        return wrapper

    return decorator


__all__ = ["attempt", "retry", "SleepFn", "RetryCallback"]
