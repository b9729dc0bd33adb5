"""Sequential async pipeline executor with per-step retries."""

from .config import RETRY_BUDGET, RETRY_DELAY_SEC, Config, RetrySettings, load_config
from .runtime import (
    HookRegistry,
    PipelineError,
    RetryableStepError,
    StepFailure,
    WaterfallRunner,
    attempt,
    named,
    retry,
    run_waterfall,
)

__all__ = [
    "RETRY_BUDGET",
    "RETRY_DELAY_SEC",
    "Config",
    "RetrySettings",
    "load_config",
    "HookRegistry",
    "PipelineError",
    "RetryableStepError",
    "StepFailure",
    "WaterfallRunner",
    "attempt",
    "named",
    "retry",
    "run_waterfall",
]
