from .errors import (
    PipelineDefinitionError,
    PipelineError,
    RetryableStepError,
    StepFailure,
)
from .hooks import HookRegistry
from .logging import logger, setup_logging
from .pipeline import Pipeline, Step, StepCall, as_pipeline, named, step_name
from .retrying import attempt, retry
from .runner import WaterfallRunner, run_waterfall

__all__ = [
    "PipelineDefinitionError",
    "PipelineError",
    "RetryableStepError",
    "StepFailure",
    "HookRegistry",
    "logger",
    "setup_logging",
    "Pipeline",
    "Step",
    "StepCall",
    "as_pipeline",
    "named",
    "step_name",
    "attempt",
    "retry",
    "WaterfallRunner",
    "run_waterfall",
]
