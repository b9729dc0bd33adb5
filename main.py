from __future__ import annotations

import argparse
import asyncio
import importlib
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from waterfall.config import Config, RetrySettings, load_config
from waterfall.runtime import (
    Pipeline,
    StepFailure,
    WaterfallRunner,
    as_pipeline,
    logger,
    setup_logging,
    step_name,
)

DEFAULT_CONFIG = Path("config.yaml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Waterfall pipeline runner")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the config.yaml file (defaults to ./config.yaml if present)",
    )
    parser.add_argument(
        "--pipeline",
        type=str,
        required=True,
        help="Pipeline to run as module:attr, a list of steps or a factory returning one",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Override the per-step retry budget",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Override the delay between attempts, in seconds",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve the pipeline and list its steps without running them",
    )
    return parser


def resolve_config(path: Path | None) -> Config:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG.exists():
        return load_config(DEFAULT_CONFIG)
    return Config()


def resolve_pipeline(target: str) -> Pipeline:
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Pipeline must be given as module:attr, got {target!r}")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    if callable(obj):
        obj = obj()
    return as_pipeline(obj)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    load_dotenv()

    config = resolve_config(args.config)
    updates = {}
    if args.retries is not None:
        updates["retries"] = args.retries
    if args.delay is not None:
        updates["delay_sec"] = args.delay
    if updates:
        try:
            retry_settings = RetrySettings.model_validate(
                {**config.retry.model_dump(), **updates}
            )
        except ValidationError as exc:
            parser.error(f"invalid retry override: {exc}")
        config = config.model_copy(update={"retry": retry_settings})

    setup_logging(config.logging)

    try:
        pipeline = resolve_pipeline(args.pipeline)
    except (ImportError, AttributeError, ValueError, TypeError) as exc:
        logger.error("Cannot resolve pipeline | target={} error={}", args.pipeline, exc)
        return 2

    if args.dry_run:
        for index, step in enumerate(pipeline):
            logger.info("Dry-run | step {}: {}", index, step_name(step))
        return 0

    runner = WaterfallRunner(retry=config.retry)
    try:
        result = asyncio.run(runner.run(pipeline))
    except StepFailure as exc:
        logger.error(
            "Pipeline aborted | step={} attempts={} cause={!r}",
            exc.step_name,
            exc.attempts,
            exc.cause,
        )
        return 1

    logger.info("Pipeline result | {!r}", result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
