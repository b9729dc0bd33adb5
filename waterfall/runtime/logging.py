from __future__ import annotations

import contextvars
import pathlib
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from loguru import logger as _base_logger

from waterfall.config import LoggingSettings

_run_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "run_id", default=None
)
_step_name: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "step_name", default=None
)
_attempt_no: contextvars.ContextVar[int] = contextvars.ContextVar(
    "attempt_no", default=0
)


def _default_extra(record: dict[str, Any]) -> None:
    step = _step_name.get() or "-"
    run_id = _run_id.get() or "-"
    attempt_value = _attempt_no.get()

    record["extra"].setdefault("step", step)
    record["extra"].setdefault("run_id", run_id)
    record["extra"].setdefault("attempt", attempt_value)

    context_parts = []
    if step != "-":
        context_parts.append(step)
    if run_id != "-":
        context_parts.append(f"@{run_id[:6]}")
    if attempt_value:
        context_parts.append(f"A{attempt_value}")

    record["extra"]["context"] = " ".join(context_parts) if context_parts else "-"


def setup_logging(settings: LoggingSettings) -> None:
    """Configure loguru sinks for console + structured file output."""
    _base_logger.remove()

    console_format = (
        "<green>{time:HH:mm:ss}</green> "
        "<level>{level.icon} {level.name:<6}</level> "
        "{extra[context]:<24} "
        "<level>{message}</level>"
    )

    _base_logger.configure(patcher=_default_extra)
    _base_logger.add(
        sys.stderr,
        level=settings.level,
        format=console_format,
        filter=_console_filter,
    )

    if not settings.file:
        return

    log_path = pathlib.Path(settings.file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _purge_old_logs(log_path)
    _base_logger.add(
        log_path,
        level=settings.level,
        rotation="10 MB",
        compression="zip",
        enqueue=True,
        serialize=True,
    )


logger = _base_logger


def new_run_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def run_scope(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind a run id for every record emitted while the pipeline runs."""
    token = _run_id.set(run_id or new_run_id())
    try:
        yield _run_id.get()
    finally:
        _run_id.reset(token)


@contextmanager
def log_context(step: str) -> Iterator[Any]:
    step_token = _step_name.set(step)
    try:
        yield logger.bind(step=step)
    finally:
        _step_name.reset(step_token)


@contextmanager
def attempt_scope(attempt: int) -> Iterator[None]:
    token = _attempt_no.set(max(1, attempt))
    try:
        yield
    finally:
        _attempt_no.reset(token)


def current_context() -> dict[str, Any]:
    return {
        "run_id": _run_id.get(),
        "step": _step_name.get(),
        "attempt": _attempt_no.get(),
    }


def _purge_old_logs(log_path: pathlib.Path) -> None:
    """Delete previous log files (including rotations) before a new run."""
    if not log_path.parent.exists():
        return
    for candidate in log_path.parent.glob(f"{log_path.name}*"):
        if candidate.is_file():
            try:
                candidate.unlink()
            except OSError:
                # Locked or already gone; the new sink appends instead.
                pass


def _console_filter(record: dict[str, Any]) -> bool:
    """Filter console logs to show only business events."""
    module = record.get("module", "")
    func = record.get("function", "")

    business_points = {
        ("runner", "run"),
        ("retrying", "attempt"),
        ("main", "main"),
    }
    if (module, func) in business_points:
        return True

    message = record.get("message", "")
    return message.startswith("[BUSINESS]")


__all__ = [
    "logger",
    "setup_logging",
    "run_scope",
    "log_context",
    "attempt_scope",
    "current_context",
    "new_run_id",
]
