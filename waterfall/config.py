from __future__ import annotations

import pathlib
from functools import lru_cache
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

# 3 retries after the first failure, 2000 ms apart.
RETRY_BUDGET = 3
RETRY_DELAY_SEC = 2.0

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class RetrySettings(BaseModel):
    retries: int = Field(RETRY_BUDGET, ge=0)
    delay_sec: float = Field(RETRY_DELAY_SEC, ge=0.0)


class LoggingSettings(BaseModel):
    level: str = Field("INFO")
    file: Optional[str] = Field("./logs/last_run.log")

    @field_validator("level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level


class Config(BaseModel):
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _read_yaml(path: pathlib.Path) -> Dict:
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


@lru_cache()
def load_config(path: str | pathlib.Path = "config.yaml") -> Config:
    config_path = pathlib.Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    raw = _read_yaml(config_path)
    try:
        return Config.model_validate(raw)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "Config",
    "RetrySettings",
    "LoggingSettings",
    "RETRY_BUDGET",
    "RETRY_DELAY_SEC",
    "load_config",
]
