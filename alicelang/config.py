"""Interpreter settings, validated with pydantic.

Values come from keyword arguments or from `ALICE_*` environment variables
(see `AliceConfig.from_env`).
"""

from __future__ import annotations
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

ENV_PREFIX = "ALICE_"

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class AliceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_call_depth: int = Field(default=100, ge=1, description="Deepest allowed chain of function calls")
    bench: bool = Field(default=False, description="Record and report phase timings")
    log_level: str = Field(default="WARNING", description="loguru level for interpreter diagnostics")
    prompt: str = Field(default="alice>>", description="Interactive prompt")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Accept any casing and check against loguru's level names."""
        level = str(v).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{v}' (expected one of {', '.join(_LOG_LEVELS)})")
        return level

    @classmethod
    def create(cls, **values: Any) -> "AliceConfig":
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "AliceConfig":
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in environ:
                values[name] = environ[key]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)
