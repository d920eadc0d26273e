"""Pydantic models describing the KataPass configuration.

These models mirror the structure of ``configs/katapass.yaml``. The ``engine``
and ``intercept`` sections are required, and so are the fields that have no
sensible default (engine path, engine arguments, intercept prefix), so a
missing value results in a clear validation error at startup.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1)
    # Single space-delimited string, as in the legacy INI files.
    args: str

    def argv(self) -> list[str]:
        """Return the full command line used to launch the engine."""
        return [self.path, *self.args.split()]


class InterceptConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prefix: str = Field(min_length=1)
    pass_threshold: float = Field(0.5, ge=0.0, le=1.0)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level


class ConfigModel(BaseModel):
    """Complete configuration model."""

    model_config = ConfigDict(extra="forbid")

    engine: EngineConfig
    intercept: InterceptConfig
    logging: LoggingConfig = LoggingConfig()
