"""Configuration for agentperm.

Pydantic-validated settings shared by the logging setup, the combinators'
default evaluation mode and the gRPC guard layer.

Direct os.environ/os.getenv usage is limited to ``load_config_from_env()``
and ``EnforcementMode.from_env()``. Everything else takes a config object.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "on")


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EvaluationMode(str, Enum):
    """How composite tests run their children.

    - ``sequential`` - one child at a time, stop at the first decisive result.
    - ``concurrent`` - start all children, return on the first decisive
      result; the rest run to completion in the background.
    """

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class EnforcementMode(str, Enum):
    """Three-state enforcement toggle for guards and interceptors.

    - ``off``     - no permission checks.
    - ``warn``    - check permissions, log denials as WARNING, but allow through.
    - ``enforce`` - check permissions, deny on failure (production).

    Set via env ``SECURITY_ENFORCEMENT=off|warn|enforce``.
    """

    OFF = "off"
    WARN = "warn"
    ENFORCE = "enforce"

    @classmethod
    def from_env(cls) -> EnforcementMode:
        """Read from ``SECURITY_ENFORCEMENT`` env var (default: enforce)."""
        import os

        raw = os.environ.get("SECURITY_ENFORCEMENT", "enforce").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            logger.warning(
                "Unknown SECURITY_ENFORCEMENT=%r, defaulting to 'enforce'",
                raw,
            )
            return cls.ENFORCE


class PermissionConfig(BaseModel):
    """Settings for an application using agentperm."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    evaluation_mode: EvaluationMode = Field(
        default=EvaluationMode.SEQUENTIAL,
        description="Default evaluation mode for composite tests built by guards",
    )
    enforcement: EnforcementMode = Field(
        default=EnforcementMode.ENFORCE,
        description="Enforcement mode for gRPC guards and interceptors",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Service name used in guard log messages",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("evaluation_mode", "enforcement", mode="before")
    @classmethod
    def lowercase_modes(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    model_config = {
        "extra": "forbid",
    }


def load_config_from_env() -> PermissionConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - PERMISSION_EVALUATION_MODE: sequential | concurrent
    - SECURITY_ENFORCEMENT: off | warn | enforce
    - SERVICE_NAME: Service name for guard log messages

    Returns:
        PermissionConfig with values from environment or defaults.
    """
    import os

    return PermissionConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
        evaluation_mode=os.getenv("PERMISSION_EVALUATION_MODE", "sequential"),
        enforcement=EnforcementMode.from_env(),
        service_name=os.getenv("SERVICE_NAME"),
    )


__all__ = [
    "EnforcementMode",
    "EvaluationMode",
    "LogLevel",
    "PermissionConfig",
    "load_config_from_env",
]
