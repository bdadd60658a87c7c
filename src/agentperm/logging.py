"""Logging utilities for agentperm.

This module provides:
- Logging configuration from PermissionConfig
- Safe, length-bounded previews of values for log output
- A formatter that surfaces permission decision fields
- A logger adapter that binds the agent kind being evaluated
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import LogLevel, PermissionConfig

# Record attributes set by the logging module itself
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation; ``""`` for None.
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"
    return s


class PermissionLogFormatter(logging.Formatter):
    """Formatter that renders permission decisions as JSON or plain text.

    Extra fields passed through ``extra=`` (``permission_code``,
    ``decision``, ``agent`` and anything else) are included with a safe
    preview of their value.
    """

    def __init__(self, json_format: bool = True, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extras = {
            key: safe_preview(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        log_data.update(extras)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            log_data["level"],
            log_data["logger"],
        ]
        parts.extend(f"{key}={value}" for key, value in extras.items())
        parts.append(f": {log_data['message']}")
        if "exception" in log_data:
            parts.append("\n" + log_data["exception"])
        return " ".join(parts)


class PermissionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds the agent label to every record.

    Usage:
        logger = get_logger(__name__, agent="user")
        logger.info("checked", extra={"permission_code": "post.edit"})
    """

    def __init__(self, logger: logging.Logger, agent: Optional[str] = None):
        super().__init__(logger, {})
        self.agent = agent

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        agent = kwargs.pop("agent", self.agent)
        extra = dict(kwargs.get("extra") or {})
        if agent:
            extra.setdefault("agent", agent)
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    config: Optional[PermissionConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger for an application using agentperm.

    Args:
        config: PermissionConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    log_level = _LEVELS.get(config.log_level, logging.INFO)
    use_json = config.log_json if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Avoid duplicate handlers on repeated setup
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(PermissionLogFormatter(json_format=use_json))
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_logger(name: str, agent: Optional[str] = None) -> PermissionLoggerAdapter:
    """Get a logger adapter bound to an agent label.

    Args:
        name: Logger name (typically __name__)
        agent: Agent kind the logger reports for (e.g. ``"user"``)
    """
    return PermissionLoggerAdapter(logging.getLogger(name), agent=agent)


__all__ = [
    "PermissionLogFormatter",
    "PermissionLoggerAdapter",
    "get_logger",
    "safe_preview",
    "setup_logging",
]
