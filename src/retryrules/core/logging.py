"""Structured logging for retryrules.

Every module logs through ``get_logger(component)``, which returns a thin
wrapper over structlog that tags each entry with ``component``. Libraries
embedding retryrules normally configure structlog themselves; the CLI calls
``configure_logging`` once at startup.

Example:
    from retryrules.core.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json", file_path=Path("rules.log"))

    log = get_logger("classifier")
    log.debug("exception_classified", action="RETRY")
    log.bind(rule_key="sqlState.40001").debug("rule_parsed")
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LogFormat = Literal["json", "console"]

# Set by configure_logging(); None while logging to stderr
_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """The file logs are written to, or None when logging to stderr."""
    return _current_log_path


def _utc_timestamp(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class RetryRulesLogger:
    """A component-scoped structlog logger.

    The structlog logger is looked up on every call rather than cached, so
    module-level loggers created at import time pick up a later
    configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    @classmethod
    def _with_context(cls, component: str, context: dict[str, Any]) -> RetryRulesLogger:
        logger = cls.__new__(cls)
        logger._component = component
        logger._context = context
        return logger

    def _bound(self) -> structlog.stdlib.BoundLogger:
        bound: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return bound

    def bind(self, **context: Any) -> RetryRulesLogger:
        """Return a copy of this logger with extra context fields."""
        return self._with_context(self._component, {**self._context, **context})

    def unbind(self, *keys: str) -> RetryRulesLogger:
        """Return a copy of this logger without the given context fields."""
        remaining = {k: v for k, v in self._context.items() if k not in keys}
        return self._with_context(self._component, remaining)

    def is_enabled_for(self, level: int) -> bool:
        """Whether an entry at ``level`` passes the root logger's threshold.

        Hot paths check this before building event fields.
        """
        return logging.getLogger().isEnabledFor(level)

    def debug(self, event: str, **kw: Any) -> None:
        self._bound().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._bound().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._bound().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._bound().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._bound().exception(event, **kw)


def _build_processors(renderer: Processor, timestamps: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
    ]
    if timestamps:
        chain.append(_utc_timestamp)
    chain += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]
    return chain


def _open_handler(file_path: Path | None, max_file_size_mb: int, backup_count: int) -> logging.Handler:
    if file_path is None:
        return logging.StreamHandler(sys.stderr)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        file_path,
        maxBytes=max_file_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Route structlog output through a single root handler.

    Replaces any handlers already on the root logger.

    Args:
        level: Threshold for the root logger and its handler. Case-insensitive.
        format: ``json`` for one JSON object per line, ``console`` for
            human-readable output (colored only when writing to stderr).
        file_path: Log to this file, rotating by size, instead of stderr.
        max_file_size_mb: Size at which the log file is rotated.
        backup_count: Rotated files to keep.
        include_timestamps: Add an ISO8601 UTC ``timestamp`` field.

    Raises:
        ValueError: On an unknown level or format.
    """
    global _current_log_path

    if format not in ("json", "console"):
        raise ValueError(f"unknown log format {format!r}; expected json or console")
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level {level!r}")

    handler = _open_handler(file_path, max_file_size_mb, backup_count)
    handler.setLevel(numeric_level)
    _current_log_path = file_path

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(numeric_level)

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=file_path is None)
    )
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> RetryRulesLogger:
    """Return a logger whose entries carry ``component=<component>``."""
    return RetryRulesLogger(component, **initial_context)


__all__ = [
    "LogFormat",
    "RetryRulesLogger",
    "configure_logging",
    "get_current_log_path",
    "get_logger",
]
