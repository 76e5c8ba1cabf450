"""Structured logging for address space builds.

structlog renders either human-readable console lines or JSON (for batch
imports whose output is collected). All output goes to stderr; stdout is
reserved for CLI results.

Loader code binds the document being processed with ``LogContext`` so every
event emitted while ingesting it carries a ``document`` field.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from contextvars import Token

LEVEL_ENV_VAR = "UA_LOG_LEVEL"
FORMAT_ENV_VAR = "UA_LOG_FORMAT"


def _setting(value: str | Enum | None, env_var: str, default: str) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return value or os.environ.get(env_var, default)


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderers(log_format: str) -> list[Any]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def setup_logging(
    level: str | Enum | None = None,
    log_format: str | Enum | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Falls back to ``UA_LOG_LEVEL``,
            then INFO.
        log_format: ``console`` or ``json``. Falls back to ``UA_LOG_FORMAT``,
            then console.
    """
    level_name = _setting(level, LEVEL_ENV_VAR, "INFO").upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=[*_shared_processors(), *_renderers(_setting(log_format, FORMAT_ENV_VAR, "console"))],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class LogContext:
    """Bind key/value pairs to every log event inside a ``with`` block.

    Nested contexts restore the outer values on exit.
    """

    def __init__(self, **kwargs: Any) -> None:
        self._context = kwargs
        self._tokens: dict[str, Token[Any]] = {}

    def __enter__(self) -> LogContext:
        self._tokens = dict(structlog.contextvars.bind_contextvars(**self._context))
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}


__all__ = ["LogContext", "get_logger", "setup_logging"]
