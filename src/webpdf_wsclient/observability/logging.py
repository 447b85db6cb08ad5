"""Structured logging setup for webpdf-wsclient.

The library itself only ever calls ``structlog.get_logger(__name__)``;
applications opt in to this configuration through ``configure_logging``.
It renders:
- logfmt lines for machines, colored console output on a TTY
- ISO 8601 timestamps in UTC
- the current ``call_id`` from contextvars, to correlate all HTTP calls
  issued on behalf of one logical caller operation
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)
from structlog.processors import TimeStamper, add_log_level


if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

__all__ = [
    "LogLevel",
    "clear_call_context",
    "configure_logging",
    "generate_call_id",
    "get_call_id",
    "get_logger",
    "set_call_id",
]


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib_level(self) -> int:
        """Return the matching ``logging`` module level."""
        level: int = getattr(logging, self.name)
        return level


_call_id_var: ContextVar[str | None] = ContextVar("call_id", default=None)


def generate_call_id() -> str:
    """Return a short random call ID."""
    return uuid.uuid4().hex[:8]


def get_call_id() -> str | None:
    """Return the call ID of the current context, if any."""
    return _call_id_var.get()


def set_call_id(call_id: str | None = None) -> str:
    """Set the call ID for the current context.

    Args:
        call_id: The ID to use. A new one is generated if omitted.

    Returns:
        The call ID that was set.
    """
    if call_id is None:
        call_id = generate_call_id()

    _call_id_var.set(call_id)
    bind_contextvars(call_id=call_id)
    return call_id


def clear_call_context() -> None:
    """Forget the call ID and all other structlog contextvars."""
    _call_id_var.set(None)
    clear_contextvars()


def add_call_id(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Processor adding ``call_id`` to events that do not carry one yet."""
    del logger, method_name
    if "call_id" not in event_dict:
        call_id = get_call_id()
        if call_id is not None:
            event_dict["call_id"] = call_id
    return event_dict


def _create_renderer(
    *,
    colors: bool,
) -> structlog.dev.ConsoleRenderer | structlog.processors.LogfmtRenderer:
    if colors:
        return structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )
    return structlog.processors.LogfmtRenderer(
        key_order=["timestamp", "level", "event", "call_id", "session_id"],
        drop_missing=True,
        bool_as_flag=False,
    )


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    force_colors: bool | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Call once at application startup, e.g. from the CLI.

    Args:
        level: Minimum log level, as enum or case-insensitive string.
        force_colors: Force colored output on or off. Auto-detected from
            stderr if None.

    Example:
        >>> from webpdf_wsclient.observability import configure_logging
        >>> configure_logging("debug")
    """
    if isinstance(level, str):
        level = LogLevel(level.lower())

    if force_colors is not None:
        use_colors = force_colors
    else:
        use_colors = (
            sys.stderr is not None
            and hasattr(sys.stderr, "isatty")
            and sys.stderr.isatty()
        )

    processors: list[structlog.typing.Processor] = [
        merge_contextvars,
        add_call_id,
        add_log_level,
        TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _create_renderer(colors=use_colors),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level.to_stdlib_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO through stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level.to_stdlib_level(),
        force=True,
    )


def get_logger(
    name: str | None = None,
    **initial_context: object,
) -> structlog.BoundLogger:
    """Return a structlog logger, optionally with bound context.

    Example:
        >>> logger = get_logger(__name__, session_id="3f2a")
        >>> logger.info("document_uploaded", document_id="a1b2")
    """
    log: structlog.BoundLogger = structlog.get_logger(name)
    if initial_context:
        log = log.bind(**initial_context)
    return log
