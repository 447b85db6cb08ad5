"""Observability helpers (structured logging)."""

from __future__ import annotations

from webpdf_wsclient.observability.logging import (
    LogLevel,
    clear_call_context,
    configure_logging,
    generate_call_id,
    get_call_id,
    get_logger,
    set_call_id,
)


__all__ = [
    "LogLevel",
    "clear_call_context",
    "configure_logging",
    "generate_call_id",
    "get_call_id",
    "get_logger",
    "set_call_id",
]
