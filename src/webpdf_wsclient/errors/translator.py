"""Classify any failure surface into the ``ResultException`` hierarchy.

None of the functions in this module raise: they build and return the
exception the caller should raise, so callers only ever branch on one
hierarchy.
"""

from __future__ import annotations

import contextlib
import json
import ssl
from typing import Any

import httpx
from pydantic import ValidationError

from webpdf_wsclient.errors.codes import WsclientError
from webpdf_wsclient.errors.exceptions import (
    AuthResultException,
    ClientResultException,
    ResultException,
    ServerResultException,
)


__all__ = [
    "translate_exception",
    "translate_response",
    "translate_transport_error",
]


_AUTH_STATUS_CODES = frozenset({401, 403})


def _read_body(response: httpx.Response) -> bytes:
    try:
        return response.content
    except httpx.ResponseNotRead:
        return b""


def _error_payload(response: httpx.Response) -> dict[str, Any] | None:
    """Return the structured error body, if the response carries one."""
    content_type = response.headers.get("Content-Type", "")
    if "json" not in content_type.lower():
        return None
    body = _read_body(response)
    if not body:
        return None
    payload = None
    with contextlib.suppress(ValueError):
        payload = json.loads(body)
    return payload if isinstance(payload, dict) else None


def _server_error_code(payload: dict[str, Any]) -> int | None:
    code = payload.get("errorCode")
    if isinstance(code, bool) or not isinstance(code, int) or code == 0:
        return None
    return code


def translate_response(response: httpx.Response) -> ResultException | None:
    """Translate an HTTP response into an exception.

    Args:
        response: The response to inspect. Streamed responses should be read
            first, otherwise their body is treated as empty.

    Returns:
        None for 2xx responses, otherwise the exception to raise:
        ``AuthResultException`` for 401/403, ``ServerResultException`` with
        the server's code for structured error bodies, and
        ``ServerResultException(HTTP_CUSTOM_ERROR)`` for anything else.
    """
    if response.is_success:
        return None

    status = response.status_code
    payload = _error_payload(response)

    if status in _AUTH_STATUS_CODES:
        message = None
        if payload is not None and payload.get("errorMessage"):
            message = str(payload["errorMessage"])
        return AuthResultException(
            message=message or f"Authentication failed (status={status})",
            http_status=status,
        )

    if payload is not None:
        code = _server_error_code(payload)
        if code is not None:
            stack_trace = payload.get("stackTrace")
            return ServerResultException(
                str(payload.get("errorMessage") or ""),
                error_code=code,
                stack_trace_message=str(stack_trace) if stack_trace else None,
                http_status=status,
            )

    text = _read_body(response).decode("utf-8", errors="replace").strip()
    if payload is not None or not text:
        text = response.reason_phrase or f"HTTP error {status}"
    return ServerResultException(
        text,
        client_error=WsclientError.HTTP_CUSTOM_ERROR,
        http_status=status,
    )


def translate_transport_error(exc: BaseException) -> ServerResultException:
    """Wrap a transport failure (DNS, refused, TLS, timeout) as unreachable."""
    return ServerResultException.unreachable(exc)


def translate_exception(exc: BaseException) -> ResultException:
    """Map an arbitrary exception onto the ``ResultException`` hierarchy.

    Args:
        exc: Any exception raised while executing a call.

    Returns:
        ``exc`` itself if it already is a ``ResultException``; otherwise the
        closest matching client or server exception, with ``exc`` as cause.
    """
    if isinstance(exc, ResultException):
        return exc
    if isinstance(exc, httpx.UnsupportedProtocol | httpx.InvalidURL):
        return ClientResultException(WsclientError.INVALID_URL, cause=exc)
    if isinstance(exc, httpx.TransportError | ssl.SSLError | OSError):
        return translate_transport_error(exc)
    if isinstance(exc, ValidationError | ValueError):
        return ClientResultException(
            WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
            cause=exc,
        ).append_message(str(exc))
    return ClientResultException(
        WsclientError.UNKNOWN_EXCEPTION,
        cause=exc,
    ).append_message(str(exc))
