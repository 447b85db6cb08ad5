"""Error codes, exception hierarchy and failure translation."""

from __future__ import annotations

from webpdf_wsclient.errors.codes import WsclientError
from webpdf_wsclient.errors.exceptions import (
    AuthResultException,
    ClientResultException,
    ResultException,
    ServerResultException,
)
from webpdf_wsclient.errors.translator import (
    translate_exception,
    translate_response,
    translate_transport_error,
)


__all__ = [
    "AuthResultException",
    "ClientResultException",
    "ResultException",
    "ServerResultException",
    "WsclientError",
    "translate_exception",
    "translate_response",
    "translate_transport_error",
]
