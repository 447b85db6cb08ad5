"""Server administration through a session."""

from __future__ import annotations

from webpdf_wsclient.administration.manager import AdministrationManager
from webpdf_wsclient.administration.models import (
    KEYSTORE_FIELDS,
    ConfigurationMode,
    ConfigurationResult,
    ConfigurationType,
    FileDataStore,
    ResultError,
    ServerStatus,
    SessionTable,
)


__all__ = [
    "KEYSTORE_FIELDS",
    "AdministrationManager",
    "ConfigurationMode",
    "ConfigurationResult",
    "ConfigurationType",
    "FileDataStore",
    "ResultError",
    "ServerStatus",
    "SessionTable",
]
