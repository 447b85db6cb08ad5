"""Pydantic models for the administration REST payloads.

The configuration trees themselves are large and version specific; they are
handled as plain JSON objects and only their envelopes are modelled.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from webpdf_wsclient.documents.models import WebpdfBaseModel


__all__ = [
    "KEYSTORE_FIELDS",
    "ConfigurationMode",
    "ConfigurationResult",
    "ConfigurationType",
    "FileDataStore",
    "ResultError",
    "ServerStatus",
    "SessionTable",
]


class ConfigurationType(StrEnum):
    """Configuration sections that can be read and written."""

    APPLICATION = "application"
    SERVER = "server"
    USER = "user"
    LOG = "log"


class ConfigurationMode(StrEnum):
    """Whether a configuration update is applied or only validated."""

    WRITE = "write"
    VALIDATE = "validate"


# Keystores the server expects to be echoed back with each update.
KEYSTORE_FIELDS: dict[ConfigurationType, tuple[str, ...]] = {
    ConfigurationType.APPLICATION: ("globalKeyStore",),
    ConfigurationType.SERVER: ("connectorKeyStore", "trustStoreKeyStore"),
    ConfigurationType.USER: (),
    ConfigurationType.LOG: (),
}


class ResultError(WebpdfBaseModel):
    """Error section of a configuration result. Code 0 means success."""

    code: int = 0
    message: str = ""


class ConfigurationResult(WebpdfBaseModel):
    """Answer to a configuration update or validation."""

    error: ResultError | None = None

    @property
    def succeeded(self) -> bool:
        """Return True if the server reported error code 0."""
        return self.error is not None and self.error.code == 0


class ServerStatus(WebpdfBaseModel):
    """Status report of the server and its web services."""

    version: str | None = None
    server: dict[str, Any] | None = None
    webservices: dict[str, Any] | None = None


class FileDataStore(WebpdfBaseModel):
    """A file in one of the server's data stores."""

    file_group: str = Field(alias="fileGroup")
    file_name: str | None = Field(default=None, alias="fileName")
    content: str | None = Field(default=None, repr=False)


class SessionTable(WebpdfBaseModel):
    """The sessions currently open on the server."""

    sessions: list[dict[str, Any]] = Field(default_factory=list)
