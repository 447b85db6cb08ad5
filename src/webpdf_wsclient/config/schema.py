"""Configuration schema models for webpdf-wsclient.

Each section maps onto one part of a session: ``server`` and ``tls`` and
``proxy`` build a :class:`~webpdf_wsclient.session.SessionContext`,
``credentials`` selects a credential provider and ``observability``
configures logging.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - needed at runtime for Pydantic
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from webpdf_wsclient.observability.logging import LogLevel
from webpdf_wsclient.session.context import TLSProtocol, TransportVariant


__all__ = [
    "ConfigBaseModel",
    "CredentialsConfig",
    "LoggingConfig",
    "ObservabilityConfig",
    "ProxyConfig",
    "ServerConfig",
    "TLSConfig",
]


# ---------------------------------------------------------------------------
# Base Configuration Model
# ---------------------------------------------------------------------------


class ConfigBaseModel(BaseModel):
    """Base model for all configuration sections.

    Unknown keys are rejected so typos surface as validation errors.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


# ---------------------------------------------------------------------------
# Server Connection
# ---------------------------------------------------------------------------


class ServerConfig(ConfigBaseModel):
    """webPDF server connection configuration.

    Attributes:
        url: Base URL of the webPDF server.
        transport: Web service protocol. Only ``rest`` can open sessions.
        timeout: Per-call timeout in seconds, or None for the default.
        skew_time: Seconds before expiry at which session tokens are
            refreshed.
    """

    url: str = Field(
        default="http://localhost:8080/webPDF/",
        description="Base URL of the webPDF server",
    )
    transport: TransportVariant = Field(default=TransportVariant.REST)
    timeout: Annotated[
        float | None,
        Field(gt=0, description="Per-call timeout in seconds"),
    ] = None
    skew_time: Annotated[
        float,
        Field(ge=0, description="Token refresh skew in seconds"),
    ] = 0.0


class TLSConfig(ConfigBaseModel):
    """TLS configuration for ``https`` servers.

    Attributes:
        protocol: Pin the connection to this protocol version.
        ca_file: PEM bundle of additional trusted certificates.
        client_certificate: PEM client certificate for mutual TLS.
        client_key: Private key for ``client_certificate``.
        reject_unauthorized: Verify the server certificate and hostname.
    """

    protocol: TLSProtocol | None = None
    ca_file: Path | None = None
    client_certificate: Path | None = None
    client_key: Path | None = None
    reject_unauthorized: bool = True


class ProxyConfig(ConfigBaseModel):
    """HTTP proxy configuration. Disabled while ``host`` is unset."""

    host: str | None = None
    port: Annotated[
        int,
        Field(ge=1, le=65535, description="Proxy port"),
    ] = 8080
    scheme: str = Field(default="http")
    username: str | None = None
    password: SecretStr | None = None


class CredentialsConfig(ConfigBaseModel):
    """Credentials used to open sessions.

    A bearer ``token`` takes precedence over ``username``/``password``.
    Without either the session is anonymous.

    Attributes:
        username: webPDF user name.
        password: Password (supports ${VAR} interpolation).
        password_file: File containing the password.
        token: Pre-issued OAuth2 access token.
    """

    username: str | None = None
    password: SecretStr | None = None
    password_file: Path | None = None
    token: SecretStr | None = None


# ---------------------------------------------------------------------------
# Observability
# ---------------------------------------------------------------------------


class LoggingConfig(ConfigBaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO)

    @field_validator("level", mode="before")
    @classmethod
    def lowercase_level(cls, v: object) -> object:
        """Accept level names in any case."""
        if isinstance(v, str):
            return v.lower()
        return v


class ObservabilityConfig(ConfigBaseModel):
    """Observability configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
