"""Connection settings a session is created from."""

from __future__ import annotations

import ssl
from enum import StrEnum
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, ClassVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from webpdf_wsclient.errors import ClientResultException, WsclientError


if TYPE_CHECKING:
    from webpdf_wsclient.session.auth import CertificateMaterial


__all__ = [
    "ProxyOptions",
    "SessionContext",
    "TLSOptions",
    "TLSProtocol",
    "TransportVariant",
]


class TransportVariant(StrEnum):
    """Web service protocol used to talk to the server."""

    REST = "rest"
    SOAP = "soap"


class TLSProtocol(StrEnum):
    """TLS protocol versions a session can be pinned to."""

    TLS_V1 = "TLSv1"
    TLS_V1_1 = "TLSv1.1"
    TLS_V1_2 = "TLSv1.2"
    TLS_V1_3 = "TLSv1.3"

    @property
    def tls_version(self) -> ssl.TLSVersion:
        """Return the matching ``ssl.TLSVersion``."""
        return {
            TLSProtocol.TLS_V1: ssl.TLSVersion.TLSv1,
            TLSProtocol.TLS_V1_1: ssl.TLSVersion.TLSv1_1,
            TLSProtocol.TLS_V1_2: ssl.TLSVersion.TLSv1_2,
            TLSProtocol.TLS_V1_3: ssl.TLSVersion.TLSv1_3,
        }[self]


class _ContextModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TLSOptions(_ContextModel):
    """TLS settings for HTTPS sessions.

    Attributes:
        protocol: Pin the connection to exactly this protocol version.
            ``None`` negotiates the highest version both sides support.
        ca_file: PEM bundle of additional trusted certificates.
        client_certificate: PEM client certificate for mutual TLS.
        client_key: Private key for ``client_certificate``.
        reject_unauthorized: Verify the server certificate and hostname.
            Disable only for self-signed test servers.
    """

    protocol: TLSProtocol | None = None
    ca_file: Path | None = None
    client_certificate: Path | None = None
    client_key: Path | None = None
    reject_unauthorized: bool = True

    def create_ssl_context(
        self,
        certificate: CertificateMaterial | None = None,
    ) -> ssl.SSLContext:
        """Build the SSL context for a session.

        Args:
            certificate: Client certificate supplied by a credential provider.
                Takes precedence over ``client_certificate``.

        Returns:
            A configured SSL context.

        Raises:
            ClientResultException: TLS_INITIALIZATION_FAILURE if a certificate
                or CA file cannot be loaded or the protocol is unsupported.
        """
        try:
            context = ssl.create_default_context(
                cafile=str(self.ca_file) if self.ca_file else None,
            )
            if self.protocol is not None:
                context.minimum_version = self.protocol.tls_version
                context.maximum_version = self.protocol.tls_version
            if not self.reject_unauthorized:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            if certificate is not None:
                certificate.load_into(context)
            elif self.client_certificate is not None:
                context.load_cert_chain(
                    str(self.client_certificate),
                    str(self.client_key) if self.client_key else None,
                )
        except (OSError, ValueError, ssl.SSLError) as exc:
            raise ClientResultException(
                WsclientError.TLS_INITIALIZATION_FAILURE,
                cause=exc,
            ).append_message(str(exc)) from exc
        return context


class ProxyOptions(_ContextModel):
    """HTTP proxy used for every call of a session."""

    host: str
    port: int = Field(default=8080, ge=1, le=65535)
    scheme: str = "http"
    username: str | None = None
    password: SecretStr | None = None

    @property
    def url(self) -> str:
        """Return the proxy URL, including credentials if configured."""
        userinfo = ""
        if self.username:
            password = self.password.get_secret_value() if self.password else ""
            userinfo = f"{self.username}:{password}@"
        return f"{self.scheme}://{userinfo}{self.host}:{self.port}"


class SessionContext(_ContextModel):
    """Immutable connection settings of one session.

    Attributes:
        url: Absolute http(s) URL of the webPDF server, for example
            ``https://localhost:8080/webPDF/``. Normalized to end with ``/``.
        transport: Web service protocol of the session.
        tls: TLS settings; only used for ``https`` URLs.
        proxy: Proxy settings.
        timeout: Timeout in seconds applied to every call. ``None`` uses
            ``DEFAULT_TIMEOUT``.
        skew_time: Seconds before the actual expiry at which a session token
            is treated as expired and refreshed.

    Raises:
        ClientResultException: INVALID_URL if ``url`` is not an absolute
            http or https URL.
    """

    DEFAULT_TIMEOUT: ClassVar[float] = 60.0

    url: str
    transport: TransportVariant = TransportVariant.REST
    tls: TLSOptions | None = None
    proxy: ProxyOptions | None = None
    timeout: float | None = Field(default=None, gt=0)
    skew_time: float = Field(default=0.0, ge=0)

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, value: object) -> str:
        """Validate the server URL and append a trailing slash."""
        text = str(value).strip() if value is not None else ""
        try:
            parsed = httpx.URL(text)
        except (httpx.InvalidURL, TypeError) as exc:
            raise ClientResultException(
                WsclientError.INVALID_URL,
                cause=exc,
            ).append_message(text) from exc
        if parsed.scheme not in {"http", "https"} or not parsed.host:
            raise ClientResultException(WsclientError.INVALID_URL).append_message(
                text or "Empty server URL"
            )
        return text if text.endswith("/") else f"{text}/"

    @property
    def rest_url(self) -> str:
        """Return the base URL of the REST API."""
        return f"{self.url}rest/"

    @property
    def is_https(self) -> bool:
        """Return True if the server URL uses TLS."""
        return self.url.startswith("https://")

    @property
    def effective_timeout(self) -> float:
        """Return the configured timeout or the default."""
        return self.timeout if self.timeout is not None else self.DEFAULT_TIMEOUT
