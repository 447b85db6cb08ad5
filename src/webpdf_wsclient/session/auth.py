"""Authentication material and credential providers.

A session asks its ``CredentialProvider`` for material before every call.
Providers swap their material atomically under an ``asyncio.Lock``, so
concurrent calls of one session never observe a half-refreshed token.
"""

from __future__ import annotations

import asyncio
import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from webpdf_wsclient.errors import (
    AuthResultException,
    ClientResultException,
    ResultException,
    WsclientError,
)


if TYPE_CHECKING:
    import ssl

    from webpdf_wsclient.session.session import Session


__all__ = [
    "AnonymousMaterial",
    "AnonymousProvider",
    "AuthMaterial",
    "BasicMaterial",
    "BearerTokenProvider",
    "CertificateMaterial",
    "CertificateProvider",
    "CredentialProvider",
    "OAuth2Provider",
    "OAuth2Token",
    "SessionToken",
    "UserProvider",
]

logger = structlog.get_logger(__name__)


# -----------------------------------------------------------------------------
# Authentication material
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AnonymousMaterial:
    """No credentials at all."""

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization headers for this material."""
        return {}


@dataclass(frozen=True, slots=True)
class BasicMaterial:
    """User name and password, sent with HTTP Basic authentication."""

    username: str
    password: str = field(repr=False)

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization headers for this material."""
        raw = f"{self.username}:{self.password}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}


@dataclass(frozen=True, slots=True)
class OAuth2Token:
    """Bearer access token issued by an external authorization server.

    Attributes:
        token: The raw access token.
        expires_at: When the token expires, if known.
    """

    token: str = field(repr=False)
    expires_at: datetime | None = None

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization headers for this material."""
        return {"Authorization": f"Bearer {self.token}"}

    def is_expired(self, skew_time: float = 0.0) -> bool:
        """Return True if the token expires within ``skew_time`` seconds."""
        if self.expires_at is None:
            return False
        return datetime.now(UTC) + timedelta(seconds=skew_time) >= self.expires_at


@dataclass(frozen=True, slots=True)
class SessionToken:
    """Access and refresh token issued by the webPDF login endpoint.

    Attributes:
        token: The access token.
        refresh_token: Token that may be exchanged for a new access token.
        expires_in: Lifetime of ``token`` in seconds.
        issued_at: When the token was received.
    """

    token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    expires_in: int
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def expiration(self) -> datetime:
        """Return the moment the access token expires."""
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_expired(self, skew_time: float = 0.0) -> bool:
        """Return True if the token expires within ``skew_time`` seconds."""
        return datetime.now(UTC) + timedelta(seconds=skew_time) >= self.expiration

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization headers for this material."""
        return {"Authorization": f"Bearer {self.token}"}

    def refresh_material(self) -> OAuth2Token:
        """Return the refresh token as bearer material for the refresh call."""
        return OAuth2Token(self.refresh_token)


@dataclass(frozen=True, slots=True)
class CertificateMaterial:
    """Client TLS certificate used for mutual TLS authentication.

    Attributes:
        certificate: PEM file with the client certificate (and key, if
            ``key`` is omitted).
        key: PEM file with the private key.
        password: Password of the private key.
    """

    certificate: Path
    key: Path | None = None
    password: str | None = field(default=None, repr=False)

    def auth_headers(self) -> dict[str, str]:
        """Return the Authorization headers for this material."""
        return {}

    def load_into(self, context: ssl.SSLContext) -> None:
        """Load the certificate chain into an SSL context."""
        context.load_cert_chain(
            str(self.certificate),
            str(self.key) if self.key else None,
            self.password,
        )


AuthMaterial = (
    AnonymousMaterial | BasicMaterial | OAuth2Token | SessionToken | CertificateMaterial
)


class _TokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str = Field(min_length=1)
    refresh_token: str = Field(default="", alias="refreshToken")
    expires_in: int = Field(default=0, alias="expiresIn")

    def to_session_token(self) -> SessionToken:
        return SessionToken(self.token, self.refresh_token, self.expires_in)


# -----------------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------------


class CredentialProvider(ABC):
    """Supplies authentication material to a session.

    ``provide`` is called before every outgoing call and must return valid
    material, refreshing expired material transparently. ``refresh`` forces
    new material. Both raise ``AuthResultException`` on failure.
    """

    @abstractmethod
    async def provide(self, session: Session) -> AuthMaterial:
        """Return material to authorize the next call of ``session``."""

    @abstractmethod
    async def refresh(self, session: Session) -> AuthMaterial:
        """Replace the current material with fresh material and return it."""

    @property
    def client_certificate(self) -> CertificateMaterial | None:
        """Return the client certificate to present during the TLS handshake."""
        return None


class AnonymousProvider(CredentialProvider):
    """Provider for servers that allow anonymous access."""

    _MATERIAL = AnonymousMaterial()

    async def provide(self, session: Session) -> AuthMaterial:  # noqa: ARG002
        """Return anonymous material."""
        return self._MATERIAL

    async def refresh(self, session: Session) -> AuthMaterial:  # noqa: ARG002
        """Return anonymous material."""
        return self._MATERIAL


class UserProvider(CredentialProvider):
    """Logs a webPDF user in and keeps the session token fresh.

    The first ``provide`` exchanges the user's credentials for a
    ``SessionToken`` at the login endpoint. Later calls reuse that token and
    refresh it at the refresh endpoint once it is about to expire (honouring
    the session's ``skew_time``).

    Example:
        ```python
        provider = UserProvider("admin", "secret")
        async with await create_session(context, provider) as session:
            ...
        ```
    """

    LOGIN_PATH = "authentication/user/login/"
    REFRESH_PATH = "authentication/user/refresh/"

    def __init__(
        self,
        username: str,
        password: str,
        *,
        session_token: SessionToken | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            username: Name of the webPDF user.
            password: Password of the webPDF user.
            session_token: Token of a previous login, to resume a session
                without logging in again.

        Raises:
            ClientResultException: INVALID_AUTH_MATERIAL if the user name or
                password is empty.
        """
        if not username or not password:
            raise ClientResultException(WsclientError.INVALID_AUTH_MATERIAL)
        self._credentials = BasicMaterial(username, password)
        self._material: AuthMaterial = session_token or self._credentials
        self._lock = asyncio.Lock()

    @property
    def username(self) -> str:
        """Return the user name."""
        return self._credentials.username

    @property
    def material(self) -> AuthMaterial:
        """Return the current material without triggering a login."""
        return self._material

    async def provide(self, session: Session) -> AuthMaterial:
        """Return a valid session token, logging in or refreshing as needed."""
        async with self._lock:
            material = self._material
            if not isinstance(material, SessionToken):
                self._material = await self._login(session)
            elif material.is_expired(session.context.skew_time):
                self._material = await self._refresh(session, material)
            return self._material

    async def refresh(self, session: Session) -> AuthMaterial:
        """Refresh the session token, logging in if there is none yet."""
        async with self._lock:
            material = self._material
            if isinstance(material, SessionToken):
                self._material = await self._refresh(session, material)
            else:
                self._material = await self._login(session)
            return self._material

    async def _login(self, session: Session) -> SessionToken:
        log = logger.bind(username=self.username, session_id=session.session_id)
        try:
            response = await session.transport.request(
                "POST",
                self.LOGIN_PATH,
                json={"createRefreshToken": True},
                material=self._credentials,
            )
            token = _TokenPayload.model_validate(response.json()).to_session_token()
        except ResultException as exc:
            if exc.client_error is WsclientError.HTTP_IO_ERROR:
                raise
            log.warning("login_failed", error=str(exc))
            raise AuthResultException(
                WsclientError.AUTHENTICATION_FAILURE,
                cause=exc,
                http_status=exc.http_status,
            ) from exc
        except (ValidationError, ValueError) as exc:
            raise AuthResultException(
                WsclientError.AUTHENTICATION_FAILURE,
                cause=exc,
            ) from exc
        log.debug("login_succeeded", expires_in=token.expires_in)
        return token

    async def _refresh(self, session: Session, current: SessionToken) -> SessionToken:
        log = logger.bind(username=self.username, session_id=session.session_id)
        try:
            response = await session.transport.request(
                "POST",
                self.REFRESH_PATH,
                json={"createRefreshToken": True},
                material=current.refresh_material(),
            )
            token = _TokenPayload.model_validate(response.json()).to_session_token()
        except (ResultException, ValidationError, ValueError) as exc:
            log.warning("token_refresh_failed", error=str(exc))
            raise AuthResultException(
                WsclientError.SESSION_REFRESH_FAILURE,
                cause=exc,
                http_status=getattr(exc, "http_status", None),
            ) from exc
        log.debug("token_refreshed", expires_in=token.expires_in)
        return token


class OAuth2Provider(CredentialProvider):
    """Base class for providers authorizing with an external OAuth2 server.

    Subclasses implement ``request_token``. The token is cached and only
    requested again once it expires or ``refresh`` is called.
    """

    def __init__(self) -> None:
        """Initialize the provider with an empty token cache."""
        self._token: OAuth2Token | None = None
        self._lock = asyncio.Lock()

    @abstractmethod
    async def request_token(self) -> OAuth2Token:
        """Obtain a new access token from the authorization server.

        Raises:
            AuthResultException: If the authorization server rejects the
                request or cannot be reached.
        """

    async def provide(self, session: Session) -> AuthMaterial:
        """Return the cached token, requesting a new one when expired."""
        async with self._lock:
            token = self._token
            if token is None or token.is_expired(session.context.skew_time):
                self._token = await self.request_token()
            return self._token

    async def refresh(self, session: Session) -> AuthMaterial:  # noqa: ARG002
        """Request a new token unconditionally."""
        async with self._lock:
            self._token = await self.request_token()
            return self._token


class BearerTokenProvider(OAuth2Provider):
    """Provider for a static, externally obtained bearer token."""

    def __init__(self, token: str) -> None:
        """Initialize the provider.

        Raises:
            ClientResultException: INVALID_AUTH_MATERIAL if ``token`` is empty.
        """
        super().__init__()
        if not token:
            raise ClientResultException(WsclientError.INVALID_AUTH_MATERIAL)
        self._static = OAuth2Token(token)

    async def request_token(self) -> OAuth2Token:
        """Return the static token."""
        return self._static


class CertificateProvider(CredentialProvider):
    """Authenticates with a client TLS certificate."""

    def __init__(
        self,
        certificate: Path,
        key: Path | None = None,
        *,
        password: str | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            certificate: PEM file of the client certificate.
            key: PEM file of the private key, if not contained in
                ``certificate``.
            password: Password of the private key.
        """
        self._material = CertificateMaterial(certificate, key, password)

    @property
    def client_certificate(self) -> CertificateMaterial:
        """Return the client certificate."""
        return self._material

    async def provide(self, session: Session) -> AuthMaterial:  # noqa: ARG002
        """Return the certificate material."""
        return self._material

    async def refresh(self, session: Session) -> AuthMaterial:  # noqa: ARG002
        """Return the certificate material."""
        return self._material
