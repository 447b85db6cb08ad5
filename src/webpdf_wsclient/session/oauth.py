"""OAuth2 client-credentials providers for Auth0 and Azure AD.

Both authorization servers must also be configured on the webPDF server
(``server.xml``), otherwise the server rejects their tokens.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from webpdf_wsclient.errors import AuthResultException, WsclientError
from webpdf_wsclient.session.auth import OAuth2Provider, OAuth2Token


__all__ = ["Auth0Provider", "AzureProvider", "ClientCredentialsProvider"]

logger = structlog.get_logger(__name__)


class _TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(min_length=1)
    expires_in: int | None = None
    token_type: str = "Bearer"


class ClientCredentialsProvider(OAuth2Provider):
    """Requests tokens with the OAuth2 client-credentials grant.

    Subclasses define the token endpoint and the grant body.
    """

    DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            client_id: The application's client ID.
            client_secret: The application's client secret.
            transport: Optional custom transport for testing.
        """
        super().__init__()
        self.client_id = client_id
        self._client_secret = client_secret
        self._transport = transport

    @property
    @abstractmethod
    def token_url(self) -> str:
        """Return the token endpoint of the authorization server."""

    def _grant(self) -> dict[str, Any]:
        return {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self._client_secret,
        }

    async def _post_grant(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(self.token_url, json=self._grant())

    async def request_token(self) -> OAuth2Token:
        """Request a new access token from the token endpoint.

        Raises:
            AuthResultException: If the request fails or the response holds
                no access token.
        """
        log = logger.bind(token_url=self.token_url, client_id=self.client_id)
        try:
            async with httpx.AsyncClient(
                timeout=self.DEFAULT_TIMEOUT,
                transport=self._transport,
            ) as client:
                response = await self._post_grant(client)
            response.raise_for_status()
            payload = _TokenResponse.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            log.warning("oauth_token_request_failed", error=str(exc))
            status = (
                exc.response.status_code
                if isinstance(exc, httpx.HTTPStatusError)
                else None
            )
            raise AuthResultException(
                WsclientError.AUTH_ERROR,
                cause=exc,
                http_status=status,
            ) from exc

        expires_at = None
        if payload.expires_in is not None:
            expires_at = datetime.now(UTC) + timedelta(seconds=payload.expires_in)
        log.debug("oauth_token_received", expires_in=payload.expires_in)
        return OAuth2Token(payload.access_token, expires_at)


class Auth0Provider(ClientCredentialsProvider):
    """Obtains access tokens from an Auth0 tenant.

    Example:
        ```python
        provider = Auth0Provider(
            "example.eu.auth0.com", client_id, client_secret, "https://webpdf/"
        )
        ```
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            domain: The tenant's domain, with or without ``https://``.
            client_id: The application's client ID.
            client_secret: The application's client secret.
            audience: API identifier the token is requested for.
            transport: Optional custom transport for testing.
        """
        super().__init__(client_id, client_secret, transport=transport)
        self.domain = httpx.URL(domain).host or domain.strip("/")
        self.audience = audience

    @property
    def token_url(self) -> str:
        """Return the Auth0 token endpoint."""
        return f"https://{self.domain}/oauth/token"

    def _grant(self) -> dict[str, Any]:
        return {**super()._grant(), "audience": self.audience}


class AzureProvider(ClientCredentialsProvider):
    """Obtains access tokens from Azure Active Directory (Microsoft identity)."""

    def __init__(
        self,
        authority: str,
        client_id: str,
        client_secret: str,
        scope: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            authority: Authority URL, e.g.
                ``https://login.microsoftonline.com/<tenant-id>``.
            client_id: The application's client ID.
            client_secret: The application's client secret.
            scope: Requested scope, e.g. ``api://<app-id>/.default``.
            transport: Optional custom transport for testing.
        """
        super().__init__(client_id, client_secret, transport=transport)
        self.authority = authority.rstrip("/")
        self.scope = scope

    @property
    def token_url(self) -> str:
        """Return the Azure v2.0 token endpoint."""
        return f"{self.authority}/oauth2/v2.0/token"

    def _grant(self) -> dict[str, Any]:
        return {**super()._grant(), "scope": self.scope}

    async def _post_grant(self, client: httpx.AsyncClient) -> httpx.Response:
        # Azure only accepts form-encoded grants
        return await client.post(self.token_url, data=self._grant())
