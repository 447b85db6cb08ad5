"""HTTP transport of a REST session.

Every call of a session goes through ``SessionTransport``: it asks the
credential provider for material, sends the request on the session's single
``httpx.AsyncClient`` and converts every failure into the
``ResultException`` hierarchy. Calls are never retried.
"""

from __future__ import annotations

from collections.abc import AsyncIterator  # noqa: TC003
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from webpdf_wsclient.errors import (
    ClientResultException,
    WsclientError,
    translate_exception,
    translate_response,
)
from webpdf_wsclient.observability.logging import generate_call_id, get_call_id
from webpdf_wsclient.session.context import TLSOptions


if TYPE_CHECKING:
    from collections.abc import Mapping

    from webpdf_wsclient.session.auth import AuthMaterial
    from webpdf_wsclient.session.session import Session


__all__ = ["JSON_MEDIA_TYPE", "OCTET_STREAM_MEDIA_TYPE", "SessionTransport"]

JSON_MEDIA_TYPE = "application/json"
OCTET_STREAM_MEDIA_TYPE = "application/octet-stream"


class SessionTransport:
    """Sends authorized HTTP requests on behalf of one session.

    Attributes:
        session: The owning session.
    """

    def __init__(
        self,
        session: Session,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            session: The owning session. Its context and provider are read
                when the HTTP client is created.
            transport: Optional custom httpx transport for testing.
        """
        self.session = session
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._logger = structlog.get_logger(__name__).bind(
            session_id=session.session_id,
        )

    def _create_client(self) -> httpx.AsyncClient:
        context = self.session.context
        verify: Any = True
        if context.is_https and (
            context.tls is not None
            or self.session.provider.client_certificate is not None
        ):
            tls = context.tls or TLSOptions()
            verify = tls.create_ssl_context(self.session.provider.client_certificate)
        timeout = httpx.Timeout(context.effective_timeout)
        return httpx.AsyncClient(
            base_url=context.rest_url,
            headers={"Accept": JSON_MEDIA_TYPE},
            timeout=timeout,
            verify=verify,
            proxy=context.proxy.url if context.proxy else None,
            transport=self._transport,
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self.session.is_closed:
            raise ClientResultException(WsclientError.INVALID_WEBSERVICE_SESSION)
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client and release its connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _call_logger(self, method: str, path: str) -> structlog.BoundLogger:
        log: structlog.BoundLogger = self._logger.bind(
            method=method,
            path=path,
            call_id=get_call_id() or generate_call_id(),
        )
        return log

    async def _auth_headers(self, material: AuthMaterial | None) -> dict[str, str]:
        if material is None:
            material = await self.session.provider.provide(self.session)
        return material.auth_headers()

    async def _build_request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None,
        json: Any | None,  # noqa: ANN401
        files: Mapping[str, Any] | None,
        content: bytes | None,
        headers: Mapping[str, str] | None,
        material: AuthMaterial | None,
    ) -> tuple[httpx.AsyncClient, httpx.Request]:
        client = self._ensure_client()
        request_headers = await self._auth_headers(material)
        if headers:
            request_headers.update(headers)
        request = client.build_request(
            method,
            path,
            params=dict(params) if params else None,
            json=json,
            files=files,
            content=content,
            headers=request_headers,
        )
        return client, request

    async def request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,  # noqa: ANN401
        files: Mapping[str, Any] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        material: AuthMaterial | None = None,
    ) -> httpx.Response:
        """Execute one REST call and return its successful response.

        Args:
            method: HTTP method.
            path: Endpoint path relative to ``<server>/rest/``.
            params: Query parameters.
            json: JSON body.
            files: Multipart file uploads.
            content: Raw request body.
            headers: Additional headers.
            material: Authorize with this material instead of asking the
                session's provider (used by the login and refresh calls).

        Returns:
            The response, body fully read.

        Raises:
            ClientResultException: If the session is closed or the request
                cannot be built.
            ServerResultException: If the server is unreachable, times out or
                answers with an error.
            AuthResultException: If the server rejects the credentials.
        """
        log = self._call_logger(method, path)
        try:
            client, request = await self._build_request(
                method,
                path,
                params=params,
                json=json,
                files=files,
                content=content,
                headers=headers,
                material=material,
            )
            response = await client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.warning("api_request_failed", error=str(exc))
            raise translate_exception(exc) from exc

        log.debug(
            "api_response",
            status_code=response.status_code,
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )
        error = translate_response(response)
        if error is not None:
            log.debug("api_error", status_code=response.status_code, error=str(error))
            raise error
        return response

    @asynccontextmanager
    async def stream(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,  # noqa: ANN401
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Execute one REST call and yield the streaming response.

        Example:
            ```python
            async with transport.stream("GET", "documents/abc") as response:
                async for chunk in response.aiter_bytes():
                    ...
            ```

        Raises:
            Same as ``request``. Error responses are read completely before
            they are translated.
        """
        log = self._call_logger(method, path)
        try:
            client, request = await self._build_request(
                method,
                path,
                params=params,
                json=json,
                files=None,
                content=None,
                headers=headers,
                material=None,
            )
            response = await client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.warning("api_request_failed", error=str(exc))
            raise translate_exception(exc) from exc

        try:
            log.debug("api_stream_opened", status_code=response.status_code)
            if not response.is_success:
                try:
                    await response.aread()
                except httpx.HTTPError as exc:
                    raise translate_exception(exc) from exc
                error = translate_response(response)
                if error is not None:
                    raise error
            yield response
        finally:
            await response.aclose()

