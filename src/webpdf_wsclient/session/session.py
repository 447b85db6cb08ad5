"""The session: one authenticated logical connection to a webPDF server."""

from __future__ import annotations

import asyncio
import uuid
from enum import StrEnum
from typing import TYPE_CHECKING, Self

import structlog
from pydantic import ValidationError

from webpdf_wsclient.administration.manager import AdministrationManager
from webpdf_wsclient.documents.manager import DocumentManager
from webpdf_wsclient.errors import (
    AuthResultException,
    ClientResultException,
    ResultException,
    WsclientError,
)
from webpdf_wsclient.session.auth import AnonymousProvider, CredentialProvider
from webpdf_wsclient.session.context import SessionContext, TransportVariant
from webpdf_wsclient.session.models import (
    KeyStorePassword,
    UserCertificates,
    UserCredentials,
)
from webpdf_wsclient.session.transport import SessionTransport
from webpdf_wsclient.webservice.invoker import WebServiceInvoker


if TYPE_CHECKING:
    import httpx

    from webpdf_wsclient.documents.document import RemoteDocument
    from webpdf_wsclient.webservice.types import WebServiceType


__all__ = ["Session", "SessionState", "create_session"]


class SessionState(StrEnum):
    """Lifecycle states of a session.

    Attributes:
        CREATED: Constructed, handshake not started.
        AUTHENTICATING: Handshake in progress.
        ACTIVE: Handshake succeeded; operations are allowed.
        CLOSED: Terminal. Every operation fails with
            ``ClientResultException(INVALID_WEBSERVICE_SESSION)``.
    """

    CREATED = "created"
    AUTHENTICATING = "authenticating"
    ACTIVE = "active"
    CLOSED = "closed"


class Session:
    """Authenticated connection to a webPDF server.

    Use ``create_session`` (or ``Session.create``) to obtain an active
    session; it performs the authentication handshake. A session owns one
    HTTP client, one ``DocumentManager`` and one ``AdministrationManager``.

    Example:
        ```python
        context = SessionContext(url="https://localhost:8080/webPDF/")
        provider = UserProvider("admin", "secret")
        async with await create_session(context, provider) as session:
            document = await session.upload_document(data, "lorem.docx")
            converter = session.create_web_service(WebServiceType.CONVERTER)
            result = await converter.process(document)
        ```

    Attributes:
        session_id: Client-generated opaque id, used to correlate log events.
        context: The immutable connection settings.
        provider: Supplies authentication material for every call.
        transport: Sends the session's HTTP requests.
    """

    INFO_PATH = "authentication/user/info/"
    LOGOUT_PATH = "authentication/user/logout/"
    CERTIFICATES_PATH = "authentication/user/certificates/"

    def __init__(
        self,
        context: SessionContext,
        provider: CredentialProvider | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize a session in state CREATED.

        Args:
            context: Connection settings.
            provider: Credential provider, anonymous access if omitted.
            transport: Optional custom httpx transport for testing.

        Raises:
            ClientResultException: UNKNOWN_WEBSERVICE_PROTOCOL if the context
                requests a transport variant other than REST.
        """
        if context.transport is not TransportVariant.REST:
            raise ClientResultException(
                WsclientError.UNKNOWN_WEBSERVICE_PROTOCOL,
            ).append_message(f"Transport variant '{context.transport}' is not supported")
        self.session_id = uuid.uuid4().hex
        self.context = context
        self.provider = provider or AnonymousProvider()
        self._state = SessionState.CREATED
        self._logger = structlog.get_logger(__name__).bind(session_id=self.session_id)
        self.transport = SessionTransport(self, transport=transport)
        self._document_manager = DocumentManager(self)
        self._administration_manager = AdministrationManager(self)
        self._user: UserCredentials | None = None
        self._certificates: UserCertificates | None = None
        self._close_lock = asyncio.Lock()

    @classmethod
    async def create(
        cls,
        context: SessionContext,
        provider: CredentialProvider | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Create a session and perform the authentication handshake.

        Raises:
            AuthResultException: AUTHENTICATION_FAILURE if the server rejects
                the credentials.
            ServerResultException: HTTP_IO_ERROR if the server is unreachable,
                the TLS handshake fails or the call times out.
            ClientResultException: INVALID_HTTP_MESSAGE_CONTENT if the server
                does not speak the expected API, UNKNOWN_WEBSERVICE_PROTOCOL
                for unsupported transport variants.
        """
        session = cls(context, provider, transport=transport)
        await session._handshake()
        return session

    async def _handshake(self) -> None:
        self._state = SessionState.AUTHENTICATING
        log = self._logger.bind(url=self.context.url)
        try:
            await self.provider.provide(self)
            self._user = await self._fetch_user()
        except AuthResultException as exc:
            await self._abort()
            log.warning("session_handshake_failed", error=str(exc))
            if exc.client_error is WsclientError.AUTH_ERROR:
                raise AuthResultException(
                    WsclientError.AUTHENTICATION_FAILURE,
                    cause=exc,
                    http_status=exc.http_status,
                ) from exc
            raise
        except BaseException as exc:
            await self._abort()
            log.warning("session_handshake_failed", error=str(exc))
            raise
        self._state = SessionState.ACTIVE
        log.info("session_created", user=self._user.user_name)

    async def _abort(self) -> None:
        self._state = SessionState.CLOSED
        await self.transport.aclose()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def is_closed(self) -> bool:
        """Return True once the session is closed."""
        return self._state is SessionState.CLOSED

    def _ensure_active(self) -> None:
        if self._state is not SessionState.ACTIVE:
            raise ClientResultException(WsclientError.INVALID_WEBSERVICE_SESSION)

    @property
    def document_manager(self) -> DocumentManager:
        """Return the session's document manager."""
        return self._document_manager

    @property
    def administration_manager(self) -> AdministrationManager:
        """Return the session's administration manager."""
        return self._administration_manager

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def upload_document(self, data: bytes, file_name: str) -> RemoteDocument:
        """Upload a document. Shortcut for ``document_manager.upload_document``."""
        self._ensure_active()
        return await self._document_manager.upload_document(data, file_name)

    def create_web_service(
        self,
        service_type: WebServiceType | str,
    ) -> WebServiceInvoker:
        """Return a new invoker for ``service_type`` bound to this session."""
        self._ensure_active()
        return WebServiceInvoker(self, service_type)

    async def _fetch_user(self) -> UserCredentials:
        response = await self.transport.request("GET", self.INFO_PATH)
        try:
            return UserCredentials.model_validate_json(response.content)
        except (ValidationError, ValueError) as exc:
            raise ClientResultException(
                WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
                cause=exc,
            ).append_message("Unexpected user info payload") from exc

    async def get_user(self) -> UserCredentials:
        """Return the logged in user (cached after the first call)."""
        self._ensure_active()
        if self._user is None:
            self._user = await self._fetch_user()
        return self._user

    async def get_certificates(self) -> UserCertificates:
        """Return the logged in user's certificates (cached)."""
        self._ensure_active()
        if self._certificates is None:
            response = await self.transport.request("GET", self.CERTIFICATES_PATH)
            self._certificates = _parse_certificates(response.content)
        return self._certificates

    async def update_certificates(
        self,
        keystore_name: str,
        password: str,
    ) -> UserCertificates:
        """Unlock a keystore and return the user's certificates afterwards."""
        self._ensure_active()
        response = await self.transport.request(
            "PUT",
            f"{self.CERTIFICATES_PATH}passwords/{keystore_name}",
            json=KeyStorePassword(password=password).to_payload(),
        )
        self._certificates = _parse_certificates(response.content)
        return self._certificates

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Log out and release all resources.

        Idempotent: only the first call talks to the server, later calls
        return immediately. A failing logout is logged, never raised.
        """
        async with self._close_lock:
            if self._state is SessionState.CLOSED:
                return
            try:
                if self._state is SessionState.ACTIVE:
                    await self.transport.request("GET", self.LOGOUT_PATH)
            except ResultException as exc:
                self._logger.warning("session_close_failed", error=str(exc))
            finally:
                self._state = SessionState.CLOSED
                self._document_manager.invalidate()
                self._administration_manager.invalidate()
                self._user = None
                self._certificates = None
                await self.transport.aclose()
            self._logger.info("session_closed")

    async def __aenter__(self) -> Self:
        """Enter async context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context and close the session."""
        await self.close()

    def __repr__(self) -> str:
        return f"Session(session_id={self.session_id!r}, state={self._state.value!r})"


def _parse_certificates(content: bytes) -> UserCertificates:
    try:
        return UserCertificates.model_validate_json(content)
    except (ValidationError, ValueError) as exc:
        raise ClientResultException(
            WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
            cause=exc,
        ) from exc


async def create_session(
    context: SessionContext,
    provider: CredentialProvider | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Session:
    """Create an active session. See ``Session.create``."""
    return await Session.create(context, provider, transport=transport)
