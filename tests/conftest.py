"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable  # noqa: TC003
from typing import Any

import httpx
import pytest
import respx  # noqa: TC002

from webpdf_wsclient.session import Session, SessionContext, UserProvider


WEBPDF_HOST = "http://webpdf.test:8080"
SERVER_URL = f"{WEBPDF_HOST}/webPDF/"
REST = "/webPDF/rest"

LOGIN_PATH = f"{REST}/authentication/user/login/"
REFRESH_PATH = f"{REST}/authentication/user/refresh/"
LOGOUT_PATH = f"{REST}/authentication/user/logout/"
INFO_PATH = f"{REST}/authentication/user/info/"


def _document_json(
    document_id: str,
    file_name: str = "lorem",
    extension: str = "docx",
    **extra: Any,
) -> dict[str, Any]:
    """Build a document description as returned by the server."""
    return {
        "documentId": document_id,
        "fileName": file_name,
        "fileExtension": extension,
        "mimeType": "application/octet-stream",
        "fileSize": 1024,
        "creationDate": 1700000000000,
        "fileLastModified": 1700000000000,
        **extra,
    }


def _mock_handshake(
    respx_mock: respx.MockRouter,
    *,
    user_name: str = "admin",
    is_admin: bool = True,
) -> None:
    """Register the login, user info and logout endpoints."""
    respx_mock.post(LOGIN_PATH).mock(
        return_value=httpx.Response(
            200,
            json={"token": "access-1", "refreshToken": "refresh-1", "expiresIn": 3600},
        ),
    )
    respx_mock.get(INFO_PATH).mock(
        return_value=httpx.Response(
            200,
            json={
                "userName": user_name,
                "isAdmin": is_admin,
                "isUser": True,
                "isAnonymous": False,
            },
        ),
    )
    respx_mock.get(LOGOUT_PATH).mock(return_value=httpx.Response(200))


@pytest.fixture
def context() -> SessionContext:
    """Session context pointing at the mocked server."""
    return SessionContext(url=SERVER_URL)


@pytest.fixture
def provider() -> UserProvider:
    """Credentials of the mocked administrator."""
    return UserProvider("admin", "secret")


@pytest.fixture
async def session(
    respx_mock: respx.MockRouter,
    context: SessionContext,
    provider: UserProvider,
) -> AsyncGenerator[Session, None]:
    """An active session against the mocked server."""
    _mock_handshake(respx_mock)
    async with await Session.create(context, provider) as s:
        yield s


@pytest.fixture
def make_document_json() -> Callable[..., dict[str, Any]]:
    """Factory for server document descriptions."""
    return _document_json


@pytest.fixture
def mock_handshake() -> Callable[..., None]:
    """Registers the login, user info and logout endpoints on a router."""
    return _mock_handshake
