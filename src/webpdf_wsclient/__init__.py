"""Async Python client for the webPDF web services.

Example:
    >>> from webpdf_wsclient import SessionContext, UserProvider, create_session
    >>> context = SessionContext(url="http://localhost:8080/webPDF/")
    >>> async with await create_session(context, UserProvider("admin", "admin")) as s:
    ...     document = await s.upload_document(b"...", "letter.docx")
"""

from __future__ import annotations

from webpdf_wsclient.errors import (
    AuthResultException,
    ClientResultException,
    ResultException,
    ServerResultException,
    WsclientError,
)
from webpdf_wsclient.session import (
    AnonymousProvider,
    BearerTokenProvider,
    CertificateProvider,
    CredentialProvider,
    Session,
    SessionContext,
    UserProvider,
    create_session,
)
from webpdf_wsclient.webservice import (
    BytesResult,
    DocumentResult,
    WebServiceInvoker,
    WebServiceType,
)


__version__ = "0.1.0"

__all__ = [
    "AnonymousProvider",
    "AuthResultException",
    "BearerTokenProvider",
    "BytesResult",
    "CertificateProvider",
    "ClientResultException",
    "CredentialProvider",
    "DocumentResult",
    "ResultException",
    "ServerResultException",
    "Session",
    "SessionContext",
    "UserProvider",
    "WebServiceInvoker",
    "WebServiceType",
    "WsclientError",
    "__version__",
    "create_session",
]
