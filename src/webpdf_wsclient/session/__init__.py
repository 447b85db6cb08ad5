"""Sessions: connection settings, credentials, transport and lifecycle."""

from __future__ import annotations

from webpdf_wsclient.session.auth import (
    AnonymousMaterial,
    AnonymousProvider,
    AuthMaterial,
    BasicMaterial,
    BearerTokenProvider,
    CertificateMaterial,
    CertificateProvider,
    CredentialProvider,
    OAuth2Provider,
    OAuth2Token,
    SessionToken,
    UserProvider,
)
from webpdf_wsclient.session.context import (
    ProxyOptions,
    SessionContext,
    TLSOptions,
    TLSProtocol,
    TransportVariant,
)
from webpdf_wsclient.session.models import (
    KeyStorePassword,
    UserCertificates,
    UserCredentials,
)
from webpdf_wsclient.session.oauth import (
    Auth0Provider,
    AzureProvider,
    ClientCredentialsProvider,
)
from webpdf_wsclient.session.session import Session, SessionState, create_session
from webpdf_wsclient.session.transport import SessionTransport


__all__ = [
    "AnonymousMaterial",
    "AnonymousProvider",
    "Auth0Provider",
    "AuthMaterial",
    "AzureProvider",
    "BasicMaterial",
    "BearerTokenProvider",
    "CertificateMaterial",
    "CertificateProvider",
    "ClientCredentialsProvider",
    "CredentialProvider",
    "KeyStorePassword",
    "OAuth2Provider",
    "OAuth2Token",
    "ProxyOptions",
    "Session",
    "SessionContext",
    "SessionState",
    "SessionToken",
    "SessionTransport",
    "TLSOptions",
    "TLSProtocol",
    "TransportVariant",
    "UserCertificates",
    "UserCredentials",
    "UserProvider",
    "create_session",
]
