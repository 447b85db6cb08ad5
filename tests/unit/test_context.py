"""Unit tests for session contexts, TLS and proxy options."""

from __future__ import annotations

import ssl
from typing import TYPE_CHECKING

import pytest
from pydantic import SecretStr, ValidationError

from webpdf_wsclient.errors import ClientResultException, WsclientError
from webpdf_wsclient.session import (
    ProxyOptions,
    SessionContext,
    TLSOptions,
    TLSProtocol,
    TransportVariant,
)


if TYPE_CHECKING:
    from pathlib import Path


class TestSessionContext:
    """Tests for SessionContext."""

    def test_defaults(self) -> None:
        """Test a context only needs a URL."""
        context = SessionContext(url="http://localhost:8080/webPDF/")

        assert context.transport is TransportVariant.REST
        assert context.tls is None
        assert context.proxy is None
        assert context.effective_timeout == SessionContext.DEFAULT_TIMEOUT
        assert context.skew_time == 0

    def test_trailing_slash_added(self) -> None:
        """Test the URL is normalized to end with a slash."""
        context = SessionContext(url="http://localhost:8080/webPDF")

        assert context.url == "http://localhost:8080/webPDF/"
        assert context.rest_url == "http://localhost:8080/webPDF/rest/"

    def test_is_https(self) -> None:
        """Test TLS detection from the scheme."""
        assert SessionContext(url="https://localhost/webPDF/").is_https
        assert not SessionContext(url="http://localhost/webPDF/").is_https

    @pytest.mark.parametrize(
        "url",
        ["", "localhost:8080/webPDF", "ftp://localhost/webPDF/", "http://"],
    )
    def test_invalid_url(self, url: str) -> None:
        """Test malformed or non-http URLs are rejected with INVALID_URL."""
        with pytest.raises(ClientResultException) as exc_info:
            SessionContext(url=url)

        assert exc_info.value.client_error is WsclientError.INVALID_URL

    def test_timeout(self) -> None:
        """Test an explicit timeout overrides the default."""
        context = SessionContext(url="http://localhost/webPDF/", timeout=5)
        assert context.effective_timeout == 5

    def test_timeout_must_be_positive(self) -> None:
        """Test zero timeouts are rejected."""
        with pytest.raises(ValidationError):
            SessionContext(url="http://localhost/webPDF/", timeout=0)

    def test_negative_skew_rejected(self) -> None:
        """Test skew time cannot be negative."""
        with pytest.raises(ValidationError):
            SessionContext(url="http://localhost/webPDF/", skew_time=-1)

    def test_immutable(self) -> None:
        """Test contexts are frozen."""
        context = SessionContext(url="http://localhost/webPDF/")
        with pytest.raises(ValidationError):
            context.url = "http://other/webPDF/"  # type: ignore[misc]

    def test_unknown_field_rejected(self) -> None:
        """Test typos in context fields are rejected."""
        with pytest.raises(ValidationError):
            SessionContext(url="http://localhost/webPDF/", timout=3)  # type: ignore[call-arg]


class TestTLSOptions:
    """Tests for TLS option handling."""

    def test_protocol_pinning(self) -> None:
        """Test a pinned protocol sets both version bounds."""
        context = TLSOptions(protocol=TLSProtocol.TLS_V1_2).create_ssl_context()

        assert context.minimum_version is ssl.TLSVersion.TLSv1_2
        assert context.maximum_version is ssl.TLSVersion.TLSv1_2

    def test_verification_enabled_by_default(self) -> None:
        """Test certificates and host names are verified by default."""
        context = TLSOptions().create_ssl_context()

        assert context.verify_mode is ssl.CERT_REQUIRED
        assert context.check_hostname is True

    def test_reject_unauthorized_disabled(self) -> None:
        """Test verification can be switched off for self-signed servers."""
        context = TLSOptions(reject_unauthorized=False).create_ssl_context()

        assert context.verify_mode is ssl.CERT_NONE
        assert context.check_hostname is False

    def test_missing_ca_file(self, tmp_path: Path) -> None:
        """Test unreadable CA files fail with TLS_INITIALIZATION_FAILURE."""
        options = TLSOptions(ca_file=tmp_path / "missing.pem")

        with pytest.raises(ClientResultException) as exc_info:
            options.create_ssl_context()

        assert exc_info.value.client_error is WsclientError.TLS_INITIALIZATION_FAILURE

    def test_invalid_client_certificate(self, tmp_path: Path) -> None:
        """Test broken client certificates fail with TLS_INITIALIZATION_FAILURE."""
        certificate = tmp_path / "client.pem"
        certificate.write_text("not a certificate")
        options = TLSOptions(client_certificate=certificate)

        with pytest.raises(ClientResultException) as exc_info:
            options.create_ssl_context()

        assert exc_info.value.client_error is WsclientError.TLS_INITIALIZATION_FAILURE


class TestProxyOptions:
    """Tests for proxy options."""

    def test_url_without_credentials(self) -> None:
        """Test a plain proxy URL."""
        assert ProxyOptions(host="proxy.local").url == "http://proxy.local:8080"

    def test_url_with_credentials(self) -> None:
        """Test credentials are embedded into the proxy URL."""
        proxy = ProxyOptions(
            host="proxy.local",
            port=3128,
            username="user",
            password=SecretStr("pw"),
        )
        assert proxy.url == "http://user:pw@proxy.local:3128"

    def test_port_bounds(self) -> None:
        """Test invalid ports are rejected."""
        with pytest.raises(ValidationError):
            ProxyOptions(host="proxy.local", port=0)
