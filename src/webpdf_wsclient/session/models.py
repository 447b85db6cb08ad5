"""Pydantic models for the authentication REST payloads."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from webpdf_wsclient.documents.models import WebpdfBaseModel


__all__ = ["KeyStorePassword", "UserCertificates", "UserCredentials"]


class UserCredentials(WebpdfBaseModel):
    """The user a session is logged in as."""

    user_name: str = Field(default="", alias="userName")
    is_admin: bool = Field(default=False, alias="isAdmin")
    is_user: bool = Field(default=False, alias="isUser")
    is_anonymous: bool = Field(default=False, alias="isAnonymous")


class UserCertificates(WebpdfBaseModel):
    """Keystores and certificates available to the logged in user."""

    keystores: list[dict[str, Any]] = Field(default_factory=list)


class KeyStorePassword(WebpdfBaseModel):
    """Password unlocking one of the user's keystores."""

    password: str = Field(repr=False)
