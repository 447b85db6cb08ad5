"""Pydantic models for the webPDF document REST payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


__all__ = [
    "DocumentFile",
    "DocumentInfo",
    "DocumentInfoType",
    "FileCompress",
    "FileExtract",
    "FileUpdate",
    "HistoryEntry",
    "PdfPassword",
    "WebpdfBaseModel",
]


class WebpdfBaseModel(BaseModel):
    """Base model for all webPDF payloads.

    Fields use snake_case names and camelCase wire aliases. Unknown fields
    sent by newer servers are kept, so they survive a round trip.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body expected by the server."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DocumentFile(WebpdfBaseModel):
    """Server-side description of one stored document."""

    document_id: str = Field(default="", alias="documentId")
    file_name: str = Field(default="", alias="fileName")
    file_extension: str = Field(default="", alias="fileExtension")
    mime_type: str = Field(default="", alias="mimeType")
    file_size: int = Field(default=0, alias="fileSize")
    creation_date: int | datetime | None = Field(default=None, alias="creationDate")
    file_last_modified: int | datetime | None = Field(
        default=None,
        alias="fileLastModified",
    )
    metadata: dict[str, Any] | None = None
    error: dict[str, Any] | None = None

    @property
    def display_name(self) -> str:
        """Return the file name including its extension."""
        if self.file_extension and not self.file_name.endswith(
            f".{self.file_extension}"
        ):
            return f"{self.file_name}.{self.file_extension}"
        return self.file_name


class HistoryEntry(WebpdfBaseModel):
    """One step in the server-side history of a document.

    ``active`` marks the version the document currently resolves to. Only one
    entry is active at a time; the server enforces this.
    """

    id: int
    active: bool = False
    operation: str = ""
    file_name: str = Field(default="", alias="fileName")
    date_time: int | datetime | None = Field(default=None, alias="dateTime")


class FileUpdate(WebpdfBaseModel):
    """Body of a rename call."""

    file_name: str = Field(alias="fileName")


class FileCompress(WebpdfBaseModel):
    """Body of a compress call."""

    document_id_list: list[str] = Field(alias="documentIdList")
    archive_file_name: str = Field(default="archive", alias="archiveFileName")
    store_archive: bool = Field(default=True, alias="storeArchive")


class FileExtract(WebpdfBaseModel):
    """Options of an extract call.

    Attributes:
        file_names: Only extract entries matching these names or patterns.
            Empty extracts everything.
    """

    file_names: list[str] = Field(default_factory=list, alias="fileNames")


class PdfPassword(WebpdfBaseModel):
    """Passwords for changing the security of a PDF document."""

    open: str | None = None
    permission: str | None = None


class DocumentInfoType(StrEnum):
    """Kinds of information the server can report about a document."""

    IS_PDF = "isPdf"
    IS_PDFA = "isPdfa"
    IS_SIGNED = "isSigned"
    IS_ENCRYPTED = "isEncrypted"
    IS_PROTECTED = "isProtected"
    PAGES = "pages"
    PAGE_SIZE = "pageSize"
    MIME_TYPE = "mimeType"
    PDF_VERSION = "pdfVersion"
    PDF_TYPE = "pdfType"


class DocumentInfo(WebpdfBaseModel):
    """Answer to a document info query."""

    info_type: str | None = Field(default=None, alias="type")
    value: Any = None
