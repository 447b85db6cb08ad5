"""Server-side documents: payload models, handles and the document manager."""

from __future__ import annotations

from webpdf_wsclient.documents.document import RemoteDocument
from webpdf_wsclient.documents.manager import DocumentManager
from webpdf_wsclient.documents.models import (
    DocumentFile,
    DocumentInfo,
    DocumentInfoType,
    FileCompress,
    FileExtract,
    FileUpdate,
    HistoryEntry,
    PdfPassword,
)


__all__ = [
    "DocumentFile",
    "DocumentInfo",
    "DocumentInfoType",
    "DocumentManager",
    "FileCompress",
    "FileExtract",
    "FileUpdate",
    "HistoryEntry",
    "PdfPassword",
    "RemoteDocument",
]
