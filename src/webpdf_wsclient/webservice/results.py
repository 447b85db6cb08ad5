"""Outcome of a web service call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal


if TYPE_CHECKING:
    from webpdf_wsclient.documents.document import RemoteDocument


__all__ = ["BytesResult", "DocumentResult", "OperationResult"]


@dataclass(frozen=True, slots=True)
class DocumentResult:
    """The service produced a document, now tracked by the document manager."""

    document: RemoteDocument
    kind: Literal["document"] = field(default="document", init=False)


@dataclass(frozen=True, slots=True)
class BytesResult:
    """The service produced raw content, e.g. a report or log text."""

    content: bytes = field(repr=False)
    media_type: str = "application/octet-stream"
    kind: Literal["bytes"] = field(default="bytes", init=False)

    @property
    def text(self) -> str:
        """Return the content decoded as UTF-8."""
        return self.content.decode("utf-8", errors="replace")


OperationResult = DocumentResult | BytesResult
