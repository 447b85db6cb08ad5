"""Handle referencing one document stored on the server."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path

    from webpdf_wsclient.documents.manager import DocumentManager
    from webpdf_wsclient.documents.models import DocumentFile, HistoryEntry
    from webpdf_wsclient.session.session import Session


__all__ = ["RemoteDocument"]


class RemoteDocument:
    """Non-owning reference to a document tracked by a ``DocumentManager``.

    A handle holds nothing but the document id and its manager; every
    property reads the manager's current state. Once the document is deleted
    the handle is stale and raises ``ClientResultException(INVALID_DOCUMENT)``;
    once the session is closed it raises
    ``ClientResultException(INVALID_WEBSERVICE_SESSION)``.
    """

    __slots__ = ("_document_id", "_manager")

    def __init__(self, document_id: str, manager: DocumentManager) -> None:
        self._document_id = document_id
        self._manager = manager

    @property
    def document_id(self) -> str:
        """Return the server-assigned document id."""
        return self._document_id

    @property
    def manager(self) -> DocumentManager:
        """Return the manager tracking this document."""
        return self._manager

    @property
    def session(self) -> Session:
        """Return the session this document belongs to."""
        return self._manager.session

    @property
    def document_file(self) -> DocumentFile:
        """Return the last known server description of the document."""
        return self._manager.get_document_file(self._document_id)

    @property
    def display_name(self) -> str:
        """Return the document's file name including its extension."""
        return self.document_file.display_name

    @property
    def history(self) -> list[HistoryEntry]:
        """Return the document's history, ordered by entry id."""
        return self._manager.get_document_history(self._document_id)

    async def download(self) -> bytes:
        """Download the document's content."""
        return await self._manager.download_document(self._document_id)

    async def download_to_path(self, dest_path: Path) -> Path:
        """Stream the document's content into ``dest_path``."""
        return await self._manager.download_document_to_path(
            self._document_id,
            dest_path,
        )

    async def rename(self, file_name: str) -> RemoteDocument:
        """Rename the document on the server."""
        return await self._manager.rename_document(self._document_id, file_name)

    async def delete(self) -> None:
        """Delete the document on the server."""
        await self._manager.delete_document(self._document_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteDocument):
            return NotImplemented
        return (
            self._document_id == other._document_id
            and self._manager is other._manager
        )

    def __hash__(self) -> int:
        return hash((self._document_id, id(self._manager)))

    def __repr__(self) -> str:
        return f"RemoteDocument(document_id={self._document_id!r})"
