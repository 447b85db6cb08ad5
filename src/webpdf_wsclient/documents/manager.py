"""Document manager: the session's local mirror of server-side documents.

Every mutation follows the same discipline: the server call runs first,
and the local map is only updated, under the manager's lock, once the server
has confirmed success. A failed or cancelled call therefore never leaves the
map diverging from the server.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from webpdf_wsclient.documents.document import RemoteDocument
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
from webpdf_wsclient.errors import (
    ClientResultException,
    WsclientError,
    translate_exception,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from webpdf_wsclient.session.session import Session


__all__ = ["DocumentManager"]

_DOCUMENT_FILE = TypeAdapter(DocumentFile)
_DOCUMENT_LIST = TypeAdapter(list[DocumentFile])
_DOCUMENT_INFO = TypeAdapter(DocumentInfo)
_HISTORY_ENTRY = TypeAdapter(HistoryEntry)
_HISTORY_LIST = TypeAdapter(list[HistoryEntry])
OCTET_STREAM_MEDIA_TYPE = "application/octet-stream"
_DOWNLOAD_HEADERS = {"Accept": OCTET_STREAM_MEDIA_TYPE}


@dataclass(slots=True)
class _DocumentState:
    handle: RemoteDocument
    document_file: DocumentFile
    history: dict[int, HistoryEntry] = field(default_factory=dict)


def _parse[T](adapter: TypeAdapter[T], response: httpx.Response) -> T:
    try:
        return adapter.validate_json(response.content)
    except (ValidationError, ValueError) as exc:
        raise ClientResultException(
            WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
            cause=exc,
        ).append_message(str(exc)) from exc


def _parse_document_file(response: httpx.Response) -> DocumentFile:
    return _parse(_DOCUMENT_FILE, response)


class DocumentManager:
    """Tracks the documents of one session and mediates operations on them.

    Queries such as ``get_documents`` are answered from the local map and
    never touch the network. All other operations are one server call
    followed by a local commit.

    Example:
        ```python
        manager = session.document_manager
        document = await manager.upload_document(data, "report.docx")
        await manager.rename_document(document.document_id, "final.docx")
        content = await manager.download_document(document.document_id)
        ```
    """

    def __init__(self, session: Session) -> None:
        """Initialize an empty manager for ``session``."""
        self.session = session
        self._documents: dict[str, _DocumentState] = {}
        self._history_active = False
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger(__name__).bind(
            session_id=session.session_id,
        )

    # -------------------------------------------------------------------------
    # Local state
    # -------------------------------------------------------------------------

    def _ensure_session(self) -> None:
        if self.session.is_closed:
            raise ClientResultException(WsclientError.INVALID_WEBSERVICE_SESSION)

    def _state(self, document_id: str) -> _DocumentState:
        self._ensure_session()
        state = self._documents.get(document_id)
        if state is None:
            raise ClientResultException(WsclientError.INVALID_DOCUMENT).append_message(
                f"Unknown document id '{document_id}'"
            )
        return state

    def _commit(
        self,
        document_file: DocumentFile,
    ) -> RemoteDocument:
        # Caller must hold self._lock.
        document_id = document_file.document_id
        state = self._documents.get(document_id)
        if state is None:
            state = _DocumentState(
                handle=RemoteDocument(document_id, self),
                document_file=document_file,
            )
            self._documents[document_id] = state
        else:
            state.document_file = document_file
        return state.handle

    def invalidate(self) -> None:
        """Forget all documents. Called when the owning session closes."""
        self._documents.clear()

    def get_documents(self) -> list[RemoteDocument]:
        """Return all tracked documents in the order they became known."""
        self._ensure_session()
        return [state.handle for state in self._documents.values()]

    def get_document(self, document_id: str) -> RemoteDocument:
        """Return the handle of a tracked document.

        Raises:
            ClientResultException: INVALID_DOCUMENT if the id is not tracked.
        """
        return self._state(document_id).handle

    def contains_document(self, document_id: str) -> bool:
        """Return True if the document id is tracked."""
        return document_id in self._documents

    def get_document_file(self, document_id: str) -> DocumentFile:
        """Return the last known server description of a document."""
        return self._state(document_id).document_file

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @property
    def history_active(self) -> bool:
        """Return True if document histories are tracked."""
        return self._history_active

    async def set_history_active(self, active: bool) -> None:  # noqa: FBT001
        """Enable or disable history tracking.

        Enabling fetches the history of every tracked document. Documents
        uploaded afterwards are created with history on the server.
        """
        self._ensure_session()
        if not active:
            self._history_active = False
            return
        histories = {
            document_id: await self._fetch_history(document_id)
            for document_id in list(self._documents)
        }
        async with self._lock:
            self._history_active = True
            for document_id, history in histories.items():
                state = self._documents.get(document_id)
                if state is not None:
                    state.history = {entry.id: entry for entry in history}

    def _ensure_history(self) -> None:
        if not self._history_active:
            raise ClientResultException(WsclientError.INVALID_HISTORY_DATA)

    def get_document_history(self, document_id: str) -> list[HistoryEntry]:
        """Return a document's history, ordered by entry id.

        Raises:
            ClientResultException: INVALID_HISTORY_DATA if history tracking is
                disabled, INVALID_DOCUMENT if the id is not tracked.
        """
        self._ensure_history()
        history = self._state(document_id).history
        return [history[key] for key in sorted(history)]

    def get_document_history_entry(
        self,
        document_id: str,
        history_id: int,
    ) -> HistoryEntry:
        """Return one history entry of a document."""
        self._ensure_history()
        entry = self._state(document_id).history.get(history_id)
        if entry is None:
            raise ClientResultException(WsclientError.INVALID_HISTORY_DATA).append_message(
                f"Unknown history entry {history_id}"
            )
        return entry

    async def _fetch_history(self, document_id: str) -> list[HistoryEntry]:
        response = await self.session.transport.request(
            "GET",
            f"documents/{document_id}/history",
        )
        return _parse(_HISTORY_LIST, response)

    async def update_document_history(
        self,
        document_id: str,
        entry: HistoryEntry,
    ) -> HistoryEntry:
        """Update one history entry, e.g. to make it the active version.

        The server decides how the update affects the other entries, so the
        full history is read again afterwards.

        Returns:
            The entry as stored by the server.
        """
        self._ensure_history()
        self._state(document_id)
        response = await self.session.transport.request(
            "PUT",
            f"documents/{document_id}/history/{entry.id}",
            json=entry.to_payload(),
        )
        updated = _parse(_HISTORY_ENTRY, response)
        async with self._lock:
            state = self._documents.get(document_id)
            if state is not None:
                state.history[updated.id] = updated

        history = await self._fetch_history(document_id)
        async with self._lock:
            state = self._documents.get(document_id)
            if state is not None:
                state.history = {item.id: item for item in history}
        self._logger.debug(
            "document_history_updated",
            document_id=document_id,
            history_id=updated.id,
        )
        return updated

    # -------------------------------------------------------------------------
    # Synchronization
    # -------------------------------------------------------------------------

    async def _attach_history(self, document_ids: Iterable[str]) -> None:
        for document_id in document_ids:
            history = await self._fetch_history(document_id)
            async with self._lock:
                state = self._documents.get(document_id)
                if state is not None:
                    state.history = {entry.id: entry for entry in history}

    async def synchronize_document(self, document_file: DocumentFile) -> RemoteDocument:
        """Register or update a document from a server description.

        The document is registered before its history is fetched; a failing
        history call leaves it registered.

        Raises:
            ClientResultException: INVALID_DOCUMENT if the description has no
                document id.
        """
        self._ensure_session()
        if not document_file.document_id:
            raise ClientResultException(WsclientError.INVALID_DOCUMENT)
        async with self._lock:
            document = self._commit(document_file)
        if self._history_active:
            await self._attach_history([document.document_id])
        return document

    async def _synchronize_all(
        self,
        document_files: Iterable[DocumentFile],
    ) -> list[RemoteDocument]:
        files = list(document_files)
        for document_file in files:
            if not document_file.document_id:
                raise ClientResultException(WsclientError.INVALID_DOCUMENT)
        async with self._lock:
            documents = [self._commit(document_file) for document_file in files]
        if self._history_active:
            await self._attach_history(document.document_id for document in documents)
        return documents

    async def synchronize(self) -> list[RemoteDocument]:
        """Reconcile the local map with the server's document list.

        Documents unknown locally are added, known ones updated and documents
        the server no longer lists are dropped.

        Returns:
            All tracked documents after reconciliation.
        """
        self._ensure_session()
        response = await self.session.transport.request("GET", "documents/list")
        files = _parse(_DOCUMENT_LIST, response)
        await self._synchronize_all(files)
        listed = {document_file.document_id for document_file in files}
        async with self._lock:
            for document_id in list(self._documents):
                if document_id not in listed:
                    del self._documents[document_id]
        self._logger.debug("documents_synchronized", count=len(listed))
        return self.get_documents()

    # -------------------------------------------------------------------------
    # Upload / download
    # -------------------------------------------------------------------------

    async def upload_document(self, data: bytes, file_name: str) -> RemoteDocument:
        """Upload a document and start tracking it.

        Args:
            data: The document's content.
            file_name: The document's file name, including extension.

        Returns:
            The handle of the new document.

        Raises:
            ServerResultException: If the server rejects the upload (size
                limits, corrupt payload, ...).
        """
        self._ensure_session()
        response = await self.session.transport.request(
            "POST",
            "documents",
            params={"history": str(self._history_active).lower()},
            files={"filedata": (file_name, data, OCTET_STREAM_MEDIA_TYPE)},
        )
        document = await self.synchronize_document(_parse_document_file(response))
        self._logger.info(
            "document_uploaded",
            document_id=document.document_id,
            file_name=file_name,
            size=len(data),
        )
        return document

    async def upload_file(self, path: Path) -> RemoteDocument:
        """Upload a local file under its own name.

        Raises:
            ClientResultException: INVALID_SOURCE_DOCUMENT if the file cannot
                be read.
        """
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ClientResultException(
                WsclientError.INVALID_SOURCE_DOCUMENT,
                cause=exc,
            ).append_message(f"Cannot read {path}") from exc
        return await self.upload_document(data, path.name)

    async def update_document(self, document_id: str, data: bytes) -> RemoteDocument:
        """Replace the content of a tracked document."""
        state = self._state(document_id)
        response = await self.session.transport.request(
            "PUT",
            f"documents/{document_id}",
            files={
                "filedata": (
                    state.document_file.display_name,
                    data,
                    OCTET_STREAM_MEDIA_TYPE,
                ),
            },
        )
        return await self.synchronize_document(_parse_document_file(response))

    async def download_document(self, document_id: str) -> bytes:
        """Download the complete content of a tracked document."""
        self._state(document_id)
        response = await self.session.transport.request(
            "GET",
            f"documents/{document_id}",
            headers=_DOWNLOAD_HEADERS,
        )
        return response.content

    async def download_document_to_path(
        self,
        document_id: str,
        dest_path: Path,
        *,
        chunk_size: int = 65536,
    ) -> Path:
        """Stream the content of a tracked document into a file.

        Returns:
            The destination path.
        """
        self._state(document_id)
        async with self.session.transport.stream(
            "GET",
            f"documents/{document_id}",
            headers=_DOWNLOAD_HEADERS,
        ) as response:
            try:
                with dest_path.open("wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size=chunk_size):
                        f.write(chunk)
            except httpx.HTTPError as exc:
                raise translate_exception(exc) from exc
            except OSError as exc:
                raise ClientResultException(
                    WsclientError.INVALID_SOURCE_DOCUMENT,
                    cause=exc,
                ).append_message(f"Cannot write {dest_path}") from exc
        return dest_path

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def rename_document(self, document_id: str, file_name: str) -> RemoteDocument:
        """Rename a tracked document.

        The local name only changes once the server confirmed the rename.
        """
        self._state(document_id)
        response = await self.session.transport.request(
            "POST",
            f"documents/{document_id}/update",
            json=FileUpdate(file_name=file_name).to_payload(),
        )
        document = await self.synchronize_document(_parse_document_file(response))
        self._logger.debug(
            "document_renamed",
            document_id=document_id,
            file_name=file_name,
        )
        return document

    async def delete_document(self, document_id: str) -> None:
        """Delete a tracked document on the server and stop tracking it.

        If the server call fails the document stays tracked.
        """
        self._state(document_id)
        await self.session.transport.request("DELETE", f"documents/{document_id}")
        async with self._lock:
            self._documents.pop(document_id, None)
        self._logger.info("document_deleted", document_id=document_id)

    def _check_known(self, document_ids: Iterable[str]) -> list[str]:
        ids = list(document_ids)
        for document_id in ids:
            self._state(document_id)
        return ids

    async def compress_documents(
        self,
        document_ids: Iterable[str],
        archive_name: str = "archive",
    ) -> RemoteDocument:
        """Pack tracked documents into a new archive document.

        Raises:
            ClientResultException: INVALID_DOCUMENT, before any network call,
                if one of the ids is not tracked.
        """
        ids = self._check_known(document_ids)
        body = FileCompress(
            document_id_list=ids,
            archive_file_name=archive_name,
            store_archive=True,
        )
        response = await self.session.transport.request(
            "POST",
            "documents/compress",
            json=body.to_payload(),
        )
        archive = await self.synchronize_document(_parse_document_file(response))
        self._logger.debug(
            "documents_compressed",
            document_id=archive.document_id,
            count=len(ids),
        )
        return archive

    async def download_archive(
        self,
        document_ids: Iterable[str],
        archive_name: str = "archive",
    ) -> bytes:
        """Pack tracked documents into an archive and download it.

        The archive is not stored on the server.
        """
        ids = self._check_known(document_ids)
        body = FileCompress(
            document_id_list=ids,
            archive_file_name=archive_name,
            store_archive=False,
        )
        response = await self.session.transport.request(
            "POST",
            "documents/compress",
            json=body.to_payload(),
            headers=_DOWNLOAD_HEADERS,
        )
        return response.content

    async def extract_document(
        self,
        document_id: str,
        options: FileExtract | None = None,
    ) -> list[RemoteDocument]:
        """Extract an archive document into new tracked documents."""
        self._state(document_id)
        response = await self.session.transport.request(
            "POST",
            f"documents/{document_id}/extract",
            json=(options or FileExtract()).to_payload(),
        )
        documents = await self._synchronize_all(_parse(_DOCUMENT_LIST, response))
        self._logger.debug(
            "document_extracted",
            document_id=document_id,
            count=len(documents),
        )
        return documents

    async def extract_archive_file(self, document_id: str, archive_path: str) -> bytes:
        """Return the content of one entry of an archive document."""
        self._state(document_id)
        response = await self.session.transport.request(
            "GET",
            f"documents/{document_id}/archive/{archive_path.lstrip('/')}",
            headers=_DOWNLOAD_HEADERS,
        )
        return response.content

    async def update_document_security(
        self,
        document_id: str,
        password: PdfPassword,
    ) -> RemoteDocument:
        """Change the passwords of a tracked PDF document."""
        self._state(document_id)
        response = await self.session.transport.request(
            "PUT",
            f"documents/{document_id}/security/password",
            json=password.to_payload(),
        )
        return await self.synchronize_document(_parse_document_file(response))

    async def get_document_info(
        self,
        document_id: str,
        info_type: DocumentInfoType | str,
    ) -> DocumentInfo:
        """Query one kind of information about a tracked document."""
        self._state(document_id)
        response = await self.session.transport.request(
            "GET",
            f"documents/{document_id}/info/{info_type}",
        )
        return _parse(_DOCUMENT_INFO, response)

    def __repr__(self) -> str:
        return f"DocumentManager(documents={len(self._documents)})"
