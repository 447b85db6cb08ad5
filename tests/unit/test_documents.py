"""Unit tests for the document manager and remote documents."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable  # noqa: TC003
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import respx  # noqa: TC002

from webpdf_wsclient.documents import (
    DocumentFile,
    DocumentInfoType,
    FileExtract,
    HistoryEntry,
    PdfPassword,
    RemoteDocument,
)
from webpdf_wsclient.errors import (
    ClientResultException,
    ServerResultException,
    WsclientError,
)


if TYPE_CHECKING:
    from pathlib import Path

    from webpdf_wsclient.session import Session


pytestmark = pytest.mark.respx(
    base_url="http://webpdf.test:8080",
    assert_all_called=False,
)

DOCUMENTS = "/webPDF/rest/documents"

DocumentJson = Callable[..., dict[str, Any]]


async def _upload(
    respx_mock: respx.MockRouter,
    session: Session,
    make_document_json: DocumentJson,
    document_id: str = "doc-1",
    file_name: str = "lorem",
) -> RemoteDocument:
    respx_mock.post(DOCUMENTS).mock(
        return_value=httpx.Response(200, json=make_document_json(document_id, file_name)),
    )
    return await session.upload_document(b"PK\x03\x04 docx", f"{file_name}.docx")


# ---------------------------------------------------------------------------
# Upload and local state
# ---------------------------------------------------------------------------


class TestUpload:
    """Tests for uploading and tracking documents."""

    async def test_upload_registers_document(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test an upload adds exactly one tracked document."""
        manager = session.document_manager

        document = await _upload(respx_mock, session, make_document_json)

        assert document.document_id == "doc-1"
        assert manager.get_documents() == [document]
        assert manager.contains_document("doc-1")
        assert manager.get_document("doc-1") is document
        assert document.display_name == "lorem.docx"
        assert document.session is session

    async def test_upload_request(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test the upload is a multipart filedata post with the history flag."""
        route = respx_mock.post(DOCUMENTS).mock(
            return_value=httpx.Response(200, json=make_document_json("doc-1")),
        )

        await session.upload_document(b"content", "lorem.docx")

        request = route.calls.last.request
        assert request.url.params["history"] == "false"
        assert b'name="filedata"' in request.content
        assert b'filename="lorem.docx"' in request.content
        assert request.headers["Authorization"] == "Bearer access-1"

    async def test_upload_rejected(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
    ) -> None:
        """Test a rejected upload raises and tracks nothing."""
        respx_mock.post(DOCUMENTS).mock(
            return_value=httpx.Response(
                413,
                json={"errorCode": -22, "errorMessage": "File too large"},
            ),
        )

        with pytest.raises(ServerResultException) as exc_info:
            await session.upload_document(b"x" * 10, "huge.pdf")

        assert exc_info.value.error_code == -22
        assert session.document_manager.get_documents() == []

    async def test_upload_file(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
        tmp_path: Path,
    ) -> None:
        """Test uploading a local file uses its name."""
        source = tmp_path / "report.pdf"
        source.write_bytes(b"%PDF-1.7")
        route = respx_mock.post(DOCUMENTS).mock(
            return_value=httpx.Response(
                200,
                json=make_document_json("doc-9", "report", "pdf"),
            ),
        )

        document = await session.document_manager.upload_file(source)

        assert document.display_name == "report.pdf"
        assert b'filename="report.pdf"' in route.calls.last.request.content

    async def test_upload_missing_file(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        tmp_path: Path,
    ) -> None:
        """Test unreadable local files raise INVALID_SOURCE_DOCUMENT without a call."""
        route = respx_mock.post(DOCUMENTS)

        with pytest.raises(ClientResultException) as exc_info:
            await session.document_manager.upload_file(tmp_path / "missing.docx")

        assert exc_info.value.client_error is WsclientError.INVALID_SOURCE_DOCUMENT
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not route.called

    async def test_unknown_document(self, session: Session) -> None:
        """Test lookups of unknown ids raise INVALID_DOCUMENT."""
        with pytest.raises(ClientResultException) as exc_info:
            session.document_manager.get_document("missing")

        assert exc_info.value.client_error is WsclientError.INVALID_DOCUMENT

    async def test_synchronize_requires_id(self, session: Session) -> None:
        """Test descriptions without id are rejected."""
        with pytest.raises(ClientResultException) as exc_info:
            await session.document_manager.synchronize_document(DocumentFile())

        assert exc_info.value.client_error is WsclientError.INVALID_DOCUMENT


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


class TestDownload:
    """Tests for downloading documents."""

    async def test_round_trip(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test downloaded bytes equal the uploaded bytes."""
        payload = b"PK\x03\x04 docx"
        document = await _upload(respx_mock, session, make_document_json)
        route = respx_mock.get(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(200, content=payload),
        )

        assert await document.download() == payload
        assert route.calls.last.request.headers["Accept"] == "application/octet-stream"

    async def test_download_to_path(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
        tmp_path: Path,
    ) -> None:
        """Test streaming a document into a file."""
        document = await _upload(respx_mock, session, make_document_json)
        content = b"%PDF-1.7\n" + b"0" * 200_000
        respx_mock.get(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(200, content=content),
        )
        target = tmp_path / "out.pdf"

        result = await document.download_to_path(target)

        assert result == target
        assert target.read_bytes() == content

    async def test_download_to_path_error(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
        tmp_path: Path,
    ) -> None:
        """Test streamed error responses are translated and no file is written."""
        document = await _upload(respx_mock, session, make_document_json)
        respx_mock.get(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(
                404,
                json={"errorCode": -7, "errorMessage": "Not found"},
            ),
        )
        target = tmp_path / "out.pdf"

        with pytest.raises(ServerResultException) as exc_info:
            await document.download_to_path(target)

        assert exc_info.value.message == "Not found"
        assert not target.exists()

    async def test_download_to_unwritable_path(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
        tmp_path: Path,
    ) -> None:
        """Test local write failures raise INVALID_SOURCE_DOCUMENT."""
        document = await _upload(respx_mock, session, make_document_json)
        respx_mock.get(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(200, content=b"%PDF-1.7\n"),
        )
        target = tmp_path / "missing" / "out.pdf"

        with pytest.raises(ClientResultException) as exc_info:
            await document.download_to_path(target)

        assert exc_info.value.client_error is WsclientError.INVALID_SOURCE_DOCUMENT
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not target.exists()

    async def test_download_unknown_id_makes_no_call(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
    ) -> None:
        """Test downloading an untracked id fails locally."""
        calls_before = len(respx_mock.calls)

        with pytest.raises(ClientResultException):
            await session.document_manager.download_document("missing")

        assert len(respx_mock.calls) == calls_before


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestMutations:
    """Tests for rename, delete, compress and the other mutations."""

    async def test_rename(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test a confirmed rename updates the local name."""
        document = await _upload(respx_mock, session, make_document_json)
        route = respx_mock.post(f"{DOCUMENTS}/doc-1/update").mock(
            return_value=httpx.Response(200, json=make_document_json("doc-1", "final")),
        )

        renamed = await document.rename("final")

        assert json.loads(route.calls.last.request.content) == {"fileName": "final"}
        assert renamed is document
        assert document.display_name == "final.docx"

    async def test_rename_server_error_keeps_name(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test a failed rename leaves the local name unchanged."""
        document = await _upload(respx_mock, session, make_document_json)
        respx_mock.post(f"{DOCUMENTS}/doc-1/update").mock(
            return_value=httpx.Response(500, text="boom"),
        )

        with pytest.raises(ServerResultException):
            await document.rename("final")

        assert document.display_name == "lorem.docx"

    async def test_delete_then_get(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test a deleted document is no longer tracked."""
        document = await _upload(respx_mock, session, make_document_json)
        route = respx_mock.delete(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(200),
        )

        await document.delete()

        assert route.called
        assert session.document_manager.get_documents() == []
        with pytest.raises(ClientResultException) as exc_info:
            session.document_manager.get_document("doc-1")
        assert exc_info.value.client_error is WsclientError.INVALID_DOCUMENT
        with pytest.raises(ClientResultException):
            _ = document.display_name

    async def test_delete_failure_keeps_document(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test a failed delete keeps the document tracked."""
        document = await _upload(respx_mock, session, make_document_json)
        respx_mock.delete(f"{DOCUMENTS}/doc-1").mock(return_value=httpx.Response(500))

        with pytest.raises(ServerResultException):
            await document.delete()

        assert session.document_manager.contains_document("doc-1")

    async def test_compress(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test compressing tracked documents registers the archive."""
        await _upload(respx_mock, session, make_document_json, "doc-1")
        await _upload(respx_mock, session, make_document_json, "doc-2")
        route = respx_mock.post(f"{DOCUMENTS}/compress").mock(
            return_value=httpx.Response(
                200,
                json=make_document_json("zip-1", "bundle", "zip"),
            ),
        )

        archive = await session.document_manager.compress_documents(
            ["doc-1", "doc-2"],
            "bundle",
        )

        assert json.loads(route.calls.last.request.content) == {
            "documentIdList": ["doc-1", "doc-2"],
            "archiveFileName": "bundle",
            "storeArchive": True,
        }
        assert archive.display_name == "bundle.zip"
        assert len(session.document_manager.get_documents()) == 3

    async def test_compress_unknown_id_makes_no_call(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test compress fails before any network call for unknown ids."""
        await _upload(respx_mock, session, make_document_json)
        route = respx_mock.post(f"{DOCUMENTS}/compress")

        with pytest.raises(ClientResultException) as exc_info:
            await session.document_manager.compress_documents(["doc-1", "missing"])

        assert exc_info.value.client_error is WsclientError.INVALID_DOCUMENT
        assert not route.called

    async def test_download_archive(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test an unstored archive is returned as bytes."""
        await _upload(respx_mock, session, make_document_json)
        route = respx_mock.post(f"{DOCUMENTS}/compress").mock(
            return_value=httpx.Response(200, content=b"PK\x05\x06"),
        )

        content = await session.document_manager.download_archive(["doc-1"])

        assert content == b"PK\x05\x06"
        assert json.loads(route.calls.last.request.content)["storeArchive"] is False
        assert len(session.document_manager.get_documents()) == 1

    async def test_extract(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test extracting an archive registers every entry."""
        await _upload(respx_mock, session, make_document_json, "zip-1", "bundle")
        route = respx_mock.post(f"{DOCUMENTS}/zip-1/extract").mock(
            return_value=httpx.Response(
                200,
                json=[
                    make_document_json("doc-a", "a", "pdf"),
                    make_document_json("doc-b", "b", "pdf"),
                ],
            ),
        )

        documents = await session.document_manager.extract_document(
            "zip-1",
            FileExtract(file_names=["*.pdf"]),
        )

        assert [d.document_id for d in documents] == ["doc-a", "doc-b"]
        assert json.loads(route.calls.last.request.content) == {"fileNames": ["*.pdf"]}
        assert len(session.document_manager.get_documents()) == 3

    async def test_extract_archive_file(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test reading a single archive entry."""
        await _upload(respx_mock, session, make_document_json, "zip-1", "bundle")
        respx_mock.get(f"{DOCUMENTS}/zip-1/archive/docs/a.pdf").mock(
            return_value=httpx.Response(200, content=b"%PDF-a"),
        )

        content = await session.document_manager.extract_archive_file(
            "zip-1",
            "/docs/a.pdf",
        )

        assert content == b"%PDF-a"

    async def test_update_security(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test changing document passwords."""
        await _upload(respx_mock, session, make_document_json)
        route = respx_mock.put(f"{DOCUMENTS}/doc-1/security/password").mock(
            return_value=httpx.Response(200, json=make_document_json("doc-1")),
        )

        await session.document_manager.update_document_security(
            "doc-1",
            PdfPassword(open="open-pw"),
        )

        assert json.loads(route.calls.last.request.content) == {"open": "open-pw"}

    async def test_document_info(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test querying document information."""
        await _upload(respx_mock, session, make_document_json)
        respx_mock.get(f"{DOCUMENTS}/doc-1/info/isPdf").mock(
            return_value=httpx.Response(200, json={"type": "isPdf", "value": "false"}),
        )

        info = await session.document_manager.get_document_info(
            "doc-1",
            DocumentInfoType.IS_PDF,
        )

        assert info.value == "false"

    async def test_update_document_content(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test replacing a document's content keeps its id."""
        await _upload(respx_mock, session, make_document_json)
        route = respx_mock.put(f"{DOCUMENTS}/doc-1").mock(
            return_value=httpx.Response(
                200,
                json=make_document_json("doc-1", fileSize=2048),
            ),
        )

        document = await session.document_manager.update_document("doc-1", b"new")

        assert b'name="filedata"' in route.calls.last.request.content
        assert document.document_file.file_size == 2048


# ---------------------------------------------------------------------------
# Synchronization and history
# ---------------------------------------------------------------------------


class TestSynchronization:
    """Tests for reconciling with the server's document list."""

    async def test_synchronize(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test unknown documents are added and vanished ones dropped."""
        await _upload(respx_mock, session, make_document_json, "gone")
        respx_mock.get(f"{DOCUMENTS}/list").mock(
            return_value=httpx.Response(
                200,
                json=[make_document_json("doc-1"), make_document_json("doc-2")],
            ),
        )

        documents = await session.document_manager.synchronize()

        assert [d.document_id for d in documents] == ["doc-1", "doc-2"]
        assert not session.document_manager.contains_document("gone")

    async def test_invalid_list_payload(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
    ) -> None:
        """Test malformed list payloads raise INVALID_HTTP_MESSAGE_CONTENT."""
        respx_mock.get(f"{DOCUMENTS}/list").mock(
            return_value=httpx.Response(200, json={"not": "a list"}),
        )

        with pytest.raises(ClientResultException) as exc_info:
            await session.document_manager.synchronize()

        assert exc_info.value.client_error is WsclientError.INVALID_HTTP_MESSAGE_CONTENT


class TestHistory:
    """Tests for document history tracking."""

    async def test_history_inactive(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test histories are unavailable while tracking is off."""
        document = await _upload(respx_mock, session, make_document_json)

        with pytest.raises(ClientResultException) as exc_info:
            _ = document.history

        assert exc_info.value.client_error is WsclientError.INVALID_HISTORY_DATA

    async def test_history_tracking(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test enabling history fetches it and uploads request it."""
        manager = session.document_manager
        upload = respx_mock.post(DOCUMENTS).mock(
            return_value=httpx.Response(200, json=make_document_json("doc-1")),
        )
        respx_mock.get(f"{DOCUMENTS}/doc-1/history").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"id": 2, "active": True, "operation": "converter"},
                    {"id": 1, "active": False, "operation": "upload"},
                ],
            ),
        )

        await manager.set_history_active(True)  # noqa: FBT003
        document = await session.upload_document(b"data", "lorem.docx")

        assert upload.calls.last.request.url.params["history"] == "true"
        assert [entry.id for entry in document.history] == [1, 2]
        assert manager.get_document_history_entry("doc-1", 2).active is True

    async def test_update_history_rereads(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test updating an entry reloads the server's view of the history."""
        manager = session.document_manager
        respx_mock.post(DOCUMENTS).mock(
            return_value=httpx.Response(200, json=make_document_json("doc-1")),
        )
        history = respx_mock.get(f"{DOCUMENTS}/doc-1/history")
        history.side_effect = [
            httpx.Response(
                200,
                json=[
                    {"id": 1, "active": False, "operation": "upload"},
                    {"id": 2, "active": True, "operation": "converter"},
                ],
            ),
            httpx.Response(
                200,
                json=[
                    {"id": 1, "active": True, "operation": "upload"},
                    {"id": 2, "active": False, "operation": "converter"},
                ],
            ),
        ]
        route = respx_mock.put(f"{DOCUMENTS}/doc-1/history/1").mock(
            return_value=httpx.Response(
                200,
                json={"id": 1, "active": True, "operation": "upload"},
            ),
        )
        await manager.set_history_active(True)  # noqa: FBT003
        await session.upload_document(b"data", "lorem.docx")

        updated = await manager.update_document_history(
            "doc-1",
            HistoryEntry(id=1, active=True, operation="upload"),
        )

        assert updated.active is True
        assert json.loads(route.calls.last.request.content)["active"] is True
        active = [entry.id for entry in manager.get_document_history("doc-1") if entry.active]
        assert active == [1]

    async def test_unknown_history_entry(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test unknown history ids raise INVALID_HISTORY_DATA."""
        await session.document_manager.set_history_active(True)  # noqa: FBT003
        respx_mock.get(f"{DOCUMENTS}/doc-1/history").mock(
            return_value=httpx.Response(200, json=[]),
        )
        await _upload(respx_mock, session, make_document_json)

        with pytest.raises(ClientResultException) as exc_info:
            session.document_manager.get_document_history_entry("doc-1", 99)

        assert exc_info.value.client_error is WsclientError.INVALID_HISTORY_DATA

    async def test_history_failure_keeps_document(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test a failing history call leaves the accepted upload tracked."""
        manager = session.document_manager
        await manager.set_history_active(True)  # noqa: FBT003
        respx_mock.get(f"{DOCUMENTS}/doc-1/history").mock(
            return_value=httpx.Response(500, text="boom"),
        )

        with pytest.raises(ServerResultException):
            await _upload(respx_mock, session, make_document_json)

        assert manager.contains_document("doc-1")
        assert manager.get_document("doc-1").display_name == "lorem.docx"


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    """Tests for parallel calls and cancellation on one session."""

    async def test_parallel_uploads(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test parallel uploads each register exactly one document."""
        ids = [f"doc-{i}" for i in range(8)]
        respx_mock.post(DOCUMENTS).mock(
            side_effect=[
                httpx.Response(200, json=make_document_json(document_id))
                for document_id in ids
            ],
        )

        documents = await asyncio.gather(
            *(session.upload_document(b"data", f"{i}.docx") for i in range(len(ids))),
        )

        tracked = {d.document_id for d in session.document_manager.get_documents()}
        assert tracked == set(ids)
        assert {d.document_id for d in documents} == set(ids)

    async def test_cancelled_rename_keeps_state(
        self,
        respx_mock: respx.MockRouter,
        session: Session,
        make_document_json: DocumentJson,
    ) -> None:
        """Test cancelling a pending rename leaves the document untouched."""
        document = await _upload(respx_mock, session, make_document_json)
        started = asyncio.Event()
        never = asyncio.Event()

        async def hang(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            started.set()
            await never.wait()
            return httpx.Response(200, json=make_document_json("doc-1", "final"))

        respx_mock.post(f"{DOCUMENTS}/doc-1/update").mock(side_effect=hang)
        task = asyncio.create_task(document.rename("final"))
        await started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert document.display_name == "lorem.docx"
        assert session.document_manager.get_documents() == [document]
