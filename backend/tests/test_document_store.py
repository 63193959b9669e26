"""
Tests for the document store: blob upload, metadata rows, temp materialization
and best-effort deletion. S3 is mocked with moto.

Run tests with: pytest backend/tests/test_document_store.py -v
"""

import asyncio
import os
import time

import pytest

from backend.app.config import settings
from backend.app.core.database import Database
from backend.app.core.document_store import DocumentStore
from backend.app.core.errors import NotFound, PersistenceError, StorageDeleteError, StorageReadError
from backend.app.core.storage import BlobStorage
from backend.app.core.temp_files import TempFileManager


class FailingDeleteStorage:
    async def remove(self, path):
        raise StorageDeleteError("Failed to delete document: access denied")


class HangingS3Client:
    def delete_object(self, Bucket, Key):
        time.sleep(0.5)


def test_upload_stores_blob_and_metadata(documents, storage, s3_client):
    document_id = asyncio.run(documents.upload(b"%PDF-fake", "My CV.pdf", "cv", "application/pdf"))

    row = asyncio.run(documents.get_document(document_id))
    assert row.file_type == "cv"
    assert row.file_name == "My CV.pdf"
    assert row.file_size == len(b"%PDF-fake")
    assert row.mime_type == "application/pdf"
    assert row.storage_path.startswith(f"{document_id}/cv-")
    assert row.storage_path.endswith("-My_CV.pdf")
    assert row.doc_metadata["originalName"] == "My CV.pdf"
    assert "uploadedAt" in row.doc_metadata

    obj = s3_client.get_object(Bucket=storage.bucket, Key=row.storage_path)
    assert obj["Body"].read() == b"%PDF-fake"


def test_resolve_unknown_document_raises_not_found(documents):
    with pytest.raises(NotFound):
        asyncio.run(documents.resolve("00000000-0000-0000-0000-000000000000"))


def test_upload_insert_failure_keeps_blob(storage, s3_client, tmp_path):
    # no tables: the metadata insert fails after the blob is written
    store = DocumentStore(storage, Database(f"sqlite:///{tmp_path / 'empty.db'}"), TempFileManager(str(tmp_path)))

    with pytest.raises(PersistenceError):
        asyncio.run(store.upload(b"data", "cv.pdf", "cv"))

    listed = s3_client.list_objects_v2(Bucket=storage.bucket)
    assert listed["KeyCount"] == 1


def test_materialize_removes_temp_file_on_exit(documents, tmp_path):
    document_id = asyncio.run(documents.upload(b"content", "project.pdf", "project"))
    storage_path = asyncio.run(documents.resolve(document_id))
    seen = {}

    async def run():
        async with documents.materialize(storage_path) as local_path:
            seen["path"] = local_path
            with open(local_path, "rb") as f:
                seen["content"] = f.read()

    asyncio.run(run())

    assert seen["content"] == b"content"
    assert os.path.basename(seen["path"]).startswith("eval-")
    assert not os.path.exists(seen["path"])


def test_materialize_missing_blob_raises_read_error(documents):
    async def run():
        async with documents.materialize("missing/cv.pdf"):
            pass

    with pytest.raises(StorageReadError):
        asyncio.run(run())


def test_delete_failure_is_swallowed(db, tmp_path):
    store = DocumentStore(FailingDeleteStorage(), db, TempFileManager(str(tmp_path)))

    asyncio.run(store.delete("some/path.pdf"))


def test_delete_removes_blob(documents, storage, s3_client):
    document_id = asyncio.run(documents.upload(b"content", "cv.pdf", "cv"))
    storage_path = asyncio.run(documents.resolve(document_id))

    asyncio.run(documents.delete(storage_path))

    assert s3_client.list_objects_v2(Bucket=storage.bucket)["KeyCount"] == 0


def test_delete_timeout_is_swallowed(db, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "EXTERNAL_CALL_TIMEOUT", 0.05)
    store = DocumentStore(BlobStorage("bucket", client=HangingS3Client()), db, TempFileManager(str(tmp_path)))

    asyncio.run(store.delete("doc/cv-1-cv.pdf"))


def test_remove_timeout_becomes_delete_error(monkeypatch):
    monkeypatch.setattr(settings, "EXTERNAL_CALL_TIMEOUT", 0.05)
    storage = BlobStorage("bucket", client=HangingS3Client())

    with pytest.raises(StorageDeleteError):
        asyncio.run(storage.remove("doc/cv-1-cv.pdf"))
