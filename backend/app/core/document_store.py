# backend/app/core/document_store.py

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.database import Database
from backend.app.core.errors import NotFound, PersistenceError, StorageDeleteError, is_swallowed
from backend.app.core.storage import BlobStorage
from backend.app.core.temp_files import TempFileManager, sanitize_filename
from backend.app.models.db_models import UploadedDocument

logger = logging.getLogger(__name__)


class DocumentStore:
    """Uploaded CV / project documents: blob bytes plus a metadata row."""

    def __init__(self, storage: BlobStorage, db: Database, temp_files: Optional[TempFileManager] = None):
        self.storage = storage
        self.db = db
        self.temp_files = temp_files or TempFileManager()

    async def upload(
        self,
        content: bytes,
        filename: str,
        declared_type: str,
        content_type: Optional[str] = None,
    ) -> str:
        logger.info("Uploading document type=%s name=%s size=%d", declared_type, filename, len(content))
        document_id = str(uuid.uuid4())
        path = f"{document_id}/{declared_type}-{int(time.time() * 1000)}-{sanitize_filename(filename)}"

        # The blob is not rolled back if the insert below fails.
        stored_path = await self.storage.upload(path, content, content_type)

        row = UploadedDocument(
            id=document_id,
            file_name=filename,
            file_type=declared_type,
            storage_path=stored_path,
            file_size=len(content),
            mime_type=content_type,
            doc_metadata={
                "originalName": filename,
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
            },
        )

        def _insert(session):
            session.add(row)
            session.commit()

        try:
            await self.db.run(_insert, what="insert uploaded_documents")
        except SQLAlchemyError as e:
            logger.error("Failed to store document metadata id=%s error=%s", document_id, e)
            raise PersistenceError(f"Failed to upload document: {e}") from e

        logger.info("Document uploaded id=%s path=%s", document_id, stored_path)
        return document_id

    async def get_document(self, document_id: str) -> UploadedDocument:
        try:
            row = await self.db.run(lambda s: s.get(UploadedDocument, document_id), what="select uploaded_documents")
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read document {document_id}: {e}") from e
        if row is None:
            logger.error("Document not found id=%s", document_id)
            raise NotFound(f"Document not found: {document_id}")
        return row

    async def resolve(self, document_id: str) -> str:
        document = await self.get_document(document_id)
        return document.storage_path

    @asynccontextmanager
    async def materialize(self, storage_path: str) -> AsyncIterator[str]:
        """Download a blob to a temp file; the file is removed when the block exits."""
        content = await self.storage.download(storage_path)
        with self.temp_files.temp_file(content, storage_path, prefix="eval") as path:
            logger.info("Document materialized path=%s temp=%s", storage_path, path)
            yield path

    async def delete(self, storage_path: str) -> None:
        try:
            await self.storage.remove(storage_path)
        except StorageDeleteError as e:
            if not is_swallowed(e):
                raise
            logger.error("Failed to delete document from storage path=%s error=%s", storage_path, e)
            return
        logger.info("Document deleted from storage path=%s", storage_path)
