# backend/app/core/storage.py

import asyncio
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backend.app.config import settings, Settings
from backend.app.core.errors import ExternalCallTimeout, StorageDeleteError, StorageReadError, StorageWriteError
from backend.app.core.timeouts import bounded

logger = logging.getLogger(__name__)


class BlobStorage:
    """Narrow async facade over an S3 bucket: upload, download, remove."""

    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self.client = client or boto3.client("s3")

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "BlobStorage":
        client = boto3.client(
            "s3",
            region_name=cfg.AWS_REGION,
            endpoint_url=cfg.STORAGE_ENDPOINT_URL,
        )
        return cls(cfg.STORAGE_BUCKET, client=client)

    async def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            await bounded(
                asyncio.to_thread(self.client.put_object, Bucket=self.bucket, Key=path, Body=content, **extra),
                what=f"storage upload path={path}",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to upload blob path=%s error=%s", path, e)
            raise StorageWriteError(f"Failed to upload document: {e}") from e
        logger.info("Blob uploaded path=%s size=%d", path, len(content))
        return path

    async def download(self, path: str) -> bytes:
        try:
            return await bounded(asyncio.to_thread(self._read, path), what=f"storage download path={path}")
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to download blob path=%s error=%s", path, e)
            raise StorageReadError(f"Failed to download document: {e}") from e

    async def remove(self, path: str) -> None:
        try:
            await bounded(
                asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=path),
                what=f"storage remove path={path}",
            )
        except (BotoCoreError, ClientError, ExternalCallTimeout) as e:
            raise StorageDeleteError(f"Failed to delete document: {e}") from e

    def _read(self, path: str) -> bytes:
        obj = self.client.get_object(Bucket=self.bucket, Key=path)
        return obj["Body"].read()
