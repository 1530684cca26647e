"""
S3BlobStore — BlobStore over S3 or MinIO (boto3).

boto3 is synchronous; calls run in worker threads so the event loop keeps
serving other rows while an upload is in flight.
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.errors import StorageError
from workforce_ingest.storage.base import BlobStore

logger = get_logger(__name__)


class S3BlobStore(BlobStore):
    """
    Object storage client.

    Args:
        client: A boto3 S3 client.
        bucket: Target bucket.
        public_base_url: When set, URLs are "<base>/<path>"; otherwise
                         presigned GET URLs valid for url_expiry_seconds.
        url_expiry_seconds: Lifetime of presigned URLs.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        public_base_url: str = "",
        url_expiry_seconds: int = 604800,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.url_expiry_seconds = url_expiry_seconds

    @classmethod
    def from_settings(cls, settings: Any = None) -> S3BlobStore:
        if settings is None:
            from workforce_ingest.core.config import settings
        client = boto3.client(
            "s3",
            endpoint_url=settings.STORAGE_ENDPOINT or None,
            aws_access_key_id=settings.STORAGE_ACCESS_KEY,
            aws_secret_access_key=settings.STORAGE_SECRET_KEY,
            region_name=settings.STORAGE_REGION,
        )
        return cls(
            client,
            settings.STORAGE_BUCKET_NAME,
            public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
            url_expiry_seconds=settings.STORAGE_URL_EXPIRY_SECONDS,
        )

    def _url_for(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{path}"
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=self.url_expiry_seconds,
        )

    def _upload_sync(self, path: str, data: bytes, content_type: str) -> str:
        self.client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type)
        return self._url_for(path)

    def _download_sync(self, path: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=path)
        return response["Body"].read()

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            url = await asyncio.to_thread(self._upload_sync, path, data, content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload to {self.bucket}/{path} failed: {exc}") from exc
        logger.debug("Object uploaded", bucket=self.bucket, path=path, size=len(data))
        return url

    async def download(self, path: str) -> bytes:
        try:
            return await asyncio.to_thread(self._download_sync, path)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Download of {self.bucket}/{path} failed: {exc}") from exc
