from __future__ import annotations

import asyncio
import logging
from typing import Optional

import boto3

from app.application.interfaces.blob_sink import IBlobSink
from app.core.config import settings
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)


class S3BlobSink(IBlobSink):
    """Public-read S3 storage; the object URL is returned as the public URL."""

    def __init__(
        self,
        *,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> None:
        self.bucket = bucket or settings.aws_s3_bucket
        self.region = region or settings.aws_s3_region
        self.access_key_id = access_key_id or settings.aws_access_key_id
        self.secret_access_key = secret_access_key or settings.aws_secret_access_key
        self.prefix = settings.aws_s3_prefix if prefix is None else prefix
        self._client = None

    @property
    def configured(self) -> bool:
        return all(
            (self.bucket, self.region, self.access_key_id, self.secret_access_key)
        )

    def _s3(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
            )
        return self._client

    def object_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def public_url(self, key: str) -> str:
        return (
            f"https://{self.bucket}.s3.{self.region}.amazonaws.com/"
            f"{self.object_key(key)}"
        )

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if not self.configured:
            raise StoreError("S3 storage is not configured", key=key)

        def _put_sync() -> None:
            self._s3().put_object(
                Bucket=self.bucket,
                Key=self.object_key(key),
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _put_sync)
        except Exception as e:  # noqa: BLE001
            raise StoreError(f"S3 upload failed for {key}: {e}", key=key) from e

        logger.info("☁️ Image uploaded to S3: %s", self.object_key(key))
        return self.public_url(key)

    async def delete(self, key: str) -> bool:
        if not self.configured:
            return False

        def _delete_sync() -> None:
            self._s3().delete_object(Bucket=self.bucket, Key=self.object_key(key))

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _delete_sync)
        except Exception as e:  # noqa: BLE001
            logger.warning("S3 delete failed for %s: %s", key, e)
            return False
        return True
