from __future__ import annotations

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Optional

import aiofiles

from app.application.interfaces.blob_sink import IBlobSink
from app.core.config import settings
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)


class LocalFileBlobSink(IBlobSink):
    """Stores blobs under ``root_dir``; files are served from ``{base_url}/images``."""

    def __init__(
        self, root_dir: Optional[str] = None, base_url: Optional[str] = None
    ) -> None:
        self.root = Path(root_dir or settings.upload_dir).resolve()
        self.base_url = (base_url or settings.public_base_url).rstrip("/")

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not key or path == self.root or not path.is_relative_to(self.root):
            raise StoreError(f"Invalid storage key: {key!r}", key=key)
        return path

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/images/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise StoreError(f"Failed to write {key}: {e}", key=key) from e

        logger.info("💾 Image saved locally: %s (%d bytes)", key, len(data))
        return self.public_url(key)

    async def delete(self, key: str) -> bool:
        try:
            path = self._path_for(key)
        except StoreError:
            return False
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Failed to delete %s: %s", key, e)
            return False
        logger.info("🗑️ Image deleted locally: %s", key)
        return True

    def cleanup_older_than(self, max_age_hours: float) -> int:
        """Remove stored files older than ``max_age_hours``; returns the count."""
        if not self.root.exists():
            return 0
        cutoff = time.time() - max_age_hours * 3600
        removed = 0
        for dirpath, _, filenames in os.walk(self.root):
            for name in filenames:
                path = Path(dirpath) / name
                try:
                    if path.stat().st_mtime < cutoff:
                        path.unlink()
                        removed += 1
                except OSError as e:
                    logger.warning("Could not remove %s: %s", path, e)
        if removed:
            logger.info("🧹 Cleaned up %d old images", removed)
        return removed
