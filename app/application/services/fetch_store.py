"""
Concurrent fetch -> transform -> watermark -> store over a BlobSink.

A failing candidate only removes itself from the output; the batch as a
whole never raises.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Sequence

from app.application.interfaces import (
    IBlobSink,
    IClock,
    IIdGenerator,
    IImageDownloader,
    IImageTransformer,
)
from app.application.models import (
    FailedImage,
    FetchResult,
    SearchCandidate,
    StoredImage,
)
from app.core.exceptions import StoreError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def sanitize_keyword(keyword: str) -> str:
    """Lowercase alphanumeric folder name for a keyword ("images" if empty)."""
    return _NON_ALNUM.sub("", (keyword or "").lower()) or "images"


def build_storage_key(
    keyword: str, timestamp_ms: int, short_id: str, index: int, extension: str
) -> str:
    """
    {keyword}/{timestamp}_{short_id}_{index + 1}.{ext}

    Example:
        >>> build_storage_key("Sunset Beach!", 1700000000000, "1a2b3c4d", 0, "webp")
        'sunsetbeach/1700000000000_1a2b3c4d_1.webp'
    """
    ext = extension.lstrip(".") or "bin"
    return f"{sanitize_keyword(keyword)}/{timestamp_ms}_{short_id}_{index + 1}.{ext}"


class FetchTransformStorePipeline:
    def __init__(
        self,
        downloader: IImageDownloader,
        transformer: IImageTransformer,
        blob_sink: IBlobSink,
        *,
        id_gen: IIdGenerator,
        clock: IClock,
    ) -> None:
        self.downloader = downloader
        self.transformer = transformer
        self.blob_sink = blob_sink
        self.id_gen = id_gen
        self.clock = clock

    async def process(
        self,
        candidates: Sequence[SearchCandidate],
        keyword: str,
        watermark_text: Optional[str] = None,
    ) -> List[StoredImage]:
        """Store every candidate concurrently; return the successful ones."""
        outcomes = await self.process_all(candidates, keyword, watermark_text)
        stored = [o for o in outcomes if isinstance(o, StoredImage)]
        logger.info(
            "✅ Successfully stored %d/%d images for '%s'",
            len(stored),
            len(candidates),
            keyword,
        )
        return stored

    async def process_all(
        self,
        candidates: Sequence[SearchCandidate],
        keyword: str,
        watermark_text: Optional[str] = None,
    ) -> List[FetchResult]:
        """Per-candidate outcomes in completion order."""
        if not candidates:
            return []
        logger.info("🔄 Processing %d images...", len(candidates))
        tasks = [
            asyncio.ensure_future(self._guarded(c, keyword, i, watermark_text))
            for i, c in enumerate(candidates)
        ]
        outcomes: List[FetchResult] = []
        for fut in asyncio.as_completed(tasks):
            outcomes.append(await fut)
        return outcomes

    async def _guarded(
        self,
        candidate: SearchCandidate,
        keyword: str,
        index: int,
        watermark_text: Optional[str],
    ) -> FetchResult:
        try:
            return await self.process_one(candidate, keyword, index, watermark_text)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "❌ Failed to process image %d (%s): %s",
                index + 1,
                candidate.image_url,
                e,
            )
            return FailedImage(
                index=index,
                original_url=candidate.image_url,
                reason=str(e),
                error_type=type(e).__name__,
            )

    async def process_one(
        self,
        candidate: SearchCandidate,
        keyword: str,
        index: int,
        watermark_text: Optional[str] = None,
    ) -> StoredImage:
        logger.info("📥 Downloading image %d: %s", index + 1, candidate.image_url)
        raw = await self.downloader.download(candidate.image_url)

        image = await asyncio.to_thread(self.transformer.transform, raw, watermark_text)

        timestamp_ms = int(self.clock.now().timestamp() * 1000)
        key = build_storage_key(
            keyword, timestamp_ms, self.id_gen.new_id(), index, image.extension
        )
        try:
            public_url = await self.blob_sink.put(key, image.data, image.content_type)
        except StoreError:
            raise
        except Exception as e:  # noqa: BLE001
            raise StoreError(f"Failed to store {key}: {e}", key=key) from e

        logger.info("✅ Stored image %d: %s", index + 1, public_url)
        return StoredImage(
            public_url=public_url,
            title=candidate.title or "Untitled",
            source_url=candidate.source_url,
            original_url=candidate.image_url,
            key=key,
        )
