from __future__ import annotations

import logging
from datetime import datetime
from time import perf_counter
from typing import Any, Dict, Mapping

from app.application.interfaces import ISearchPipelineAdapters
from app.application.pipeline.base import PipelineContext, step_timings_ms
from app.application.pipeline.search.builder import build_search_pipeline_via_container
from app.core.exceptions import ImageScraperError

logger = logging.getLogger(__name__)


class SearchAndStoreUseCase:
    """keyword -> candidate search -> concurrent fetch/transform/store.

    Raises InputError, ExhaustedRetriesError/NoCandidatesFound or
    AllStorageFailed; partial storage is an ordinary success.
    """

    def __init__(
        self,
        adapters: ISearchPipelineAdapters,
        *,
        default_watermark_text: str | None = None,
    ) -> None:
        self._adapters = adapters
        self._default_watermark_text = default_watermark_text

    async def execute(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        start = perf_counter()
        ctx = PipelineContext(input=payload if payload is not None else {})

        pipeline = build_search_pipeline_via_container(
            self._adapters, default_watermark_text=self._default_watermark_text
        )
        try:
            result = await pipeline.execute(ctx)
        except ImageScraperError as e:
            e.processing_time_ms = int(round((perf_counter() - start) * 1000))
            raise
        ctx = result["context"]

        vd = ctx.get("validated_data")
        candidates = ctx.get("candidates") or []
        stored = ctx.get("stored_images") or []
        timings = step_timings_ms(result)
        processing_time_ms = int(round((perf_counter() - start) * 1000))

        logger.info(
            "✨ Completed '%s' in %dms: found %d, stored %d",
            vd["keyword"],
            processing_time_ms,
            len(candidates),
            len(stored),
        )
        return {
            "success": True,
            "keyword": vd["keyword"],
            "requested_count": vd["count"],
            "found_count": len(candidates),
            "stored_count": len(stored),
            "processing_time_ms": processing_time_ms,
            "timings": {
                "search_ms": timings.get("search_images", 0),
                "store_ms": timings.get("fetch_store", 0),
            },
            "images": [
                {"url": img.public_url, "title": img.title or "Untitled"}
                for img in stored
            ],
            "timestamp": datetime.now(),
        }
