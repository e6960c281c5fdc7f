from __future__ import annotations

import logging

from app.application.pipeline.base import PipelineContext, BaseStep
from app.application.models import FailedImage, StoredImage
from app.application.services.fetch_store import FetchTransformStorePipeline
from app.core.exceptions import AllStorageFailed

logger = logging.getLogger(__name__)


class FetchStoreStep(BaseStep):
    """Input:  validated_data, candidates
    Output: stored_images (List[StoredImage]), failed_images (List[FailedImage])
    """

    name = "fetch_store"
    required_keys = ["validated_data", "candidates"]

    def __init__(self, pipeline: FetchTransformStorePipeline):
        self.pipeline = pipeline

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        vd = context.get("validated_data")
        candidates = context.get("candidates") or []

        outcomes = await self.pipeline.process_all(
            candidates, vd["keyword"], vd.get("watermark_text")
        )
        stored = [o for o in outcomes if isinstance(o, StoredImage)]
        failed = [o for o in outcomes if isinstance(o, FailedImage)]

        logger.info(
            "📊 Stored %d/%d images (%d failed)",
            len(stored),
            len(candidates),
            len(failed),
        )
        context.update(stored_images=stored, failed_images=failed)

        if not stored:
            raise AllStorageFailed(
                f"Failed to process any images for keyword: {vd['keyword']}",
                total=len(candidates),
            )
