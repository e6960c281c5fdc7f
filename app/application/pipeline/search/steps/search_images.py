from __future__ import annotations

import logging

from app.application.pipeline.base import PipelineContext, BaseStep
from app.application.interfaces import IImageSearch
from app.core.exceptions import NoCandidatesFound

logger = logging.getLogger(__name__)


class SearchImagesStep(BaseStep):
    """Input:  validated_data
    Output: candidates (List[SearchCandidate])
    """

    name = "search_images"
    required_keys = ["validated_data"]

    def __init__(self, image_search: IImageSearch):
        self.image_search = image_search

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        vd = context.get("validated_data")
        keyword, count = vd["keyword"], vd["count"]

        logger.info("📡 Searching images for '%s' (%d requested)", keyword, count)
        candidates = await self.image_search.search_images(keyword, count)
        if not candidates:
            raise NoCandidatesFound(
                f"No images found for the given keyword: {keyword}"
            )

        context.set("candidates", list(candidates))
