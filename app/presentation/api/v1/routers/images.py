import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.application.use_cases.search_and_store import SearchAndStoreUseCase
from app.presentation.api.v1.dependencies.images import get_search_and_store_use_case
from app.presentation.api.v1.schemas.images import ErrorResponse, SearchImagesResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_ERRORS = {
    status: {"model": ErrorResponse}
    for status in (400, 404, 408, 429, 500, 503)
}


@router.post(
    "/search-images", response_model=SearchImagesResponse, responses=_ERRORS
)
async def search_images(
    payload: Dict[str, Any] = Body(...),
    use_case: SearchAndStoreUseCase = Depends(get_search_and_store_use_case),
):
    """Search images for a keyword and store optimized copies.

    Body: ``{"keyword": str, "count": 1..10 (default 3), "watermark_text": str?}``
    """
    logger.info("📥 Image search request: %s", payload.get("keyword"))
    result = await use_case.execute(payload)
    return SearchImagesResponse(**result)
