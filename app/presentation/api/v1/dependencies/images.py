from functools import lru_cache

from app.application.pipeline.search.adapter_bundle import SearchPipelineAdapters
from app.application.use_cases.search_and_store import SearchAndStoreUseCase
from app.core.config import settings
from app.infrastructure.adapters.bundles.image_search import get_search_adapter_bundle


@lru_cache(maxsize=1)
def get_search_adapters() -> SearchPipelineAdapters:
    """Process-wide adapters, so identity rotation state survives across requests."""
    return get_search_adapter_bundle()


def get_search_and_store_use_case() -> SearchAndStoreUseCase:
    """Compose the SearchAndStoreUseCase at Presentation layer using adapter providers."""
    return SearchAndStoreUseCase(
        get_search_adapters(),
        default_watermark_text=settings.default_watermark_text or None,
    )
