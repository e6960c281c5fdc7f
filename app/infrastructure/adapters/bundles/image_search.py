from __future__ import annotations

from app.application.interfaces import IBlobSink
from app.application.pipeline.search.adapter_bundle import SearchPipelineAdapters
from app.application.services.search_orchestrator import RetryPolicy, SearchOrchestrator
from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.infrastructure.adapters import (
    AiohttpImageDownloader,
    DuckDuckGoSessionClient,
    LocalFileBlobSink,
    PillowImageTransformer,
    RoundRobinIdentityRotator,
    S3BlobSink,
    ShortUuidGenerator,
    SystemClock,
)


def get_blob_sink(backend: str | None = None) -> IBlobSink:
    backend = (backend or settings.storage_backend).lower()
    if backend == "local":
        return LocalFileBlobSink()
    if backend == "s3":
        return S3BlobSink()
    raise ConfigurationError(
        f"Unknown storage backend: {backend}", config_key="storage_backend"
    )


def get_search_adapter_bundle(
    *, storage_backend: str | None = None
) -> SearchPipelineAdapters:
    """Provide the adapters container for the search-and-store pipeline.

    Concrete assembly of adapter implementations, configured from settings.
    """
    policy = RetryPolicy(
        max_attempts=settings.search_max_attempts,
        backoff_base=settings.search_backoff_base,
        backoff_step=settings.search_backoff_step,
        jitter=settings.search_backoff_jitter,
    )
    image_search = SearchOrchestrator(
        DuckDuckGoSessionClient(),
        RoundRobinIdentityRotator(),
        policy=policy,
        excluded_markers=settings.excluded_domain_markers,
    )

    return SearchPipelineAdapters(
        image_search=image_search,
        downloader=AiohttpImageDownloader(),
        transformer=PillowImageTransformer(),
        blob_sink=get_blob_sink(storage_backend),
        id_gen=ShortUuidGenerator(),
        clock=SystemClock(),
    )
