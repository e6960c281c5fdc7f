from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from app.application.interfaces import (
    IBlobSink,
    IClock,
    IIdGenerator,
    IImageDownloader,
    IImageSearch,
    IImageTransformer,
)


@dataclass(slots=True)
class SearchPipelineAdapters:
    """Container for all adapters used by the search-and-store pipeline.

    This avoids parameter explosion in builders and centralizes validation.
    """

    image_search: Optional[IImageSearch] = None
    downloader: Optional[IImageDownloader] = None
    transformer: Optional[IImageTransformer] = None
    blob_sink: Optional[IBlobSink] = None
    id_gen: Optional[IIdGenerator] = None
    clock: Optional[IClock] = None

    REQUIRED = (
        "image_search",
        "downloader",
        "transformer",
        "blob_sink",
        "id_gen",
        "clock",
    )

    def validate_required(self, required: Iterable[str] = REQUIRED) -> None:
        missing = [name for name in required if getattr(self, name, None) is None]
        if missing:
            raise ValueError(f"Missing required adapters: {', '.join(missing)}")
