from __future__ import annotations

from typing import Protocol, runtime_checkable

from .image_search import IImageSearch
from .image_downloader import IImageDownloader
from .image_processor import IImageTransformer
from .blob_sink import IBlobSink
from .system import IIdGenerator, IClock


@runtime_checkable
class ISearchPipelineAdapters(Protocol):
    image_search: IImageSearch
    downloader: IImageDownloader
    transformer: IImageTransformer
    blob_sink: IBlobSink
    id_gen: IIdGenerator
    clock: IClock
