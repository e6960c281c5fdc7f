from .identity import IIdentityRotator
from .search_session import ISearchSessionClient
from .image_search import IImageSearch
from .image_downloader import IImageDownloader
from .image_processor import IImageTransformer
from .blob_sink import IBlobSink
from .system import IIdGenerator, IClock
from .search_adapters import ISearchPipelineAdapters

__all__ = [
    "IIdentityRotator",
    "ISearchSessionClient",
    "IImageSearch",
    "IImageDownloader",
    "IImageTransformer",
    "IBlobSink",
    "IIdGenerator",
    "IClock",
    "ISearchPipelineAdapters",
]
