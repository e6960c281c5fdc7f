from .identity_rotator import RoundRobinIdentityRotator
from .search_duckduckgo import DuckDuckGoSessionClient
from .image_downloader import AiohttpImageDownloader
from .image_processor import PillowImageTransformer
from .blob_sink_local import LocalFileBlobSink
from .blob_sink_s3 import S3BlobSink
from .system import ShortUuidGenerator, SystemClock

__all__ = [
    "RoundRobinIdentityRotator",
    "DuckDuckGoSessionClient",
    "AiohttpImageDownloader",
    "PillowImageTransformer",
    "LocalFileBlobSink",
    "S3BlobSink",
    "ShortUuidGenerator",
    "SystemClock",
]
