"""
Shared test configuration/fixtures for the image search & store service.
"""

import asyncio
import io
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

import pytest
from PIL import Image

from app.application.models import Identity, RawImageResult, SearchCandidate
from app.application.pipeline.search.adapter_bundle import SearchPipelineAdapters
from app.infrastructure.adapters.image_processor import PillowImageTransformer
from app.infrastructure.adapters.blob_sink_local import LocalFileBlobSink


def setup_logging():
    """Configure logging for the whole test run."""
    log_dir = Path("test/test_output/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "test_run.log"

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(filename=log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Drop existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Noisy libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)

    logging.getLogger("app").setLevel(logging.DEBUG)
    logging.getLogger("test").setLevel(logging.DEBUG)

    return log_file


def pytest_configure(config):  # pylint: disable=unused-argument
    log_file = setup_logging()

    logger = logging.getLogger("pytest")
    logger.info("=" * 80)
    logger.info("TEST RUN STARTED")
    logger.info("=" * 80)
    logger.info("Working directory: %s", os.getcwd())
    logger.info("Log file: %s", log_file)
    logger.info("-" * 80)


@pytest.fixture(autouse=True)
def log_test_name(request):
    """Log test name when test starts and finishes."""
    logger = logging.getLogger(request.node.nodeid)
    logger.info("🚀 Starting test: %s", request.node.name)
    start_time = datetime.now()

    def log_test_end():
        duration = (datetime.now() - start_time).total_seconds()
        logger.info("✅ Test finished after %.2fs", duration)
        logger.info("-" * 80)

    request.addfinalizer(log_test_end)


# -------------------- Image factories --------------------
@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory for encoded test images.

    make_image_bytes(width, height, fmt="PNG", color=(30, 30, 30), mode="RGB")
    """

    def _make(
        width: int = 64,
        height: int = 48,
        fmt: str = "PNG",
        color=(30, 30, 30),
        mode: str = "RGB",
    ) -> bytes:
        buf = io.BytesIO()
        Image.new(mode, (width, height), color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


# -------------------- Fakes --------------------
class FixedClock:
    def __init__(self, when: Optional[datetime] = None):
        self.when = when or datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.when


class SequenceIdGen:
    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.count = 0

    def new_id(self) -> str:
        self.count += 1
        return f"{self.prefix}{self.count:04d}"


class FakeRotator:
    """Deterministic rotator with a configurable proxy pool size."""

    def __init__(self, proxy_count: int = 0):
        self._proxy_count = proxy_count
        self.calls = 0

    @property
    def proxy_count(self) -> int:
        return self._proxy_count

    def next(self) -> Identity:
        self.calls += 1
        proxy = f"http://10.0.0.{self.calls}:8080" if self._proxy_count else None
        return Identity(user_agent=f"UA-{self.calls}", proxy=proxy)


class ScriptedSessionClient:
    """Session client returning/raising scripted outcomes per attempt."""

    def __init__(self, outcomes: List):
        self.outcomes = list(outcomes)
        self.identities: List[Identity] = []

    async def search(self, keyword: str, identity: Identity) -> List[RawImageResult]:
        self.identities.append(identity)
        outcome = self.outcomes[min(len(self.identities), len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class DictDownloader:
    """Serves bytes from a dict; exceptions stored as values are raised."""

    def __init__(self, bodies: Dict[str, object], delays: Optional[Dict[str, float]] = None):
        self.bodies = bodies
        self.delays = delays or {}
        self.requested: List[str] = []

    async def download(self, url: str) -> bytes:
        self.requested.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        body = self.bodies[url]
        if isinstance(body, BaseException):
            raise body
        return body


class MemoryBlobSink:
    def __init__(self, base_url: str = "https://cdn.test"):
        self.base_url = base_url
        self.blobs: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.blobs[key] = data
        self.content_types[key] = content_type
        return f"{self.base_url}/{key}"

    async def delete(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


def raw(image: str, title: Optional[str] = "An image", url: str = "https://example.com/page"):
    return RawImageResult(image=image, url=url, title=title, width=800, height=600)


def candidate(image_url: str, title: str = "An image") -> SearchCandidate:
    return SearchCandidate(image_url=image_url, source_url="https://example.com/page", title=title)


@pytest.fixture
def fakes():
    """Namespace of fake adapter classes and builders."""
    return SimpleNamespace(
        FixedClock=FixedClock,
        SequenceIdGen=SequenceIdGen,
        FakeRotator=FakeRotator,
        ScriptedSessionClient=ScriptedSessionClient,
        DictDownloader=DictDownloader,
        MemoryBlobSink=MemoryBlobSink,
        raw=raw,
        candidate=candidate,
    )


@pytest.fixture
def local_adapters(tmp_path):
    """Adapters with real transformer + local sink and a pluggable search/downloader."""

    def _build(image_search, downloader) -> SearchPipelineAdapters:
        return SearchPipelineAdapters(
            image_search=image_search,
            downloader=downloader,
            transformer=PillowImageTransformer(),
            blob_sink=LocalFileBlobSink(
                root_dir=str(tmp_path / "uploads"), base_url="http://testserver"
            ),
            id_gen=SequenceIdGen(),
            clock=FixedClock(),
        )

    return _build
