"""
End-to-end flow through the use case with a stubbed provider and downloader:
real filter, orchestrator, Pillow transformer and local blob sink.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from app.application.services.search_orchestrator import RetryPolicy, SearchOrchestrator
from app.application.use_cases.search_and_store import SearchAndStoreUseCase
from app.core.exceptions import AllStorageFailed, DownloadError, ExhaustedRetriesError, SessionError


def _provider_results(fakes):
    return [
        fakes.raw("https://cdn.example.com/sunset_1.jpg", title="Sunset one"),
        fakes.raw("https://upload.wikimedia.org/sunset_2.jpg", url="https://en.wikipedia.org/wiki/Sunset"),
        fakes.raw("https://cdn.example.com/sunset_3.png", title=None),
        fakes.raw("https://cdn.example.com/sunset_4.jpg", title="Sunset four"),
        fakes.raw("https://cdn.example.com/sunset_5.jpg", title="Sunset five"),
    ]


def _orchestrator(fakes, outcomes, proxy_count=2):
    async def no_sleep(_delay):
        return None

    return SearchOrchestrator(
        fakes.ScriptedSessionClient(outcomes),
        fakes.FakeRotator(proxy_count=proxy_count),
        policy=RetryPolicy(max_attempts=8, jitter=0.0),
        sleep=no_sleep,
    )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_sunset_three_images_stored(fakes, local_adapters, make_image_bytes, tmp_path):
    image_search = _orchestrator(fakes, [_provider_results(fakes)])
    bodies = {
        "https://cdn.example.com/sunset_1.jpg": make_image_bytes(2400, 1600, fmt="JPEG"),
        "https://cdn.example.com/sunset_3.png": make_image_bytes(640, 480),
        "https://cdn.example.com/sunset_4.jpg": make_image_bytes(1200, 900, fmt="JPEG"),
    }
    downloader = fakes.DictDownloader(bodies)
    use_case = SearchAndStoreUseCase(local_adapters(image_search, downloader))

    result = await use_case.execute({"keyword": "sunset", "count": 3})

    assert result["success"] is True
    assert result["keyword"] == "sunset"
    assert result["requested_count"] == 3
    assert result["found_count"] == 3
    assert result["stored_count"] == 3
    assert set(result["timings"]) == {"search_ms", "store_ms"}
    assert isinstance(result["processing_time_ms"], int)
    assert "https://upload.wikimedia.org/sunset_2.jpg" not in downloader.requested
    assert {img["title"] for img in result["images"]} == {"Sunset one", "Untitled", "Sunset four"}

    for img in result["images"]:
        assert img["url"].startswith("http://testserver/images/sunset/")
        assert img["url"].endswith(".webp")
        key = img["url"].split("/images/", 1)[1]
        stored = Path(tmp_path / "uploads" / key)
        with Image.open(io.BytesIO(stored.read_bytes())) as out:
            assert out.format == "WEBP"
            assert out.width <= 1920


@pytest.mark.integration
@pytest.mark.asyncio
async def test_partial_failure_is_still_success(fakes, local_adapters, make_image_bytes):
    image_search = _orchestrator(fakes, [_provider_results(fakes)])
    bodies = {
        "https://cdn.example.com/sunset_1.jpg": make_image_bytes(300, 200, fmt="JPEG"),
        "https://cdn.example.com/sunset_3.png": DownloadError("HTTP 404"),
        "https://cdn.example.com/sunset_4.jpg": make_image_bytes(300, 200, fmt="JPEG"),
    }
    use_case = SearchAndStoreUseCase(local_adapters(image_search, fakes.DictDownloader(bodies)))

    result = await use_case.execute({"keyword": "sunset", "count": 3, "watermark_text": "© Test"})

    assert result["found_count"] == 3
    assert result["stored_count"] == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_all_downloads_failing_raises_all_storage_failed(fakes, local_adapters):
    image_search = _orchestrator(fakes, [_provider_results(fakes)])
    downloader = fakes.DictDownloader(
        {
            "https://cdn.example.com/sunset_1.jpg": DownloadError("HTTP 500"),
            "https://cdn.example.com/sunset_3.png": DownloadError("HTTP 500"),
        }
    )
    use_case = SearchAndStoreUseCase(local_adapters(image_search, downloader))

    with pytest.raises(AllStorageFailed) as exc_info:
        await use_case.execute({"keyword": "sunset", "count": 2})
    assert exc_info.value.processing_time_ms is not None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_search_exhaustion_surfaces_from_use_case(fakes, local_adapters):
    image_search = _orchestrator(fakes, [SessionError("no vqd")], proxy_count=3)
    use_case = SearchAndStoreUseCase(local_adapters(image_search, fakes.DictDownloader({})))

    with pytest.raises(ExhaustedRetriesError) as exc_info:
        await use_case.execute({"keyword": "sunset"})
    assert exc_info.value.attempts == 3
    assert exc_info.value.status_code == 503
