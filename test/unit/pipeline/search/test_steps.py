from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.application.models import FailedImage, StoredImage
from app.application.pipeline.base import PipelineContext
from app.application.pipeline.search.steps.fetch_store import FetchStoreStep
from app.application.pipeline.search.steps.search_images import SearchImagesStep
from app.application.pipeline.search.steps.validate_input import ValidateInputStep
from app.core.exceptions import AllStorageFailed, InputError, NoCandidatesFound


async def _validated(payload, default_watermark=None):
    ctx = PipelineContext(input=payload)
    await ValidateInputStep(default_watermark)(ctx)
    return ctx.get("validated_data")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "count,expected",
    [(None, 3), (0, 3), (1, 1), (7, 7), (10, 10), (11, 10), (500, 10), (-4, 1), ("5", 5), ("abc", 3), (2.9, 2)],
)
async def test_count_is_coerced_and_clamped(count, expected):
    vd = await _validated({"keyword": "sunset", "count": count})
    assert vd["count"] == expected


@pytest.mark.asyncio
async def test_count_defaults_to_three():
    vd = await _validated({"keyword": "  sunset  "})
    assert vd == {"keyword": "sunset", "count": 3, "watermark_text": None}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,code",
    [
        ({}, "INVALID_KEYWORD"),
        ({"keyword": ""}, "INVALID_KEYWORD"),
        ({"keyword": 42}, "INVALID_KEYWORD"),
        ({"keyword": "a"}, "KEYWORD_TOO_SHORT"),
        ({"keyword": "  b  "}, "KEYWORD_TOO_SHORT"),
    ],
)
async def test_invalid_keyword_codes(payload, code):
    with pytest.raises(InputError) as exc_info:
        await _validated(payload)
    assert exc_info.value.error_code == code
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_non_object_body_is_rejected():
    with pytest.raises(InputError):
        await _validated(["sunset"])


@pytest.mark.asyncio
async def test_watermark_default_and_blank():
    assert (await _validated({"keyword": "sunset"}, "© Site"))["watermark_text"] == "© Site"
    assert (await _validated({"keyword": "sunset", "watermark_text": "  "}, "© Site"))[
        "watermark_text"
    ] == "© Site"
    assert (await _validated({"keyword": "sunset", "watermark_text": "Mine"}, "© Site"))[
        "watermark_text"
    ] == "Mine"


@pytest.mark.asyncio
async def test_search_step_sets_candidates(fakes):
    search = AsyncMock()
    search.search_images.return_value = [fakes.candidate("https://cdn.example.com/a.jpg")]
    ctx = PipelineContext(input={})
    ctx.set("validated_data", {"keyword": "sunset", "count": 2, "watermark_text": None})

    await SearchImagesStep(search)(ctx)

    search.search_images.assert_awaited_once_with("sunset", 2)
    assert len(ctx.get("candidates")) == 1


@pytest.mark.asyncio
async def test_search_step_raises_when_nothing_found():
    search = AsyncMock()
    search.search_images.return_value = []
    ctx = PipelineContext(input={})
    ctx.set("validated_data", {"keyword": "sunset", "count": 2, "watermark_text": None})

    with pytest.raises(NoCandidatesFound):
        await SearchImagesStep(search)(ctx)


def _ctx_with_candidates(fakes, n=2):
    ctx = PipelineContext(input={})
    ctx.set("validated_data", {"keyword": "sunset", "count": n, "watermark_text": "wm"})
    ctx.set(
        "candidates", [fakes.candidate(f"https://cdn.example.com/{i}.jpg") for i in range(n)]
    )
    return ctx


@pytest.mark.asyncio
async def test_fetch_store_step_partial_success(fakes):
    stored = StoredImage("https://cdn.test/k", "t", None, "https://cdn.example.com/0.jpg", "k")
    failed = FailedImage(1, "https://cdn.example.com/1.jpg", "HTTP 404", "DownloadError")
    pipeline = AsyncMock()
    pipeline.process_all.return_value = [stored, failed]
    ctx = _ctx_with_candidates(fakes)

    await FetchStoreStep(pipeline)(ctx)

    pipeline.process_all.assert_awaited_once()
    assert pipeline.process_all.await_args.args[1:] == ("sunset", "wm")
    assert ctx.get("stored_images") == [stored]
    assert ctx.get("failed_images") == [failed]


@pytest.mark.asyncio
async def test_fetch_store_step_all_failed(fakes):
    pipeline = AsyncMock()
    pipeline.process_all.return_value = [
        FailedImage(0, "https://cdn.example.com/0.jpg", "boom"),
    ]
    ctx = _ctx_with_candidates(fakes, n=1)

    with pytest.raises(AllStorageFailed) as exc_info:
        await FetchStoreStep(pipeline)(ctx)
    assert exc_info.value.status_code == 500
    assert exc_info.value.error_code == "UPLOAD_FAILED"
