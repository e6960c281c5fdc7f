from __future__ import annotations

import logging
import pytest

from app.application.pipeline.base import (
    BaseStep,
    PipelineContext,
    StepStatus,
    make_logging_middleware,
    step_timings_ms,
)
from app.application.pipeline.factory import PipelineFactory
from app.core.exceptions import NetworkError


class _NeedsCandidatesStep(BaseStep):
    name = "needs_candidates"
    required_keys = ["candidates"]

    async def run(self, context: PipelineContext) -> None:
        context.set("ran", True)


class _SimpleStep(BaseStep):
    name = "simple"

    async def run(self, context: PipelineContext) -> None:
        context.set("simple", True)


class _CountingFailStep(BaseStep):
    name = "search_images"

    def __init__(self):
        self.calls = 0

    async def run(self, context: PipelineContext) -> None:
        self.calls += 1
        raise NetworkError("reset")


def _run(*steps, middlewares=None):
    factory = PipelineFactory(middlewares=middlewares)
    for step in steps:
        factory.add(step)
    return factory.build()


@pytest.mark.asyncio
async def test_required_keys_missing_raises():
    with pytest.raises(KeyError, match="candidates"):
        await _run(_NeedsCandidatesStep()).execute(PipelineContext(input={}))


@pytest.mark.asyncio
async def test_required_keys_present_runs():
    ctx = PipelineContext(input={})
    ctx.set("candidates", [])
    result = await _run(_NeedsCandidatesStep()).execute(ctx)

    assert result["steps"][0]["status"] == StepStatus.COMPLETED.value
    assert ctx.get("ran") is True


@pytest.mark.asyncio
async def test_step_errors_are_not_retried_and_stop_the_run():
    failing, after = _CountingFailStep(), _SimpleStep()
    ctx = PipelineContext(input={})

    with pytest.raises(NetworkError):
        await _run(failing, after).execute(ctx)

    assert failing.calls == 1
    assert failing.status is StepStatus.FAILED
    assert after.status is StepStatus.PENDING
    assert ctx.get("simple") is None


@pytest.mark.asyncio
async def test_logging_middleware_emits_begin_end_and_keeps_name(caplog):
    caplog.set_level(logging.DEBUG)
    step = _SimpleStep()
    result = await _run(step, middlewares=[make_logging_middleware()]).execute(
        PipelineContext(input={})
    )

    logs = "\n".join(rec.getMessage() for rec in caplog.records)
    assert "Step simple BEGIN" in logs
    assert "Step simple END status=completed" in logs
    assert result["steps"][0]["name"] == step.name


@pytest.mark.asyncio
async def test_result_structure_and_timings():
    ctx = PipelineContext(input={"x": 1})
    result = await _run(_SimpleStep()).execute(ctx)

    assert set(result.keys()) == {"duration", "steps", "context"}
    assert result["context"] is ctx
    for s in result["steps"]:
        assert set(s.keys()) == {"name", "status", "duration"}

    timings = step_timings_ms(result)
    assert set(timings) == {"simple"}
    assert all(isinstance(v, int) and v >= 0 for v in timings.values())


def test_run_id_is_stable_once_assigned():
    ctx = PipelineContext(input={})
    rid = ctx.ensure_run_id(lambda: "fixed")
    assert rid == "fixed"
    assert ctx.ensure_run_id() == "fixed"
