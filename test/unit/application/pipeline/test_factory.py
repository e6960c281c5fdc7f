import pytest

from app.application.pipeline.factory import PipelineFactory
from app.application.pipeline.base import PipelineContext, make_logging_middleware, StepStatus


class RecordingStep:
    def __init__(self, name, record):
        self.name = name
        self.record = record
        self.called = 0

    async def __call__(self, context: PipelineContext):
        self.called += 1
        self.record.append(self.name)
        context.set(self.name, len(self.record))


class BrokenStep:
    def __init__(self, name="broken"):
        self.name = name
        self.called = 0

    async def __call__(self, context: PipelineContext):
        self.called += 1
        raise LookupError("nothing found")


@pytest.mark.asyncio
async def test_factory_runs_steps_in_order_through_middleware():
    order = []
    factory = PipelineFactory(middlewares=[make_logging_middleware()])
    for name in ("validate_input", "search_images", "fetch_store"):
        factory.add(RecordingStep(name, order))

    ctx = PipelineContext(input={"keyword": "sunset"})
    result = await factory.build().execute(ctx)

    assert order == ["validate_input", "search_images", "fetch_store"]
    assert ctx.get("fetch_store") == 3
    assert [s["name"] for s in result["steps"]] == order
    assert all(s["status"] == StepStatus.COMPLETED.value for s in result["steps"])
    assert ctx.get_run_id()


@pytest.mark.asyncio
async def test_factory_stops_at_first_error():
    order = []
    first, broken, last = RecordingStep("a", order), BrokenStep(), RecordingStep("c", order)

    pipeline = PipelineFactory().add(first).add(broken).add(last).build()

    with pytest.raises(LookupError, match="nothing found"):
        await pipeline.execute(PipelineContext(input={}))
    assert (first.called, broken.called, last.called) == (1, 1, 0)


@pytest.mark.asyncio
async def test_middlewares_wrap_in_declaration_order():
    seen = []

    def tagging(tag):
        def _mw(step):
            async def _wrapped(context):
                seen.append(tag)
                await step(context)

            return _wrapped

        return _mw

    pipeline = PipelineFactory(middlewares=[tagging("inner"), tagging("outer")])
    await pipeline.add(RecordingStep("a", [])).build().execute(PipelineContext(input={}))

    assert seen == ["outer", "inner"]
