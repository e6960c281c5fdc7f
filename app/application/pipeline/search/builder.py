from __future__ import annotations

from app.application.pipeline.base import Pipeline, make_logging_middleware
from app.application.pipeline.factory import PipelineFactory
from app.application.pipeline.search.steps.validate_input import ValidateInputStep
from app.application.pipeline.search.steps.search_images import SearchImagesStep
from app.application.pipeline.search.steps.fetch_store import FetchStoreStep
from app.application.interfaces import ISearchPipelineAdapters
from app.application.services.fetch_store import FetchTransformStorePipeline


def build_search_pipeline_via_container(
    adapters: ISearchPipelineAdapters,
    *,
    default_watermark_text: str | None = None,
    enable_logging_middleware: bool = True,
) -> Pipeline:

    middlewares = [make_logging_middleware()] if enable_logging_middleware else []
    factory = PipelineFactory(middlewares=middlewares)
    factory.add(ValidateInputStep(default_watermark_text))
    factory.add(SearchImagesStep(adapters.image_search))
    factory.add(
        FetchStoreStep(
            FetchTransformStorePipeline(
                adapters.downloader,
                adapters.transformer,
                adapters.blob_sink,
                id_gen=adapters.id_gen,
                clock=adapters.clock,
            )
        )
    )

    return factory.build()
