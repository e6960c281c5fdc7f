from __future__ import annotations

from functools import reduce
from typing import List

from app.application.pipeline.base import Middleware, Pipeline, Step


class PipelineFactory:
    """Collects steps, wrapping each in the configured middlewares.

        pipeline = PipelineFactory().add(validate).add(search).add(fetch_store).build()
    """

    def __init__(self, *, middlewares: List[Middleware] | None = None):
        self._middlewares: List[Middleware] = list(middlewares or [])
        self._steps: List[Step] = []

    def _wrap(self, step: Step) -> Step:
        return reduce(lambda inner, mw: mw(inner), self._middlewares, step)

    def add(self, step: Step) -> "PipelineFactory":
        self._steps.append(self._wrap(step))
        return self

    def build(self) -> Pipeline:
        return Pipeline(self._steps)
