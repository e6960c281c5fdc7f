from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    TypedDict,
    runtime_checkable,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineContext:
    """State carried through one search-and-store request.

    ``input`` is the raw request body; steps publish their outputs
    (validated_data, candidates, stored_images, ...) into ``artifacts``.
    """

    RUN_ID_KEY: ClassVar[str] = "_run_id"

    input: Mapping[str, Any]
    artifacts: Dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.artifacts[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.artifacts.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.artifacts

    def update(self, **items: Any) -> None:
        self.artifacts.update(items)

    def get_run_id(self) -> Optional[str]:
        return self.artifacts.get(self.RUN_ID_KEY)

    def ensure_run_id(self, factory: Optional[Callable[[], str]] = None) -> str:
        if not self.get_run_id():
            self.set(self.RUN_ID_KEY, factory() if factory else uuid.uuid4().hex)
        return self.artifacts[self.RUN_ID_KEY]


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@runtime_checkable
class Step(Protocol):
    async def __call__(self, context: PipelineContext) -> None:  # pragma: no cover
        ...


class BaseStep(ABC):
    """A named unit of the request pipeline.

    Subclasses implement ``run``. Calling the step checks ``required_keys``
    and records status and duration; errors propagate unchanged.
    """

    name: str = "base_step"
    required_keys: List[str] = []

    status: StepStatus = StepStatus.PENDING
    duration: float = 0.0

    @abstractmethod
    async def run(self, context: PipelineContext) -> None:  # pragma: no cover
        ...

    async def __call__(self, context: PipelineContext) -> None:
        missing = self.missing_inputs(context)
        if missing:
            raise KeyError(
                f"Step '{self.name}' is missing context keys: {', '.join(missing)}"
            )

        self.status = StepStatus.RUNNING
        start = perf_counter()
        try:
            await self.run(context)
            self.status = StepStatus.COMPLETED
        except BaseException:
            self.status = StepStatus.FAILED
            raise
        finally:
            self.duration = perf_counter() - start
            logger.debug(
                "Step %s -> %s in %.3fs (run_id=%s)",
                self.name,
                self.status.value,
                self.duration,
                context.get_run_id(),
            )

    def missing_inputs(self, context: PipelineContext) -> List[str]:
        return [k for k in self.required_keys if not context.has(k)]


class StepResult(TypedDict):
    name: str
    status: str
    duration: float


class PipelineResult(TypedDict):
    duration: float
    steps: List[StepResult]
    context: PipelineContext


def _step_name(step: Step) -> str:
    return getattr(step, "name", step.__class__.__name__)


class Pipeline:
    """Runs steps in order against one context.

    The first step error propagates unchanged; the API layer maps domain
    errors to HTTP responses.
    """

    def __init__(self, steps: List[Step]):
        self._steps = list(steps)

    async def _run_step(self, step: Step, context: PipelineContext) -> StepResult:
        start = perf_counter()
        await step(context)
        return {
            "name": _step_name(step),
            "status": getattr(step, "status", StepStatus.COMPLETED).value,
            "duration": perf_counter() - start,
        }

    async def execute(self, context: PipelineContext) -> PipelineResult:
        context.ensure_run_id()
        start = perf_counter()

        reports: List[StepResult] = []
        for step in self._steps:
            reports.append(await self._run_step(step, context))

        return {
            "duration": perf_counter() - start,
            "steps": reports,
            "context": context,
        }


def step_timings_ms(result: PipelineResult) -> Dict[str, int]:
    """Map of step name -> wall time in whole milliseconds."""
    return {s["name"]: int(round(s["duration"] * 1000)) for s in result["steps"]}


class Middleware(Protocol):  # pragma: no cover
    def __call__(self, step: Step) -> Step: ...


class _LoggedStep:
    """Wraps a step with BEGIN/END log lines; attribute reads fall through."""

    def __init__(self, inner: Step, log: logging.Logger, before: int, after: int):
        self._inner = inner
        self._log = log
        self._before = before
        self._after = after

    def __getattr__(self, item):
        return getattr(self._inner, item)

    async def __call__(self, context: PipelineContext) -> None:
        name = _step_name(self._inner)
        rid = context.get_run_id()
        self._log.log(self._before, "[run_id=%s] Step %s BEGIN", rid, name)
        start = perf_counter()
        try:
            await self._inner(context)
        finally:
            status = getattr(self._inner, "status", StepStatus.PENDING)
            self._log.log(
                self._after,
                "[run_id=%s] Step %s END status=%s duration=%.3fs",
                rid,
                name,
                getattr(status, "value", str(status)),
                perf_counter() - start,
            )


def make_logging_middleware(
    logger_obj: logging.Logger | None = None,
    level_before: int = logging.DEBUG,
    level_after: int = logging.INFO,
) -> Middleware:
    """Middleware logging step name, run_id, status and duration."""
    log = logger_obj or logger

    def _middleware(step: Step) -> Step:
        return _LoggedStep(step, log, level_before, level_after)

    return _middleware
