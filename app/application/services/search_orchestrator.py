"""
Search orchestration: bounded attempts with identity rotation and backoff.

The attempt/backoff policy is an explicit state machine (``AttemptLog``)
driven by a ``RetryPolicy`` so it can be exercised without any network.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Optional

from app.application.interfaces import IIdentityRotator, ISearchSessionClient
from app.application.models import SearchCandidate
from app.application.services.result_filter import (
    DEFAULT_EXCLUDED_MARKERS,
    filter_results,
)
from app.core.exceptions import EmptyResultsError, ExhaustedRetriesError, SearchError

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt budget and linear backoff with jitter.

    backoff(i) = base + i * step + uniform(0, jitter)
    """

    max_attempts: int = 8
    backoff_base: float = 2.0
    backoff_step: float = 1.0
    jitter: float = 2.0

    def attempts_for(self, proxy_count: int) -> int:
        return max(1, min(int(self.max_attempts), max(int(proxy_count), 1)))

    def backoff(self, attempt: int, rng: random.Random) -> float:
        delay = self.backoff_base + attempt * self.backoff_step
        if self.jitter > 0:
            delay += rng.uniform(0.0, self.jitter)
        return max(0.0, delay)


class AttemptState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class AttemptLog:
    """Attempt counter + cause accumulator for one ``search_images`` call."""

    max_attempts: int
    attempt: int = 0
    state: AttemptState = AttemptState.PENDING
    causes: List[Exception] = field(default_factory=list)
    delays: List[float] = field(default_factory=list)

    @property
    def has_remaining(self) -> bool:
        return self.attempt < self.max_attempts

    @property
    def last_cause(self) -> Optional[Exception]:
        return self.causes[-1] if self.causes else None

    def begin(self) -> int:
        self.state = AttemptState.RUNNING
        return self.attempt

    def succeed(self) -> None:
        self.attempt += 1
        self.state = AttemptState.SUCCEEDED

    def fail(self, cause: Exception) -> None:
        self.causes.append(cause)
        self.attempt += 1
        self.state = (
            AttemptState.BACKOFF if self.has_remaining else AttemptState.EXHAUSTED
        )


class SearchOrchestrator:
    """IImageSearch implementation over a session client and an identity rotator.

    Attempts are strictly sequential; a fresh identity is drawn for each one.
    """

    def __init__(
        self,
        session_client: ISearchSessionClient,
        rotator: IIdentityRotator,
        *,
        policy: Optional[RetryPolicy] = None,
        excluded_markers: Iterable[str] = DEFAULT_EXCLUDED_MARKERS,
        sleep: SleepFn = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session_client = session_client
        self.rotator = rotator
        self.policy = policy or RetryPolicy()
        self.excluded_markers = tuple(excluded_markers)
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.last_run: Optional[AttemptLog] = None

    async def search_images(self, keyword: str, count: int) -> List[SearchCandidate]:
        max_attempts = self.policy.attempts_for(self.rotator.proxy_count)
        run = AttemptLog(max_attempts=max_attempts)
        self.last_run = run

        while run.has_remaining:
            attempt = run.begin()
            identity = self.rotator.next()
            logger.info(
                "🔍 Search attempt %d/%d for keyword '%s' (via %s)",
                attempt + 1,
                max_attempts,
                keyword,
                identity.proxy_label,
            )
            try:
                raw_results = await self.session_client.search(keyword, identity)
                candidates = filter_results(raw_results, count, self.excluded_markers)
                if not candidates:
                    raise EmptyResultsError("No valid images after filtering")
            except SearchError as e:
                run.fail(e)
                logger.error("❌ Search attempt %d failed: %s", attempt + 1, e)
                if not run.has_remaining:
                    break
                delay = self.policy.backoff(attempt, self._rng)
                run.delays.append(delay)
                logger.info("⏳ Waiting %.1fs before next attempt...", delay)
                await self._sleep(delay)
                continue

            run.succeed()
            logger.info(
                "✅ Found %d valid images on attempt %d", len(candidates), attempt + 1
            )
            return candidates

        last = run.last_cause
        raise ExhaustedRetriesError(
            f"Image search failed after {run.attempt} attempts. Last error: {last}",
            attempts=run.attempt,
            last_cause=last,
            causes=list(run.causes),
        )
