"""Catalog walker.

Drives a page fetcher through the cursor chain, accumulating records until
the cursor is exhausted or a safety bound is reached.

States:
    Idle -> Fetching -> (Accumulating -> Fetching)* -> Done | Aborted

Throttled fetches are retried on the same cursor according to the throttle
policy. Any other failure aborts the walk and discards what was
accumulated; callers never see partial results as if they were complete.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from catalog_aggregator.domain.exceptions import UpstreamFailure
from catalog_aggregator.domain.models import (
    AggregationResult,
    CatalogRecord,
    FetchFailure,
    PageResult,
    Throttled,
    WalkBounds,
)
from catalog_aggregator.infrastructure.config import Settings
from catalog_aggregator.infrastructure.storefront_client import PageFetcher

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[None]]


class WalkState(str, Enum):
    """Walker lifecycle states."""

    IDLE = "idle"
    FETCHING = "fetching"
    ACCUMULATING = "accumulating"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ThrottlePolicy:
    """Backoff policy for throttled fetches.

    Attributes:
        backoff_seconds: Delay before the first retry.
        multiplier: Growth factor applied after each retry (1.0 = fixed).
        max_backoff_seconds: Ceiling for the computed delay.
        max_attempts: Retries allowed per page, None to retry forever.
    """

    backoff_seconds: float = 0.6
    multiplier: float = 2.0
    max_backoff_seconds: float = 10.0
    max_attempts: int | None = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "ThrottlePolicy":
        """Create policy from settings (0 attempts means unbounded)."""
        return cls(
            backoff_seconds=settings.throttle_backoff_seconds,
            multiplier=settings.throttle_backoff_multiplier,
            max_backoff_seconds=settings.throttle_max_backoff_seconds,
            max_attempts=settings.throttle_max_attempts or None,
        )

    def delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Get the delay before retry number `attempt` (1-based).

        Args:
            attempt: Retry number.
            retry_after: Upstream hint, used when larger than the backoff.

        Returns:
            Seconds to wait.
        """
        try:
            computed = self.backoff_seconds * (self.multiplier ** (attempt - 1))
        except OverflowError:
            # Unbounded policies eventually grow past float range.
            computed = self.max_backoff_seconds
        computed = min(computed, self.max_backoff_seconds)
        if retry_after is not None:
            return max(computed, retry_after)
        return computed

    def exhausted(self, attempt: int) -> bool:
        """Check whether retry number `attempt` exceeds the policy."""
        return self.max_attempts is not None and attempt > self.max_attempts


class CatalogWalker:
    """Walks a paginated catalog into one in-memory sequence.

    Each walker owns its accumulator for the duration of one aggregation;
    no state is shared between concurrent walks.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        policy: ThrottlePolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize walker.

        Args:
            fetcher: Page fetcher for the upstream catalog.
            policy: Throttle retry policy.
            sleep: Awaitable sleep, replaceable in tests.
        """
        self.fetcher = fetcher
        self.policy = policy or ThrottlePolicy()
        self._sleep = sleep
        self.state = WalkState.IDLE

    async def fetch_one(self, cursor: str | None = None) -> PageResult:
        """Fetch a single page, retrying while throttled.

        Args:
            cursor: Continuation cursor, None for the first page.

        Returns:
            The fetched page.

        Raises:
            UpstreamFailure: On a hard failure or an exhausted throttle policy.
        """
        attempt = 0
        while True:
            outcome = await self.fetcher.fetch_page(cursor)

            if isinstance(outcome, PageResult):
                return outcome

            if isinstance(outcome, FetchFailure):
                raise UpstreamFailure(outcome.status_code, outcome.body)

            if isinstance(outcome, Throttled):
                attempt += 1
                if self.policy.exhausted(attempt):
                    raise UpstreamFailure(
                        429,
                        "",
                        message=f"Catalog upstream still throttling after {attempt - 1} retries",
                    )
                delay = self.policy.delay(attempt, outcome.retry_after)
                logger.info(
                    "Throttled, backing off",
                    attempt=attempt,
                    delay_seconds=round(delay, 3),
                )
                await self._sleep(delay)
                continue

            raise TypeError(f"Unexpected fetch outcome: {outcome!r}")

    async def aggregate(
        self,
        bounds: WalkBounds,
        start_cursor: str | None = None,
    ) -> AggregationResult:
        """Walk pages until the cursor is exhausted or a bound is hit.

        Bounds are checked after each whole page, so the result may exceed
        max_records by up to one page; pages are never sliced.

        Args:
            bounds: Page and record caps.
            start_cursor: Cursor to start from, None for the first page.

        Returns:
            Accumulated records with the truncation flag.

        Raises:
            UpstreamFailure: If any page fails; nothing partial is returned.
        """
        records: list[CatalogRecord] = []
        pages_fetched = 0
        cursor = start_cursor

        try:
            while True:
                self.state = WalkState.FETCHING
                page = await self.fetch_one(cursor)

                self.state = WalkState.ACCUMULATING
                pages_fetched += 1
                records.extend(page.records)
                cursor = page.next_cursor

                logger.debug(
                    "Catalog page accumulated",
                    page=pages_fetched,
                    page_records=len(page.records),
                    records=len(records),
                    cursor_present=cursor is not None,
                )

                if cursor is None:
                    truncated = False
                    break
                if pages_fetched >= bounds.max_pages or len(records) >= bounds.max_records:
                    truncated = True
                    break
        except UpstreamFailure:
            self.state = WalkState.ABORTED
            logger.warning(
                "Catalog walk aborted",
                pages_fetched=pages_fetched,
                discarded_records=len(records),
            )
            raise

        self.state = WalkState.DONE
        logger.info(
            "Catalog walk complete",
            pages_fetched=pages_fetched,
            records=len(records),
            truncated=truncated,
        )
        return AggregationResult(
            records=tuple(records),
            truncated=truncated,
            pages_fetched=pages_fetched,
        )
