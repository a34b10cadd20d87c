"""Rolling, deduplicated buffer of eligible stories with background refill."""

import asyncio
import logging
import random
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Set, Tuple

from hn_duel.config import SupplyConfig
from hn_duel.errors import InsufficientSupply, SourceUnavailable
from hn_duel.models.story import Story
from hn_duel.source.hn_client import HackerNewsClient
from hn_duel.supply.error_tracker import ConsecutiveFailureTracker

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def is_eligible(story: Story, config: SupplyConfig, now: float) -> bool:
    """
    Check whether a story may be admitted into the buffer.

    Args:
        story: Freshly fetched story
        config: Supply configuration holding the thresholds
        now: Current unix time

    Returns:
        True if the story is recent and popular enough
    """
    if story.age_seconds(now) > config.max_age_days * SECONDS_PER_DAY:
        return False
    if story.score < config.min_score:
        return False
    if config.require_url and not story.url:
        return False
    return True


class StoryBuffer:
    """
    Working set of eligible stories awaiting use.

    Stories are kept in arrival order. An identifier is admitted at most
    once for the lifetime of the buffer, so no story is ever handed out
    twice. At most one refill runs at a time; refill requests arriving
    while one is in flight join it instead of starting another.
    """

    def __init__(
        self,
        source: HackerNewsClient,
        config: SupplyConfig,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the story buffer.

        Args:
            source: Item source adapter used to list and fetch stories
            config: Eligibility thresholds, refill policy and pairing strategy
            clock: Returns the current unix time; injectable for tests
            rng: Random generator used for shuffling and random pairing
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.source = source
        self.config = config
        self.clock = clock
        self.rng = rng or random.Random()
        self.prometheus_exporter = prometheus_exporter
        self.error_tracker = ConsecutiveFailureTracker(config.failure_threshold, prometheus_exporter)

        self._stories: Deque[Story] = deque()
        self._admitted_ids: Set[int] = set()
        self._last_refill_at: Optional[float] = None
        self._refill_task: Optional["asyncio.Task[int]"] = None

    def __len__(self) -> int:
        return len(self._stories)

    @property
    def last_refill_at(self) -> Optional[float]:
        """Unix time of the last successful refill, or None if none happened yet."""
        return self._last_refill_at

    @property
    def refill_in_flight(self) -> bool:
        return self._refill_task is not None and not self._refill_task.done()

    @property
    def source_healthy(self) -> bool:
        """False once refills have failed ``failure_threshold`` times in a row."""
        return not self.error_tracker.threshold_reached()

    def is_stale(self) -> bool:
        if self._last_refill_at is None:
            return True
        return self.clock() - self._last_refill_at > self.config.stale_after_sec

    def needs_refill(self) -> bool:
        """Check the low-water mark and staleness window."""
        return len(self._stories) < self.config.low_water_mark or self.is_stale()

    async def take(self, n: int) -> List[Story]:
        """
        Remove and return up to ``n`` stories.

        When fewer than ``n`` are buffered, a refill is performed and awaited
        first. Fewer than ``n`` stories (possibly none) come back only when
        the upstream source is exhausted or unreachable.

        Args:
            n: Number of stories wanted

        Returns:
            The taken stories, in the order chosen by the pairing strategy
        """
        if n <= 0:
            return []

        if len(self._stories) < n:
            joined = self.refill_in_flight
            await self.refill()
            # A joined refill was started before this shortfall; give it one fresh attempt
            if joined and len(self._stories) < n:
                await self.refill()

        taken = self._pop(n)
        if len(taken) < n:
            logger.warning(f"Requested {n} stories but only {len(taken)} available")

        if self.prometheus_exporter:
            self.prometheus_exporter.set_buffer_size(len(self._stories))

        self.maybe_refill()
        return taken

    async def take_pair(self) -> Tuple[Story, Story]:
        """
        Take exactly two stories for a duel round.

        Returns:
            The pair, index 0 and 1 mapping to the left and right slots

        Raises:
            InsufficientSupply: If fewer than two stories could be obtained
        """
        stories = await self.take(2)
        if len(stories) < 2:
            # Put partial results back so they are not lost
            self._stories.extendleft(reversed(stories))
            raise InsufficientSupply(available=len(stories))
        return stories[0], stories[1]

    def maybe_refill(self) -> bool:
        """
        Schedule a background refill when the buffer runs low or goes stale.

        Requests arriving while a refill is in flight are coalesced.

        Returns:
            True if a new refill was scheduled
        """
        if self.refill_in_flight or not self.needs_refill():
            return False

        logger.debug(
            f"Scheduling background refill ({len(self._stories)} buffered, "
            f"stale={self.is_stale()})"
        )
        self._start_refill()
        return True

    async def refill(self) -> int:
        """
        Refill the buffer and wait for it, joining an in-flight refill if any.

        Returns:
            Number of stories admitted by the awaited refill
        """
        task = self._refill_task if self.refill_in_flight else self._start_refill()
        # Cancelling one waiter must not abort a refill others depend on
        return await asyncio.shield(task)

    async def wait_for_refill(self) -> None:
        """Wait until the in-flight refill, if any, has finished."""
        task = self._refill_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def cancel_refill(self) -> None:
        """Cancel the in-flight refill on shutdown. Buffered stories are kept."""
        if self.refill_in_flight:
            logger.info("Cancelling in-flight refill")
            self._refill_task.cancel()

    def _start_refill(self) -> "asyncio.Task[int]":
        task = asyncio.get_running_loop().create_task(self._refill())
        task.add_done_callback(self._on_refill_done)
        self._refill_task = task
        return task

    def _on_refill_done(self, task: "asyncio.Task[int]") -> None:
        if self._refill_task is task:
            self._refill_task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Refill crashed: {exc}", exc_info=exc)

    def _pop(self, n: int) -> List[Story]:
        count = min(n, len(self._stories))
        if self.config.pairing == "random":
            taken = []
            for _ in range(count):
                index = self.rng.randrange(len(self._stories))
                taken.append(self._stories[index])
                del self._stories[index]
            return taken
        return [self._stories.popleft() for _ in range(count)]

    async def _refill(self) -> int:
        """
        Fetch, filter, deduplicate and append a batch of stories.

        A listing failure leaves the buffer and the refill timestamp
        untouched; the next take or maybe_refill retries.
        """
        try:
            candidate_ids = await self.source.list_candidate_ids(self.config.batch_size)
        except SourceUnavailable as e:
            logger.warning(f"Refill failed, keeping {len(self._stories)} buffered stories: {e}")
            self.error_tracker.record_failure()
            if self.prometheus_exporter:
                self.prometheus_exporter.record_refill("failed")
            return 0

        # Skip detail fetches for anything already admitted once
        fresh_ids = list(dict.fromkeys(i for i in candidate_ids if i not in self._admitted_ids))
        stories = await self._fetch_all(fresh_ids)

        now = self.clock()
        admitted = []
        for story in stories:
            if story.id in self._admitted_ids or not is_eligible(story, self.config, now):
                continue
            self._admitted_ids.add(story.id)
            admitted.append(story)

        if self.config.shuffle:
            self.rng.shuffle(admitted)

        self._stories.extend(admitted)
        self._last_refill_at = now
        self.error_tracker.record_success()

        logger.info(
            f"Refill admitted {len(admitted)} of {len(candidate_ids)} candidates "
            f"({len(fresh_ids)} unseen); {len(self._stories)} buffered"
        )

        if self.prometheus_exporter:
            self.prometheus_exporter.record_refill("ok" if admitted else "empty", len(admitted))
            self.prometheus_exporter.set_buffer_size(len(self._stories))

        return len(admitted)

    async def _fetch_all(self, story_ids: List[int]) -> List[Story]:
        """Fetch details concurrently, excluding stories whose fetch failed."""
        semaphore = asyncio.Semaphore(self.config.max_concurrent_fetches)

        async def fetch_one(story_id: int) -> Story:
            async with semaphore:
                return await self.source.fetch_details(story_id)

        results = await asyncio.gather(*(fetch_one(i) for i in story_ids), return_exceptions=True)

        stories = []
        failed = 0
        for result in results:
            if isinstance(result, SourceUnavailable):
                failed += 1
                continue
            if isinstance(result, BaseException):
                raise result
            stories.append(result)

        if failed:
            logger.debug(f"Excluded {failed} stories whose detail fetch failed")
        return stories
