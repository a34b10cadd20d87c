"""Shared fixtures for the hn_duel test-suite."""

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from hn_duel.config import RoundConfig, SupplyConfig
from hn_duel.errors import SourceUnavailable
from hn_duel.models.story import Story

NOW = 1_700_000_000.0
DAY = 86400


def make_story(
    story_id: int,
    score: int = 100,
    age_days: float = 1.0,
    url: Optional[str] = "https://example.com/article",
    descendants: int = 12,
    by: str = "pg",
) -> Story:
    return Story(
        id=story_id,
        title=f"Story {story_id}",
        score=score,
        by=by,
        time=int(NOW - age_days * DAY),
        descendants=descendants,
        url=url,
    )


class FakeSource:
    """In-memory stand-in for HackerNewsClient."""

    def __init__(self, stories: Iterable[Story] = (), failing_ids: Iterable[int] = ()):
        self.stories: Dict[int, Story] = {}
        self.order: List[int] = []
        self.failing_ids = set(failing_ids)
        self.list_error: Optional[Exception] = None
        self.list_gate: Optional[asyncio.Event] = None
        self.list_calls = 0
        self.detail_calls: List[int] = []
        self.add(*stories)

    def add(self, *stories: Story) -> None:
        for story in stories:
            self.stories[story.id] = story
            self.order.append(story.id)

    async def list_candidate_ids(self, limit: int) -> List[int]:
        self.list_calls += 1
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return self.order[:limit]

    async def fetch_details(self, story_id: int) -> Story:
        self.detail_calls.append(story_id)
        if story_id in self.failing_ids:
            raise SourceUnavailable(f"item {story_id} failed")
        return self.stories[story_id]


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def supply_config() -> SupplyConfig:
    """Deterministic supply: no shuffling and no low-water background refills."""
    return SupplyConfig(
        batch_size=50,
        low_water_mark=0,
        stale_after_sec=300,
        max_age_days=30,
        min_score=8,
        shuffle=False,
        pairing="sequential",
    )


@pytest.fixture
def round_config() -> RoundConfig:
    return RoundConfig(countdown_start=5, tick_interval_sec=1.0)
