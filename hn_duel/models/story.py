"""Data model for a Hacker News story."""

import time
from dataclasses import dataclass
from typing import Optional

from hn_duel.config import HN_ITEM_URL


@dataclass(frozen=True)
class Story:
    """
    A Hacker News story as fetched from the item API.

    Immutable once fetched. ``id`` is the dedup key for the whole lifetime
    of a story buffer.
    """

    id: int
    title: str
    score: int
    by: str
    time: int  # creation time, unix seconds
    descendants: int  # comment count
    url: Optional[str] = None

    @property
    def discussion_url(self) -> str:
        """URL of the story's comment page on news.ycombinator.com."""
        return HN_ITEM_URL.format(id=self.id)

    @property
    def link(self) -> str:
        """External URL when the story has one, otherwise the discussion page."""
        return self.url or self.discussion_url

    def age_seconds(self, now: Optional[float] = None) -> float:
        """Seconds elapsed since the story was created."""
        if now is None:
            now = time.time()
        return max(0.0, now - self.time)

    def age_label(self, now: Optional[float] = None) -> str:
        """Human readable age such as ``"3 days ago"``."""
        age = self.age_seconds(now)
        for unit, seconds in (("day", 86400), ("hour", 3600), ("minute", 60)):
            count = int(age // seconds)
            if count >= 1:
                return f"{count} {unit}{'s' if count != 1 else ''} ago"
        return "just now"
