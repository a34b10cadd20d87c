"""Error taxonomy for the story supply and duel engine.

None of these are fatal: callers recover by retrying a refill later or by
presenting the "no round" state.
"""

from typing import Optional


class DuelError(Exception):
    """Base class for all engine errors."""


class SourceUnavailable(DuelError):
    """The upstream item API failed or returned something unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(self.message)


class InsufficientSupply(DuelError):
    """Fewer stories are available than a round needs."""

    def __init__(self, available: int, needed: int = 2):
        self.available = available
        self.needed = needed
        super().__init__(f"Need {needed} stories, only {available} available")


class InvalidGuess(DuelError):
    """A guess arrived with no active pair or after the round was revealed."""
