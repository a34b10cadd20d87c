"""Story supply: eligibility filtering, deduplication and refill scheduling."""

from hn_duel.supply.buffer import StoryBuffer, is_eligible

__all__ = ["StoryBuffer", "is_eligible"]
