"""Data models for Hacker News Duel."""

from hn_duel.models.story import Story

__all__ = ["Story"]
