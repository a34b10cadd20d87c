"""Hacker News Duel - guess which of two stories scored higher."""

__version__ = "0.1.0"
