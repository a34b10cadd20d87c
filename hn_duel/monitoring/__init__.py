"""Monitoring helpers for Hacker News Duel."""
