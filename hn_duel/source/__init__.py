"""Upstream item source adapters."""

from hn_duel.source.hn_client import HackerNewsClient

__all__ = ["HackerNewsClient"]
