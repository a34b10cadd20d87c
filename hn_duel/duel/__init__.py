"""Duel round engine."""

from hn_duel.duel.controller import DuelController
from hn_duel.duel.state import GuessOutcome, Round, RoundPhase, ScoreBoard
from hn_duel.duel.ticker import AsyncioTicker, ManualTicker, Ticker, TickHandle

__all__ = [
    "AsyncioTicker",
    "DuelController",
    "GuessOutcome",
    "ManualTicker",
    "Round",
    "RoundPhase",
    "ScoreBoard",
    "TickHandle",
    "Ticker",
]
