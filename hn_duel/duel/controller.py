"""Duel round controller: pairing, guess evaluation, countdown and scoring."""

import logging
from typing import Callable, List, Optional, Tuple

from hn_duel.config import RoundConfig
from hn_duel.duel.state import GuessOutcome, Round, RoundPhase, ScoreBoard
from hn_duel.duel.ticker import AsyncioTicker, Ticker, TickHandle
from hn_duel.errors import InsufficientSupply, InvalidGuess
from hn_duel.models.story import Story
from hn_duel.supply.buffer import StoryBuffer

logger = logging.getLogger(__name__)

Listener = Callable[["DuelController"], None]


class DuelController:
    """
    Owns the round state machine.

    NO_ROUND -> AWAITING_GUESS on ``start_round``; AWAITING_GUESS ->
    REVEALED on ``guess``; REVEALED -> AWAITING_GUESS (or NO_ROUND when
    supply runs out) on countdown expiry or ``advance``. The countdown only
    runs while REVEALED and not paused.
    """

    def __init__(
        self,
        buffer: StoryBuffer,
        config: RoundConfig,
        ticker: Optional[Ticker] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the controller.

        Args:
            buffer: Story supply the pairs are taken from
            config: Countdown and scoring configuration
            ticker: Tick source for the countdown (defaults to wall-clock asyncio ticks)
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.buffer = buffer
        self.config = config
        self.ticker = ticker or AsyncioTicker()
        self.prometheus_exporter = prometheus_exporter
        self.scoreboard = ScoreBoard()

        self._round: Optional[Round] = None
        self._countdown = config.countdown_start
        self._paused = False
        self._loading = False
        self._tick_handle: Optional[TickHandle] = None
        self._listeners: List[Listener] = []

    @property
    def phase(self) -> RoundPhase:
        if self._round is None:
            return RoundPhase.NO_ROUND
        return RoundPhase.REVEALED if self._round.revealed else RoundPhase.AWAITING_GUESS

    @property
    def pair(self) -> Optional[Tuple[Story, Story]]:
        return self._round.pair if self._round else None

    @property
    def selected_index(self) -> Optional[int]:
        return self._round.selected_index if self._round else None

    @property
    def correct_index(self) -> Optional[int]:
        return self._round.correct_index if self._round else None

    @property
    def countdown(self) -> int:
        return self._countdown

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def loading(self) -> bool:
        """True while a new pair is being taken from the buffer."""
        return self._loading

    @property
    def score(self) -> int:
        return self.scoreboard.score

    @property
    def streak(self) -> int:
        return self.scoreboard.streak

    @property
    def longest_streak(self) -> int:
        return self.scoreboard.longest_streak

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def start_round(self) -> bool:
        """
        Install a fresh pair from the buffer.

        Calls made while a pair is already being fetched are ignored.

        Returns:
            True if a round is now awaiting a guess, False if no round is possible
        """
        if self._loading:
            logger.debug("Round start already in progress; ignoring")
            return False

        self._stop_countdown()
        self._loading = True
        try:
            pair = await self.buffer.take_pair()
        except InsufficientSupply as e:
            logger.warning(f"No round possible: {e}")
            self._round = None
            return False
        else:
            self._round = Round(pair=pair)
            logger.debug(f"New round: {pair[0].id} vs {pair[1].id}")
            return True
        finally:
            self._loading = False
            self._countdown = self.config.countdown_start
            self._paused = False
            self._notify()

    def guess(self, index: int) -> Optional[GuessOutcome]:
        """
        Guess which slot holds the higher-scored story.

        Guesses with no active pair, or after the round was revealed, are
        ignored.

        Args:
            index: 0 for the left story, 1 for the right story

        Returns:
            The outcome, or None if the guess was ignored

        Raises:
            ValueError: If index is not 0 or 1
        """
        if index not in (0, 1):
            raise ValueError(f"Guess index must be 0 or 1, got {index!r}")

        try:
            if self._round is None:
                raise InvalidGuess("No active pair")
            correct = self._round.reveal(index, self.config.tie_policy)
        except InvalidGuess as e:
            logger.debug(f"Ignoring guess {index}: {e}")
            return None

        if correct:
            self.scoreboard.record_correct()
        else:
            self.scoreboard.record_incorrect(self.config.incorrect_penalty, self.config.score_floor)

        if self.prometheus_exporter:
            self.prometheus_exporter.record_guess(correct)

        self._countdown = self.config.countdown_start
        self._paused = False
        self._tick_handle = self.ticker.start(self._on_tick, self.config.tick_interval_sec)
        self._notify()

        return GuessOutcome(
            correct=correct,
            selected_index=index,
            correct_index=self._round.correct_index,
            score=self.scoreboard.score,
            streak=self.scoreboard.streak,
        )

    def pause_toggle(self) -> Optional[bool]:
        """
        Pause or resume the countdown. Only valid while revealed.

        Returns:
            The new paused flag, or None if the toggle was ignored
        """
        if self.phase is not RoundPhase.REVEALED:
            logger.debug(f"Ignoring pause toggle in phase {self.phase.value}")
            return None
        self._paused = not self._paused
        self._notify()
        return self._paused

    async def advance(self) -> bool:
        """
        Move on to the next pair ("Next").

        From REVEALED this cancels the countdown; from NO_ROUND it retries.
        Ignored while awaiting a guess.

        Returns:
            True if a new round is awaiting a guess
        """
        if self.phase is RoundPhase.AWAITING_GUESS:
            logger.debug("Ignoring advance while awaiting a guess")
            return False
        self._stop_countdown()
        return await self.start_round()

    async def restart(self) -> bool:
        """Reset the scoreboard and start a new round ("Play again")."""
        self._stop_countdown()
        self.scoreboard.reset()
        return await self.start_round()

    def close(self) -> None:
        """Cancel any pending countdown."""
        self._stop_countdown()

    def _stop_countdown(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    async def _on_tick(self) -> None:
        # pause, guess and advance may have run since the last tick
        if self.phase is not RoundPhase.REVEALED or self._paused or self._loading:
            return

        self._countdown -= 1
        if self._countdown > 0:
            self._notify()
            return

        self._stop_countdown()
        await self.start_round()
