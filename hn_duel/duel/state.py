"""Round and score state for the duel game."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from hn_duel.errors import InvalidGuess
from hn_duel.models.story import Story


class RoundPhase(str, Enum):
    NO_ROUND = "no_round"
    AWAITING_GUESS = "awaiting_guess"
    REVEALED = "revealed"


@dataclass
class Round:
    """
    One presented pair awaiting or having received a guess.

    ``selected_index`` and ``correct_index`` are either both None (awaiting
    a guess) or both set (revealed).
    """

    pair: Tuple[Story, Story]
    selected_index: Optional[int] = None
    correct_index: Optional[int] = None

    @property
    def revealed(self) -> bool:
        return self.selected_index is not None

    def reveal(self, index: int, tie_policy: str = "guesser") -> bool:
        """
        Evaluate a guess and reveal the round.

        Args:
            index: Slot the user picked (0 = left, 1 = right)
            tie_policy: 'guesser' scores ties as correct, 'opponent' as incorrect

        Returns:
            True if the guess was correct

        Raises:
            InvalidGuess: If the round was already revealed
        """
        if self.revealed:
            raise InvalidGuess("Round already revealed")

        chosen, other = self.pair[index], self.pair[1 - index]
        if chosen.score == other.score:
            correct = tie_policy == "guesser"
        else:
            correct = chosen.score > other.score

        self.selected_index = index
        self.correct_index = index if correct else 1 - index
        return correct


@dataclass
class ScoreBoard:
    """Session-scoped score and streak bookkeeping."""

    score: int = 0
    streak: int = 0
    longest_streak: int = 0
    correct: int = 0
    incorrect: int = 0

    def record_correct(self) -> None:
        self.score += 1
        self.streak += 1
        self.correct += 1
        self.longest_streak = max(self.longest_streak, self.streak)

    def record_incorrect(self, penalty: int = 1, floor: Optional[int] = None) -> None:
        """
        Reset the streak and apply the score penalty.

        Args:
            penalty: Points subtracted for a wrong guess
            floor: Lowest score allowed, or None to allow any negative score
        """
        self.streak = 0
        self.incorrect += 1
        self.score -= penalty
        if floor is not None:
            self.score = max(floor, self.score)

    def reset(self) -> None:
        self.score = 0
        self.streak = 0
        self.longest_streak = 0
        self.correct = 0
        self.incorrect = 0


@dataclass(frozen=True)
class GuessOutcome:
    """Result of an accepted guess, as reported to the presentation layer."""

    correct: bool
    selected_index: int
    correct_index: int
    score: int
    streak: int
