"""
Tombola Odds - Recurrence Engine

Fraction of cards in class k (k hits) after t draws:

    f(0, k) = 1 if k == 0 else 0
    f(t, k) = f(t-1, k-1) * p(t-1, k-1)          # one class lower, hit on this draw
            + f(t-1, k)   * (1 - p(t-1, k))      # already in k, missed on this draw

where p(t, k) is the hit probability with t draws already completed.
Evaluated naively this branches twice per level (O(2^t)); here every cell is
computed once into a DP table filled row by row in increasing t, so a full
table costs O(d * c) and never recurses.
"""

import logging

from config.draw_schema import GameParameters
from draw_engine.base import DomainError
from draw_engine.probability import ProbabilityModel

logger = logging.getLogger("tombola.engine")


class RecurrenceEngine:
    """Memoized f(t, k) for one GameParameters instance.

    The memo table belongs to the instance; build a new engine for every
    configuration. Rows are appended lazily up to the largest t requested.
    """

    def __init__(self, params: GameParameters, model: ProbabilityModel = None):
        self.params = params
        self.model = model or ProbabilityModel(params)
        self._rows = [self._initial_row()]
        self.cells_computed = 0

    def _initial_row(self) -> list[float]:
        return [1.0] + [0.0] * self.params.card_size

    @property
    def filled_through(self) -> int:
        """Largest t whose row is already in the memo table."""
        return len(self._rows) - 1

    def _check_time(self, t: int):
        if not 0 <= t <= self.params.drum_size:
            raise DomainError(f"t={t} outside [0, {self.params.drum_size}]")

    def _previous(self, prev: list[float], k: int) -> float:
        # Classes outside [0, c] hold no cards
        if k < 0 or k > self.params.card_size:
            return 0.0
        return prev[k]

    def _transition(self, prev: list[float], t: int, k: int) -> float:
        total = 0.0
        advancing = self._previous(prev, k - 1)
        if advancing:
            total += advancing * self.model.hit_probability(t - 1, k - 1)
        staying = self._previous(prev, k)
        if staying:
            total += staying * self.model.miss_probability(t - 1, k)
        return total

    def _step(self, t: int) -> list[float]:
        prev = self._rows[t - 1]
        row = [self._transition(prev, t, k) for k in range(self.params.card_size + 1)]
        self.cells_computed += len(row)
        return row

    def fill(self, t: int) -> None:
        """Extend the memo table through time t, one whole row at a time."""
        self._check_time(t)
        start = len(self._rows)
        while len(self._rows) <= t:
            self._rows.append(self._step(len(self._rows)))
        if len(self._rows) > start:
            logger.debug(f"{self.params.label}: filled t={start}..{t}")

    def fill_all(self) -> None:
        self.fill(self.params.drum_size)

    def fraction_in_class(self, t: int, k: int) -> float:
        self._check_time(t)
        if k < 0 or k > self.params.card_size:
            return 0.0
        self.fill(t)
        return self._rows[t][k]

    def row(self, t: int) -> tuple:
        self.fill(t)
        return tuple(self._rows[t])

    def __repr__(self):
        return (f"RecurrenceEngine(card_size={self.params.card_size}, "
                f"drum_size={self.params.drum_size}, filled_through={self.filled_through})")
