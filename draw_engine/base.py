"""
Tombola Odds - Engine Base

Error taxonomy and the table types handed to downstream consumers.

A table has one row per time step t = 1..drum_size and one column per class
k = 0..card_size. `rows()` is the public contract: an ordered list of
`(t, value_for_class_0, ..., value_for_class_c)` tuples.
"""

import math
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from config.draw_schema import GameParameters


# ═══════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════

class DrawEngineError(Exception):
    """Base class for every error raised by the draw engine."""


class ParameterValidationError(DrawEngineError, ValueError):
    """Card/drum sizes rejected before any computation starts."""


class DomainError(DrawEngineError, ArithmeticError):
    """Probability model or engine evaluated outside its preconditions.

    Signals a boundary-handling defect; callers should not recover from it.
    """


class TableIntegrityError(DrawEngineError, ValueError):
    """A distribution table with the wrong shape or rows that do not carry unit mass."""


def validate_parameters(card_size, drum_size, name: str = "") -> GameParameters:
    """Build a GameParameters, converting schema failures to ParameterValidationError."""
    try:
        return GameParameters(card_size=card_size, drum_size=drum_size, name=name)
    except ValidationError as e:
        msgs = "; ".join(err["msg"] for err in e.errors())
        raise ParameterValidationError(
            f"Invalid game parameters (card_size={card_size!r}, drum_size={drum_size!r}): {msgs}"
        ) from e


# ═══════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClassTable:
    """Rectangular (time x class) table for one configuration."""
    params: GameParameters
    values: tuple  # values[t - 1][k]

    kind = "table"

    @property
    def card_size(self) -> int:
        return self.params.card_size

    @property
    def drum_size(self) -> int:
        return self.params.drum_size

    @property
    def times(self) -> range:
        return range(1, self.drum_size + 1)

    def row(self, t: int) -> tuple:
        if not 1 <= t <= self.drum_size:
            raise DomainError(f"t={t} outside table range [1, {self.drum_size}]")
        return self.values[t - 1]

    def value(self, t: int, k: int) -> float:
        """Cell (t, k); classes outside [0, card_size] are 0.0."""
        r = self.row(t)
        if k < 0 or k > self.card_size:
            return 0.0
        return r[k]

    def rows(self) -> list[tuple]:
        return [(t, *self.values[t - 1]) for t in self.times]

    def column(self, k: int) -> list[float]:
        return [self.value(t, k) for t in self.times]

    def to_dict(self, precision: Optional[int] = None) -> dict:
        def _r(x):
            return round(x, precision) if precision is not None else x
        return {
            "kind": self.kind,
            "card_size": self.card_size,
            "drum_size": self.drum_size,
            "columns": ["t"] + [f"k{k}" for k in range(self.card_size + 1)],
            "rows": [[t] + [_r(v) for v in self.values[t - 1]] for t in self.times],
        }

    def __len__(self):
        return len(self.values)


@dataclass(frozen=True)
class DistributionTable(ClassTable):
    """Fraction of cards in class k after t draws."""

    kind = "distribution"

    def fraction(self, t: int, k: int) -> float:
        return self.value(t, k)

    def row_sums(self) -> list[float]:
        return [math.fsum(r) for r in self.values]

    def max_mass_error(self) -> float:
        return max((abs(s - 1.0) for s in self.row_sums()), default=0.0)


@dataclass(frozen=True)
class CumulativeTable(ClassTable):
    """Probability of being in class >= k after t draws."""

    kind = "cumulative_at_least"

    def at_least(self, t: int, k: int) -> float:
        if k < 0:
            self.row(t)
            return 1.0
        return self.value(t, k)
