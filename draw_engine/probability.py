"""Per-draw hit probability for a card of c numbers in a drum of d numbers."""
from config.draw_schema import GameParameters
from draw_engine.base import DomainError


class ProbabilityModel:
    """P(next draw hits the card | t draws already made, k of them hits).

    The card has c - k numbers still in the drum and the drum has d - t
    numbers left, so p = (c - k) / (d - t).
    """

    def __init__(self, params: GameParameters):
        self.params = params

    def hit_probability(self, t: int, k: int) -> float:
        c = self.params.card_size
        d = self.params.drum_size
        if not 0 <= k <= c:
            raise DomainError(f"class k={k} outside [0, {c}]")
        if not 0 <= t < d:
            raise DomainError(f"draws t={t} outside [0, {d})")
        return (c - k) / (d - t)

    def miss_probability(self, t: int, k: int) -> float:
        return 1.0 - self.hit_probability(t, k)

    def __repr__(self):
        return f"ProbabilityModel(card_size={self.params.card_size}, drum_size={self.params.drum_size})"
