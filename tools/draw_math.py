"""
Tombola Odds - Draw Math Engine

Report layer on top of the draw engine. Each model produces:
  - The distribution table: P(class = k) after every draw
  - The cumulative table: P(class >= k) after every draw
  - Probability proof: every row sums to 1, and every cell matches the
    closed-form hypergeometric value C(c,k)·C(d-c,t-k)/C(d,t)
  - Milestones per class: median draw and expected draws to reach it
  - Report JSON with a model hash for reproducibility checks

Key insight: after t draws without replacement the class of a card is
hypergeometric, so the recurrence has an exact independent cross-check.
The recurrence is still what the engine computes; the closed form is only
used to audit it.
"""

from __future__ import annotations

import json
import math
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config.draw_schema import GameParameters
from config.settings import DrawConfig
from draw_engine import (
    CumulativeTable, DistributionTable, GameStatusBuilder,
    cumulative_at_least, get_game_parameters, validate_parameters,
)

logger = logging.getLogger("tombola.math")


# ═══════════════════════════════════════════════════════════════
# Closed form
# ═══════════════════════════════════════════════════════════════

def hypergeometric_pmf(card_size: int, drum_size: int, draws: int, k: int) -> float:
    """P(exactly k of the card's numbers among `draws` numbers drawn)."""
    if k < 0 or k > card_size or k > draws or draws - k > drum_size - card_size:
        return 0.0
    return (
        math.comb(card_size, k)
        * math.comb(drum_size - card_size, draws - k)
        / math.comb(drum_size, draws)
    )


# ═══════════════════════════════════════════════════════════════
# Core Data Structures
# ═══════════════════════════════════════════════════════════════

@dataclass
class ClassMilestone:
    k: int
    median_draw: int             # first t with P(class >= k) >= 0.5
    expected_draws: float        # E[draws needed to reach class k]
    p_by_half_drum: float        # P(class >= k) at t = d // 2


@dataclass
class DrawOddsModel:
    params: GameParameters
    table: DistributionTable
    cumulative: CumulativeTable
    model_version: str = "1.0.0"
    milestones: list[ClassMilestone] = field(default_factory=list)
    model_hash: str = ""
    generated_at: str = ""
    generator: str = "Tombola Odds DrawMathEngine v1.0"

    def __post_init__(self):
        self.generated_at = datetime.now(timezone.utc).isoformat()
        self._compute_hash()
        if not self.milestones:
            self.milestones = [self._milestone(k) for k in range(self.params.card_size + 1)]

    def _compute_hash(self):
        data = json.dumps(
            [self.params.card_size, self.params.drum_size, self.table.to_dict(precision=10)["rows"]],
            sort_keys=True,
        )
        self.model_hash = hashlib.sha256(data.encode()).hexdigest()[:16]

    # ── Lookups ────────────────────────────────────────────────
    def at_least(self, t: int, k: int) -> float:
        """P(class >= k) after t draws, including the t = 0 start state."""
        if t == 0:
            return 1.0 if k <= 0 else 0.0
        return self.cumulative.at_least(t, k)

    def median_draw(self, k: int) -> int:
        for t in range(self.params.drum_size + 1):
            if self.at_least(t, k) >= 0.5:
                return t
        return self.params.drum_size

    def expected_draws(self, k: int) -> float:
        """Σ_{t<d} P(class < k at t): class k is certain once the drum is empty."""
        return math.fsum(1.0 - self.at_least(t, k) for t in range(self.params.drum_size))

    def _milestone(self, k: int) -> ClassMilestone:
        half = max(1, self.params.drum_size // 2)
        return ClassMilestone(
            k=k,
            median_draw=self.median_draw(k),
            expected_draws=self.expected_draws(k),
            p_by_half_drum=self.at_least(half, k),
        )

    def odds_at(self, t: int) -> dict:
        """Exact and at-least odds for every class after t draws."""
        return {
            "t": t,
            "exact": {f"k{k}": self.table.fraction(t, k) for k in range(self.params.card_size + 1)},
            "at_least": {f"k{k}": self.cumulative.at_least(t, k)
                         for k in range(self.params.card_size + 1)},
        }

    # ── Proof ──────────────────────────────────────────────────
    def probability_proof(self, tolerance: float = None) -> dict:
        tol = DrawConfig.MASS_TOLERANCE if tolerance is None else tolerance
        c, d = self.params.card_size, self.params.drum_size
        entries = []
        worst_mass = 0.0
        worst_delta = 0.0
        for t, mass in zip(self.table.times, self.table.row_sums()):
            delta = max(
                abs(self.table.fraction(t, k) - hypergeometric_pmf(c, d, t, k))
                for k in range(c + 1)
            )
            worst_mass = max(worst_mass, abs(mass - 1.0))
            worst_delta = max(worst_delta, delta)
            entries.append({
                "t": t,
                "mass": round(mass, 12),
                "hypergeometric_delta": delta,
            })
        return {
            "label": self.params.label,
            "model_hash": self.model_hash,
            "card_size": c,
            "drum_size": d,
            "tolerance": tol,
            "max_mass_error": worst_mass,
            "max_hypergeometric_delta": worst_delta,
            "probability_sum_check": "PASS" if worst_mass <= tol else "FAIL",
            "hypergeometric_check": "PASS" if worst_delta <= tol else "FAIL",
            "n_rows": len(entries),
            "entries": entries,
        }

    def odds_report(self, include_tables: bool = False) -> dict:
        proof = self.probability_proof()
        report = {
            "report_type": "Draw Odds Report",
            "generator": self.generator,
            "model_version": self.model_version,
            "generated_at": self.generated_at,
            "model_hash": self.model_hash,
            "parameters": self.params.model_dump(),
            "probability_proof": {k: v for k, v in proof.items() if k != "entries"},
            "milestones": [
                {
                    "k": m.k,
                    "median_draw": m.median_draw,
                    "expected_draws": round(m.expected_draws, 6),
                    "p_by_half_drum": round(m.p_by_half_drum, 10),
                }
                for m in self.milestones
            ],
            "integrity": {
                "probability_sum_valid": proof["probability_sum_check"] == "PASS",
                "matches_closed_form": proof["hypergeometric_check"] == "PASS",
            },
        }
        if include_tables:
            report["distribution"] = self.table.to_dict(precision=12)
            report["cumulative"] = self.cumulative.to_dict(precision=12)
        return report

    def to_json(self, indent: int = 2, include_tables: bool = False) -> str:
        return json.dumps(self.odds_report(include_tables=include_tables),
                          indent=indent, default=str)


# ═══════════════════════════════════════════════════════════════
# Math Engine
# ═══════════════════════════════════════════════════════════════

class DrawMathEngine:
    """Builds DrawOddsModel instances, one fresh engine per configuration."""

    def model(self, card_size: int, drum_size: int, name: str = "") -> DrawOddsModel:
        params = validate_parameters(card_size, drum_size, name=name)
        return self.model_for_parameters(params)

    def model_for_parameters(self, params: GameParameters) -> DrawOddsModel:
        table = GameStatusBuilder(params).build()
        cumulative = cumulative_at_least(table)
        model = DrawOddsModel(params=params, table=table, cumulative=cumulative)
        logger.info(f"{params.label}: model {model.model_hash} "
                    f"({params.drum_size} draws x {params.card_size + 1} classes)")
        return model

    def model_for_preset(self, name: str, drum_size: int = None) -> DrawOddsModel:
        return self.model_for_parameters(get_game_parameters(name, drum_size))

    # ── Presets ────────────────────────────────────────────────
    def tombola_model(self, drum_size: int = None) -> DrawOddsModel:
        """Full 15-number card: the tombola is class 15."""
        return self.model_for_preset("tombola", drum_size)

    def cinquina_model(self, drum_size: int = None) -> DrawOddsModel:
        """One 5-number row: ambo..cinquina are classes 2..5."""
        return self.model_for_preset("cinquina", drum_size)


# ═══════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import sys
    engine = DrawMathEngine()
    game = sys.argv[1] if len(sys.argv) > 1 else "all"
    if game == "all":
        for name in DrawConfig.CARD_SIZES:
            m = engine.model_for_preset(name)
            proof = m.probability_proof()
            top = m.milestones[-1]
            print(f"  {name:8s} | c={m.params.card_size:2d} d={m.params.drum_size} | "
                  f"median(k={top.k})={top.median_draw} | "
                  f"E[draws]={top.expected_draws:.2f} | "
                  f"Σp={proof['probability_sum_check']} "
                  f"hyp={proof['hypergeometric_check']}")
    else:
        print(engine.model_for_preset(game).to_json())
