#!/usr/bin/env python3
"""
Tombola Odds - Unit Test Suite (draw engine)

Run: python tests.py
     python tests.py -v                    # verbose
     python tests.py TestRecurrenceEngine  # run specific class

Test categories:
  TestGameParameters: schema validation, presets
  TestProbabilityModel: hit probability, domain errors
  TestRecurrenceEngine: base case, worked example, memo table, reference equality
  TestGameStatusBuilder: table shape, mass conservation, parameter rejection
  TestCumulativeAggregator: suffix sums, monotonicity, malformed tables
"""

import math
import sys
import unittest
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import ValidationError

from config.draw_schema import GameParameters
from draw_engine import (
    DistributionTable, DomainError, GameStatusBuilder, ParameterValidationError,
    ProbabilityModel, RecurrenceEngine, TableIntegrityError, build_table,
    cumulative_at_least, get_game_parameters, GAME_TYPES,
)

TOL = 1e-9


def naive_fraction(c, d, t, k):
    """Unmemoized evaluation of the same recurrence (exponential, small inputs only)."""
    if k < 0 or k > c:
        return 0.0
    if t == 0:
        return 1.0 if k == 0 else 0.0
    total = 0.0
    advancing = naive_fraction(c, d, t - 1, k - 1)
    if advancing:
        total += advancing * ((c - (k - 1)) / (d - (t - 1)))
    staying = naive_fraction(c, d, t - 1, k)
    if staying:
        total += staying * (1.0 - (c - k) / (d - (t - 1)))
    return total


class RecordingModel(ProbabilityModel):
    """ProbabilityModel that remembers every (t, k) it was asked for."""

    def __init__(self, params):
        super().__init__(params)
        self.calls = []
        self.misses = []

    def hit_probability(self, t, k):
        self.calls.append((t, k))
        return super().hit_probability(t, k)

    def miss_probability(self, t, k):
        self.misses.append((t, k))
        return super().miss_probability(t, k)


# ============================================================
# Parameters
# ============================================================

class TestGameParameters(unittest.TestCase):

    def test_valid(self):
        p = GameParameters(card_size=15, drum_size=90)
        self.assertEqual(p.card_size, 15)
        self.assertEqual(p.drum_size, 90)
        self.assertEqual(p.label, "c15_d90")

    def test_card_larger_than_drum(self):
        with self.assertRaises(ValidationError):
            GameParameters(card_size=16, drum_size=15)

    def test_negative_and_zero(self):
        with self.assertRaises(ValidationError):
            GameParameters(card_size=-1, drum_size=10)
        with self.assertRaises(ValidationError):
            GameParameters(card_size=0, drum_size=0)

    def test_non_integer_rejected(self):
        with self.assertRaises(ValidationError):
            GameParameters(card_size=2.5, drum_size=10)

    def test_frozen(self):
        p = GameParameters(card_size=5, drum_size=90)
        with self.assertRaises(ValidationError):
            p.card_size = 6

    def test_presets(self):
        """Named presets resolve on the default 90-number drum."""
        self.assertIn("tombola", GAME_TYPES)
        self.assertIn("cinquina", GAME_TYPES)
        p = get_game_parameters("Tombola")
        self.assertEqual((p.card_size, p.drum_size, p.name), (15, 90, "tombola"))
        self.assertEqual(get_game_parameters("cinquina", drum_size=20).drum_size, 20)

    def test_unknown_preset(self):
        with self.assertRaises(ValueError) as ctx:
            get_game_parameters("bingo")
        self.assertIn("Available", str(ctx.exception))

    def test_preset_on_too_small_drum(self):
        with self.assertRaises(ParameterValidationError):
            get_game_parameters("tombola", drum_size=10)


# ============================================================
# Probability model
# ============================================================

class TestProbabilityModel(unittest.TestCase):

    def setUp(self):
        self.model = ProbabilityModel(GameParameters(card_size=3, drum_size=6))

    def test_formula(self):
        """p = (c - k) / (d - t)."""
        self.assertAlmostEqual(self.model.hit_probability(0, 0), 3 / 6)
        self.assertAlmostEqual(self.model.hit_probability(2, 1), 2 / 4)
        self.assertAlmostEqual(self.model.hit_probability(5, 2), 1.0)
        self.assertEqual(self.model.hit_probability(4, 3), 0.0)

    def test_miss_probability(self):
        self.assertAlmostEqual(self.model.miss_probability(1, 0), 1 - 3 / 5)

    def test_class_out_of_range(self):
        with self.assertRaises(DomainError):
            self.model.hit_probability(0, -1)
        with self.assertRaises(DomainError):
            self.model.hit_probability(0, 4)

    def test_time_out_of_range(self):
        """t counts draws already made, so t = d has no next draw."""
        with self.assertRaises(DomainError):
            self.model.hit_probability(6, 0)
        with self.assertRaises(DomainError):
            self.model.hit_probability(-1, 0)

    def test_domain_error_is_arithmetic(self):
        with self.assertRaises(ArithmeticError):
            self.model.hit_probability(7, 0)


# ============================================================
# Recurrence engine
# ============================================================

class TestRecurrenceEngine(unittest.TestCase):

    def _engine(self, c, d):
        return RecurrenceEngine(GameParameters(card_size=c, drum_size=d))

    def test_base_case(self):
        e = self._engine(5, 90)
        self.assertEqual(e.fraction_in_class(0, 0), 1.0)
        for k in range(1, 6):
            self.assertEqual(e.fraction_in_class(0, k), 0.0)

    def test_worked_example(self):
        """1-number card, 2-number drum: the card is certainly hit once the drum is empty."""
        e = self._engine(1, 2)
        self.assertEqual(e.fraction_in_class(1, 0), 0.5)
        self.assertEqual(e.fraction_in_class(1, 1), 0.5)
        self.assertEqual(e.fraction_in_class(2, 0), 0.0)
        self.assertEqual(e.fraction_in_class(2, 1), 1.0)

    def test_out_of_domain_classes_are_zero(self):
        e = self._engine(3, 6)
        self.assertEqual(e.fraction_in_class(4, -1), 0.0)
        self.assertEqual(e.fraction_in_class(4, 4), 0.0)
        self.assertEqual(e.fraction_in_class(4, 100), 0.0)

    def test_upper_triangle_is_zero(self):
        """No card can have more hits than draws."""
        e = self._engine(5, 20)
        for t in range(0, 6):
            for k in range(t + 1, 6):
                self.assertEqual(e.fraction_in_class(t, k), 0.0, f"f({t},{k})")

    def test_time_out_of_range(self):
        e = self._engine(3, 6)
        with self.assertRaises(DomainError):
            e.fraction_in_class(7, 0)
        with self.assertRaises(DomainError):
            e.fraction_in_class(-1, 0)

    def test_matches_naive_reference(self):
        """Memoized values are identical to an unmemoized evaluation."""
        c, d = 3, 6
        e = self._engine(c, d)
        for t in range(d + 1):
            for k in range(-1, c + 2):
                self.assertEqual(e.fraction_in_class(t, k), naive_fraction(c, d, t, k),
                                 f"f({t},{k})")

    def test_each_cell_computed_once(self):
        e = self._engine(5, 30)
        e.fraction_in_class(30, 5)
        self.assertEqual(e.filled_through, 30)
        self.assertEqual(e.cells_computed, 30 * 6)
        for t in range(31):
            for k in range(6):
                e.fraction_in_class(t, k)
        self.assertEqual(e.cells_computed, 30 * 6)

    def test_lazy_fill(self):
        e = self._engine(5, 90)
        self.assertEqual(e.filled_through, 0)
        e.fraction_in_class(10, 2)
        self.assertEqual(e.filled_through, 10)
        e.fill_all()
        self.assertEqual(e.filled_through, 90)

    def test_large_drum_no_recursion(self):
        """A drum far beyond the recursion limit still fills bottom-up."""
        d = sys.getrecursionlimit() + 500
        e = self._engine(2, d)
        self.assertAlmostEqual(e.fraction_in_class(d, 2), 1.0, places=9)

    def test_model_never_called_out_of_domain(self):
        params = GameParameters(card_size=4, drum_size=12)
        model = RecordingModel(params)
        e = RecurrenceEngine(params, model=model)
        e.fill_all()
        self.assertTrue(model.calls)
        for t, k in model.calls:
            self.assertTrue(0 <= k <= 4, f"k={k}")
            self.assertTrue(0 <= t < 12, f"t={t}")

    def test_model_called_with_completed_draws(self):
        """Step t evaluates the model at t - 1 (draws already completed)."""
        params = GameParameters(card_size=2, drum_size=5)
        model = RecordingModel(params)
        e = RecurrenceEngine(params, model=model)
        e.fill(1)
        self.assertEqual({t for t, _ in model.calls}, {0})

    def test_staying_term_uses_miss_probability(self):
        """Cards that stay in class k are weighted by the model's miss probability."""
        params = GameParameters(card_size=2, drum_size=5)
        model = RecordingModel(params)
        e = RecurrenceEngine(params, model=model)
        e.fill(1)
        self.assertEqual(model.misses, [(0, 0)])
        self.assertEqual(e.fraction_in_class(1, 0), 1.0 - 2 / 5)

    def test_engines_are_isolated(self):
        a = self._engine(15, 90)
        b = self._engine(5, 90)
        self.assertNotEqual(a.fraction_in_class(45, 3), b.fraction_in_class(45, 3))
        self.assertEqual(b.filled_through, 45)
        a.fill_all()
        self.assertEqual(b.filled_through, 45)

    def test_row(self):
        e = self._engine(1, 2)
        self.assertEqual(e.row(1), (0.5, 0.5))


# ============================================================
# Game status builder
# ============================================================

class TestGameStatusBuilder(unittest.TestCase):

    def test_shape_and_rows_contract(self):
        table = build_table(5, 90)
        rows = table.rows()
        self.assertEqual(len(rows), 90)
        self.assertEqual([r[0] for r in rows], list(range(1, 91)))
        for r in rows:
            self.assertEqual(len(r), 5 + 2)

    def test_mass_conservation(self):
        for c, d in [(15, 90), (5, 90), (1, 2), (3, 6), (0, 4), (7, 7)]:
            table = build_table(c, d)
            for t, s in zip(table.times, table.row_sums()):
                self.assertAlmostEqual(s, 1.0, delta=TOL, msg=f"c={c} d={d} t={t}")

    def test_values_are_probabilities(self):
        table = build_table(15, 90)
        for row in table.values:
            for v in row:
                self.assertGreaterEqual(v, 0.0)
                self.assertLessEqual(v, 1.0 + TOL)

    def test_full_drum_completes_card(self):
        table = build_table(15, 90)
        self.assertAlmostEqual(table.fraction(90, 15), 1.0, delta=TOL)
        self.assertAlmostEqual(table.fraction(90, 14), 0.0, delta=TOL)

    def test_card_equals_drum(self):
        table = build_table(4, 4)
        for t in table.times:
            self.assertAlmostEqual(table.fraction(t, t), 1.0, delta=TOL)

    def test_zero_card(self):
        table = build_table(0, 10)
        self.assertEqual(table.rows()[0], (1, 1.0))
        self.assertEqual(table.column(0), [1.0] * 10)

    def test_parameter_rejection(self):
        with self.assertRaises(ParameterValidationError):
            build_table(16, 15)
        with self.assertRaises(ParameterValidationError):
            build_table(-1, 10)
        with self.assertRaises(ParameterValidationError):
            build_table(0, 0)

    def test_rejection_is_value_error(self):
        with self.assertRaises(ValueError):
            build_table(16, 15)

    def test_builder_class(self):
        params = GameParameters(card_size=3, drum_size=6)
        table = GameStatusBuilder(params).build()
        self.assertIsInstance(table, DistributionTable)
        self.assertEqual(table.fraction(6, 3), naive_fraction(3, 6, 6, 3))

    def test_table_lookup_bounds(self):
        table = build_table(3, 6)
        self.assertEqual(table.fraction(2, 4), 0.0)
        with self.assertRaises(DomainError):
            table.fraction(0, 0)
        with self.assertRaises(DomainError):
            table.row(7)

    def test_to_dict(self):
        data = build_table(1, 2).to_dict()
        self.assertEqual(data["kind"], "distribution")
        self.assertEqual(data["columns"], ["t", "k0", "k1"])
        self.assertEqual(data["rows"], [[1, 0.5, 0.5], [2, 0.0, 1.0]])


# ============================================================
# Cumulative aggregator
# ============================================================

class TestCumulativeAggregator(unittest.TestCase):

    def test_suffix_sums(self):
        table = build_table(3, 6)
        cum = cumulative_at_least(table)
        for t in table.times:
            for k in range(4):
                expected = math.fsum(table.fraction(t, j) for j in range(k, 4))
                self.assertAlmostEqual(cum.at_least(t, k), expected, delta=1e-12)

    def test_monotone_and_first_column(self):
        cum = cumulative_at_least(build_table(15, 90))
        for t in cum.times:
            row = cum.row(t)
            self.assertAlmostEqual(row[0], 1.0, delta=TOL)
            for k in range(1, len(row)):
                self.assertLessEqual(row[k], row[k - 1])

    def test_last_column_equals_exact(self):
        table = build_table(5, 90)
        cum = cumulative_at_least(table)
        self.assertEqual(cum.column(5), table.column(5))

    def test_worked_example(self):
        cum = cumulative_at_least(build_table(1, 2))
        self.assertEqual(cum.rows(), [(1, 1.0, 0.5), (2, 1.0, 1.0)])
        self.assertEqual(cum.at_least(1, -3), 1.0)
        self.assertEqual(cum.at_least(1, 2), 0.0)

    def test_malformed_table_rejected(self):
        params = GameParameters(card_size=1, drum_size=2)
        bad = DistributionTable(params=params, values=((0.5, 0.4), (0.0, 1.0)))
        with self.assertRaises(TableIntegrityError):
            cumulative_at_least(bad)

    def test_short_table_rejected(self):
        """A table missing rows or classes is rejected, not truncated."""
        params = GameParameters(card_size=1, drum_size=2)
        short = DistributionTable(params=params, values=((0.5, 0.5),))
        with self.assertRaises(TableIntegrityError):
            cumulative_at_least(short)
        narrow = DistributionTable(params=params, values=((1.0,), (1.0,)))
        with self.assertRaises(TableIntegrityError):
            cumulative_at_least(narrow)

    def test_kind(self):
        self.assertEqual(cumulative_at_least(build_table(1, 2)).to_dict()["kind"],
                         "cumulative_at_least")


if __name__ == "__main__":
    unittest.main(verbosity=2)
