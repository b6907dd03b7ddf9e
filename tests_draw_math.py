#!/usr/bin/env python3
"""
Tests for the draw odds report layer (tools/draw_math.py)

Validates:
1. Closed-form hypergeometric values and edge cases
2. Every table cell matches the closed form (probability proof PASS)
3. Milestones: median draw and expected draws per class
4. Model hash is deterministic per configuration
5. Report JSON is serializable and complete
"""

import json
import math
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from draw_engine import ParameterValidationError
from tools.draw_math import DrawMathEngine, DrawOddsModel, hypergeometric_pmf


class TestHypergeometric(unittest.TestCase):

    def test_sums_to_one(self):
        for t in range(0, 91, 15):
            total = math.fsum(hypergeometric_pmf(15, 90, t, k) for k in range(16))
            self.assertAlmostEqual(total, 1.0, places=12)

    def test_impossible_classes(self):
        self.assertEqual(hypergeometric_pmf(5, 90, 3, 4), 0.0)   # k > draws
        self.assertEqual(hypergeometric_pmf(5, 90, 10, 6), 0.0)  # k > card
        self.assertEqual(hypergeometric_pmf(5, 90, 10, -1), 0.0)
        self.assertEqual(hypergeometric_pmf(2, 3, 3, 1), 0.0)    # too few non-card numbers

    def test_known_value(self):
        # One draw from 90, card of 15
        self.assertAlmostEqual(hypergeometric_pmf(15, 90, 1, 1), 15 / 90)


class TestDrawOddsModel(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.engine = DrawMathEngine()
        cls.tombola = cls.engine.tombola_model()
        cls.cinquina = cls.engine.cinquina_model()

    def test_preset_parameters(self):
        self.assertEqual((self.tombola.params.card_size, self.tombola.params.drum_size), (15, 90))
        self.assertEqual((self.cinquina.params.card_size, self.cinquina.params.drum_size), (5, 90))

    def test_probability_proof_passes(self):
        for model in (self.tombola, self.cinquina):
            proof = model.probability_proof()
            self.assertEqual(proof["probability_sum_check"], "PASS")
            self.assertEqual(proof["hypergeometric_check"], "PASS")
            self.assertEqual(proof["n_rows"], 90)
            self.assertLess(proof["max_hypergeometric_delta"], 1e-12)

    def test_proof_fails_with_impossible_tolerance(self):
        proof = self.tombola.probability_proof(tolerance=-1.0)
        self.assertEqual(proof["probability_sum_check"], "FAIL")

    def test_expected_draws_order_statistic(self):
        """Class k is reached after k(d+1)/(c+1) draws on average."""
        for model in (self.tombola, self.cinquina):
            c, d = model.params.card_size, model.params.drum_size
            for k in range(c + 1):
                self.assertAlmostEqual(model.expected_draws(k), k * (d + 1) / (c + 1), places=6)

    def test_worked_example_milestones(self):
        m = self.engine.model(1, 2)
        self.assertEqual(m.median_draw(0), 0)
        self.assertEqual(m.median_draw(1), 1)
        self.assertAlmostEqual(m.expected_draws(1), 1.5)
        self.assertEqual([ms.k for ms in m.milestones], [0, 1])

    def test_median_is_monotone(self):
        medians = [ms.median_draw for ms in self.tombola.milestones]
        self.assertEqual(medians, sorted(medians))
        self.assertLessEqual(medians[-1], 90)

    def test_at_least_start_state(self):
        self.assertEqual(self.cinquina.at_least(0, 0), 1.0)
        self.assertEqual(self.cinquina.at_least(0, 1), 0.0)

    def test_odds_at(self):
        odds = self.cinquina.odds_at(45)
        self.assertEqual(odds["t"], 45)
        self.assertEqual(len(odds["exact"]), 6)
        self.assertAlmostEqual(math.fsum(odds["exact"].values()), 1.0, places=9)
        self.assertAlmostEqual(odds["at_least"]["k0"], 1.0, places=9)

    def test_hash_deterministic(self):
        again = self.engine.model(15, 90)
        self.assertEqual(again.model_hash, self.engine.model(15, 90, name="other").model_hash)
        self.assertEqual(len(again.model_hash), 16)
        self.assertNotEqual(again.model_hash, self.cinquina.model_hash)

    def test_report_json(self):
        data = json.loads(self.cinquina.to_json())
        self.assertEqual(data["report_type"], "Draw Odds Report")
        self.assertEqual(data["parameters"]["card_size"], 5)
        self.assertTrue(data["integrity"]["probability_sum_valid"])
        self.assertTrue(data["integrity"]["matches_closed_form"])
        self.assertEqual(len(data["milestones"]), 6)
        self.assertNotIn("distribution", data)
        self.assertNotIn("entries", data["probability_proof"])

    def test_report_with_tables(self):
        data = json.loads(self.engine.model(1, 2).to_json(include_tables=True))
        self.assertEqual(data["distribution"]["rows"], [[1, 0.5, 0.5], [2, 0.0, 1.0]])
        self.assertEqual(data["cumulative"]["rows"], [[1, 1.0, 0.5], [2, 1.0, 1.0]])

    def test_fresh_engine_per_model(self):
        a = self.engine.model(3, 6)
        b = self.engine.model(3, 6)
        self.assertIsInstance(a, DrawOddsModel)
        self.assertIsNot(a.table, b.table)
        self.assertEqual(a.table.values, b.table.values)

    def test_invalid_parameters(self):
        with self.assertRaises(ParameterValidationError):
            self.engine.model(16, 15)


if __name__ == "__main__":
    unittest.main(verbosity=2)
