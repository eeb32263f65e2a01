"""
test_scoring.py

Unit tests for scoring.py: rounding, rating tiers and the composite score.

The composite score is a plain sum of the nine dimension scores, so most of
these tests are about the edges: half-up rounding, tier boundaries, and
what happens when an analyzer hands back something out of range.
"""

import unittest

from models import AnalyzerResult
from scoring import (
    DIMENSIONS,
    aggregate,
    clamp,
    get_rating,
    js_round,
    placeholder_result,
    score_breakdown,
    weighted,
)


def full_results(score_for=None):
    """
    One AnalyzerResult per dimension.
    score_for: optional {key: score}; other dimensions get their maximum.
    """
    score_for = score_for or {}
    return {
        d.key: AnalyzerResult(d.key, score_for.get(d.key, d.max_score), d.max_score)
        for d in DIMENSIONS
    }


class TestNumericHelpers(unittest.TestCase):

    def test_js_round_rounds_half_up(self):
        """
        Python's round(2.5) is 2. The analyzers need 2.5 -> 3, and
        negative halves go toward +infinity (-2.5 -> -2).
        """
        self.assertEqual(js_round(2.5), 3)
        self.assertEqual(js_round(3.5), 4)
        self.assertEqual(js_round(-2.5), -2)
        self.assertEqual(js_round(0.49), 0)

    def test_clamp(self):
        self.assertEqual(clamp(-3, 0, 10), 0)
        self.assertEqual(clamp(13, 0, 10), 10)
        self.assertEqual(clamp(7, 0, 10), 7)

    def test_weighted_blend(self):
        # 20*0.4 + 15*0.6 = 17
        self.assertEqual(weighted([(20, 0.4), (15, 0.6)]), 17)


class TestRating(unittest.TestCase):

    def test_tier_boundaries(self):
        """40/41 and 75/76 are the only boundaries that matter."""
        self.assertEqual(get_rating(0), ("Beginner", "Bronze"))
        self.assertEqual(get_rating(40), ("Beginner", "Bronze"))
        self.assertEqual(get_rating(41), ("Intermediate", "Silver"))
        self.assertEqual(get_rating(75), ("Intermediate", "Silver"))
        self.assertEqual(get_rating(76), ("Advanced", "Gold"))
        self.assertEqual(get_rating(100), ("Advanced", "Gold"))


class TestAggregate(unittest.TestCase):

    def test_dimension_maxima_sum_to_100(self):
        self.assertEqual(sum(d.max_score for d in DIMENSIONS), 100)

    def test_perfect_scores(self):
        composite = aggregate(full_results())

        self.assertEqual(composite.total, 100)
        self.assertEqual(composite.rating, "Advanced")
        self.assertEqual(composite.badge, "Gold")

    def test_total_is_sum_of_dimensions(self):
        results = full_results({"code_quality": 10, "testing": 0, "containerization": 1})
        composite = aggregate(results)

        # 100 - (20-10) - (12-0) - (3-1)
        self.assertEqual(composite.total, 76)
        self.assertEqual(composite.badge, "Gold")

    def test_out_of_range_scores_are_clamped(self):
        """An analyzer returning 25/20 must not push the total past 100."""
        composite = aggregate(full_results({"code_quality": 25, "cicd": -4}))

        # code_quality clamps to 20, cicd clamps to 0
        self.assertEqual(composite.total, 92)

    def test_missing_dimension_raises(self):
        results = full_results()
        del results["security"]

        with self.assertRaises(ValueError):
            aggregate(results)

    def test_unknown_dimension_raises(self):
        results = full_results()
        results["popularity"] = AnalyzerResult("popularity", 5, 5)

        with self.assertRaises(ValueError):
            aggregate(results)

    def test_placeholder_counts_as_zero(self):
        results = full_results()
        results["documentation"] = placeholder_result("documentation", error="boom")

        composite = aggregate(results)

        self.assertEqual(composite.total, 85)
        self.assertEqual(results["documentation"].max_score, 15)
        self.assertEqual(results["documentation"].error, "boom")
        self.assertEqual(results["documentation"].details_dict(), {})

    def test_score_breakdown_keeps_dimension_order(self):
        breakdown = score_breakdown(full_results())
        self.assertEqual(list(breakdown), [d.key for d in DIMENSIONS])


if __name__ == "__main__":
    unittest.main()
