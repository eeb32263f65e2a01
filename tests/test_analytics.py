"""
test_analytics.py

This file contains unit tests for the analytics module.

I wrote these tests to verify that:
1. The history summary behaves correctly in edge cases (no analyses yet).
2. Per-dimension averages and "weakest dimension" picks are right.
3. Language aggregation correctly counts and sorts primary languages.

The rows are built by hand in the same shape db_utils.get_completed_analyses()
returns, so no database is needed.
"""

import unittest
from analytics import (
    badge_distribution,
    comparison_rows,
    compute_history_summary,
    dimension_averages,
    dimension_scores,
    languages_from_paths,
    score_trend,
    search_history,
    top_languages,
    top_repos_by_score,
    weakest_dimensions,
)


def row(owner, name, score, badge, analyzed_at, languages=None, **scores):
    r = {
        "repo_owner": owner,
        "repo_name": name,
        "score": score,
        "badge": badge,
        "rating": {"Gold": "Advanced", "Silver": "Intermediate", "Bronze": "Beginner"}[badge],
        "analyzed_at": analyzed_at,
        "languages": languages or {},
    }
    r.update({f"{k}_score": v for k, v in scores.items()})
    return r


ROWS = [
    row("octo", "api", 80, "Gold", "2026-03-02T10:00:00", {"Python": 90.0, "Shell": 10.0},
        code_quality=18, testing=10),
    row("octo", "web", 50, "Silver", "2026-03-01T10:00:00", {"TypeScript": 70.0, "CSS": 30.0},
        code_quality=10, testing=2),
    row("octo", "api", 60, "Silver", "2026-02-01T10:00:00", {"Python": 100.0},
        code_quality=14, testing=6),
]


class TestHistorySummary(unittest.TestCase):
    """
    Validates compute_history_summary() and badge_distribution().
    """

    def test_compute_history_summary_empty(self):
        """
        compute_history_summary() must handle an empty history safely.

        Rationale:
        On a fresh install there are no completed analyses yet, and the
        History tab still renders its metrics. It should get zeros, not crash.
        """
        summary = compute_history_summary([])

        self.assertEqual(summary["analysis_count"], 0)
        self.assertEqual(summary["avg_score"], 0)
        self.assertEqual(summary["gold_count"], 0)

    def test_compute_history_summary_values(self):
        summary = compute_history_summary(ROWS)

        self.assertEqual(summary["analysis_count"], 3)
        # octo/api analyzed twice
        self.assertEqual(summary["repo_count"], 2)
        self.assertEqual(summary["avg_score"], 63.33)
        self.assertEqual(summary["median_score"], 60.0)
        self.assertEqual(summary["min_score"], 50)
        self.assertEqual(summary["max_score"], 80)
        self.assertEqual(summary["gold_count"], 1)
        self.assertEqual(summary["silver_count"], 2)

    def test_badge_distribution_lists_every_badge(self):
        self.assertEqual(badge_distribution(ROWS), {"Gold": 1, "Silver": 2, "Bronze": 0})


class TestDimensions(unittest.TestCase):

    def test_dimension_averages(self):
        averages = {d["key"]: d for d in dimension_averages(ROWS)}

        self.assertEqual(averages["code_quality"]["average"], 14.0)
        self.assertEqual(averages["code_quality"]["percent"], 70.0)
        self.assertEqual(averages["testing"]["average"], 6.0)
        self.assertEqual(averages["testing"]["percent"], 50.0)
        # no rows carry a security score
        self.assertEqual(averages["security"]["average"], 0.0)

    def test_weakest_dimensions(self):
        scores = {"code_quality": 18, "documentation": 3, "testing": 6, "containerization": 0}
        weakest = weakest_dimensions(scores, n=2)

        self.assertEqual([w["key"] for w in weakest], ["containerization", "documentation"])

    def test_dimension_scores_accepts_both_shapes(self):
        fresh = {"metrics": {"code_quality": 12, "testing": 4}}
        stored = {"metrics": {"code_quality_score": 12, "testing_score": 4, "stars": 9}}

        self.assertEqual(dimension_scores(fresh), {"code_quality": 12, "testing": 4})
        self.assertEqual(dimension_scores(stored), {"code_quality": 12, "testing": 4})


class TestCompareAndSearch(unittest.TestCase):

    def test_comparison_rows(self):
        table = comparison_rows(ROWS[:1])

        self.assertEqual(table[0]["repo"], "octo/api")
        self.assertEqual(table[0]["Code Quality"], 18)
        self.assertEqual(table[0]["Security"], 0)

    def test_top_repos_uses_latest_analysis(self):
        top = top_repos_by_score(ROWS)

        self.assertEqual([(r["repo_name"], r["score"]) for r in top], [("api", 80), ("web", 50)])

    def test_score_trend_oldest_first(self):
        trend = score_trend(ROWS, "octo/api")
        self.assertEqual([score for _, score in trend], [60, 80])

    def test_search_is_case_insensitive(self):
        self.assertEqual(len(search_history(ROWS, "API")), 2)
        self.assertEqual(search_history(ROWS, "nothing"), [])


class TestLanguages(unittest.TestCase):

    def test_top_languages_counts(self):
        """
        This test verifies that top_languages() correctly:
        1. Counts each analysis under its primary (largest share) language
        2. Ignores analyses with no language data
        3. Sorts results by highest count first
        """
        rows = ROWS + [row("octo", "empty", 10, "Bronze", "2026-01-01T00:00:00")]
        langs = top_languages(rows, n=10)

        # Python is primary in two analyses, TypeScript in one
        self.assertEqual(langs[0]["language"], "Python")
        self.assertEqual(langs[0]["repo_count"], 2)

        self.assertEqual(langs[1]["language"], "TypeScript")
        self.assertEqual(langs[1]["repo_count"], 1)

        self.assertEqual(len(langs), 2)

    def test_languages_from_paths(self):
        langs = languages_from_paths(["a.py", "b.py", "c.js", "README.md"])
        self.assertEqual(langs, {"Python": 66.67, "JavaScript": 33.33})
        self.assertEqual(languages_from_paths(["README.md"]), {})


# This allows the test file to be run directly from the command line:
# python test_analytics.py
if __name__ == "__main__":
    unittest.main()
