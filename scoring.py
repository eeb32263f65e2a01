# scoring.py
#
# What this file is:
# The shared scoring rules: clamping, rounding, the nine dimensions and their
# maxima, the composite score, and the rating/badge tiers.
#
# How the weights work:
# Each dimension's maximum IS its weight (20 + 15 + 15 + 12 + 12 + 10 + 8 + 5 + 3
# = 100). Analyzers clamp to their own maximum, so the composite is a plain sum.
# Nothing here multiplies a sub-score by a weight a second time.

import logging
import math
from collections import namedtuple

from models import AnalyzerResult, CompositeScore

logger = logging.getLogger(__name__)


# ----------------------------
# Dimensions
# ----------------------------
Dimension = namedtuple("Dimension", ["key", "label", "max_score"])

DIMENSIONS = (
    Dimension("code_quality", "Code Quality", 20),
    Dimension("project_structure", "Project Structure", 15),
    Dimension("documentation", "Documentation", 15),
    Dimension("testing", "Testing", 12),
    Dimension("git_practices", "Git Practices", 12),
    Dimension("security", "Security", 10),
    Dimension("cicd", "CI/CD", 8),
    Dimension("dependencies", "Dependencies", 5),
    Dimension("containerization", "Containerization", 3),
)

DIMENSION_BY_KEY = {d.key: d for d in DIMENSIONS}

# Rating tiers, checked from the top down.
RATING_TIERS = (
    (76, "Advanced", "Gold"),
    (41, "Intermediate", "Silver"),
    (0, "Beginner", "Bronze"),
)


# ----------------------------
# Numeric helpers
# ----------------------------
def clamp(x, lo=0, hi=100):
    """
    Clamp a number into [lo, hi].
    Every analyzer calls this as its very last step.
    """
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def js_round(x):
    """
    Round half up (2.5 -> 3, -2.5 -> -2).

    Python's round() uses banker's rounding (2.5 -> 2). The scoring tables were
    tuned with half-up rounding, so blended sub-scores must use this helper.
    """
    return int(math.floor(x + 0.5))


def weighted(parts):
    """
    Blend (value, weight) pairs and round half up.

    Example:
      weighted([(20, 0.4), (15, 0.6)]) -> 17
    """
    return js_round(sum(value * weight for value, weight in parts))


# ----------------------------
# Composite
# ----------------------------
def get_rating(score):
    """
    Map a composite score to (rating, badge).

      0-40   -> Beginner / Bronze
      41-75  -> Intermediate / Silver
      76-100 -> Advanced / Gold
    """
    for threshold, rating, badge in RATING_TIERS:
        if score >= threshold:
            return rating, badge
    return "Beginner", "Bronze"


def placeholder_result(key, error=None):
    """Zero-score stand-in for an analyzer that raised."""
    dim = DIMENSION_BY_KEY[key]
    return AnalyzerResult(key=key, score=0, max_score=dim.max_score, details=None, error=error)


def aggregate(results):
    """
    Combine the nine analyzer results into a CompositeScore.

    Input:
      results: dict key -> AnalyzerResult (must hold exactly the nine dimensions)

    Raises ValueError if a dimension is missing or unknown. The orchestrator is
    responsible for putting a placeholder_result() in place of a failed analyzer.
    """
    expected = set(DIMENSION_BY_KEY)
    got = set(results)
    if got != expected:
        missing = sorted(expected - got)
        extra = sorted(got - expected)
        raise ValueError(f"aggregate() needs all nine dimensions (missing={missing}, unknown={extra})")

    total = 0
    for dim in DIMENSIONS:
        score = results[dim.key].score
        bounded = clamp(score, 0, dim.max_score)
        if bounded != score:
            logger.warning("Score for %s was out of bounds (%s), clamped to %s", dim.key, score, bounded)
        total += bounded

    total = js_round(total)
    rating, badge = get_rating(total)
    return CompositeScore(total=total, rating=rating, badge=badge)


def score_breakdown(results):
    """Return {dimension key: score} in the fixed dimension order."""
    return {dim.key: results[dim.key].score for dim in DIMENSIONS if dim.key in results}


# ----------------------------
# Metrics for narrative + persistence
# ----------------------------
def build_metrics(repo_info, snapshot, results, composite):
    """
    Flatten everything the narrative generator and the metrics table need.

    Inputs:
      repo_info: RepoInfo
      snapshot: RepoSnapshot
      results: dict key -> AnalyzerResult
      composite: CompositeScore

    Placeholder results have empty details, so every detail lookup has a default.
    """
    details = {key: r.details_dict() for key, r in results.items()}

    code_q = details.get("code_quality", {})
    docs = details.get("documentation", {})
    tests = details.get("testing", {})
    sec = details.get("security", {})
    ci = details.get("cicd", {})
    deps = details.get("dependencies", {})
    cont = details.get("containerization", {})

    metrics = {
        "total_score": composite.total,
        "rating": composite.rating,
        "badge": composite.badge,
    }
    for dim in DIMENSIONS:
        metrics[f"{dim.key}_score"] = results[dim.key].score

    metrics.update({
        "total_files": len(snapshot.files),
        "total_bytes": sum(f.size or 0 for f in snapshot.files),
        "code_files": code_q.get("total_code_files", 0),
        "test_files": tests.get("total_test_files", 0),
        "languages": dict(snapshot.languages),
        "frameworks": deps.get("frameworks", []),
        "package_managers": deps.get("package_managers", []),
        "testing_frameworks": tests.get("testing_frameworks", []),
        "commit_count": len(snapshot.commits),
        "branch_count": len(snapshot.branches),
        "contributor_count": len(snapshot.contributors),
        "stars": repo_info.stars,
        "forks": repo_info.forks,
        "open_issues": repo_info.open_issues,
        "test_to_code_ratio": tests.get("test_to_code_ratio", 0),
        "readme_length": docs.get("readme_length", 0),
        "readme_sections": docs.get("readme_sections", []),
        "has_license": docs.get("has_license", False),
        "has_contributing": docs.get("has_contributing", False),
        "security_issues": sec.get("security_issues", []),
        "vulnerable_dependencies": deps.get("vulnerable_dependencies", 0),
        "has_cicd": ci.get("has_cicd", False),
        "cicd_platforms": ci.get("platforms", []),
        "has_dockerfile": cont.get("has_dockerfile", False),
        "has_docker_compose": cont.get("has_docker_compose", False),
    })
    return metrics
