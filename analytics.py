# analytics.py
#
# Purpose:
# Calculations over stored analyses for the History / Compare views and the
# exports. Input rows come from db_utils.get_completed_analyses(): one dict per
# completed analysis with score, rating, badge, the nine "<key>_score" columns
# and the derived metrics.
#
# Nothing in here talks to GitHub or the database directly.

import posixpath
from collections import Counter
from datetime import datetime

import numpy as np

from patterns import LANGUAGES
from scoring import DIMENSIONS, RATING_TIERS


def _parse_datetime(dt_str):
    """
    Stored timestamps look like '2026-03-01T12:34:56'.
    Returns None if missing or invalid.
    """
    if not dt_str:
        return None
    try:
        return datetime.fromisoformat(str(dt_str).replace("Z", "+00:00"))
    except ValueError:
        return None


def _repo_name(row):
    owner = row.get("repo_owner") or ""
    name = row.get("repo_name") or ""
    return f"{owner}/{name}" if owner else name


# ----------------------------
# Summary
# ----------------------------
def compute_history_summary(rows):
    """
    Summary stats over completed analyses.

    Includes count, distinct repos, score stats (avg/median/min/max) and how
    many analyses earned each badge. An empty history gives all zeros.
    """
    if not rows:
        return {
            "analysis_count": 0,
            "repo_count": 0,
            "avg_score": 0,
            "median_score": 0,
            "min_score": 0,
            "max_score": 0,
            "gold_count": 0,
            "silver_count": 0,
            "bronze_count": 0,
        }

    scores = np.array([int(r.get("score") or 0) for r in rows], dtype=float)
    badges = badge_distribution(rows)

    return {
        "analysis_count": len(rows),
        "repo_count": len(set(_repo_name(r) for r in rows)),
        "avg_score": round(float(scores.mean()), 2),
        "median_score": float(np.median(scores)),
        "min_score": int(scores.min()),
        "max_score": int(scores.max()),
        "gold_count": badges.get("Gold", 0),
        "silver_count": badges.get("Silver", 0),
        "bronze_count": badges.get("Bronze", 0),
    }


def badge_distribution(rows):
    """{badge: count} for every badge tier, highest first."""
    counts = Counter(r.get("badge") for r in rows)
    return {badge: counts.get(badge, 0) for _, _, badge in RATING_TIERS}


# ----------------------------
# Dimensions
# ----------------------------
def dimension_averages(rows):
    """
    Average score per dimension across analyses, also as a percent of the
    dimension maximum (so 6/12 and 10/20 both read 50%).

    Returns a list in dimension order:
      [{"key", "label", "max_score", "average", "percent"}, ...]
    """
    out = []
    for dim in DIMENSIONS:
        values = [r.get(f"{dim.key}_score") for r in rows]
        values = [v for v in values if v is not None]

        if values:
            average = float(np.mean(np.array(values, dtype=float)))
        else:
            average = 0.0

        out.append({
            "key": dim.key,
            "label": dim.label,
            "max_score": dim.max_score,
            "average": round(average, 2),
            "percent": round(average / dim.max_score * 100, 1),
        })
    return out


def dimension_scores(analysis):
    """
    {dimension key: score} for either shape of analysis:
    - a fresh pipeline report ("metrics" is already {key: score})
    - a stored analysis (metrics row with "<key>_score" columns)
    Missing dimensions are left out.
    """
    metrics = analysis.get("metrics") or {}
    scores = {}
    for dim in DIMENSIONS:
        if f"{dim.key}_score" in metrics:
            scores[dim.key] = metrics[f"{dim.key}_score"]
        elif dim.key in metrics:
            scores[dim.key] = metrics[dim.key]
    return scores


def weakest_dimensions(scores, n=3):
    """
    The n dimensions with the lowest share of their maximum.

    scores: {dimension key: score} (pipeline report "metrics")
    Ties keep dimension order.
    """
    ranked = []
    for index, dim in enumerate(DIMENSIONS):
        if dim.key not in scores:
            continue
        ranked.append((scores[dim.key] / dim.max_score, index, dim))

    ranked.sort(key=lambda t: (t[0], t[1]))
    return [
        {"key": dim.key, "label": dim.label, "score": scores[dim.key], "max_score": dim.max_score}
        for _, _, dim in ranked[:n]
    ]


# ----------------------------
# Compare
# ----------------------------
def comparison_rows(rows):
    """
    One flat row per analysis for a side-by-side table:
      repo, score, rating, badge, then one column per dimension label.
    """
    table = []
    for r in rows:
        row = {
            "repo": _repo_name(r),
            "score": r.get("score", 0),
            "rating": r.get("rating", ""),
            "badge": r.get("badge", ""),
        }
        for dim in DIMENSIONS:
            row[dim.label] = r.get(f"{dim.key}_score", 0)
        row["analyzed_at"] = r.get("analyzed_at", "")
        table.append(row)
    return table


def top_repos_by_score(rows, n=10):
    """Latest analysis per repo, best score first."""
    latest = {}
    for r in rows:
        name = _repo_name(r)
        current = latest.get(name)
        if current is None or str(r.get("analyzed_at") or "") > str(current.get("analyzed_at") or ""):
            latest[name] = r
    return sorted(latest.values(), key=lambda r: int(r.get("score") or 0), reverse=True)[:n]


def score_trend(rows, repo_full_name):
    """
    [(analyzed_at datetime, score), ...] oldest first for one repo.
    Rows without a valid timestamp are skipped.
    """
    points = []
    for r in rows:
        if _repo_name(r) != repo_full_name:
            continue
        dt = _parse_datetime(r.get("analyzed_at"))
        if dt is None:
            continue
        points.append((dt, int(r.get("score") or 0)))
    return sorted(points, key=lambda p: p[0])


def search_history(rows, keyword):
    """Analyses whose owner/name contains keyword (case-insensitive)."""
    keyword = (keyword or "").strip().lower()
    return [r for r in rows if keyword in _repo_name(r).lower()]


# ----------------------------
# Languages
# ----------------------------
def languages_from_paths(paths):
    """
    Fallback language breakdown when GitHub has no byte counts:
    percentage of recognized source files per language, 2 decimals.
    """
    ext_to_lang = {}
    for lang, exts in LANGUAGES.items():
        for ext in exts:
            # first language listed wins for shared extensions like .h
            ext_to_lang.setdefault(ext, lang)

    counts = Counter()
    for path in paths:
        ext = posixpath.splitext(path)[1].lower()
        if ext in ext_to_lang:
            counts[ext_to_lang[ext]] += 1

    total = sum(counts.values())
    if total == 0:
        return {}
    return {lang: round(count / total * 100, 2) for lang, count in counts.most_common()}


def primary_language(languages):
    """Language with the largest share, or None for an empty map."""
    if not languages:
        return None
    return max(languages.items(), key=lambda kv: kv[1])[0]


def top_languages(rows, n=10):
    """
    Count analyses per primary language and return the top n:
      [{"language": "Python", "repo_count": 3}, ...]
    Analyses with no language data are ignored.
    """
    counts = {}

    for r in rows:
        lang = primary_language(r.get("languages") or {})
        if lang is None:
            continue
        counts[lang] = counts.get(lang, 0) + 1

    out = [{"language": lang, "repo_count": counts[lang]} for lang in counts]
    return sorted(out, key=lambda x: x["repo_count"], reverse=True)[:n]
