# file_utils.py
#
# Purpose:
# Save analysis outputs to disk in a few formats:
#   1) TXT report (quick to read in a terminal or editor)
#   2) JSON (the full analysis, easy for other tools to read back)
#   3) CSV history / comparison rows (opens in Excel/Sheets)
# It also loads repository URLs from a text file for batch runs.
#
# Kept apart from app.py / main.py so the UI code stays about flow, and so the
# exports can be tested without Streamlit.

import csv
import json
import logging
import os
from datetime import datetime

from analytics import dimension_scores
from scoring import DIMENSIONS

logger = logging.getLogger(__name__)

REPORTS_DIR = "reports"


def ensure_reports_dir(reports_dir=REPORTS_DIR):
    os.makedirs(reports_dir, exist_ok=True)


def _timestamp():
    """
    Timestamp for filenames, e.g. 20260228_014512.
    Exports never overwrite a previous run.
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _slug(analysis):
    owner = analysis.get("repo_owner")
    name = analysis.get("repo_name")
    if owner and name:
        return f"{owner}_{name}"
    info = analysis.get("repo_info") or {}
    return (info.get("full_name") or "analysis").replace("/", "_")


def save_analysis_txt(analysis, reports_dir=REPORTS_DIR):
    """
    Save a human-readable TXT report for one analysis.
    Returns the saved file path.
    """
    ensure_reports_dir(reports_dir)

    ts = _timestamp()
    path = os.path.join(reports_dir, f"{_slug(analysis)}_report_{ts}.txt")

    with open(path, "w", encoding="utf-8") as f:
        f.write("RepoGrade Analysis Report\n")
        f.write(f"Repository: {analysis.get('repo_url', '')}\n")
        f.write(f"Generated: {ts}\n\n")

        f.write(f"SCORE: {analysis.get('score', 0)}/100 ")
        f.write(f"({analysis.get('rating', '')}, {analysis.get('badge', '')})\n\n")

        f.write("BREAKDOWN\n")
        scores = dimension_scores(analysis)
        for dim in DIMENSIONS:
            if dim.key in scores:
                f.write(f"- {dim.label}: {scores[dim.key]}/{dim.max_score}\n")

        f.write("\nSUMMARY\n")
        f.write((analysis.get("summary") or "") + "\n")

        f.write("\nROADMAP\n")
        for i, item in enumerate(analysis.get("roadmap") or [], start=1):
            f.write(f"{i}. [{item.get('priority', 'medium')}] {item.get('title', '')}")
            f.write(f" ({item.get('estimatedTime', '')})\n")
            f.write(f"   {item.get('description', '')}\n")

    return path


def save_analysis_json(analysis, reports_dir=REPORTS_DIR):
    """
    Save the whole analysis dict as JSON.
    Returns the saved file path.
    """
    ensure_reports_dir(reports_dir)

    ts = _timestamp()
    path = os.path.join(reports_dir, f"{_slug(analysis)}_analysis_{ts}.json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(analysis, f, indent=2, default=str)

    return path


def save_history_csv(rows, name="history", reports_dir=REPORTS_DIR):
    """
    Save flat rows (list of dicts, e.g. analytics.comparison_rows) as CSV.
    Returns the saved file path. An empty list still creates an empty file.
    """
    ensure_reports_dir(reports_dir)

    ts = _timestamp()
    path = os.path.join(reports_dir, f"{name}_{ts}.csv")

    if not rows:
        with open(path, "w", newline="", encoding="utf-8") as f:
            f.write("")
        return path

    fieldnames = list(rows[0].keys())

    # newline="" prevents extra blank lines on Windows
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

    return path


def load_repo_urls(path="repos.txt"):
    """
    Load repository URLs from a text file (one per line).
    Blank lines and lines starting with # are skipped.

    Expected file format:
      https://github.com/pallets/flask
      # https://github.com/psf/requests
      https://github.com/tiangolo/fastapi

    A missing file is logged and gives [].
    """
    if not os.path.exists(path):
        logger.error("File not found: %s", path)
        return []

    urls = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            u = line.strip()
            if u != "" and not u.startswith("#"):
                urls.append(u)

    return urls
