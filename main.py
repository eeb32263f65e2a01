# main.py
#
# What this file is:
# The command-line (terminal) version of RepoGrade. Same pipeline as the
# Streamlit app, driven by a simple menu, with results printed to the console.
#
# Big picture flow (Option 1):
#   URL -> pipeline.analyze_with_timeout -> SQLite -> exports (TXT/JSON/PDF)
#
# Printing lives here; analysis and persistence stay in their own modules.

import logging
import sqlite3

from analytics import (
    comparison_rows,
    compute_history_summary,
    dimension_averages,
    dimension_scores,
    search_history,
    top_repos_by_score,
    weakest_dimensions,
)
from cache_utils import cache_clear
from config import load_settings
from db_utils import cleanup_old_cache, get_completed_analyses
from errors import RepoGradeError
from file_utils import load_repo_urls, save_analysis_json, save_analysis_txt, save_history_csv
from log_utils import setup_logging
from patterns import ERROR_MESSAGES
from pipeline import analyze_with_timeout, get_analysis, get_history
from report_utils import export_analysis_pdf
from scoring import DIMENSIONS

logger = logging.getLogger(__name__)


def print_menu():
    print("\nRepoGrade")
    print("----------------------------")
    print("1. Analyze a GitHub repository (export + DB)")
    print("2. Analyze repositories from file (repos.txt)")
    print("3. Show analysis history")
    print("4. View a saved analysis")
    print("5. Search history by repo name")
    print("6. History statistics + CSV export")
    print("7. Clear caches")
    print("q. Quit")


def print_progress(percent, message):
    print(f"  [{percent:3d}%] {message}")


def print_breakdown(scores):
    print("\nSCORE BREAKDOWN")
    print("----------------------------")
    for dim in DIMENSIONS:
        if dim.key in scores:
            print(f"{dim.label:18} : {scores[dim.key]:>2}/{dim.max_score}")


def print_roadmap(roadmap):
    print("\nROADMAP")
    print("----------------------------")
    if not roadmap:
        print("(no items)")
        return
    for i, item in enumerate(roadmap, start=1):
        print(f"{i}. [{item.get('priority', 'medium').upper()}] {item.get('title', '')} ({item.get('estimatedTime', '')})")
        print(f"   {item.get('description', '')}")


def print_analysis(analysis):
    """Print a fresh report or a stored completed analysis."""
    scores = dimension_scores(analysis)

    print("\nRESULT")
    print("----------------------------")
    print(f"Repository : {analysis.get('repo_url', '')}")
    print(f"Score      : {analysis.get('score', 0)}/100")
    print(f"Rating     : {analysis.get('rating', '')} ({analysis.get('badge', '')})")

    print_breakdown(scores)

    gaps = weakest_dimensions(scores)
    if gaps:
        print("\nBiggest gaps: " + ", ".join(f"{g['label']} {g['score']}/{g['max_score']}" for g in gaps))

    print("\nSUMMARY")
    print("----------------------------")
    print(analysis.get("summary") or "")

    print_roadmap(analysis.get("roadmap"))


def _run_analysis(settings, repo_url):
    """
    Analyze one URL and print it. Returns the report, or None on failure.
    Known failures (bad URL, GitHub errors, timeout, database) are printed, not raised.
    """
    try:
        return analyze_with_timeout(repo_url, settings, progress=print_progress)
    except RepoGradeError as e:
        print(f"Error: {e}")
        return None
    except sqlite3.Error as e:
        logger.error("Database error during analysis: %s", e)
        print(f"Error: {ERROR_MESSAGES['DATABASE_ERROR']}")
        return None


def analyze_one(settings):
    """
    Full pipeline for one repository:
      GitHub -> analyzers -> score -> narrative -> SQLite -> exports.
    """
    repo_url = input("Enter GitHub repository URL: ").strip()
    if repo_url == "":
        print("Error: URL cannot be empty.")
        return

    report = _run_analysis(settings, repo_url)
    if report is None:
        return

    print_analysis(report)

    if report["errors"]:
        print("\nAnalyzers that failed (scored 0): " + ", ".join(sorted(report["errors"])))

    txt_path = save_analysis_txt(report)
    json_path = save_analysis_json(report)
    pdf_path = export_analysis_pdf(report)

    print("\nEXPORTS")
    print("----------------------------")
    print("Report TXT :", txt_path)
    print("Report JSON:", json_path)
    print("Report PDF :", pdf_path)
    print("SQLite DB  :", settings.db_path)
    print("Analysis ID:", report["id"])
    print(f"Duration   : {report['duration_ms'] / 1000:.1f}s")


def analyze_file(settings):
    """
    Analyze every URL in repos.txt, one after another (score only).
    A failure on one URL does not stop the batch.
    """
    urls = load_repo_urls()
    if not urls:
        print("No URLs found. Create repos.txt with one repository URL per line.")
        return

    results = []
    for url in urls:
        print(f"\nAnalyzing {url}...")
        report = _run_analysis(settings, url)
        if report is None:
            results.append((url, None, "failed"))
            continue
        results.append((url, report["score"], f"{report['rating']} ({report['badge']})"))

    print("\nBATCH RESULTS")
    print("----------------------------")
    for url, score, label in results:
        shown = "-" if score is None else f"{score}/100"
        print(f"{shown:>7} | {label:22} | {url}")


def history_option(settings):
    page_raw = input("Page (default 1): ").strip()
    page = int(page_raw) if page_raw.isdigit() else 1

    history = get_history(settings, page=page, limit=10)
    if not history["items"]:
        print("No analyses on this page.")
        return

    print(f"\nHISTORY (page {history['page']} of {max(history['pages'], 1)}, {history['total']} total)")
    print("----------------------------")
    for row in history["items"]:
        score = row.get("score") if row.get("status") == "completed" else "-"
        print(
            f"{row['id']} | {row['repo_owner']}/{row['repo_name']} | "
            f"{row['status']:10} | score={score} | {row['created_at']}"
        )


def view_option(settings):
    analysis_id = input("Analysis ID: ").strip()
    if analysis_id == "":
        print("Analysis ID is required.")
        return

    analysis = get_analysis(analysis_id, settings)
    if analysis is None:
        print("No analysis with that ID.")
        return

    if analysis["status"] == "failed":
        print(f"Analysis failed: {analysis.get('error_message')}")
        return
    if analysis["status"] != "completed":
        print(f"Analysis is {analysis['status']} ({analysis['progress']}%): {analysis.get('current_step') or ''}")
        return

    print_analysis(analysis)

    if input("\nExport PDF? (y/n): ").strip().lower() == "y":
        print("Report PDF :", export_analysis_pdf(analysis))


def search_option(settings):
    keyword = input("Enter keyword: ").strip()
    if keyword == "":
        print("Keyword is required.")
        return

    matches = search_history(get_completed_analyses(limit=100, db_path=settings.db_path), keyword)

    print(f"\nFound {len(matches)} analyses matching '{keyword}':")
    print("----------------------------")
    for r in matches[:20]:
        print(f"- {r['repo_owner']}/{r['repo_name']} | {r['score']}/100 | {r['analyzed_at']} | {r['id']}")

    if len(matches) > 20:
        print("(Showing first 20 matches)")


def stats_option(settings):
    rows = get_completed_analyses(limit=100, db_path=settings.db_path)
    summary = compute_history_summary(rows)

    print("\nHISTORY SUMMARY")
    print("----------------------------")
    for k, v in summary.items():
        print(f"{k:16} : {v}")

    if not rows:
        return

    print("\nAVERAGE BY DIMENSION")
    print("----------------------------")
    for d in dimension_averages(rows):
        print(f"{d['label']:18} : {d['average']:>5}/{d['max_score']} ({d['percent']}%)")

    print("\nTOP REPOS")
    print("----------------------------")
    for i, r in enumerate(top_repos_by_score(rows, n=5), start=1):
        print(f"{i}. {r['repo_owner']}/{r['repo_name']} | {r['score']}/100 | {r['badge']}")

    print("\nHistory CSV:", save_history_csv(comparison_rows(rows)))


def cache_option(settings):
    removed_files = cache_clear(settings.narrative_cache_dir)
    removed_rows = cleanup_old_cache(db_path=settings.db_path)
    print(f"Removed {removed_files} narrative cache files and {removed_rows} expired repo cache rows.")


def main():
    """
    Sentinel-controlled main menu loop: keep going until the user enters "q".
    """
    settings = load_settings()
    setup_logging(settings.log_level)
    logger.info("Using database %s", settings.db_path)

    options = {
        "1": analyze_one,
        "2": analyze_file,
        "3": history_option,
        "4": view_option,
        "5": search_option,
        "6": stats_option,
        "7": cache_option,
    }

    choice = ""
    while choice != "q":
        print_menu()
        choice = input("Choice: ").strip().lower()

        if choice in options:
            options[choice](settings)
        elif choice == "q":
            print("Goodbye!")
        else:
            print("Invalid option. Try again.")


if __name__ == "__main__":
    main()
