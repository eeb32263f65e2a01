# pipeline.py
#
# Purpose:
# The orchestrator. One call to analyze_repository() takes a GitHub URL all
# the way to a stored, completed analysis:
#
#   validate URL -> create record (pending)
#   10% metadata, 20% file tree, 30% README, 40% commits
#   50% branches + PRs + languages + contributors (in parallel)
#   60% nine analyzers (in parallel)
#   85% aggregate, 90% summary, 95% roadmap, 100% save
#
# Every step updates the analyses row (status/progress/current_step) and calls
# the optional progress(percent, message) callback so a UI can follow along.
#
# Failure rules:
# - a bad URL raises before any record exists
# - an analyzer that raises is logged and scored 0 (placeholder)
# - anything else marks the record failed and re-raises

import logging
import queue
import sqlite3
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from types import MappingProxyType

import db_utils
from analytics import languages_from_paths
from code_analyzers import analyze_code_quality, analyze_project_structure
from docs_analyzer import analyze_documentation
from errors import AnalysisTimeoutError
from github_api import GitHubClient, parse_github_url
from llm_utils import generate_roadmap, generate_summary
from models import RepoSnapshot, roadmap_to_dicts
from practice_analyzers import (
    analyze_cicd,
    analyze_containerization,
    analyze_dependencies,
    analyze_git_practices,
    analyze_security,
)
from scoring import aggregate, build_metrics, placeholder_result, score_breakdown
from testing_analyzer import analyze_testing

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100

# dimension key -> analyzer function (same order as scoring.DIMENSIONS)
ANALYZERS = {
    "code_quality": analyze_code_quality,
    "project_structure": analyze_project_structure,
    "documentation": analyze_documentation,
    "testing": analyze_testing,
    "git_practices": analyze_git_practices,
    "security": analyze_security,
    "cicd": analyze_cicd,
    "dependencies": analyze_dependencies,
    "containerization": analyze_containerization,
}


# ----------------------------
# Analyzers
# ----------------------------
def run_analyzers(snapshot, analyzers=None, max_workers=None):
    """
    Run every analyzer on the same snapshot, in parallel.

    Returns: dict key -> AnalyzerResult, with a zero-score placeholder for
    any analyzer that raised.
    """
    analyzers = analyzers or ANALYZERS
    results = {}

    with ThreadPoolExecutor(max_workers=max_workers or len(analyzers)) as pool:
        futures = {key: pool.submit(fn, snapshot) for key, fn in analyzers.items()}

        for key, future in futures.items():
            try:
                results[key] = future.result()
            except Exception as e:
                logger.exception("Analyzer %s failed, scoring it 0", key)
                results[key] = placeholder_result(key, error=str(e))

    return results


# ----------------------------
# Snapshot
# ----------------------------
def fetch_snapshot(client, owner, repo, repo_info, settings, step=None):
    """
    Gather everything the analyzers read, once.

    step(percent, message) is called before each stage. The four secondary
    fetches (stage 50%) run in parallel and never raise.
    """
    step = step or (lambda percent, message: None)

    step(20, "Fetching file structure...")
    files = client.get_file_tree(owner, repo, repo_info.default_branch)

    step(30, "Analyzing documentation...")
    readme = client.get_readme(owner, repo)

    step(40, "Analyzing Git practices...")
    commits = client.get_commits(owner, repo, settings.max_commits)

    step(50, "Analyzing branch strategy...")
    with ThreadPoolExecutor(max_workers=4) as pool:
        branches_f = pool.submit(client.get_branches, owner, repo)
        prs_f = pool.submit(client.get_pull_requests, owner, repo)
        languages_f = pool.submit(client.get_languages, owner, repo)
        contributors_f = pool.submit(client.get_contributors, owner, repo)

        branches = branches_f.result()
        pull_requests = prs_f.result()
        languages = languages_f.result()
        contributors = contributors_f.result()

    if not languages:
        # no byte counts from GitHub, estimate from file extensions
        languages = languages_from_paths([f.path for f in files])

    return RepoSnapshot(
        files=tuple(files),
        readme=readme,
        commits=tuple(commits),
        branches=tuple(branches),
        pull_requests=pull_requests,
        languages=MappingProxyType(dict(languages or {})),
        contributors=tuple(contributors),
    )


# ----------------------------
# Orchestrator
# ----------------------------
def analyze_repository(repo_url, settings, client=None, progress=None):
    """
    Analyze one repository end to end and return the report dict.

    Inputs:
      repo_url: https://github.com/<owner>/<repo>
      settings: config.Settings
      client:   GitHubClient (tests pass a fake)
      progress: optional callable(percent, message)

    Raises:
      InvalidRepoUrlError before anything is stored,
      otherwise whatever stopped the analysis (after marking it failed).
    """
    owner, repo = parse_github_url(repo_url)
    client = client or GitHubClient(settings)
    db_path = settings.db_path

    logger.info("Starting analysis for %s/%s", owner, repo)
    started = time.time()

    analysis_id = uuid.uuid4().hex
    db_utils.create_analysis(analysis_id, repo_url, owner, repo, db_path=db_path)

    def step(percent, message):
        db_utils.update_analysis_status(analysis_id, "processing", percent, message, db_path=db_path)
        if progress:
            progress(percent, message)

    try:
        step(10, "Fetching repository metadata...")
        repo_info = client.get_repository(owner, repo)
        if repo_info.description:
            db_utils.update_analysis_description(analysis_id, repo_info.description, db_path=db_path)

        snapshot = fetch_snapshot(client, owner, repo, repo_info, settings, step)

        step(60, "Running code quality analysis...")
        results = run_analyzers(snapshot)

        step(85, "Calculating final score...")
        composite = aggregate(results)
        metrics = build_metrics(repo_info, snapshot, results, composite)

        step(90, "Generating AI summary...")
        summary = generate_summary(repo_info, metrics, settings)

        step(95, "Creating personalized roadmap...")
        roadmap = generate_roadmap(repo_info, metrics, summary, settings)
        roadmap_dicts = roadmap_to_dicts(roadmap)

        step(100, "Finalizing results...")
        details = {key: r.details_dict() for key, r in results.items()}
        db_utils.complete_analysis(
            analysis_id,
            composite.total,
            composite.rating,
            composite.badge,
            summary,
            roadmap_dicts,
            metrics=metrics,
            details=details,
            db_path=db_path,
        )
    except Exception as e:
        logger.error("Analysis %s failed: %s", analysis_id, e)
        try:
            db_utils.fail_analysis(analysis_id, str(e), db_path=db_path)
        except sqlite3.Error as db_error:
            logger.error("Could not mark analysis %s as failed: %s", analysis_id, db_error)
        raise

    duration_ms = int((time.time() - started) * 1000)
    logger.info("Analysis %s completed in %dms (score %d)", analysis_id, duration_ms, composite.total)

    return {
        "id": analysis_id,
        "repo_url": repo_url,
        "repo_info": repo_info.to_dict(),
        "score": composite.total,
        "rating": composite.rating,
        "badge": composite.badge,
        "summary": summary,
        "roadmap": roadmap_dicts,
        "metrics": score_breakdown(results),
        "details": details,
        "errors": {key: r.error for key, r in results.items() if r.error},
        "insights": {
            "languages": metrics["languages"],
            "frameworks": metrics["frameworks"],
            "testing_frameworks": metrics["testing_frameworks"],
            "cicd_platforms": metrics["cicd_platforms"],
            "has_cicd": metrics["has_cicd"],
            "has_dockerfile": metrics["has_dockerfile"],
            "contributors": metrics["contributor_count"],
        },
        "analyzed_at": datetime.now().isoformat(timespec="seconds"),
        "duration_ms": duration_ms,
    }


def analyze_with_timeout(repo_url, settings, client=None, progress=None, poll_interval=0.2):
    """
    Run analyze_repository() in a worker thread and wait at most
    settings.analysis_timeout seconds for it.

    Progress updates from the worker are queued and handed to progress() in
    the calling thread, so a Streamlit script can update its widgets.

    The worker is not cancelled on timeout; the record still reaches
    completed/failed on its own.
    """
    updates = queue.Queue()

    def relay():
        while True:
            try:
                percent, message = updates.get_nowait()
            except queue.Empty:
                return
            if progress:
                progress(percent, message)

    deadline = time.monotonic() + settings.analysis_timeout
    pool = ThreadPoolExecutor(max_workers=1)
    future = pool.submit(
        analyze_repository, repo_url, settings, client, lambda percent, message: updates.put((percent, message))
    )
    try:
        while True:
            remaining = deadline - time.monotonic()
            done, _ = wait([future], timeout=max(0, min(poll_interval, remaining)))
            relay()
            if done:
                return future.result()
            if remaining <= 0:
                logger.error("Gave up waiting for %s after %ss", repo_url, settings.analysis_timeout)
                raise AnalysisTimeoutError()
    finally:
        pool.shutdown(wait=False)


# ----------------------------
# Lookups
# ----------------------------
def get_analysis(analysis_id, settings):
    """Stored analysis (with metrics) or None."""
    return db_utils.get_analysis_by_id(analysis_id, db_path=settings.db_path)


def get_history(settings, page=1, limit=10):
    """
    One page of analyses, newest first.
    limit is clamped to 1..100 and page to >= 1.
    """
    limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
    page = max(1, int(page))
    offset = (page - 1) * limit

    items = db_utils.get_analysis_history(limit=limit, offset=offset, db_path=settings.db_path)
    total = db_utils.count_analyses(db_path=settings.db_path)

    return {
        "items": items,
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }
