# github_api.py
#
# Purpose:
# The "data ingestion" layer. Pulls raw data from the GitHub REST API and
# returns the typed objects from models.py for the analyzers to use.
#
# Main pieces:
# 1) parse_github_url(): validate a repo URL and split it into (owner, repo)
# 2) GitHubClient._get(): one GET with token header, retry + exponential
#    backoff, and GitHub status codes turned into errors.py exceptions
# 3) One method per endpoint the analysis needs (repo, tree, README, commits,
#    branches, PRs, contributors, languages, rate limit)
#
# Error policy:
# - repository metadata, file tree: failures raise (the analysis can't go on)
# - README: "not found" is normal, returns None
# - commits / branches / PRs / contributors / languages: best effort, an error
#   is logged and an empty value is returned

import base64
import logging
import threading
import time
import weakref

import requests

import db_utils
from errors import (
    GitHubAuthError,
    GitHubError,
    GitHubNetworkError,
    InvalidRepoUrlError,
    RateLimitError,
    RepoNotFoundError,
)
from models import Branch, Commit, Contributor, FileEntry, PullRequestStats, Readme, RepoInfo
from patterns import GITHUB_OWNER_REPO_REGEX, GITHUB_URL_REGEX
from scoring import js_round

logger = logging.getLogger(__name__)

USER_AGENT = "RepoGrade-Analyzer"

RETRYABLE_STATUS = (429, 500, 502, 503, 504)

PER_PAGE = 100


# ----------------------------
# URL parsing
# ----------------------------
def parse_github_url(url):
    """
    Validate a GitHub repository URL and return (owner, repo).

      https://github.com/octocat/Hello-World      -> ("octocat", "Hello-World")
      https://github.com/octocat/Hello-World.git  -> ("octocat", "Hello-World")

    Raises InvalidRepoUrlError for anything that isn't github.com/<owner>/<repo>.
    """
    url = (url or "").strip()
    if not GITHUB_URL_REGEX.match(url):
        raise InvalidRepoUrlError()

    match = GITHUB_OWNER_REPO_REGEX.search(url)
    if not match:
        raise InvalidRepoUrlError()

    owner, repo = match.group(1), match.group(2)
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not repo:
        raise InvalidRepoUrlError()

    return owner, repo


def is_valid_github_url(url):
    try:
        parse_github_url(url)
    except InvalidRepoUrlError:
        return False
    return True


# ----------------------------
# Per-repo fetch guard
# ----------------------------
# One lock per "owner/repo", shared by every client in the process, so two
# analyses of the same repo never fetch its metadata at the same time.
# Entries go away once no caller holds the lock.
_REPO_LOCKS = weakref.WeakValueDictionary()
_REPO_LOCKS_GUARD = threading.Lock()


def _repo_lock(repo_key):
    with _REPO_LOCKS_GUARD:
        lock = _REPO_LOCKS.get(repo_key)
        if lock is None:
            lock = threading.Lock()
            _REPO_LOCKS[repo_key] = lock
        return lock


def _response_message(resp):
    try:
        body = resp.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


class GitHubClient:
    """
    Thin wrapper around requests.Session for the GitHub REST API.

    Inputs:
      settings: config.Settings (token, base URL, timeout, retries, limits)
      session:  optional requests.Session (tests pass a mock)
      use_cache: read/write repository metadata in the db_utils repo_cache table
    """

    def __init__(self, settings, session=None, use_cache=True):
        self.settings = settings
        self.base_url = settings.github_api_url.rstrip("/")
        self.use_cache = use_cache

        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        })
        if settings.github_token:
            self.session.headers["Authorization"] = f"Bearer {settings.github_token}"

    # ----------------------------
    # HTTP
    # ----------------------------
    def _get(self, path, params=None):
        """
        GET a GitHub API path and return the decoded JSON.

        Retries (backoff_base ** attempt seconds: 1, 2, 4, ...) on connection
        errors, timeouts, 429 and 5xx. Everything else fails fast.

        Raises:
          RepoNotFoundError (404), GitHubAuthError (401),
          RateLimitError (403 rate limit / 429 after retries),
          GitHubNetworkError (network, 5xx after retries, bad JSON),
          GitHubError (any other non-200)
        """
        url = self.base_url + path
        max_retries = self.settings.github_max_retries
        last_error = None

        for attempt in range(max_retries + 1):
            try:
                resp = self.session.get(url, params=params, timeout=self.settings.github_timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = GitHubNetworkError()
                last_error.__cause__ = e
                logger.warning("Network error calling %s: %s", path, e)
            except requests.RequestException as e:
                raise GitHubNetworkError() from e
            else:
                status = resp.status_code

                if status == 200:
                    try:
                        return resp.json()
                    except ValueError as e:
                        raise GitHubNetworkError("GitHub response was not valid JSON.", status) from e

                if status == 404:
                    raise RepoNotFoundError()
                if status == 401:
                    raise GitHubAuthError()
                if status == 403:
                    message = _response_message(resp)
                    remaining = resp.headers.get("X-RateLimit-Remaining")
                    if "rate limit" in message.lower() or remaining == "0":
                        raise RateLimitError(reset_at=resp.headers.get("X-RateLimit-Reset"))
                    raise GitHubError(f"Forbidden (403). {message}".strip(), status)

                if status in RETRYABLE_STATUS:
                    if status == 429:
                        last_error = RateLimitError(status_code=429, reset_at=resp.headers.get("X-RateLimit-Reset"))
                    else:
                        last_error = GitHubNetworkError(f"GitHub API error: status {status}", status)
                    logger.warning("GitHub returned %s for %s", status, path)
                else:
                    raise GitHubError(f"GitHub API error: status {status}", status)

            if attempt < max_retries:
                sleep_time = self.settings.backoff_base ** attempt
                logger.debug("Retrying %s after %ss (attempt %d/%d)", path, sleep_time, attempt + 1, max_retries)
                time.sleep(sleep_time)

        raise last_error

    def _get_pages(self, path, params=None, limit=None):
        """Follow ?page=N until a short page, an empty page, or `limit` items."""
        items = []
        page = 1
        params = dict(params or {})

        while limit is None or len(items) < limit:
            params.update({"per_page": PER_PAGE, "page": page})
            data = self._get(path, params=params)

            if not isinstance(data, list) or not data:
                break

            if limit is None:
                items.extend(data)
            else:
                items.extend(data[: limit - len(items)])

            if len(data) < PER_PAGE:
                break
            page += 1

        return items

    # ----------------------------
    # Repository metadata
    # ----------------------------
    def get_repository(self, owner, repo):
        """
        Fetch repository metadata as a RepoInfo.

        Cached by "owner/repo" in the repo_cache table for cache_ttl_seconds.
        The per-repo lock makes a concurrent second caller wait and then read
        the cache instead of fetching again.
        """
        repo_key = f"{owner}/{repo}"

        with _repo_lock(repo_key):
            if self.use_cache:
                cached = db_utils.get_cached_repo(repo_key, db_path=self.settings.db_path)
                if cached:
                    logger.info("Using cached repository data for %s", repo_key)
                    return RepoInfo.from_dict(cached)

            logger.info("Fetching repository: %s", repo_key)
            try:
                data = self._get(f"/repos/{owner}/{repo}")
            except (RepoNotFoundError, RateLimitError, GitHubAuthError, GitHubNetworkError):
                raise
            except GitHubError as e:
                logger.error("Error fetching repository %s: %s", repo_key, e)
                raise GitHubNetworkError(status_code=e.status_code) from e

            info = RepoInfo(
                name=data.get("name", repo),
                full_name=data.get("full_name", repo_key),
                owner=(data.get("owner") or {}).get("login", owner),
                description=data.get("description"),
                language=data.get("language"),
                stars=data.get("stargazers_count", 0) or 0,
                forks=data.get("forks_count", 0) or 0,
                open_issues=data.get("open_issues_count", 0) or 0,
                size=data.get("size", 0) or 0,
                created_at=data.get("created_at"),
                updated_at=data.get("updated_at"),
                default_branch=data.get("default_branch") or "main",
                is_private=bool(data.get("private", False)),
                homepage=data.get("homepage"),
                license=(data.get("license") or {}).get("name"),
            )

            if self.use_cache:
                db_utils.set_cached_repo(
                    repo_key,
                    info.to_dict(),
                    expiry_seconds=self.settings.cache_ttl_seconds,
                    db_path=self.settings.db_path,
                )

        return info

    # ----------------------------
    # Files
    # ----------------------------
    def get_file_tree(self, owner, repo, branch="main"):
        """
        Recursive git tree for a branch, truncated to max_files entries.

        If "main" doesn't exist we try "master" once (older repos).
        Auth and rate-limit failures are never retried on another branch.
        """
        logger.info("Fetching file tree for %s/%s@%s", owner, repo, branch)

        try:
            data = self._get(f"/repos/{owner}/{repo}/git/trees/{branch}", params={"recursive": "true"})
        except (GitHubAuthError, RateLimitError):
            raise
        except GitHubError as e:
            if branch == "main":
                logger.warning('Branch "main" not found, trying "master"')
                return self.get_file_tree(owner, repo, "master")
            logger.error("Error fetching file tree: %s", e)
            raise GitHubNetworkError(status_code=e.status_code) from e

        entries = (data or {}).get("tree", []) or []
        limit = self.settings.max_files
        files = [FileEntry.from_api(item) for item in entries[:limit]]

        logger.info("Fetched %d files (truncated: %s)", len(files), len(entries) > limit)
        return files

    def get_readme(self, owner, repo):
        """README as a Readme (content base64-decoded, truncated), or None."""
        logger.info("Fetching README for %s/%s", owner, repo)

        try:
            data = self._get(f"/repos/{owner}/{repo}/readme")
        except GitHubError as e:
            logger.warning("README not found for %s/%s (%s)", owner, repo, e)
            return None

        encoded = (data or {}).get("content", "")
        if not encoded:
            return None

        try:
            content = base64.b64decode(encoded).decode("utf-8", errors="replace")
        except ValueError as e:
            logger.warning("Could not decode README for %s/%s: %s", owner, repo, e)
            return None

        limit = self.settings.max_readme_length
        if len(content) > limit:
            content = content[:limit]

        return Readme(
            content=content,
            size=data.get("size", 0) or 0,
            name=data.get("name", "README.md"),
            path=data.get("path", "README.md"),
        )

    # ----------------------------
    # History / collaboration (best effort)
    # ----------------------------
    def get_commits(self, owner, repo, max_count=None):
        """Up to max_count commits (default: settings.max_commits), newest first."""
        if max_count is None:
            max_count = self.settings.max_commits
        logger.info("Fetching commits for %s/%s", owner, repo)

        try:
            raw = self._get_pages(f"/repos/{owner}/{repo}/commits", limit=max_count)
        except GitHubError as e:
            logger.error("Error fetching commits: %s", e)
            return []

        commits = []
        for item in raw:
            commit = item.get("commit") or {}
            author = commit.get("author") or {}
            commits.append(Commit(
                message=commit.get("message", "") or "",
                author=author.get("name", "") or "",
                date=author.get("date", "") or "",
                sha=item.get("sha", "") or "",
            ))
        return commits

    def get_branches(self, owner, repo):
        try:
            data = self._get(f"/repos/{owner}/{repo}/branches", params={"per_page": PER_PAGE})
        except GitHubError as e:
            logger.error("Error fetching branches: %s", e)
            return []

        return [Branch(name=b.get("name", ""), protected=bool(b.get("protected", False))) for b in data or []]

    def get_pull_requests(self, owner, repo):
        """Counts over the most recent 100 PRs (open + closed)."""
        try:
            data = self._get(f"/repos/{owner}/{repo}/pulls", params={"state": "all", "per_page": PER_PAGE})
        except GitHubError as e:
            logger.error("Error fetching pull requests: %s", e)
            return PullRequestStats()

        data = data or []
        return PullRequestStats(
            total=len(data),
            open=len([pr for pr in data if pr.get("state") == "open"]),
            closed=len([pr for pr in data if pr.get("state") == "closed"]),
            merged=len([pr for pr in data if pr.get("merged_at") is not None]),
        )

    def get_contributors(self, owner, repo):
        try:
            data = self._get(f"/repos/{owner}/{repo}/contributors", params={"per_page": PER_PAGE})
        except GitHubError as e:
            logger.error("Error fetching contributors: %s", e)
            return []

        # an empty repository answers 204 / non-list
        if not isinstance(data, list):
            return []
        return [Contributor(username=c.get("login", ""), contributions=c.get("contributions", 0) or 0) for c in data]

    def get_languages(self, owner, repo):
        """{language: percent of bytes}, percentages rounded to 2 decimals."""
        try:
            data = self._get(f"/repos/{owner}/{repo}/languages")
        except GitHubError as e:
            logger.error("Error fetching languages: %s", e)
            return {}

        if not isinstance(data, dict):
            return {}

        total = sum(data.values())
        if total <= 0:
            return {}

        return {lang: js_round(count / total * 100 * 100) / 100 for lang, count in data.items()}

    def get_rate_limit(self):
        """{"limit", "remaining", "reset"} for the core API, or None on error."""
        try:
            data = self._get("/rate_limit")
        except GitHubError as e:
            logger.error("Error fetching rate limit: %s", e)
            return None

        rate = (data or {}).get("rate") or {}
        return {
            "limit": rate.get("limit"),
            "remaining": rate.get("remaining"),
            "reset": rate.get("reset"),
        }
