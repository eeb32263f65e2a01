# errors.py
#
# Purpose:
# Exception types raised across the pipeline.
#
# Failure classes:
# - InvalidRepoUrlError: the input URL is rejected before any work starts
# - GitHubError and its subclasses: the snapshot could not be fetched (fatal)
# - NarrativeError: the AI path failed; llm_utils always recovers from it
# - AnalysisTimeoutError: a frontend gave up waiting on an analysis

from patterns import ERROR_MESSAGES


class RepoGradeError(Exception):
    """Base exception for everything raised by this project."""


class InvalidRepoUrlError(RepoGradeError):
    """Raised when a repository URL is not a github.com/<owner>/<repo> URL."""

    def __init__(self, message=ERROR_MESSAGES["INVALID_URL"]):
        super().__init__(message)


# ----------------------------
# GitHub errors
# ----------------------------
class GitHubError(RepoGradeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RepoNotFoundError(GitHubError):
    """404 from GitHub: the repo does not exist or is private."""

    def __init__(self, message=ERROR_MESSAGES["REPO_NOT_FOUND"], status_code=404):
        super().__init__(message, status_code)


class RateLimitError(GitHubError):
    """403/429 caused by rate limiting."""

    def __init__(self, message=ERROR_MESSAGES["RATE_LIMIT"], status_code=403, reset_at=None):
        super().__init__(message, status_code)
        self.reset_at = reset_at


class GitHubAuthError(GitHubError):
    def __init__(self, message=ERROR_MESSAGES["UNAUTHORIZED"], status_code=401):
        super().__init__(message, status_code)


class GitHubNetworkError(GitHubError):
    """Transport failures, timeouts, 5xx and malformed responses."""

    def __init__(self, message=ERROR_MESSAGES["NETWORK_ERROR"], status_code=None):
        super().__init__(message, status_code)


# ----------------------------
# Narrative errors
# ----------------------------
class NarrativeError(RepoGradeError):
    """The AI narrative path failed (missing key, provider error, bad JSON)."""


# ----------------------------
# Pipeline errors
# ----------------------------
class AnalysisTimeoutError(RepoGradeError):
    """The caller stopped waiting for an analysis after analysis_timeout seconds."""

    def __init__(self, message=ERROR_MESSAGES["ANALYSIS_TIMEOUT"]):
        super().__init__(message)
