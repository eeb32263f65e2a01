# practice_analyzers.py
#
# Purpose:
# The five "engineering practice" analyzers:
#   - analyze_git_practices    (max 12)  commits, branches, pull requests
#   - analyze_security         (max 10)  committed secrets, .gitignore, policy
#   - analyze_cicd             (max 8)   CI platform config files
#   - analyze_dependencies     (max 5)   package manifests, build tools
#   - analyze_containerization (max 3)   Dockerfile, compose file
#
# All of them are path / metadata checks. None of them reads file contents.

import logging

from models import (
    AnalyzerResult,
    CICDDetails,
    ContainerizationDetails,
    DependenciesDetails,
    GitPracticesDetails,
    SecurityDetails,
    SecurityIssue,
)
from patterns import (
    BUILD_TOOL_CONFIGS,
    CICD_PATTERNS,
    CONTAINER_PATTERNS,
    CONVENTIONAL_COMMIT_REGEX,
    IMPERATIVE_COMMIT_REGEX,
    PACKAGE_MANIFESTS,
    SENSITIVE_FILENAMES,
)
from scoring import clamp, weighted

logger = logging.getLogger(__name__)

GIT_PRACTICES_MAX = 12
SECURITY_MAX = 10
CICD_MAX = 8
DEPENDENCIES_MAX = 5
CONTAINERIZATION_MAX = 3


# ----------------------------
# Git practices
# ----------------------------
def analyze_git_practices(snapshot):
    """
    Git practices (12 points max).

    Blend:
      commits 50% + branches 25% + pull requests 25%
    """
    logger.info("Analyzing git practices...")

    commits = _commit_score(snapshot.commits)
    branches = _branch_score(snapshot.branches)
    prs = _pull_request_score(snapshot.pull_requests)

    total = weighted([(commits, 0.50), (branches, 0.25), (prs, 0.25)])

    details = GitPracticesDetails(commit_quality=commits, branch_strategy=branches, pull_requests=prs)
    return AnalyzerResult("git_practices", clamp(total, 0, GIT_PRACTICES_MAX), GIT_PRACTICES_MAX, details)


def is_good_commit_message(message):
    """Conventional ("feat: ...") or imperative ("Add ...") commit subject."""
    msg = (message or "").lower()
    return bool(CONVENTIONAL_COMMIT_REGEX.match(msg) or IMPERATIVE_COMMIT_REGEX.match(msg))


def _commit_score(commits):
    if not commits:
        return 0

    count = len(commits)
    score = 5
    if count >= 10:
        score += 2
    if count >= 50:
        score += 2
    if count >= 100:
        score += 1

    good = len([c for c in commits if is_good_commit_message(c.message)])
    ratio = good / count
    if ratio >= 0.3:
        score += 2
    if ratio >= 0.5:
        score += 2
    if ratio >= 0.7:
        score += 1

    return clamp(score, 0, 12)


def _branch_score(branches):
    # a single default branch is still a neutral 5
    if not branches:
        return 5

    count = len(branches)
    score = 5
    if count >= 2:
        score += 3
    if count >= 5:
        score += 2
    if count >= 10:
        score += 2

    if any(b.protected for b in branches):
        score += 2

    return clamp(score, 0, 12)


def _pull_request_score(prs):
    if prs is None:
        return 3

    score = 3
    if prs.total > 0:
        score += 3
    if prs.total >= 5:
        score += 2
    if prs.total >= 10:
        score += 2

    if prs.merged > 0 and prs.total > 0 and prs.merged / prs.total >= 0.5:
        score += 2

    return clamp(score, 0, 12)


# ----------------------------
# Security
# ----------------------------
def analyze_security(snapshot):
    """
    Security (10 points max).

    Blend:
      secrets 40% + .gitignore 35% + dependency/security policy 25%

    Only a root-level .gitignore counts.
    """
    logger.info("Analyzing security...")

    paths = snapshot.paths

    secrets = _secrets_score(paths)
    gitignore = 10 if _has_root_gitignore(paths) else 0
    policy = 10 if any("SECURITY" in p.upper() for p in paths) else 7

    total = weighted([(secrets, 0.40), (gitignore, 0.35), (policy, 0.25)])

    details = SecurityDetails(
        secrets=secrets,
        gitignore=gitignore,
        dependencies=policy,
        security_issues=tuple(collect_security_issues(paths)),
    )
    return AnalyzerResult("security", clamp(total, 0, SECURITY_MAX), SECURITY_MAX, details)


def _has_root_gitignore(paths):
    return ".gitignore" in paths


def _has_committed_env(paths):
    """A .env-like file that isn't an example template."""
    return any(".env" in p and ".example" not in p for p in paths)


def _secrets_score(paths):
    score = 10

    # substring match: ".env" also flags ".env.example"
    if any(name in p for p in paths for name in SENSITIVE_FILENAMES):
        score -= 5
    if _has_committed_env(paths):
        score -= 3

    return max(score, 0)


def collect_security_issues(paths):
    issues = []
    if not _has_root_gitignore(paths):
        issues.append(SecurityIssue(type="missing_gitignore", severity="high"))
    if _has_committed_env(paths):
        issues.append(SecurityIssue(type="env_file_committed", severity="critical"))
    return issues


# ----------------------------
# CI/CD
# ----------------------------
def analyze_cicd(snapshot):
    """CI/CD (8 points max). Any detected platform gives the full 8."""
    logger.info("Analyzing CI/CD...")

    platforms = detect_cicd_platforms(snapshot.paths)

    score = 0
    if platforms:
        score = 5 + 3

    details = CICDDetails(has_cicd=bool(platforms), platforms=tuple(platforms))
    return AnalyzerResult("cicd", clamp(score, 0, CICD_MAX), CICD_MAX, details)


def detect_cicd_platforms(paths):
    detected = []
    for platform, signatures in CICD_PATTERNS.items():
        if any(sig in p for sig in signatures for p in paths):
            detected.append(platform)
    return detected


# ----------------------------
# Dependencies
# ----------------------------
def analyze_dependencies(snapshot):
    """
    Dependencies (5 points max).
      +3 a package manifest at the root
      +2 a recognized build tool / framework config
    No vulnerability scanning is done; vulnerable_dependencies is always 0.
    """
    logger.info("Analyzing dependencies...")

    paths = snapshot.paths
    managers = detect_package_managers(paths)
    frameworks = detect_frameworks(paths)

    score = 0
    if managers:
        score += 3
    if frameworks:
        score += 2

    details = DependenciesDetails(
        package_managers=tuple(managers),
        frameworks=tuple(frameworks),
        vulnerable_dependencies=0,
    )
    return AnalyzerResult("dependencies", clamp(score, 0, DEPENDENCIES_MAX), DEPENDENCIES_MAX, details)


def detect_package_managers(paths):
    present = set(paths)
    return [label for manifest, label in PACKAGE_MANIFESTS if manifest in present]


def detect_frameworks(paths):
    if not any("package.json" in p for p in paths):
        return []
    return [label for marker, label in BUILD_TOOL_CONFIGS if any(marker in p for p in paths)]


# ----------------------------
# Containerization
# ----------------------------
def analyze_containerization(snapshot):
    """Containerization (3 points max): Dockerfile +2, compose file +1."""
    logger.info("Analyzing containerization...")

    paths = snapshot.paths

    has_dockerfile = any(pattern in p for p in paths for pattern in CONTAINER_PATTERNS["docker"])
    has_compose = any(p in CONTAINER_PATTERNS["docker_compose"] for p in paths)

    score = 0
    if has_dockerfile:
        score += 2
    if has_compose:
        score += 1

    details = ContainerizationDetails(has_dockerfile=has_dockerfile, has_docker_compose=has_compose)
    return AnalyzerResult("containerization", clamp(score, 0, CONTAINERIZATION_MAX), CONTAINERIZATION_MAX, details)
