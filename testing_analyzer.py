# testing_analyzer.py
#
# Purpose:
# Testing analyzer (max 12).
#
# We can't run tests or measure coverage, so everything here is inferred from
# file names:
#   - presence:     how many test files exist
#   - coverage:     test files vs code files (by count and by bytes)
#   - organization: are tests kept in test directories, split by kind
#   - framework:    which testing tools show up in the path list

import logging

from code_analyzers import is_code_file
from models import AnalyzerResult, TestingDetails
from patterns import (
    NESTED_TEST_DIR_MARKERS,
    TEST_FILE_SUFFIXES,
    TEST_PATH_MARKERS,
    TEST_UTILITY_MARKERS,
    TESTING_TOOL_TOKENS,
)
from scoring import clamp, js_round, weighted

logger = logging.getLogger(__name__)

TESTING_MAX = 12


def analyze_testing(snapshot):
    """
    Testing (12 points max).

    Blend:
      presence 35% + coverage 35% + organization 15% + framework 15%
    A repo with no (non-test) code files scores 0.
    """
    logger.info("Analyzing testing...")

    files = list(snapshot.files)
    test_files = find_test_files(files)
    code_files = find_code_files(files)

    if not code_files:
        return AnalyzerResult("testing", 0, TESTING_MAX)

    presence = _presence_score(test_files)
    coverage = _coverage_score(test_files, code_files)
    organization = _organization_score(test_files)
    frameworks = get_testing_frameworks(files)
    framework = _framework_score(frameworks)

    total = weighted([
        (presence, 0.35),
        (coverage, 0.35),
        (organization, 0.15),
        (framework, 0.15),
    ])

    details = TestingDetails(
        test_presence=presence,
        test_coverage=coverage,
        test_organization=organization,
        test_framework=framework,
        total_test_files=len(test_files),
        test_to_code_ratio=calculate_test_ratio(test_files, code_files),
        testing_frameworks=tuple(frameworks),
    )
    return AnalyzerResult("testing", clamp(total, 0, TESTING_MAX), TESTING_MAX, details)


# ----------------------------
# Classification
# ----------------------------
def is_test_file(path):
    """
    Test file detection by path.

    The generic markers are matched on the lower-cased path. The Java/C#
    suffixes are class-name conventions, so they are matched case-sensitively.
    """
    lowered = path.lower()
    if any(marker in lowered for marker in TEST_PATH_MARKERS):
        return True
    return path.endswith(TEST_FILE_SUFFIXES)


def find_test_files(files):
    return [f for f in files if is_test_file(f.path)]


def find_code_files(files):
    """Source files that are not tests."""
    return [f for f in files if is_code_file(f.path) and not is_test_file(f.path)]


def _in_test_dir(path):
    return any(marker in path for marker in NESTED_TEST_DIR_MARKERS)


# ----------------------------
# Sub-scores
# ----------------------------
def _presence_score(test_files):
    if not test_files:
        return 0

    count = len(test_files)
    score = 5
    if count >= 1:
        score += 2
    if count >= 5:
        score += 2
    if count >= 10:
        score += 2
    if count >= 20:
        score += 2

    if any(_in_test_dir(f.path) for f in test_files):
        score += 2

    return clamp(score, 0, 12)


def _coverage_score(test_files, code_files):
    if not test_files or not code_files:
        return 0

    score = 0
    ratio = len(test_files) / len(code_files)
    if ratio >= 0.1:
        score += 2
    if ratio >= 0.2:
        score += 2
    if ratio >= 0.3:
        score += 2
    if ratio >= 0.5:
        score += 3
    if ratio >= 0.8:
        score += 3

    test_bytes = sum(f.size or 0 for f in test_files)
    code_bytes = sum(f.size or 0 for f in code_files)
    if code_bytes > 0:
        size_ratio = test_bytes / code_bytes
        if size_ratio >= 0.2:
            score += 1
        if size_ratio >= 0.5:
            score += 1
        if size_ratio >= 1.0:
            score += 1

    return clamp(score, 0, 12)


def _organization_score(test_files):
    if not test_files:
        return 0

    score = 8
    paths = [f.path for f in test_files]

    in_dir = len([p for p in paths if _in_test_dir(p)])
    ratio = in_dir / len(paths)
    if ratio >= 0.8:
        score += 4
    elif ratio >= 0.5:
        score += 2
    elif ratio < 0.3:
        score -= 3

    if any(marker in p for p in paths for marker in TEST_UTILITY_MARKERS):
        score += 2

    if any("unit" in p for p in paths):
        score += 1
    if any("integration" in p for p in paths):
        score += 1
    if any("e2e" in p for p in paths):
        score += 1

    return clamp(score, 0, 12)


def get_testing_frameworks(files):
    """
    Testing tools mentioned anywhere in the (lower-cased) path list.

    Jest needs a jest.config or package.json next to a "jest" mention.
    """
    names = [f.path.lower() for f in files]
    joined = " ".join(names)
    found = []

    if any("jest.config" in n or "package.json" in n for n in names) and "jest" in joined:
        found.append("Jest")
    if any("vitest.config" in n for n in names):
        found.append("Vitest")
    if any(".mocharc" in n for n in names):
        found.append("Mocha")

    for label, token in TESTING_TOOL_TOKENS:
        if token in joined and label not in found:
            found.append(label)

    return found


def _framework_score(frameworks):
    if not frameworks:
        return 0

    score = 5
    if len(frameworks) >= 1:
        score += 3
    if len(frameworks) >= 2:
        score += 2
    if len(frameworks) >= 3:
        score += 2

    return clamp(score, 0, 12)


def calculate_test_ratio(test_files, code_files):
    """Test files per 100 code files, 2 decimals."""
    if not code_files:
        return 0
    return js_round(len(test_files) / len(code_files) * 100 * 100) / 100
