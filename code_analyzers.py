# code_analyzers.py
#
# Purpose:
# Two analyzers that only look at the file list (paths + sizes):
#   - analyze_code_quality      (max 20)
#   - analyze_project_structure (max 15)
#
# These are heuristics, not static analysis. File size stands in for complexity,
# path depth stands in for nesting, and basenames stand in for naming and
# duplication. Each sub-score is computed on its own scale and then blended.

import logging
import posixpath

from models import AnalyzerResult, CodeQualityDetails, StructureDetails
from patterns import (
    CAMEL_CASE_REGEX,
    CODE_EXTENSIONS,
    CONFIG_FILENAMES,
    JS_TEST_FILE_REGEX,
    KEBAB_CASE_REGEX,
    NUMBERED_NAME_REGEX,
    SEPARATION_GROUPS,
    TEST_DIR_MARKERS,
    TRANSIENT_NAME_REGEX,
)
from scoring import clamp, weighted

logger = logging.getLogger(__name__)

CODE_QUALITY_MAX = 20
STRUCTURE_MAX = 15


def is_code_file(path):
    """True if the path has one of the recognized source extensions."""
    return posixpath.splitext(path)[1].lower() in CODE_EXTENSIONS


def _depth(path):
    """Number of path segments: 'a/b/c.py' -> 3."""
    return len(path.split("/"))


# ----------------------------
# Code quality
# ----------------------------
def analyze_code_quality(snapshot):
    """
    Code quality (20 points max).

    Blend:
      complexity 40% + file size 25% + duplication 20% + naming 15%
    Each part is scored 0-20. No code files at all scores 0.
    """
    logger.info("Analyzing code quality...")

    code_files = [f for f in snapshot.files if is_code_file(f.path)]
    if not code_files:
        return AnalyzerResult("code_quality", 0, CODE_QUALITY_MAX)

    complexity = _complexity_score(code_files)
    file_size = _file_size_score(code_files)
    naming = _naming_score(code_files)
    duplication = _duplication_score(code_files)

    total = weighted([
        (complexity, 0.40),
        (file_size, 0.25),
        (duplication, 0.20),
        (naming, 0.15),
    ])

    details = CodeQualityDetails(
        complexity=complexity,
        file_size=file_size,
        naming=naming,
        duplication=duplication,
        total_code_files=len(code_files),
    )
    return AnalyzerResult("code_quality", clamp(total, 0, CODE_QUALITY_MAX), CODE_QUALITY_MAX, details)


def _complexity_score(files):
    score = 20

    avg_size = sum(f.size or 0 for f in files) / len(files)
    if avg_size > 1000:
        score -= 5
    if avg_size > 2000:
        score -= 5
    if avg_size > 5000:
        score -= 5

    # ~500 lines at ~20 bytes per line
    large = len([f for f in files if (f.size or 0) > 10000])
    if large / len(files) > 0.3:
        score -= 5

    max_depth = max(_depth(f.path) for f in files)
    if max_depth > 8:
        score -= 3
    if max_depth > 12:
        score -= 2

    return max(score, 0)


def _file_size_score(files):
    score = 20

    sizes = [f.size or 0 for f in files]
    sizes = [s for s in sizes if s > 0]
    if not sizes:
        return 10

    avg_size = sum(sizes) / len(sizes)
    max_size = max(sizes)

    if max_size > 50000:
        score -= 5
    if max_size > 100000:
        score -= 5
    if avg_size > 5000:
        score -= 3
    if avg_size > 10000:
        score -= 3

    tiny = len([s for s in sizes if s < 100])
    if tiny / len(sizes) > 0.5:
        score -= 4

    return max(score, 0)


def _naming_score(files):
    score = 20

    names = [posixpath.basename(f.path) for f in files]
    for name in names:
        if TRANSIENT_NAME_REGEX.search(name):
            score -= 0.5
        if NUMBERED_NAME_REGEX.search(name):
            score -= 0.5

    consistent = [n for n in names if CAMEL_CASE_REGEX.match(n) or KEBAB_CASE_REGEX.match(n)]
    if len(consistent) / len(names) > 0.8:
        score += 2

    return clamp(score, 0, 20)


def _duplication_score(files):
    """Same basename in several directories counts as duplication."""
    score = 20

    names = [posixpath.basename(f.path) for f in files]
    unique = set(names)
    if len(names) > len(unique):
        ratio = 1 - (len(unique) / len(names))
        score -= min(ratio * 20, 10)

    return max(score, 0)


# ----------------------------
# Project structure
# ----------------------------
def analyze_project_structure(snapshot):
    """
    Project structure (15 points max).

    Blend:
      folder organization 60% + config files 25% + separation of concerns 15%
    """
    logger.info("Analyzing project structure...")

    files = list(snapshot.files)
    if not files:
        return AnalyzerResult("project_structure", 0, STRUCTURE_MAX)

    folder = _folder_organization_score(files)
    config = _config_files_score(files)
    separation = _separation_score(files)

    total = weighted([(folder, 0.60), (config, 0.25), (separation, 0.15)])

    details = StructureDetails(
        folder_organization=folder,
        config_files=config,
        separation_of_concerns=separation,
    )
    return AnalyzerResult("project_structure", clamp(total, 0, STRUCTURE_MAX), STRUCTURE_MAX, details)


def _has_test_dir(path):
    return any(marker in path for marker in TEST_DIR_MARKERS)


def _folder_organization_score(files):
    score = 15
    paths = [f.path for f in files]

    dirs = set(posixpath.dirname(p) for p in paths)

    if any(p.startswith("src/") for p in paths):
        score += 2
    if any(_has_test_dir(p) for p in paths):
        score += 1
    if any(p.startswith("docs/") for p in paths):
        score += 1

    depths = [_depth(p) for p in paths]
    avg_depth = sum(depths) / len(depths)
    max_depth = max(depths)

    if max_depth > 10:
        score -= 3
    if avg_depth < 2 and len(files) > 10:
        score -= 3
    if avg_depth > 6:
        score -= 2

    root_files = [p for p in paths if "/" not in p]
    if len(root_files) / len(files) > 0.5 and len(files) > 20:
        score -= 4

    # everything dumped in a single directory
    if len(dirs) == 1 and len(files) > 10:
        score -= 5

    has_package_json = "package.json" in paths
    has_node_modules = any(p.startswith("node_modules/") for p in paths)
    if has_package_json and not has_node_modules:
        score += 1

    return clamp(score, 0, 15)


def _config_files_score(files):
    score = 10
    paths = [f.path for f in files]

    found = [
        p for p in paths
        if posixpath.basename(p) in CONFIG_FILENAMES or any(p.endswith(cf) for cf in CONFIG_FILENAMES)
    ]

    if len(found) >= 3:
        score += 3
    if len(found) >= 5:
        score += 2
    if len(found) >= 8:
        score += 2

    if any(p == ".gitignore" or p.endswith(".gitignore") for p in paths):
        score += 2
    else:
        score -= 3

    if any(".env.example" in p or ".env.template" in p for p in paths):
        score += 2

    if ".editorconfig" in paths:
        score += 1

    return clamp(score, 0, 15)


def _separation_score(files):
    score = 15
    paths = [f.path for f in files]

    present = 0
    for markers in SEPARATION_GROUPS.values():
        if any(marker in p for p in paths for marker in markers):
            present += 1

    if present >= 4:
        score += 3
    if present >= 6:
        score += 2

    # JS/TS tests sitting next to the code instead of a test directory
    test_files = [p for p in paths if JS_TEST_FILE_REGEX.search(p)]
    in_test_dir = [p for p in test_files if _has_test_dir(p)]
    if test_files and len(in_test_dir) / len(test_files) < 0.5:
        score -= 3

    return clamp(score, 0, 15)
