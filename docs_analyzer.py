# docs_analyzer.py
#
# Purpose:
# Documentation analyzer (max 15).
#
# Three parts:
#   - README quality (length, sections, code blocks, images, links)
#   - a code-comment proxy (we never download source files, so this only looks
#     for API docs and doc generators in the path list)
#   - additional docs (docs/, LICENSE, CONTRIBUTING, CHANGELOG, ...)

import logging

from models import AnalyzerResult, DocumentationDetails
from patterns import (
    COMMENTED_CODE_REGEX,
    LICENSE_REGEXES,
    README_HEADER_REGEX,
    README_IMAGE_REGEX,
    README_LINK_REGEX,
    README_SECTIONS,
    doc_file_regex,
)
from scoring import clamp, weighted

logger = logging.getLogger(__name__)

DOCUMENTATION_MAX = 15


def analyze_documentation(snapshot):
    """
    Documentation (15 points max).

    Blend:
      README 75% + code comments 15% + additional docs 10%
    """
    logger.info("Analyzing documentation...")

    paths = snapshot.paths
    readme = snapshot.readme

    readme_score = analyze_readme(readme)
    comments_score = _code_comments_score(paths)
    additional_score = _additional_docs_score(paths)

    total = weighted([
        (readme_score, 0.75),
        (comments_score, 0.15),
        (additional_score, 0.10),
    ])

    details = DocumentationDetails(
        readme=readme_score,
        code_comments=comments_score,
        additional_docs=additional_score,
        readme_length=len(readme.content) if readme and readme.content else 0,
        readme_sections=tuple(extract_readme_sections(readme)),
        has_license=has_license(paths),
        has_contributing=has_contributing(paths),
    )
    return AnalyzerResult("documentation", clamp(total, 0, DOCUMENTATION_MAX), DOCUMENTATION_MAX, details)


# ----------------------------
# README
# ----------------------------
def extract_readme_sections(readme):
    """
    Return the known section names (lower-cased) found in README headers.

    A header matches a section if the header text contains the section name,
    so "## Quick Installation Guide" counts as "installation".
    Order is first-seen, without duplicates.
    """
    if not readme or not readme.content:
        return []

    content = readme.content.lower()
    found = []

    for header_text in README_HEADER_REGEX.findall(content):
        header_text = header_text.strip()
        for section in README_SECTIONS:
            name = section.lower()
            if name in header_text and name not in found:
                found.append(name)

    return found


def analyze_readme(readme):
    """Score the README on its own 0-15 scale. Missing or empty README is 0."""
    if not readme or not readme.content:
        return 0

    score = 5
    content = readme.content.lower()
    length = len(readme.content)

    if length < 100:
        score -= 2
    elif 300 <= length < 1000:
        score += 2
    elif 1000 <= length < 5000:
        score += 4
    elif length >= 5000:
        score += 3

    sections = extract_readme_sections(readme)

    if "installation" in sections or "setup" in sections or "getting started" in sections:
        score += 2
    if "usage" in sections or "examples" in sections:
        score += 2
    if "features" in sections:
        score += 1
    if "documentation" in sections or "api" in sections:
        score += 1
    if "contributing" in sections:
        score += 1
    if "license" in sections:
        score += 1
    if "tests" in sections or "testing" in sections:
        score += 1

    code_blocks = content.count("```") / 2
    if code_blocks >= 2:
        score += 2
    if code_blocks >= 4:
        score += 1

    if README_IMAGE_REGEX.search(content):
        score += 1

    if len(README_LINK_REGEX.findall(content)) >= 3:
        score += 1

    # plain substring check, so "protocol" also counts
    if "table of contents" in content or "toc" in content:
        score += 1

    if length < 200 and len(sections) < 3:
        score -= 3

    return clamp(score, 0, 15)


# ----------------------------
# Code comments (path-based proxy)
# ----------------------------
def _code_comments_score(paths):
    score = 10

    code_files = [p for p in paths if COMMENTED_CODE_REGEX.search(p)]
    if not code_files:
        return 5

    if any("docs/api" in p or "api.md" in p or "API.md" in p for p in paths):
        score += 3

    if any("jsdoc" in p or "typedoc" in p or "sphinx" in p for p in paths):
        score += 2

    # well-organized projects are assumed to comment reasonably
    if score >= 10:
        score += 3

    return clamp(score, 0, 15)


# ----------------------------
# Additional docs
# ----------------------------
def has_license(paths):
    """LICENSE / LICENCE at the repository root (optionally .md/.txt/.rst)."""
    return any(regex.match(p) for p in paths for regex in LICENSE_REGEXES)


def has_contributing(paths):
    return _has_doc_file(paths, "CONTRIBUTING")


def _has_doc_file(paths, name):
    regex = doc_file_regex(name)
    return any(regex.match(p) or name in p.upper() for p in paths)


def _additional_docs_score(paths):
    score = 10

    if any(p.startswith("docs/") for p in paths):
        score += 3
    if has_license(paths):
        score += 2
    if has_contributing(paths):
        score += 2
    if _has_doc_file(paths, "CHANGELOG"):
        score += 1
    if _has_doc_file(paths, "CODE_OF_CONDUCT"):
        score += 1
    if _has_doc_file(paths, "SECURITY"):
        score += 1

    markdown = [p for p in paths if p.endswith(".md")]
    if len(markdown) >= 3:
        score += 1
    if len(markdown) >= 5:
        score += 1

    return clamp(score, 0, 15)
