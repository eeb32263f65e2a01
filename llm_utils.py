# llm_utils.py
#
# Purpose:
# The narrative layer. Turns the numeric analysis into:
#   - a 2-3 sentence summary
#   - a prioritized improvement roadmap (at most 7 items)
#
# Two paths:
# 1) AI path: send structured prompts to Groq, retry on failure, parse the answer
# 2) Template path: deterministic text built from the metrics alone
#
# The template path is used when there is no GROQ_API_KEY, when Groq keeps
# failing, and when the roadmap answer can't be parsed. The caller always gets
# a usable summary and roadmap; nothing in here raises to the pipeline.
#
# AI answers are cached on disk (cache_utils) keyed by repo + metrics + model.

import json
import logging
import re
import time

from groq import Groq

from cache_utils import cache_get, cache_set, make_narrative_cache_key
from errors import NarrativeError
from models import RoadmapItem, roadmap_to_dicts

logger = logging.getLogger(__name__)

MAX_ROADMAP_ITEMS = 7

VALID_PRIORITIES = ("high", "medium", "low")

SUMMARY_SYSTEM = "You are an expert code reviewer. Answer with plain text only."
ROADMAP_SYSTEM = "You return only valid JSON. No markdown. No commentary."


# ----------------------------
# Prompt building
# ----------------------------
def generate_key_findings(metrics):
    """
    Short bullet list of the notable results, shared by both prompts.
    Middle-of-the-road scores produce no bullet.
    """
    findings = []

    code_quality = metrics.get("code_quality_score", 0)
    if code_quality < 12:
        findings.append("- Code quality needs significant improvement")
    elif code_quality >= 16:
        findings.append("- Excellent code quality and consistency")

    documentation = metrics.get("documentation_score", 0)
    if documentation < 9:
        findings.append("- Documentation is insufficient")
    elif documentation >= 12:
        findings.append("- Well-documented codebase")

    testing = metrics.get("testing_score", 0)
    if testing < 6:
        findings.append("- Testing coverage is inadequate")
    elif testing >= 10:
        findings.append("- Strong testing practices")

    issues = metrics.get("security_issues") or []
    if issues:
        findings.append(f"- {len(issues)} security concerns detected")

    if metrics.get("has_cicd"):
        findings.append("- CI/CD pipeline configured")
    else:
        findings.append("- No CI/CD automation detected")

    if metrics.get("has_dockerfile"):
        findings.append("- Project is containerized")
    else:
        findings.append("- Not containerized")

    return "\n".join(findings)


def build_summary_prompt(repo_info, metrics):
    frameworks = ", ".join(metrics.get("frameworks") or []) or "None detected"

    return f"""
You are an expert code reviewer analyzing a GitHub repository.

Repository: {repo_info.full_name}
Description: {repo_info.description or 'No description'}
Primary Language: {repo_info.language or 'Unknown'}
Stars: {repo_info.stars}

Analysis Metrics:
- Overall Score: {metrics.get('total_score', 0)}/100
- Code Quality: {metrics.get('code_quality_score', 0)}/20
- Project Structure: {metrics.get('project_structure_score', 0)}/15
- Documentation: {metrics.get('documentation_score', 0)}/15
- Testing: {metrics.get('testing_score', 0)}/12
- Git Practices: {metrics.get('git_practices_score', 0)}/12
- Security: {metrics.get('security_score', 0)}/10
- CI/CD: {metrics.get('cicd_score', 0)}/8
- Dependencies: {metrics.get('dependencies_score', 0)}/5
- Containerization: {metrics.get('containerization_score', 0)}/3

Repository Statistics:
- Total Files: {metrics.get('total_files', 0)}
- Languages: {json.dumps(metrics.get('languages') or {})}
- Frameworks: {frameworks}
- Test Files: {metrics.get('test_files', 0)}
- Commits: {metrics.get('commit_count', 0)}
- Branches: {metrics.get('branch_count', 0)}
- Contributors: {metrics.get('contributor_count', 0)}

Key Findings:
{generate_key_findings(metrics)}

Task: Generate a professional, honest, 2-3 sentence summary of this repository's quality. Be specific about strengths and weaknesses. Do not include score or rating in the summary.

Write ONLY the summary text, nothing else.
""".strip()


def build_roadmap_prompt(repo_info, metrics, summary):
    return f"""
You are an expert coding mentor creating a personalized improvement roadmap.

Repository: {repo_info.full_name}
Summary: {summary}

Current Analysis:
{generate_key_findings(metrics)}

Task: Generate 5-7 prioritized, actionable improvement steps. Each step should be specific and implementable.

Return ONLY a valid JSON array with this exact structure:
[
  {{
    "priority": "high|medium|low",
    "title": "Brief title (3-7 words)",
    "description": "Specific, actionable description (1-2 sentences)",
    "estimatedTime": "X-Y hours/days"
  }}
]

Focus on the biggest gaps first. Be practical and specific. Include steps for improving the weakest dimensions.

Return ONLY the JSON array, no markdown formatting, no code blocks, no explanation.
""".strip()


# ----------------------------
# Groq call
# ----------------------------
def _call_groq(prompt, settings, system):
    """
    One chat completion with retries.

    Retries up to settings.narrative_retries times with exponential backoff
    (1s, 2s, ...). Raises NarrativeError if there is no key or every attempt
    fails.
    """
    if not settings.groq_api_key:
        raise NarrativeError("Missing GROQ_API_KEY")

    client = Groq(api_key=settings.groq_api_key)
    attempts = max(1, settings.narrative_retries)
    last_error = None

    for attempt in range(1, attempts + 1):
        try:
            resp = client.chat.completions.create(
                model=settings.groq_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=settings.groq_temperature,
                max_tokens=settings.groq_max_tokens,
            )
            text = (resp.choices[0].message.content or "").strip()
            if not text:
                raise NarrativeError("Empty response from model")
            return text
        except Exception as e:
            # groq raises its own APIError family; anything here is retryable
            last_error = e
            logger.warning("Groq call failed (attempt %d/%d): %r", attempt, attempts, e)
            if attempt < attempts:
                time.sleep(2 ** (attempt - 1))

    raise NarrativeError(f"Groq call failed after {attempts} attempts: {last_error!r}") from last_error


# ----------------------------
# Roadmap parsing
# ----------------------------
def _strip_fences(text):
    cleaned = (text or "").strip()
    cleaned = re.sub(r"```(?:json)?\s*", "", cleaned)
    return cleaned.strip()


def parse_roadmap(text):
    """
    Parse the model's roadmap answer into RoadmapItems.

    - markdown fences are removed
    - if the whole answer isn't JSON, the first [...] block is tried
    - missing fields get defaults, unknown priorities become "medium"
    - at most 7 items are kept

    Raises NarrativeError when no JSON array can be recovered.
    """
    cleaned = _strip_fences(text)
    if not cleaned:
        raise NarrativeError("Empty roadmap response")

    try:
        data = json.loads(cleaned)
    except ValueError:
        m = re.search(r"\[.*\]", cleaned, flags=re.DOTALL)
        if not m:
            raise NarrativeError("No JSON array found in model output.")
        try:
            data = json.loads(m.group(0))
        except ValueError as e:
            raise NarrativeError(f"Invalid roadmap JSON: {e}") from e

    if not isinstance(data, list):
        raise NarrativeError("Invalid roadmap format")

    items = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise NarrativeError(f"Roadmap item {index + 1} is not an object")

        priority = str(entry.get("priority") or "medium").lower()
        if priority not in VALID_PRIORITIES:
            priority = "medium"

        items.append(RoadmapItem(
            priority=priority,
            title=entry.get("title") or f"Improvement {index + 1}",
            description=entry.get("description") or "No description provided",
            estimated_time=entry.get("estimatedTime") or "2-4 hours",
        ))

    return items[:MAX_ROADMAP_ITEMS]


# ----------------------------
# Template fallbacks
# ----------------------------
def fallback_summary(metrics):
    """Summary built from score tiers (>=75, >=50, lower) plus named strengths/weaknesses."""
    score = metrics.get("total_score") or 0
    code_quality = metrics.get("code_quality_score") or 0
    documentation = metrics.get("documentation_score") or 0
    testing = metrics.get("testing_score") or 0
    security = metrics.get("security_score") or 0
    has_cicd = bool(metrics.get("has_cicd"))

    strengths = []
    if code_quality >= 15:
        strengths.append("clean code structure")
    if documentation >= 12:
        strengths.append("comprehensive documentation")
    if testing >= 10:
        strengths.append("strong test coverage")
    if security >= 8:
        strengths.append("good security practices")
    if has_cicd:
        strengths.append("automated CI/CD")

    weaknesses = []
    if testing < 6:
        weaknesses.append("insufficient testing")
    if documentation < 9:
        weaknesses.append("poor documentation")
    if security < 6:
        weaknesses.append("security concerns")
    if not has_cicd:
        weaknesses.append("no CI/CD automation")

    if score >= 75:
        summary = f"Excellent repository with {' and '.join(strengths[:2]) if strengths else 'strong fundamentals'}. "
        if weaknesses:
            summary += f"Minor improvements needed in {weaknesses[0]}."
        else:
            summary += "Maintains high standards across all dimensions."
    elif score >= 50:
        summary = f"Solid foundation with {' and '.join(strengths[:2]) if strengths else 'decent structure'}. "
        if weaknesses:
            summary += f"However, {' and '.join(weaknesses[:2])} need attention."
        else:
            summary += "However, some areas need improvement."
    else:
        summary = "Repository shows potential but needs significant improvement. "
        if weaknesses:
            summary += f"Critical issues: {', '.join(weaknesses[:3])}. "
        summary += "Focus on establishing best practices across all dimensions."

    return summary


def fallback_roadmap(metrics):
    """
    Rule-based roadmap. Items are checked in a fixed order:
      testing < 8, documentation < 10, no CI/CD, security < 7,
      code quality < 14, no Dockerfile, git practices < 8
    """
    roadmap = []

    if (metrics.get("testing_score") or 0) < 8:
        roadmap.append(RoadmapItem(
            priority="high",
            title="Implement Unit Testing",
            description="Add comprehensive unit tests to increase code reliability and coverage. Aim for at least 70% test coverage.",
            estimated_time="4-8 hours",
        ))

    if (metrics.get("documentation_score") or 0) < 10:
        roadmap.append(RoadmapItem(
            priority="high",
            title="Enhance Documentation",
            description="Create or improve README with clear installation instructions, usage examples, and API documentation.",
            estimated_time="2-4 hours",
        ))

    if not metrics.get("has_cicd"):
        roadmap.append(RoadmapItem(
            priority="medium",
            title="Set Up CI/CD Pipeline",
            description="Configure GitHub Actions or similar CI/CD tool for automated testing and deployment.",
            estimated_time="3-5 hours",
        ))

    if (metrics.get("security_score") or 0) < 7:
        roadmap.append(RoadmapItem(
            priority="high",
            title="Address Security Issues",
            description="Review and fix security vulnerabilities, add .env to .gitignore, and implement security best practices.",
            estimated_time="2-3 hours",
        ))

    if (metrics.get("code_quality_score") or 0) < 14:
        roadmap.append(RoadmapItem(
            priority="medium",
            title="Improve Code Quality",
            description="Refactor complex functions, add linting rules, and follow language-specific best practices.",
            estimated_time="6-10 hours",
        ))

    if not metrics.get("has_dockerfile"):
        roadmap.append(RoadmapItem(
            priority="low",
            title="Containerize Application",
            description="Create Dockerfile and docker-compose.yml for consistent development and deployment environments.",
            estimated_time="2-4 hours",
        ))

    if (metrics.get("git_practices_score") or 0) < 8:
        roadmap.append(RoadmapItem(
            priority="medium",
            title="Improve Git Workflow",
            description="Use meaningful commit messages, create feature branches, and leverage pull requests for code review.",
            estimated_time="Ongoing",
        ))

    return roadmap[:MAX_ROADMAP_ITEMS]


# ----------------------------
# Public API
# ----------------------------
def _cache_key(repo_info, metrics, settings, kind):
    return make_narrative_cache_key(repo_info.full_name, metrics, f"{settings.groq_model}|{kind}")


def generate_summary(repo_info, metrics, settings, use_cache=True):
    """
    Returns the summary text. Falls back to fallback_summary() when the AI
    path is unavailable or fails.
    """
    if not settings.ai_available:
        logger.info("No GROQ_API_KEY, using template summary")
        return fallback_summary(metrics)

    key = _cache_key(repo_info, metrics, settings, "summary")
    if use_cache:
        hit = cache_get(settings.narrative_cache_dir, key, settings.narrative_cache_minutes)
        if hit and hit.get("summary"):
            logger.info("Using cached summary for %s", repo_info.full_name)
            return hit["summary"]

    try:
        summary = _call_groq(build_summary_prompt(repo_info, metrics), settings, SUMMARY_SYSTEM)
    except NarrativeError as e:
        logger.error("AI summary generation failed, using fallback: %s", e)
        return fallback_summary(metrics)

    logger.info("AI summary generated")
    if use_cache:
        cache_set(settings.narrative_cache_dir, key, {"summary": summary})
    return summary


def generate_roadmap(repo_info, metrics, summary, settings, use_cache=True):
    """
    Returns a list of RoadmapItem (at most 7). Falls back to fallback_roadmap()
    for the same metrics when the AI path is unavailable, fails, or returns
    something that can't be parsed.
    """
    if not settings.ai_available:
        logger.info("No GROQ_API_KEY, using template roadmap")
        return fallback_roadmap(metrics)

    key = _cache_key(repo_info, metrics, settings, "roadmap")
    if use_cache:
        hit = cache_get(settings.narrative_cache_dir, key, settings.narrative_cache_minutes)
        if hit and hit.get("roadmap"):
            logger.info("Using cached roadmap for %s", repo_info.full_name)
            return [RoadmapItem.from_dict(item) for item in hit["roadmap"]]

    try:
        text = _call_groq(build_roadmap_prompt(repo_info, metrics, summary), settings, ROADMAP_SYSTEM)
        roadmap = parse_roadmap(text)
    except NarrativeError as e:
        logger.error("AI roadmap generation failed, using fallback: %s", e)
        return fallback_roadmap(metrics)

    if not roadmap:
        logger.warning("Model returned an empty roadmap, using fallback")
        return fallback_roadmap(metrics)

    logger.info("AI roadmap generated (%d items)", len(roadmap))
    if use_cache:
        cache_set(settings.narrative_cache_dir, key, {"roadmap": roadmap_to_dicts(roadmap)})
    return roadmap
