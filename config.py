# config.py
#
# Purpose:
# All tunable values (tokens, limits, TTLs, paths) in one object.
# Values come from environment variables, never from code. In Codespaces these
# live in Secrets; locally they can be exported in the shell.
#
# The Settings object is built once by the frontend (app.py / main.py) and
# passed into the pipeline, the GitHub client and the narrative generator.

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name, default):
    """
    Read an integer environment variable.
    A missing or non-numeric value falls back to the default.
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # GitHub
    github_token: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    github_timeout: int = 20
    github_max_retries: int = 3
    backoff_base: int = 2

    # Groq (narrative generation)
    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.1-8b-instant"
    groq_temperature: float = 0.7
    groq_max_tokens: int = 2048
    narrative_retries: int = 2

    # Analysis limits
    max_files: int = 1000
    max_commits: int = 500
    max_readme_length: int = 50000
    analysis_timeout: int = 180

    # Storage
    db_path: str = "repograde.db"
    cache_dir: str = "cache"
    cache_ttl_seconds: int = 3600
    narrative_cache_minutes: int = 24 * 60

    log_level: str = "INFO"

    @property
    def narrative_cache_dir(self):
        return os.path.join(self.cache_dir, "narrative")

    @property
    def ai_available(self):
        return bool(self.groq_api_key)


def load_settings():
    """
    Build Settings from the environment.

    Missing tokens are allowed:
      - no GITHUB_TOKEN means 60 requests/hour instead of 5000
      - no GROQ_API_KEY means template-based summaries and roadmaps
    """
    return Settings(
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/"),
        github_timeout=_env_int("GITHUB_TIMEOUT", 20),
        github_max_retries=_env_int("GITHUB_MAX_RETRIES", 3),
        backoff_base=_env_int("BACKOFF_BASE", 2),
        groq_api_key=os.getenv("GROQ_API_KEY") or None,
        groq_model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
        max_files=_env_int("MAX_FILES", 1000),
        max_commits=_env_int("MAX_COMMITS", 500),
        max_readme_length=_env_int("MAX_README_LENGTH", 50000),
        analysis_timeout=_env_int("ANALYSIS_TIMEOUT", 180),
        db_path=os.getenv("REPOGRADE_DB_PATH", "repograde.db"),
        cache_dir=os.getenv("REPOGRADE_CACHE_DIR", "cache"),
        cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 3600),
        narrative_cache_minutes=_env_int("NARRATIVE_CACHE_MINUTES", 24 * 60),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
