# cache_utils.py
#
# Purpose:
# A small file-based JSON cache with a TTL.
# The narrative generator stores its summary + roadmap here so that
# re-analyzing an unchanged repository doesn't spend another Groq call.
#
# Layout on disk:
#   <cache_dir>/narrative/<sha256>.json
#
# The cache is best-effort: a missing, expired or unreadable file is a miss,
# and a failed write is logged and ignored.

import hashlib
import json
import logging
import os
import time

logger = logging.getLogger(__name__)


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)


def _hash_key(s):
    """SHA256 hex digest, so keys are safe filenames of fixed length."""
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _cache_path(cache_dir, key):
    return os.path.join(cache_dir, f"{key}.json")


def cache_get(cache_dir, key, ttl_minutes):
    """
    Read a cached JSON object.

    Returns:
      - the cached object if the file exists and is younger than ttl_minutes
      - None otherwise (missing, expired, or unreadable)
    """
    path = _cache_path(cache_dir, key)

    if not os.path.exists(path):
        return None

    age_seconds = time.time() - os.path.getmtime(path)
    if age_seconds > ttl_minutes * 60:
        logger.debug("Cache entry %s expired (%.0fs old)", key[:12], age_seconds)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable cache file %s: %s", path, e)
        return None


def cache_set(cache_dir, key, obj):
    """Write obj as JSON. Failures are logged, never raised."""
    path = _cache_path(cache_dir, key)

    try:
        ensure_dir(cache_dir)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2)
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Could not write cache file %s: %s", path, e)


def cache_clear(cache_dir):
    """Delete every cached entry in cache_dir. Returns the number removed."""
    if not os.path.isdir(cache_dir):
        return 0

    removed = 0
    for name in os.listdir(cache_dir):
        if name.endswith(".json"):
            os.remove(os.path.join(cache_dir, name))
            removed += 1
    return removed


def make_narrative_cache_key(repo_full_name, metrics, model_name="default"):
    """
    Build a cache key for narrative outputs.

    The key changes when any input to the prompts changes:
      - the repository
      - the model
      - any metric (scores, counts, detected frameworks, ...)

    metrics is serialized with sort_keys=True so dict ordering doesn't matter.
    """
    raw = json.dumps({
        "repo": repo_full_name,
        "model": model_name,
        "metrics": metrics,
    }, sort_keys=True, default=str)

    return _hash_key(raw)
