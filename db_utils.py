# db_utils.py
#
# Purpose:
# Save and load analyses in a local SQLite database (repograde.db by default).
#
# Tables:
# - analyses:   one row per analysis request, with its status/progress and,
#               once completed, the composite score, summary and roadmap
# - metrics:    one row per completed analysis: the nine sub-scores plus the
#               derived counts and flags (lists/dicts stored as JSON text)
# - repo_cache: GitHub repository metadata cached by "owner/repo" with expiry
# - schema_version: single-row table used by the migrations
#
# Same rules as before:
# - init_db() is safe to call repeatedly and is called inside each public
#   function, so a deleted DB file is simply recreated
# - migrations only ADD things, so older DB files keep working
#
# Every public function takes db_path so tests can point at a temporary file.

import json
import logging
import sqlite3
import time
from datetime import datetime

logger = logging.getLogger(__name__)

DB_PATH = "repograde.db"

SCHEMA_VERSION = 2

# metrics columns that hold JSON text
JSON_METRIC_COLUMNS = (
    "languages",
    "frameworks",
    "package_managers",
    "testing_frameworks",
    "readme_sections",
    "security_issues",
    "cicd_platforms",
    "details",
)

BOOL_METRIC_COLUMNS = (
    "has_license",
    "has_contributing",
    "has_cicd",
    "has_dockerfile",
    "has_docker_compose",
)

# Expected metrics columns (besides id / analysis_id / created_at).
METRIC_COLUMNS = {
    "code_quality_score": "INTEGER",
    "project_structure_score": "INTEGER",
    "documentation_score": "INTEGER",
    "testing_score": "INTEGER",
    "git_practices_score": "INTEGER",
    "security_score": "INTEGER",
    "cicd_score": "INTEGER",
    "dependencies_score": "INTEGER",
    "containerization_score": "INTEGER",
    "total_files": "INTEGER",
    "total_bytes": "INTEGER",
    "code_files": "INTEGER",
    "test_files": "INTEGER",
    "languages": "TEXT",
    "frameworks": "TEXT",
    "package_managers": "TEXT",
    "testing_frameworks": "TEXT",
    "commit_count": "INTEGER",
    "branch_count": "INTEGER",
    "contributor_count": "INTEGER",
    "stars": "INTEGER",
    "forks": "INTEGER",
    "open_issues": "INTEGER",
    "test_to_code_ratio": "REAL",
    "readme_length": "INTEGER",
    "readme_sections": "TEXT",
    "has_license": "INTEGER",
    "has_contributing": "INTEGER",
    "security_issues": "TEXT",
    "vulnerable_dependencies": "INTEGER",
    "has_cicd": "INTEGER",
    "cicd_platforms": "TEXT",
    "has_dockerfile": "INTEGER",
    "has_docker_compose": "INTEGER",
    "details": "TEXT",
}


def _now():
    return datetime.now().isoformat(timespec="seconds")


# ----------------------------
# Connection helpers
# ----------------------------
def get_conn(db_path=DB_PATH):
    """
    Open a connection to the SQLite file.

    check_same_thread=False because Streamlit may call us from different
    script-runner threads. Rows come back as sqlite3.Row so callers can
    turn them into dicts.
    """
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def _table_exists(conn, table_name):
    cur = conn.cursor()
    cur.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table_name,)
    )
    return cur.fetchone() is not None


def _get_table_columns(conn, table_name):
    """Column names of a table (PRAGMA table_info rows are (cid, name, ...))."""
    cur = conn.cursor()
    cur.execute(f"PRAGMA table_info({table_name})")
    return set(r[1] for r in cur.fetchall())


# ----------------------------
# Schema versioning
# ----------------------------
def _ensure_schema_version_table(conn):
    cur = conn.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL
    )
    """)

    cur.execute("SELECT version FROM schema_version WHERE id = 1")
    if cur.fetchone() is None:
        cur.execute("INSERT INTO schema_version (id, version) VALUES (1, 1)")

    conn.commit()


def _get_schema_version(conn):
    _ensure_schema_version_table(conn)
    cur = conn.cursor()
    cur.execute("SELECT version FROM schema_version WHERE id = 1")
    return int(cur.fetchone()[0])


def _set_schema_version(conn, version):
    cur = conn.cursor()
    cur.execute("UPDATE schema_version SET version = ? WHERE id = 1", (int(version),))
    conn.commit()


# ----------------------------
# Base schema creation
# ----------------------------
def _create_base_tables(conn):
    cur = conn.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS analyses (
        id TEXT PRIMARY KEY,
        repo_url TEXT NOT NULL,
        repo_owner TEXT NOT NULL,
        repo_name TEXT NOT NULL,
        repo_description TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        progress INTEGER NOT NULL DEFAULT 0,
        current_step TEXT,
        score INTEGER DEFAULT 0,
        rating TEXT,
        badge TEXT,
        summary TEXT,
        roadmap TEXT,
        error_message TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        analyzed_at TEXT
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS metrics (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        analysis_id TEXT NOT NULL UNIQUE,
        code_quality_score INTEGER,
        project_structure_score INTEGER,
        documentation_score INTEGER,
        testing_score INTEGER,
        git_practices_score INTEGER,
        security_score INTEGER,
        cicd_score INTEGER,
        dependencies_score INTEGER,
        containerization_score INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY(analysis_id) REFERENCES analyses(id)
    )
    """)

    cur.execute("""
    CREATE TABLE IF NOT EXISTS repo_cache (
        repo_key TEXT PRIMARY KEY,
        cache_data TEXT NOT NULL,
        cached_at TEXT NOT NULL,
        expires_at REAL NOT NULL
    )
    """)

    cur.execute("CREATE INDEX IF NOT EXISTS idx_analyses_created_at ON analyses(created_at)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_analyses_repo ON analyses(repo_owner, repo_name)")

    conn.commit()


# ----------------------------
# Migrations
# ----------------------------
def _migration_ensure_metrics_columns(conn):
    """
    Migration #1: make sure metrics has every derived column.

    The base table only has the nine sub-scores; everything else is added
    here, which also repairs DB files written by older versions.
    Idempotent.
    """
    if not _table_exists(conn, "metrics"):
        return

    cols = _get_table_columns(conn, "metrics")
    cur = conn.cursor()

    for col, col_type in METRIC_COLUMNS.items():
        if col not in cols:
            cur.execute(f"ALTER TABLE metrics ADD COLUMN {col} {col_type}")

    conn.commit()


def _migration_add_current_step(conn):
    """Migration #2: analyses.current_step (missing in version 1 files)."""
    if not _table_exists(conn, "analyses"):
        return

    if "current_step" in _get_table_columns(conn, "analyses"):
        return

    cur = conn.cursor()
    cur.execute("ALTER TABLE analyses ADD COLUMN current_step TEXT")
    conn.commit()


def init_db(db_path=DB_PATH):
    """
    Create/upgrade the schema. Safe to call any number of times.

      1) schema_version table
      2) base tables
      3) migrations
      4) bump the version number
    """
    conn = get_conn(db_path)
    try:
        _ensure_schema_version_table(conn)
        _create_base_tables(conn)

        _migration_ensure_metrics_columns(conn)
        _migration_add_current_step(conn)

        if _get_schema_version(conn) < SCHEMA_VERSION:
            _set_schema_version(conn, SCHEMA_VERSION)
    finally:
        conn.close()


def get_schema_version(db_path=DB_PATH):
    init_db(db_path)
    conn = get_conn(db_path)
    try:
        return _get_schema_version(conn)
    finally:
        conn.close()


# ----------------------------
# Row conversion
# ----------------------------
def _analysis_from_row(row):
    if row is None:
        return None
    data = dict(row)
    roadmap = data.get("roadmap")
    data["roadmap"] = json.loads(roadmap) if roadmap else []
    return data


def _metrics_from_row(row):
    if row is None:
        return None
    data = dict(row)
    for col in JSON_METRIC_COLUMNS:
        raw = data.get(col)
        data[col] = json.loads(raw) if raw else ({} if col in ("languages", "details") else [])
    for col in BOOL_METRIC_COLUMNS:
        data[col] = bool(data.get(col))
    return data


# ----------------------------
# Analyses
# ----------------------------
def create_analysis(analysis_id, repo_url, repo_owner, repo_name, repo_description=None, db_path=DB_PATH):
    """Insert a new analysis in the 'pending' state and return it as a dict."""
    init_db(db_path)

    now = _now()
    conn = get_conn(db_path)
    try:
        conn.execute("""
        INSERT INTO analyses (
            id, repo_url, repo_owner, repo_name, repo_description,
            status, progress, score, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, 'pending', 0, 0, ?, ?)
        """, (analysis_id, repo_url, repo_owner, repo_name, repo_description, now, now))
        conn.commit()
    finally:
        conn.close()

    return get_analysis_by_id(analysis_id, db_path=db_path)


def update_analysis_status(analysis_id, status, progress, current_step=None, db_path=DB_PATH):
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        conn.execute("""
        UPDATE analyses
        SET status = ?, progress = ?, current_step = ?, updated_at = ?
        WHERE id = ?
        """, (status, int(progress), current_step, _now(), analysis_id))
        conn.commit()
    finally:
        conn.close()


def update_analysis_description(analysis_id, description, db_path=DB_PATH):
    """The description is only known after the metadata fetch."""
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        conn.execute(
            "UPDATE analyses SET repo_description = ?, updated_at = ? WHERE id = ?",
            (description, _now(), analysis_id)
        )
        conn.commit()
    finally:
        conn.close()


def complete_analysis(analysis_id, score, rating, badge, summary, roadmap, metrics=None, details=None,
                      db_path=DB_PATH):
    """
    Mark an analysis completed.
    roadmap is a list of plain dicts and is stored as JSON text.

    When metrics is given the metrics row is written in the same transaction,
    so a record never ends up with sub-scores but no completed status.
    """
    init_db(db_path)

    now = _now()
    conn = get_conn(db_path)
    try:
        conn.execute("""
        UPDATE analyses
        SET score = ?, rating = ?, badge = ?, summary = ?, roadmap = ?,
            status = 'completed', progress = 100, current_step = 'Complete',
            analyzed_at = ?, updated_at = ?
        WHERE id = ?
        """, (int(score), rating, badge, summary, json.dumps(roadmap or []), now, now, analysis_id))
        if metrics is not None:
            _insert_metrics(conn, analysis_id, metrics, details)
        conn.commit()
    finally:
        conn.close()


def fail_analysis(analysis_id, error_message, db_path=DB_PATH):
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        conn.execute("""
        UPDATE analyses
        SET status = 'failed', error_message = ?, updated_at = ?
        WHERE id = ?
        """, (str(error_message), _now(), analysis_id))
        # a failed record carries no sub-scores
        conn.execute("DELETE FROM metrics WHERE analysis_id = ?", (analysis_id,))
        conn.commit()
    finally:
        conn.close()


def get_analysis_by_id(analysis_id, db_path=DB_PATH):
    """
    Return one analysis as a dict (roadmap already parsed), with its metrics
    under the "metrics" key (None until the analysis completes).
    Returns None for an unknown id.
    """
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute("SELECT * FROM analyses WHERE id = ?", (analysis_id,))
        analysis = _analysis_from_row(cur.fetchone())
        if analysis is None:
            return None

        cur = conn.execute("SELECT * FROM metrics WHERE analysis_id = ?", (analysis_id,))
        analysis["metrics"] = _metrics_from_row(cur.fetchone())
    finally:
        conn.close()

    return analysis


def get_analysis_history(limit=10, offset=0, db_path=DB_PATH):
    """Most recent analyses first (summary columns only)."""
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute("""
        SELECT id, repo_url, repo_owner, repo_name, score, rating, badge,
               status, created_at, analyzed_at
        FROM analyses
        ORDER BY created_at DESC, rowid DESC
        LIMIT ? OFFSET ?
        """, (int(limit), int(offset)))
        rows = [dict(r) for r in cur.fetchall()]
    finally:
        conn.close()

    return rows


def count_analyses(db_path=DB_PATH):
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        return int(conn.execute("SELECT COUNT(*) FROM analyses").fetchone()[0])
    finally:
        conn.close()


def get_completed_analyses(limit=100, db_path=DB_PATH):
    """
    Completed analyses joined with their sub-scores, newest first.
    Used by analytics.py for history charts and comparisons.
    """
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute("""
        SELECT a.id, a.repo_url, a.repo_owner, a.repo_name, a.score, a.rating,
               a.badge, a.analyzed_at, m.*
        FROM analyses a
        JOIN metrics m ON a.id = m.analysis_id
        WHERE a.status = 'completed'
        ORDER BY a.analyzed_at DESC, a.rowid DESC
        LIMIT ?
        """, (int(limit),))
        rows = [_metrics_from_row(r) for r in cur.fetchall()]
    finally:
        conn.close()

    for row in rows:
        # same value as a.id; drop the duplicate key
        row["id"] = row.pop("analysis_id")
    return rows


# ----------------------------
# Metrics
# ----------------------------
def save_metrics(analysis_id, metrics, details=None, db_path=DB_PATH):
    """
    Save the flat metrics mapping (see scoring.build_metrics) for an analysis.
    details is the per-dimension details mapping, stored as one JSON blob.
    Unknown keys in metrics are ignored.
    """
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        _insert_metrics(conn, analysis_id, metrics, details)
        conn.commit()
    finally:
        conn.close()


def _insert_metrics(conn, analysis_id, metrics, details=None):
    values = {}
    for col in METRIC_COLUMNS:
        if col == "details":
            continue
        value = metrics.get(col)
        if col in JSON_METRIC_COLUMNS:
            value = json.dumps(value if value is not None else ({} if col == "languages" else []))
        elif col in BOOL_METRIC_COLUMNS:
            value = 1 if value else 0
        values[col] = value
    values["details"] = json.dumps(details or {})

    cols = ["analysis_id", "created_at"] + list(values)
    placeholders = ", ".join("?" for _ in cols)
    params = [analysis_id, _now()] + list(values.values())

    conn.execute(
        f"INSERT OR REPLACE INTO metrics ({', '.join(cols)}) VALUES ({placeholders})",
        params
    )


def get_metrics(analysis_id, db_path=DB_PATH):
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute("SELECT * FROM metrics WHERE analysis_id = ?", (analysis_id,))
        return _metrics_from_row(cur.fetchone())
    finally:
        conn.close()


# ----------------------------
# Repository metadata cache
# ----------------------------
def get_cached_repo(repo_key, db_path=DB_PATH):
    """Return the cached JSON object for "owner/repo", or None if missing/expired."""
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute(
            "SELECT cache_data FROM repo_cache WHERE repo_key = ? AND expires_at > ?",
            (repo_key, time.time())
        )
        row = cur.fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return json.loads(row["cache_data"])


def set_cached_repo(repo_key, data, expiry_seconds=3600, db_path=DB_PATH):
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        conn.execute("""
        INSERT INTO repo_cache (repo_key, cache_data, cached_at, expires_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(repo_key) DO UPDATE SET
            cache_data = excluded.cache_data,
            cached_at = excluded.cached_at,
            expires_at = excluded.expires_at
        """, (repo_key, json.dumps(data), _now(), time.time() + expiry_seconds))
        conn.commit()
    finally:
        conn.close()


def cleanup_old_cache(db_path=DB_PATH):
    """Delete expired repo_cache rows. Returns how many were removed."""
    init_db(db_path)

    conn = get_conn(db_path)
    try:
        cur = conn.execute("DELETE FROM repo_cache WHERE expires_at < ?", (time.time(),))
        conn.commit()
        removed = cur.rowcount
    finally:
        conn.close()

    if removed:
        logger.info("Removed %d expired repo cache entries", removed)
    return removed
