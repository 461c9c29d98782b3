"""Database schema creation and versioning.

All CREATE TABLE statements for the metadata store.
Uses IF NOT EXISTS for idempotent runs.
"""
from __future__ import annotations

import logging

import aiosqlite

logger = logging.getLogger("metadata.db")

SCHEMA_VERSION = 1

_TABLES = """
-- ── Schema version tracking ────────────────────────────────────────
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TEXT NOT NULL DEFAULT (datetime('now'))
);

-- ── 1. Dimensions ──────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS projects (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL UNIQUE
);

-- Names are stored upper-cased
CREATE TABLE IF NOT EXISTS users (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL UNIQUE
);

-- ── 2. Sync feeds ──────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS user_votes (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    change_number  INTEGER NOT NULL,
    user_name      TEXT NOT NULL DEFAULT '',
    verdict        TEXT NOT NULL,
    project        TEXT NOT NULL DEFAULT '',
    project_id     INTEGER REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_user_votes_project ON user_votes(project_id, change_number DESC);

CREATE TABLE IF NOT EXISTS comments (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    change_number  INTEGER NOT NULL,
    user_name      TEXT NOT NULL DEFAULT '',
    text           TEXT NOT NULL DEFAULT '',
    project        TEXT NOT NULL DEFAULT '',
    project_id     INTEGER REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_comments_project ON comments(project_id, change_number DESC);

CREATE TABLE IF NOT EXISTS badges (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    change_number  INTEGER NOT NULL,
    build_type     TEXT NOT NULL DEFAULT '',
    result         TEXT NOT NULL,
    url            TEXT NOT NULL DEFAULT '',
    archive_path   TEXT NOT NULL DEFAULT '',
    project_id     INTEGER REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_badges_project ON badges(project_id, change_number DESC);

-- ── 3. Issues ──────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS issues (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at       TEXT NOT NULL,
    project          TEXT NOT NULL DEFAULT '',
    summary          TEXT NOT NULL DEFAULT '',
    owner_id         INTEGER REFERENCES users(id),
    nominated_by_id  INTEGER REFERENCES users(id),
    acknowledged_at  TEXT,
    fix_change       INTEGER NOT NULL DEFAULT 0,
    resolved_at      TEXT
);

CREATE INDEX IF NOT EXISTS idx_issues_open ON issues(resolved_at, id DESC);

CREATE TABLE IF NOT EXISTS issue_builds (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    issue_id       INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    stream         TEXT NOT NULL DEFAULT '',
    change_number  INTEGER NOT NULL DEFAULT 0,
    job_name       TEXT NOT NULL DEFAULT '',
    job_url        TEXT NOT NULL DEFAULT '',
    job_step_name  TEXT NOT NULL DEFAULT '',
    job_step_url   TEXT NOT NULL DEFAULT '',
    error_url      TEXT NOT NULL DEFAULT '',
    outcome        INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_issue_builds_issue ON issue_builds(issue_id);

CREATE TABLE IF NOT EXISTS issue_diagnostics (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    issue_id  INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    build_id  INTEGER REFERENCES issue_builds(id) ON DELETE SET NULL,
    message   TEXT NOT NULL DEFAULT '',
    url       TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_issue_diagnostics_issue ON issue_diagnostics(issue_id);

CREATE TABLE IF NOT EXISTS issue_watchers (
    issue_id  INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    user_id   INTEGER NOT NULL REFERENCES users(id),
    PRIMARY KEY (issue_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_issue_watchers_user ON issue_watchers(user_id);

-- ── 4. Telemetry ───────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS errors (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    type        TEXT NOT NULL,
    text        TEXT NOT NULL DEFAULT '',
    user_name   TEXT NOT NULL DEFAULT '',
    project     TEXT,
    project_id  INTEGER REFERENCES projects(id),
    timestamp   TEXT NOT NULL,
    version     TEXT NOT NULL DEFAULT '',
    ip_address  TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS telemetry (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    action      TEXT NOT NULL DEFAULT '',
    result      TEXT NOT NULL DEFAULT '',
    user_name   TEXT NOT NULL DEFAULT '',
    project     TEXT NOT NULL DEFAULT '',
    project_id  INTEGER REFERENCES projects(id),
    timestamp   TEXT NOT NULL,
    duration    REAL NOT NULL DEFAULT 0,
    version     TEXT NOT NULL DEFAULT '',
    ip_address  TEXT NOT NULL DEFAULT ''
);
"""


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Create all tables. Idempotent."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cur:
            row = await cur.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.OperationalError:
        current_version = 0

    if current_version >= SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current_version})")
        return

    logger.info(f"Running migrations: {current_version} → {SCHEMA_VERSION}")

    await db.executescript(_TABLES)

    await db.execute(
        "INSERT INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    await db.commit()
    logger.info(f"Migrations complete, schema version {SCHEMA_VERSION}")
