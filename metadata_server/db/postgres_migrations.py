"""PostgreSQL schema creation, mirroring sqlite_migrations."""
from __future__ import annotations

import logging

import asyncpg

logger = logging.getLogger("metadata.db")

SCHEMA_VERSION = 1

_TABLES = """
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS projects (
    id    BIGSERIAL PRIMARY KEY,
    name  TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS users (
    id    BIGSERIAL PRIMARY KEY,
    name  TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS user_votes (
    id             BIGSERIAL PRIMARY KEY,
    change_number  INTEGER NOT NULL,
    user_name      TEXT NOT NULL DEFAULT '',
    verdict        TEXT NOT NULL,
    project        TEXT NOT NULL DEFAULT '',
    project_id     BIGINT REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_user_votes_project ON user_votes(project_id, change_number DESC);

CREATE TABLE IF NOT EXISTS comments (
    id             BIGSERIAL PRIMARY KEY,
    change_number  INTEGER NOT NULL,
    user_name      TEXT NOT NULL DEFAULT '',
    text           TEXT NOT NULL DEFAULT '',
    project        TEXT NOT NULL DEFAULT '',
    project_id     BIGINT REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_comments_project ON comments(project_id, change_number DESC);

CREATE TABLE IF NOT EXISTS badges (
    id             BIGSERIAL PRIMARY KEY,
    change_number  INTEGER NOT NULL,
    build_type     TEXT NOT NULL DEFAULT '',
    result         TEXT NOT NULL,
    url            TEXT NOT NULL DEFAULT '',
    archive_path   TEXT NOT NULL DEFAULT '',
    project_id     BIGINT REFERENCES projects(id)
);

CREATE INDEX IF NOT EXISTS idx_badges_project ON badges(project_id, change_number DESC);

CREATE TABLE IF NOT EXISTS issues (
    id               BIGSERIAL PRIMARY KEY,
    created_at       TIMESTAMPTZ NOT NULL,
    project          TEXT NOT NULL DEFAULT '',
    summary          TEXT NOT NULL DEFAULT '',
    owner_id         BIGINT REFERENCES users(id),
    nominated_by_id  BIGINT REFERENCES users(id),
    acknowledged_at  TIMESTAMPTZ,
    fix_change       INTEGER NOT NULL DEFAULT 0,
    resolved_at      TIMESTAMPTZ
);

CREATE INDEX IF NOT EXISTS idx_issues_open ON issues(resolved_at, id DESC);

CREATE TABLE IF NOT EXISTS issue_builds (
    id             BIGSERIAL PRIMARY KEY,
    issue_id       BIGINT NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
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
    id        BIGSERIAL PRIMARY KEY,
    issue_id  BIGINT NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    build_id  BIGINT REFERENCES issue_builds(id) ON DELETE SET NULL,
    message   TEXT NOT NULL DEFAULT '',
    url       TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_issue_diagnostics_issue ON issue_diagnostics(issue_id);

CREATE TABLE IF NOT EXISTS issue_watchers (
    issue_id  BIGINT NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
    user_id   BIGINT NOT NULL REFERENCES users(id),
    PRIMARY KEY (issue_id, user_id)
);

CREATE INDEX IF NOT EXISTS idx_issue_watchers_user ON issue_watchers(user_id);

CREATE TABLE IF NOT EXISTS errors (
    id          BIGSERIAL PRIMARY KEY,
    type        TEXT NOT NULL,
    text        TEXT NOT NULL DEFAULT '',
    user_name   TEXT NOT NULL DEFAULT '',
    project     TEXT,
    project_id  BIGINT REFERENCES projects(id),
    timestamp   TIMESTAMPTZ NOT NULL,
    version     TEXT NOT NULL DEFAULT '',
    ip_address  TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS telemetry (
    id          BIGSERIAL PRIMARY KEY,
    action      TEXT NOT NULL DEFAULT '',
    result      TEXT NOT NULL DEFAULT '',
    user_name   TEXT NOT NULL DEFAULT '',
    project     TEXT NOT NULL DEFAULT '',
    project_id  BIGINT REFERENCES projects(id),
    timestamp   TIMESTAMPTZ NOT NULL,
    duration    DOUBLE PRECISION NOT NULL DEFAULT 0,
    version     TEXT NOT NULL DEFAULT '',
    ip_address  TEXT NOT NULL DEFAULT ''
);
"""


async def run_migrations(pool: asyncpg.Pool) -> None:
    """Create all tables. Idempotent."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(_TABLES)
            current_version = await conn.fetchval("SELECT MAX(version) FROM schema_version") or 0
            if current_version >= SCHEMA_VERSION:
                logger.info(f"Schema is up to date (version {current_version})")
                return
            await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", SCHEMA_VERSION)
    logger.info(f"Migrations complete, schema version {SCHEMA_VERSION}")
