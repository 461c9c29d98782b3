"""Repository factory to abstract DB backend (SQLite vs Postgres)."""
from __future__ import annotations

from typing import Any

import aiosqlite

from metadata_server.db.repositories.activity import SqliteActivityRepository
from metadata_server.db.repositories.dimensions import SqliteDimensionRepository
from metadata_server.db.repositories.issues import SqliteIssueRepository
from metadata_server.db.repositories.telemetry import SqliteTelemetryRepository


def get_dimension_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteDimensionRepository(db)
    from metadata_server.db.repositories.postgres.dimensions import PostgresDimensionRepository
    return PostgresDimensionRepository(db)

def get_activity_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteActivityRepository(db)
    from metadata_server.db.repositories.postgres.activity import PostgresActivityRepository
    return PostgresActivityRepository(db)

def get_issue_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteIssueRepository(db)
    from metadata_server.db.repositories.postgres.issues import PostgresIssueRepository
    return PostgresIssueRepository(db)

def get_telemetry_repository(db: Any):
    if isinstance(db, aiosqlite.Connection):
        return SqliteTelemetryRepository(db)
    from metadata_server.db.repositories.postgres.telemetry import PostgresTelemetryRepository
    return PostgresTelemetryRepository(db)
