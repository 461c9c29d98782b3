"""PostgreSQL implementation of TelemetryRepository."""
from __future__ import annotations

import asyncpg


class PostgresTelemetryRepository:
    """PostgreSQL-backed client error reports and timing samples."""

    def __init__(self, db: asyncpg.Connection):
        self.db = db

    async def add_error(self, error: dict, project_id: int | None) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO errors
                (type, text, user_name, project, project_id, timestamp, version, ip_address)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING id
            """,
            error["error_type"],
            error.get("text", ""),
            error.get("user_name", ""),
            error.get("project"),
            project_id,
            error["timestamp"],
            error.get("version", ""),
            error.get("ip_address", ""),
        )

    async def list_errors(self, records: int) -> list[dict]:
        rows = await self.db.fetch(
            """
            SELECT id, type, text, user_name, project, timestamp, version, ip_address
            FROM errors ORDER BY id DESC LIMIT $1
            """,
            records,
        )
        return [dict(r) for r in rows]

    async def add_timing(self, timing: dict, project_id: int | None) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO telemetry
                (action, result, user_name, project, project_id, timestamp, duration, version, ip_address)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING id
            """,
            timing.get("action", ""),
            timing.get("result", ""),
            timing.get("user_name", ""),
            timing.get("project", ""),
            project_id,
            timing["timestamp"],
            timing.get("duration", 0.0),
            timing.get("version", ""),
            timing.get("ip_address", ""),
        )
