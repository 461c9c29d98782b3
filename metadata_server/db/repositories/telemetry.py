"""SQLite implementation of TelemetryRepository."""
from __future__ import annotations

import aiosqlite

from metadata_server.db.connection import sqlite_transaction


class SqliteTelemetryRepository:
    """SQLite-backed client error reports and timing samples."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def add_error(self, error: dict, project_id: int | None) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO errors
                    (type, text, user_name, project, project_id, timestamp, version, ip_address)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    error["error_type"],
                    error.get("text", ""),
                    error.get("user_name", ""),
                    error.get("project"),
                    project_id,
                    error["timestamp"].isoformat(),
                    error.get("version", ""),
                    error.get("ip_address", ""),
                ),
            )
            return cur.lastrowid

    async def list_errors(self, records: int) -> list[dict]:
        async with self.db.execute(
            """SELECT id, type, text, user_name, project, timestamp, version, ip_address
               FROM errors ORDER BY id DESC LIMIT ?""",
            (records,),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def add_timing(self, timing: dict, project_id: int | None) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO telemetry
                    (action, result, user_name, project, project_id, timestamp, duration, version, ip_address)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    timing.get("action", ""),
                    timing.get("result", ""),
                    timing.get("user_name", ""),
                    timing.get("project", ""),
                    project_id,
                    timing["timestamp"].isoformat(),
                    timing.get("duration", 0.0),
                    timing.get("version", ""),
                    timing.get("ip_address", ""),
                ),
            )
            return cur.lastrowid
