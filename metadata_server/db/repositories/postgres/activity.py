"""PostgreSQL implementation of ActivityRepository."""
from __future__ import annotations

import asyncpg

from metadata_server.db.repositories.activity import feed


class PostgresActivityRepository:
    """PostgreSQL-backed append-only activity feeds."""

    def __init__(self, db: asyncpg.Connection):
        self.db = db

    async def add_event(self, event: dict, project_id: int | None) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO user_votes (change_number, user_name, verdict, project, project_id)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id
            """,
            event["change"],
            event.get("user_name", ""),
            event["event_type"],
            event.get("project", ""),
            project_id,
        )

    async def add_comment(self, comment: dict, project_id: int | None) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO comments (change_number, user_name, text, project, project_id)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id
            """,
            comment["change_number"],
            comment.get("user_name", ""),
            comment.get("text", ""),
            comment.get("project", ""),
            project_id,
        )

    async def add_badge(self, badge: dict, project_id: int | None) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO badges (change_number, build_type, result, url, archive_path, project_id)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id
            """,
            badge["change_number"],
            badge.get("build_type", ""),
            badge["result"],
            badge.get("url", ""),
            badge.get("archive_path", ""),
            project_id,
        )

    async def list_since(self, kind: str, last_id: int, project_like: str) -> list[dict]:
        table, columns = feed(kind)
        rows = await self.db.fetch(
            f"""
            SELECT {columns}
            FROM {table}
            LEFT JOIN projects ON projects.id = {table}.project_id
            WHERE {table}.id > $1
              AND (projects.name LIKE $2 OR {table}.project_id IS NULL)
            ORDER BY {table}.id
            """,
            last_id,
            project_like,
        )
        return [dict(r) for r in rows]

    async def get_window_start_id(self, kind: str, project_like: str, window: int) -> int:
        table, _ = feed(kind)
        value = await self.db.fetchval(
            f"""
            WITH recent AS (
                SELECT {table}.id, {table}.change_number
                FROM {table}
                LEFT JOIN projects ON projects.id = {table}.project_id
                WHERE projects.name LIKE $1 OR {table}.project_id IS NULL
                ORDER BY {table}.change_number DESC, {table}.id DESC
                LIMIT $2
            )
            SELECT id FROM recent ORDER BY change_number ASC, id ASC LIMIT 1
            """,
            project_like,
            window,
        )
        return value or 0
