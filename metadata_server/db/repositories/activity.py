"""SQLite implementation of ActivityRepository (events, comments, build badges)."""
from __future__ import annotations

import aiosqlite

from metadata_server.db.connection import sqlite_transaction
from metadata_server.db.repositories.base import BUILDS, COMMENTS, EVENTS

# kind -> (table, selected columns)
FEEDS: dict[str, tuple[str, str]] = {
    EVENTS: (
        "user_votes",
        "user_votes.id, user_votes.change_number, user_votes.user_name, "
        "user_votes.verdict, user_votes.project",
    ),
    COMMENTS: (
        "comments",
        "comments.id, comments.change_number, comments.user_name, "
        "comments.text, comments.project",
    ),
    BUILDS: (
        "badges",
        "badges.id, badges.change_number, badges.build_type, badges.result, badges.url, "
        "COALESCE(projects.name, '') AS project, badges.archive_path",
    ),
}


def feed(kind: str) -> tuple[str, str]:
    try:
        return FEEDS[kind]
    except KeyError:
        raise ValueError(f"Unknown feed kind: {kind}") from None


class SqliteActivityRepository:
    """SQLite-backed append-only activity feeds."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def add_event(self, event: dict, project_id: int | None) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO user_votes (change_number, user_name, verdict, project, project_id)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    event["change"],
                    event.get("user_name", ""),
                    event["event_type"],
                    event.get("project", ""),
                    project_id,
                ),
            )
            return cur.lastrowid

    async def add_comment(self, comment: dict, project_id: int | None) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO comments (change_number, user_name, text, project, project_id)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    comment["change_number"],
                    comment.get("user_name", ""),
                    comment.get("text", ""),
                    comment.get("project", ""),
                    project_id,
                ),
            )
            return cur.lastrowid

    async def add_badge(self, badge: dict, project_id: int | None) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO badges (change_number, build_type, result, url, archive_path, project_id)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    badge["change_number"],
                    badge.get("build_type", ""),
                    badge["result"],
                    badge.get("url", ""),
                    badge.get("archive_path", ""),
                    project_id,
                ),
            )
            return cur.lastrowid

    async def list_since(self, kind: str, last_id: int, project_like: str) -> list[dict]:
        table, columns = feed(kind)
        query = f"""
            SELECT {columns}
            FROM {table}
            LEFT JOIN projects ON projects.id = {table}.project_id
            WHERE {table}.id > ?
              AND (projects.name LIKE ? OR {table}.project_id IS NULL)
            ORDER BY {table}.id
        """
        async with self.db.execute(query, (last_id, project_like)) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def get_window_start_id(self, kind: str, project_like: str, window: int) -> int:
        """Id of the oldest row among the ``window`` most recent changes in scope."""
        table, _ = feed(kind)
        query = f"""
            WITH recent AS (
                SELECT {table}.id, {table}.change_number
                FROM {table}
                LEFT JOIN projects ON projects.id = {table}.project_id
                WHERE projects.name LIKE ? OR {table}.project_id IS NULL
                ORDER BY {table}.change_number DESC, {table}.id DESC
                LIMIT ?
            )
            SELECT id FROM recent ORDER BY change_number ASC, id ASC LIMIT 1
        """
        async with self.db.execute(query, (project_like, window)) as cur:
            row = await cur.fetchone()
            return row[0] if row else 0
