"""SQLite implementation of IssueRepository."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import aiosqlite

from metadata_server.db.connection import sqlite_transaction
from metadata_server.db.issue_queries import select_issues
from metadata_server.db.query_builder import QMARK, UpdateBuilder
from metadata_server.models import IssueSelector

_BUILD_COLUMNS = (
    "id, stream, change_number, job_name, job_url, job_step_name, "
    "job_step_url, error_url, outcome"
)


def _to_sqlite(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SqliteIssueRepository:
    """SQLite-backed issue tracker with build, diagnostic and watcher sub-tables."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, issue: dict) -> int:
        created_at = issue.get("created_at") or datetime.now(timezone.utc)
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO issues (project, summary, owner_id, nominated_by_id, created_at, fix_change)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    issue.get("project", ""),
                    issue.get("summary", ""),
                    issue.get("owner_id"),
                    issue.get("nominated_by_id"),
                    _to_sqlite(created_at),
                    issue.get("fix_change", 0),
                ),
            )
            return cur.lastrowid

    async def list_issues(self, selector: IssueSelector, watcher_user_id: int | None = None) -> list[dict]:
        statement = select_issues(selector, watcher_user_id, QMARK)
        async with self.db.execute(statement.sql, statement.params) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def apply_update(self, issue_id: int, update: UpdateBuilder) -> bool:
        statement = update.build("id", issue_id, QMARK)
        if statement is None:
            return False
        async with sqlite_transaction(self.db):
            await self.db.execute(statement.sql, [_to_sqlite(v) for v in statement.params])
        return True

    async def delete(self, issue_id: int) -> None:
        async with sqlite_transaction(self.db):
            await self.db.execute("DELETE FROM issue_watchers WHERE issue_id = ?", (issue_id,))
            await self.db.execute("DELETE FROM issue_diagnostics WHERE issue_id = ?", (issue_id,))
            await self.db.execute("DELETE FROM issue_builds WHERE issue_id = ?", (issue_id,))
            await self.db.execute("DELETE FROM issues WHERE id = ?", (issue_id,))

    # ── Builds ──────────────────────────────────────────────────────

    async def add_build(self, issue_id: int, build: dict) -> int:
        async with sqlite_transaction(self.db):
            cur = await self.db.execute(
                """INSERT INTO issue_builds
                    (issue_id, stream, change_number, job_name, job_url,
                     job_step_name, job_step_url, error_url, outcome)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    issue_id,
                    build.get("stream", ""),
                    build.get("change", 0),
                    build.get("job_name", ""),
                    build.get("job_url", ""),
                    build.get("job_step_name", ""),
                    build.get("job_step_url", ""),
                    build.get("error_url", ""),
                    build.get("outcome", 0),
                ),
            )
            return cur.lastrowid

    async def list_builds(self, issue_id: int) -> list[dict]:
        async with self.db.execute(
            f"SELECT {_BUILD_COLUMNS} FROM issue_builds WHERE issue_id = ? ORDER BY id",
            (issue_id,),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def get_build(self, build_id: int) -> dict | None:
        async with self.db.execute(
            f"SELECT {_BUILD_COLUMNS} FROM issue_builds WHERE id = ?", (build_id,)
        ) as cur:
            row = await cur.fetchone()
            return dict(row) if row else None

    async def update_build_outcome(self, build_id: int, outcome: int) -> None:
        async with sqlite_transaction(self.db):
            await self.db.execute(
                "UPDATE issue_builds SET outcome = ? WHERE id = ?", (outcome, build_id)
            )

    # ── Diagnostics ─────────────────────────────────────────────────

    async def add_diagnostic(self, issue_id: int, diagnostic: dict) -> None:
        async with sqlite_transaction(self.db):
            await self.db.execute(
                "INSERT INTO issue_diagnostics (issue_id, build_id, message, url) VALUES (?, ?, ?, ?)",
                (
                    issue_id,
                    diagnostic.get("build_id"),
                    diagnostic.get("message", ""),
                    diagnostic.get("url", ""),
                ),
            )

    async def list_diagnostics(self, issue_id: int) -> list[dict]:
        async with self.db.execute(
            "SELECT build_id, message, url FROM issue_diagnostics WHERE issue_id = ? ORDER BY id",
            (issue_id,),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    # ── Watchers ────────────────────────────────────────────────────

    async def add_watcher(self, issue_id: int, user_id: int) -> None:
        async with sqlite_transaction(self.db):
            await self.db.execute(
                "INSERT OR IGNORE INTO issue_watchers (issue_id, user_id) VALUES (?, ?)",
                (issue_id, user_id),
            )

    async def list_watchers(self, issue_id: int) -> list[str]:
        async with self.db.execute(
            """SELECT users.name FROM issue_watchers
               LEFT JOIN users ON users.id = issue_watchers.user_id
               WHERE issue_watchers.issue_id = ?
               ORDER BY users.name""",
            (issue_id,),
        ) as cur:
            return [r[0] for r in await cur.fetchall()]

    async def remove_watcher(self, issue_id: int, user_id: int) -> None:
        async with sqlite_transaction(self.db):
            await self.db.execute(
                "DELETE FROM issue_watchers WHERE issue_id = ? AND user_id = ?",
                (issue_id, user_id),
            )
