"""PostgreSQL implementation of IssueRepository."""
from __future__ import annotations

from datetime import datetime, timezone

import asyncpg

from metadata_server.db.issue_queries import select_issues
from metadata_server.db.query_builder import NUMERIC, UpdateBuilder
from metadata_server.models import IssueSelector

_BUILD_COLUMNS = (
    "id, stream, change_number, job_name, job_url, job_step_name, "
    "job_step_url, error_url, outcome"
)


class PostgresIssueRepository:
    """PostgreSQL-backed issue tracker."""

    def __init__(self, db: asyncpg.Connection):
        self.db = db

    async def create(self, issue: dict) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO issues (project, summary, owner_id, nominated_by_id, created_at, fix_change)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id
            """,
            issue.get("project", ""),
            issue.get("summary", ""),
            issue.get("owner_id"),
            issue.get("nominated_by_id"),
            issue.get("created_at") or datetime.now(timezone.utc),
            issue.get("fix_change", 0),
        )

    async def list_issues(self, selector: IssueSelector, watcher_user_id: int | None = None) -> list[dict]:
        statement = select_issues(selector, watcher_user_id, NUMERIC)
        rows = await self.db.fetch(statement.sql, *statement.params)
        return [dict(r) for r in rows]

    async def apply_update(self, issue_id: int, update: UpdateBuilder) -> bool:
        statement = update.build("id", issue_id, NUMERIC)
        if statement is None:
            return False
        await self.db.execute(statement.sql, *statement.params)
        return True

    async def delete(self, issue_id: int) -> None:
        async with self.db.transaction():
            await self.db.execute("DELETE FROM issue_watchers WHERE issue_id = $1", issue_id)
            await self.db.execute("DELETE FROM issue_diagnostics WHERE issue_id = $1", issue_id)
            await self.db.execute("DELETE FROM issue_builds WHERE issue_id = $1", issue_id)
            await self.db.execute("DELETE FROM issues WHERE id = $1", issue_id)

    # ── Builds ──────────────────────────────────────────────────────

    async def add_build(self, issue_id: int, build: dict) -> int:
        return await self.db.fetchval(
            """
            INSERT INTO issue_builds
                (issue_id, stream, change_number, job_name, job_url,
                 job_step_name, job_step_url, error_url, outcome)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING id
            """,
            issue_id,
            build.get("stream", ""),
            build.get("change", 0),
            build.get("job_name", ""),
            build.get("job_url", ""),
            build.get("job_step_name", ""),
            build.get("job_step_url", ""),
            build.get("error_url", ""),
            build.get("outcome", 0),
        )

    async def list_builds(self, issue_id: int) -> list[dict]:
        rows = await self.db.fetch(
            f"SELECT {_BUILD_COLUMNS} FROM issue_builds WHERE issue_id = $1 ORDER BY id",
            issue_id,
        )
        return [dict(r) for r in rows]

    async def get_build(self, build_id: int) -> dict | None:
        row = await self.db.fetchrow(
            f"SELECT {_BUILD_COLUMNS} FROM issue_builds WHERE id = $1", build_id
        )
        return dict(row) if row else None

    async def update_build_outcome(self, build_id: int, outcome: int) -> None:
        await self.db.execute("UPDATE issue_builds SET outcome = $1 WHERE id = $2", outcome, build_id)

    # ── Diagnostics ─────────────────────────────────────────────────

    async def add_diagnostic(self, issue_id: int, diagnostic: dict) -> None:
        await self.db.execute(
            "INSERT INTO issue_diagnostics (issue_id, build_id, message, url) VALUES ($1, $2, $3, $4)",
            issue_id,
            diagnostic.get("build_id"),
            diagnostic.get("message", ""),
            diagnostic.get("url", ""),
        )

    async def list_diagnostics(self, issue_id: int) -> list[dict]:
        rows = await self.db.fetch(
            "SELECT build_id, message, url FROM issue_diagnostics WHERE issue_id = $1 ORDER BY id",
            issue_id,
        )
        return [dict(r) for r in rows]

    # ── Watchers ────────────────────────────────────────────────────

    async def add_watcher(self, issue_id: int, user_id: int) -> None:
        await self.db.execute(
            """
            INSERT INTO issue_watchers (issue_id, user_id) VALUES ($1, $2)
            ON CONFLICT (issue_id, user_id) DO NOTHING
            """,
            issue_id,
            user_id,
        )

    async def list_watchers(self, issue_id: int) -> list[str]:
        rows = await self.db.fetch(
            """
            SELECT users.name FROM issue_watchers
            LEFT JOIN users ON users.id = issue_watchers.user_id
            WHERE issue_watchers.issue_id = $1
            ORDER BY users.name
            """,
            issue_id,
        )
        return [r[0] for r in rows]

    async def remove_watcher(self, issue_id: int, user_id: int) -> None:
        await self.db.execute(
            "DELETE FROM issue_watchers WHERE issue_id = $1 AND user_id = $2",
            issue_id,
            user_id,
        )
