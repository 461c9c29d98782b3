"""Issue tracker orchestration: issues, their builds, diagnostics and watchers."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from metadata_server import config
from metadata_server.db.dimensions import resolve_user_id
from metadata_server.db.query_builder import UpdateBuilder
from metadata_server.db.repositories.base import DimensionRepository, IssueRepository
from metadata_server.errors import NotFoundError
from metadata_server.models import (
    IssueBuildData,
    IssueData,
    IssueDiagnosticData,
    IssueSelector,
    IssueUpdateData,
    to_datetime,
)
from metadata_server.observability import track_write
from metadata_server.text_utils import sanitize_text

logger = logging.getLogger("metadata.api")


def _issue_from_row(row: dict[str, Any], retrieved_at: datetime) -> IssueData:
    return IssueData(
        id=row["id"],
        created_at=to_datetime(row.get("created_at")),
        retrieved_at=retrieved_at,
        project=row.get("project") or "",
        summary=row.get("summary") or "",
        owner=row.get("owner"),
        nominated_by=row.get("nominated_by"),
        acknowledged_at=to_datetime(row.get("acknowledged_at")),
        fix_change=row.get("fix_change") or 0,
        resolved_at=to_datetime(row.get("resolved_at")),
        notify=bool(row.get("notify")),
    )


def _build_from_row(row: dict[str, Any]) -> IssueBuildData:
    return IssueBuildData(
        id=row["id"],
        stream=row.get("stream") or "",
        change=row.get("change_number") or 0,
        job_name=row.get("job_name") or "",
        job_url=row.get("job_url") or "",
        job_step_name=row.get("job_step_name") or "",
        job_step_url=row.get("job_step_url") or "",
        error_url=row.get("error_url") or "",
        outcome=row.get("outcome") or 0,
    )


def _flag_timestamp(flag: bool) -> datetime | None:
    return datetime.now(timezone.utc) if flag else None


class IssueService:
    def __init__(self, issues: IssueRepository, dimensions: DimensionRepository):
        self.issues = issues
        self.dimensions = dimensions

    # ── Issues ──────────────────────────────────────────────────────

    async def create_issue(self, issue: IssueData) -> int:
        with track_write("issue", project=issue.project):
            owner_id = await resolve_user_id(self.dimensions, issue.owner)
            nominated_by_id = await resolve_user_id(self.dimensions, issue.nominated_by)
            issue_id = await self.issues.create(
                {
                    "project": issue.project,
                    "summary": sanitize_text(issue.summary, config.ISSUE_SUMMARY_MAX_LENGTH),
                    "owner_id": owner_id,
                    "nominated_by_id": nominated_by_id,
                    "created_at": datetime.now(timezone.utc),
                    "fix_change": issue.fix_change,
                }
            )
        logger.info(f"Issue {issue_id} created for {issue.project}.")
        return issue_id

    async def list_issues(self, selector: IssueSelector) -> list[IssueData]:
        watcher_user_id = None
        if selector.issue_id is None and selector.user_name:
            watcher_user_id = await resolve_user_id(self.dimensions, selector.user_name)
        rows = await self.issues.list_issues(selector, watcher_user_id)
        retrieved_at = datetime.now(timezone.utc)
        return [_issue_from_row(row, retrieved_at) for row in rows]

    async def get_issue(self, issue_id: int) -> IssueData:
        issues = await self.list_issues(IssueSelector(issue_id=issue_id))
        if not issues:
            raise NotFoundError("issue", issue_id)
        return issues[0]

    async def update_issue(self, issue_id: int, update: IssueUpdateData) -> bool:
        """Apply the supplied fields only. Returns False when nothing was supplied."""
        builder = UpdateBuilder("issues")
        if update.summary:
            builder.set("summary", sanitize_text(update.summary, config.ISSUE_SUMMARY_MAX_LENGTH))
        if update.owner:
            builder.set("owner_id", await resolve_user_id(self.dimensions, update.owner))
        if update.nominated_by:
            builder.set("nominated_by_id", await resolve_user_id(self.dimensions, update.nominated_by))
        if update.acknowledged is not None:
            builder.set("acknowledged_at", _flag_timestamp(update.acknowledged))
        if update.fix_change is not None:
            builder.set("fix_change", update.fix_change)
        if update.resolved is not None:
            builder.set("resolved_at", _flag_timestamp(update.resolved))
        if builder.is_empty():
            return False
        with track_write("issue"):
            return await self.issues.apply_update(issue_id, builder)

    async def delete_issue(self, issue_id: int) -> None:
        with track_write("issue"):
            await self.issues.delete(issue_id)
        logger.info(f"Issue {issue_id} deleted.")

    async def _require_issue(self, issue_id: int) -> None:
        await self.get_issue(issue_id)

    # ── Builds ──────────────────────────────────────────────────────

    async def add_build(self, issue_id: int, build: IssueBuildData) -> int:
        await self._require_issue(issue_id)
        with track_write("issue_build", project=build.stream):
            return await self.issues.add_build(
                issue_id,
                {
                    "stream": build.stream,
                    "change": build.change,
                    "job_name": build.job_name,
                    "job_url": build.job_url,
                    "job_step_name": build.job_step_name,
                    "job_step_url": build.job_step_url,
                    "error_url": build.error_url,
                    "outcome": build.outcome,
                },
            )

    async def list_builds(self, issue_id: int) -> list[IssueBuildData]:
        return [_build_from_row(row) for row in await self.issues.list_builds(issue_id)]

    async def get_build(self, build_id: int) -> IssueBuildData:
        row = await self.issues.get_build(build_id)
        if row is None:
            raise NotFoundError("issue build", build_id)
        return _build_from_row(row)

    async def update_build(self, build_id: int, outcome: int) -> None:
        with track_write("issue_build"):
            await self.issues.update_build_outcome(build_id, outcome)

    # ── Diagnostics ─────────────────────────────────────────────────

    async def add_diagnostic(self, issue_id: int, diagnostic: IssueDiagnosticData) -> None:
        await self._require_issue(issue_id)
        with track_write("issue_diagnostic"):
            await self.issues.add_diagnostic(
                issue_id,
                {
                    "build_id": diagnostic.build_id,
                    "message": sanitize_text(diagnostic.message, config.DIAGNOSTIC_MESSAGE_MAX_LENGTH),
                    "url": diagnostic.url,
                },
            )

    async def list_diagnostics(self, issue_id: int) -> list[IssueDiagnosticData]:
        return [IssueDiagnosticData(**row) for row in await self.issues.list_diagnostics(issue_id)]

    # ── Watchers ────────────────────────────────────────────────────

    async def add_watcher(self, issue_id: int, user_name: str) -> None:
        await self._require_issue(issue_id)
        user_id = await resolve_user_id(self.dimensions, user_name)
        if user_id is None:
            return
        with track_write("issue_watcher"):
            await self.issues.add_watcher(issue_id, user_id)

    async def list_watchers(self, issue_id: int) -> list[str]:
        return await self.issues.list_watchers(issue_id)

    async def remove_watcher(self, issue_id: int, user_name: str) -> None:
        user_id = await resolve_user_id(self.dimensions, user_name)
        if user_id is None:
            return
        with track_write("issue_watcher"):
            await self.issues.remove_watcher(issue_id, user_id)
