"""API routers for the issue tracker and its sub-resources."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from metadata_server.db import connection
from metadata_server.db.factory import get_dimension_repository, get_issue_repository
from metadata_server.models import (
    CreatedId,
    IssueBuildData,
    IssueBuildUpdateData,
    IssueData,
    IssueDiagnosticData,
    IssueSelector,
    IssueUpdateData,
    IssueWatcherData,
)
from metadata_server.routers.common import translate_errors
from metadata_server.services.issues import IssueService

issues_router = APIRouter(prefix="/api/issues", tags=["issues"])
issue_builds_router = APIRouter(prefix="/api/issuebuilds", tags=["issues"])


def _service(db) -> IssueService:
    return IssueService(get_issue_repository(db), get_dimension_repository(db))


@issues_router.get("", response_model=list[IssueData])
async def list_issues(
    includeresolved: bool = False,
    maxresults: int = -1,
    user: Optional[str] = None,
):
    """Open issues newest first, or every issue a user is watching when ``user`` is given."""
    selector = IssueSelector(
        user_name=user or None,
        include_resolved=includeresolved,
        limit=maxresults if maxresults >= 0 else None,
    )
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_issues(selector)


@issues_router.post("", response_model=CreatedId)
async def create_issue(issue: IssueData):
    with translate_errors():
        async with connection.acquire() as db:
            issue_id = await _service(db).create_issue(issue)
    return CreatedId(id=issue_id)


@issues_router.get("/{issue_id}", response_model=IssueData)
async def get_issue(issue_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).get_issue(issue_id)


@issues_router.put("/{issue_id}")
async def update_issue(issue_id: int, update: IssueUpdateData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).update_issue(issue_id, update)


@issues_router.delete("/{issue_id}")
async def delete_issue(issue_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).delete_issue(issue_id)


# ── Builds ──────────────────────────────────────────────────────────

@issues_router.get("/{issue_id}/builds", response_model=list[IssueBuildData])
async def list_issue_builds(issue_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_builds(issue_id)


@issues_router.post("/{issue_id}/builds", response_model=CreatedId)
async def add_issue_build(issue_id: int, build: IssueBuildData):
    with translate_errors():
        async with connection.acquire() as db:
            build_id = await _service(db).add_build(issue_id, build)
    return CreatedId(id=build_id)


@issue_builds_router.get("/{build_id}", response_model=IssueBuildData)
async def get_issue_build(build_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).get_build(build_id)


@issue_builds_router.put("/{build_id}")
async def update_issue_build(build_id: int, update: IssueBuildUpdateData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).update_build(build_id, update.outcome)


# ── Diagnostics ─────────────────────────────────────────────────────

@issues_router.get("/{issue_id}/diagnostics", response_model=list[IssueDiagnosticData])
async def list_issue_diagnostics(issue_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_diagnostics(issue_id)


@issues_router.post("/{issue_id}/diagnostics")
async def add_issue_diagnostic(issue_id: int, diagnostic: IssueDiagnosticData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_diagnostic(issue_id, diagnostic)


# ── Watchers ────────────────────────────────────────────────────────

@issues_router.get("/{issue_id}/watchers", response_model=list[str])
async def list_issue_watchers(issue_id: int):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_watchers(issue_id)


@issues_router.post("/{issue_id}/watchers")
async def add_issue_watcher(issue_id: int, watcher: IssueWatcherData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_watcher(issue_id, watcher.user_name)


@issues_router.delete("/{issue_id}/watchers")
async def remove_issue_watcher(issue_id: int, watcher: IssueWatcherData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).remove_watcher(issue_id, watcher.user_name)
