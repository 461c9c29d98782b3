"""Storage capabilities the services depend on.

Both backends (``Sqlite*`` and ``Postgres*`` repositories) satisfy these
protocols; services never import a concrete backend.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from metadata_server.db.query_builder import UpdateBuilder
from metadata_server.models import IssueSelector

DIMENSION_TABLES = frozenset({"users", "projects"})

EVENTS = "event"
COMMENTS = "comment"
BUILDS = "build"
FEED_KINDS = (EVENTS, COMMENTS, BUILDS)


@runtime_checkable
class DimensionRepository(Protocol):
    async def find_id(self, table: str, name: str) -> int | None: ...

    async def insert_and_select(self, table: str, name: str) -> int: ...


@runtime_checkable
class ActivityRepository(Protocol):
    async def add_event(self, event: dict, project_id: int | None) -> int: ...

    async def add_comment(self, comment: dict, project_id: int | None) -> int: ...

    async def add_badge(self, badge: dict, project_id: int | None) -> int: ...

    async def list_since(self, kind: str, last_id: int, project_like: str) -> list[dict]: ...

    async def get_window_start_id(self, kind: str, project_like: str, window: int) -> int: ...


@runtime_checkable
class IssueRepository(Protocol):
    async def create(self, issue: dict) -> int: ...

    async def list_issues(self, selector: IssueSelector, watcher_user_id: int | None = None) -> list[dict]: ...

    async def apply_update(self, issue_id: int, update: UpdateBuilder) -> bool: ...

    async def delete(self, issue_id: int) -> None: ...

    async def add_build(self, issue_id: int, build: dict) -> int: ...

    async def list_builds(self, issue_id: int) -> list[dict]: ...

    async def get_build(self, build_id: int) -> dict | None: ...

    async def update_build_outcome(self, build_id: int, outcome: int) -> None: ...

    async def add_diagnostic(self, issue_id: int, diagnostic: dict) -> None: ...

    async def list_diagnostics(self, issue_id: int) -> list[dict]: ...

    async def add_watcher(self, issue_id: int, user_id: int) -> None: ...

    async def list_watchers(self, issue_id: int) -> list[str]: ...

    async def remove_watcher(self, issue_id: int, user_id: int) -> None: ...


@runtime_checkable
class TelemetryRepository(Protocol):
    async def add_error(self, error: dict, project_id: int | None) -> int: ...

    async def list_errors(self, records: int) -> list[dict]: ...

    async def add_timing(self, timing: dict, project_id: int | None) -> int: ...


def check_dimension_table(table: str) -> str:
    if table not in DIMENSION_TABLES:
        raise ValueError(f"Unknown dimension table: {table}")
    return table
