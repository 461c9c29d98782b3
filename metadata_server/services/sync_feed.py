"""Sync feed: cursor computation, delta reads and submissions for events,
comments and build badges.

Storage scopes feed queries coarsely (``LIKE '%//Depot/Stream%'``) so the
indexes stay useful; the exact inclusion test runs here afterwards.
"""
from __future__ import annotations

import logging
from typing import Any

from metadata_server import config
from metadata_server.db.dimensions import resolve_project_id
from metadata_server.db.repositories.base import (
    BUILDS,
    COMMENTS,
    EVENTS,
    ActivityRepository,
    DimensionRepository,
)
from metadata_server.models import (
    BuildData,
    BuildResult,
    CommentData,
    EventData,
    EventType,
    LatestData,
    decode_enum,
)
from metadata_server.observability import track_write
from metadata_server.project_paths import project_like_pattern, project_matches

logger = logging.getLogger("metadata.api")


def _event_from_row(row: dict[str, Any]) -> EventData:
    return EventData(
        id=row["id"],
        change=row["change_number"],
        user_name=row.get("user_name") or "",
        event_type=decode_enum(EventType, row["verdict"]),
        project=row.get("project") or "",
    )


def _comment_from_row(row: dict[str, Any]) -> CommentData:
    return CommentData(
        id=row["id"],
        change_number=row["change_number"],
        user_name=row.get("user_name") or "",
        text=row.get("text") or "",
        project=row.get("project") or "",
    )


def _build_from_row(row: dict[str, Any]) -> BuildData:
    return BuildData(
        id=row["id"],
        change_number=row["change_number"],
        build_type=row.get("build_type") or "",
        result=decode_enum(BuildResult, row["result"]),
        url=row.get("url") or "",
        project=row.get("project") or "",
        archive_path=row.get("archive_path") or "",
    )


class SyncFeedService:
    def __init__(self, activity: ActivityRepository, dimensions: DimensionRepository):
        self.activity = activity
        self.dimensions = dimensions

    async def get_latest(self, project: str | None = None) -> LatestData:
        """Watermarks bounding a fresh client's backlog to one window per feed."""
        project_like = project_like_pattern(project)
        window = config.CURSOR_WINDOW_ROWS
        return LatestData(
            last_event_id=await self.activity.get_window_start_id(EVENTS, project_like, window),
            last_comment_id=await self.activity.get_window_start_id(COMMENTS, project_like, window),
            last_build_id=await self.activity.get_window_start_id(BUILDS, project_like, window),
        )

    async def read_delta(self, kind: str, project: str, last_id: int) -> list[dict]:
        rows = await self.activity.list_since(kind, last_id, project_like_pattern(project))
        allow_wildcard = kind == BUILDS
        return [
            row for row in rows
            if project_matches(row.get("project"), project, allow_wildcard=allow_wildcard)
        ]

    async def list_events(self, project: str, last_event_id: int) -> list[EventData]:
        return [_event_from_row(r) for r in await self.read_delta(EVENTS, project, last_event_id)]

    async def list_comments(self, project: str, last_comment_id: int) -> list[CommentData]:
        return [_comment_from_row(r) for r in await self.read_delta(COMMENTS, project, last_comment_id)]

    async def list_builds(self, project: str, last_build_id: int) -> list[BuildData]:
        return [_build_from_row(r) for r in await self.read_delta(BUILDS, project, last_build_id)]

    async def add_event(self, event: EventData) -> int:
        with track_write(EVENTS, project=event.project):
            project_id = await resolve_project_id(self.dimensions, event.project)
            event_id = await self.activity.add_event(
                {
                    "change": event.change,
                    "user_name": event.user_name,
                    "event_type": event.event_type.value,
                    "project": event.project,
                },
                project_id,
            )
        logger.info(
            f'User "{event.user_name}" sent event "{event.event_type.value}" '
            f"for {event.project}@{event.change}."
        )
        return event_id

    async def add_comment(self, comment: CommentData) -> int:
        with track_write(COMMENTS, project=comment.project):
            project_id = await resolve_project_id(self.dimensions, comment.project)
            comment_id = await self.activity.add_comment(
                {
                    "change_number": comment.change_number,
                    "user_name": comment.user_name,
                    "text": comment.text,
                    "project": comment.project,
                },
                project_id,
            )
        logger.info(
            f'Comment by user "{comment.user_name}" successfully updated for '
            f'{comment.project}@{comment.change_number} to: "{comment.text}".'
        )
        return comment_id

    async def add_build(self, build: BuildData) -> int:
        with track_write(BUILDS, project=build.project):
            project_id = await resolve_project_id(self.dimensions, build.project)
            badge_id = await self.activity.add_badge(
                {
                    "change_number": build.change_number,
                    "build_type": build.build_type,
                    "result": build.result.value,
                    "url": build.url,
                    "archive_path": build.archive_path,
                },
                project_id,
            )
        logger.info(
            f'Build badge "{build.build_type}" successfully updated for '
            f'{build.project}@{build.change_number} to status "{build.result.value}".'
        )
        return badge_id
