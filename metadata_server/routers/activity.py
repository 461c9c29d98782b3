"""API routers for the sync feed: cursors, build badges, comments and events."""
from __future__ import annotations

from fastapi import APIRouter

from metadata_server.db import connection
from metadata_server.db.factory import get_activity_repository, get_dimension_repository
from metadata_server.models import BuildData, CommentData, EventData, LatestData
from metadata_server.routers.common import translate_errors
from metadata_server.services.sync_feed import SyncFeedService

activity_router = APIRouter(prefix="/api", tags=["activity"])


def _service(db) -> SyncFeedService:
    return SyncFeedService(get_activity_repository(db), get_dimension_repository(db))


@activity_router.get("/latest", response_model=LatestData)
async def get_latest(project: str = ""):
    """Starting watermarks for a client with no sync history."""
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).get_latest(project or None)


@activity_router.get("/build", response_model=list[BuildData])
async def list_builds(project: str = "", lastbuildid: int = 0):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_builds(project, lastbuildid)


@activity_router.post("/build")
async def add_build(build: BuildData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_build(build)


@activity_router.get("/comment", response_model=list[CommentData])
async def list_comments(project: str = "", lastcommentid: int = 0):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_comments(project, lastcommentid)


@activity_router.post("/comment")
async def add_comment(comment: CommentData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_comment(comment)


@activity_router.get("/event", response_model=list[EventData])
async def list_events(project: str = "", lasteventid: int = 0):
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_events(project, lasteventid)


@activity_router.post("/event")
async def add_event(event: EventData):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_event(event)
