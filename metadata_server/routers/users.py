"""API router for user id lookup."""
from __future__ import annotations

from fastapi import APIRouter

from metadata_server.db import connection
from metadata_server.db.dimensions import resolve_user_id
from metadata_server.db.factory import get_dimension_repository
from metadata_server.models import CreatedId
from metadata_server.routers.common import translate_errors

users_router = APIRouter(prefix="/api/user", tags=["users"])


@users_router.get("", response_model=CreatedId)
async def get_user(name: str = ""):
    """Id of the named user, registering the name on first sight."""
    with translate_errors():
        async with connection.acquire() as db:
            user_id = await resolve_user_id(get_dimension_repository(db), name)
    return CreatedId(id=user_id)
