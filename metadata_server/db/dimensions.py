"""Find-or-create resolution of dimension rows (users, projects).

``get_or_create`` is the only place the insert-ignore-then-reselect pattern
lives. Two callers racing on an unseen name both succeed and both observe the
id of the single row that wins the insert.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from metadata_server.db.repositories.base import DimensionRepository


@dataclass(frozen=True)
class Dimension:
    table: str
    normalize: Callable[[str], str]


USERS = Dimension("users", str.upper)
PROJECTS = Dimension("projects", lambda name: name)


async def get_or_create(store: DimensionRepository, dimension: Dimension, name: str | None) -> int | None:
    """Return the id for ``name``, creating the row on first reference.

    An empty name means "unset" and resolves to ``None`` without touching storage.
    """
    if not name:
        return None
    key = dimension.normalize(name)
    existing = await store.find_id(dimension.table, key)
    if existing is not None:
        return existing
    return await store.insert_and_select(dimension.table, key)


async def resolve_user_id(store: DimensionRepository, name: str | None) -> int | None:
    return await get_or_create(store, USERS, name)


async def resolve_project_id(store: DimensionRepository, name: str | None) -> int | None:
    return await get_or_create(store, PROJECTS, name)
