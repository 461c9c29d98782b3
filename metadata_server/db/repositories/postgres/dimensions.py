"""PostgreSQL implementation of DimensionRepository."""
from __future__ import annotations

import asyncpg

from metadata_server.db.repositories.base import check_dimension_table


class PostgresDimensionRepository:
    """PostgreSQL-backed user/project name lookup."""

    def __init__(self, db: asyncpg.Connection):
        self.db = db

    async def find_id(self, table: str, name: str) -> int | None:
        table = check_dimension_table(table)
        return await self.db.fetchval(f"SELECT id FROM {table} WHERE name = $1", name)

    async def insert_and_select(self, table: str, name: str) -> int:
        table = check_dimension_table(table)
        async with self.db.transaction():
            await self.db.execute(
                f"INSERT INTO {table} (name) VALUES ($1) ON CONFLICT (name) DO NOTHING",
                name,
            )
            return await self.db.fetchval(f"SELECT id FROM {table} WHERE name = $1", name)
