"""SQLite implementation of DimensionRepository."""
from __future__ import annotations

import aiosqlite

from metadata_server.db.connection import sqlite_transaction
from metadata_server.db.repositories.base import check_dimension_table


class SqliteDimensionRepository:
    """SQLite-backed user/project name lookup."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def find_id(self, table: str, name: str) -> int | None:
        table = check_dimension_table(table)
        async with self.db.execute(f"SELECT id FROM {table} WHERE name = ?", (name,)) as cur:
            row = await cur.fetchone()
            return row[0] if row else None

    async def insert_and_select(self, table: str, name: str) -> int:
        table = check_dimension_table(table)
        async with sqlite_transaction(self.db):
            await self.db.execute(f"INSERT OR IGNORE INTO {table} (name) VALUES (?)", (name,))
            async with self.db.execute(f"SELECT id FROM {table} WHERE name = ?", (name,)) as cur:
                row = await cur.fetchone()
        return row[0]
