import unittest
from datetime import datetime, timezone

import aiosqlite

from metadata_server.db.repositories.dimensions import SqliteDimensionRepository
from metadata_server.db.repositories.telemetry import SqliteTelemetryRepository
from metadata_server.db.sqlite_migrations import run_migrations
from metadata_server.models import TelemetryErrorData, TelemetryErrorType, TelemetryTimingData
from metadata_server.services.telemetry import TelemetryService

STAMP = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)


class TelemetryServiceTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        self.dimensions = SqliteDimensionRepository(self.db)
        self.service = TelemetryService(SqliteTelemetryRepository(self.db), self.dimensions)

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def _report(self, text: str, project: str | None = None) -> int:
        return await self.service.add_error(
            TelemetryErrorData(error_type=TelemetryErrorType.CRASH, text=text, user_name="alice", project=project, timestamp=STAMP),
            "1.2.3",
            "10.0.0.1",
        )

    async def test_errors_list_newest_first_and_respect_records(self) -> None:
        first = await self._report("first")
        second = await self._report("second", project="//UE4/Main")
        third = await self._report("third")

        errors = await self.service.list_errors(2)

        self.assertEqual([e.id for e in errors], [third, second])
        self.assertLess(first, second)
        self.assertEqual(errors[1].project, "//UE4/Main")
        self.assertEqual(errors[0].error_type, TelemetryErrorType.CRASH)
        self.assertEqual(errors[0].timestamp, STAMP)
        self.assertEqual(errors[0].version, "1.2.3")
        self.assertEqual(errors[0].ip_address, "10.0.0.1")

    async def test_error_without_project_is_stored_unscoped(self) -> None:
        await self._report("no project")
        async with self.db.execute("SELECT project, project_id FROM errors") as cur:
            row = await cur.fetchone()
        self.assertIsNone(row["project"])
        self.assertIsNone(row["project_id"])

    async def test_timing_sample_resolves_project(self) -> None:
        timing_id = await self.service.add_timing(
            TelemetryTimingData(action="Sync", result="Success", user_name="bob", project="//UE4/Main", timestamp=STAMP, duration=2.5),
            "1.2.3",
            "10.0.0.2",
        )

        project_id = await self.dimensions.find_id("projects", "//UE4/Main")
        async with self.db.execute("SELECT * FROM telemetry WHERE id = ?", (timing_id,)) as cur:
            row = await cur.fetchone()
        self.assertEqual(row["project_id"], project_id)
        self.assertEqual(row["action"], "Sync")
        self.assertAlmostEqual(row["duration"], 2.5)
        self.assertEqual(row["ip_address"], "10.0.0.2")


if __name__ == "__main__":
    unittest.main()
