import unittest

import aiosqlite

from metadata_server.db.repositories.activity import SqliteActivityRepository
from metadata_server.db.repositories.dimensions import SqliteDimensionRepository
from metadata_server.db.sqlite_migrations import run_migrations
from metadata_server.errors import UnknownEnumValue
from metadata_server.models import BuildData, BuildResult, CommentData, EventData, EventType
from metadata_server.services.sync_feed import SyncFeedService

MAIN = "//UE4/Main"


class SyncFeedServiceTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        self.service = SyncFeedService(SqliteActivityRepository(self.db), SqliteDimensionRepository(self.db))

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def _event(self, change: int, project: str = MAIN, event_type: EventType = EventType.GOOD) -> int:
        return await self.service.add_event(
            EventData(change=change, user_name="alice", event_type=event_type, project=project)
        )

    async def test_latest_is_zero_for_empty_feeds(self) -> None:
        latest = await self.service.get_latest(MAIN)
        self.assertEqual((latest.last_event_id, latest.last_comment_id, latest.last_build_id), (0, 0, 0))

    async def test_latest_bounds_backlog_to_window(self) -> None:
        ids = {}
        for change in range(1, 151):
            ids[change] = await self._event(change)

        latest = await self.service.get_latest(MAIN)

        self.assertEqual(latest.last_event_id, ids[51])
        delta = await self.service.list_events(MAIN, latest.last_event_id)
        self.assertEqual(len(delta), 99)

    async def test_latest_ignores_other_streams(self) -> None:
        main_id = await self._event(10)
        await self._event(20, project="//UE4/Release")

        latest = await self.service.get_latest(MAIN)
        self.assertEqual(latest.last_event_id, main_id)

    async def test_delta_is_ascending_and_after_watermark(self) -> None:
        first = await self._event(1)
        second = await self._event(2)
        third = await self._event(3)

        events = await self.service.list_events(MAIN, first)

        self.assertEqual([e.id for e in events], [second, third])
        self.assertEqual(events[0].event_type, EventType.GOOD)
        self.assertEqual(events[0].user_name, "alice")

    async def test_delta_filters_projects_precisely(self) -> None:
        main_id = await self._event(1)
        await self._event(2, project="//UE4/MainDev")
        global_id = await self._event(3, project="")
        await self._event(4, project="//Other/Main")

        events = await self.service.list_events(MAIN, 0)

        self.assertEqual([e.id for e in events], [main_id, global_id])

    async def test_empty_scope_returns_only_unscoped_rows(self) -> None:
        await self._event(1)
        global_id = await self._event(2, project="")

        events = await self.service.list_events("", 0)

        self.assertEqual([e.id for e in events], [global_id])

    async def test_wildcard_badges_apply_to_sub_projects(self) -> None:
        wildcard_id = await self.service.add_build(
            BuildData(change_number=5, build_type="Editor", result=BuildResult.SUCCESS, project=MAIN + "/...")
        )
        await self.service.add_comment(
            CommentData(change_number=5, user_name="bob", text="looks good", project=MAIN + "/...")
        )

        builds = await self.service.list_builds(MAIN + "/Engine", 0)
        comments = await self.service.list_comments(MAIN + "/Engine", 0)

        self.assertEqual([b.id for b in builds], [wildcard_id])
        self.assertEqual(builds[0].result, BuildResult.SUCCESS)
        self.assertEqual(builds[0].project, MAIN + "/...")
        self.assertEqual(comments, [])

    async def test_comments_round_trip_through_feed(self) -> None:
        comment_id = await self.service.add_comment(
            CommentData(change_number=7, user_name="bob", text="flaky test", project=MAIN)
        )
        latest = await self.service.get_latest(MAIN)
        comments = await self.service.list_comments(MAIN, 0)

        self.assertEqual(latest.last_comment_id, comment_id)
        self.assertEqual(comments[0].text, "flaky test")

    async def test_unknown_stored_event_type_is_reported(self) -> None:
        await self.db.execute(
            "INSERT INTO user_votes (change_number, user_name, verdict, project) VALUES (1, 'x', 'Exploded', '')"
        )
        await self.db.commit()

        with self.assertRaises(UnknownEnumValue) as ctx:
            await self.service.list_events(MAIN, 0)
        self.assertEqual(ctx.exception.value, "Exploded")


if __name__ == "__main__":
    unittest.main()
