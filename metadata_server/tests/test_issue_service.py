import unittest

import aiosqlite

from metadata_server.db.repositories.dimensions import SqliteDimensionRepository
from metadata_server.db.repositories.issues import SqliteIssueRepository
from metadata_server.db.sqlite_migrations import run_migrations
from metadata_server.errors import NotFoundError
from metadata_server.models import (
    IssueBuildData,
    IssueData,
    IssueDiagnosticData,
    IssueSelector,
    IssueUpdateData,
)
from metadata_server.services.issues import IssueService


class IssueServiceTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        self.service = IssueService(SqliteIssueRepository(self.db), SqliteDimensionRepository(self.db))

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def _create(self, summary: str = "Editor crashes on load", **fields) -> int:
        return await self.service.create_issue(IssueData(project="//UE4/Main", summary=summary, **fields))

    async def test_create_resolves_names_and_stamps_time(self) -> None:
        issue_id = await self._create(owner="alice", nominated_by="bob")

        issue = await self.service.get_issue(issue_id)

        self.assertEqual(issue.owner, "ALICE")
        self.assertEqual(issue.nominated_by, "BOB")
        self.assertIsNotNone(issue.created_at)
        self.assertIsNotNone(issue.retrieved_at)
        self.assertIsNone(issue.resolved_at)
        self.assertFalse(issue.notify)

    async def test_create_without_owner_reads_back_empty(self) -> None:
        issue = await self.service.get_issue(await self._create())
        self.assertEqual(issue.owner, "")
        self.assertEqual(issue.nominated_by, "")

    async def test_long_summary_is_sanitized(self) -> None:
        issue = await self.service.get_issue(await self._create(summary="s" * 500))
        self.assertEqual(len(issue.summary), 200)
        self.assertTrue(issue.summary.endswith("..."))

    async def test_missing_issue_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.service.get_issue(404)

    async def test_empty_update_is_a_noop(self) -> None:
        issue_id = await self._create(owner="alice")
        before = await self.service.get_issue(issue_id)

        applied = await self.service.update_issue(issue_id, IssueUpdateData())

        after = await self.service.get_issue(issue_id)
        self.assertFalse(applied)
        self.assertEqual(before.model_dump(exclude={"retrieved_at"}), after.model_dump(exclude={"retrieved_at"}))

    async def test_update_applies_only_supplied_fields(self) -> None:
        issue_id = await self._create(owner="alice")

        applied = await self.service.update_issue(issue_id, IssueUpdateData(owner="carol", fix_change=1234))

        issue = await self.service.get_issue(issue_id)
        self.assertTrue(applied)
        self.assertEqual(issue.owner, "CAROL")
        self.assertEqual(issue.fix_change, 1234)
        self.assertEqual(issue.summary, "Editor crashes on load")

    async def test_tri_state_flags_set_and_clear_timestamps(self) -> None:
        issue_id = await self._create()

        await self.service.update_issue(issue_id, IssueUpdateData(acknowledged=True, resolved=True))
        flagged = await self.service.get_issue(issue_id)
        await self.service.update_issue(issue_id, IssueUpdateData(resolved=False))
        cleared = await self.service.get_issue(issue_id)

        self.assertIsNotNone(flagged.acknowledged_at)
        self.assertIsNotNone(flagged.resolved_at)
        self.assertIsNotNone(cleared.acknowledged_at)
        self.assertIsNone(cleared.resolved_at)

    async def test_listing_hides_resolved_unless_requested(self) -> None:
        open_id = await self._create(summary="open")
        resolved_id = await self._create(summary="resolved")
        await self.service.update_issue(resolved_id, IssueUpdateData(resolved=True))

        open_only = await self.service.list_issues(IssueSelector())
        everything = await self.service.list_issues(IssueSelector(include_resolved=True))
        limited = await self.service.list_issues(IssueSelector(include_resolved=True, limit=1))

        self.assertEqual([i.id for i in open_only], [open_id])
        self.assertEqual([i.id for i in everything], [resolved_id, open_id])
        self.assertEqual([i.id for i in limited], [resolved_id])

    async def test_watched_issues_include_resolved_and_notify(self) -> None:
        watched_id = await self._create(summary="watched")
        await self._create(summary="unwatched")
        await self.service.add_watcher(watched_id, "bob")
        await self.service.update_issue(watched_id, IssueUpdateData(resolved=True))

        issues = await self.service.list_issues(IssueSelector(user_name="BOB", limit=0))

        self.assertEqual([i.id for i in issues], [watched_id])
        self.assertTrue(issues[0].notify)

    async def test_issue_id_takes_precedence_over_user(self) -> None:
        issue_id = await self._create()
        await self._create(summary="other")

        issues = await self.service.list_issues(IssueSelector(issue_id=issue_id, user_name="nobody"))

        self.assertEqual([i.id for i in issues], [issue_id])
        self.assertFalse(issues[0].notify)

    async def test_issue_id_takes_precedence_over_resolution_filter(self) -> None:
        issue_id = await self._create()
        await self._create(summary="newer open issue")
        await self.service.update_issue(issue_id, IssueUpdateData(resolved=True))

        issues = await self.service.list_issues(IssueSelector(issue_id=issue_id, include_resolved=False, limit=1))

        self.assertEqual([i.id for i in issues], [issue_id])
        self.assertIsNotNone(issues[0].resolved_at)

    async def test_watchers_are_idempotent_and_removable(self) -> None:
        issue_id = await self._create()
        await self.service.add_watcher(issue_id, "bob")
        await self.service.add_watcher(issue_id, "Bob")
        await self.service.add_watcher(issue_id, "alice")

        self.assertEqual(await self.service.list_watchers(issue_id), ["ALICE", "BOB"])

        await self.service.remove_watcher(issue_id, "bob")
        self.assertEqual(await self.service.list_watchers(issue_id), ["ALICE"])

    async def test_builds_can_be_added_fetched_and_updated(self) -> None:
        issue_id = await self._create()
        build_id = await self.service.add_build(
            issue_id,
            IssueBuildData(stream="//UE4/Main", change=100, job_name="Nightly", outcome=1),
        )

        await self.service.update_build(build_id, 2)
        build = await self.service.get_build(build_id)
        builds = await self.service.list_builds(issue_id)

        self.assertEqual(build.change, 100)
        self.assertEqual(build.outcome, 2)
        self.assertEqual([b.id for b in builds], [build_id])

    async def test_missing_build_raises_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.service.get_build(99)

    async def test_sub_resources_require_existing_issue(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.service.add_build(12, IssueBuildData(stream="//UE4/Main"))
        with self.assertRaises(NotFoundError):
            await self.service.add_watcher(12, "bob")

    async def test_diagnostic_message_is_sanitized(self) -> None:
        issue_id = await self._create()
        await self.service.add_diagnostic(issue_id, IssueDiagnosticData(message="e" * 1500, url="http://log"))

        diagnostics = await self.service.list_diagnostics(issue_id)

        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(len(diagnostics[0].message), 1000)
        self.assertIsNone(diagnostics[0].build_id)

    async def test_delete_removes_issue_and_children(self) -> None:
        issue_id = await self._create()
        build_id = await self.service.add_build(issue_id, IssueBuildData(stream="//UE4/Main", change=1))
        await self.service.add_diagnostic(issue_id, IssueDiagnosticData(build_id=build_id, message="boom"))
        await self.service.add_watcher(issue_id, "bob")

        await self.service.delete_issue(issue_id)

        with self.assertRaises(NotFoundError):
            await self.service.get_issue(issue_id)
        self.assertEqual(await self.service.list_builds(issue_id), [])
        self.assertEqual(await self.service.list_diagnostics(issue_id), [])
        self.assertEqual(await self.service.list_watchers(issue_id), [])


if __name__ == "__main__":
    unittest.main()
