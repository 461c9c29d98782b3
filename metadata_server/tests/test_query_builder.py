import unittest

from metadata_server.db.issue_queries import BY_ID, BY_RESOLUTION, BY_WATCHER, select_issues, selector_kind
from metadata_server.db.query_builder import NUMERIC, QMARK, SelectBuilder, UpdateBuilder
from metadata_server.models import IssueSelector


class UpdateBuilderTests(unittest.TestCase):
    def test_empty_update_builds_nothing(self) -> None:
        builder = UpdateBuilder("issues")
        self.assertTrue(builder.is_empty())
        self.assertIsNone(builder.build("id", 4))

    def test_assignments_keep_their_order(self) -> None:
        statement = UpdateBuilder("issues").set("summary", "Crash").set("fix_change", 12).build("id", 9)
        self.assertEqual(statement.sql, "UPDATE issues SET summary = ?, fix_change = ? WHERE id = ?")
        self.assertEqual(statement.params, ["Crash", 12, 9])

    def test_numeric_placeholders_are_numbered(self) -> None:
        statement = (
            UpdateBuilder("issues")
            .set("owner_id", 3)
            .set("resolved_at", None)
            .build("id", 9, NUMERIC)
        )
        self.assertEqual(statement.sql, "UPDATE issues SET owner_id = $1, resolved_at = $2 WHERE id = $3")
        self.assertEqual(statement.params, [3, None, 9])


class SelectBuilderTests(unittest.TestCase):
    def test_binds_join_where_and_limit_in_order(self) -> None:
        statement = (
            SelectBuilder(["t.id"], "t")
            .join("JOIN u ON u.t_id = t.id AND u.kind = ?", "x")
            .where("t.a = ?", 1)
            .where("t.b > ?", 2)
            .order_by("t.id DESC")
            .limit(5)
            .build(NUMERIC)
        )
        self.assertEqual(
            statement.sql,
            "SELECT t.id FROM t JOIN u ON u.t_id = t.id AND u.kind = $1 "
            "WHERE (t.a = $2) AND (t.b > $3) ORDER BY t.id DESC LIMIT $4",
        )
        self.assertEqual(statement.params, ["x", 1, 2, 5])

    def test_value_count_mismatch_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            SelectBuilder(["id"], "t").where("a = ? AND b = ?", 1).build(QMARK)

    def test_unknown_placeholder_style_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            SelectBuilder(["id"], "t").build("pyformat")


class IssueQueryTests(unittest.TestCase):
    def test_selector_precedence(self) -> None:
        self.assertEqual(selector_kind(IssueSelector(issue_id=1, user_name="bob", include_resolved=True)), BY_ID)
        self.assertEqual(selector_kind(IssueSelector(user_name="bob", include_resolved=True, limit=3)), BY_WATCHER)
        self.assertEqual(selector_kind(IssueSelector(include_resolved=True)), BY_RESOLUTION)

    def test_by_id_filters_on_id_only(self) -> None:
        statement = select_issues(IssueSelector(issue_id=5, user_name="bob", limit=2))
        self.assertIn("WHERE (issues.id = ?)", statement.sql)
        self.assertIn("0 AS notify", statement.sql)
        self.assertNotIn("issue_watchers", statement.sql)
        self.assertNotIn("ORDER BY", statement.sql)
        self.assertEqual(statement.params, [5])

    def test_by_watcher_joins_watchers_and_sets_notify(self) -> None:
        statement = select_issues(IssueSelector(user_name="bob"), watcher_user_id=12)
        self.assertIn("INNER JOIN issue_watchers", statement.sql)
        self.assertIn("1 AS notify", statement.sql)
        self.assertNotIn("WHERE", statement.sql)
        self.assertEqual(statement.params, [12])

    def test_resolution_filter_orders_newest_first(self) -> None:
        statement = select_issues(IssueSelector(limit=10))
        self.assertIn("WHERE (issues.resolved_at IS NULL)", statement.sql)
        self.assertTrue(statement.sql.endswith("ORDER BY issues.id DESC LIMIT ?"))
        self.assertEqual(statement.params, [10])

    def test_include_resolved_drops_filter_and_limit_when_unset(self) -> None:
        statement = select_issues(IssueSelector(include_resolved=True), style=NUMERIC)
        self.assertNotIn("resolved_at IS NULL", statement.sql)
        self.assertNotIn("LIMIT", statement.sql)
        self.assertEqual(statement.params, [])


if __name__ == "__main__":
    unittest.main()
