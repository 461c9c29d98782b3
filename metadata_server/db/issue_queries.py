"""Issue listing statements shared by the SQLite and PostgreSQL repositories."""
from __future__ import annotations

from metadata_server.db.query_builder import QMARK, SelectBuilder, Statement
from metadata_server.models import IssueSelector

ISSUE_COLUMNS = [
    "issues.id",
    "issues.created_at",
    "issues.project",
    "issues.summary",
    "owner_users.name AS owner",
    "nominated_users.name AS nominated_by",
    "issues.acknowledged_at",
    "issues.fix_change",
    "issues.resolved_at",
]

BY_ID = "id"
BY_WATCHER = "watcher"
BY_RESOLUTION = "resolution"


def selector_kind(selector: IssueSelector) -> str:
    if selector.issue_id is not None:
        return BY_ID
    if selector.user_name:
        return BY_WATCHER
    return BY_RESOLUTION


def select_issues(
    selector: IssueSelector,
    watcher_user_id: int | None = None,
    style: str = QMARK,
) -> Statement:
    """Compose the issue listing for exactly one selector branch."""
    kind = selector_kind(selector)
    notify = "1" if kind == BY_WATCHER else "0"
    query = (
        SelectBuilder([*ISSUE_COLUMNS, f"{notify} AS notify"], "issues")
        .join("LEFT JOIN users AS owner_users ON owner_users.id = issues.owner_id")
        .join("LEFT JOIN users AS nominated_users ON nominated_users.id = issues.nominated_by_id")
    )
    if kind == BY_ID:
        query.where("issues.id = ?", selector.issue_id)
    elif kind == BY_WATCHER:
        query.join(
            "INNER JOIN issue_watchers ON issue_watchers.issue_id = issues.id AND issue_watchers.user_id = ?",
            watcher_user_id,
        )
    else:
        if not selector.include_resolved:
            query.where("issues.resolved_at IS NULL")
        query.order_by("issues.id DESC").limit(selector.limit)
    return query.build(style)
