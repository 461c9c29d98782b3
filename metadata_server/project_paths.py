"""Hierarchical project path helpers (``//Depot/Stream/...``)."""
from __future__ import annotations

import re

_STREAM_RE = re.compile(r"(//[A-Za-z0-9.\-_]+/[A-Za-z0-9.\-_]+)")
WILDCARD_SUFFIX = "/..."


def stream_of(path: str) -> str:
    """Return the ``//depot/stream`` prefix of ``path``, or ``path`` itself."""
    match = _STREAM_RE.search(path)
    if match is None:
        return path
    return match.group(1)


def matches_wildcard(pattern: str, candidate: str) -> bool:
    if not pattern.endswith(WILDCARD_SUFFIX):
        return False
    return candidate.startswith(pattern[: -len(WILDCARD_SUFFIX)])


def project_like_pattern(project: str | None) -> str:
    """Coarse LIKE pattern used to scope feed queries by stream."""
    return f"%{stream_of(project) if project else ''}%"


def project_matches(row_project: str | None, project: str, allow_wildcard: bool = False) -> bool:
    # Rows without a project predate project scoping and match every filter.
    if not row_project:
        return True
    if row_project == project:
        return True
    return allow_wildcard and matches_wildcard(row_project, project)
