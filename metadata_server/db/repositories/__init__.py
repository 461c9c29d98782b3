"""Repository package for database access."""

from .activity import SqliteActivityRepository
from .dimensions import SqliteDimensionRepository
from .issues import SqliteIssueRepository
from .telemetry import SqliteTelemetryRepository

__all__ = [
    "SqliteActivityRepository",
    "SqliteDimensionRepository",
    "SqliteIssueRepository",
    "SqliteTelemetryRepository",
]
