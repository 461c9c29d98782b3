"""Pydantic models for the metadata wire format.

JSON keys are PascalCase, enumerations travel by name and timestamps as epoch
seconds. Attribute names stay snake_case; models accept either form.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_pascal

from metadata_server.errors import UnknownEnumValue

E = TypeVar("E", bound=Enum)


class BuildResult(str, Enum):
    STARTING = "Starting"
    FAILURE = "Failure"
    WARNING = "Warning"
    SUCCESS = "Success"
    SKIPPED = "Skipped"


class EventType(str, Enum):
    SYNCING = "Syncing"
    # Reviews
    COMPILES = "Compiles"
    DOES_NOT_COMPILE = "DoesNotCompile"
    GOOD = "Good"
    BAD = "Bad"
    UNKNOWN = "Unknown"
    # Starred builds
    STARRED = "Starred"
    UNSTARRED = "Unstarred"
    # Investigations
    INVESTIGATING = "Investigating"
    RESOLVED = "Resolved"


class TelemetryErrorType(str, Enum):
    CRASH = "Crash"


def decode_enum(enum_cls: type[E], value: Any) -> E:
    """Decode a stored enum name, raising ``UnknownEnumValue`` for strangers."""
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownEnumValue(enum_cls.__name__, value) from None


def _coerce_legacy_code(enum_cls: type[Enum], value: Any) -> Any:
    # Older clients send the ordinal instead of the name.
    if isinstance(value, int) and not isinstance(value, bool):
        members = list(enum_cls)
        if 0 <= value < len(members):
            return members[value]
    return value


def to_datetime(value: Any) -> datetime | None:
    """Normalize a stored timestamp (ISO text or driver datetime) to aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _epoch(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp())


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


# ── Sync feed ───────────────────────────────────────────────────────

class BuildData(WireModel):
    id: int = 0
    change_number: int
    build_type: str = ""
    result: BuildResult
    url: str = ""
    project: str = ""
    archive_path: str = ""

    @field_validator("result", mode="before")
    @classmethod
    def _legacy_result(cls, value: Any) -> Any:
        return _coerce_legacy_code(BuildResult, value)


class CommentData(WireModel):
    id: int = 0
    change_number: int
    user_name: str = ""
    text: str = ""
    project: str = ""


class EventData(WireModel):
    id: int = 0
    change: int
    user_name: str = ""
    event_type: EventType = Field(alias="Type")
    project: str = ""

    @field_validator("event_type", mode="before")
    @classmethod
    def _legacy_type(cls, value: Any) -> Any:
        return _coerce_legacy_code(EventType, value)


class LatestData(WireModel):
    last_event_id: int = 0
    last_comment_id: int = 0
    last_build_id: int = 0


# ── Issues ──────────────────────────────────────────────────────────

class IssueData(WireModel):
    id: int = 0
    created_at: Optional[datetime] = None
    retrieved_at: Optional[datetime] = None
    project: str = ""
    summary: str = ""
    owner: str = ""
    nominated_by: str = ""
    acknowledged_at: Optional[datetime] = None
    fix_change: int = 0
    resolved_at: Optional[datetime] = None
    notify: bool = False

    @field_validator("owner", "nominated_by", mode="before")
    @classmethod
    def _null_name(cls, value: Any) -> Any:
        return value or ""

    @field_serializer("created_at", "retrieved_at", "acknowledged_at", "resolved_at")
    def _serialize_timestamp(self, value: Optional[datetime]) -> Optional[int]:
        return _epoch(value)


class IssueUpdateData(WireModel):
    """Partial issue update; every field left as ``None`` is untouched."""

    summary: Optional[str] = None
    owner: Optional[str] = None
    nominated_by: Optional[str] = None
    acknowledged: Optional[bool] = None
    fix_change: Optional[int] = None
    resolved: Optional[bool] = None


class IssueSelector(BaseModel):
    """Which issues to list. Precedence: ``issue_id`` > ``user_name`` > resolution filter."""

    issue_id: Optional[int] = None
    user_name: Optional[str] = None
    include_resolved: bool = False
    limit: Optional[int] = None


class IssueBuildData(WireModel):
    id: int = 0
    stream: str = ""
    change: int = 0
    job_name: str = ""
    job_url: str = ""
    job_step_name: str = ""
    job_step_url: str = ""
    error_url: str = ""
    outcome: int = 0


class IssueBuildUpdateData(WireModel):
    outcome: int


class IssueDiagnosticData(WireModel):
    build_id: Optional[int] = None
    message: str = ""
    url: str = ""


class IssueWatcherData(WireModel):
    user_name: str


class CreatedId(WireModel):
    id: Optional[int] = None


# ── Telemetry ───────────────────────────────────────────────────────

class TelemetryErrorData(WireModel):
    id: int = 0
    error_type: TelemetryErrorType = Field(alias="Type")
    text: str = ""
    user_name: str = ""
    project: Optional[str] = None
    timestamp: datetime
    version: str = ""
    ip_address: str = ""

    @field_validator("error_type", mode="before")
    @classmethod
    def _legacy_type(cls, value: Any) -> Any:
        return _coerce_legacy_code(TelemetryErrorType, value)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> Optional[int]:
        return _epoch(value)


class TelemetryTimingData(WireModel):
    action: str = ""
    result: str = ""
    user_name: str = ""
    project: str = ""
    timestamp: datetime
    duration: float = 0.0

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> Optional[int]:
        return _epoch(value)
