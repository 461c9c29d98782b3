"""Client error reports and timing telemetry."""
from __future__ import annotations

import logging

from metadata_server.db.dimensions import resolve_project_id
from metadata_server.db.repositories.base import DimensionRepository, TelemetryRepository
from metadata_server.models import (
    TelemetryErrorData,
    TelemetryErrorType,
    TelemetryTimingData,
    decode_enum,
    to_datetime,
)
from metadata_server.observability import track_write

logger = logging.getLogger("metadata.api")


class TelemetryService:
    def __init__(self, telemetry: TelemetryRepository, dimensions: DimensionRepository):
        self.telemetry = telemetry
        self.dimensions = dimensions

    async def add_error(self, error: TelemetryErrorData, version: str, ip_address: str) -> int:
        with track_write("error", project=error.project or ""):
            project_id = await resolve_project_id(self.dimensions, error.project)
            error_id = await self.telemetry.add_error(
                {
                    "error_type": error.error_type.value,
                    "text": error.text,
                    "user_name": error.user_name,
                    "project": error.project,
                    "timestamp": error.timestamp,
                    "version": version,
                    "ip_address": ip_address,
                },
                project_id,
            )
        logger.info(f'Error report "{error.error_type.value}" received from user "{error.user_name}" ({version}).')
        return error_id

    async def list_errors(self, records: int) -> list[TelemetryErrorData]:
        """Most recent error reports, newest first."""
        rows = await self.telemetry.list_errors(records)
        return [
            TelemetryErrorData(
                id=row["id"],
                error_type=decode_enum(TelemetryErrorType, row["type"]),
                text=row.get("text") or "",
                user_name=row.get("user_name") or "",
                project=row.get("project"),
                timestamp=to_datetime(row["timestamp"]),
                version=row.get("version") or "",
                ip_address=row.get("ip_address") or "",
            )
            for row in rows
        ]

    async def add_timing(self, timing: TelemetryTimingData, version: str, ip_address: str) -> int:
        with track_write("telemetry", project=timing.project):
            project_id = await resolve_project_id(self.dimensions, timing.project)
            return await self.telemetry.add_timing(
                {
                    "action": timing.action,
                    "result": timing.result,
                    "user_name": timing.user_name,
                    "project": timing.project,
                    "timestamp": timing.timestamp,
                    "duration": timing.duration,
                    "version": version,
                    "ip_address": ip_address,
                },
                project_id,
            )
