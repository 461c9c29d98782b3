"""API routers for client error reports and timing telemetry."""
from __future__ import annotations

from fastapi import APIRouter

from metadata_server import config
from metadata_server.db import connection
from metadata_server.db.factory import get_dimension_repository, get_telemetry_repository
from metadata_server.models import TelemetryErrorData, TelemetryTimingData
from metadata_server.routers.common import translate_errors
from metadata_server.services.telemetry import TelemetryService

telemetry_router = APIRouter(prefix="/api", tags=["telemetry"])


def _service(db) -> TelemetryService:
    return TelemetryService(get_telemetry_repository(db), get_dimension_repository(db))


@telemetry_router.get("/error", response_model=list[TelemetryErrorData])
async def list_errors(records: int = config.ERROR_RECORDS_DEFAULT):
    """Most recent client error reports, newest first."""
    with translate_errors():
        async with connection.acquire() as db:
            return await _service(db).list_errors(records)


@telemetry_router.post("/error")
async def add_error(error: TelemetryErrorData, version: str = "", ipaddress: str = ""):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_error(error, version, ipaddress)


@telemetry_router.post("/telemetry")
async def add_timing(timing: TelemetryTimingData, version: str = "", ipaddress: str = ""):
    with translate_errors():
        async with connection.acquire() as db:
            await _service(db).add_timing(timing, version, ipaddress)
