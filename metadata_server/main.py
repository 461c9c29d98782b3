"""Metadata server FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from metadata_server import config
from metadata_server.routers.activity import activity_router
from metadata_server.routers.issues import issue_builds_router, issues_router
from metadata_server.routers.telemetry import telemetry_router
from metadata_server.routers.users import users_router

from metadata_server.db import connection, migrations
from metadata_server.observability import initialize as initialize_observability, shutdown as shutdown_observability

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("metadata")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Metadata server starting up")
    initialize_observability(app)

    # 1. Initialize DB connection
    db = await connection.get_connection()

    # 2. Run migrations
    await migrations.run_migrations(db)

    yield

    logger.info("Metadata server shutting down")
    shutdown_observability(app)
    await connection.close_connection()


app = FastAPI(
    title="Metadata API",
    description="Sync feed, issue tracker and telemetry backend for build/review clients",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(activity_router)
app.include_router(issues_router)
app.include_router(issue_builds_router)
app.include_router(telemetry_router)
app.include_router(users_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "db": "connected" if connection.is_connected() else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("metadata_server.main:app", host=config.HOST, port=config.PORT)
