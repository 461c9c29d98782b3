"""Observability helpers."""

from metadata_server.observability.otel import (
    initialize,
    record_write,
    shutdown,
    start_span,
    track_write,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_write",
    "track_write",
]
