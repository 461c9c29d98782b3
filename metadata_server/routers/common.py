"""Boundary translation of data-access failures into HTTP responses."""
from __future__ import annotations

import logging
from contextlib import contextmanager

from fastapi import HTTPException

from metadata_server.db.connection import STORAGE_ERRORS
from metadata_server.errors import NotFoundError, UnknownEnumValue

logger = logging.getLogger("metadata.api")


@contextmanager
def translate_errors():
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UnknownEnumValue as e:
        logger.error(f"Failed to decode stored row: {e}")
        raise HTTPException(status_code=500, detail="Stored data could not be decoded.")
    except STORAGE_ERRORS as e:
        # Driver messages can carry SQL; they stay in the log.
        logger.warning(f"Database error: {e}")
        raise HTTPException(status_code=500, detail="Database error occurred.")
