"""Response helpers for the admin surface."""

from __future__ import annotations

import logging

from fastapi import status
from fastapi.responses import JSONResponse

from queryloop.exceptions import (
    AuthorizationError,
    CascadeDeletionError,
    MalformedRecordError,
    QueryLoopError,
    StorageError,
)

logger = logging.getLogger(__name__)

SUCCESS = {"success": True}


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def failure(err: QueryLoopError) -> JSONResponse:
    """Map a service error to the admin error contract.

    Caller mistakes and stale ids are 400; storage and cascade failures are 500.
    """
    if isinstance(err, AuthorizationError):
        status_code = err.status_code
    elif isinstance(err, (CascadeDeletionError, StorageError, MalformedRecordError)):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.warning("Admin action failed (%s): %s %s", status_code, err.message, err.context)
    return error_response(err.message, status_code)
