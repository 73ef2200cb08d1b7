"""Error Handlers — map service errors onto the operational API.

Invariants:
    - ReconcilerError → its own http_status and to_response() envelope
    - Log level follows the error's severity; 4xx lookups never log at ERROR
    - Anything else → 500 with a fixed envelope, exception logged with traceback

Design Decisions:
    - No request-validation layer: the operational routes take no parameters or bodies
    - Kept out of main.py so the app module only wires things together
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from reconciler.core.errors import ErrorSeverity, ReconcilerError

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

INTERNAL_ERROR_BODY = {
    "error": {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
        "category": "internal",
        "severity": ErrorSeverity.CRITICAL.value,
    },
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReconcilerError, reconciler_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)


def _log_level(exc: ReconcilerError) -> int:
    if exc.http_status < 500:
        return min(_LOG_LEVELS[exc.severity], logging.WARNING)
    return _LOG_LEVELS[exc.severity]


async def reconciler_error_handler(
    request: Request, exc: ReconcilerError,
) -> JSONResponse:
    logger.log(
        _log_level(exc), "%s %s failed: %s",
        request.method, request.url.path, exc.message,
        extra=exc.to_log_extra(),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path,
        extra={"error_code": "INTERNAL_ERROR"},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=INTERNAL_ERROR_BODY,
    )
