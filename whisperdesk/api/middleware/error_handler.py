"""
JSON error envelope for the session API.

Every failure response has the shape ``{"detail", "code", "timestamp"}`` so
clients polling the session can show the message and branch on the code
(``ORCHESTRATOR_NOT_RUNNING`` while the server is starting, ``SAMPLE_NOT_FOUND``
for a bad path, ...).
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from whisperdesk.core.exceptions import WhisperDeskError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, detail: str, code: str, timestamp: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors, bad request bodies and crashes onto the envelope."""

    @app.exception_handler(WhisperDeskError)
    async def whisperdesk_error_handler(_request: Request, exc: WhisperDeskError) -> JSONResponse:
        return _envelope(exc.status_code, exc.detail, exc.code, exc.timestamp)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(422, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Session internals stay in the server log
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _envelope(500, "Internal server error", "INTERNAL_ERROR")
