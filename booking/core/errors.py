"""
Centralized error handling for booking operations.
Services raise these domain errors; a single handler turns them into HTTP responses
so routes stay thin.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# HTTP status codes for known error categories
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409

MSG_SLOT_UNAVAILABLE = "Slot no longer available"


class BookingError(Exception):
    """Base class for every error the booking engine reports to callers"""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed input: dates, times, ranges, weekdays, step sizes"""

    status_code = STATUS_BAD_REQUEST
    code = "validation_error"


class NotFoundError(BookingError):
    """A referenced record is missing or belongs to someone else"""

    status_code = STATUS_NOT_FOUND
    code = "not_found"


class AuthorizationError(BookingError):
    """The actor exists but may not perform the action"""

    status_code = STATUS_FORBIDDEN
    code = "forbidden"


class SlotConflictError(BookingError):
    """The requested slot is taken. Callers should re-query availability and retry."""

    status_code = STATUS_CONFLICT
    code = "conflict"
    retryable = True

    def __init__(self, message: str = MSG_SLOT_UNAVAILABLE):
        super().__init__(message)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        f"Request rejected: {exc.code}: {exc.message}",
        extra={"correlation_id": correlation_id, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the domain error handler to the application"""
    app.add_exception_handler(BookingError, booking_error_handler)
