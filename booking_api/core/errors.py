"""
Booking error taxonomy.

Raised by the availability and appointment services and converted to HTTP
responses in one place (see register_exception_handlers) so routes stay thin.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for every domain error; `code` is machine-readable."""

    code = "booking_error"
    status_code = 500

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = context


class ConfigurationError(BookingError):
    """Working-hours data is malformed; the day is treated as closed."""

    code = "invalid_working_hours"
    status_code = 422


class DataUnavailableError(BookingError):
    """Appointment data could not be read for this caller."""

    code = "appointments_unavailable"
    status_code = 503


class StorageUnavailableError(BookingError):
    """The schedule store cannot be reached at all."""

    code = "storage_unavailable"
    status_code = 503


class InvalidTransitionError(BookingError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str, message: str = ""):
        super().__init__(
            message or f"Cannot move appointment from {current} to {target}",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class SlotNoLongerAvailableError(BookingError):
    """Lost the booking race; the caller should pick another slot."""

    code = "slot_no_longer_available"
    status_code = 409


class NotFoundError(BookingError):
    code = "not_found"
    status_code = 404


class PermissionDeniedError(BookingError):
    code = "forbidden"
    status_code = 403


class ValidationError(BookingError):
    code = "invalid_request"
    status_code = 400


def error_payload(exc: BookingError) -> dict:
    payload = {"error": exc.code, "detail": exc.message}
    if exc.context:
        payload["context"] = {k: str(v) for k, v in exc.context.items()}
    return payload


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
