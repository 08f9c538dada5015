"""
Domain errors raised by the booking core.

Services raise these instead of HTTPException so they stay usable outside a
request (wizard, scripts, tests). `app.main` renders every DomainError as
{"detail": <message>, "error": <code>} with the status below.
"""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409


class DomainError(Exception):
    status_code: int = STATUS_BAD_REQUEST
    code: str = "error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(DomainError):
    """Malformed or out-of-range input."""
    code = "validation_error"


class CapacityExceeded(DomainError):
    """Not enough spots left on the slot; the customer can pick another one."""
    status_code = STATUS_CONFLICT
    code = "capacity_exceeded"


class DiscountInvalid(DomainError):
    """Unknown, inactive, expired or exhausted discount code."""
    code = "discount_invalid"


class NotFound(DomainError):
    status_code = STATUS_NOT_FOUND
    code = "not_found"


class StateConflict(DomainError):
    """Transition not allowed from the booking's current state."""
    status_code = STATUS_CONFLICT
    code = "state_conflict"


def error_payload(exc: DomainError) -> dict:
    body = {"detail": exc.message, "error": exc.code}
    if exc.field:
        body["field"] = exc.field
    return body


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))
