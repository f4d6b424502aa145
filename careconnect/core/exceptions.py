"""Domain exception taxonomy and the HTTP handler that maps it."""

from enum import StrEnum

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BusinessLogicError(Exception):
    """Base class for recoverable domain failures surfaced to the caller."""

    code = "business_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ValidationError(BusinessLogicError):
    """Malformed or inconsistent input."""

    code = "validation_error"


class InvalidWindowError(ValidationError):
    """Availability window outside the provider's working hours or days."""

    code = "invalid_window"


class NotFoundError(BusinessLogicError):
    code = "not_found"


class SlotUnavailableError(BusinessLogicError):
    """Slot already booked, blocked, or lost to a concurrent reservation."""

    code = "slot_unavailable"


class InvalidTransitionError(BusinessLogicError):
    code = "invalid_transition"


class FeeNotConfiguredError(BusinessLogicError):
    code = "fee_not_configured"


class PermissionDeniedError(BusinessLogicError):
    code = "permission_denied"


class ConflictError(BusinessLogicError):
    """Uniqueness violation, e.g. a duplicate promo code."""

    code = "conflict"


class PromoRejection(StrEnum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NOT_APPLICABLE = "not_applicable"
    BELOW_MINIMUM = "below_minimum"


class PromoInvalidError(BusinessLogicError):
    code = "promo_invalid"

    def __init__(self, reason: PromoRejection, detail: str | None = None):
        self.reason = reason
        super().__init__(detail or f"Promo code rejected: {reason.value}")


ERROR_STATUS: dict[type[BusinessLogicError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    PromoInvalidError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FeeNotConfiguredError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(exc: BusinessLogicError) -> int:
    """Resolve the HTTP status for an error, honouring subclassing."""
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    return status.HTTP_422_UNPROCESSABLE_ENTITY


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: Request, exc: BusinessLogicError):
        body = {"success": False, "code": exc.code, "message": exc.detail}
        if isinstance(exc, PromoInvalidError):
            body["reason"] = exc.reason.value
        return JSONResponse(body, status_code=status_for(exc))
