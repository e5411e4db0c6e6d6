"""Scheduling error kinds and their HTTP handlers.

Every error raised by the scheduling engine derives from
``BusinessLogicError`` and carries the status code the web layer should use.
None of them is fatal; callers decide whether to resubmit.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(BusinessLogicError):
    """Missing or invalid input, or an unknown/inactive reference."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BusinessLogicError):
    status_code = status.HTTP_404_NOT_FOUND


class OutOfHoursError(BusinessLogicError):
    """Outside business weekdays or business hours."""

    status_code = status.HTTP_400_BAD_REQUEST


class PastDateError(BusinessLogicError):
    status_code = status.HTTP_400_BAD_REQUEST


class ScheduleConflictError(BusinessLogicError):
    """Slot capacity or duration overlap exceeded."""

    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(BusinessLogicError):
    status_code = status.HTTP_400_BAD_REQUEST


class OwnershipError(BusinessLogicError):
    """Portal customer referenced a vehicle or appointment it does not own."""

    status_code = status.HTTP_403_FORBIDDEN


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: Request, exc: BusinessLogicError):
        return JSONResponse(
            {"success": False, "error": exc.kind, "message": exc.detail},
            status_code=exc.status_code,
        )
