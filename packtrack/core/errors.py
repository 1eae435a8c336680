from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


class PackTrackError(Exception):
    """Base class for domain errors that cross the service boundary."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "packtrack_error"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class SlotNotFoundError(PackTrackError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "slot_not_found"

    def __init__(self, slot_id: int) -> None:
        super().__init__(f"Slot {slot_id} does not exist", details={"slot_id": slot_id})
        self.slot_id = slot_id


class NoSlotSelectedError(PackTrackError):
    status_code = status.HTTP_409_CONFLICT
    code = "no_slot_selected"

    def __init__(self) -> None:
        super().__init__("No slot selected")


class NoPendingConfirmationError(PackTrackError):
    status_code = status.HTTP_409_CONFLICT
    code = "no_pending_confirmation"

    def __init__(self) -> None:
        super().__init__("There is no scan waiting for sold-out confirmation")


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.encoders import jsonable_encoder
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
        )
    raise exc


async def domain_exception_handler(request: Request, exc: PackTrackError):
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


__all__ = [
    "ErrorEnvelope",
    "NoPendingConfirmationError",
    "NoSlotSelectedError",
    "PackTrackError",
    "SlotNotFoundError",
    "domain_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
]
