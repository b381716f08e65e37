"""TypeScope API error handling.

Exception handlers turn every failure into the standard error envelope
(see error_model.make_error_response):

- TypeScopeHttpError: route-level errors with an explicit status and code
- TypeScopeError: domain errors, mapped by DOMAIN_ERROR_STATUS
- HTTPException: FastAPI/Starlette HTTP exceptions
- RequestValidationError: request body/query validation errors
- Exception: catch-all (500, no internals exposed)
"""

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from typescope.api.error_model import get_error_code_for_status, make_error_response
from typescope.errors import (
    AuditWriteFailure,
    ConcurrentModificationError,
    ConfigurationError,
    EnhancementFailure,
    InputValidationError,
    InvalidEnhancementTransitionError,
    OverrideStoreUnavailable,
    SnapshotNotFoundError,
    TypeScopeError,
)

logger = logging.getLogger(__name__)


class TypeScopeHttpError(Exception):
    """Route-level HTTP error with a structured envelope.

    Attributes:
        status_code: HTTP status code.
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


# (status, code); first matching class wins, so subclasses come first
DOMAIN_ERROR_STATUS: tuple[tuple[type[TypeScopeError], int, str], ...] = (
    (InputValidationError, 422, "INVALID_RESPONSES"),
    (ConfigurationError, 422, "INVALID_CONFIGURATION"),
    (ConcurrentModificationError, 409, "CONFIG_CONFLICT"),
    (SnapshotNotFoundError, 404, "SNAPSHOT_NOT_FOUND"),
    (InvalidEnhancementTransitionError, 409, "INVALID_TRANSITION"),
    (EnhancementFailure, 502, "ENHANCEMENT_FAILED"),
    (AuditWriteFailure, 503, "AUDIT_WRITE_FAILED"),
    (OverrideStoreUnavailable, 503, "STORE_UNAVAILABLE"),
)


def _domain_details(exc: TypeScopeError) -> dict[str, Any] | None:
    if isinstance(exc, InputValidationError):
        return exc.details or None
    if isinstance(exc, ConfigurationError):
        return {"framework": exc.framework} if exc.framework else None
    if isinstance(exc, ConcurrentModificationError):
        return {
            "expected_version": exc.expected_version,
            "actual_version": exc.actual_version,
        }
    if isinstance(exc, SnapshotNotFoundError):
        return {"snapshot_id": exc.snapshot_id}
    if isinstance(exc, InvalidEnhancementTransitionError):
        return {"current": exc.current, "target": exc.target}
    if isinstance(exc, EnhancementFailure):
        return {"stage": exc.stage}
    if isinstance(exc, AuditWriteFailure):
        entry_id = getattr(exc.entry, "id", None)
        return {"committed": exc.committed, "entry_id": entry_id}
    return None


async def typescope_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for TypeScopeHttpError."""
    assert isinstance(exc, TypeScopeHttpError)

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status_code,
        details=exc.details,
    )


async def typescope_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for domain errors."""
    assert isinstance(exc, TypeScopeError)

    for error_type, status, code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_type):
            if status >= 500:
                logger.warning("Request failed with %s: %s", type(exc).__name__, exc)
            return make_error_response(
                request,
                code=code,
                message=str(exc),
                http_status=status,
                details=_domain_details(exc),
            )
    return await generic_exception_handler(request, exc)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for HTTPException."""
    assert isinstance(exc, HTTPException)

    code = get_error_code_for_status(exc.status_code)
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    return make_error_response(
        request,
        code=code,
        message=message,
        http_status=exc.status_code,
        details=None,
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for RequestValidationError.

    Reports the failing field and message only, not raw validation internals.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: 500 with a generic message, exception logged."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": request_id},
    )

    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
        details=None,
    )
