"""Error envelope shared by every TypeScope API error path.

Clients always receive `{code, message, details, request_id}`; details
carry identifiers and versions, never response vectors or override
payloads.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from typescope.api.middleware.request_id import REQUEST_ID_HEADER, resolve_request_id


class ErrorEnvelope(BaseModel):
    """Body of every non-2xx response."""

    code: str = Field(..., description="Machine-readable code, e.g. CONFIG_CONFLICT")
    message: str
    details: dict[str, Any] | None = None
    request_id: str


# OpenAPI documentation for the statuses the /v1 routers can return
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorEnvelope, "description": description}
    for status, description in (
        (404, "Snapshot or user overrides not found"),
        (409, "Stale config version or invalid enhancement step"),
        (422, "Invalid responses, overrides or request body"),
        (502, "Clarification question generation or processing failed"),
        (503, "Config store or audit trail unavailable"),
    )
}

HTTP_STATUS_TO_CODE: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}


def get_error_code_for_status(status_code: int) -> str:
    return HTTP_STATUS_TO_CODE.get(status_code, "ERROR")


def _request_id(request: Request) -> str:
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id is not None:
        return request_id
    return resolve_request_id(request.headers.get(REQUEST_ID_HEADER))


def make_error_response(
    request: Request,
    *,
    code: str,
    message: str,
    http_status: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error response with the standard envelope.

    Args:
        request: Incoming request; its id is reused when the middleware ran.
        code: Machine-readable error code.
        message: Human-readable error message.
        http_status: HTTP status code.
        details: Optional extra context.

    Returns:
        JSONResponse carrying the envelope and the X-Request-Id header.
    """
    envelope = ErrorEnvelope(
        code=code, message=message, details=details, request_id=_request_id(request)
    )
    return JSONResponse(
        status_code=http_status,
        content=envelope.model_dump(mode="json"),
        headers={REQUEST_ID_HEADER: envelope.request_id},
    )
