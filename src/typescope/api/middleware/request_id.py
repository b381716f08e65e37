"""Request id middleware.

Every request gets an id: the caller's X-Request-Id when it is a short,
printable token, otherwise a fresh uuid4. The id is stored on
request.state, exposed through current_request_id() for log correlation,
and echoed on the response.
"""

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")
_request_id: ContextVar[str | None] = ContextVar("typescope_request_id", default=None)


def current_request_id() -> str | None:
    """Id of the request being handled, or None outside a request."""
    return _request_id.get()


def resolve_request_id(header_value: str | None) -> str:
    """Caller-supplied id if acceptable, else a new uuid4."""
    candidate = (header_value or "").strip()
    if _ACCEPTED_REQUEST_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = _request_id.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s -> %d in %.1f ms (request_id=%s)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        return response
