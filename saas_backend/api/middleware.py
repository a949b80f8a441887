"""Request trace middleware.

Every request gets a correlation id exposed as the `x-trace-id` header, on
`request.state.trace_id`, and in structlog context vars so log lines emitted
while handling the request carry `trace_id`. One access log line is written
per request. Exceptions no route handler converted are rendered here as
the standard error envelope.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from saas_backend.errors import error_from_exception, error_to_response

TRACE_HEADER = "x-trace-id"

# Typical UUIDs are 36 chars.
_MAX_TRACE_LEN = 128

logger = structlog.stdlib.get_logger(__name__)


def _sanitize_inbound_trace(raw: str | None) -> str | None:
    """Return a usable inbound trace id, or `None` when missing or oversized."""

    if raw is None:
        return None
    value = raw.strip()
    if not value or len(value) > _MAX_TRACE_LEN:
        return None
    return value


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """Attach, log and echo a trace id for every request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        trace_id = _sanitize_inbound_trace(request.headers.get(TRACE_HEADER)) or str(uuid.uuid4())
        request.state.trace_id = trace_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)
        started_at = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as error:  # pylint: disable=broad-exception-caught
            # Untyped failures end here so the server never sees them and
            # keeps the connection open.
            response = error_to_response(error_from_exception(error))

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started_at) * 1000, 2),
        )
        if TRACE_HEADER not in response.headers:
            response.headers[TRACE_HEADER] = trace_id
        return response
