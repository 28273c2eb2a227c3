"""HTTP middleware."""

from __future__ import annotations

import time

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from vinylmatch.core.tracing import trace_context

logger = structlog.get_logger("vinylmatch.middleware")

TRACE_HEADER = "X-Trace-ID"


class TracingMiddleware(BaseHTTPMiddleware):
    """Run each request inside a trace context and report the id back.

    A caller-supplied X-Trace-ID is reused so traces can span services.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with trace_context(request.headers.get(TRACE_HEADER)) as trace_id:
            started = time.perf_counter()
            response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id

            logger.debug(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
