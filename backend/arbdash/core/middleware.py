"""
Per-request trace IDs and access logging.
"""
from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import get_logger

logger = get_logger(__name__)

TRACE_HEADER = "X-Trace-ID"
TIMING_HEADER = "X-Process-Time"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a trace ID and logs its outcome.

    An incoming ``X-Trace-ID`` header is reused so a client can correlate
    its own logs; otherwise a UUID4 is generated. The ID is exposed to
    handlers as ``request.state.trace_id`` and echoed on the response
    together with the handling time in milliseconds.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        request.state.trace_id = trace_id
        route = f"{request.method} {request.url.path}"
        started = time.perf_counter()

        logger.debug(
            f"-> {route}",
            extra={"extra_data": {
                "trace_id": trace_id,
                "query_params": str(request.query_params),
                "client_ip": request.client.host if request.client else None,
            }},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.error(
                f"{route} raised {type(exc).__name__}",
                extra={"extra_data": {"trace_id": trace_id, "duration_ms": elapsed_ms}},
            )
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[TRACE_HEADER] = trace_id
        response.headers[TIMING_HEADER] = str(elapsed_ms)

        logger.info(
            f"{route} -> {response.status_code}",
            extra={"extra_data": {
                "trace_id": trace_id,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            }},
        )
        return response


__all__ = ["RequestTracingMiddleware", "TRACE_HEADER", "TIMING_HEADER"]
