"""
Global exception handlers.

Maps the dashboard exception hierarchy onto HTTP responses:
ValidationError and request validation failures become 400 with field
details, NotFoundError becomes 404, StoreError and anything unexpected
become 500 with a generic message.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import DashboardException, create_safe_error_dict
from .logging import get_logger

logger = get_logger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def get_trace_id(request: Request) -> str:
    """
    Return the request's trace ID, generating one if middleware did not.

    Args:
        request: FastAPI request object

    Returns:
        Trace ID string
    """
    trace_id = getattr(request.state, "trace_id", None)
    if not trace_id:
        trace_id = str(uuid.uuid4())
        request.state.trace_id = trace_id
    return trace_id


def format_field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Flatten pydantic error entries to ``{field, message, type}``.

    Args:
        errors: Output of ``exc.errors()``

    Returns:
        One entry per failing field
    """
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        formatted.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "value_error"),
        })
    return formatted


async def dashboard_exception_handler(request: Request, exc: DashboardException) -> JSONResponse:
    """
    Handle application exceptions according to their status code.

    Args:
        request: FastAPI request object
        exc: Application exception

    Returns:
        JSONResponse with ``error`` and, for validation errors, ``details``
    """
    trace_id = get_trace_id(request)
    error_details = {
        "path": request.url.path,
        "method": request.method,
        **create_safe_error_dict(exc, trace_id),
    }

    if exc.status_code >= 500:
        logger.error(f"{exc.message}", extra={"extra_data": error_details})
    else:
        logger.info(f"HTTP {exc.status_code}: {exc.message}", extra={"extra_data": error_details})

    content: Dict[str, Any] = {"error": exc.message}
    if exc.status_code == 400 and exc.details is not None:
        content["details"] = exc.details

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers={"X-Trace-ID": trace_id},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report request validation failures as 400 with per-field details.

    Args:
        request: FastAPI request object
        exc: Validation exception

    Returns:
        JSONResponse with field errors
    """
    trace_id = get_trace_id(request)
    details = format_field_errors(exc.errors())

    logger.info(
        f"Validation error on {request.method} {request.url.path}",
        extra={"extra_data": {"trace_id": trace_id, "validation_errors": details}},
    )

    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": details},
        headers={"X-Trace-ID": trace_id},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTP exceptions raised by the framework (unknown routes, 405s).

    Args:
        request: FastAPI request object
        exc: HTTP exception that was raised

    Returns:
        JSONResponse with error details
    """
    trace_id = get_trace_id(request)
    headers = dict(exc.headers or {})
    headers["X-Trace-ID"] = trace_id

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=headers,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle uncaught exceptions with a user-safe 500 response.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSONResponse with user-safe error message
    """
    trace_id = get_trace_id(request)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={"extra_data": {
            "path": request.url.path,
            "method": request.method,
            **create_safe_error_dict(exc, trace_id),
        }},
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "trace_id": trace_id},
        headers={"X-Trace-ID": trace_id},
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(DashboardException, dashboard_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.debug("Exception handlers registered")


__all__ = [
    "dashboard_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "global_exception_handler",
    "register_exception_handlers",
    "format_field_errors",
    "get_trace_id",
]
