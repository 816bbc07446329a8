"""Custom exceptions for the dashboard backend."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional


class DashboardException(Exception):
    """Base exception for the dashboard application."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Any] = None,
        trace_id: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(self.message)


class ValidationError(DashboardException):
    """Raised when request data fails validation."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None, **kwargs: Any):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(DashboardException):
    """Raised when a record is absent and no fallback applies."""

    status_code = 404

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="NOT_FOUND", **kwargs)


class StoreError(DashboardException):
    """
    Raised when the persistence layer fails.

    ``message`` is safe to return to clients; the underlying cause is only
    logged.
    """

    status_code = 500

    def __init__(self, message: str, error_code: str = "STORE_ERROR", **kwargs: Any):
        super().__init__(message, error_code=error_code, **kwargs)


class DuplicateKeyError(StoreError):
    """Raised when a unique constraint (username, txHash) is violated."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="DUPLICATE_KEY", **kwargs)


def create_safe_error_dict(error: Exception, trace_id: str) -> Dict[str, Any]:
    """
    Create an error dictionary for logging.

    Args:
        error: Exception object
        trace_id: Trace ID for correlation

    Returns:
        Error dictionary for logging
    """
    error_dict: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "trace_id": trace_id,
    }

    if isinstance(error, DashboardException):
        error_dict["error_code"] = error.error_code
        if error.details is not None:
            error_dict["details"] = error.details

    cause = error.__cause__
    if cause is not None:
        error_dict["cause"] = f"{type(cause).__name__}: {cause}"

    return error_dict


__all__ = [
    "DashboardException",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "DuplicateKeyError",
    "create_safe_error_dict",
]
