"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Handlers never write error responses themselves. They RAISE one of the
typed errors below and the ErrorHandlingMiddleware turns it into a JSON
response. That keeps "category → status code" in exactly one place.

    ┌──────────────────────────────┬────────┬─────────────────────────────┐
    │ Exception                    │ Status │ Typical cause               │
    ├──────────────────────────────┼────────┼─────────────────────────────┤
    │ BadRequestError              │  400   │ missing field, bad JSON     │
    │ NotFoundError                │  404   │ unknown id / unknown route  │
    │ MethodNotAllowedError        │  405   │ route exists, wrong method  │
    │ ConflictError                │  409   │ conflicting resource state  │
    │ UnsupportedOperationError    │  501   │ operation not implemented   │
    │ anything else                │  500   │ bugs                        │
    └──────────────────────────────┴────────┴─────────────────────────────┘

Every error body has the same shape:

    {"error": "Product not found", "status": 404,
     "path": "/api/products/999", "timestamp": "2026-01-01T12:00:00+00:00"}

=============================================================================
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from .http.status_codes import HTTPStatus, reason_phrase


class APIError(Exception):
    """
    Base class for errors whose message is safe to show to the client.

    Attributes:
        message: Client-facing description ("Product not found").
        status: HTTP status the error maps to.
        headers: Extra response headers (e.g. ``Allow`` for 405).
    """

    status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        status: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        if status is not None:
            self.status = status
        self.message = message or reason_phrase(self.status)
        self.headers = dict(headers or {})
        super().__init__(self.message)


class BadRequestError(APIError):
    """Malformed input or missing required fields."""

    status = HTTPStatus.BAD_REQUEST


class NotFoundError(APIError):
    """The addressed resource or route does not exist."""

    status = HTTPStatus.NOT_FOUND


class MethodNotAllowedError(APIError):
    """The path exists but not for this HTTP method."""

    status = HTTPStatus.METHOD_NOT_ALLOWED

    def __init__(self, allowed_methods, message: Optional[str] = None):
        self.allowed_methods = list(allowed_methods)
        super().__init__(
            message,
            headers={"Allow": ", ".join(self.allowed_methods)},
        )


class ConflictError(APIError):
    """The request conflicts with the current state of the resource."""

    status = HTTPStatus.CONFLICT


class UnsupportedOperationError(APIError):
    """The operation is recognised but not implemented."""

    status = HTTPStatus.NOT_IMPLEMENTED


class ResponseAlreadySentError(RuntimeError):
    """
    Raised when a handler tries to send a second response.

    This is a programming error, not a client error, so it deliberately
    does NOT derive from APIError and ends up as a 500 if it is the first
    thing to fail.
    """


def error_payload(status: int, message: str, path: str) -> dict:
    """
    Build the structured error body shared by every error response.

    Args:
        status: HTTP status code.
        message: Client-safe error message.
        path: Request path the error occurred on.

    Returns:
        Dict with ``error``, ``status``, ``path`` and an ISO-8601 ``timestamp``.
    """
    return {
        "error": message,
        "status": int(status),
        "path": path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
