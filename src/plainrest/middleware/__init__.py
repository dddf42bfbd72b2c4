"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting concerns that wrap every request:

    LoggingMiddleware        - "-->" / "<--" access log lines with timing
    CORSMiddleware           - CORS headers; answers OPTIONS with 204
    ErrorHandlingMiddleware  - exceptions → structured JSON errors

Default order, outermost first:

    Logging → CORS → ErrorHandling → Router

=============================================================================
"""

from .base import (
    ContextHandler,
    FunctionMiddleware,
    Middleware,
    MiddlewareChain,
    Next,
    middleware,
)
from .logging import LoggingMiddleware, RequestLog
from .cors import CORSConfig, CORSMiddleware
from .errors import ErrorHandlingMiddleware, status_for

__all__ = [
    "Middleware",
    "MiddlewareChain",
    "FunctionMiddleware",
    "middleware",
    "Next",
    "ContextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "CORSConfig",
    "CORSMiddleware",
    "ErrorHandlingMiddleware",
    "status_for",
]
