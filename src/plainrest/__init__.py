"""
=============================================================================
plainrest
=============================================================================

A small REST API server without a web framework: raw-socket HTTP/1.1,
a worker thread pool, and a middleware chain around a router.

Quick start:

    from plainrest import create_app

    server = create_app()
    server.run()

Or from the shell:

    python -m plainrest --port 8080

=============================================================================
"""

__version__ = "1.0.0"

# http must be imported before errors: errors depends on http.status_codes
from .http import Context, HTTPRequest, HTTPResponse, HTTPStatus, Router
from .errors import (
    APIError,
    BadRequestError,
    ConflictError,
    MethodNotAllowedError,
    NotFoundError,
    ResponseAlreadySentError,
    UnsupportedOperationError,
)
from .config import ServerConfig
from .middleware import (
    CORSMiddleware,
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewareChain,
)
from .server import RestServer
from .app import create_app

__all__ = [
    "__version__",
    "Context",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "Router",
    "APIError",
    "BadRequestError",
    "ConflictError",
    "MethodNotAllowedError",
    "NotFoundError",
    "ResponseAlreadySentError",
    "UnsupportedOperationError",
    "ServerConfig",
    "Middleware",
    "MiddlewareChain",
    "LoggingMiddleware",
    "CORSMiddleware",
    "ErrorHandlingMiddleware",
    "RestServer",
    "create_app",
]
