"""
=============================================================================
HTTP LAYER
=============================================================================

Everything between raw bytes and a handler:

    request.py      - RequestParser: bytes → HTTPRequest
    context.py      - Context: per-request read/write surface for handlers
    router.py       - Router: (method, path) → handler, path parameters
    response.py     - HTTPResponse: status/headers/body → bytes
    status_codes.py - HTTPStatus enum

=============================================================================
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import HTTPResponse, json_response
from .context import Context
from .router import Router, Route, RouteMatch, Handler

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "json_response",
    "Context",
    "Router",
    "Route",
    "RouteMatch",
    "Handler",
]
