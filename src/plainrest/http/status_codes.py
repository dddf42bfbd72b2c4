"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The subset of RFC 7231 status codes this server actually produces.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK, 201 Created, 204 No Content                       │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request      - missing/invalid fields, bad JSON   │
    │        │ 404 Not Found        - unknown id or unknown route        │
    │        │ 405 Method Not Allowed                                    │
    │        │ 408 Request Timeout                                       │
    │        │ 409 Conflict         - conflicting resource state         │
    │        │ 413 Payload Too Large                                     │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Server Error - anything unexpected           │
    │        │ 501 Not Implemented       - unsupported operation         │
    │        │ 503 Service Unavailable   - worker queue full             │
    │        │ 505 HTTP Version Not Supported                            │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum.

    Being an IntEnum means a member compares equal to its plain integer,
    so ``ctx.status_code == 404`` and ``ctx.status_code == HTTPStatus.NOT_FOUND``
    are both valid.
    """

    # 2xx Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx Client errors
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413

    # 5xx Server errors
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line ("200 OK" → "OK")."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def reason_phrase(code: int) -> str:
    """
    Reason phrase for an arbitrary integer code.

    Handlers may call ``ctx.status(418)`` with a code outside the enum;
    those still need a status line, so unknown codes get "Unknown".
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
