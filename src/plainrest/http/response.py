"""
=============================================================================
HTTP RESPONSE
=============================================================================

The wire representation of a response. Handlers never build one
directly: they call the send_* helpers on their Context, which fill in an
HTTPResponse that the server serializes once the chain has returned.

    HTTP/1.1 201 Created\\r\\n                 ← status line
    Content-Type: application/json; ...\\r\\n
    Content-Length: 52\\r\\n                   ← auto-added
    Date: Sun, 18 Oct 2026 12:00:00 GMT\\r\\n  ← auto-added
    Server: plainrest/1.0\\r\\n                ← auto-added
    \\r\\n
    {"id": 4, "name": "Mouse", ...}

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict
import json

from .status_codes import HTTPStatus, reason_phrase


JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class HTTPResponse:
    """A status, headers and a body, ready for to_bytes()."""

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    @property
    def json(self):
        """Decode a JSON body (handy in tests and logging)."""
        return json.loads(self.body.decode("utf-8")) if self.body else None

    def to_bytes(self, server_name: str = "plainrest/1.0") -> bytes:
        """
        Serialize for socket.sendall().

        Content-Length, Date and Server are added unless already present.
        204 responses never carry a body or a Content-Length.
        """
        response_headers = dict(self.headers)
        body = self.body

        if self.status == HTTPStatus.NO_CONTENT:
            body = b""
            response_headers.pop("Content-Length", None)
        elif "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(body))

        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("utf-8") + b"\r\n" + body


def json_response(status: int, data) -> HTTPResponse:
    """Build a JSON response outside of a Context (pre-chain errors)."""
    return HTTPResponse(
        status=status,
        headers={"Content-Type": JSON_CONTENT_TYPE},
        body=json.dumps(data, ensure_ascii=False).encode("utf-8"),
    )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Example: Sun, 18 Oct 2026 12:00:00 GMT (always GMT, never local time).
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
