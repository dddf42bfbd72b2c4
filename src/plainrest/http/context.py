"""
=============================================================================
REQUEST CONTEXT
=============================================================================

A Context is the single object a handler or middleware touches for one
request: it reads the request and writes the response.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            Context                                  │
    ├───────────────────────────────┬─────────────────────────────────────┤
    │ READ                          │ WRITE                               │
    │   ctx.method / ctx.path       │   ctx.status(201)        (fluent)   │
    │   ctx.path_param("id")        │   ctx.set_header(name, value)       │
    │   ctx.query("page")           │   ctx.send_json(obj)                │
    │   ctx.body() / ctx.json()     │   ctx.send_text(str)                │
    │                               │   ctx.send_error(404, "...")        │
    │                               │   ctx.send_no_content()             │
    └───────────────────────────────┴─────────────────────────────────────┘

Exactly ONE send per request. A second send raises
ResponseAlreadySentError instead of silently producing a corrupt stream.

The response is not written to the socket by send_*: it is captured in
``ctx.response`` and serialized by the server after the whole chain has
returned. Middleware post-logic can therefore still add headers.

=============================================================================
"""

from typing import Any, Dict, Optional
from urllib.parse import parse_qs
import json

from ..errors import BadRequestError, ResponseAlreadySentError, error_payload
from .request import HTTPRequest
from .response import HTTPResponse, JSON_CONTENT_TYPE, TEXT_CONTENT_TYPE
from .status_codes import HTTPStatus


_UNSET = object()


class Context:
    """
    Per-request read/write surface.

    Owned by the worker thread handling the request; never shared.
    """

    def __init__(self, request: HTTPRequest):
        self.request = request
        self.response: Optional[HTTPResponse] = None

        self._path_params: Dict[str, str] = {}
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}

        # Body is decoded once; the JSON view is parsed once.
        self._body: Optional[str] = None
        self._json: Any = _UNSET

    # =========================================================================
    # REQUEST SIDE
    # =========================================================================

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def path_params(self) -> Dict[str, str]:
        return dict(self._path_params)

    def set_path_params(self, params: Dict[str, str]) -> None:
        """Called by the router before the handler runs."""
        self._path_params = dict(params)

    def path_param(self, name: str) -> Optional[str]:
        """
        Matched path segment, or None when the route has no such parameter.

        An empty string is returned as-is; callers must not treat it as
        "absent".
        """
        return self._path_params.get(name)

    def path_param_int(self, name: str) -> int:
        """
        Path parameter converted to int.

        Raises:
            BadRequestError: If the parameter is missing or not an integer.
        """
        value = self.path_param(name)
        if value is None:
            raise BadRequestError(f"Missing path parameter: {name}")
        try:
            return int(value)
        except ValueError:
            raise BadRequestError(f"Path parameter '{name}' must be an integer")

    def query(self, name: str) -> Optional[str]:
        """
        First value of a query parameter, or None if absent.

        The raw query string is parsed on every call; ``?flag=`` yields "".
        """
        values = parse_qs(self.request.query_string, keep_blank_values=True).get(name)
        return values[0] if values else None

    def header(self, name: str, default: str = "") -> str:
        return self.request.get_header(name, default)

    def body(self) -> str:
        """
        Request payload as text.

        Decoded on first call and cached, so repeated calls are consistent.
        """
        if self._body is None:
            try:
                self._body = self.request.body.decode("utf-8")
            except UnicodeDecodeError:
                raise BadRequestError("Request body must be UTF-8 encoded")
        return self._body

    def json(self) -> Any:
        """
        Request payload parsed as JSON (None for an empty body).

        Raises:
            BadRequestError: If the body is not valid JSON.
        """
        if self._json is _UNSET:
            text = self.body()
            if not text.strip():
                self._json = None
            else:
                try:
                    self._json = json.loads(text)
                except json.JSONDecodeError:
                    raise BadRequestError("Invalid JSON body")
        return self._json

    # =========================================================================
    # RESPONSE SIDE
    # =========================================================================

    @property
    def status_code(self) -> int:
        """Status of the sent response, or the pending one if nothing was sent."""
        if self.response is not None:
            return self.response.status
        return self._status

    @property
    def sent(self) -> bool:
        return self.response is not None

    def status(self, code: int) -> "Context":
        """
        Set the status for the next send. Last call wins.

        Returns self so calls chain: ``ctx.status(201).send_json(record)``.
        """
        self._status = code
        return self

    @property
    def response_headers(self) -> Dict[str, str]:
        """Headers set so far, whether or not a response was sent."""
        return dict(self._headers)

    def set_header(self, name: str, value: str) -> "Context":
        """
        Set a response header.

        Headers set after a send still reach the client because the
        response is serialized only once the chain returns.
        """
        self._headers[name] = value
        if self.response is not None:
            self.response.headers[name] = value
        return self

    def send_json(self, value: Any) -> None:
        body = json.dumps(value, ensure_ascii=False).encode("utf-8")
        self._send(self._status, JSON_CONTENT_TYPE, body)

    def send_text(self, value: str) -> None:
        self._send(self._status, TEXT_CONTENT_TYPE, value.encode("utf-8"))

    def send_error(self, code: int, message: str) -> None:
        """Send the structured ``{error, status, path, timestamp}`` body."""
        self._status = code
        self.send_json(error_payload(code, message, self.path))

    def send_no_content(self) -> None:
        self._send(HTTPStatus.NO_CONTENT, None, b"")

    def _send(self, status: int, content_type: Optional[str], body: bytes) -> None:
        if self.response is not None:
            raise ResponseAlreadySentError(
                f"Response already sent for {self.method} {self.path}"
            )

        headers = dict(self._headers)
        if content_type:
            headers["Content-Type"] = content_type

        self._status = status
        self.response = HTTPResponse(status=status, headers=headers, body=body)
