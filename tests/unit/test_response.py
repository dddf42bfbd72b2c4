"""
Unit tests for HTTP response serialization.
"""

from datetime import datetime, timezone

from plainrest.http.response import (
    HTTPResponse,
    JSON_CONTENT_TYPE,
    format_http_date,
    json_response,
)
from plainrest.http.status_codes import HTTPStatus, reason_phrase


class TestHTTPResponse:

    def test_status_line(self):
        assert HTTPResponse(status=HTTPStatus.CREATED).status_line == "HTTP/1.1 201 Created"
        assert HTTPResponse(status=405).status_line == "HTTP/1.1 405 Method Not Allowed"

    def test_status_line_unknown_code(self):
        response = HTTPResponse(status=418)
        assert response.status_line == "HTTP/1.1 418 Unknown"

    def test_wire_format(self):
        response = HTTPResponse(
            status=HTTPStatus.CREATED,
            headers={"Location": "/api/users/3"},
            body=b"{}",
        )

        result = response.to_bytes()
        head, _, body = result.partition(b"\r\n\r\n")

        assert head.split(b"\r\n")[0] == b"HTTP/1.1 201 Created"
        assert b"Location: /api/users/3\r\n" in result
        assert b"Content-Length: 2\r\n" in result
        assert body == b"{}"
        assert b"Server: plainrest/1.0\r\n" in result
        assert b"Date: " in result

    def test_explicit_content_length_kept(self):
        response = HTTPResponse(headers={"Content-Length": "3"}, body=b"abc")
        assert response.to_bytes().count(b"Content-Length") == 1

    def test_no_content_has_no_body(self):
        response = HTTPResponse(status=HTTPStatus.NO_CONTENT, body=b"ignored")
        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 204 No Content\r\n")
        assert b"Content-Length" not in result
        assert result.endswith(b"\r\n\r\n")

    def test_custom_server_name(self):
        result = HTTPResponse().to_bytes(server_name="test/0.1")
        assert b"Server: test/0.1\r\n" in result


class TestJsonResponse:

    def test_json_response(self):
        response = json_response(HTTPStatus.CREATED, {"id": 1, "name": "Mouse"})

        assert response.status == 201
        assert response.headers["Content-Type"] == JSON_CONTENT_TYPE
        assert response.json == {"id": 1, "name": "Mouse"}

    def test_json_keeps_non_ascii(self):
        response = json_response(HTTPStatus.OK, {"name": "노트북"})
        assert "노트북".encode("utf-8") in response.body


class TestHTTPStatus:

    def test_phrases(self):
        assert HTTPStatus.CREATED.phrase == "Created"
        assert HTTPStatus.SERVICE_UNAVAILABLE.phrase == "Service Unavailable"
        assert HTTPStatus.NOT_IMPLEMENTED.phrase == "Not Implemented"

    def test_reason_phrase(self):
        assert reason_phrase(409) == "Conflict"
        assert reason_phrase(299) == "Unknown"


class TestFormatHTTPDate:

    def test_rfc7231_format(self):
        dt = datetime(2026, 10, 18, 9, 5, 7, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Sun, 18 Oct 2026 09:05:07 GMT"
