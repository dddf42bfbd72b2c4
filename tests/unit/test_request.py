"""
Unit tests for turning raw bytes into an HTTPRequest.
"""

import pytest

from plainrest.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


def parse_error(raw: bytes, **parser_kwargs) -> HTTPParseError:
    with pytest.raises(HTTPParseError) as exc_info:
        RequestParser(**parser_kwargs).parse(raw)
    return exc_info.value


class TestRequestLine:

    def test_list_query(self, sample_get_request: bytes):
        request = RequestParser().parse(sample_get_request, ("10.0.0.7", 40001))

        assert (request.method, request.path) == ("GET", "/api/users")
        assert request.query_string == "page=1&limit=10"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("10.0.0.7", 40001)

    def test_create_with_json_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/api/products"
        assert request.content_type == "application/json"
        assert request.body == b'{"name": "Mouse", "price": 30000}'
        assert not request.is_keep_alive

    def test_percent_encoded_path(self):
        request = parse_request(b"GET /api/posts%2F1?tag=a%20b HTTP/1.1\r\n\r\n")

        assert request.path == "/api/posts/1"
        assert request.query_string == "tag=a%20b"

    def test_bare_request_has_no_headers(self):
        request = parse_request(b"DELETE /api/users/2 HTTP/1.1\r\n\r\n")

        assert request.method == "DELETE"
        assert request.headers == {}
        assert request.body == b""

    @pytest.mark.parametrize("raw, status", [
        (b"FETCH /api/users HTTP/1.1\r\n\r\n", 405),
        (b"GET\r\n\r\n", 400),
        (b"GET /api/users HTTP/2.0\r\n\r\n", 505),
        (b"GET /api/../secrets HTTP/1.1\r\n\r\n", 400),
        (b"GET /api/users HTTP/1.1\r\nAccept: */*\r\n", 400),
    ])
    def test_rejected(self, raw, status):
        assert parse_error(raw).status_code == status

    def test_traversal_message_mentions_path(self):
        assert "path" in str(parse_error(b"GET /.. HTTP/1.1\r\n\r\n")).lower()

    def test_dots_inside_a_segment_allowed(self):
        request = parse_request(b"GET /api/users/a..b HTTP/1.1\r\n\r\n")
        assert request.path == "/api/users/a..b"


class TestHeadersAndBody:

    def test_names_are_case_insensitive(self):
        request = parse_request(b"PUT /api/products/1 HTTP/1.1\r\nCONTENT-type: application/json\r\n\r\n")

        assert request.headers == {"content-type": "application/json"}
        assert request.get_header("Content-Type") == "application/json"

    def test_repeated_headers_joined(self):
        request = parse_request(b"GET / HTTP/1.1\r\nAccept: a\r\nAccept: b\r\n\r\n")
        assert request.get_header("Accept") == "a, b"

    def test_body_cut_at_content_length(self):
        raw = b"POST /api/users HTTP/1.1\r\nContent-Length: 2\r\n\r\n{}trailing"

        request = parse_request(raw)

        assert request.content_length == 2
        assert request.body == b"{}"

    def test_truncated_body(self):
        raw = b"POST /api/users HTTP/1.1\r\nContent-Length: 50\r\n\r\n{\"name\""
        assert parse_error(raw).status_code == 400

    def test_oversized(self):
        raw = b"POST /api/posts HTTP/1.1\r\nX-Pad: " + b"x" * 300 + b"\r\n\r\n"
        assert parse_error(raw, max_request_size=128).status_code == 413

    @pytest.mark.parametrize("version, connection, expected", [
        ("HTTP/1.1", None, True),
        ("HTTP/1.1", "close", False),
        ("HTTP/1.0", None, False),
        ("HTTP/1.0", "keep-alive", True),
    ])
    def test_keep_alive_rules(self, version, connection, expected):
        headers = {"connection": connection} if connection else {}
        request = HTTPRequest(method="GET", path="/", version=version, headers=headers)

        assert request.is_keep_alive is expected


class TestHTTPRequest:

    def test_missing_header_default(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("Authorization") == ""
        assert request.get_header("Authorization", "none") == "none"

    def test_content_type_without_charset(self):
        request = HTTPRequest(
            method="POST",
            path="/api/users",
            headers={"content-type": "application/json; charset=utf-8"},
        )

        assert request.content_type == "application/json"

