"""
Unit tests for the middleware chain and the built-in middleware.
"""

import json
import logging

import pytest

from plainrest.errors import (
    BadRequestError,
    ConflictError,
    MethodNotAllowedError,
    NotFoundError,
    ResponseAlreadySentError,
    UnsupportedOperationError,
)
from plainrest.http.context import Context
from plainrest.http.request import HTTPRequest
from plainrest.middleware import (
    CORSConfig,
    CORSMiddleware,
    ErrorHandlingMiddleware,
    FunctionMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewareChain,
    middleware,
    status_for,
)


def make_context(method: str = "GET", path: str = "/test") -> Context:
    return Context(HTTPRequest(method=method, path=path, client_address=("127.0.0.1", 1234)))


class Recorder(Middleware):
    """Appends "<name>:before" / "<name>:after" to a shared list."""

    def __init__(self, label: str, events: list):
        self.label = label
        self.events = events

    def __call__(self, ctx, next):
        self.events.append(f"{self.label}:before")
        next()
        self.events.append(f"{self.label}:after")


class TestMiddlewareChain:
    """Composition order and short-circuiting."""

    def test_pre_in_order_post_in_reverse(self):
        events = []
        chain = MiddlewareChain().use(Recorder("A", events), Recorder("B", events))

        def handler(ctx):
            events.append("handler")
            ctx.send_no_content()

        chain.wrap(handler)(make_context())

        assert events == ["A:before", "B:before", "handler", "B:after", "A:after"]

    def test_empty_chain_calls_handler(self):
        calls = []
        handler = MiddlewareChain().wrap(lambda ctx: calls.append(ctx.path))

        handler(make_context(path="/x"))

        assert calls == ["/x"]

    def test_use_and_add_return_self(self):
        chain = MiddlewareChain()
        mw = Recorder("A", [])

        assert chain.use(mw) is chain
        assert chain.add(mw) is chain
        assert len(chain) == 2
        assert list(chain) == [mw, mw]

    def test_short_circuit_skips_rest(self):
        events = []

        @middleware
        def deny(ctx, next):
            ctx.status(403).send_text("denied")

        chain = MiddlewareChain().use(Recorder("outer", events), deny, Recorder("inner", events))
        ctx = make_context()
        chain.wrap(lambda c: events.append("handler"))(ctx)

        assert events == ["outer:before", "outer:after"]
        assert ctx.response.status == 403

    def test_wrapped_handler_is_reusable(self):
        counter = {"calls": 0}

        def handler(ctx):
            counter["calls"] += 1
            ctx.send_no_content()

        wrapped = MiddlewareChain().use(Recorder("A", [])).wrap(handler)
        wrapped(make_context())
        wrapped(make_context())

        assert counter["calls"] == 2

    def test_function_middleware_name(self):
        def add_version(ctx, next):
            next()

        assert FunctionMiddleware(add_version).name == "add_version"
        assert FunctionMiddleware(add_version, name="custom").name == "custom"
        assert Recorder("x", []).name == "Recorder"


class TestCORSMiddleware:

    def test_headers_set_and_next_called(self):
        calls = []
        ctx = make_context("GET")

        def handler(c):
            calls.append(1)
            c.send_json([])

        MiddlewareChain().use(CORSMiddleware()).wrap(handler)(ctx)

        headers = ctx.response.headers
        assert calls == [1]
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Access-Control-Allow-Methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"
        assert headers["Access-Control-Max-Age"] == "3600"

    def test_options_short_circuits_with_204(self):
        counter = {"calls": 0}
        ctx = make_context("OPTIONS", "/api/anything")

        def handler(c):
            counter["calls"] += 1

        MiddlewareChain().use(CORSMiddleware()).wrap(handler)(ctx)

        assert counter["calls"] == 0
        assert ctx.response.status == 204
        assert ctx.response.headers["Access-Control-Allow-Origin"] == "*"

    def test_custom_config(self):
        ctx = make_context()
        config = CORSConfig(allow_origin="https://app.example", max_age=60)

        CORSMiddleware(config)(ctx, lambda: ctx.send_no_content())

        assert ctx.response.headers["Access-Control-Allow-Origin"] == "https://app.example"
        assert ctx.response.headers["Access-Control-Max-Age"] == "60"

    def test_negative_max_age_rejected(self):
        with pytest.raises(ValueError):
            CORSConfig(max_age=-1)


class TestErrorHandlingMiddleware:

    @pytest.mark.parametrize("exc, status", [
        (BadRequestError("bad"), 400),
        (ValueError("bad value"), 400),
        (NotFoundError("Product not found"), 404),
        (MethodNotAllowedError(["GET"]), 405),
        (ConflictError("taken"), 409),
        (UnsupportedOperationError("nope"), 501),
        (NotImplementedError(), 501),
        (RuntimeError("boom"), 500),
        (KeyError("k"), 500),
    ])
    def test_status_mapping(self, exc, status):
        assert status_for(exc) == status

    def test_subclass_uses_nearest_mapping(self):
        class ProductMissing(NotFoundError):
            pass

        class Weird(ValueError):
            pass

        assert status_for(ProductMissing()) == 404
        assert status_for(Weird()) == 400

    def test_instance_status_overrides_class(self):
        assert status_for(NotFoundError("Product was removed", status=410)) == 410
        assert status_for(BadRequestError("Slow down", status=429)) == 429

    def test_instance_status_reaches_client(self):
        ctx = make_context("GET", "/api/products/3")

        def handler(c):
            raise NotFoundError("Product was removed", status=410)

        ErrorHandlingMiddleware()(ctx, lambda: handler(ctx))

        assert ctx.response.status == 410
        assert ctx.response.json["error"] == "Product was removed"
        assert ctx.response.json["status"] == 410

    def test_api_error_message_is_exposed(self):
        ctx = make_context("GET", "/api/products/999")

        def handler(c):
            raise NotFoundError("Product not found")

        ErrorHandlingMiddleware()(ctx, lambda: handler(ctx))

        body = ctx.response.json
        assert ctx.response.status == 404
        assert body["error"] == "Product not found"
        assert body["status"] == 404
        assert body["path"] == "/api/products/999"
        assert body["timestamp"]

    def test_unknown_error_message_is_hidden(self, caplog):
        ctx = make_context()

        def handler():
            raise RuntimeError("database password is hunter2")

        with caplog.at_level(logging.ERROR, logger="plainrest.middleware.errors"):
            ErrorHandlingMiddleware()(ctx, handler)

        assert ctx.response.status == 500
        assert ctx.response.json["error"] == "Internal Server Error"
        assert "hunter2" not in ctx.response.body.decode()
        assert any(record.exc_info for record in caplog.records)

    def test_value_error_gets_generic_phrase(self):
        ctx = make_context()

        def handler():
            raise ValueError("internal detail")

        ErrorHandlingMiddleware()(ctx, handler)

        assert ctx.response.status == 400
        assert ctx.response.json["error"] == "Bad Request"

    def test_allow_header_on_405(self):
        ctx = make_context("PATCH")

        def handler():
            raise MethodNotAllowedError(["GET", "PUT"])

        ErrorHandlingMiddleware()(ctx, handler)

        assert ctx.response.status == 405
        assert ctx.response.headers["Allow"] == "GET, PUT"

    def test_error_after_send_keeps_first_response(self):
        ctx = make_context()

        def handler():
            ctx.send_json({"ok": True})
            raise RuntimeError("late failure")

        ErrorHandlingMiddleware()(ctx, handler)

        assert ctx.response.status == 200
        assert ctx.response.json == {"ok": True}

    def test_double_send_becomes_500(self):
        ctx = make_context()

        def handler():
            raise ResponseAlreadySentError("oops")

        ErrorHandlingMiddleware()(ctx, handler)

        assert ctx.response.status == 500

    def test_cors_headers_survive_error(self):
        ctx = make_context()
        chain = MiddlewareChain().use(CORSMiddleware(), ErrorHandlingMiddleware())

        def handler(c):
            raise NotFoundError("gone")

        chain.wrap(handler)(ctx)

        assert ctx.response.status == 404
        assert ctx.response.headers["Access-Control-Allow-Origin"] == "*"


class TestLoggingMiddleware:

    def test_logs_before_and_after(self, caplog):
        ctx = make_context("GET", "/api/products")

        with caplog.at_level(logging.INFO, logger="plainrest.access"):
            LoggingMiddleware()(ctx, lambda: ctx.send_json([]))

        messages = [r.getMessage() for r in caplog.records if r.name == "plainrest.access"]
        assert messages[0] == "--> GET /api/products"
        assert messages[1].startswith("<-- GET /api/products 200 (")
        assert messages[1].endswith("ms)")

    def test_logs_error_and_reraises(self, caplog):
        ctx = make_context("POST", "/boom")

        def handler():
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO, logger="plainrest.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(ctx, handler)

        last = [r for r in caplog.records if r.name == "plainrest.access"][-1]
        assert last.levelno == logging.ERROR
        assert last.getMessage().startswith("<-- POST /boom ERROR (")
        assert last.getMessage().endswith("): RuntimeError")

    def test_json_format(self, caplog):
        ctx = make_context("DELETE", "/api/users/1")

        with caplog.at_level(logging.INFO, logger="plainrest.access"):
            LoggingMiddleware(log_format="json")(ctx, lambda: ctx.send_no_content())

        records = [json.loads(r.getMessage()) for r in caplog.records if r.name == "plainrest.access"]
        assert records[0] == {"event": "request", "method": "DELETE", "path": "/api/users/1"}
        assert records[1]["event"] == "response"
        assert records[1]["status"] == 204
        assert records[1]["client_ip"] == "127.0.0.1"
        assert isinstance(records[1]["duration_ms"], float)

    def test_invalid_format_rejected(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")
