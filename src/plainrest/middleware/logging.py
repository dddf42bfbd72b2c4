"""
=============================================================================
LOGGING MIDDLEWARE
=============================================================================

Logs each request on the way in and on the way out, with timing.

    TEXT FORMAT (default):
        --> GET /api/products
        <-- GET /api/products 200 (1.42ms)
        <-- GET /api/boom ERROR (0.31ms): RuntimeError

    JSON FORMAT (for log aggregators):
        {"event": "request", "method": "GET", "path": "/api/products"}
        {"event": "response", "method": "GET", "path": "/api/products",
         "status": 200, "duration_ms": 1.42, "client_ip": "127.0.0.1"}

Placed first in the chain, so it sees every request, including ones
short-circuited by CORS, and its timing covers everything downstream.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import json
import logging
import time

from ..http.context import Context
from .base import Middleware, Next


# Namespaced so access logs can be routed separately:
#   logging.getLogger("plainrest.access").addHandler(file_handler)
logger = logging.getLogger("plainrest.access")


@dataclass
class RequestLog:
    """One completed (or failed) request."""

    method: str
    path: str
    client_ip: str
    duration_ms: float
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        entry = {
            "event": "error" if self.error else "response",
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.error:
            entry["error"] = self.error
        else:
            entry["status"] = self.status_code
        return entry

    def to_text(self) -> str:
        if self.error:
            return (
                f"<-- {self.method} {self.path} ERROR "
                f"({self.duration_ms:.2f}ms): {self.error}"
            )
        return (
            f"<-- {self.method} {self.path} {self.status_code} "
            f"({self.duration_ms:.2f}ms)"
        )


class LoggingMiddleware(Middleware):
    """
    Request/response access logging.

    Never swallows errors: a downstream exception is logged with its type
    and re-raised unchanged.

    Usage:
        chain.add(LoggingMiddleware())                 # text lines
        chain.add(LoggingMiddleware(log_format="json"))
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
    ):
        if log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def __call__(self, ctx: Context, next: Next) -> None:
        self._emit_start(ctx)
        start_time = time.perf_counter()

        try:
            next()
        except Exception as e:
            self._emit(self._entry(ctx, start_time, error=type(e).__name__))
            raise

        self._emit(self._entry(ctx, start_time, status_code=ctx.status_code))

    def _entry(self, ctx: Context, start_time: float, **outcome) -> RequestLog:
        return RequestLog(
            method=ctx.method,
            path=ctx.path,
            client_ip=ctx.request.client_address[0],
            duration_ms=(time.perf_counter() - start_time) * 1000,
            **outcome,
        )

    def _emit_start(self, ctx: Context) -> None:
        if self.log_format == "json":
            message = json.dumps({"event": "request", "method": ctx.method, "path": ctx.path})
        else:
            message = f"--> {ctx.method} {ctx.path}"
        logger.log(self.log_level, message)

    def _emit(self, entry: RequestLog) -> None:
        level = logging.ERROR if entry.error else self.log_level
        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())
