"""
=============================================================================
CORS MIDDLEWARE
=============================================================================

Cross-Origin Resource Sharing headers for browser clients.

    PREFLIGHT REQUEST:

    ┌─────────┐                                          ┌─────────┐
    │ Browser │─────────── OPTIONS /api/products ───────▶│ Server  │
    │         │           Origin: https://app.com        │         │
    │         │◀──────────────── 204 No Content ─────────│         │
    │         │    Access-Control-Allow-Origin: *        │         │
    │         │    Access-Control-Allow-Methods: ...     │         │
    │         │    Access-Control-Max-Age: 3600          │         │
    │         │                                          │         │
    │         │─────────── DELETE /api/products/1 ──────▶│         │
    └─────────┘                                          └─────────┘

This is a permissive, static policy: the same headers go on every
response regardless of the Origin header, and every OPTIONS request is
answered here without reaching the router.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional

from ..http.context import Context
from .base import Middleware, Next


@dataclass
class CORSConfig:
    """Static CORS policy."""

    allow_origin: str = "*"
    allow_methods: list[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization"]
    )
    max_age: int = 3600

    def __post_init__(self):
        if self.max_age < 0:
            raise ValueError("max_age must be non-negative")

    def headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
        }


class CORSMiddleware(Middleware):
    """
    Adds CORS headers and answers preflight requests.

    Usage:
        chain.add(CORSMiddleware())
        chain.add(CORSMiddleware(CORSConfig(allow_origin="https://app.com")))
    """

    def __init__(self, config: Optional[CORSConfig] = None):
        self.config = config or CORSConfig()
        self._headers = self.config.headers()

    def __call__(self, ctx: Context, next: Next) -> None:
        for name, value in self._headers.items():
            ctx.set_header(name, value)

        if ctx.method == "OPTIONS":
            ctx.send_no_content()
            return

        next()
