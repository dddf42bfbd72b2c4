"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a terminal handler and extracts path parameters.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /api/products/42                                               │
    │        │                                                            │
    │        ▼                                                            │
    │  ┌──────────────────────────────────────────────────────────────┐   │
    │  │ GET    /api/products       → ProductHandler.list             │   │
    │  │ GET    /api/products/:id   → ProductHandler.get    ← MATCH   │   │
    │  │ POST   /api/products       → ProductHandler.create           │   │
    │  └──────────────────────────────────────────────────────────────┘   │
    │        │                                                            │
    │        ▼                                                            │
    │  ctx.set_path_params({"id": "42"});  handler(ctx)                   │
    └─────────────────────────────────────────────────────────────────────┘

Patterns:
    :name   - one path segment            /users/:id      → {"id": "7"}

The router never writes error responses. An unknown path raises
NotFoundError and a known path with the wrong method raises
MethodNotAllowedError; the error middleware turns both into JSON.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, Any, List
import re

from ..errors import MethodNotAllowedError, NotFoundError
from .context import Context


# A terminal handler consumes a Context and sends a response through it.
Handler = Callable[[Context], None]


@dataclass
class Route:
    """A URL pattern bound to a handler."""

    path: str
    method: Optional[str]            # None = any method
    handler: Handler
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)


@dataclass
class RouteMatch:
    """A matched route plus the extracted path parameters."""

    route: Route
    params: Dict[str, str]


class Router:
    """
    Method-aware router with dynamic path parameters.

    Usage:
        router = Router()

        @router.get("/api/products/:id")
        def get_product(ctx):
            ctx.send_json({"id": ctx.path_param_int("id")})

        router.handle(ctx)    # dispatches or raises NotFoundError
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g. /api/products/:id)
            handler: Callable taking a Context
            method: HTTP method (None for any)
            **meta: Free-form metadata (e.g. a description for the index)

        Returns:
            The registered Route
        """
        pattern = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            meta=meta,
            _pattern=pattern,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> re.Pattern:
        """
        Compile a route pattern into an anchored regex.

            "/users/:id/posts/:post_id"
              → ^/users/(?P<id>[^/]+)/posts/(?P<post_id>[^/]+)$
        """
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                regex_parts.append(f"(?P<{segment[1:]}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root pattern "/"
        regex_parts.append("$")
        return re.compile("".join(regex_parts))

    # =========================================================================
    # MATCHING
    # =========================================================================

    @staticmethod
    def _normalize(path: str) -> str:
        return "/" + path.strip("/") if path != "/" else "/"

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        First route matching method and path, or None.

        Order matters: first registered, first matched.
        """
        path = self._normalize(path)

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue
            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for a path (for the 405 Allow header)."""
        path = self._normalize(path)
        methods = set()

        for route in self._routes:
            if route._pattern.match(path):
                if route.method is None:
                    return ["DELETE", "GET", "OPTIONS", "PATCH", "POST", "PUT"]
                methods.add(route.method)

        return sorted(methods)

    def handle(self, ctx: Context) -> None:
        """
        Dispatch a Context to its handler.

        Raises:
            MethodNotAllowedError: Path is registered, method is not.
            NotFoundError: No route for the path at all.
        """
        match = self.match(ctx.method, ctx.path)

        if match:
            ctx.set_path_params(match.params)
            match.route.handler(ctx)
            return

        allowed = self.get_allowed_methods(ctx.path)
        if allowed:
            raise MethodNotAllowedError(allowed)

        raise NotFoundError(f"No route matches {ctx.path}")

    __call__ = handle

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        **meta: Any
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(); returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, **meta)
            return handler
        return decorator

    def get(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", **meta)

    def post(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", **meta)

    def put(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT", **meta)

    def delete(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", **meta)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, e.g. "GET /api/products/:id - Get one product".

        Used by the startup banner and the root endpoint descriptor.
        """
        lines = []
        for route in self._routes:
            line = f"{route.method or 'ANY'} {route.path}"
            if route.meta.get("description"):
                line += f" - {route.meta['description']}"
            lines.append(line)
        return lines
