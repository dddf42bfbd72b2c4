"""
=============================================================================
APPLICATION FACTORY
=============================================================================

create_app() wires the default API:

    chain:      LoggingMiddleware → CORSMiddleware → ErrorHandlingMiddleware
    resources:  /api/users, /api/posts, /api/products
    root:       GET /  → service descriptor

Tests build their own app with ``seed_data=False`` to start from empty
stores.

=============================================================================
"""

from typing import Dict, Optional

from . import __version__
from .config import ServerConfig
from .http import Context
from .middleware import CORSMiddleware, ErrorHandlingMiddleware, LoggingMiddleware
from .resources import SEED_DATA, Post, Product, ResourceHandler, User
from .server import RestServer
from .store import RecordStore


RESOURCES = (
    ("/api/users", User),
    ("/api/posts", Post),
    ("/api/products", Product),
)


def create_app(config: Optional[ServerConfig] = None) -> RestServer:
    """
    Build a fully wired RestServer.

    The returned server exposes its resource handlers as
    ``server.resources`` (keyed by label) for inspection in tests.
    """
    config = config or ServerConfig()
    server = RestServer(config)

    cors = CORSMiddleware()
    server.use(
        LoggingMiddleware(log_format=config.log_format),
        cors,
        ErrorHandlingMiddleware(),
    )
    server.default_headers.update(cors.config.headers())

    handlers: Dict[str, ResourceHandler] = {}
    for prefix, model in RESOURCES:
        handler = ResourceHandler(model, RecordStore(name=prefix.rsplit("/", 1)[-1]))
        handler.register(server.router, prefix)
        if config.seed_data:
            handler.seed(SEED_DATA.get(model, []))
        handlers[model.label] = handler

    @server.get("/", description="Service descriptor")
    def index(ctx: Context) -> None:
        ctx.send_json(describe(server))

    server.resources = handlers
    return server


def describe(server: RestServer) -> dict:
    """The static descriptor served at GET /."""
    return {
        "name": "plainrest",
        "version": __version__,
        "description": "REST API server built on raw sockets and a middleware chain",
        "endpoints": [
            line for line in server.router.describe() if not line.startswith("GET / ")
        ],
    }
