"""
=============================================================================
REST SERVER
=============================================================================

Ties the host runtime to the middleware chain.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          REQUEST LIFECYCLE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   SocketServer.accept()                                             │
    │        │                                                            │
    │        ▼                                                            │
    │   ThreadPool.submit(conn) ──── queue full ──► 503                   │
    │        │                                                            │
    │        ▼  (worker thread)                                           │
    │   conn.read_request() ──► RequestParser.parse() ── error ──► 4xx    │
    │        │                                                            │
    │        ▼                                                            │
    │   ctx = Context(request)                                            │
    │   chain(ctx)     Logging → CORS → ErrorHandling → Router → handler  │
    │        │                                                            │
    │        ▼                                                            │
    │   ctx.response ── None ──► 500                                      │
    │        │                                                            │
    │        ▼                                                            │
    │   add Connection headers ──► to_bytes() ──► sendall()               │
    │        │                                                            │
    │        └──► keep-alive? loop : close                                │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Errors that happen before a Context exists (bad request line, oversized
body, overload) and anything escaping the chain are answered here, with
the same JSON error body the error middleware uses.

=============================================================================
"""

from typing import Dict, Optional
import logging

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .errors import error_payload
from .http import (
    Context,
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    Router,
    json_response,
)
from .middleware import ContextHandler, Middleware, MiddlewareChain


logger = logging.getLogger(__name__)


class RestServer:
    """
    Threaded HTTP/1.1 server running a middleware chain around a router.

    Usage:
        server = RestServer(ServerConfig(port=8080))
        server.use(LoggingMiddleware(), CORSMiddleware(), ErrorHandlingMiddleware())

        @server.get("/ping")
        def ping(ctx):
            ctx.send_json({"pong": True})

        server.run()    # blocks until SIGINT/SIGTERM or shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._router = Router()
        self._chain = MiddlewareChain()
        self._handler: Optional[ContextHandler] = None

        self._running = False

        # Resource handlers mounted by create_app(), keyed by label.
        self.resources: dict = {}

        # Added to responses built outside the chain (parse errors, 408,
        # 503, and the 500 fallbacks in handle()).
        self.default_headers: Dict[str, str] = {}

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, *middleware: Middleware) -> "RestServer":
        """
        Append middleware, outermost first.

        Raises:
            RuntimeError: If the chain has already been composed.
        """
        if self._handler is not None:
            raise RuntimeError("Middleware cannot be added after the chain is built")
        self._chain.use(*middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def middleware(self) -> MiddlewareChain:
        return self._chain

    @property
    def address(self):
        return self._socket_server.address

    def route(self, path: str, method: Optional[str] = None, **kwargs):
        return self._router.route(path, method, **kwargs)

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    def put(self, path: str, **kwargs):
        return self._router.put(path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._router.delete(path, **kwargs)

    def build(self) -> ContextHandler:
        """Compose the chain around the router. Happens once."""
        if self._handler is None:
            self._handler = self._chain.wrap(self._router.handle)
            logger.debug(
                "Middleware chain: "
                + " -> ".join([mw.name for mw in self._chain] + ["Router"])
            )
        return self._handler

    # =========================================================================
    # REQUEST HANDLING (no sockets involved)
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through the chain and return the captured response.

        This is the boundary of last resort: an exception that escapes the
        chain, or a chain that never sends, becomes a 500.
        """
        handler = self.build()
        ctx = Context(request)

        try:
            handler(ctx)
        except Exception:
            logger.exception(f"Unhandled error escaped the chain: {request.method} {request.path}")
            if not ctx.sent:
                return self._error_response(
                    HTTPStatus.INTERNAL_SERVER_ERROR,
                    HTTPStatus.INTERNAL_SERVER_ERROR.phrase,
                    request.path,
                    ctx.response_headers,
                )

        if ctx.response is None:
            logger.error(f"No response sent for {request.method} {request.path}")
            return self._error_response(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                "No response was sent",
                request.path,
                ctx.response_headers,
            )

        return ctx.response

    def _error_response(
        self,
        status: HTTPStatus,
        message: str,
        path: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        response = json_response(status, error_payload(status, message, path))
        response.headers.update(self.default_headers)
        response.headers.update(headers or {})
        return response

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving (blocking).

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self.build()
        self._thread_pool.start()
        self._running = True

        logger.info(f"Starting REST server on {self.config.host}:{self.config.port}")
        self._print_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask a running server to stop; run() returns once it has."""
        self._running = False
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("plainrest").setLevel(level)

    def _print_startup_banner(self):
        print()
        print("=" * 64)
        print(f"  {self.config.server_name} running on http://{self.config.host}:{self.config.port}")
        print(f"  Workers: {self.config.workers} threads, queue: {self.config.queue_size}")
        print()
        print("  Middleware:")
        for mw in self._chain:
            print(f"    - {mw.name}")
        print()
        print("  Routes:")
        for line in self._router.describe():
            print(f"    {line}")
        print()
        print("  Press Ctrl+C to stop")
        print("=" * 64)
        print()

    # =========================================================================
    # CONNECTIONS (worker threads)
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread; hands the connection to a worker."""
        if not self._thread_pool.submit(self._process_connection, conn):
            logger.warning(
                f"[{conn.id}] Thread pool full ({self._thread_pool.busy_workers} busy, "
                f"{self._thread_pool.pending_tasks} queued), rejecting connection"
            )
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop: read, parse, run the chain, write, repeat."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        self._send_error(conn, e.status_code, str(e))
                        break

                    response = self.handle(request)

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if not conn.send_response(response.to_bytes(self.config.server_name)):
                        break
                    if not keep_alive:
                        break

                except HTTPParseError as e:
                    self._send_error(conn, e.status_code, str(e))
                    break
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: int, message: str, path: str = ""):
        """Error response for failures that happen before a Context exists."""
        response = self._error_response(HTTPStatus(status), message, path)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
