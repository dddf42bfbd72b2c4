"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the chain that composes middleware
around a terminal handler (Chain of Responsibility).

    ┌─────────────────────────────────────────────────────────────────────┐
    │              CHAIN OF RESPONSIBILITY - REQUEST FLOW                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   ctx ──────────────────────────────────────────────────►           │
    │                                                                     │
    │   ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐      │
    │   │ Logging  │───►│   CORS   │───►│  Errors  │───►│  Router  │      │
    │   └────┬─────┘    └────┬─────┘    └────┬─────┘    └────┬─────┘      │
    │        ▼               ▼               ▼               ▼            │
    │   [before]        [before]        [before]         [exec]           │
    │   log "-->"       set CORS        try:             handler(ctx)     │
    │                   OPTIONS→204                                       │
    │        ▲               ▲               ▲               │            │
    │   [after]         [after]         [after]              │            │
    │   log "<--"       (nothing)       except → JSON error ◄┘            │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Unlike a request → response pipeline, nothing is returned here. Every
participant shares one Context, ``next`` takes no arguments, and the
response is whatever was sent through the Context.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional
import logging

from ..http.context import Context


logger = logging.getLogger(__name__)


# The rest of the chain, already bound to the current Context.
Next = Callable[[], None]

# Anything that consumes a Context: a router, a handler, a wrapped chain.
ContextHandler = Callable[[Context], None]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Every middleware implements:

        def __call__(self, ctx: Context, next: Next) -> None

    A middleware may:
        - run code before ``next()`` (pre-logic)
        - skip ``next()`` entirely after sending a response (short-circuit)
        - run code after ``next()`` returns (post-logic)
        - catch exceptions raised by ``next()``

    Instances are shared by every worker thread and must not keep
    per-request state on ``self``.
    """

    @abstractmethod
    def __call__(self, ctx: Context, next: Next) -> None:
        pass

    @property
    def name(self) -> str:
        """Middleware name for logging."""
        return self.__class__.__name__


class MiddlewareChain:
    """
    Ordered middleware composed around a terminal handler.

    The first middleware added is the outermost wrapper:

        chain = MiddlewareChain().use(LoggingMiddleware(), CORSMiddleware())
        handler = chain.wrap(router.handle)

            Logging ─► CORS ─► router.handle
            Logging ◄─ CORS ◄─┘

    ``wrap`` builds the closures once. Calling the result does no further
    composition, and call depth equals the number of middlewares.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewareChain":
        """Append one middleware. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewareChain":
        """
        Append several middlewares in order.

        Example:
            chain.use(LoggingMiddleware(), CORSMiddleware()).use(ErrorHandlingMiddleware())
        """
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: ContextHandler) -> ContextHandler:
        """
        Compose every middleware around ``handler``.

        Given [MW1, MW2, MW3]:

            current = handler
            current = MW3 around current
            current = MW2 around current
            current = MW1 around current   → MW1 → MW2 → MW3 → handler

        Args:
            handler: The terminal handler (usually ``router.handle``).

        Returns:
            A single callable taking a Context.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    @staticmethod
    def _create_wrapped_handler(
        middleware: Middleware,
        inner: ContextHandler,
    ) -> ContextHandler:
        def wrapped(ctx: Context) -> None:
            middleware(ctx, lambda: inner(ctx))

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)


# =============================================================================
# FUNCTION MIDDLEWARE
# =============================================================================

class FunctionMiddleware(Middleware):
    """
    Wraps a plain ``(ctx, next)`` function as middleware.

    Usage:
        def add_version(ctx, next):
            ctx.set_header("X-API-Version", "1")
            next()

        chain.add(FunctionMiddleware(add_version))
    """

    def __init__(
        self,
        func: Callable[[Context, Next], None],
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, ctx: Context, next: Next) -> None:
        self._func(ctx, next)

    @property
    def name(self) -> str:
        return self._name


def middleware(func: Callable[[Context, Next], None]) -> FunctionMiddleware:
    """
    Decorator form of FunctionMiddleware.

        @middleware
        def deny_all(ctx, next):
            ctx.status(403).send_text("nope")
    """
    return FunctionMiddleware(func)
