"""
=============================================================================
ERROR HANDLING MIDDLEWARE
=============================================================================

The single place where exceptions become HTTP error responses.

    handler raises ────────────────► ErrorHandlingMiddleware
                                          │
                                          ▼
                          walk type(exc).__mro__ through STATUS_BY_TYPE
                                          │
                   ┌──────────────────────┼──────────────────────┐
                   ▼                      ▼                      ▼
             APIError subclass     ValueError etc.         anything else
             (own message)         (generic phrase)        500 (generic phrase)

Messages of unexpected exceptions are never sent to the client; the
traceback goes to the server log instead.

=============================================================================
"""

from typing import Dict, Type
import logging

from ..errors import (
    APIError,
    BadRequestError,
    ConflictError,
    MethodNotAllowedError,
    NotFoundError,
    UnsupportedOperationError,
)
from ..http.context import Context
from ..http.status_codes import HTTPStatus
from .base import Middleware, Next


logger = logging.getLogger(__name__)


STATUS_BY_TYPE: Dict[Type[BaseException], HTTPStatus] = {
    BadRequestError: HTTPStatus.BAD_REQUEST,
    ValueError: HTTPStatus.BAD_REQUEST,
    NotFoundError: HTTPStatus.NOT_FOUND,
    MethodNotAllowedError: HTTPStatus.METHOD_NOT_ALLOWED,
    ConflictError: HTTPStatus.CONFLICT,
    UnsupportedOperationError: HTTPStatus.NOT_IMPLEMENTED,
    NotImplementedError: HTTPStatus.NOT_IMPLEMENTED,
}


def status_for(exc: BaseException) -> int:
    """
    Status code for an exception.

    An APIError carries its own status, which may be overridden per
    instance. Otherwise the most specific class in the exception's MRO
    that appears in STATUS_BY_TYPE wins; unknown types map to 500.
    """
    if isinstance(exc, APIError):
        return exc.status
    for cls in type(exc).__mro__:
        status = STATUS_BY_TYPE.get(cls)
        if status is not None:
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


class ErrorHandlingMiddleware(Middleware):
    """
    Catches every exception raised downstream and sends a JSON error.

    Usage:
        chain.use(LoggingMiddleware(), CORSMiddleware(), ErrorHandlingMiddleware())

    Sits innermost so headers set by outer middleware (CORS) are already
    pending when the error response is sent.
    """

    def __call__(self, ctx: Context, next: Next) -> None:
        try:
            next()
        except Exception as exc:
            self._handle(ctx, exc)

    def _handle(self, ctx: Context, exc: Exception) -> None:
        status = status_for(exc)

        if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.exception(f"Unhandled error on {ctx.method} {ctx.path}")
        else:
            logger.debug(f"{ctx.method} {ctx.path} -> {int(status)}: {exc}")

        if ctx.sent:
            logger.error(
                f"Error after response was sent for {ctx.method} {ctx.path}: "
                f"{type(exc).__name__}"
            )
            return

        if isinstance(exc, APIError):
            message = exc.message
            for name, value in exc.headers.items():
                ctx.set_header(name, value)
        else:
            message = status.phrase

        ctx.send_error(status, message)
