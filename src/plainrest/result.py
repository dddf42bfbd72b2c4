"""
=============================================================================
RESULT TYPE
=============================================================================

A two-variant value: either Success(value) or Failure(error).

    parse_create(payload)                       Failure(Error("VALIDATION_ERROR",
        │                                               "Name and price are required"))
        ├── Success({"name": "Mouse", ...})              │
        │       │                                        │
        │       ▼ .map(...) / .flat_map(...)             ▼ .map(...) is skipped
        │   Success(...)                             Failure(...)
        ▼                                                │
    .unwrap() → value                              .unwrap() → raises BadRequestError

Validation code returns Results so it can be composed and tested without
exceptions; handlers call .unwrap() at the edge, which converts a Failure
into the matching APIError for the error middleware.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from .errors import (
    APIError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)


T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Error:
    """An error as a value: a machine-readable code plus a message."""

    code: str
    message: str

    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL_ERROR"

    @classmethod
    def validation(cls, message: str) -> "Error":
        return cls(cls.VALIDATION, message)

    @classmethod
    def not_found(cls, message: str) -> "Error":
        return cls(cls.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "Error":
        return cls(cls.CONFLICT, message)

    @classmethod
    def internal(cls, message: str) -> "Error":
        return cls(cls.INTERNAL, message)

    def to_exception(self) -> APIError:
        """The APIError the error middleware maps to the right status."""
        exc_type = _EXCEPTIONS_BY_CODE.get(self.code)
        if exc_type is None:
            return APIError(self.message)
        return exc_type(self.message)


_EXCEPTIONS_BY_CODE = {
    Error.VALIDATION: BadRequestError,
    Error.NOT_FOUND: NotFoundError,
    Error.CONFLICT: ConflictError,
}


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        return Success(fn(self.value))

    def flat_map(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        return fn(self.value)

    def get_or_else(self, default: T) -> T:
        return self.value

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: Error

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def map(self, fn: Callable[[Any], Any]) -> "Failure":
        return self

    def flat_map(self, fn: Callable[[Any], Any]) -> "Failure":
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def unwrap(self):
        """
        Raises:
            APIError: Always; the subclass depends on ``error.code``.
        """
        raise self.error.to_exception()


Result = Union[Success[T], Failure]
