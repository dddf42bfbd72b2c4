"""
=============================================================================
RESOURCE MODELS
=============================================================================

Each resource is a frozen dataclass. The dataclass fields ARE the schema:

    @dataclass(frozen=True)
    class Product(Record):
        id: int
        name: str
        price: int
        stock: int = 0

        label = "Product"
        required_fields = ("name", "price")

Payload validation is static per model: parse_create/parse_update read
the model's own fields, never a class name looked up at runtime.

    payload ─► parse_create ─► Success({"name": "Mouse", "price": 30000})
                      │
                      └──────► Failure(Error.validation("Name and price are required"))

Unknown payload keys are ignored. ``id`` is never accepted from a payload.

=============================================================================
"""

from dataclasses import asdict, dataclass, fields, MISSING
from typing import Any, ClassVar, Dict, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from ..result import Error, Failure, Result, Success


class Record:
    """Mixin for resource dataclasses; see module docstring."""

    label: ClassVar[str] = "Record"
    required_fields: ClassVar[Tuple[str, ...]] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # =========================================================================
    # SCHEMA
    # =========================================================================

    @classmethod
    def payload_fields(cls) -> Dict[str, Tuple[type, bool]]:
        """
        Writable fields as ``{name: (type, nullable)}``, excluding ``id``.
        """
        hints = get_type_hints(cls)
        schema = {}
        for f in fields(cls):
            if f.name == "id":
                continue
            expected, nullable = _unwrap_optional(hints[f.name])
            schema[f.name] = (expected, nullable)
        return schema

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        return {
            f.name: f.default
            for f in fields(cls)
            if f.name != "id" and f.default is not MISSING
        }

    # =========================================================================
    # VALIDATION
    # =========================================================================

    @classmethod
    def parse_create(cls, payload: Any) -> Result[Dict[str, Any]]:
        """
        Validate a create payload.

        Returns:
            Success with every writable field (defaults filled in), or
            Failure with a validation Error.
        """
        if not isinstance(payload, dict):
            return Failure(Error.validation("Request body must be a JSON object"))

        missing = [name for name in cls.required_fields if payload.get(name) is None]
        if missing:
            return Failure(Error.validation(_required_message(cls.required_fields)))

        return cls._check_types(payload).map(lambda values: {**cls.defaults(), **values})

    @classmethod
    def parse_update(cls, payload: Any) -> Result[Dict[str, Any]]:
        """
        Validate a partial update payload.

        Only fields present in the payload are returned; an empty payload
        is valid and yields an empty dict. Required fields may not be
        set to null.
        """
        if payload is None:
            return Success({})
        if not isinstance(payload, dict):
            return Failure(Error.validation("Request body must be a JSON object"))

        nulled = [name for name in cls.required_fields if name in payload and payload[name] is None]
        if nulled:
            return Failure(Error.validation(f"{_capitalize(nulled[0])} cannot be null"))

        return cls._check_types(payload)

    @classmethod
    def _check_types(cls, payload: Dict[str, Any]) -> Result[Dict[str, Any]]:
        values = {}
        for name, (expected, nullable) in cls.payload_fields().items():
            if name not in payload:
                continue
            value = payload[name]
            if value is None and nullable:
                values[name] = None
                continue
            if not _is_instance(value, expected):
                return Failure(Error.validation(
                    f"Field '{name}' must be of type {_json_type_name(expected)}"
                ))
            values[name] = value
        return Success(values)


def _unwrap_optional(hint: Any) -> Tuple[type, bool]:
    if get_origin(hint) is Union:
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        return args[0], len(args) < len(get_args(hint))
    return hint, False


def _is_instance(value: Any, expected: type) -> bool:
    # bool is an int subclass but true/false is never a valid number here
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


def _json_type_name(expected: type) -> str:
    return {int: "integer", str: "string", bool: "boolean", float: "number"}.get(
        expected, expected.__name__
    )


def _capitalize(name: str) -> str:
    return name.replace("_", " ").capitalize()


def _required_message(required: Tuple[str, ...]) -> str:
    """("name", "price") → "Name and price are required"."""
    words = [name.replace("_", " ") for name in required]
    if len(words) == 1:
        return f"{_capitalize(words[0])} is required"
    joined = ", ".join(words[:-1]) + " and " + words[-1]
    return f"{_capitalize(joined)} are required"


# =============================================================================
# CONCRETE RESOURCES
# =============================================================================

@dataclass(frozen=True)
class Product(Record):
    id: int
    name: str
    price: int
    stock: int = 0

    label: ClassVar[str] = "Product"
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "price")


@dataclass(frozen=True)
class User(Record):
    id: int
    name: str
    email: str

    label: ClassVar[str] = "User"
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "email")


@dataclass(frozen=True)
class Post(Record):
    id: int
    title: str
    content: str
    author_id: Optional[int] = None

    label: ClassVar[str] = "Post"
    required_fields: ClassVar[Tuple[str, ...]] = ("title", "content")
