"""
=============================================================================
RESOURCE HANDLERS
=============================================================================

Generic CRUD over one record type and one store.

    ┌──────────┬────────────────────────┬───────────────────────────────────┐
    │ Method   │ Path                   │ Outcome                           │
    ├──────────┼────────────────────────┼───────────────────────────────────┤
    │ GET      │ /api/products          │ 200 [ ...snapshot... ]            │
    │ GET      │ /api/products/:id      │ 200 record   | 404 not found      │
    │ POST     │ /api/products          │ 201 record + Location | 400       │
    │ PUT      │ /api/products/:id      │ 200 record   | 404 | 400          │
    │ DELETE   │ /api/products/:id      │ 204          | 404                │
    └──────────┴────────────────────────┴───────────────────────────────────┘

Handlers only ever send success responses. Every failure is raised as an
APIError and rendered by the error middleware.

=============================================================================
"""

from typing import Any, Dict, Iterable, Type
import logging

from ..errors import NotFoundError
from ..http.context import Context
from ..http.router import Router
from ..http.status_codes import HTTPStatus
from ..store import RecordStore
from .models import Post, Product, Record, User


logger = logging.getLogger(__name__)


class ResourceHandler:
    """
    CRUD handlers for one resource.

    Usage:
        products = ResourceHandler(Product, RecordStore(name="products"))
        products.register(router, "/api/products")
    """

    def __init__(self, model: Type[Record], store: RecordStore):
        self.model = model
        self.store = store
        self.prefix = ""

    @property
    def label(self) -> str:
        return self.model.label

    def register(self, router: Router, prefix: str) -> None:
        """Mount the five CRUD routes under ``prefix``."""
        self.prefix = prefix.rstrip("/")
        plural = f"{self.label.lower()}s"

        router.add_route(self.prefix, self.list, "GET", description=f"List all {plural}")
        router.add_route(self.prefix, self.create, "POST", description=f"Create a {self.label.lower()}")
        router.add_route(f"{self.prefix}/:id", self.get, "GET", description=f"Get one {self.label.lower()}")
        router.add_route(f"{self.prefix}/:id", self.update, "PUT", description=f"Update a {self.label.lower()}")
        router.add_route(f"{self.prefix}/:id", self.delete, "DELETE", description=f"Delete a {self.label.lower()}")

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def list(self, ctx: Context) -> None:
        ctx.send_json([record.to_dict() for record in self.store.all()])

    def get(self, ctx: Context) -> None:
        record = self.store.get(ctx.path_param_int("id"))
        if record is None:
            raise self._not_found()
        ctx.send_json(record.to_dict())

    def create(self, ctx: Context) -> None:
        """
        Validate the payload, allocate an id and store the new record.

        Raises:
            BadRequestError: Missing required fields, wrong types, bad JSON.
        """
        values = self.model.parse_create(ctx.json()).unwrap()
        record = self.store.create(lambda record_id: self.model(id=record_id, **values))

        logger.info(f"Created {self.label} id={record.id}")
        ctx.set_header("Location", f"{self.prefix}/{record.id}")
        ctx.status(HTTPStatus.CREATED).send_json(record.to_dict())

    def update(self, ctx: Context) -> None:
        """
        Apply the fields present in the payload; absent fields keep their
        values. An empty payload changes nothing and still returns 200.
        """
        record_id = ctx.path_param_int("id")
        if record_id not in self.store:
            raise self._not_found()

        changes = self.model.parse_update(ctx.json()).unwrap()
        record = self.store.update(record_id, changes)
        if record is None:
            raise self._not_found()
        ctx.send_json(record.to_dict())

    def delete(self, ctx: Context) -> None:
        if not self.store.delete(ctx.path_param_int("id")):
            raise self._not_found()
        ctx.send_no_content()

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    # =========================================================================
    # SEEDING
    # =========================================================================

    def seed(self, rows: Iterable[Dict[str, Any]]) -> None:
        for row in rows:
            self.store.create(lambda record_id, row=row: self.model(id=record_id, **row))


SEED_DATA: Dict[Type[Record], list] = {
    Product: [
        {"name": "Laptop", "price": 1500000, "stock": 10},
        {"name": "Mouse", "price": 30000, "stock": 50},
        {"name": "Keyboard", "price": 80000, "stock": 30},
    ],
    User: [
        {"name": "Hong Gildong", "email": "hong@example.com"},
        {"name": "Kim Cheolsu", "email": "kim@example.com"},
    ],
    Post: [
        {
            "title": "Building a REST API without a framework",
            "content": "You can build a REST API without any web framework!",
            "author_id": 1,
        },
        {
            "title": "Using the standard library HTTP stack",
            "content": "A raw socket server is light and surprisingly capable.",
            "author_id": 1,
        },
    ],
}
