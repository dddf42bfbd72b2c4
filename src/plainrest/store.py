"""
=============================================================================
IN-MEMORY RECORD STORE
=============================================================================

A process-wide key → record map standing in for a database table.

=============================================================================
CONCURRENCY DISCIPLINE
=============================================================================

Many worker threads hit the same store at once. One lock guards BOTH the
dict and the id counter, so every public method is a single atomic step:

    Thread A: create()            Thread B: create()
    ┌──────────────────────┐
    │ with lock:           │      (blocked on lock)
    │   id = next(ids) → 4 │
    │   records[4] = ...   │
    └──────────────────────┘      ┌──────────────────────┐
                                  │ with lock:           │
                                  │   id = next(ids) → 5 │
                                  │   records[5] = ...   │
                                  └──────────────────────┘

Records are frozen dataclasses. update() does read → replace → write
inside the lock, so two concurrent partial updates to the same record
cannot lose each other's fields.

=============================================================================
"""

from dataclasses import replace
from itertools import count
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
import logging
import threading


logger = logging.getLogger(__name__)

R = TypeVar("R")


class RecordStore(Generic[R]):
    """
    Lock-guarded store with a monotonically increasing id generator.

    Usage:
        store = RecordStore(name="products")
        product = store.create(lambda id: Product(id=id, name="Mouse", price=30000))
        store.update(product.id, {"stock": 5})
        store.delete(product.id)
    """

    def __init__(self, name: str = "records", start_id: int = 1):
        self.name = name
        self._records: Dict[int, R] = {}
        self._ids = count(start_id)
        self._lock = threading.Lock()

    def all(self) -> List[R]:
        """Snapshot of all records in id order."""
        with self._lock:
            return [self._records[key] for key in sorted(self._records)]

    def get(self, record_id: int) -> Optional[R]:
        with self._lock:
            return self._records.get(record_id)

    def create(self, factory: Callable[[int], R]) -> R:
        """
        Allocate a fresh id and insert ``factory(id)``.

        Ids are never reused, not even after a delete. If the factory
        raises, nothing is stored and the id is skipped.
        """
        with self._lock:
            record_id = next(self._ids)
            record = factory(record_id)
            self._records[record_id] = record

        logger.debug(f"{self.name}: created id={record_id}")
        return record

    def update(self, record_id: int, changes: Dict[str, Any]) -> Optional[R]:
        """
        Apply ``changes`` to an existing record.

        Fields not in ``changes`` keep their values. An empty ``changes``
        returns the record untouched.

        Returns:
            The updated record, or None if ``record_id`` does not exist.
        """
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                return None
            updated = replace(current, **changes) if changes else current
            self._records[record_id] = updated
            return updated

    def delete(self, record_id: int) -> bool:
        """Remove a record. Returns False if it did not exist."""
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: int) -> bool:
        with self._lock:
            return record_id in self._records
