# Overview: Durable key-value snapshot store for the products, sales and users collections.

"""
Snapshot store invariants

- Each key maps to one whole collection; save() overwrites it entirely.
- No partial writes, no versioning, no compare-and-swap.
- A failed save rolls back: the previous snapshot for that key stays intact.
- Writes are single-writer within the process (see exclusive()).
- Callers must not assume durability until save() returns.
"""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Mapping

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import CollectionSnapshot
from ..time_utils import utcnow
from .concurrency import run_with_retry
from .errors import PersistenceFailure


PRODUCTS = "products"
SALES = "sales"
USERS = "users"
COLLECTIONS = (PRODUCTS, SALES, USERS)


def _check_key(key: str) -> None:
    if key not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {key}")


class PersistenceStore:
    def __init__(self, *, write_attempts: int = 3):
        self._write_attempts = max(1, write_attempts)
        self._writer = threading.RLock()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """
        Hold the single-writer lock.

        Callers that build a snapshot from live state take it inside this
        block so a later writer can never persist an older view.
        """
        with self._writer:
            yield

    def load(self, key: str) -> list[dict] | None:
        """Return the stored collection, or None when it was never saved."""
        _check_key(key)
        try:
            row = db.session.get(CollectionSnapshot, key)
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error("Failed to load collection %s: %s", key, exc)
            raise PersistenceFailure(f"Failed to load {key}", details={"key": key}) from exc
        if row is None:
            return None
        return copy.deepcopy(list(row.payload or []))

    def save(self, key: str, records: Iterable[dict]) -> bool:
        return self.save_many({key: records})

    def save_many(self, collections: Mapping[str, Iterable[dict]]) -> bool:
        """
        Overwrite several collections in one database transaction.

        Either every collection is written or none is. Raises
        PersistenceFailure after rolling back.
        """
        payloads = {}
        for key, records in collections.items():
            _check_key(key)
            payloads[key] = copy.deepcopy(list(records))

        def _op():
            now = utcnow()
            for key, payload in payloads.items():
                row = db.session.get(CollectionSnapshot, key)
                if row is None:
                    row = CollectionSnapshot(key=key)
                    db.session.add(row)
                row.payload = payload
                row.record_count = len(payload)
                row.updated_at = now
            db.session.commit()

        with self._writer:
            try:
                run_with_retry(_op, attempts=self._write_attempts)
            except SQLAlchemyError as exc:
                db.session.rollback()
                keys = sorted(payloads)
                current_app.logger.error("Failed to save collections %s: %s", ", ".join(keys), exc)
                raise PersistenceFailure(
                    "Failed to persist " + ", ".join(keys),
                    details={"keys": keys},
                ) from exc
        return True

    def init(self, *, default_products: list[dict], default_users: list[dict]) -> list[str]:
        """
        Seed collections that have no snapshot yet.

        products -> the fixed default catalog, sales -> empty ledger,
        users -> default accounts. Returns the keys that were seeded.
        """
        seeded = {}
        defaults = {PRODUCTS: default_products, SALES: [], USERS: default_users}
        with self._writer:
            for key in COLLECTIONS:
                if self.load(key) is None:
                    seeded[key] = defaults[key]
            if seeded:
                self.save_many(seeded)
                current_app.logger.info("Seeded collections: %s", ", ".join(sorted(seeded)))
        return sorted(seeded)

    def stats(self) -> list[dict]:
        rows = db.session.query(CollectionSnapshot).order_by(CollectionSnapshot.key.asc()).all()
        return [row.to_dict() for row in rows]
