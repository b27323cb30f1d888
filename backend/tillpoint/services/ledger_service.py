# Overview: Append-only ledger of committed sales.

from __future__ import annotations

import threading

from ..models import Sale
from .persistence_service import SALES, PersistenceStore
"""
Sales Ledger Invariants (authoritative)

- Append-only: no delete or update of existing sales.
- list() is chronological by commit order, oldest first.
- Appending a sale id already present is a no-op, so persistence retries
  can never create a duplicate entry.
- Corrections are new compensating entries recorded elsewhere.
"""


class SalesLedger:
    def __init__(self, store: PersistenceStore):
        self._store = store
        self._sales: list[Sale] = []
        self._ids: set[str] = set()
        self._guard = threading.Lock()

    def load(self) -> int:
        records = self._store.load(SALES) or []
        sales = [Sale.from_dict(r) for r in records]
        with self._guard:
            self._sales = sales
            self._ids = {s.id for s in sales}
        return len(sales)

    def append(self, sale: Sale) -> bool:
        """Append a committed sale. Returns False if the id was already recorded."""
        with self._guard:
            if sale.id in self._ids:
                return False
            self._sales.append(sale)
            self._ids.add(sale.id)
            return True

    def list(self) -> list[Sale]:
        with self._guard:
            return list(self._sales)

    def recent(self, limit: int) -> list[Sale]:
        if limit <= 0:
            return []
        with self._guard:
            return self._sales[-limit:]

    def get(self, sale_id: str) -> Sale | None:
        with self._guard:
            if sale_id not in self._ids:
                return None
            for sale in reversed(self._sales):
                if sale.id == sale_id:
                    return sale
        return None

    def records(self) -> list[dict]:
        with self._guard:
            return [s.to_dict() for s in self._sales]

    def __len__(self) -> int:
        with self._guard:
            return len(self._sales)
