# Overview: In-memory product catalog backed by the snapshot store.

"""
ProductCatalog is the source of truth for price and available stock.

- list()/get() hand out copies; callers cannot reach live records.
- apply_decrement() is the only path that lowers stock. It never produces
  negative stock: an oversized request clamps to zero and raises
  InventoryConflict so the discrepancy is visible.
- upsert()/remove() serve catalog management and persist immediately. In the
  wired application they persist through the checkout finalizer, so the
  catalog is never saved without the ledger that explains its stock.
"""

from __future__ import annotations

import threading

from flask import current_app

from ..models import Product
from ..validation import ValidationError, enforce_rules_product
from .concurrency import LockRegistry
from .errors import InventoryConflict
from .persistence_service import PRODUCTS, PersistenceStore


class ProductCatalog:
    def __init__(self, store: PersistenceStore, locks: LockRegistry):
        self._store = store
        self._locks = locks
        self._products: dict[str, Product] = {}
        self._guard = threading.RLock()
        self._persist = self._save_products

    def _save_products(self) -> None:
        self._store.save(PRODUCTS, self.records())

    def persist_with(self, persist) -> None:
        """Route catalog writes through persist(), which saves products and sales together."""
        self._persist = persist

    def load(self) -> int:
        """Replace in-memory state with the persisted snapshot."""
        records = self._store.load(PRODUCTS) or []
        products = [Product.from_dict(r) for r in records]
        with self._guard:
            self._products = {p.id: p for p in products}
        return len(products)

    def records(self) -> list[dict]:
        with self._guard:
            return [p.to_dict() for p in self._products.values()]

    def list(self) -> list[Product]:
        with self._guard:
            return [p.copy() for p in self._products.values()]

    def search(self, term: str) -> list[Product]:
        """Case-insensitive match on name or category."""
        needle = (term or "").strip().lower()
        if not needle:
            return self.list()
        return [
            p for p in self.list()
            if needle in p.name.lower() or needle in p.category.lower()
        ]

    def low_stock(self) -> list[Product]:
        return [p for p in self.list() if p.is_low_stock]

    def get(self, product_id: str) -> Product | None:
        with self._guard:
            product = self._products.get(product_id)
            return product.copy() if product else None

    def stock_of(self, product_id: str) -> int:
        with self._guard:
            product = self._products.get(product_id)
            return product.stock if product else 0

    def apply_decrement(self, product_id: str, quantity: int) -> int:
        """
        Reduce stock by quantity and return the remaining stock.

        Callers must hold the product lock (see LockRegistry) across their
        stock check and this call.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        with self._guard:
            product = self._products.get(product_id)
            available = product.stock if product else 0
            if product is None or quantity > available:
                if product is not None:
                    product.stock = 0
                raise InventoryConflict(
                    "Insufficient stock",
                    details={"items": [{
                        "product_id": product_id,
                        "requested_quantity": quantity,
                        "available": available,
                    }]},
                )
            product.stock -= quantity
            return product.stock

    def upsert(self, product: Product) -> Product:
        """Insert or replace a product and persist the catalog."""
        if not product.id:
            raise ValidationError("id is required")
        enforce_rules_product({
            "price": product.price,
            "stock": product.stock,
            "minStock": product.min_stock,
        })

        with self._locks.hold([product.id]), self._store.exclusive():
            with self._guard:
                previous = self._products.get(product.id)
                self._products[product.id] = product.copy()
            try:
                self._persist()
            except Exception:
                with self._guard:
                    if previous is None:
                        self._products.pop(product.id, None)
                    else:
                        self._products[product.id] = previous
                raise

        current_app.logger.info("Product %s saved (stock=%s)", product.id, product.stock)
        return product.copy()

    def remove(self, product_id: str) -> bool:
        """Delete a product; returns False when it did not exist."""
        with self._locks.hold([product_id]), self._store.exclusive():
            with self._guard:
                order = list(self._products)
                previous = self._products.pop(product_id, None)
            if previous is None:
                return False
            try:
                self._persist()
            except Exception:
                with self._guard:
                    self._products[product_id] = previous
                    self._products = {k: self._products[k] for k in order if k in self._products}
                raise

        current_app.logger.info("Product %s removed", product_id)
        return True
