# Overview: Per-session cart accumulation against catalog stock snapshots.

"""
CartBuilder keeps an ordered productId -> CartLine mapping for one session.

- Quantities are clamped to the stock snapshot the cart was given; a clamp is
  not an error. Mutators return True when the requested change was applied
  in full, False when it was clamped or ignored.
- The cart never touches the catalog. Live stock is re-checked only when the
  cart is finalized (see checkout_service).
- While a finalize is committing the cart, mutations raise FinalizeInProgress.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator

from ..models import CartLine, Product
from .errors import FinalizeInProgress

IDLE = "IDLE"
COMMITTING = "COMMITTING"


class CartBuilder:
    def __init__(self):
        self._lines: dict[str, CartLine] = {}
        self._stock: dict[str, int] = {}
        self._mutex = threading.RLock()
        self.state = IDLE

    def _ensure_idle(self) -> None:
        if self.state != IDLE:
            raise FinalizeInProgress("Cart is being finalized")

    def add_item(self, product: Product) -> bool:
        """Add one unit of product."""
        with self._mutex:
            self._ensure_idle()
            self._stock[product.id] = product.stock
            if product.stock <= 0:
                return False

            line = self._lines.get(product.id)
            if line is None:
                self._lines[product.id] = CartLine(
                    product_id=product.id,
                    name=product.name,
                    quantity=1,
                    unit_price=product.price,
                )
                return True

            if line.quantity + 1 > product.stock:
                return False
            self._lines[product.id] = line.with_quantity(line.quantity + 1)
            return True

    def update_quantity(self, product_id: str, delta: int, stock: int | None = None) -> bool:
        """
        Change a line's quantity by delta.

        new quantity = max(0, current + delta), capped at stock (the value
        passed in, else the last snapshot seen by add_item). Zero removes
        the line. A positive delta never lowers a line: when stock has
        already fallen below the current quantity the line is left as is.
        """
        with self._mutex:
            self._ensure_idle()
            line = self._lines.get(product_id)
            if line is None:
                return False

            if stock is not None:
                self._stock[product_id] = stock
            limit = self._stock.get(product_id, line.quantity)

            requested = max(0, line.quantity + delta)
            quantity = min(requested, max(0, limit))
            if delta > 0:
                quantity = max(quantity, line.quantity)

            if quantity == 0:
                del self._lines[product_id]
            elif quantity != line.quantity:
                self._lines[product_id] = line.with_quantity(quantity)
            return quantity == line.quantity + delta

    def remove(self, product_id: str) -> bool:
        with self._mutex:
            self._ensure_idle()
            return self._lines.pop(product_id, None) is not None

    def quantity_of(self, product_id: str) -> int:
        with self._mutex:
            line = self._lines.get(product_id)
            return line.quantity if line else 0

    def lines(self) -> list[CartLine]:
        with self._mutex:
            return list(self._lines.values())

    def total(self) -> Decimal:
        with self._mutex:
            return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def is_empty(self) -> bool:
        with self._mutex:
            return not self._lines

    def clear(self) -> None:
        with self._mutex:
            self._lines.clear()
            self._stock.clear()

    @contextmanager
    def commit_scope(self) -> Iterator["CartBuilder"]:
        """IDLE -> COMMITTING for the duration of the block; rejects a second entrant."""
        with self._mutex:
            if self.state == COMMITTING:
                raise FinalizeInProgress("A finalize is already in progress for this cart")
            self.state = COMMITTING
        try:
            yield self
        finally:
            with self._mutex:
                self.state = IDLE

    def to_dict(self) -> dict:
        with self._mutex:
            return {
                "items": [line.to_dict() for line in self._lines.values()],
                "total": float(self.total()),
                "state": self.state,
            }


class CartSessions:
    """Maps an authenticated session id to its own CartBuilder."""

    def __init__(self):
        self._carts: dict[int, CartBuilder] = {}
        self._guard = threading.Lock()

    def get(self, session_id: int) -> CartBuilder:
        with self._guard:
            cart = self._carts.get(session_id)
            if cart is None:
                cart = CartBuilder()
                self._carts[session_id] = cart
            return cart

    def discard(self, session_id: int) -> None:
        with self._guard:
            self._carts.pop(session_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._carts)
