# Overview: Checkout finalization; turns a cart into a committed Sale.

"""
TransactionFinalizer

Per cart: IDLE -> COMMITTING -> IDLE (CartBuilder.commit_scope). A second
finalize on the same cart while one is in flight raises FinalizeInProgress.

finalize(cart, cashier, payment_method):
1. EmptyCart if the cart has no lines.
2. Under the product locks, re-check live stock for every line. Any shortfall
   fails the whole finalize with InventoryConflict; nothing is recorded.
3. Recompute the total and compare it with the cart's running total.
4. Build the Sale (fresh id, current time).
5. Decrement stock for every line.
6. Append the Sale to the ledger.
7. Persist catalog and ledger together.
8. Clear the cart and return the Sale.

GUARANTEE: applied at least once, persisted eventually. If step 7 fails the
in-memory decrement and append stay in place, the cart is cleared, and
PersistenceFailure carries the sale id. Call retry_persist(sale_id); never
re-run the sale.
"""

from __future__ import annotations

import threading
import uuid
from decimal import Decimal

from flask import current_app

from ..models import PAYMENT_METHODS, Sale, User
from ..time_utils import to_millis, utcnow
from ..validation import ValidationError
from .cart_service import CartBuilder
from .catalog_service import ProductCatalog
from .concurrency import LockRegistry
from .errors import EmptyCart, InventoryConflict, PersistenceFailure, TotalMismatch
from .ledger_service import SalesLedger
from .persistence_service import PRODUCTS, SALES, PersistenceStore


def new_sale_id() -> str:
    return f"sale-{uuid.uuid4().hex}"


def sale_timestamp():
    return to_millis(utcnow())


class TransactionFinalizer:
    def __init__(
        self,
        *,
        catalog: ProductCatalog,
        ledger: SalesLedger,
        store: PersistenceStore,
        locks: LockRegistry,
        id_factory=new_sale_id,
        clock=sale_timestamp,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._store = store
        self._locks = locks
        self._id_factory = id_factory
        self._clock = clock
        self._pending: dict[str, Sale] = {}
        self._pending_guard = threading.Lock()

    def _check_live_stock(self, lines) -> None:
        insufficient = []
        for line in lines:
            available = self._catalog.stock_of(line.product_id)
            if line.quantity > available:
                insufficient.append({
                    "product_id": line.product_id,
                    "name": line.name,
                    "requested_quantity": line.quantity,
                    "available": available,
                })
        if insufficient:
            names = ", ".join(item["name"] or item["product_id"] for item in insufficient)
            raise InventoryConflict(
                f"Insufficient stock for: {names}",
                details={"items": insufficient},
            )

    def persist(self) -> None:
        """
        Save catalog and ledger in one transaction.

        Every pending sale is already in the ledger, so one successful
        snapshot makes all of them durable and they leave the pending map.
        Catalog management writes go through here as well.
        """
        with self._store.exclusive():
            with self._pending_guard:
                covered = list(self._pending)
            self._store.save_many({
                PRODUCTS: self._catalog.records(),
                SALES: self._ledger.records(),
            })
        with self._pending_guard:
            for sale_id in covered:
                self._pending.pop(sale_id, None)

    def finalize(self, cart: CartBuilder, cashier: User, payment_method: str) -> Sale:
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}"
            )

        with cart.commit_scope():
            lines = cart.lines()
            if not lines:
                raise EmptyCart("Cannot finalize an empty cart")

            with self._locks.hold(line.product_id for line in lines):
                self._check_live_stock(lines)

                total = sum((line.line_total for line in lines), Decimal("0"))
                running_total = cart.total()
                if total != running_total:
                    current_app.logger.error(
                        "Cart total mismatch: lines=%s cart=%s", total, running_total
                    )
                    raise TotalMismatch(
                        "Cart total does not match line totals",
                        details={"line_sum": str(total), "cart_total": str(running_total)},
                    )

                sale = Sale(
                    id=self._id_factory(),
                    items=tuple(lines),
                    total_amount=total,
                    timestamp=self._clock(),
                    cashier_id=cashier.id,
                    cashier_name=cashier.username,
                    payment_method=payment_method,
                )

                for line in lines:
                    self._catalog.apply_decrement(line.product_id, line.quantity)
                self._ledger.append(sale)

            with self._pending_guard:
                self._pending[sale.id] = sale

            try:
                self.persist()
            except PersistenceFailure as exc:
                cart.clear()
                current_app.logger.error(
                    "Sale %s applied in memory but not persisted", sale.id
                )
                raise PersistenceFailure(
                    "Sale recorded but not yet persisted; retry persistence",
                    details={**exc.details, "sale_id": sale.id},
                ) from exc

            cart.clear()

        current_app.logger.info(
            "Sale %s committed: %s line(s), total %s, %s by %s",
            sale.id, len(sale.items), sale.total_amount, payment_method, cashier.username,
        )
        return sale

    def retry_persist(self, sale_id: str) -> Sale:
        """
        Re-run only the persistence step for a sale already applied in memory.

        Idempotent: a sale that is already durable is returned unchanged.
        """
        with self._pending_guard:
            sale = self._pending.get(sale_id)
        if sale is None:
            existing = self._ledger.get(sale_id)
            if existing is None:
                raise ValidationError(f"Unknown sale: {sale_id}")
            return existing

        try:
            self.persist()
        except PersistenceFailure as exc:
            raise PersistenceFailure(
                "Persistence retry failed",
                details={**exc.details, "sale_id": sale_id},
            ) from exc

        current_app.logger.info("Sale %s persisted on retry", sale_id)
        return sale

    def pending(self) -> list[str]:
        with self._pending_guard:
            return list(self._pending)
