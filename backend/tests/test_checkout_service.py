from decimal import Decimal

import pytest

from tillpoint.models import Product, Sale
from tillpoint.services.cart_service import CartBuilder
from tillpoint.services.errors import (
    EmptyCart,
    FinalizeInProgress,
    InventoryConflict,
    PersistenceFailure,
    TotalMismatch,
)
from tillpoint.services.persistence_service import PRODUCTS, SALES
from tillpoint.validation import ValidationError

from conftest import add_product, cart_with


def _persisted_stock(core, product_id):
    return next(r["stock"] for r in core.store.load(PRODUCTS) if r["id"] == product_id)


class TestFinalize:
    def test_three_of_five(self, core, cashier):
        add_product(core, "1", stock=5, price="24.50")
        cart = cart_with(core, ("1", 3))

        sale = core.finalizer.finalize(cart, cashier, "CASH")

        assert sale.total_amount == Decimal("24.50") * 3
        assert core.catalog.stock_of("1") == 2
        assert len(core.ledger) == 1
        assert cart.is_empty()
        assert _persisted_stock(core, "1") == 2
        assert [s["id"] for s in core.store.load(SALES)] == [sale.id]

    def test_sale_records_cashier_and_lines(self, core, cashier):
        add_product(core, "a", stock=4, price="1.80")
        add_product(core, "b", stock=4, price="3.50")
        cart = cart_with(core, ("a", 2), ("b", 1))

        sale = core.finalizer.finalize(cart, cashier, "MOBILE")

        assert sale.id.startswith("sale-")
        assert sale.cashier_id == "cashier-1"
        assert sale.cashier_name == "cashier1"
        assert sale.payment_method == "MOBILE"
        assert [(i.product_id, i.quantity) for i in sale.items] == [("a", 2), ("b", 1)]
        assert sale.total_amount == sum(i.line_total for i in sale.items)

    def test_empty_cart(self, core, cashier):
        before = [p.stock for p in core.catalog.list()]

        with pytest.raises(EmptyCart):
            core.finalizer.finalize(CartBuilder(), cashier, "CASH")

        assert len(core.ledger) == 0
        assert [p.stock for p in core.catalog.list()] == before

    def test_invalid_payment_method(self, core, cashier):
        cart = cart_with(core, ("1", 1))
        with pytest.raises(ValidationError):
            core.finalizer.finalize(cart, cashier, "CHEQUE")
        assert cart.quantity_of("1") == 1
        assert len(core.ledger) == 0

    def test_sequential_sales_exhaust_stock(self, core, cashier):
        add_product(core, "p1", stock=1)
        first = cart_with(core, ("p1", 1))
        second = cart_with(core, ("p1", 1))

        core.finalizer.finalize(first, cashier, "CASH")
        with pytest.raises(InventoryConflict) as exc_info:
            core.finalizer.finalize(second, cashier, "CARD")

        assert exc_info.value.details["items"][0]["product_id"] == "p1"
        assert exc_info.value.details["items"][0]["available"] == 0
        assert core.catalog.stock_of("p1") == 0
        assert len(core.ledger) == 1
        assert second.quantity_of("p1") == 1

    def test_conflict_names_every_offender_and_applies_nothing(self, core, cashier):
        add_product(core, "ok", stock=10)
        add_product(core, "x", stock=2)
        add_product(core, "y", stock=2)
        cart = cart_with(core, ("ok", 3), ("x", 2), ("y", 2))

        add_product(core, "x", stock=1)
        add_product(core, "y", stock=0)

        with pytest.raises(InventoryConflict) as exc_info:
            core.finalizer.finalize(cart, cashier, "CASH")

        offenders = {item["product_id"] for item in exc_info.value.details["items"]}
        assert offenders == {"x", "y"}
        assert core.catalog.stock_of("ok") == 10
        assert core.catalog.stock_of("x") == 1
        assert len(core.ledger) == 0

    def test_total_mismatch_is_detected(self, core, cashier, monkeypatch):
        cart = cart_with(core, ("1", 2))
        monkeypatch.setattr(cart, "total", lambda: Decimal("0.01"))

        with pytest.raises(TotalMismatch):
            core.finalizer.finalize(cart, cashier, "CASH")

        assert core.catalog.stock_of("1") == 45
        assert len(core.ledger) == 0

    def test_concurrent_finalize_on_same_cart_rejected(self, core, cashier):
        cart = cart_with(core, ("1", 1))
        with cart.commit_scope():
            with pytest.raises(FinalizeInProgress):
                core.finalizer.finalize(cart, cashier, "CASH")
        assert len(core.ledger) == 0

    def test_ledger_grows_in_commit_order(self, core, cashier):
        ids = []
        for method in ("CASH", "CARD", "MOBILE", "CASH"):
            ids.append(core.finalizer.finalize(cart_with(core, ("3", 1)), cashier, method).id)

        assert [s.id for s in core.ledger.list()] == ids
        assert core.catalog.stock_of("3") == 56


class TestPersistenceFailure:
    @pytest.fixture
    def failing_store(self, core, monkeypatch):
        def boom(*args, **kwargs):
            raise PersistenceFailure("store down", details={"keys": [PRODUCTS, SALES]})

        monkeypatch.setattr(core.store, "save_many", boom)
        return monkeypatch

    def test_applied_in_memory_but_reported(self, core, cashier, failing_store):
        cart = cart_with(core, ("1", 2))

        with pytest.raises(PersistenceFailure) as exc_info:
            core.finalizer.finalize(cart, cashier, "CASH")

        sale_id = exc_info.value.details["sale_id"]
        assert core.catalog.stock_of("1") == 43
        assert core.ledger.get(sale_id) is not None
        assert core.finalizer.pending() == [sale_id]
        assert cart.is_empty()
        assert _persisted_stock(core, "1") == 45
        assert core.store.load(SALES) == []

    def test_retry_persists_without_duplicating(self, core, cashier, failing_store):
        with pytest.raises(PersistenceFailure) as exc_info:
            core.finalizer.finalize(cart_with(core, ("1", 2)), cashier, "CASH")
        sale_id = exc_info.value.details["sale_id"]

        failing_store.undo()
        sale = core.finalizer.retry_persist(sale_id)
        again = core.finalizer.retry_persist(sale_id)

        assert sale.id == again.id == sale_id
        assert core.finalizer.pending() == []
        assert len(core.ledger) == 1
        assert [s["id"] for s in core.store.load(SALES)] == [sale_id]
        assert _persisted_stock(core, "1") == 43

    def test_next_successful_sale_flushes_pending(self, core, cashier, failing_store):
        with pytest.raises(PersistenceFailure):
            core.finalizer.finalize(cart_with(core, ("1", 1)), cashier, "CASH")

        failing_store.undo()
        core.finalizer.finalize(cart_with(core, ("1", 1)), cashier, "CARD")

        assert core.finalizer.pending() == []
        assert len(core.store.load(SALES)) == 2
        assert _persisted_stock(core, "1") == 43

    def test_catalog_edit_persists_pending_sale_with_stock(self, core, cashier, failing_store):
        with pytest.raises(PersistenceFailure) as exc_info:
            core.finalizer.finalize(cart_with(core, ("1", 5)), cashier, "CASH")
        sale_id = exc_info.value.details["sale_id"]

        failing_store.undo()
        add_product(core, "2", stock=99)

        assert _persisted_stock(core, "1") == 40
        assert _persisted_stock(core, "2") == 99
        assert [s["id"] for s in core.store.load(SALES)] == [sale_id]
        assert core.finalizer.pending() == []

    def test_failed_catalog_edit_keeps_sale_pending(self, core, cashier, failing_store):
        with pytest.raises(PersistenceFailure) as exc_info:
            core.finalizer.finalize(cart_with(core, ("1", 5)), cashier, "CASH")

        with pytest.raises(PersistenceFailure):
            add_product(core, "2", stock=99)

        assert core.catalog.stock_of("2") == 12
        assert core.finalizer.pending() == [exc_info.value.details["sale_id"]]
        assert _persisted_stock(core, "1") == 45
        assert core.store.load(SALES) == []

    def test_retry_of_unknown_sale(self, core):
        with pytest.raises(ValidationError):
            core.finalizer.retry_persist("sale-missing")


class TestSaleRecord:
    def test_reloaded_sale_matches_committed_sale(self, core, cashier):
        sale = core.finalizer.finalize(cart_with(core, ("2", 2), ("4", 1)), cashier, "CARD")

        [record] = core.store.load(SALES)
        assert Sale.from_dict(record) == sale
        assert record["items"][0] == {
            "productId": "2", "name": "Whole Grain Bread",
            "quantity": 2, "price": 4.25, "total": 8.5,
        }
        assert record["timestamp"].endswith("Z")
