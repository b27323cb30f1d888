from decimal import Decimal

import pytest

from tillpoint.models import Product
from tillpoint.services.catalog_service import ProductCatalog
from tillpoint.services.concurrency import LockRegistry
from tillpoint.services.errors import InventoryConflict, PersistenceFailure
from tillpoint.services.persistence_service import PRODUCTS
from tillpoint.validation import ValidationError

from conftest import add_product


class TestReads:
    def test_list_returns_copies(self, core):
        products = core.catalog.list()
        products[0].stock = 0
        products[0].price = Decimal("999")

        fresh = core.catalog.get(products[0].id)
        assert fresh.stock == 45
        assert fresh.price == Decimal("24.50")

    def test_stock_of_unknown_product_is_zero(self, core):
        assert core.catalog.stock_of("does-not-exist") == 0
        assert core.catalog.stock_of("1") == 45

    def test_search_matches_name_or_category(self, core):
        assert [p.id for p in core.catalog.search("beverages")] == ["1", "5"]
        assert [p.id for p in core.catalog.search("MILK")] == ["3"]
        assert len(core.catalog.search("")) == 5

    def test_low_stock_uses_min_stock_threshold(self, core):
        assert [p.id for p in core.catalog.low_stock()] == ["2", "4"]


class TestApplyDecrement:
    def test_decrement_reduces_stock(self, core):
        add_product(core, "p1", stock=5)
        assert core.catalog.apply_decrement("p1", 3) == 2
        assert core.catalog.stock_of("p1") == 2

    def test_oversized_decrement_clamps_to_zero_and_reports(self, core):
        add_product(core, "p1", stock=2)

        with pytest.raises(InventoryConflict) as exc_info:
            core.catalog.apply_decrement("p1", 5)

        assert core.catalog.stock_of("p1") == 0
        assert exc_info.value.details["items"] == [
            {"product_id": "p1", "requested_quantity": 5, "available": 2}
        ]

    def test_decrement_of_unknown_product_is_a_conflict(self, core):
        with pytest.raises(InventoryConflict):
            core.catalog.apply_decrement("ghost", 1)

    def test_non_positive_quantity_rejected(self, core):
        with pytest.raises(ValueError):
            core.catalog.apply_decrement("1", 0)


class TestManagement:
    def test_upsert_persists_new_product(self, core):
        add_product(core, "p9", stock=7, price="3.10")

        reloaded = ProductCatalog(core.store, LockRegistry())
        reloaded.load()

        assert reloaded.get("p9").stock == 7
        assert reloaded.get("p9").price == Decimal("3.10")
        assert [p.id for p in reloaded.list()][-1] == "p9"

    def test_upsert_replaces_in_place(self, core):
        product = core.catalog.get("3")
        product.stock = 61
        core.catalog.upsert(product)

        assert [p.id for p in core.catalog.list()] == ["1", "2", "3", "4", "5"]
        assert core.store.load(PRODUCTS)[2]["stock"] == 61

    def test_upsert_rejects_negative_values(self, core):
        with pytest.raises(ValidationError):
            core.catalog.upsert(Product(id="bad", name="Bad", category="X",
                                        price=Decimal("-1"), stock=1))
        with pytest.raises(ValidationError):
            core.catalog.upsert(Product(id="bad", name="Bad", category="X",
                                        price=Decimal("1"), stock=-1))
        assert core.catalog.get("bad") is None

    def test_failed_upsert_restores_previous_record(self, core, monkeypatch):
        def boom(*args, **kwargs):
            raise PersistenceFailure("store down")

        monkeypatch.setattr(core.store, "save_many", boom)
        product = core.catalog.get("1")
        product.stock = 1

        with pytest.raises(PersistenceFailure):
            core.catalog.upsert(product)

        assert core.catalog.stock_of("1") == 45

    def test_remove(self, core):
        assert core.catalog.remove("2") is True
        assert core.catalog.get("2") is None
        assert "2" not in [r["id"] for r in core.store.load(PRODUCTS)]
        assert core.catalog.remove("2") is False

    def test_failed_remove_restores_order(self, core, monkeypatch):
        def boom(*args, **kwargs):
            raise PersistenceFailure("store down")

        monkeypatch.setattr(core.store, "save_many", boom)

        with pytest.raises(PersistenceFailure):
            core.catalog.remove("3")

        assert [p.id for p in core.catalog.list()] == ["1", "2", "3", "4", "5"]
