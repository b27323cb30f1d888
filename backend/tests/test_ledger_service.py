from datetime import datetime
from decimal import Decimal

from tillpoint.models import CartLine, Sale
from tillpoint.services.ledger_service import SalesLedger
from tillpoint.services.persistence_service import SALES


def _sale(sale_id, total="5.00", minute=0):
    line = CartLine(product_id="1", name="Coffee", quantity=2, unit_price=Decimal(total) / 2)
    return Sale(
        id=sale_id,
        items=(line,),
        total_amount=Decimal(total),
        timestamp=datetime(2026, 10, 19, 9, minute, 0),
        cashier_id="cashier-1",
        cashier_name="cashier1",
        payment_method="CASH",
    )


class TestSalesLedger:
    def test_append_keeps_commit_order(self, core):
        ledger = SalesLedger(core.store)
        for n in range(5):
            assert ledger.append(_sale(f"s{n}", minute=n))

        assert [s.id for s in ledger.list()] == ["s0", "s1", "s2", "s3", "s4"]
        assert len(ledger) == 5

    def test_duplicate_id_is_ignored(self, core):
        ledger = SalesLedger(core.store)
        ledger.append(_sale("s1"))

        assert ledger.append(_sale("s1", total="9.00")) is False
        assert len(ledger) == 1
        assert ledger.get("s1").total_amount == Decimal("5.00")

    def test_list_is_a_snapshot(self, core):
        ledger = SalesLedger(core.store)
        ledger.append(_sale("s1"))
        snapshot = ledger.list()

        ledger.append(_sale("s2"))

        assert [s.id for s in snapshot] == ["s1"]

    def test_recent(self, core):
        ledger = SalesLedger(core.store)
        for n in range(4):
            ledger.append(_sale(f"s{n}"))

        assert [s.id for s in ledger.recent(2)] == ["s2", "s3"]
        assert len(ledger.recent(10)) == 4
        assert ledger.recent(0) == []

    def test_get_unknown(self, core):
        assert SalesLedger(core.store).get("nope") is None

    def test_load_from_store(self, core):
        core.store.save(SALES, [_sale("a").to_dict(), _sale("b", minute=5).to_dict()])
        ledger = SalesLedger(core.store)

        assert ledger.load() == 2
        assert [s.id for s in ledger.list()] == ["a", "b"]
        assert ledger.get("b").timestamp == datetime(2026, 10, 19, 9, 5, 0)

    def test_records_match_wire_format(self, core):
        ledger = SalesLedger(core.store)
        ledger.append(_sale("s1"))

        [record] = ledger.records()
        assert record["totalAmount"] == 5.0
        assert record["timestamp"] == "2026-10-19T09:00:00.000Z"
        assert record["paymentMethod"] == "CASH"
