# Overview: Dashboard and report aggregates computed from ledger and catalog snapshots.

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from ..models import PAYMENT_METHODS, Product, Sale
from ..time_utils import utcnow

UNCATEGORIZED = "Uncategorized"


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal("0"))


def daily_revenue(sales: list[Sale], *, days: int = 7, today: date | None = None) -> list[dict]:
    """Revenue per calendar day (UTC), oldest first, ending today."""
    today = today or utcnow().date()
    buckets: "OrderedDict[date, Decimal]" = OrderedDict(
        (today - timedelta(days=offset), Decimal("0")) for offset in range(days - 1, -1, -1)
    )
    for sale in sales:
        day = sale.timestamp.date()
        if day in buckets:
            buckets[day] += sale.total_amount
    return [
        {"date": day.isoformat(), "day": day.strftime("%a"), "revenue": float(amount)}
        for day, amount in buckets.items()
    ]


def summary(sales: list[Sale], products: list[Product], *, today: date | None = None) -> dict:
    """Headline numbers for the dashboard."""
    return {
        "total_revenue": float(_sum(s.total_amount for s in sales)),
        "sale_count": len(sales),
        "items_sold": sum(s.item_count for s in sales),
        "product_count": len(products),
        "low_stock_count": sum(1 for p in products if p.is_low_stock),
        "last_7_days": daily_revenue(sales, days=7, today=today),
    }


def revenue_by_category(sales: list[Sale], products: list[Product]) -> list[dict]:
    """
    Line revenue grouped by the product's current category.

    Lines whose product has since been removed fall under "Uncategorized".
    """
    category_of = {p.id: p.category for p in products}
    totals: dict[str, Decimal] = OrderedDict((p.category, Decimal("0")) for p in products)
    for sale in sales:
        for item in sale.items:
            category = category_of.get(item.product_id, UNCATEGORIZED)
            totals[category] = totals.get(category, Decimal("0")) + item.line_total
    return [{"category": k, "revenue": float(v)} for k, v in totals.items()]


def revenue_by_payment_method(sales: list[Sale]) -> list[dict]:
    totals = OrderedDict((method, [0, Decimal("0")]) for method in PAYMENT_METHODS)
    for sale in sales:
        entry = totals.setdefault(sale.payment_method, [0, Decimal("0")])
        entry[0] += 1
        entry[1] += sale.total_amount
    return [
        {"payment_method": k, "sale_count": count, "revenue": float(amount)}
        for k, (count, amount) in totals.items()
    ]


def sales_between(sales: list[Sale], start: datetime | None, end: datetime | None) -> list[Sale]:
    """Inclusive timestamp filter; either bound may be None."""
    return [
        s for s in sales
        if (start is None or s.timestamp >= start) and (end is None or s.timestamp <= end)
    ]
