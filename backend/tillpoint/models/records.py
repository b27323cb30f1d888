from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from ..time_utils import parse_iso_datetime, to_utc_z
from ..validation import to_decimal


PAYMENT_METHODS = ("CASH", "CARD", "MOBILE")

ROLE_ADMIN = "ADMIN"
ROLE_CASHIER = "CASHIER"
ROLES = (ROLE_ADMIN, ROLE_CASHIER)


def _money(value: Decimal) -> float:
    return float(value)


@dataclass
class Product:
    """
    Catalog record.

    INVARIANT: stock >= 0. Only the catalog mutates a live Product; everyone
    else receives copies.
    """
    id: str
    name: str
    category: str
    price: Decimal
    stock: int
    min_stock: int = 0

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def copy(self) -> "Product":
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": _money(self.price),
            "stock": self.stock,
            "minStock": self.min_stock,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=data.get("category", ""),
            price=to_decimal(data["price"], "price"),
            stock=int(data["stock"]),
            min_stock=int(data.get("minStock", 0)),
        )


@dataclass(frozen=True)
class CartLine:
    """One product's pending quantity; line_total is always quantity * unit_price."""
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "CartLine":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": _money(self.unit_price),
            "total": _money(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data["productId"]),
            name=data["name"],
            quantity=int(data["quantity"]),
            unit_price=to_decimal(data["price"], "price"),
        )


@dataclass(frozen=True)
class Sale:
    """
    Committed sale (ledger member). Immutable once created.

    INVARIANT: total_amount == sum(item.line_total for item in items).
    """
    id: str
    items: tuple[CartLine, ...]
    total_amount: Decimal
    timestamp: datetime
    cashier_id: str
    cashier_name: str
    payment_method: str

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "totalAmount": _money(self.total_amount),
            "timestamp": to_utc_z(self.timestamp),
            "cashierId": self.cashier_id,
            "cashierName": self.cashier_name,
            "paymentMethod": self.payment_method,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        return cls(
            id=str(data["id"]),
            items=tuple(CartLine.from_dict(item) for item in data.get("items", [])),
            total_amount=to_decimal(data["totalAmount"], "totalAmount"),
            timestamp=parse_iso_datetime(data["timestamp"]),
            cashier_id=str(data["cashierId"]),
            cashier_name=data.get("cashierName", ""),
            payment_method=data["paymentMethod"],
        )


@dataclass
class User:
    """Reference data for authentication; the core never mutates it."""
    id: str
    username: str
    role: str
    password_hash: str = field(default="", repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self, include_secret: bool = False) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "role": self.role,
        }
        if include_secret:
            data["passwordHash"] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=str(data["id"]),
            username=data["username"],
            role=data.get("role", ROLE_CASHIER),
            password_hash=data.get("passwordHash", ""),
        )
