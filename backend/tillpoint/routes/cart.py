# Overview: Flask API routes for the session cart and checkout; parses input and returns JSON responses.

# backend/tillpoint/routes/cart.py
"""
Cart and checkout routes.

Each authenticated session owns exactly one cart (g.cart). Cart mutations
report "applied": false when a stock clamp or no-op kept the requested change
from taking full effect; that is not an error.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..core import get_core
from ..services.errors import (
    EmptyCart,
    FinalizeInProgress,
    InventoryConflict,
    LockTimeout,
    PersistenceFailure,
    TotalMismatch,
)
from ..validation import ValidationError
from ..decorators import require_auth


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_response(applied: bool | None = None, status: int = 200):
    body = {"cart": g.cart.to_dict()}
    if applied is not None:
        body["applied"] = applied
    return jsonify(body), status


@cart_bp.get("")
@require_auth
def get_cart_route():
    return _cart_response()


@cart_bp.post("/items")
@require_auth
def add_item_route():
    """
    Add one unit of a product, checked against the current catalog snapshot.

    Body: {"product_id": str}
    """
    data = request.get_json(silent=True) or {}
    product_id = data.get("product_id")
    if not product_id:
        return jsonify({"error": "product_id required"}), 400

    product = get_core().catalog.get(str(product_id))
    if not product:
        return jsonify({"error": "Product not found"}), 404

    try:
        applied = g.cart.add_item(product)
    except FinalizeInProgress as e:
        return jsonify(e.to_dict()), e.status_code

    return _cart_response(applied)


@cart_bp.patch("/items/<product_id>")
@require_auth
def update_item_route(product_id: str):
    """
    Change a line's quantity by delta, capped at live stock.

    Body: {"delta": int}
    """
    data = request.get_json(silent=True) or {}
    delta = data.get("delta")
    if not isinstance(delta, int) or isinstance(delta, bool):
        return jsonify({"error": "delta must be an integer"}), 400

    if g.cart.quantity_of(product_id) == 0:
        return jsonify({"error": "Product not in cart"}), 404

    try:
        applied = g.cart.update_quantity(
            product_id, delta, stock=get_core().catalog.stock_of(product_id)
        )
    except FinalizeInProgress as e:
        return jsonify(e.to_dict()), e.status_code

    return _cart_response(applied)


@cart_bp.delete("/items/<product_id>")
@require_auth
def remove_item_route(product_id: str):
    try:
        removed = g.cart.remove(product_id)
    except FinalizeInProgress as e:
        return jsonify(e.to_dict()), e.status_code
    if not removed:
        return jsonify({"error": "Product not in cart"}), 404
    return _cart_response()


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    g.cart.clear()
    return _cart_response()


@cart_bp.post("/checkout")
@require_auth
def checkout_route():
    """
    Finalize the session cart into a Sale.

    Body: {"payment_method": "CASH" | "CARD" | "MOBILE"}

    503 with details.sale_id means the sale was applied but not yet
    persisted: retry with POST /api/sales/<sale_id>/persist, do not check
    out again.
    """
    data = request.get_json(silent=True) or {}
    payment_method = data.get("payment_method", "CASH")

    try:
        sale = get_core().finalizer.finalize(g.cart, g.current_user, payment_method)
        return jsonify({"sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except (EmptyCart, InventoryConflict, FinalizeInProgress, LockTimeout, PersistenceFailure) as e:
        return jsonify(e.to_dict()), e.status_code
    except TotalMismatch as e:
        current_app.logger.exception("Cart total mismatch at checkout")
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to finalize sale")
        return jsonify({"error": "Internal server error"}), 500
