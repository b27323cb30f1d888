# Overview: Flask API routes for the sales ledger; parses input and returns JSON responses.

# backend/tillpoint/routes/sales.py
"""Sales ledger routes (read-only, plus persistence retry)"""

from flask import Blueprint, request, jsonify, current_app

from ..core import get_core
from ..models import ROLE_ADMIN
from ..services import reporting_service
from ..services.errors import PersistenceFailure
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError
from ..decorators import require_auth, require_role


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    List committed sales, oldest first.

    Query params:
    - start, end: ISO-8601 bounds (inclusive, optional)
    - limit: int (optional) - only the most recent N after filtering
    """
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start/end must be ISO-8601 datetimes"}), 400

    limit = request.args.get("limit", type=int)
    sales = reporting_service.sales_between(get_core().ledger.list(), start, end)
    if limit is not None:
        sales = sales[-limit:] if limit > 0 else []

    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/pending")
@require_auth
@require_role(ROLE_ADMIN)
def pending_sales_route():
    """Sales applied in memory whose persistence has not succeeded yet."""
    return jsonify({"pending": get_core().finalizer.pending()}), 200


@sales_bp.get("/<sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    sale = get_core().ledger.get(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.post("/<sale_id>/persist")
@require_auth
@require_role(ROLE_ADMIN)
def retry_persist_route(sale_id: str):
    """
    Retry only the persistence step for a sale that was applied but not saved.

    Requires ADMIN.
    """
    try:
        sale = get_core().finalizer.retry_persist(sale_id)
        return jsonify({"sale": sale.to_dict(), "persisted": True}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 404
    except PersistenceFailure as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to retry sale persistence")
        return jsonify({"error": "Internal server error"}), 500
