# Overview: Flask API routes for dashboard reports; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..core import get_core
from ..services import reporting_service
from ..decorators import require_auth


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@require_auth
def summary_route():
    """Revenue, sale count, low-stock count and last-7-days revenue."""
    core = get_core()
    return jsonify(reporting_service.summary(core.ledger.list(), core.catalog.list())), 200


@reports_bp.get("/categories")
@require_auth
def categories_route():
    core = get_core()
    return jsonify({
        "items": reporting_service.revenue_by_category(core.ledger.list(), core.catalog.list())
    }), 200


@reports_bp.get("/payment-methods")
@require_auth
def payment_methods_route():
    return jsonify({
        "items": reporting_service.revenue_by_payment_method(get_core().ledger.list())
    }), 200
