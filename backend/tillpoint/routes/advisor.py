# Overview: Flask API routes for the optional AI advisor; parses input and returns JSON responses.

# backend/tillpoint/routes/advisor.py
"""
Advisor routes.

The advisor is best-effort: these routes always answer 200 with whatever the
advisor produced, possibly nothing, and "available" says whether it is
configured.
"""

from flask import Blueprint, request, jsonify, current_app

from ..core import get_core
from ..decorators import require_auth


advisor_bp = Blueprint("advisor", __name__, url_prefix="/api/advisor")


def _recent_sales():
    return get_core().ledger.recent(current_app.config["RECENT_SALES_WINDOW"])


@advisor_bp.get("/insights")
@require_auth
def insights_route():
    core = get_core()
    items = core.advisor.insights(_recent_sales(), core.catalog.list())
    return jsonify({"items": items, "available": core.advisor.enabled}), 200


@advisor_bp.get("/predictions")
@require_auth
def predictions_route():
    core = get_core()
    items = core.advisor.predictions(core.catalog.list())
    return jsonify({"items": items, "available": core.advisor.enabled}), 200


@advisor_bp.post("/chat")
@require_auth
def chat_route():
    """Body: {"query": str}"""
    data = request.get_json(silent=True) or {}
    query = (data.get("query") or "").strip()
    if not query:
        return jsonify({"error": "query required"}), 400

    core = get_core()
    answer = core.advisor.chat(query, core.ledger.list(), core.catalog.list())
    return jsonify({"answer": answer, "available": core.advisor.enabled}), 200
