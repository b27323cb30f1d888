# backend/tillpoint/routes/system.py
"""
System health endpoint.

Reports snapshot store reachability, in-memory view sizes, and sales whose
persistence is still pending a retry.
"""

import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import SessionToken
from ..core import get_core

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """Check that the snapshot table answers queries."""
    start_time = time.time()
    try:
        collections = get_core().store.stats()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "collections": collections,
                "active_sessions": active_sessions,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    core = get_core()
    store = check_store_health()
    pending = core.finalizer.pending()

    status = store["status"]
    if status == "healthy" and pending:
        status = "degraded"

    body = {
        "status": status,
        "store": store,
        "catalog": {"products": len(core.catalog.list())},
        "ledger": {"sales": len(core.ledger)},
        "pending_persistence": pending,
        "advisor_enabled": core.advisor.enabled,
    }
    return body, (200 if status != "unhealthy" else 503)
