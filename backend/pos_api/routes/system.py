# backend/pos_api/routes/system.py
"""
System health endpoint.

Liveness probe for the register frontend and process supervisors.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Product, Transaction, HeldBill
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity by counting rows in the main tables.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        transaction_count = db.session.query(Transaction).count()
        held_bill_count = db.session.query(HeldBill).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "transactions": transaction_count,
                "held_bills": held_bill_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200 {"status": "ok", ...} when the database answers
    - 503 {"status": "unhealthy", ...} otherwise
    """
    database_health = check_database_health()

    if database_health["status"] == "healthy":
        overall_status, http_status = "ok", 200
    else:
        overall_status, http_status = "unhealthy", 503

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "database": database_health,
    }, http_status
