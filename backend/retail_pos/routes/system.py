# backend/retail_pos/routes/system.py
"""
System health procedure.

healthcheck is public so load balancers and the client's connection banner
can call it without a token.
"""

import time

from flask import current_app

from ..extensions import db
from ..models import Product, User
from ..rpc import registry
from ..time_utils import to_utc_z, utcnow


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        product_count = db.session.query(Product).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "products": product_count,
            },
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@registry.query("healthcheck")
def healthcheck(data):
    database = check_database_health()
    return {
        "status": "ok" if database["status"] == "healthy" else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "database": database,
    }
