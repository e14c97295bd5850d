"""
Liveness probe: ``GET /api/v1/health``. Public and exempt from rate limits.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from tracker.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1")


def _check_database():
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check could not reach the database: %s", exc)
        return {"status": "error", "detail": exc.__class__.__name__}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@health_bp.route("/health", methods=["GET"])
def health():
    database = _check_database()
    healthy = database["status"] == "ok"
    body = {
        "status": "healthy" if healthy else "degraded",
        "checks": {
            "database": database,
            "app": {"debug": current_app.debug, "testing": current_app.testing},
        },
    }
    return jsonify(body), 200 if healthy else 503
