"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — in-memory state and recompute scheduler status
"""

import logging

from flask import Blueprint, current_app, jsonify

from auditor_monitor.models.state import get_state

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check with state counters."""
    state = get_state()
    with state.lock:
        checks = {
            "state": {
                "status": "ok",
                "audits": len(state.audits),
                "roles": len(state.roles),
                "currentAuditCode": state.current_audit_code,
            },
        }
    scheduler = state.scheduler
    checks["scheduler"] = {
        "status": "ok" if scheduler is not None else "missing",
        "pending": sorted(scheduler.pending) if scheduler is not None else [],
        "recomputes": scheduler.recompute_count if scheduler is not None else 0,
    }
    checks["app"] = {
        "name": current_app.config.get("APP_TITLE", "AuditorMonitor"),
        "debug": current_app.debug,
        "testing": current_app.testing,
    }
    overall = scheduler is not None
    return jsonify({"status": "ok" if overall else "degraded", "checks": checks}), 200 if overall else 503
