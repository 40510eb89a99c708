"""
Auditor Monitor
Timeline blueprint — Gantt render plan of one audit.

Endpoints:
    GET /api/v1/audits/<code>/timeline               — render plan (JSON)
    GET /api/v1/audits/<code>/timeline?format=html   — HTML fragment
    GET /api/v1/audits/<code>/timeline.png           — raster image
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from auditor_monitor.models.state import get_state
from auditor_monitor.services.audit_service import get_audit
from auditor_monitor.services.raster import RasterFailure, rasterize_timeline
from auditor_monitor.services.timeline_renderer import render_timeline_html
from auditor_monitor.utils.errors import E, api_error

logger = logging.getLogger(__name__)

timeline_bp = Blueprint("timeline", __name__, url_prefix="/api/v1")


def _plan(code):
    state = get_state()
    with state.lock:
        get_audit(state, code)
        return state.plan_for(code)


@timeline_bp.route("/audits/<code>/timeline", methods=["GET"])
def get_timeline(code):
    plan = _plan(code)
    fmt = request.args.get("format", "json").lower()
    if fmt == "html":
        return Response(render_timeline_html(plan), mimetype="text/html")
    if fmt != "json":
        return api_error(E.FORMAT_UNSUPPORTED, "Unsupported format. Supported values: json, html.")
    return jsonify(plan.to_dict())


@timeline_bp.route("/audits/<code>/timeline.png", methods=["GET"])
def get_timeline_png(code):
    plan = _plan(code)
    result = rasterize_timeline(plan, dpi=current_app.config.get("GANTT_RASTER_DPI", 150))
    if isinstance(result, RasterFailure):
        return api_error(E.EXPORT_FAILED, "The Gantt diagram image could not be generated.",
                         details={"reason": result.reason})
    return Response(result.image, mimetype="image/png")
