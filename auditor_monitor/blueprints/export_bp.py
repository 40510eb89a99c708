"""
Auditor Monitor
Export / import endpoints.

    GET  /api/v1/export/json                   — whole state (auditor-monitor-data.json)
    POST /api/v1/import/json                   — replace state (JSON body or multipart "file")
    GET  /api/v1/audits/<code>/export/docx     — Word report (?title= overrides the heading)
    GET  /api/v1/audits/<code>/export/pdf      — paginated summary
    GET  /api/v1/audits/<code>/export/xlsx     — schedule workbook

Content is returned in-memory; no temp files are written.
"""

import logging
from functools import partial

from flask import Blueprint, Response, current_app, jsonify, request

from auditor_monitor.core.exceptions import ValidationError
from auditor_monitor.models.audit import Audit
from auditor_monitor.models.state import get_state
from auditor_monitor.services.audit_service import get_audit
from auditor_monitor.services.export_service import (
    JSON_FILENAME,
    export_state_json,
    generate_audit_docx,
    generate_audit_pdf,
    generate_schedule_xlsx,
    import_state_json,
    report_title,
    safe_filename,
)
from auditor_monitor.services.raster import rasterize_summary, rasterize_timeline
from auditor_monitor.utils.errors import E, api_error

logger = logging.getLogger(__name__)

export_bp = Blueprint("export", __name__, url_prefix="/api/v1")

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _download(content: bytes, mimetype: str, filename: str) -> Response:
    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _snapshot(code: str):
    """Copy the audit, its render plan and the role labels under the state lock.

    Encoders then run on the copies without holding the lock.
    """
    state = get_state()
    with state.lock:
        audit = Audit.from_dict(get_audit(state, code).to_dict())
        plan = state.plan_for(code)
        labels = {role.id: role.label for role in state.roles}

    def role_label(role_id: str) -> str:
        return labels.get(role_id, role_id or "")

    return audit, plan, role_label


def _export_failed(code: str, fmt: str):
    logger.exception("Export failed for audit %s format=%s", code, fmt)
    return api_error(E.EXPORT_FAILED, "Export failed. Please try again.")


# ── JSON ─────────────────────────────────────────────────────────────────────


@export_bp.route("/export/json", methods=["GET"])
def export_json():
    return _download(export_state_json(get_state()), "application/json", JSON_FILENAME)


@export_bp.route("/import/json", methods=["POST"])
def import_json():
    upload = request.files.get("file")
    raw = upload.read() if upload is not None else request.get_data()
    try:
        result = import_state_json(get_state(), raw)
    except ValidationError as exc:
        return api_error(E.IMPORT_INVALID, str(exc), details=exc.details or None)
    return jsonify({"imported": True, **result})


# ── Documents ────────────────────────────────────────────────────────────────


@export_bp.route("/audits/<code>/export/docx", methods=["GET"])
def export_docx(code):
    dpi = current_app.config.get("GANTT_RASTER_DPI", 150)
    title = request.args.get("title")
    audit, plan, role_label = _snapshot(code)
    try:
        content = generate_audit_docx(
            audit,
            role_label,
            plan,
            title=title,
            rasterizer=partial(rasterize_timeline, dpi=dpi),
        )
    except Exception:
        return _export_failed(code, "docx")
    return _download(content, DOCX_MIME, safe_filename(report_title(audit, title), "docx"))


@export_bp.route("/audits/<code>/export/pdf", methods=["GET"])
def export_pdf(code):
    dpi = current_app.config.get("GANTT_RASTER_DPI", 150)
    audit, plan, role_label = _snapshot(code)
    try:
        content = generate_audit_pdf(
            audit,
            role_label,
            plan,
            rasterizer=partial(rasterize_summary, dpi=dpi),
        )
    except Exception:
        return _export_failed(code, "pdf")
    filename = safe_filename(report_title(audit, request.args.get("title")), "pdf")
    return _download(content, "application/pdf", filename)


@export_bp.route("/audits/<code>/export/xlsx", methods=["GET"])
def export_xlsx(code):
    audit, plan, _ = _snapshot(code)
    try:
        content = generate_schedule_xlsx(audit, plan)
    except Exception:
        return _export_failed(code, "xlsx")
    return _download(content, XLSX_MIME, safe_filename(f"{audit.code}_schedule", "xlsx"))
