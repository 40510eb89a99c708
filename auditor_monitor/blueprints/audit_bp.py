"""
Auditor Monitor
Audit blueprint — audits, participants, stages and activities.

Endpoints summary:
    STATE        /api/v1/state                                         GET
                 /api/v1/sample                                        POST

    AUDIT        /api/v1/audits                                        GET, POST
                 /api/v1/audits/<code>                                 GET, PUT
                 /api/v1/audits/<code>/select                          POST
                 /api/v1/audits/<code>/summary                         GET

    PARTICIPANT  /api/v1/audits/<code>/participants                    POST
                 /api/v1/audits/<code>/participants/<pid>              PUT, DELETE

    STAGE        /api/v1/audits/<code>/stages                          POST
                 /api/v1/audits/<code>/stages/<sid>                    PUT, DELETE

    ACTIVITY     /api/v1/audits/<code>/stages/<sid>/activities         POST
                 /api/v1/audits/<code>/stages/<sid>/activities/<aid>   PUT, DELETE

A POST without the required name answers 200 {"created": false} and
leaves the audit untouched.
"""

import logging

from flask import Blueprint, jsonify

from auditor_monitor.blueprints import json_body
from auditor_monitor.models.state import get_state
from auditor_monitor.services import audit_service

logger = logging.getLogger(__name__)

audit_bp = Blueprint("audit", __name__, url_prefix="/api/v1")


def _not_created(field: str):
    return jsonify({"created": False, "reason": f"{field} is required"}), 200


def _audit_payload(state, audit) -> dict:
    data = audit.to_dict()
    data["summary"] = audit_service.summarize(audit)
    data["leadCandidates"] = audit_service.lead_candidates(state, audit)
    data["current"] = audit.code == state.current_audit_code
    return data


# ═══════════════════════════════════════════════════════════════════════════
#  STATE
# ═══════════════════════════════════════════════════════════════════════════

@audit_bp.route("/state", methods=["GET"])
def get_whole_state():
    state = get_state()
    with state.lock:
        data = state.to_dict()
        data["roles"] = [r.to_dict() for r in state.roles]
    return jsonify(data)


@audit_bp.route("/sample", methods=["POST"])
def load_sample():
    state = get_state()
    audit = audit_service.load_sample_data(state)
    with state.lock:
        return jsonify(_audit_payload(state, audit)), 201


# ═══════════════════════════════════════════════════════════════════════════
#  AUDIT
# ═══════════════════════════════════════════════════════════════════════════

@audit_bp.route("/audits", methods=["GET"])
def list_audits():
    state = get_state()
    with state.lock:
        items = audit_service.list_audits(state)
        return jsonify({
            "items": items,
            "total": len(items),
            "currentAuditCode": state.current_audit_code,
        })


@audit_bp.route("/audits", methods=["POST"])
def create_or_select_audit():
    """Select the audit with the given code, creating it if needed.

    Without a code the next AUD-NNN code is generated.
    """
    state = get_state()
    data = json_body()
    audit = audit_service.select_audit(state, data.get("code"))
    if data.get("name") or data.get("description"):
        audit_service.update_audit(state, audit.code, {
            k: data[k] for k in ("name", "description") if k in data
        })
    with state.lock:
        return jsonify(_audit_payload(state, audit)), 201


@audit_bp.route("/audits/<code>", methods=["GET"])
def get_audit(code):
    state = get_state()
    with state.lock:
        audit = audit_service.get_audit(state, code)
        return jsonify(_audit_payload(state, audit))


@audit_bp.route("/audits/<code>", methods=["PUT"])
def update_audit(code):
    state = get_state()
    audit = audit_service.update_audit(state, code, json_body())
    with state.lock:
        return jsonify(_audit_payload(state, audit))


@audit_bp.route("/audits/<code>/select", methods=["POST"])
def select_audit(code):
    state = get_state()
    audit_service.get_audit(state, code)
    audit = audit_service.select_audit(state, code)
    with state.lock:
        return jsonify(_audit_payload(state, audit))


@audit_bp.route("/audits/<code>/summary", methods=["GET"])
def audit_summary(code):
    state = get_state()
    with state.lock:
        return jsonify(audit_service.summarize(audit_service.get_audit(state, code)))


# ═══════════════════════════════════════════════════════════════════════════
#  PARTICIPANTS
# ═══════════════════════════════════════════════════════════════════════════

@audit_bp.route("/audits/<code>/participants", methods=["POST"])
def add_participant(code):
    participant = audit_service.add_participant(get_state(), code, json_body())
    if participant is None:
        return _not_created("name")
    return jsonify({"created": True, **participant.to_dict()}), 201


@audit_bp.route("/audits/<code>/participants/<pid>", methods=["PUT"])
def update_participant(code, pid):
    participant = audit_service.update_participant(get_state(), code, pid, json_body())
    return jsonify(participant.to_dict())


@audit_bp.route("/audits/<code>/participants/<pid>", methods=["DELETE"])
def delete_participant(code, pid):
    audit_service.delete_participant(get_state(), code, pid)
    return jsonify({"deleted": True}), 200


# ═══════════════════════════════════════════════════════════════════════════
#  STAGES
# ═══════════════════════════════════════════════════════════════════════════

@audit_bp.route("/audits/<code>/stages", methods=["POST"])
def add_stage(code):
    stage = audit_service.add_stage(get_state(), code, json_body())
    if stage is None:
        return _not_created("name")
    return jsonify({"created": True, **stage.to_dict()}), 201


@audit_bp.route("/audits/<code>/stages/<sid>", methods=["PUT"])
def update_stage(code, sid):
    stage = audit_service.update_stage(get_state(), code, sid, json_body())
    return jsonify(stage.to_dict())


@audit_bp.route("/audits/<code>/stages/<sid>", methods=["DELETE"])
def delete_stage(code, sid):
    audit_service.delete_stage(get_state(), code, sid)
    return jsonify({"deleted": True}), 200


# ═══════════════════════════════════════════════════════════════════════════
#  ACTIVITIES
# ═══════════════════════════════════════════════════════════════════════════

@audit_bp.route("/audits/<code>/stages/<sid>/activities", methods=["POST"])
def add_activity(code, sid):
    activity = audit_service.add_activity(get_state(), code, sid, json_body())
    return jsonify({"created": True, **activity.to_dict()}), 201


@audit_bp.route("/audits/<code>/stages/<sid>/activities/<aid>", methods=["PUT"])
def update_activity(code, sid, aid):
    activity = audit_service.update_activity(get_state(), code, sid, aid, json_body())
    return jsonify(activity.to_dict())


@audit_bp.route("/audits/<code>/stages/<sid>/activities/<aid>", methods=["DELETE"])
def delete_activity(code, sid, aid):
    audit_service.delete_activity(get_state(), code, sid, aid)
    return jsonify({"deleted": True}), 200
