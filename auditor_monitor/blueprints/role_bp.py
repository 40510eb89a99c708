"""
Auditor Monitor
Role blueprint — process-wide role list.

Endpoints:
    GET  /api/v1/roles          — roles + their "id:Label, ..." text form
    PUT  /api/v1/roles          — replace from {"roles": [...]} or {"text": "..."}
    POST /api/v1/roles/prompt   — open a role-editing prompt (see prompt_bp)
"""

import logging

from flask import Blueprint, current_app, jsonify

from auditor_monitor.blueprints import json_body
from auditor_monitor.models.state import get_state
from auditor_monitor.services.prompt_service import CANCELLED
from auditor_monitor.services.role_service import (
    parse_roles_payload,
    parse_roles_text,
    replace_roles,
    roles_to_text,
)
from auditor_monitor.utils.errors import E, api_error

logger = logging.getLogger(__name__)

role_bp = Blueprint("roles", __name__, url_prefix="/api/v1")


def _roles_payload(state, reassigned: int | None = None) -> dict:
    with state.lock:
        data = {
            "roles": [r.to_dict() for r in state.roles],
            "text": roles_to_text(state.roles),
        }
    if reassigned is not None:
        data["reassigned"] = reassigned
    return data


@role_bp.route("/roles", methods=["GET"])
def list_roles():
    return jsonify(_roles_payload(get_state()))


@role_bp.route("/roles", methods=["PUT"])
def update_roles():
    data = json_body()
    if isinstance(data.get("roles"), list):
        roles = parse_roles_payload(data["roles"])
    elif "text" in data:
        roles = parse_roles_text(str(data.get("text") or ""))
    else:
        return api_error(E.VALIDATION_REQUIRED, "Provide either 'roles' or 'text'")

    state = get_state()
    reassigned = replace_roles(state, roles)
    return jsonify(_roles_payload(state, reassigned))


@role_bp.route("/roles/prompt", methods=["POST"])
def open_roles_prompt():
    """Open a prompt pre-filled with the current role text.

    Answering it replaces the role list; cancelling leaves it untouched.
    """
    state = get_state()
    broker = current_app.extensions["prompts"]

    def _apply(value):
        if value is CANCELLED:
            logger.debug("Role edit cancelled")
            return None
        reassigned = replace_roles(state, parse_roles_text(value))
        return _roles_payload(state, reassigned)

    with state.lock:
        current_text = roles_to_text(state.roles)
    prompt = broker.open(
        "Edit roles",
        "Enter roles as id:Label separated by commas",
        placeholder="auditor:Auditor, observador:Observer",
        initial_value=current_text,
        on_result=_apply,
    )
    return jsonify(prompt.to_dict()), 201
