"""
Auditor Monitor
Prompt blueprint — answer or dismiss pending prompts.

Endpoints:
    GET  /api/v1/prompts                 — pending prompts
    GET  /api/v1/prompts/<id>            — one pending prompt
    POST /api/v1/prompts/<id>/respond    — {"value": "..."}
    POST /api/v1/prompts/<id>/cancel
"""

import logging

from flask import Blueprint, current_app, jsonify

from auditor_monitor.blueprints import json_body

logger = logging.getLogger(__name__)

prompt_bp = Blueprint("prompts", __name__, url_prefix="/api/v1")


def _broker():
    return current_app.extensions["prompts"]


@prompt_bp.route("/prompts", methods=["GET"])
def list_prompts():
    items = [p.to_dict() for p in _broker().pending()]
    return jsonify({"items": items, "total": len(items)})


@prompt_bp.route("/prompts/<prompt_id>", methods=["GET"])
def get_prompt(prompt_id):
    return jsonify(_broker().get(prompt_id).to_dict())


@prompt_bp.route("/prompts/<prompt_id>/respond", methods=["POST"])
def respond_prompt(prompt_id):
    value = json_body().get("value", "")
    result = _broker().respond(prompt_id, value)
    return jsonify({"resolved": True, "result": result})


@prompt_bp.route("/prompts/<prompt_id>/cancel", methods=["POST"])
def cancel_prompt(prompt_id):
    _broker().cancel(prompt_id)
    return jsonify({"resolved": True, "cancelled": True})
