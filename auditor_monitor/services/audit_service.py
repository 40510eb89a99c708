"""
Audit Service — business logic for the in-memory audit plans.

Covers:
    - Audit selection / creation:  AUD-001, AUD-002, ... when no code is given
    - Audit header updates:        name, description, lead auditor
    - Participants:                add / edit / remove (name required)
    - Stages:                      add / edit / remove (name required)
    - Activities:                  add / edit / remove within a stage
    - Summary counters:            participants, stages, activities, project days
    - Sample data loading

Required-field omissions are no-ops: the add function returns None and the
state is left untouched. Every successful mutation marks the audit's
timeline dirty through ``state.touch``.
"""

from __future__ import annotations

import logging

from auditor_monitor.core.exceptions import NotFoundError, ValidationError
from auditor_monitor.models.audit import (
    LEAD_ELIGIBLE_ROLES,
    Activity,
    Attachment,
    Audit,
    Participant,
    Stage,
    normalize_risk,
)
from auditor_monitor.models.state import AppState
from auditor_monitor.services.role_service import fallback_role_id
from auditor_monitor.services.sample_data import build_sample_audit
from auditor_monitor.services.timeline import UNNAMED, project_days

logger = logging.getLogger(__name__)


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


# ── Audits ───────────────────────────────────────────────────────────────────


def get_audit(state: AppState, code: str) -> Audit:
    audit = state.audits.get(code)
    if audit is None:
        raise NotFoundError(resource="Audit", resource_id=code)
    return audit


def list_audits(state: AppState) -> list[dict]:
    """Audits sorted by code, with the selector label ``CODE - name``."""
    items = []
    for audit in sorted(state.audits.values(), key=lambda a: a.code or ""):
        if not audit.code:
            continue
        items.append({
            "code": audit.code,
            "name": audit.name,
            "label": f"{audit.code} - {audit.name}" if audit.name else audit.code,
            "current": audit.code == state.current_audit_code,
        })
    return items


def select_audit(state: AppState, code: str | None = None) -> Audit:
    """Make ``code`` current, creating it empty; no code → generate the next one."""
    with state.lock:
        code = _clean(code) or state.next_audit_code()
        created = code not in state.audits
        audit = state.set_current_audit_code(code)
        state.touch(code)
    if created:
        logger.info("Audit %s created", code)
    return audit


def update_audit(state: AppState, code: str, data: dict) -> Audit:
    with state.lock:
        audit = get_audit(state, code)
        if "name" in data:
            audit.name = _clean(data["name"])
        if "description" in data:
            audit.description = _clean(data["description"])
        if "leadAuditorId" in data:
            set_lead(audit, data.get("leadAuditorId"))
        state.touch(code)
    return audit


def set_lead(audit: Audit, participant_id: str | None) -> None:
    """Assign the lead auditor; only lead/auditor roles are eligible."""
    if not participant_id:
        audit.lead_auditor_id = None
        return
    participant = audit.find_participant(participant_id)
    if participant is None:
        raise NotFoundError(resource="Participant", resource_id=participant_id)
    if participant.role not in LEAD_ELIGIBLE_ROLES:
        raise ValidationError(
            "Lead auditor must have an auditor role",
            details={"leadAuditorId": participant_id, "role": participant.role},
        )
    audit.lead_auditor_id = participant.id


def lead_candidates(state: AppState, audit: Audit) -> list[dict]:
    return [
        {"id": p.id, "label": f"{p.name} ({state.role_label(p.role)})"}
        for p in audit.participants
        if p.role in LEAD_ELIGIBLE_ROLES
    ]


def summarize(audit: Audit) -> dict:
    return {
        "participants": len(audit.participants),
        "stages": len(audit.stages),
        "activities": audit.activity_count,
        "projectDays": project_days(audit.stages) if audit.stages else 0,
    }


# ── Participants ─────────────────────────────────────────────────────────────


def add_participant(state: AppState, code: str, data: dict) -> Participant | None:
    name = _clean(data.get("name"))
    if not name:
        return None
    with state.lock:
        audit = get_audit(state, code)
        role = _clean(data.get("role"))
        if role not in state.role_ids():
            role = fallback_role_id(state.roles) or ""
        participant = Participant(name=name, email=_clean(data.get("email")), role=role)
        audit.participants.append(participant)
        state.touch(code)
    logger.debug("Participant %s added to %s", participant.id, code)
    return participant


def update_participant(state: AppState, code: str, participant_id: str, data: dict) -> Participant:
    with state.lock:
        audit = get_audit(state, code)
        participant = audit.find_participant(participant_id)
        if participant is None:
            raise NotFoundError(resource="Participant", resource_id=participant_id)
        name = _clean(data.get("name"))
        if name:
            participant.name = name
        if "email" in data:
            participant.email = _clean(data.get("email"))
        role = _clean(data.get("role"))
        if role and role in state.role_ids():
            participant.role = role
        audit.refresh_lead()
        state.touch(code)
    return participant


def delete_participant(state: AppState, code: str, participant_id: str) -> None:
    with state.lock:
        audit = get_audit(state, code)
        participant = audit.find_participant(participant_id)
        if participant is None:
            raise NotFoundError(resource="Participant", resource_id=participant_id)
        audit.participants.remove(participant)
        audit.refresh_lead()
        state.touch(code)


# ── Stages ───────────────────────────────────────────────────────────────────


def get_stage(audit: Audit, stage_id: str) -> Stage:
    stage = audit.find_stage(stage_id)
    if stage is None:
        raise NotFoundError(resource="Stage", resource_id=stage_id)
    return stage


def add_stage(state: AppState, code: str, data: dict) -> Stage | None:
    name = _clean(data.get("name"))
    if not name:
        return None
    with state.lock:
        audit = get_audit(state, code)
        stage = Stage(
            name=name,
            risk=normalize_risk(data.get("risk")),
            start_date=_clean(data.get("startDate")),
            end_date=_clean(data.get("endDate")),
            attachments=[
                Attachment.from_dict(a) for a in data.get("attachments") or []
                if isinstance(a, dict) and a.get("name")
            ],
        )
        audit.stages.append(stage)
        state.touch(code)
    logger.debug("Stage %s added to %s", stage.id, code)
    return stage


def update_stage(state: AppState, code: str, stage_id: str, data: dict) -> Stage:
    """Edit a stage. An empty name keeps the old one; empty dates clear the schedule."""
    with state.lock:
        audit = get_audit(state, code)
        stage = get_stage(audit, stage_id)
        stage.name = _clean(data.get("name")) or stage.name
        if data.get("risk"):
            stage.risk = normalize_risk(data["risk"])
        if "startDate" in data:
            stage.start_date = _clean(data.get("startDate"))
        if "endDate" in data:
            stage.end_date = _clean(data.get("endDate"))
        state.touch(code)
    return stage


def delete_stage(state: AppState, code: str, stage_id: str) -> None:
    with state.lock:
        audit = get_audit(state, code)
        audit.stages.remove(get_stage(audit, stage_id))
        state.touch(code)


# ── Activities ───────────────────────────────────────────────────────────────


def add_activity(state: AppState, code: str, stage_id: str, data: dict) -> Activity:
    with state.lock:
        stage = get_stage(get_audit(state, code), stage_id)
        activity = Activity(
            name=_clean(data.get("name")) or UNNAMED,
            start_date=_clean(data.get("startDate")),
            end_date=_clean(data.get("endDate")),
            description=_clean(data.get("description")),
        )
        stage.activities.append(activity)
        state.touch(code)
    return activity


def update_activity(state: AppState, code: str, stage_id: str, activity_id: str, data: dict) -> Activity:
    with state.lock:
        stage = get_stage(get_audit(state, code), stage_id)
        activity = stage.find_activity(activity_id)
        if activity is None:
            raise NotFoundError(resource="Activity", resource_id=activity_id)
        activity.name = _clean(data.get("name")) or activity.name
        if "startDate" in data:
            activity.start_date = _clean(data.get("startDate"))
        if "endDate" in data:
            activity.end_date = _clean(data.get("endDate"))
        if "description" in data:
            activity.description = _clean(data.get("description"))
        state.touch(code)
    return activity


def delete_activity(state: AppState, code: str, stage_id: str, activity_id: str) -> None:
    with state.lock:
        stage = get_stage(get_audit(state, code), stage_id)
        activity = stage.find_activity(activity_id)
        if activity is None:
            raise NotFoundError(resource="Activity", resource_id=activity_id)
        stage.activities.remove(activity)
        state.touch(code)


# ── Sample data ──────────────────────────────────────────────────────────────


def load_sample_data(state: AppState) -> Audit:
    """Replace every audit with the sample plan and select it."""
    audit = build_sample_audit()
    with state.lock:
        state.replace({audit.code: audit}, audit.code)
        if state.scheduler is not None:
            state.scheduler.invalidate_all(state.audits)
    logger.info("Sample audit %s loaded", audit.code)
    return audit
