"""
Role Service — process-wide role list editing.

Roles are edited as a single comma-separated text in ``id:Label`` form,
e.g. ``auditor:Auditor, observador:Observer``. Replacing the list
re-validates every participant of every audit in memory: a participant
whose role id disappeared is moved to the fallback role ("observador" /
"observer" when present, else the first role of the new list).
"""

from __future__ import annotations

import logging

from auditor_monitor.core.exceptions import ValidationError
from auditor_monitor.models.audit import FALLBACK_ROLE_IDS, Role
from auditor_monitor.models.state import AppState

logger = logging.getLogger(__name__)


def roles_to_text(roles: list[Role]) -> str:
    return ", ".join(f"{r.id}:{r.label}" for r in roles)


def parse_roles_text(text: str) -> list[Role]:
    """Parse ``id:Label`` pairs; malformed entries are skipped.

    Raises:
        ValidationError: when no entry survives parsing.
    """
    roles: list[Role] = []
    seen: set[str] = set()
    for item in (s.strip() for s in (text or "").split(",")):
        if not item:
            continue
        parts = [p.strip() for p in item.split(":")]
        if len(parts) != 2 or not parts[0]:
            logger.debug("Skipping malformed role entry %r", item)
            continue
        role_id, label = parts
        if role_id in seen:
            continue
        seen.add(role_id)
        roles.append(Role(id=role_id, label=label or role_id))
    if not roles:
        raise ValidationError(
            "Role list must contain at least one id:Label entry",
            details={"text": text},
        )
    return roles


def parse_roles_payload(items: list) -> list[Role]:
    """Build roles from a JSON list of ``{"id", "label"}`` objects."""
    roles: list[Role] = []
    seen: set[str] = set()
    for item in items or []:
        if not isinstance(item, dict):
            continue
        role = Role.from_dict(item)
        if not role.id or role.id in seen:
            continue
        seen.add(role.id)
        roles.append(role)
    if not roles:
        raise ValidationError("Role list must contain at least one role with an id")
    return roles


def fallback_role_id(roles: list[Role]) -> str | None:
    ids = [r.id for r in roles]
    for candidate in FALLBACK_ROLE_IDS:
        if candidate in ids:
            return candidate
    return ids[0] if ids else None


def replace_roles(state: AppState, roles: list[Role]) -> int:
    """Install ``roles`` and reassign orphaned participants across all audits.

    Returns the number of participants whose role was reassigned.
    """
    with state.lock:
        state.roles = list(roles)
        valid = state.role_ids()
        fallback = fallback_role_id(state.roles)
        reassigned = 0
        for audit in state.audits.values():
            for participant in audit.participants:
                if participant.role not in valid:
                    participant.role = fallback
                    reassigned += 1
            audit.refresh_lead()

    logger.info(
        "Role list replaced: %d roles, %d participant(s) moved to %r",
        len(roles), reassigned, fallback,
    )
    return reassigned
