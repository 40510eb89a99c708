"""
In-memory application state.

One AppState per Flask app, stored in ``app.extensions["audit_state"]``.
It owns the audit map, the current audit code and the process-wide role
list; nothing is persisted beyond explicit export/import.

Usage:
    from auditor_monitor.models.state import get_state
    state = get_state()
    with state.lock:
        audit = state.get_current_audit()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from flask import Flask, current_app

from auditor_monitor.models.audit import Audit, Role, default_roles

if TYPE_CHECKING:
    from auditor_monitor.services.timeline import RenderPlan

logger = logging.getLogger(__name__)

EXTENSION_KEY = "audit_state"


class AppState:
    """Audit collection + role list, mutated under a single re-entrant lock."""

    def __init__(self, roles: list[Role] | None = None) -> None:
        self.audits: dict[str, Audit] = {}
        self.current_audit_code: str = ""
        self.roles: list[Role] = roles if roles is not None else default_roles()
        self.lock = threading.RLock()
        # RecomputeScheduler attached by the app factory
        self.scheduler = None

    # ── Audit lookup ─────────────────────────────────────────────────

    def get_current_audit(self) -> Audit | None:
        """Return the current audit, creating it empty on first reference."""
        if not self.current_audit_code:
            return None
        return self.ensure_audit(self.current_audit_code)

    def ensure_audit(self, code: str) -> Audit:
        audit = self.audits.get(code)
        if audit is None:
            audit = Audit(code=code)
            self.audits[code] = audit
            logger.debug("Created empty audit %s", code)
        return audit

    def set_current_audit_code(self, code: str) -> Audit:
        self.current_audit_code = code
        return self.ensure_audit(code)

    def next_audit_code(self) -> str:
        """AUD-001, AUD-002, ... based on the number of known audits."""
        n = len(self.audits) + 1
        while f"AUD-{n:03d}" in self.audits:
            n += 1
        return f"AUD-{n:03d}"

    def touch(self, code: str) -> None:
        """Mark the timeline of audit `code` dirty."""
        if self.scheduler is not None:
            self.scheduler.mark_dirty(code)

    def plan_for(self, code: str) -> RenderPlan:
        """Up-to-date render plan for audit `code`, flushing pending marks."""
        from auditor_monitor.services.timeline import build_render_plan

        with self.lock:
            if self.scheduler is None:
                audit = self.audits.get(code)
                return build_render_plan(audit.stages if audit else [])
            return self.scheduler.get(code)

    # ── Roles ────────────────────────────────────────────────────────

    def role_ids(self) -> set[str]:
        return {r.id for r in self.roles}

    def role_label(self, role_id: str) -> str:
        for role in self.roles:
            if role.id == role_id:
                return role.label
        return role_id or ""

    # ── Wholesale replace / dump ─────────────────────────────────────

    def replace(self, audits: dict[str, Audit], current_code: str) -> None:
        self.audits = audits
        self.current_audit_code = current_code

    def to_dict(self) -> dict:
        return {
            "audits": {code: a.to_dict() for code, a in self.audits.items()},
            "currentAuditCode": self.current_audit_code,
        }


def init_state(app: Flask) -> AppState:
    """Create the app state and select the configured default audit."""
    state = AppState()
    default_code = app.config.get("DEFAULT_AUDIT_CODE", "AUD-001")
    if default_code:
        state.set_current_audit_code(default_code)
    app.extensions[EXTENSION_KEY] = state
    return state


def get_state() -> AppState:
    return current_app.extensions[EXTENSION_KEY]
