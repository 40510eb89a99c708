"""
Tests — role list parsing and replacement.

Covers:
    - "id:Label" text parsing, malformed entries skipped
    - Empty result rejected
    - Orphaned participants reassigned to observador, else the first role
    - Reassignment applies to every audit in memory
    - Lead cleared when the lead loses an eligible role
    - /roles API (GET, PUT text, PUT list, 400 on empty)
"""

import pytest

from auditor_monitor.core.exceptions import ValidationError
from auditor_monitor.models.audit import Audit, Participant, Role
from auditor_monitor.services.role_service import (
    fallback_role_id,
    parse_roles_text,
    replace_roles,
    roles_to_text,
)


class TestParseRolesText:
    def test_round_trip_text(self):
        roles = parse_roles_text("auditor:Auditor, observador:Observer")
        assert [r.id for r in roles] == ["auditor", "observador"]
        assert roles_to_text(roles) == "auditor:Auditor, observador:Observer"

    def test_malformed_entries_skipped(self):
        roles = parse_roles_text("auditor:Auditor, broken, :NoId, a:b:c, lead:")
        assert [(r.id, r.label) for r in roles] == [("auditor", "Auditor"), ("lead", "lead")]

    def test_duplicates_keep_first(self):
        roles = parse_roles_text("x:First, x:Second")
        assert [(r.id, r.label) for r in roles] == [("x", "First")]

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            parse_roles_text(" , nothing-here ")


class TestReplaceRoles:
    def _seed(self, state):
        a1 = state.ensure_audit("AUD-001")
        a2 = state.ensure_audit("AUD-002")
        a1.participants = [Participant("Ana", "auditor_lider"), Participant("Luis", "auditor")]
        a1.lead_auditor_id = a1.participants[0].id
        a2.participants = [Participant("Eva", "responsable_proceso")]
        return a1, a2

    def test_fallback_prefers_observador(self):
        assert fallback_role_id([Role("a", "A"), Role("observador", "O")]) == "observador"
        assert fallback_role_id([Role("a", "A"), Role("b", "B")]) == "a"
        assert fallback_role_id([]) is None

    def test_reassigns_across_all_audits(self, state):
        a1, a2 = self._seed(state)
        moved = replace_roles(state, parse_roles_text("auditor:Auditor, observador:Observer"))
        assert moved == 2
        assert a1.participants[0].role == "observador"
        assert a1.participants[1].role == "auditor"
        assert a2.participants[0].role == "observador"

    def test_reassigns_to_first_role_without_observador(self, state):
        a1, a2 = self._seed(state)
        replace_roles(state, parse_roles_text("reviewer:Reviewer, auditor:Auditor"))
        assert a1.participants[0].role == "reviewer"
        assert a2.participants[0].role == "reviewer"

    def test_lead_cleared_when_role_removed(self, state):
        a1, _ = self._seed(state)
        replace_roles(state, parse_roles_text("auditor:Auditor, observador:Observer"))
        assert a1.lead_auditor_id is None

    def test_lead_kept_when_still_eligible(self, state):
        a1, _ = self._seed(state)
        replace_roles(state, parse_roles_text("auditor_lider:Lead, observador:Observer"))
        assert a1.lead is not None
        assert a1.lead.name == "Ana"


class TestRolesAPI:
    def test_get_roles(self, client):
        res = client.get("/api/v1/roles")
        assert res.status_code == 200
        data = res.get_json()
        assert [r["id"] for r in data["roles"]] == [
            "auditor_lider", "auditor", "responsable_proceso", "observador",
        ]
        assert data["text"].startswith("auditor_lider:Lead auditor")

    def test_put_text(self, client, state):
        audit = state.ensure_audit("AUD-009")
        audit.participants = [Participant("Eva", "responsable_proceso")]
        res = client.put("/api/v1/roles", json={"text": "auditor:Auditor, observador:Observer"})
        assert res.status_code == 200
        assert res.get_json()["reassigned"] == 1
        assert audit.participants[0].role == "observador"

    def test_put_list(self, client):
        res = client.put("/api/v1/roles", json={"roles": [{"id": "qa", "label": "QA"}]})
        assert res.status_code == 200
        assert res.get_json()["text"] == "qa:QA"

    def test_put_empty_text_is_400(self, client, state):
        before = roles_to_text(state.roles)
        res = client.put("/api/v1/roles", json={"text": "garbage"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
        assert roles_to_text(state.roles) == before

    def test_put_without_payload_is_400(self, client):
        res = client.put("/api/v1/roles", json={})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"
