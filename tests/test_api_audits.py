"""
Auditor Monitor
Tests — Audit API.

Covers:
    - Audit create / select / list / update, generated AUD-NNN codes
    - Participant CRUD, required name, invalid role fallback
    - Lead auditor eligibility and clearing
    - Stage CRUD, legacy risk labels, required name
    - Activity CRUD, "(unnamed)" default
    - Summary counters and sample data
    - Error responses (404 JSON, timeline formats)
"""

BASE = "/api/v1/audits"


def _add_participant(client, code="AUD-001", **kw):
    payload = {"name": "Ana Torres", "email": "ana@example.com", "role": "auditor_lider"}
    payload.update(kw)
    return client.post(f"{BASE}/{code}/participants", json=payload)


def _add_stage(client, code="AUD-001", **kw):
    payload = {"name": "Planning", "risk": "medium",
               "startDate": "2025-01-10", "endDate": "2025-01-15"}
    payload.update(kw)
    return client.post(f"{BASE}/{code}/stages", json=payload)


# ═════════════════════════════════════════════════════════════════════════════
# AUDITS
# ═════════════════════════════════════════════════════════════════════════════


class TestAudits:
    def test_default_audit_exists(self, client):
        data = client.get("/api/v1/audits").get_json()
        assert data["currentAuditCode"] == "AUD-001"
        assert [a["code"] for a in data["items"]] == ["AUD-001"]

    def test_create_with_code(self, client):
        res = client.post(BASE, json={"code": "AUD-2030", "name": "Yearly"})
        assert res.status_code == 201
        data = res.get_json()
        assert data["code"] == "AUD-2030"
        assert data["name"] == "Yearly"
        assert data["current"] is True

    def test_create_without_code_generates_next(self, client):
        res = client.post(BASE, json={})
        assert res.get_json()["code"] == "AUD-002"
        res = client.post(BASE, json={})
        assert res.get_json()["code"] == "AUD-003"

    def test_list_sorted_with_labels(self, client):
        client.post(BASE, json={"code": "B-1", "name": "Beta"})
        client.post(BASE, json={"code": "A-1"})
        items = client.get(BASE).get_json()["items"]
        assert [i["code"] for i in items] == ["A-1", "AUD-001", "B-1"]
        assert items[2]["label"] == "B-1 - Beta"
        assert items[0]["label"] == "A-1"

    def test_select_existing(self, client):
        client.post(BASE, json={"code": "X-1"})
        res = client.post(f"{BASE}/AUD-001/select")
        assert res.status_code == 200
        assert client.get(BASE).get_json()["currentAuditCode"] == "AUD-001"

    def test_select_unknown_is_404(self, client):
        res = client.post(f"{BASE}/NOPE/select")
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_update_header(self, client):
        res = client.put(f"{BASE}/AUD-001", json={"name": " Annual ", "description": "Scope"})
        data = res.get_json()
        assert data["name"] == "Annual"
        assert data["description"] == "Scope"

    def test_state_dump(self, client):
        data = client.get("/api/v1/state").get_json()
        assert set(data) == {"audits", "currentAuditCode", "roles"}
        assert "AUD-001" in data["audits"]


# ═════════════════════════════════════════════════════════════════════════════
# PARTICIPANTS + LEAD
# ═════════════════════════════════════════════════════════════════════════════


class TestParticipants:
    def test_add_participant(self, client):
        res = _add_participant(client)
        assert res.status_code == 201
        data = res.get_json()
        assert data["created"] is True
        assert data["role"] == "auditor_lider"

    def test_missing_name_is_noop(self, client, state):
        res = _add_participant(client, name="  ")
        assert res.status_code == 200
        assert res.get_json()["created"] is False
        assert state.audits["AUD-001"].participants == []

    def test_unknown_role_falls_back_to_observer(self, client, state):
        data = _add_participant(client, role="ghost").get_json()
        assert data["role"] == "observador"
        candidates = client.get(f"{BASE}/AUD-001").get_json()["leadCandidates"]
        assert data["id"] not in [c["id"] for c in candidates]

    def test_update_and_delete(self, client, state):
        pid = _add_participant(client).get_json()["id"]
        res = client.put(f"{BASE}/AUD-001/participants/{pid}", json={"email": "new@example.com"})
        assert res.get_json()["email"] == "new@example.com"
        assert client.delete(f"{BASE}/AUD-001/participants/{pid}").status_code == 200
        assert state.audits["AUD-001"].participants == []

    def test_delete_unknown_is_404(self, client):
        assert client.delete(f"{BASE}/AUD-001/participants/nope").status_code == 404

    def test_lead_assignment(self, client):
        pid = _add_participant(client).get_json()["id"]
        data = client.put(f"{BASE}/AUD-001", json={"leadAuditorId": pid}).get_json()
        assert data["leadAuditorId"] == pid
        assert data["leadCandidates"][0]["label"] == "Ana Torres (Lead auditor)"

    def test_ineligible_lead_rejected(self, client):
        pid = _add_participant(client, role="observador").get_json()["id"]
        res = client.put(f"{BASE}/AUD-001", json={"leadAuditorId": pid})
        assert res.status_code == 400
        assert client.get(f"{BASE}/AUD-001").get_json()["leadAuditorId"] is None

    def test_lead_cleared_on_delete(self, client):
        pid = _add_participant(client).get_json()["id"]
        client.put(f"{BASE}/AUD-001", json={"leadAuditorId": pid})
        client.delete(f"{BASE}/AUD-001/participants/{pid}")
        assert client.get(f"{BASE}/AUD-001").get_json()["leadAuditorId"] is None

    def test_lead_cleared_on_role_change(self, client):
        pid = _add_participant(client).get_json()["id"]
        client.put(f"{BASE}/AUD-001", json={"leadAuditorId": pid})
        client.put(f"{BASE}/AUD-001/participants/{pid}", json={"role": "observador"})
        assert client.get(f"{BASE}/AUD-001").get_json()["leadAuditorId"] is None


# ═════════════════════════════════════════════════════════════════════════════
# STAGES + ACTIVITIES
# ═════════════════════════════════════════════════════════════════════════════


class TestStages:
    def test_add_stage(self, client):
        data = _add_stage(client).get_json()
        assert data["created"] is True
        assert data["risk"] == "medium"
        assert data["activities"] == []

    def test_missing_name_is_noop(self, client, state):
        res = _add_stage(client, name="")
        assert res.status_code == 200
        assert res.get_json()["created"] is False
        assert state.audits["AUD-001"].stages == []

    def test_legacy_risk_label(self, client):
        assert _add_stage(client, risk="alto").get_json()["risk"] == "high"

    def test_attachment_metadata(self, client):
        data = _add_stage(client, attachments=[{"name": "scope.pdf", "type": "application/pdf"},
                                               {"type": "no-name"}]).get_json()
        assert data["attachments"] == [{"name": "scope.pdf", "type": "application/pdf"}]

    def test_update_stage_keeps_name_when_blank(self, client):
        sid = _add_stage(client).get_json()["id"]
        data = client.put(f"{BASE}/AUD-001/stages/{sid}",
                          json={"name": "", "risk": "low", "endDate": ""}).get_json()
        assert data["name"] == "Planning"
        assert data["risk"] == "low"
        assert data["endDate"] == ""

    def test_delete_stage(self, client, state):
        sid = _add_stage(client).get_json()["id"]
        assert client.delete(f"{BASE}/AUD-001/stages/{sid}").status_code == 200
        assert state.audits["AUD-001"].stages == []

    def test_unknown_audit_is_404(self, client):
        assert _add_stage(client, code="NOPE").status_code == 404


class TestActivities:
    def test_activity_crud(self, client):
        sid = _add_stage(client).get_json()["id"]
        url = f"{BASE}/AUD-001/stages/{sid}/activities"
        res = client.post(url, json={"name": "Kick-off", "startDate": "2025-01-10",
                                     "endDate": "2025-01-10", "description": "Meet"})
        assert res.status_code == 201
        aid = res.get_json()["id"]

        data = client.put(f"{url}/{aid}", json={"endDate": "2025-01-11"}).get_json()
        assert data["endDate"] == "2025-01-11"
        assert data["name"] == "Kick-off"

        assert client.delete(f"{url}/{aid}").status_code == 200
        assert client.delete(f"{url}/{aid}").status_code == 404

    def test_unnamed_activity(self, client):
        sid = _add_stage(client).get_json()["id"]
        res = client.post(f"{BASE}/AUD-001/stages/{sid}/activities", json={})
        assert res.get_json()["name"] == "(unnamed)"

    def test_unknown_stage_is_404(self, client):
        res = client.post(f"{BASE}/AUD-001/stages/nope/activities", json={"name": "x"})
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# SUMMARY, SAMPLE, TIMELINE
# ═════════════════════════════════════════════════════════════════════════════


class TestSummaryAndTimeline:
    def test_summary_counters(self, client, sample_audit):
        data = client.get(f"{BASE}/{sample_audit.code}/summary").get_json()
        assert data == {"participants": 5, "stages": 4, "activities": 8, "projectDays": 32}

    def test_sample_endpoint_replaces_state(self, client):
        client.post(BASE, json={"code": "OLD"})
        res = client.post("/api/v1/sample")
        assert res.status_code == 201
        data = res.get_json()
        assert data["code"] == "AUD-2025-01"
        assert data["leadAuditorId"] == data["participants"][0]["id"]
        codes = [a["code"] for a in client.get(BASE).get_json()["items"]]
        assert codes == ["AUD-2025-01"]

    def test_timeline_json(self, client, sample_audit):
        plan = client.get(f"{BASE}/{sample_audit.code}/timeline").get_json()
        assert plan["range"]["minStart"] == "2025-01-10"
        assert plan["range"]["maxEnd"] == "2025-02-10"
        assert plan["range"]["rangeLabel"] == "From 10/01 to 10/02"
        assert len(plan["rows"]) == 4
        assert plan["rows"][0]["bar"]["offsetPercent"] == 0

    def test_timeline_html(self, client, sample_audit):
        res = client.get(f"{BASE}/{sample_audit.code}/timeline?format=html")
        assert res.status_code == 200
        html = res.get_data(as_text=True)
        assert "From 10/01 to 10/02" in html
        assert "32 days" in html
        assert "Audit planning" in html
        assert "top: 14px" in html

    def test_timeline_html_empty(self, client):
        html = client.get(f"{BASE}/AUD-001/timeline?format=html").get_data(as_text=True)
        assert "No schedule yet" in html

    def test_timeline_bad_format(self, client):
        res = client.get(f"{BASE}/AUD-001/timeline?format=svg")
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_FORMAT_UNSUPPORTED"

    def test_timeline_png(self, client, sample_audit):
        res = client.get(f"{BASE}/{sample_audit.code}/timeline.png")
        assert res.status_code == 200
        assert res.mimetype == "image/png"
        assert res.data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_index_page(self, client, sample_audit):
        res = client.get("/")
        assert res.status_code == 200
        html = res.get_data(as_text=True)
        assert sample_audit.name in html
        assert "Project days: 32" in html


class TestAppShell:
    def test_health(self, client):
        assert client.get("/api/v1/health/ready").get_json() == {"status": "ok"}
        data = client.get("/api/v1/health/live").get_json()
        assert data["status"] == "ok"
        assert data["checks"]["state"]["currentAuditCode"] == "AUD-001"

    def test_request_headers(self, client):
        res = client.get("/api/v1/audits", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers
        assert res.headers["X-Content-Type-Options"] == "nosniff"

    def test_unknown_api_route_is_json_404(self, client):
        res = client.get("/api/v1/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Not found"
