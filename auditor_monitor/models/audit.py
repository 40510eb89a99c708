"""
Auditor Monitor
Audit plan domain models.

Models:
    - Role: process-wide role id → display label
    - Participant: person taking part in one audit, with a role reference
    - Attachment: file metadata attached to a stage (bytes are not retained)
    - Activity: dated task nested under a Stage
    - Stage: audit phase with risk level, schedule and activities
    - Audit: top-level plan keyed by its code

Architecture chain: Audit → Participant / Stage → Activity / Attachment

Every model serialises to the camelCase wire shape used by the API and by
the JSON export file (``to_dict`` / ``from_dict``).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from auditor_monitor.utils.helpers import new_id


# ── Constants ────────────────────────────────────────────────────────────────

RISK_LEVELS = ("low", "medium", "high")
DEFAULT_RISK = "low"

# Labels used by earlier exports of the planner
LEGACY_RISK_ALIASES = {
    "bajo": "low",
    "medio": "medium",
    "alto": "high",
}

LEAD_ELIGIBLE_ROLES = {"auditor_lider", "auditor"}

# Participants whose role disappears fall back to the first of these that
# still exists, else to the first defined role.
FALLBACK_ROLE_IDS = ("observador", "observer")


def normalize_risk(value) -> str:
    """Map a risk label (current or legacy) onto RISK_LEVELS."""
    key = str(value or "").strip().lower()
    key = LEGACY_RISK_ALIASES.get(key, key)
    return key if key in RISK_LEVELS else DEFAULT_RISK


def _text(value) -> str:
    return "" if value is None else str(value)


# ── Role ─────────────────────────────────────────────────────────────────────


@dataclass
class Role:
    id: str
    label: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label}

    @classmethod
    def from_dict(cls, data: dict) -> Role:
        role_id = _text(data.get("id")).strip()
        return cls(id=role_id, label=_text(data.get("label")).strip() or role_id)


DEFAULT_ROLES = (
    Role("auditor_lider", "Lead auditor"),
    Role("auditor", "Auditor"),
    Role("responsable_proceso", "Process owner"),
    Role("observador", "Observer"),
)


def default_roles() -> list[Role]:
    return [Role(r.id, r.label) for r in DEFAULT_ROLES]


# ── Participant ──────────────────────────────────────────────────────────────


@dataclass
class Participant:
    name: str
    role: str
    email: str = ""
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Participant:
        return cls(
            id=_text(data.get("id")) or new_id(),
            name=_text(data.get("name")),
            email=_text(data.get("email")),
            role=_text(data.get("role")),
        )


# ── Stage / Activity ─────────────────────────────────────────────────────────


@dataclass
class Attachment:
    """File metadata only — the upload itself is never stored."""
    name: str
    type: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict) -> Attachment:
        return cls(name=_text(data.get("name")), type=_text(data.get("type")))


@dataclass
class Activity:
    name: str
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Activity:
        return cls(
            id=_text(data.get("id")) or new_id(),
            name=_text(data.get("name")),
            start_date=_text(data.get("startDate")),
            end_date=_text(data.get("endDate")),
            description=_text(data.get("description")),
        )


@dataclass
class Stage:
    name: str
    risk: str = DEFAULT_RISK
    start_date: str = ""
    end_date: str = ""
    activities: list[Activity] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def find_activity(self, activity_id: str) -> Activity | None:
        return next((a for a in self.activities if a.id == activity_id), None)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "risk": self.risk,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "activities": [a.to_dict() for a in self.activities],
            "attachments": [a.to_dict() for a in self.attachments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Stage:
        return cls(
            id=_text(data.get("id")) or new_id(),
            name=_text(data.get("name")),
            risk=normalize_risk(data.get("risk")),
            start_date=_text(data.get("startDate")),
            end_date=_text(data.get("endDate")),
            activities=[Activity.from_dict(a) for a in data.get("activities") or []],
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
        )


# ── Audit ────────────────────────────────────────────────────────────────────


@dataclass
class Audit:
    code: str
    name: str = ""
    description: str = ""
    lead_auditor_id: str | None = None
    participants: list[Participant] = field(default_factory=list)
    stages: list[Stage] = field(default_factory=list)

    @property
    def activity_count(self) -> int:
        return sum(len(s.activities) for s in self.stages)

    @property
    def lead(self) -> Participant | None:
        if not self.lead_auditor_id:
            return None
        return self.find_participant(self.lead_auditor_id)

    def find_participant(self, participant_id: str) -> Participant | None:
        return next((p for p in self.participants if p.id == participant_id), None)

    def find_stage(self, stage_id: str) -> Stage | None:
        return next((s for s in self.stages if s.id == stage_id), None)

    def refresh_lead(self) -> None:
        """Drop the lead reference if it no longer points at an eligible participant."""
        lead = self.lead
        if lead is None or lead.role not in LEAD_ELIGIBLE_ROLES:
            self.lead_auditor_id = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "leadAuditorId": self.lead_auditor_id,
            "participants": [p.to_dict() for p in self.participants],
            "stages": [s.to_dict() for s in self.stages],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Audit:
        return cls(
            code=_text(data.get("code")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            lead_auditor_id=data.get("leadAuditorId") or None,
            participants=[Participant.from_dict(p) for p in data.get("participants") or []],
            stages=[Stage.from_dict(s) for s in data.get("stages") or []],
        )
