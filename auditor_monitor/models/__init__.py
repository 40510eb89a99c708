"""
Auditor Monitor
Domain models and the in-memory application state.
"""

from auditor_monitor.models.audit import (  # noqa: F401
    Activity,
    Attachment,
    Audit,
    Participant,
    Role,
    Stage,
)
from auditor_monitor.models.state import AppState, get_state  # noqa: F401
