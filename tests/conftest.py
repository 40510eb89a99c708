"""
Shared pytest fixtures for the Auditor Monitor test suite.

Provides:
    - app: Flask application (session-scoped)
    - _reset_state: per-test reset of the in-memory state (autouse)
    - client: Flask test client (function-scoped)
    - state: the app's AppState
    - sample_audit: the sample plan loaded and selected
"""

import pytest

from auditor_monitor import create_app
from auditor_monitor.models.audit import Audit, default_roles
from auditor_monitor.models.state import EXTENSION_KEY
from auditor_monitor.services.audit_service import load_sample_data


# ── App fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(autouse=True)
def _reset_state(app):
    """Per-test: fresh audits and roles, no pending prompts."""
    state = app.extensions[EXTENSION_KEY]
    default_code = app.config["DEFAULT_AUDIT_CODE"]
    with app.app_context():
        with state.lock:
            state.roles = default_roles()
            state.replace({default_code: Audit(code=default_code)}, default_code)
            state.scheduler.invalidate_all(state.audits)
        broker = app.extensions["prompts"]
        for prompt in broker.pending():
            broker.cancel(prompt.id)
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def state(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def sample_audit(state):
    return load_sample_data(state)
