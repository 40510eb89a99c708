"""
Auditor Monitor
Flask Application Factory.

Usage:
    from auditor_monitor import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, render_template, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from auditor_monitor.config import config
from auditor_monitor.core.exceptions import NotFoundError, ValidationError
from auditor_monitor.middleware.logging_config import configure_logging
from auditor_monitor.middleware.rate_limiter import init_rate_limits
from auditor_monitor.middleware.security_headers import init_security_headers
from auditor_monitor.middleware.timing import init_request_timing
from auditor_monitor.models.state import init_state
from auditor_monitor.services.prompt_service import PromptBroker
from auditor_monitor.services.render_scheduler import RecomputeScheduler
from auditor_monitor.services.timeline import build_render_plan
from auditor_monitor.utils.errors import E, api_error

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def _init_scheduler(app: Flask, state) -> RecomputeScheduler:
    def _compute(code: str):
        audit = state.audits.get(code)
        return build_render_plan(audit.stages if audit else [])

    scheduler = RecomputeScheduler(
        _compute,
        debounce_seconds=app.config.get("RENDER_DEBOUNCE_SECONDS", 0.0),
        outer_lock=state.lock,
    )
    state.scheduler = scheduler
    if state.current_audit_code:
        scheduler.mark_dirty(state.current_audit_code)
    return scheduler


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    config_class = config[config_name]
    config_class.validate()

    app = Flask(__name__)
    app.config.from_object(config_class)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    init_security_headers(app)
    init_request_timing(app)

    # ── Application state, recompute scheduler, prompt broker ────────────
    state = init_state(app)
    _init_scheduler(app, state)
    app.extensions["prompts"] = PromptBroker(
        default_timeout=app.config.get("PROMPT_TIMEOUT_SECONDS"),
    )

    # ── Blueprints ───────────────────────────────────────────────────────
    from auditor_monitor.blueprints.audit_bp import audit_bp
    from auditor_monitor.blueprints.export_bp import export_bp
    from auditor_monitor.blueprints.health_bp import health_bp
    from auditor_monitor.blueprints.prompt_bp import prompt_bp
    from auditor_monitor.blueprints.role_bp import role_bp
    from auditor_monitor.blueprints.timeline_bp import timeline_bp

    app.register_blueprint(audit_bp)
    app.register_blueprint(role_bp)
    app.register_blueprint(prompt_bp)
    app.register_blueprint(timeline_bp)
    app.register_blueprint(export_bp)
    app.register_blueprint(health_bp)

    # ── Browser page ─────────────────────────────────────────────────────
    @app.route("/")
    def index():
        from auditor_monitor.services.audit_service import summarize
        from auditor_monitor.services.timeline_renderer import render_timeline_html

        with state.lock:
            audit = state.get_current_audit()
            context = {"app_title": app.config.get("APP_TITLE", "AuditorMonitor"), "audit": audit}
            if audit is not None:
                lead = audit.lead
                context.update(
                    summary=summarize(audit),
                    lead_name=lead.name if lead else None,
                    role_label=state.role_label,
                    timeline_html=render_timeline_html(state.plan_for(audit.code)),
                )
            return render_template("index.html", **context)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details or None)

    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return {"error": "Not found", "path": request.path}, 404
        return "<h1>404 — Not Found</h1>", 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        if request.path.startswith("/api/"):
            return api_error(E.INTERNAL, "Internal server error")
        return "<h1>500 — Internal Server Error</h1><p>An unexpected error occurred.</p>", 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
