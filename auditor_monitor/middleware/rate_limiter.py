"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter
instance is created in auditor_monitor/__init__.py with no default limits;
this module applies granular limits per route category.

Usage:
    from auditor_monitor.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"
EXPORT_LIMIT = "20/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Export endpoints:   20/minute  (rasterisation is CPU heavy)
        - Editing endpoints:  60/minute
        - Timeline reads:     200/minute
        - Health check:       exempt

    Rate limiting is disabled in testing mode or when RATELIMIT_ENABLED is off.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("export")
    if bp:
        limiter.limit(EXPORT_LIMIT)(bp)

    for bp_name in ("audit", "roles", "prompts"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("timeline")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: export %s, write %s, read %s",
        EXPORT_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
