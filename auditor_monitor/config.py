"""
Auditor Monitor
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False
    APP_TITLE = os.getenv("APP_TITLE", "AuditorMonitor")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Upload cap for JSON imports
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(2 * 1024 * 1024)))

    # Audit selected at startup
    DEFAULT_AUDIT_CODE = os.getenv("DEFAULT_AUDIT_CODE", "AUD-001")

    # Timeline recompute batching window (seconds); 0 = recompute on read only
    RENDER_DEBOUNCE_SECONDS = float(os.getenv("RENDER_DEBOUNCE_SECONDS", "0.12"))

    # Raster export resolution
    GANTT_RASTER_DPI = int(os.getenv("GANTT_RASTER_DPI", "150"))

    # How long a blocking prompt waits before it counts as cancelled
    PROMPT_TIMEOUT_SECONDS = float(os.getenv("PROMPT_TIMEOUT_SECONDS", "300"))

    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"

    @classmethod
    def validate(cls):
        """Raise RuntimeError when a required environment setting is missing."""


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    RATELIMIT_ENABLED = False
    RENDER_DEBOUNCE_SECONDS = 0.0
    GANTT_RASTER_DPI = 60
    PROMPT_TIMEOUT_SECONDS = 1.0


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    @classmethod
    def validate(cls):
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
