"""
Structured logging configuration.

- Development: one colored line per record, tagged with the audit code
- Production: JSON lines (log aggregator compatible)
- LOG_LEVEL picks the level, LOG_FORMAT ("json" / "readable") overrides the format

Every record logged while a request is active carries the request id and,
for audit-scoped URLs, the audit code, so service-layer messages can be
correlated with the request that caused them.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context, request

# Request attributes copied into JSON output when present on the record
_EXTRA_KEYS = (
    "request_id",
    "audit_code",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
)

# Third-party loggers that are chatty at DEBUG (font and plugin discovery)
_QUIET_LOGGERS = ("werkzeug", "matplotlib", "PIL")


class RequestContextFilter(logging.Filter):
    """Stamp records with ``request_id`` and ``audit_code`` of the active request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = getattr(g, "request_id", None)
        if getattr(record, "audit_code", None) is None:
            record.audit_code = (request.view_args or {}).get("code")
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [AUD-001] logger: message [12ms]`` with ANSI level colors."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        audit_code = getattr(record, "audit_code", None)
        duration = getattr(record, "duration_ms", None)
        parts = [
            f"{color}{datetime.now():%H:%M:%S} {record.levelname:<8}{self.RESET}",
            f"[{audit_code}]" if audit_code else "",
            f"{record.name}: {record.getMessage()}",
            f"[{duration:.0f}ms]" if duration is not None else "",
        ]
        line = " ".join(p for p in parts if p)
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _pick_formatter(is_prod: bool) -> logging.Formatter:
    fmt = os.getenv("LOG_FORMAT", "").lower()
    if fmt == "json" or (not fmt and is_prod):
        return JSONFormatter()
    return ReadableFormatter()


def configure_logging(app):
    """Install one stderr handler on the root logger for this app's environment.

    LOG_LEVEL defaults to INFO in production and DEBUG elsewhere.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _pick_formatter(is_prod)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    # one handler per process, also when tests build several apps
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, type(formatter).__name__)
