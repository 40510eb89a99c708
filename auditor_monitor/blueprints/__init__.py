"""
Auditor Monitor
Blueprint registry.
"""

from flask import request


def json_body() -> dict:
    """Return the JSON object body, or {} for a missing / non-object body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
