"""Shared utility functions for date handling and id generation.

parse_date:           lenient parser, returns None on bad input
format_date_display:  DD/MM/YYYY for reports, "?" when empty
format_date_short:    DD/MM for the timeline header
new_id:               opaque identifier for participants, stages, activities
"""
import uuid
from datetime import date, datetime


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def parse_date(value):
    """Parse a calendar date from an ISO string.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - date / datetime objects
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except (ValueError, TypeError):
        return None


def format_date_display(value) -> str:
    """Format a date string as DD/MM/YYYY.

    Empty input renders as "?"; unparseable input is returned untouched so
    the reader still sees what was typed.
    """
    if not value:
        return "?"
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%d/%m/%Y")


def format_date_short(value: date) -> str:
    return value.strftime("%d/%m")
