"""
Timeline Renderer — HTML rendering of a RenderPlan.

The Jinja template receives plain values only (percentages already
formatted, pixel offsets resolved) so it stays free of layout math.
"""

from __future__ import annotations

from flask import render_template

from auditor_monitor.services.raster import ACTIVITY_COLOR, EMPTY_TEXT, STAGE_COLOR, row_heights
from auditor_monitor.services.timeline import RenderPlan

RISK_CLASSES = {"low": "risk-low", "medium": "risk-medium", "high": "risk-high"}


def _pct(value: float) -> str:
    return f"{value:.4f}".rstrip("0").rstrip(".") + "%"


def timeline_context(plan: RenderPlan) -> dict:
    rows = []
    for row, height in zip(plan.rows, row_heights(plan)):
        rows.append({
            "label": row.label,
            "risk_class": RISK_CLASSES.get(row.risk, ""),
            "height": height,
            "bar": {
                "left": _pct(row.bar.offset_percent),
                "width": _pct(row.bar.width_percent),
                "title": row.bar.label,
            } if row.bar else None,
            "activities": [
                {
                    "left": _pct(b.offset_percent),
                    "width": _pct(b.width_percent),
                    "top": f"{b.top_px}px",
                    "title": b.label,
                }
                for b in row.activity_bars
            ],
        })
    return {
        "empty": plan.empty,
        "empty_text": EMPTY_TEXT,
        "range_label": plan.date_range.range_label,
        "span_label": plan.date_range.span_label,
        "stage_color": STAGE_COLOR,
        "activity_color": ACTIVITY_COLOR,
        "rows": rows,
    }


def render_timeline_html(plan: RenderPlan) -> str:
    """Render the Gantt fragment; must run inside an app context."""
    return render_template("timeline.html", **timeline_context(plan))
