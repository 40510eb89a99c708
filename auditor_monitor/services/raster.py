"""
Raster rendering of the timeline (matplotlib, Agg backend).

Both exporters consume the same result type:

    RasterSuccess(image=<png bytes>, width=..., height=...)
    RasterFailure(reason="...")

Rasterisation never raises to the caller; any drawing error becomes a
RasterFailure so the export can fall back to text.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Union

import matplotlib

matplotlib.use("Agg")  # non-GUI backend for server rendering

import matplotlib.patches as mpatches  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from auditor_monitor.models.audit import Audit  # noqa: E402
from auditor_monitor.services.timeline import (  # noqa: E402
    ACTIVITY_STEP_PX,
    ACTIVITY_TOP_PX,
    RenderPlan,
)

logger = logging.getLogger(__name__)

STAGE_COLOR = "#F57C00"
ACTIVITY_COLOR = "#354A5F"
TRACK_COLOR = "#F3F4F6"
EMPTY_TEXT = "No schedule yet"

_ROW_MIN_PX = 32
_ACTIVITY_BAR_PX = 8
_HEADER_PX = 70
_LABEL_SPAN = 38   # x-units reserved left of the 0..100 bar area
_PX_PER_INCH = 100
_FIG_WIDTH_IN = 10.0


@dataclass(frozen=True)
class RasterSuccess:
    image: bytes
    width: int
    height: int
    ok: bool = True


@dataclass(frozen=True)
class RasterFailure:
    reason: str
    ok: bool = False


RasterResult = Union[RasterSuccess, RasterFailure]


def row_heights(plan: RenderPlan) -> list[int]:
    heights = []
    for row in plan.rows:
        deepest = max((b.stack_index for b in row.activity_bars), default=-1)
        needed = ACTIVITY_TOP_PX + (deepest + 1) * ACTIVITY_STEP_PX + _ACTIVITY_BAR_PX
        heights.append(max(_ROW_MIN_PX, needed))
    return heights


def timeline_height_px(plan: RenderPlan) -> int:
    if plan.empty:
        return _HEADER_PX + _ROW_MIN_PX
    return _HEADER_PX + sum(row_heights(plan))


def draw_timeline(ax, plan: RenderPlan) -> None:
    """Draw the plan onto ``ax`` using pixel-like y units (top = 0)."""
    ax.set_axis_off()
    if plan.empty:
        ax.set_xlim(0, 100)
        ax.set_ylim(1, 0)
        ax.text(50, 0.5, EMPTY_TEXT, ha="center", va="center", fontsize=12, color="gray")
        return

    heights = row_heights(plan)
    total = sum(heights)
    ax.set_xlim(-_LABEL_SPAN, 100)
    ax.set_ylim(total, 0)
    ax.set_title(
        f"{plan.date_range.range_label}    {plan.date_range.span_label}",
        loc="left", fontsize=10, fontweight="bold",
    )

    y = 0
    for row, height in zip(plan.rows, heights):
        ax.add_patch(mpatches.Rectangle((0, y + 1), 100, height - 2, color=TRACK_COLOR, lw=0))
        ax.text(-_LABEL_SPAN + 1, y + height / 2, row.label[:40], va="center", fontsize=8,
                fontweight="bold")
        if row.bar:
            ax.add_patch(mpatches.Rectangle(
                (row.bar.offset_percent, y + 2), row.bar.width_percent, height - 4,
                color=STAGE_COLOR, alpha=0.35, lw=0,
            ))
        for bar in row.activity_bars:
            ax.add_patch(mpatches.Rectangle(
                (bar.offset_percent, y + bar.top_px), bar.width_percent, _ACTIVITY_BAR_PX,
                color=ACTIVITY_COLOR, lw=0,
            ))
        y += height

    ax.legend(
        handles=[
            mpatches.Patch(color=STAGE_COLOR, alpha=0.35, label="Stage"),
            mpatches.Patch(color=ACTIVITY_COLOR, label="Activity"),
        ],
        loc="lower right", bbox_to_anchor=(1.0, 1.0), ncol=2, fontsize=8, frameon=False,
    )


def _to_png(fig: Figure, dpi: int) -> RasterSuccess:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, facecolor="white")
    width, height = fig.get_size_inches() * dpi
    return RasterSuccess(image=buf.getvalue(), width=int(width), height=int(height))


def rasterize_timeline(plan: RenderPlan, dpi: int = 150) -> RasterResult:
    """Render the timeline alone to PNG."""
    try:
        fig = Figure(figsize=(_FIG_WIDTH_IN, max(1.2, timeline_height_px(plan) / _PX_PER_INCH)))
        ax = fig.add_axes((0.01, 0.02, 0.98, 0.8))
        draw_timeline(ax, plan)
        return _to_png(fig, dpi)
    except Exception as exc:
        logger.warning("Timeline rasterisation failed: %s", exc, exc_info=True)
        return RasterFailure(reason=str(exc) or exc.__class__.__name__)


def summary_lines(audit: Audit, role_label) -> list[str]:
    """Text block drawn above the timeline in the paginated export."""
    lead = audit.lead
    lines = [
        f"Code: {audit.code}",
        f"Audit name: {audit.name}",
        f"Description: {audit.description}",
        f"Lead auditor: {lead.name if lead else 'Not assigned'}",
        f"Participants: {len(audit.participants)}   Stages: {len(audit.stages)}   "
        f"Activities: {audit.activity_count}",
        "",
    ]
    for p in audit.participants:
        lines.append(f"• {p.name} ({p.email or 'no email'}) — {role_label(p.role)}")
    if not audit.stages:
        lines.append("No stages defined.")
    for s in audit.stages:
        lines.append(f"• {s.name} — risk {s.risk}, {len(s.activities)} activities")
    return lines


def rasterize_summary(audit: Audit, plan: RenderPlan, role_label, dpi: int = 150) -> RasterResult:
    """Render an off-screen summary (header, counters, timeline) to one tall PNG."""
    try:
        lines = summary_lines(audit, role_label)
        text_px = 50 + 20 * len(lines)
        timeline_px = timeline_height_px(plan)
        total_px = text_px + timeline_px
        fig = Figure(figsize=(_FIG_WIDTH_IN, total_px / _PX_PER_INCH))
        text_frac = text_px / total_px

        text_ax = fig.add_axes((0.03, 1 - text_frac, 0.94, text_frac))
        text_ax.set_axis_off()
        text_ax.set_xlim(0, 1)
        text_ax.set_ylim(text_px, 0)
        text_ax.text(0, 25, audit.name or audit.code or "Audit report", fontsize=16,
                     fontweight="bold", color=STAGE_COLOR, va="center")
        for i, line in enumerate(lines):
            text_ax.text(0, 50 + 20 * i, line, fontsize=9, va="center")

        timeline_ax = fig.add_axes((0.01, 0.01, 0.98, max(0.01, 1 - text_frac - 0.06)))
        draw_timeline(timeline_ax, plan)
        return _to_png(fig, dpi)
    except Exception as exc:
        logger.warning("Summary rasterisation failed: %s", exc, exc_info=True)
        return RasterFailure(reason=str(exc) or exc.__class__.__name__)
