"""
Timeline computation — date-range reduction and Gantt layout.

Pure functions of the audit data; no Flask, no I/O.

    reduce_date_range(stages)          → DateRange (minStart, maxEnd, totalDays)
    build_render_plan(stages)          → RenderPlan (one StageRow per stage)
    project_days(stages)               → int shown in the audit summary

Layout math, for an entity with parsed start/end:
    offset_days   = max(0, (start - min_start).days)
    duration_days = max(1, (end - start).days + 1)
    offset %      = offset_days / total_days * 100
    width %       = duration_days / total_days * 100

A stage or activity missing either date (or carrying an unparseable one)
contributes no bar. Activity bars are stacked by their index in the stage's
activity list, not by actual date overlap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from auditor_monitor.models.audit import Stage
from auditor_monitor.utils.helpers import format_date_display, format_date_short, parse_date

# Vertical placement of activity bars inside a stage row (px)
ACTIVITY_TOP_PX = 4
ACTIVITY_STEP_PX = 10

UNNAMED = "(unnamed)"


# ═════════════════════════════════════════════════════════════════════════════
# Date Range Reducer
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DateRange:
    """Enclosing interval shared by every bar of one timeline."""
    min_start: date
    max_end: date
    total_days: int

    @property
    def range_label(self) -> str:
        return f"From {format_date_short(self.min_start)} to {format_date_short(self.max_end)}"

    @property
    def span_label(self) -> str:
        return f"{self.total_days} day{'' if self.total_days == 1 else 's'}"

    def to_dict(self) -> dict:
        return {
            "minStart": self.min_start.isoformat(),
            "maxEnd": self.max_end.isoformat(),
            "totalDays": self.total_days,
            "rangeLabel": self.range_label,
            "spanLabel": self.span_label,
        }


def _earlier(current: date | None, candidate: date) -> date:
    return candidate if current is None or candidate < current else current


def _later(current: date | None, candidate: date) -> date:
    return candidate if current is None or candidate > current else current


def reduce_date_range(stages: Iterable[Stage], today: date | None = None) -> DateRange:
    """Compute the minimal interval enclosing every parseable stage/activity date.

    Falls back to a single day anchored at ``today`` (default: the current
    date) when nothing carries a valid date. Malformed dates are ignored.
    """
    min_start: date | None = None
    max_end: date | None = None

    for stage in stages:
        start = parse_date(stage.start_date)
        end = parse_date(stage.end_date)
        if start:
            min_start = _earlier(min_start, start)
        if end:
            max_end = _later(max_end, end)
            # an end-only stage still contributes a left bound
            if min_start is None:
                min_start = end

        for activity in stage.activities:
            a_start = parse_date(activity.start_date)
            a_end = parse_date(activity.end_date)
            if a_start:
                min_start = _earlier(min_start, a_start)
                if max_end is None:
                    max_end = a_start
            if a_end:
                max_end = _later(max_end, a_end)
                if min_start is None:
                    min_start = a_end

    if min_start is None:
        min_start = today or date.today()
    if max_end is None:
        max_end = min_start

    total_days = max(1, (max_end - min_start).days + 1)
    return DateRange(min_start=min_start, max_end=max_end, total_days=total_days)


def project_days(stages: Iterable[Stage]) -> int:
    """Days between the earliest start and the latest end, inclusive.

    Unlike the timeline axis there is no fallback: 0 when either bound is
    missing or the bounds are inverted.
    """
    starts: list[date] = []
    ends: list[date] = []
    for stage in stages:
        for item in (stage, *stage.activities):
            start = parse_date(item.start_date)
            end = parse_date(item.end_date)
            if start:
                starts.append(start)
            if end:
                ends.append(end)
    if not starts or not ends:
        return 0
    lo, hi = min(starts), max(ends)
    if hi < lo:
        return 0
    return (hi - lo).days + 1


# ═════════════════════════════════════════════════════════════════════════════
# Timeline Layout Engine
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Bar:
    """Horizontal placement of one dated entity on the shared axis."""
    start: date
    end: date
    offset_days: int
    duration_days: int
    offset_percent: float
    width_percent: float
    label: str

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "offsetDays": self.offset_days,
            "durationDays": self.duration_days,
            "offsetPercent": self.offset_percent,
            "widthPercent": self.width_percent,
            "label": self.label,
        }


@dataclass(frozen=True)
class ActivityBar(Bar):
    activity_id: str = ""
    stack_index: int = 0

    @property
    def top_px(self) -> int:
        return ACTIVITY_TOP_PX + self.stack_index * ACTIVITY_STEP_PX

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "activityId": self.activity_id,
            "stackIndex": self.stack_index,
            "topPx": self.top_px,
        })
        return data


@dataclass
class StageRow:
    stage_id: str
    label: str
    risk: str
    bar: Bar | None = None
    activity_bars: list[ActivityBar] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stageId": self.stage_id,
            "label": self.label,
            "risk": self.risk,
            "bar": self.bar.to_dict() if self.bar else None,
            "activityBars": [b.to_dict() for b in self.activity_bars],
        }


@dataclass
class RenderPlan:
    date_range: DateRange
    rows: list[StageRow] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.rows

    @property
    def bar_count(self) -> int:
        return sum((1 if r.bar else 0) + len(r.activity_bars) for r in self.rows)

    def to_dict(self) -> dict:
        return {
            "range": self.date_range.to_dict(),
            "empty": self.empty,
            "rows": [r.to_dict() for r in self.rows],
        }


def parse_interval(start_value, end_value) -> tuple[date, date] | None:
    """Return (start, end) only when both dates are present and valid."""
    start = parse_date(start_value)
    end = parse_date(end_value)
    if start is None or end is None:
        return None
    return start, end


def place(start: date, end: date, date_range: DateRange) -> tuple[int, int, float, float]:
    """Return (offset_days, duration_days, offset_percent, width_percent)."""
    offset_days = max(0, (start - date_range.min_start).days)
    duration_days = max(1, (end - start).days + 1)
    total = date_range.total_days
    return (
        offset_days,
        duration_days,
        offset_days / total * 100,
        duration_days / total * 100,
    )


def activity_tooltip(name: str, start_value, end_value, description: str = "") -> str:
    text = f"{name} — {format_date_display(start_value)} → {format_date_display(end_value)}"
    if description:
        text += f"\nDescription: {description}"
    return text


def build_render_plan(
    stages: list[Stage],
    date_range: DateRange | None = None,
    today: date | None = None,
) -> RenderPlan:
    """Lay out every stage and activity against the enclosing interval.

    Recomputed from scratch on every call.
    """
    if date_range is None:
        date_range = reduce_date_range(stages, today=today)

    rows: list[StageRow] = []
    for stage in stages:
        label = stage.name or UNNAMED
        row = StageRow(stage_id=stage.id, label=label, risk=stage.risk)

        interval = parse_interval(stage.start_date, stage.end_date)
        if interval:
            start, end = interval
            offset_days, duration_days, offset_pct, width_pct = place(start, end, date_range)
            row.bar = Bar(
                start=start,
                end=end,
                offset_days=offset_days,
                duration_days=duration_days,
                offset_percent=offset_pct,
                width_percent=width_pct,
                label=f"{label} — {format_date_display(stage.start_date)} → "
                      f"{format_date_display(stage.end_date)}",
            )

        for index, activity in enumerate(stage.activities):
            interval = parse_interval(activity.start_date, activity.end_date)
            if not interval:
                continue
            start, end = interval
            offset_days, duration_days, offset_pct, width_pct = place(start, end, date_range)
            row.activity_bars.append(ActivityBar(
                start=start,
                end=end,
                offset_days=offset_days,
                duration_days=duration_days,
                offset_percent=offset_pct,
                width_percent=width_pct,
                label=activity_tooltip(
                    activity.name or UNNAMED,
                    activity.start_date,
                    activity.end_date,
                    activity.description,
                ),
                activity_id=activity.id,
                stack_index=index,
            ))

        rows.append(row)

    return RenderPlan(date_range=date_range, rows=rows)
