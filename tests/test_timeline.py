"""
Tests — timeline date-range reduction and layout.

Covers:
    - Reducer fallback to a one-day interval at today
    - Single stage: 6 days, bar at 0% spanning 100%
    - Two stages: enclosing interval and 37.5% offset
    - Same-day activity lasts one day
    - Malformed or partial dates contribute no bar
    - Activity start dates seed the right bound
    - Index-based activity stacking
    - Project days counter
"""

from datetime import date

import pytest

from auditor_monitor.models.audit import Activity, Stage
from auditor_monitor.services.timeline import (
    UNNAMED,
    activity_tooltip,
    build_render_plan,
    project_days,
    reduce_date_range,
)


def _stage(name="Stage", start="", end="", activities=None):
    return Stage(name=name, start_date=start, end_date=end, activities=activities or [])


# ═════════════════════════════════════════════════════════════════════════════
# Date Range Reducer
# ═════════════════════════════════════════════════════════════════════════════


class TestReduceDateRange:
    def test_no_dates_falls_back_to_today(self):
        rng = reduce_date_range([_stage(), _stage(activities=[Activity("a")])])
        assert rng.min_start == date.today()
        assert rng.max_end == date.today()
        assert rng.total_days == 1

    def test_no_stages_uses_explicit_today(self):
        rng = reduce_date_range([], today=date(2024, 3, 1))
        assert rng.min_start == date(2024, 3, 1)
        assert rng.total_days == 1

    def test_malformed_dates_are_ignored(self):
        rng = reduce_date_range(
            [_stage(start="not-a-date", end="2025-13-45")], today=date(2024, 3, 1)
        )
        assert rng.min_start == date(2024, 3, 1)
        assert rng.total_days == 1

    def test_single_stage(self):
        rng = reduce_date_range([_stage(start="2025-01-10", end="2025-01-15")])
        assert rng.min_start == date(2025, 1, 10)
        assert rng.max_end == date(2025, 1, 15)
        assert rng.total_days == 6

    def test_two_stages_enclosing_interval(self):
        rng = reduce_date_range([
            _stage("A", "2025-01-10", "2025-01-15"),
            _stage("B", "2025-01-16", "2025-01-25"),
        ])
        assert rng.min_start == date(2025, 1, 10)
        assert rng.max_end == date(2025, 1, 25)
        assert rng.total_days == 16

    def test_activity_dates_widen_interval(self):
        rng = reduce_date_range([
            _stage("A", "2025-01-10", "2025-01-15",
                   [Activity("late", "2025-01-14", "2025-01-20")]),
        ])
        assert rng.max_end == date(2025, 1, 20)
        assert rng.total_days == 11

    def test_activity_start_seeds_right_bound(self):
        rng = reduce_date_range([_stage(activities=[Activity("x", "2025-02-01", "")])])
        assert rng.min_start == date(2025, 2, 1)
        assert rng.max_end == date(2025, 2, 1)
        assert rng.total_days == 1

    def test_end_only_stage_seeds_left_bound(self):
        rng = reduce_date_range([_stage(end="2025-02-05")])
        assert rng.min_start == date(2025, 2, 5)
        assert rng.total_days == 1

    def test_labels(self):
        rng = reduce_date_range([_stage(start="2025-01-10", end="2025-01-15")])
        assert rng.range_label == "From 10/01 to 15/01"
        assert rng.span_label == "6 days"
        one = reduce_date_range([], today=date(2025, 1, 1))
        assert one.span_label == "1 day"


# ═════════════════════════════════════════════════════════════════════════════
# Layout Engine
# ═════════════════════════════════════════════════════════════════════════════


class TestRenderPlan:
    def test_single_stage_fills_axis(self):
        plan = build_render_plan([_stage(start="2025-01-10", end="2025-01-15")])
        bar = plan.rows[0].bar
        assert plan.date_range.total_days == 6
        assert bar.offset_percent == 0
        assert bar.width_percent == 100

    def test_second_stage_offset(self):
        plan = build_render_plan([
            _stage("A", "2025-01-10", "2025-01-15"),
            _stage("B", "2025-01-16", "2025-01-25"),
        ])
        bar_b = plan.rows[1].bar
        assert bar_b.offset_days == 6
        assert bar_b.offset_percent == pytest.approx(37.5)
        assert bar_b.width_percent == pytest.approx(10 / 16 * 100)

    def test_same_day_activity_lasts_one_day(self):
        plan = build_render_plan([
            _stage("A", "2025-02-03", "2025-02-10",
                   [Activity("Closing meeting", "2025-02-10", "2025-02-10")]),
        ])
        bar = plan.rows[0].activity_bars[0]
        assert bar.duration_days == 1
        assert bar.width_percent == pytest.approx(100 / 8)

    def test_inverted_interval_still_one_day_wide(self):
        plan = build_render_plan([_stage("A", "2025-01-10", "2025-01-05")])
        assert plan.rows[0].bar.duration_days == 1

    def test_partial_dates_give_label_only_row(self):
        plan = build_render_plan([
            _stage("Dated", "2025-01-10", "2025-01-12"),
            _stage("Undated", "2025-01-10", ""),
        ])
        assert plan.rows[1].label == "Undated"
        assert plan.rows[1].bar is None
        assert plan.bar_count == 1

    def test_activity_stacking_is_index_based(self):
        acts = [
            Activity("first", "2025-01-10", "2025-01-11"),
            Activity("undated"),
            Activity("third", "2025-01-10", "2025-01-11"),
        ]
        plan = build_render_plan([_stage("A", "2025-01-10", "2025-01-15", acts)])
        bars = plan.rows[0].activity_bars
        assert [b.stack_index for b in bars] == [0, 2]
        assert [b.top_px for b in bars] == [4, 24]

    def test_activity_tooltip(self):
        text = activity_tooltip("Test", "2025-01-10", "2025-01-12", "Check controls")
        assert text == "Test — 10/01/2025 → 12/01/2025\nDescription: Check controls"
        assert "Description" not in activity_tooltip("Test", "", "")

    def test_empty_plan(self):
        plan = build_render_plan([])
        assert plan.empty
        assert plan.to_dict()["rows"] == []

    def test_unnamed_stage_label(self):
        plan = build_render_plan([_stage(name="")])
        assert plan.rows[0].label == UNNAMED

    def test_to_dict_uses_camel_case(self):
        plan = build_render_plan([_stage("A", "2025-01-10", "2025-01-15",
                                         [Activity("a", "2025-01-10", "2025-01-10")])])
        row = plan.to_dict()["rows"][0]
        assert row["bar"]["widthPercent"] == 100
        assert row["activityBars"][0]["topPx"] == 4
        assert plan.to_dict()["range"]["totalDays"] == 6


class TestProjectDays:
    def test_counts_inclusive_span(self, sample_audit):
        assert project_days(sample_audit.stages) == 32

    def test_missing_bounds(self):
        assert project_days([_stage(start="2025-01-10")]) == 0
        assert project_days([]) == 0

    def test_inverted_bounds(self):
        assert project_days([_stage(start="2025-02-10", end="2025-01-01")]) == 0
