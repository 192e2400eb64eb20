"""Tests for the dashboard summary and history export."""

from __future__ import annotations

from datetime import date

import pytest

from phaseweight.tracking.defaults import create_sample_history
from phaseweight.tracking.reports import (
    HISTORY_COLUMNS,
    build_dashboard,
    format_dashboard,
    history_frame,
)

TODAY = date(2026, 10, 18)


@pytest.fixture
def sample(profile, phases, state, now):
    return create_sample_history(profile, phases, state, start=now)


class TestBuildDashboard:
    """Tests for build_dashboard."""

    def test_empty_history(self, profile, phases, state) -> None:
        summary = build_dashboard(profile, phases, [], state, today=TODAY)
        assert summary.current_weight == 114
        assert summary.week_number == 1
        assert summary.progress_pct == 0.0
        assert summary.remaining_kg == pytest.approx(14.0)
        assert (summary.projection.weeks_min, summary.projection.weeks_max) == (14, 28)
        assert summary.trend_per_week == 0.0
        assert summary.total_lost_kg == 0.0

    def test_sample_history(self, profile, sample) -> None:
        history, phases, state = sample
        summary = build_dashboard(profile, phases, history, state, today=TODAY)

        assert summary.phase.id == 1
        assert summary.week_number == 9
        assert summary.current_weight == 110.5
        assert summary.remaining_kg == pytest.approx(10.5)
        assert summary.progress_pct == pytest.approx(3.5 / 14 * 100)
        assert summary.weekly_change == pytest.approx(-0.8)
        assert summary.trend_per_week == pytest.approx((111.8 - 110.5) / 3)
        assert summary.total_lost_kg == pytest.approx(3.5)
        assert summary.next_weigh_in == state.next_weigh_in_date

    def test_trend_view_window(self, profile, sample) -> None:
        history, phases, state = sample
        state.trend_view_weeks = 8
        summary = build_dashboard(profile, phases, history, state, today=TODAY)
        assert summary.trend_per_week == pytest.approx((114.0 - 110.5) / 7)

    def test_composition_sums_to_weight(self, profile, sample) -> None:
        history, phases, state = sample
        summary = build_dashboard(profile, phases, history, state, today=TODAY)
        total = summary.composition.fat_mass_kg + summary.composition.lean_mass_kg
        assert total == pytest.approx(110.5)


class TestFormatDashboard:
    """Tests for format_dashboard."""

    def test_contains_key_figures(self, profile, sample) -> None:
        history, phases, state = sample
        text = format_dashboard(build_dashboard(profile, phases, history, state, today=TODAY))
        assert "Phase 1: Foundation" in text
        assert "110.5 kg" in text
        assert "estimated" in text
        assert "Plateau" not in text

    def test_plateau_notice(self, profile, sample) -> None:
        history, phases, state = sample
        state.plateau_mode = True
        text = format_dashboard(build_dashboard(profile, phases, history, state, today=TODAY))
        assert "Plateau" in text

    def test_target_reached(self, profile, phases, state, make_history) -> None:
        summary = build_dashboard(profile, phases, make_history([100.0]), state, today=TODAY)
        assert "target reached" in format_dashboard(summary)


class TestHistoryFrame:
    """Tests for history_frame."""

    def test_columns_and_rows(self, sample) -> None:
        history, _, _ = sample
        frame = history_frame(history)
        assert list(frame.columns) == HISTORY_COLUMNS
        assert len(frame) == 8
        assert frame["weight_kg"].tolist() == [w.weight_kg for w in history]

    def test_empty(self) -> None:
        frame = history_frame([])
        assert frame.empty
        assert list(frame.columns) == HISTORY_COLUMNS
