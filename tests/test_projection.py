"""Tests for time-to-goal projection and calendar helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from phaseweight.tracking.models import UnknownPhaseError
from phaseweight.tracking.projection import (
    expected_trajectory,
    format_date_range,
    is_sunday,
    next_sunday,
    phase_progress,
    phase_start_weight,
    project,
    project_phase,
)

TODAY = date(2026, 10, 18)


class TestProject:
    """Tests for project."""

    def test_already_at_goal(self, phases) -> None:
        projection = project(100, 100, phases[0], [], today=TODAY)
        assert projection.weeks_min == 0
        assert projection.weeks_max == 0
        assert projection.date_min == TODAY
        assert projection.date_max == TODAY

    def test_below_goal(self, phases) -> None:
        projection = project(98.5, 100, phases[0], [], today=TODAY)
        assert (projection.weeks_min, projection.weeks_max) == (0, 0)

    def test_no_history_uses_phase_estimate(self, phases) -> None:
        """Without a trend, fall back to the phase's 14-28 week estimate."""
        projection = project(114, 100, phases[0], [], today=TODAY)
        assert projection.weeks_min == 14
        assert projection.weeks_max == 28
        assert projection.date_min == TODAY + timedelta(weeks=14)
        assert projection.date_max == TODAY + timedelta(weeks=28)

    def test_flat_trend_uses_phase_estimate(self, phases, make_history) -> None:
        history = make_history([101.0, 101.0, 100.9, 101.0])
        projection = project(101.0, 100, phases[0], history, today=TODAY)
        assert (projection.weeks_min, projection.weeks_max) == (14, 28)

    def test_established_trend_uses_pace_band(self, phases, make_history) -> None:
        """Faster pace (max loss) gives the minimum weeks."""
        history = make_history([114.0, 113.0, 112.0, 111.0])
        projection = project(111.0, 100, phases[0], history, today=TODAY)
        assert projection.weeks_min == 11  # 11 kg at 1.0 kg/week
        assert projection.weeks_max == 22  # 11 kg at 0.5 kg/week
        assert projection.date_min == TODAY + timedelta(weeks=11)
        assert projection.date_max == TODAY + timedelta(weeks=22)

    def test_weeks_rounded_up(self, phases, make_history) -> None:
        history = make_history([113.3, 112.3, 111.3, 110.3])
        projection = project(110.3, 100, phases[0], history, today=TODAY)
        assert projection.weeks_min == 11
        assert projection.weeks_max == 21

    def test_phase_pace_band_inverted_to_weeks(self, phases, make_history) -> None:
        """Refinement's 0.5-0.75 kg/week pace gives 8-12 weeks for 6 kg."""
        history = make_history([103.0, 102.0, 101.0, 100.0])
        projection = project(100.0, 94, phases[1], history, today=TODAY)
        assert projection.weeks_min == 8
        assert projection.weeks_max == 12


class TestProjectPhase:
    """Tests for project_phase."""

    def test_other_phase_history_ignored(self, phases, make_history) -> None:
        """Phase 1 weigh-ins don't establish a trend for phase 2."""
        history = make_history([103.0, 102.0, 101.0, 100.0])
        projection = project_phase(phases[1], 100.0, history, today=TODAY)
        assert (projection.weeks_min, projection.weeks_max) == (10, 14)

    def test_uses_phase_target(self, phases, make_history) -> None:
        history = make_history([114.0, 113.0, 112.0, 111.0])
        projection = project_phase(phases[0], 111.0, history, today=TODAY)
        assert (projection.weeks_min, projection.weeks_max) == (11, 22)


class TestPhaseProgress:
    """Tests for phase_progress."""

    def test_halfway(self) -> None:
        assert phase_progress(107, 114, 100) == pytest.approx(50.0)

    def test_clamped_below(self) -> None:
        assert phase_progress(115, 114, 100) == 0.0

    def test_clamped_above(self) -> None:
        assert phase_progress(99, 114, 100) == 100.0

    def test_no_planned_loss(self) -> None:
        assert phase_progress(100, 100, 100) == 100.0


class TestPhaseStartWeight:
    """Tests for phase_start_weight."""

    def test_first_phase_starts_at_profile_weight(self, profile, phases) -> None:
        assert phase_start_weight(profile, phases, 1) == 114

    def test_later_phases_start_at_previous_target(self, profile, phases) -> None:
        assert phase_start_weight(profile, phases, 2) == 100
        assert phase_start_weight(profile, phases, 3) == 94

    def test_missing_previous_phase(self, profile, phases) -> None:
        with pytest.raises(UnknownPhaseError):
            phase_start_weight(profile, phases[1:], 2)


class TestExpectedTrajectory:
    """Tests for expected_trajectory."""

    def test_straight_line(self) -> None:
        assert expected_trajectory(114, 100, 14, 7) == pytest.approx(107.0)

    def test_zero_weeks(self) -> None:
        assert expected_trajectory(114, 100, 0, 3) == 100


class TestCalendar:
    """Tests for Sunday scheduling helpers."""

    def test_is_sunday(self) -> None:
        assert is_sunday(date(2026, 10, 18))
        assert not is_sunday(datetime(2026, 10, 19, 8, 0))

    def test_sunday_rolls_forward_a_week(self) -> None:
        assert next_sunday(datetime(2026, 10, 18, 9, 30)) == datetime(2026, 10, 25)

    def test_weekday_goes_to_coming_sunday(self) -> None:
        assert next_sunday(datetime(2026, 10, 19, 7, 0)) == datetime(2026, 10, 25)
        assert next_sunday(datetime(2026, 10, 24, 23, 59)) == datetime(2026, 10, 25)

    def test_accepts_date(self) -> None:
        assert next_sunday(date(2026, 10, 21)) == datetime(2026, 10, 25)

    def test_result_is_midnight(self) -> None:
        result = next_sunday(datetime(2026, 10, 20, 15, 45))
        assert (result.hour, result.minute, result.second) == (0, 0, 0)

    def test_format_date_range(self) -> None:
        assert format_date_range(date(2027, 1, 5), date(2027, 3, 2)) == "Jan 5 - Mar 2, 2027"
