"""Time-to-goal projections and weekly calendar helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Union

from phaseweight.tracking.models import Phase, UserProfile, WeighIn
from phaseweight.tracking.phases import get_phase
from phaseweight.tracking.trend import trend_slope

# Trend below this (kg/week) is treated as noise, not established progress
MEANINGFUL_TREND_KG = 0.1
PROJECTION_WINDOW = 4

SUNDAY = 6  # date.weekday()


@dataclass
class Projection:
    """Plausible completion window for a phase target."""

    weeks_min: int
    weeks_max: int
    date_min: date
    date_max: date


def project(
    current_weight: float,
    target_weight: float,
    phase: Phase,
    phase_history: Sequence[WeighIn],
    today: Optional[date] = None,
) -> Projection:
    """
    Project the week count and date range to reach ``target_weight``.

    With an established trend (> 0.1 kg/week over the last 4 entries) the
    remaining weight is divided by the phase's pace band. Note that
    ``weeks_min`` uses the *max* weekly loss: a faster pace means fewer
    weeks. The min/max weeks bracket completion, they are not the pace
    bounds. Without an established trend the phase's own estimated duration
    is used instead.

    Args:
        current_weight: Latest weight in kg
        target_weight: Phase target in kg
        phase: Phase supplying pace and duration bounds
        phase_history: Weigh-ins belonging to this phase only
        today: Anchor date (default: today)

    Returns:
        Projection with week counts rounded up to whole weeks
    """
    if today is None:
        today = date.today()

    remaining = current_weight - target_weight
    if remaining <= 0:
        return Projection(weeks_min=0, weeks_max=0, date_min=today, date_max=today)

    trend = trend_slope(phase_history, PROJECTION_WINDOW)

    if trend > MEANINGFUL_TREND_KG:
        weeks_min = remaining / phase.weekly_loss_max_kg
        weeks_max = remaining / phase.weekly_loss_min_kg
    else:
        weeks_min = phase.estimated_duration_weeks_min
        weeks_max = phase.estimated_duration_weeks_max

    weeks_min = math.ceil(weeks_min)
    weeks_max = math.ceil(weeks_max)

    return Projection(
        weeks_min=weeks_min,
        weeks_max=weeks_max,
        date_min=today + timedelta(days=weeks_min * 7),
        date_max=today + timedelta(days=weeks_max * 7),
    )


def project_phase(
    phase: Phase,
    current_weight: float,
    history: Sequence[WeighIn],
    today: Optional[date] = None,
) -> Projection:
    """Project a phase using only the weigh-ins recorded under it."""
    phase_history = [w for w in history if w.phase_id == phase.id]
    return project(current_weight, phase.target_weight_kg, phase, phase_history, today)


def phase_progress(
    current_weight: float, phase_start_weight: float, phase_target_weight: float
) -> float:
    """Percentage of the phase's planned loss achieved, clamped to [0, 100]."""
    total_loss = phase_start_weight - phase_target_weight
    if total_loss <= 0:
        return 100.0
    current_loss = phase_start_weight - current_weight
    progress = current_loss / total_loss * 100
    return max(0.0, min(100.0, progress))


def phase_start_weight(
    profile: UserProfile, phases: Sequence[Phase], phase_id: int
) -> float:
    """Weight a phase starts from: the profile start for phase 1, else the previous target."""
    if phase_id == 1:
        return profile.starting_weight_kg
    return get_phase(phases, phase_id - 1).target_weight_kg


def expected_trajectory(
    start_weight: float, target_weight: float, total_weeks: int, current_week: int
) -> float:
    """Planned weight at ``current_week`` on a straight line from start to target."""
    if total_weeks <= 0:
        return target_weight
    loss_per_week = (start_weight - target_weight) / total_weeks
    return start_weight - loss_per_week * current_week


def is_sunday(day: Union[date, datetime]) -> bool:
    return day.weekday() == SUNDAY


def next_sunday(start: Optional[Union[date, datetime]] = None) -> datetime:
    """
    Midnight of the next Sunday after ``start``.

    A Sunday rolls forward a full week, so saving on a Sunday schedules the
    following Sunday.
    """
    if start is None:
        start = datetime.now()
    days_until = 7 if is_sunday(start) else SUNDAY - start.weekday()
    target = start + timedelta(days=days_until)
    return datetime(target.year, target.month, target.day)


def format_date_range(start: date, end: date) -> str:
    """Format a range like 'Jan 5 - Mar 2, 2027'."""
    return f"{start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day}, {end.year}"
