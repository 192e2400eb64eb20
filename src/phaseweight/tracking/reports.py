"""Dashboard summary and history export."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

import pandas as pd

from phaseweight.tracking.composition import (
    APPROXIMATION_NOTE,
    Composition,
    estimate_body_fat_pct,
    estimate_composition,
)
from phaseweight.tracking.models import AppState, Phase, UserProfile, WeighIn
from phaseweight.tracking.phases import get_phase
from phaseweight.tracking.projection import (
    Projection,
    format_date_range,
    phase_progress,
    phase_start_weight,
    project_phase,
)
from phaseweight.tracking.trend import trend_slope

HISTORY_COLUMNS = [
    "id",
    "date",
    "weight_kg",
    "phase_id",
    "weekly_delta_kg",
    "four_week_avg_kg",
    "estimated_bf_pct",
    "estimated_fat_mass_kg",
    "notes",
    "insight",
    "is_edited",
]


@dataclass
class DashboardSummary:
    """Everything the dashboard view shows for the active phase."""

    phase: Phase
    week_number: int  # next weigh-in's week within the phase
    current_weight: float
    remaining_kg: float
    progress_pct: float
    projection: Projection
    weekly_change: float
    trend_per_week: float  # over trend_view_weeks, positive = losing
    trend_view_weeks: int
    plateau_mode: bool
    body_fat_pct: float
    composition: Composition
    next_weigh_in: datetime
    total_lost_kg: float


def build_dashboard(
    profile: UserProfile,
    phases: Sequence[Phase],
    history: Sequence[WeighIn],
    state: AppState,
    today: Optional[date] = None,
) -> DashboardSummary:
    """Summarize progress in the active phase."""
    phase = get_phase(phases, state.current_phase)
    last = history[-1] if history else None
    current_weight = last.weight_kg if last else profile.starting_weight_kg

    start_weight = phase_start_weight(profile, phases, phase.id)
    bf_pct = estimate_body_fat_pct(current_weight, profile.height_cm, profile.age)

    return DashboardSummary(
        phase=phase,
        week_number=sum(1 for w in history if w.phase_id == phase.id) + 1,
        current_weight=current_weight,
        remaining_kg=max(0.0, current_weight - phase.target_weight_kg),
        progress_pct=phase_progress(current_weight, start_weight, phase.target_weight_kg),
        projection=project_phase(phase, current_weight, history, today),
        weekly_change=last.weekly_delta_kg if last else 0.0,
        trend_per_week=trend_slope(history, state.trend_view_weeks),
        trend_view_weeks=state.trend_view_weeks,
        plateau_mode=state.plateau_mode,
        body_fat_pct=bf_pct,
        composition=estimate_composition(current_weight, bf_pct),
        next_weigh_in=state.next_weigh_in_date,
        total_lost_kg=profile.starting_weight_kg - current_weight,
    )


def format_dashboard(summary: DashboardSummary) -> str:
    """Format dashboard summary as text."""
    projection = summary.projection
    if projection.weeks_max == 0:
        eta = "target reached"
    else:
        eta = (
            f"{projection.weeks_min}-{projection.weeks_max} weeks "
            f"({format_date_range(projection.date_min, projection.date_max)})"
        )

    lines = [
        f"Phase {summary.phase.id}: {summary.phase.name} (week {summary.week_number})",
        "=" * 45,
        f"Current weight:  {summary.current_weight:.1f} kg",
        f"Phase target:    {summary.phase.target_weight_kg:.1f} kg "
        f"({summary.remaining_kg:.1f} kg to go)",
        f"Phase progress:  {summary.progress_pct:.0f}%",
        f"Projected:       {eta}",
        f"Last change:     {summary.weekly_change:+.1f} kg",
        f"{summary.trend_view_weeks}-week trend:   "
        f"{summary.trend_per_week:.2f} kg/week lost",
        f"Total lost:      {summary.total_lost_kg:.1f} kg",
        "",
        f"Est. body fat:   {summary.body_fat_pct:.1f}% "
        f"(fat {summary.composition.fat_mass_kg:.1f} kg, "
        f"lean {summary.composition.lean_mass_kg:.1f} kg)",
        f"  {APPROXIMATION_NOTE}",
        "",
        f"Next weigh-in:   {summary.next_weigh_in:%A %b %d}",
    ]

    if summary.plateau_mode:
        lines.append("")
        lines.append(
            "Plateau: progress has stalled over the last 3 weigh-ins. "
            "Trends matter more than single weeks."
        )

    return "\n".join(lines)


def history_frame(history: Sequence[WeighIn]) -> pd.DataFrame:
    """Weigh-in history as a DataFrame, one row per entry."""
    rows = [{column: getattr(w, column) for column in HISTORY_COLUMNS} for w in history]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)
