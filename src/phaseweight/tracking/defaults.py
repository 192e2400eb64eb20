"""Default profile, phase plan and app state, plus demo history."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from phaseweight.tracking.engine import complete_onboarding, record_weigh_in
from phaseweight.tracking.models import AppState, Phase, UserProfile, WeighIn
from phaseweight.tracking.projection import next_sunday

DEFAULT_USER_ID = "user-1"

# Eight weeks of demo weigh-ins (kg) with the odd note
SAMPLE_WEIGHTS: list[tuple[float, str]] = [
    (114.0, ""),
    (113.2, ""),
    (112.5, ""),
    (112.1, "Less sleep this week"),
    (111.8, ""),
    (111.1, ""),
    (111.3, "Weekend event"),
    (110.5, ""),
]


def create_default_profile(now: Optional[datetime] = None) -> UserProfile:
    if now is None:
        now = datetime.now()
    return UserProfile(
        id=DEFAULT_USER_ID,
        age=25,
        height_cm=180,
        starting_weight_kg=114,
        starting_body_fat_pct=34,
        goal_body_fat_pct=15,
        lean_mass_kg=75.24,
        created_at=now,
        assumptions_last_updated=now,
    )


def create_default_phases() -> list[Phase]:
    """The fixed three-phase plan: Foundation, Refinement, Precision."""
    return [
        Phase(
            id=1,
            name="Foundation",
            start_bf_pct=34,
            end_bf_pct=25,
            target_weight_kg=100,
            weekly_loss_min_kg=0.5,
            weekly_loss_max_kg=1.0,
            estimated_duration_weeks_min=14,
            estimated_duration_weeks_max=28,
            is_unlocked=True,
        ),
        Phase(
            id=2,
            name="Refinement",
            start_bf_pct=25,
            end_bf_pct=20,
            target_weight_kg=94,
            weekly_loss_min_kg=0.5,
            weekly_loss_max_kg=0.75,
            estimated_duration_weeks_min=10,
            estimated_duration_weeks_max=14,
        ),
        Phase(
            id=3,
            name="Precision",
            start_bf_pct=20,
            end_bf_pct=15,
            target_weight_kg=88,
            weekly_loss_min_kg=0.5,
            weekly_loss_max_kg=1.0,
            estimated_duration_weeks_min=10,
            estimated_duration_weeks_max=16,
        ),
    ]


def create_default_app_state(
    profile: Optional[UserProfile] = None,
    trend_view_weeks: int = 4,
    now: Optional[datetime] = None,
) -> AppState:
    if profile is None:
        profile = create_default_profile(now)
    return AppState(
        current_phase=1,
        current_weight_kg=profile.starting_weight_kg,
        trend_view_weeks=trend_view_weeks,
        next_weigh_in_date=next_sunday(now),
    )


def create_sample_history(
    profile: UserProfile,
    phases: list[Phase],
    state: AppState,
    start: Optional[datetime] = None,
) -> tuple[list[WeighIn], list[Phase], AppState]:
    """
    Replay the demo weights through the engine, one week apart.

    Starts eight weeks before ``start`` (default: now) so the last entry lands
    in the most recent week. Onboarding is marked complete.

    Returns:
        (history, phases, state) after the final sample weigh-in
    """
    if start is None:
        start = datetime.now()
    first_date = start - timedelta(weeks=len(SAMPLE_WEIGHTS))

    history: list[WeighIn] = []
    for week, (weight, notes) in enumerate(SAMPLE_WEIGHTS):
        outcome = record_weigh_in(
            profile,
            phases,
            history,
            state,
            weight,
            when=first_date + timedelta(weeks=week),
            notes=notes,
            entry_id=f"sample-{week + 1}",
        )
        history, phases, state = outcome.history, outcome.phases, outcome.state

    return history, phases, complete_onboarding(state)
