"""Weigh-in reducer: turns a new observation into updated tracker state.

``record_weigh_in`` is the single write path. It takes snapshots of the
profile, phases, history and aggregate state and returns replacements for
all of them plus the events the presentation layer may want to react to.
Nothing is kept between calls; the caller owns persistence.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from phaseweight.tracking.composition import estimate_body_fat_pct, estimate_composition
from phaseweight.tracking.insights import generate_insight
from phaseweight.tracking.models import (
    VALID_TREND_VIEW_WEEKS,
    AppState,
    InvalidSettingError,
    InvalidWeightError,
    OutOfOrderWeighInError,
    Phase,
    UserProfile,
    WeighIn,
    WeighInNotFoundError,
)
from phaseweight.tracking.phases import (
    advance_phases,
    first_incomplete_phase_id,
    get_phase,
    update_plateau,
)
from phaseweight.tracking.projection import next_sunday
from phaseweight.tracking.trend import (
    DEFAULT_PLATEAU_THRESHOLD,
    DEFAULT_ROLLING_WINDOW,
    detect_plateau,
    recompute_rolling_averages,
    trend_slope,
    weekly_delta,
)

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Things that happened while saving a weigh-in."""
    WEIGH_IN_RECORDED = "weigh_in_recorded"
    PHASE_COMPLETED = "phase_completed"
    NEW_LOW = "new_low"
    PLATEAU_DETECTED = "plateau_detected"
    PLATEAU_CLEARED = "plateau_cleared"


@dataclass(frozen=True)
class Event:
    """Signal for the presentation layer (e.g. a celebration on phase completion)."""

    kind: EventKind
    phase_id: Optional[int] = None
    unlocked_phase_id: Optional[int] = None
    weight_kg: Optional[float] = None


@dataclass
class WeighInOutcome:
    """Everything produced by saving one weigh-in."""

    weigh_in: WeighIn
    history: list[WeighIn]
    phases: list[Phase]
    state: AppState
    events: list[Event] = field(default_factory=list)

    def has_event(self, kind: EventKind) -> bool:
        return any(event.kind is kind for event in self.events)


def validate_weight(value: Any) -> float:
    """
    Boundary check for user-entered weights.

    The engine assumes positive finite weights and never validates; callers
    run input through this first.

    Raises:
        InvalidWeightError: If the value is not a positive finite number
    """
    if isinstance(value, bool):
        raise InvalidWeightError(f"Invalid weight: {value!r}", value)
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise InvalidWeightError(f"Weight must be a number, got {value!r}", value)
    if not math.isfinite(weight) or weight <= 0:
        raise InvalidWeightError(f"Weight must be a positive number, got {value!r}", value)
    return weight


def _new_weigh_in_id() -> str:
    return f"weighin-{uuid.uuid4().hex[:12]}"


def _build_entry(
    profile: UserProfile,
    weight_kg: float,
    previous_weight: Optional[float],
    **fields: Any,
) -> dict[str, Any]:
    """Derived per-entry fields shared by new and amended weigh-ins."""
    bf_pct = estimate_body_fat_pct(weight_kg, profile.height_cm, profile.age)
    composition = estimate_composition(weight_kg, bf_pct)
    return dict(
        weight_kg=weight_kg,
        weekly_delta_kg=weekly_delta(weight_kg, previous_weight),
        estimated_bf_pct=bf_pct,
        estimated_fat_mass_kg=composition.fat_mass_kg,
        **fields,
    )


def record_weigh_in(
    profile: UserProfile,
    phases: Sequence[Phase],
    history: Sequence[WeighIn],
    state: AppState,
    weight_kg: float,
    when: Optional[datetime] = None,
    notes: str = "",
    photo_path: Optional[str] = None,
    entry_id: Optional[str] = None,
) -> WeighInOutcome:
    """
    Save a new weigh-in and recompute everything derived from it.

    Steps:
        1. Weekly delta, body-fat estimate and fat mass for the new entry
        2. Append and recompute every entry's rolling average
        3. Insight from the delta and the 4-entry trend of the full history
        4. Phase-completion check against the active phase
        5. Plateau check over the full history (window 3)
        6. Replacement AppState with the next weigh-in scheduled for the
           following Sunday

    Args:
        profile: User profile (height and age feed the composition estimate)
        phases: Current phase records
        history: Existing weigh-ins, oldest first
        state: Current aggregate state
        weight_kg: Validated weight (see validate_weight)
        when: Observation time (default: now)
        notes: Free-text note
        photo_path: Optional reference to a progress photo
        entry_id: Optional explicit id (default: generated)

    Returns:
        WeighInOutcome with the new entry, history, phases, state and events

    Raises:
        OutOfOrderWeighInError: If ``when`` is not on a later day than the
            latest entry in ``history``
    """
    if when is None:
        when = datetime.now()
    if history and when.date() <= history[-1].date.date():
        raise OutOfOrderWeighInError(
            f"Weigh-in date {when:%Y-%m-%d} must be after the latest entry "
            f"({history[-1].date:%Y-%m-%d})"
        )

    active = get_phase(phases, state.current_phase)
    previous_weight = history[-1].weight_kg if history else None

    fields = _build_entry(
        profile,
        weight_kg,
        previous_weight,
        id=entry_id or _new_weigh_in_id(),
        date=when,
        phase_id=active.id,
        four_week_avg_kg=weight_kg,
        created_at=when,
        notes=notes,
        photo_path=photo_path,
    )
    new_history = recompute_rolling_averages(
        [*history, WeighIn(**fields)], DEFAULT_ROLLING_WINDOW
    )

    trend = trend_slope(new_history, DEFAULT_ROLLING_WINDOW)
    insight = generate_insight(fields["weekly_delta_kg"], trend, active, weight_kg)
    new_history[-1] = replace(new_history[-1], insight=insight)
    entry = new_history[-1]

    events = [Event(EventKind.WEIGH_IN_RECORDED, phase_id=active.id, weight_kg=weight_kg)]

    transition = advance_phases(phases, state.current_phase, weight_kg, now=when)
    if transition.phase_completed:
        events.append(
            Event(
                EventKind.PHASE_COMPLETED,
                phase_id=transition.completed_phase_id,
                unlocked_phase_id=transition.unlocked_phase_id,
                weight_kg=weight_kg,
            )
        )

    if weight_kg < state.current_weight_kg:
        events.append(Event(EventKind.NEW_LOW, phase_id=active.id, weight_kg=weight_kg))

    plateau = detect_plateau(new_history, DEFAULT_PLATEAU_THRESHOLD)
    if plateau and not state.plateau_mode:
        events.append(Event(EventKind.PLATEAU_DETECTED, phase_id=active.id))
    elif state.plateau_mode and not plateau:
        events.append(Event(EventKind.PLATEAU_CLEARED, phase_id=active.id))

    new_state = update_plateau(state, plateau, now=when)
    new_state = replace(
        new_state,
        current_phase=transition.current_phase,
        current_weight_kg=weight_kg,
        last_weigh_in_date=when,
        next_weigh_in_date=next_sunday(when),
    )

    logger.debug(
        "Recorded %.1f kg (delta %+.2f, phase %d, plateau=%s)",
        weight_kg,
        entry.weekly_delta_kg,
        active.id,
        plateau,
    )

    return WeighInOutcome(
        weigh_in=entry,
        history=new_history,
        phases=transition.phases,
        state=new_state,
        events=events,
    )


def amend_weigh_in(
    profile: UserProfile,
    phases: Sequence[Phase],
    history: Sequence[WeighIn],
    entry_id: str,
    weight_kg: float,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[WeighIn]:
    """
    Replace one weigh-in's weight and recompute what depends on it.

    The amended entry keeps its id, date and phase but is flagged as edited.
    Its delta, composition and insight are recomputed, as are the delta and
    insight of the entry after it; rolling averages are refreshed for the
    whole history.
    Phase completion is not revisited (advancement is one-directional).

    Raises:
        WeighInNotFoundError: If no entry has ``entry_id``
    """
    if now is None:
        now = datetime.now()

    index = next((i for i, w in enumerate(history) if w.id == entry_id), None)
    if index is None:
        raise WeighInNotFoundError(f"No weigh-in with id {entry_id}")

    updated = list(history)
    original = updated[index]
    previous_weight = updated[index - 1].weight_kg if index > 0 else None

    fields = _build_entry(
        profile,
        weight_kg,
        previous_weight,
        notes=original.notes if notes is None else notes,
        is_edited=True,
        edited_at=now,
    )
    updated[index] = replace(original, **fields)

    updated = recompute_rolling_averages(updated, DEFAULT_ROLLING_WINDOW)

    phase = get_phase(phases, original.phase_id)
    trend = trend_slope(updated[: index + 1], DEFAULT_ROLLING_WINDOW)
    amended = updated[index]
    updated[index] = replace(
        amended,
        insight=generate_insight(amended.weekly_delta_kg, trend, phase, weight_kg),
    )

    if index + 1 < len(updated):
        following = updated[index + 1]
        delta = weekly_delta(following.weight_kg, weight_kg)
        following_trend = trend_slope(updated[: index + 2], DEFAULT_ROLLING_WINDOW)
        updated[index + 1] = replace(
            following,
            weekly_delta_kg=delta,
            insight=generate_insight(
                delta,
                following_trend,
                get_phase(phases, following.phase_id),
                following.weight_kg,
            ),
        )

    logger.debug("Amended %s to %.1f kg", entry_id, weight_kg)
    return updated


def derive_app_state(
    profile: UserProfile,
    phases: Sequence[Phase],
    history: Sequence[WeighIn],
    trend_view_weeks: int = 4,
    has_completed_onboarding: bool = True,
    photo_reminders_enabled: bool = True,
    now: Optional[datetime] = None,
) -> AppState:
    """
    Rebuild the aggregate state wholesale from its sources.

    The plateau timestamp cannot be recovered exactly, so the date of the
    latest weigh-in stands in for it.
    """
    if now is None:
        now = datetime.now()

    last = history[-1] if history else None
    plateau = detect_plateau(history, DEFAULT_PLATEAU_THRESHOLD)

    return AppState(
        current_phase=first_incomplete_phase_id(phases),
        current_weight_kg=last.weight_kg if last else profile.starting_weight_kg,
        plateau_mode=plateau,
        plateau_detected_at=last.date if plateau and last else None,
        trend_view_weeks=trend_view_weeks,
        last_weigh_in_date=last.date if last else None,
        next_weigh_in_date=next_sunday(last.date if last else now),
        photo_reminders_enabled=photo_reminders_enabled,
        has_completed_onboarding=has_completed_onboarding,
    )


def update_profile_assumptions(
    profile: UserProfile, now: Optional[datetime] = None, **changes: Any
) -> UserProfile:
    """Apply a settings edit to the profile and stamp ``assumptions_last_updated``."""
    if now is None:
        now = datetime.now()
    protected = {"id", "created_at", "assumptions_last_updated"}
    unknown = set(changes) - (set(profile.__dataclass_fields__) - protected)
    if unknown:
        raise InvalidSettingError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    return replace(profile, assumptions_last_updated=now, **changes)


def complete_onboarding(state: AppState) -> AppState:
    return replace(state, has_completed_onboarding=True)


def set_trend_view(state: AppState, weeks: int) -> AppState:
    """Select the dashboard trend window (4, 6, 8 or 12 weeks)."""
    if weeks not in VALID_TREND_VIEW_WEEKS:
        raise InvalidSettingError(
            f"trend view must be one of {VALID_TREND_VIEW_WEEKS}, got {weeks}"
        )
    return replace(state, trend_view_weeks=weeks)
