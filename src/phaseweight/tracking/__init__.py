"""Weigh-in analytics and phase tracking.

This module turns a chronological series of weekly weigh-ins into derived
metrics and advances the user through a fixed three-phase program.

Key components:
- Composition estimate (BMI-based body fat, fat/lean split)
- Trend engine (rolling averages, weekly slope, plateau detection)
- Projection of weeks and dates to the phase target
- Phase state machine (completion, unlocking, plateau flag)
- Insight classification for weekly commentary
"""

from __future__ import annotations

from phaseweight.tracking.engine import (
    Event,
    EventKind,
    WeighInOutcome,
    amend_weigh_in,
    derive_app_state,
    record_weigh_in,
    validate_weight,
)
from phaseweight.tracking.models import (
    AppState,
    Phase,
    PhaseWeightError,
    UserProfile,
    WeighIn,
)

__all__ = [
    "AppState",
    "Event",
    "EventKind",
    "Phase",
    "PhaseWeightError",
    "UserProfile",
    "WeighIn",
    "WeighInOutcome",
    "amend_weigh_in",
    "derive_app_state",
    "record_weigh_in",
    "validate_weight",
]
