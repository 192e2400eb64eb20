"""Data models for weigh-ins, phases and derived tracker state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# Selectable trend windows for dashboard views (weeks)
VALID_TREND_VIEW_WEEKS = (4, 6, 8, 12)

# Phase ids are fixed; the program always has exactly three stages
PHASE_IDS = (1, 2, 3)
FINAL_PHASE_ID = 3


@dataclass
class UserProfile:
    """Identity and biometric assumptions for the tracked user."""

    id: str
    age: int
    height_cm: float
    starting_weight_kg: float
    starting_body_fat_pct: float
    goal_body_fat_pct: float
    lean_mass_kg: float  # user-supplied override, never recomputed
    created_at: datetime
    assumptions_last_updated: datetime


@dataclass
class Phase:
    """One of the three ordered stages of the program."""

    id: int
    name: str
    start_bf_pct: float
    end_bf_pct: float
    target_weight_kg: float
    weekly_loss_min_kg: float
    weekly_loss_max_kg: float
    estimated_duration_weeks_min: int
    estimated_duration_weeks_max: int
    is_unlocked: bool = False
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.id not in PHASE_IDS:
            raise ValueError(f"phase id must be one of {PHASE_IDS}, got {self.id}")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class WeighIn:
    """A single weekly observation with its derived fields.

    Records are immutable once created. Amendments produce a replacement
    record with ``is_edited`` set rather than mutating in place.
    """

    id: str
    date: datetime
    weight_kg: float
    phase_id: int
    weekly_delta_kg: float
    four_week_avg_kg: float
    estimated_bf_pct: float
    estimated_fat_mass_kg: float
    created_at: datetime
    notes: str = ""
    insight: str = ""
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    photo_path: Optional[str] = None


@dataclass
class AppState:
    """Aggregate state projected from profile, phases and history."""

    current_phase: int
    current_weight_kg: float
    next_weigh_in_date: datetime
    plateau_mode: bool = False
    plateau_detected_at: Optional[datetime] = None
    trend_view_weeks: int = 4  # 4, 6, 8 or 12
    last_weigh_in_date: Optional[datetime] = None
    photo_reminders_enabled: bool = True
    has_completed_onboarding: bool = False

    def __post_init__(self) -> None:
        if self.current_phase not in PHASE_IDS:
            raise ValueError(
                f"current_phase must be one of {PHASE_IDS}, got {self.current_phase}"
            )


# Custom exceptions


class PhaseWeightError(Exception):
    """Base exception for phaseweight errors."""

    pass


class InvalidWeightError(PhaseWeightError):
    """Raised when a weight entered at the boundary is not a positive number."""

    def __init__(self, message: str, value: object = None):
        super().__init__(message)
        self.value = value


class InvalidSettingError(PhaseWeightError):
    """Raised when a user-editable setting is out of range."""

    pass


class WeighInNotFoundError(PhaseWeightError):
    """Raised when an amendment targets an unknown weigh-in id."""

    pass


class UnknownPhaseError(PhaseWeightError):
    """Raised when a phase id has no matching phase record."""

    pass


class StorageError(PhaseWeightError):
    """Raised when persisted data cannot be written."""

    pass


class OutOfOrderWeighInError(PhaseWeightError):
    """Raised when a new weigh-in is not later than the latest recorded one."""

    pass
