"""Phase state machine for the three-stage program.

The phases form a strict linear sequence. Global progress is the active
phase id (kept on ``AppState.current_phase``) plus each phase's
``is_unlocked`` / ``completed_at`` pair. Advancement is monotonic: nothing
here ever re-locks or un-completes a phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Sequence

from phaseweight.tracking.models import (
    FINAL_PHASE_ID,
    AppState,
    Phase,
    UnknownPhaseError,
)

logger = logging.getLogger(__name__)


@dataclass
class PhaseTransition:
    """Result of checking a weigh-in against the active phase target."""

    phases: list[Phase]
    current_phase: int
    completed_phase_id: Optional[int] = None
    unlocked_phase_id: Optional[int] = None

    @property
    def phase_completed(self) -> bool:
        return self.completed_phase_id is not None

    @property
    def program_completed(self) -> bool:
        return self.completed_phase_id == FINAL_PHASE_ID


def phases_by_id(phases: Sequence[Phase]) -> dict[int, Phase]:
    """Key phases by id."""
    return {phase.id: phase for phase in phases}


def get_phase(phases: Sequence[Phase], phase_id: int) -> Phase:
    """Look up a phase by id, raising UnknownPhaseError if absent."""
    phase = phases_by_id(phases).get(phase_id)
    if phase is None:
        raise UnknownPhaseError(f"No phase with id {phase_id}")
    return phase


def first_incomplete_phase_id(phases: Sequence[Phase]) -> int:
    """Lowest phase id without a completion timestamp (final phase if all are done)."""
    for phase in sorted(phases, key=lambda p: p.id):
        if not phase.is_completed:
            return phase.id
    return FINAL_PHASE_ID


def advance_phases(
    phases: Sequence[Phase],
    current_phase: int,
    weight_kg: float,
    now: Optional[datetime] = None,
) -> PhaseTransition:
    """
    Apply the phase-completion rule for a new weigh-in.

    If ``weight_kg`` is at or below the active phase's target and that phase
    is not already completed, it is stamped complete, the next phase is
    unlocked and ``current_phase`` advances. The final phase has no
    successor: completing it leaves ``current_phase`` at 3 with nothing to
    unlock.

    Args:
        phases: Current phase records
        current_phase: Active phase id
        weight_kg: The new weight
        now: Completion timestamp (default: now)

    Returns:
        PhaseTransition carrying replacement phase records
    """
    if now is None:
        now = datetime.now()

    active = get_phase(phases, current_phase)
    updated = list(phases)

    if active.is_completed or weight_kg > active.target_weight_kg:
        return PhaseTransition(phases=updated, current_phase=current_phase)

    by_id = phases_by_id(phases)
    successor_id = active.id + 1 if active.id < FINAL_PHASE_ID else None

    updated = []
    for phase in phases:
        if phase.id == active.id:
            updated.append(replace(phase, completed_at=now))
        elif phase.id == successor_id:
            updated.append(replace(phase, is_unlocked=True))
        else:
            updated.append(phase)

    if successor_id is not None and successor_id in by_id:
        logger.info("Phase %d completed; phase %d unlocked", active.id, successor_id)
        return PhaseTransition(
            phases=updated,
            current_phase=successor_id,
            completed_phase_id=active.id,
            unlocked_phase_id=successor_id,
        )

    logger.info("Final phase %d completed", active.id)
    return PhaseTransition(
        phases=updated,
        current_phase=active.id,
        completed_phase_id=active.id,
    )


def update_plateau(state: AppState, plateau: bool, now: Optional[datetime] = None) -> AppState:
    """
    Set or clear the plateau flag on the aggregate state.

    The detection timestamp is recorded when the flag flips on, kept while it
    stays on, and cleared when it flips off.
    """
    if now is None:
        now = datetime.now()

    if plateau and not state.plateau_mode:
        logger.info("Plateau detected")
        return replace(state, plateau_mode=True, plateau_detected_at=now)
    if plateau:
        return replace(state, plateau_mode=True)
    if state.plateau_mode:
        logger.info("Plateau cleared")
    return replace(state, plateau_mode=False, plateau_detected_at=None)
