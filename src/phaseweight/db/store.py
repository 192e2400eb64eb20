"""Load and save the four tracker aggregates.

Each aggregate (profile, phases, weigh-ins, app state) is stored as one
JSON document under its own key. A missing or unreadable document is
replaced by fresh defaults instead of failing, so a damaged store degrades
to a clean start rather than a crash.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from phaseweight.db.connection import DatabaseConnection
from phaseweight.tracking.defaults import (
    create_default_app_state,
    create_default_phases,
    create_default_profile,
)
from phaseweight.tracking.models import (
    PHASE_IDS,
    AppState,
    Phase,
    StorageError,
    UserProfile,
    WeighIn,
)
from phaseweight.tracking.serialization import (
    app_state_from_dict,
    app_state_to_dict,
    dumps,
    loads,
    phase_from_dict,
    phase_to_dict,
    profile_from_dict,
    profile_to_dict,
    weigh_in_from_dict,
    weigh_in_to_dict,
)

logger = logging.getLogger(__name__)

PROFILE_KEY = "profile"
PHASES_KEY = "phases"
WEIGH_INS_KEY = "weigh_ins"
APP_STATE_KEY = "app_state"

ALL_KEYS = (PROFILE_KEY, PHASES_KEY, WEIGH_INS_KEY, APP_STATE_KEY)

T = TypeVar("T")


@dataclass
class TrackerSnapshot:
    """Profile, phases, history and state loaded together."""

    profile: UserProfile
    phases: list[Phase]
    history: list[WeighIn]
    state: AppState
    initialized: bool = True  # False when any aggregate fell back to defaults


class TrackerStore:
    """Aggregate persistence on top of a DatabaseConnection."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.db.initialize_schema()

    # ------------------------------------------------------------------
    # Raw documents
    # ------------------------------------------------------------------

    def _write(self, key: str, value: Any) -> None:
        try:
            payload = dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Could not serialize {key}: {e}") from e

        with self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO aggregates (key, payload, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (key, payload),
            )

    def _read(self, key: str) -> Optional[str]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT payload FROM aggregates WHERE key = ?", (key,)
            ).fetchone()
        return row["payload"] if row else None

    def _load(self, key: str, parse: Callable[[Any], T]) -> Optional[T]:
        """Parse a stored document, returning None if missing or corrupt."""
        payload = self._read(key)
        if payload is None:
            return None
        try:
            return parse(loads(payload))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable %s aggregate: %s", key, e)
            return None

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def save_profile(self, profile: UserProfile) -> None:
        self._write(PROFILE_KEY, profile_to_dict(profile))

    def load_profile(self) -> Optional[UserProfile]:
        return self._load(PROFILE_KEY, profile_from_dict)

    def save_phases(self, phases: list[Phase]) -> None:
        self._write(PHASES_KEY, [phase_to_dict(p) for p in phases])

    def load_phases(self) -> Optional[list[Phase]]:
        phases = self._load(PHASES_KEY, lambda data: [phase_from_dict(p) for p in data])
        if phases is not None and sorted(p.id for p in phases) != list(PHASE_IDS):
            logger.warning("Discarding phases aggregate without exactly phases %s", PHASE_IDS)
            return None
        return phases

    def save_weigh_ins(self, history: list[WeighIn]) -> None:
        self._write(WEIGH_INS_KEY, [weigh_in_to_dict(w) for w in history])

    def load_weigh_ins(self) -> Optional[list[WeighIn]]:
        return self._load(WEIGH_INS_KEY, lambda data: [weigh_in_from_dict(w) for w in data])

    def save_app_state(self, state: AppState) -> None:
        self._write(APP_STATE_KEY, app_state_to_dict(state))

    def load_app_state(self) -> Optional[AppState]:
        return self._load(APP_STATE_KEY, app_state_from_dict)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def has_data(self) -> bool:
        return self._read(PROFILE_KEY) is not None

    def load_snapshot(
        self, trend_view_weeks: int = 4, now: Optional[datetime] = None
    ) -> TrackerSnapshot:
        """
        Load all four aggregates.

        Profile, phases and state are required together; if any of them is
        missing or unreadable, all three are reset to defaults. A missing or
        unreadable history becomes an empty list.
        """
        profile = self.load_profile()
        phases = self.load_phases()
        state = self.load_app_state()
        history = self.load_weigh_ins()

        initialized = True
        if profile is None or phases is None or state is None:
            if self.has_data():
                logger.warning("Stored tracker data incomplete; starting from defaults")
            profile = create_default_profile(now)
            phases = create_default_phases()
            state = create_default_app_state(profile, trend_view_weeks, now)
            history = []
            initialized = False

        return TrackerSnapshot(
            profile=profile,
            phases=phases,
            history=history or [],
            state=state,
            initialized=initialized,
        )

    def save_snapshot(self, snapshot: TrackerSnapshot) -> None:
        self.save_profile(snapshot.profile)
        self.save_phases(snapshot.phases)
        self.save_weigh_ins(snapshot.history)
        self.save_app_state(snapshot.state)

    def clear_all(self) -> None:
        """Delete every stored aggregate."""
        with self.db.get_connection() as conn:
            conn.executemany(
                "DELETE FROM aggregates WHERE key = ?", [(key,) for key in ALL_KEYS]
            )
