"""Pytest fixtures for phaseweight tests."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from phaseweight.config import settings as settings_module
from phaseweight.config.settings import Settings
from phaseweight.db.connection import DatabaseConnection, set_db
from phaseweight.db.store import TrackerStore
from phaseweight.tracking.defaults import (
    create_default_app_state,
    create_default_phases,
    create_default_profile,
)
from phaseweight.tracking.models import WeighIn

# A Sunday morning
SUNDAY = datetime(2026, 10, 18, 9, 0)


@pytest.fixture
def now() -> datetime:
    return SUNDAY


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def store(temp_db):
    return TrackerStore(temp_db)


@pytest.fixture
def profile(now):
    return create_default_profile(now)


@pytest.fixture
def phases():
    return create_default_phases()


@pytest.fixture
def state(profile, now):
    return create_default_app_state(profile, now=now)


@pytest.fixture
def make_history():
    """Factory for weekly WeighIn records with placeholder derived fields."""

    def _make(weights: list[float], phase_id: int = 1) -> list[WeighIn]:
        start = datetime(2026, 8, 2, 9, 0)
        return [
            WeighIn(
                id=f"w{i}",
                date=start + timedelta(weeks=i),
                weight_kg=weight,
                phase_id=phase_id,
                weekly_delta_kg=0.0,
                four_week_avg_kg=0.0,
                estimated_bf_pct=0.0,
                estimated_fat_mass_kg=0.0,
                created_at=start + timedelta(weeks=i),
            )
            for i, weight in enumerate(weights)
        ]

    return _make


@pytest.fixture
def cli_env(temp_db):
    """Point the CLI at a temporary database with default settings."""
    settings = Settings()
    settings.storage.path = temp_db.db_path
    settings_module._settings = settings
    set_db(temp_db)

    yield temp_db

    set_db(None)
    settings_module._settings = None
