"""SQLite persistence for tracker aggregates."""

from phaseweight.db.connection import DatabaseConnection, get_db, set_db
from phaseweight.db.store import TrackerSnapshot, TrackerStore

__all__ = ["DatabaseConnection", "TrackerSnapshot", "TrackerStore", "get_db", "set_db"]
