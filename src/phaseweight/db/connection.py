"""SQLite connection handling for the tracker store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from phaseweight.db.schema import get_schema_sql
from phaseweight.tracking.models import StorageError

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Opens short-lived connections to one SQLite file.

    Every ``get_connection`` block is its own transaction: committed on a
    clean exit, rolled back otherwise. SQLite failures surface as
    ``StorageError`` so callers only deal with the package's own exceptions.
    """

    def __init__(self, db_path: Path, timeout: float = 5.0):
        """
        Args:
            db_path: Location of the SQLite file (parent dirs are created)
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield a connection with ``sqlite3.Row`` rows inside one transaction.

        Example:
            with db.get_connection() as conn:
                row = conn.execute(
                    "SELECT payload FROM aggregates WHERE key = ?", ("phases",)
                ).fetchone()

        Raises:
            StorageError: If the file can't be opened or a statement fails
        """
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("SQLite error on %s: %s", self.db_path, e)
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())

    def table_exists(self, table_name: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table_name,),
            ).fetchone()
        return row is not None


# Global database instance (lazy loaded)
_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Return the shared connection manager, creating it from settings on first use."""
    global _db
    if _db is None:
        from phaseweight.config import get_settings

        _db = DatabaseConnection(get_settings().storage.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Replace the shared connection manager (None resets to settings on next use)."""
    global _db
    _db = db
