"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- One JSON document per aggregate: profile, phases, weigh_ins, app_state
CREATE TABLE IF NOT EXISTS aggregates (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
