"""
Override store schema -- SQLite table for per-question formatting overrides.

Usage:
    initialize_schema(db_path)  # Creates tables if they don't exist
    get_connection(db_path)     # Returns a connection with WAL mode enabled

question_id is the primary key: one active override per question.
Timestamps are ISO-format TEXT.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data/answer_standards.db")

SCHEMA_SQL = """
-- Format overrides: operator exceptions to automatic detection/formatting
CREATE TABLE IF NOT EXISTS format_overrides (
    question_id TEXT PRIMARY KEY,
    justification TEXT NOT NULL CHECK (length(trim(justification)) > 0),
    override_pattern TEXT,
    original_pattern TEXT,
    user_id TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_overrides_pattern
    ON format_overrides(override_pattern);
CREATE INDEX IF NOT EXISTS idx_overrides_created
    ON format_overrides(created_at);
"""


def get_connection(db_path: Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Get a SQLite connection with WAL mode enabled."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.row_factory = sqlite3.Row
    return conn


def initialize_schema(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Create override tables if they don't exist."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        logger.info(f"[OverrideSchema] Initialized at {db_path}")
    finally:
        conn.close()
