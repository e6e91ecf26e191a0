"""
ConfigurationManager -- durable per-question overrides of automatic formatting.

An operator records an override when detection picks the wrong pattern
(redirect to another pattern) or when a question must not be touched at
all (override_pattern=None). Every override carries a justification.

Lifecycle: add (upsert, last write wins) -> read by pipeline/batch -> remove

Failure policy:
  - Writes (add_override, remove_override) raise OverrideStoreError.
  - Reads log and degrade to "no override", unless strict_reads=True.

Usage:
    mgr = ConfigurationManager(Path("data/answer_standards.db"))
    mgr.add_override("q-42", "Answer is a poem, keep as-is")
    if mgr.has_override("q-42"):
        ...
    mgr.remove_override("q-42")
"""

import logging
import sqlite3
from pathlib import Path

from ..patterns.catalog import PatternCatalog
from ..validators import (
    ValidationError,
    validate_identifier,
    validate_in_choices,
    validate_length,
    validate_not_empty,
)
from .models import OverrideRecord
from .schema import DEFAULT_DB_PATH, get_connection, initialize_schema

logger = logging.getLogger(__name__)

MAX_JUSTIFICATION_LENGTH = 2000
STORE_ERRORS = (sqlite3.Error, OSError)


class OverrideValidationError(ValidationError):
    """Raised synchronously when an override is rejected (empty justification, unknown pattern)."""

    pass


class OverrideStoreError(RuntimeError):
    """Raised when the override store cannot be read or written."""

    pass


class ConfigurationManager:
    """SQLite-backed override store. One connection per operation."""

    def __init__(
        self,
        db_path: Path = DEFAULT_DB_PATH,
        catalog: PatternCatalog | None = None,
        strict_reads: bool = False,
    ):
        self._db_path = Path(db_path)
        self._catalog = catalog
        self._strict_reads = strict_reads
        try:
            initialize_schema(self._db_path)
        except STORE_ERRORS as e:
            logger.error(f"[Overrides] Could not initialize store at {self._db_path}: {e}")
            if strict_reads:
                raise OverrideStoreError(f"Override store unavailable: {e}") from e

    @property
    def db_path(self) -> Path:
        return self._db_path

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_override(
        self,
        question_id: str,
        justification: str,
        override_pattern: str | None = None,
        user_id: str | None = None,
        original_pattern: str | None = None,
    ) -> OverrideRecord:
        """Create or replace the override for a question."""
        record = OverrideRecord(
            question_id=self._check_question_id(question_id),
            justification=self._check(justification, "justification"),
            override_pattern=override_pattern or None,
            original_pattern=original_pattern or None,
            user_id=user_id or None,
        )
        try:
            validate_length(record.justification, "justification", max_length=MAX_JUSTIFICATION_LENGTH)
        except ValidationError as e:
            raise OverrideValidationError(str(e)) from e
        if self._catalog is not None and record.override_pattern is not None:
            try:
                validate_in_choices(record.override_pattern, self._catalog.ids, "override_pattern")
            except ValidationError as e:
                raise OverrideValidationError(f"Unknown pattern: {record.override_pattern} ({e})") from e

        try:
            conn = get_connection(self._db_path)
            try:
                conn.execute(
                    """INSERT INTO format_overrides
                       (question_id, justification, override_pattern, original_pattern,
                        user_id, created_at)
                       VALUES (?, ?, ?, ?, ?, ?)
                       ON CONFLICT(question_id) DO UPDATE SET
                           justification = excluded.justification,
                           override_pattern = excluded.override_pattern,
                           original_pattern = excluded.original_pattern,
                           user_id = excluded.user_id,
                           created_at = excluded.created_at""",
                    (
                        record.question_id,
                        record.justification,
                        record.override_pattern,
                        record.original_pattern,
                        record.user_id,
                        record.timestamp,
                    ),
                )
                conn.commit()
            finally:
                conn.close()
        except STORE_ERRORS as e:
            logger.error(f"[Overrides] Failed to save override for {record.question_id}: {e}")
            raise OverrideStoreError(f"Could not save override for {record.question_id}: {e}") from e

        logger.info(
            f"[Overrides] Saved override for {record.question_id} "
            f"-> {record.override_pattern or 'no formatting'}"
        )
        return record

    def remove_override(self, question_id: str) -> bool:
        """Delete a question's override. Returns False when there was none."""
        try:
            conn = get_connection(self._db_path)
            try:
                cursor = conn.execute(
                    "DELETE FROM format_overrides WHERE question_id = ?", (question_id,)
                )
                conn.commit()
                removed = cursor.rowcount > 0
            finally:
                conn.close()
        except STORE_ERRORS as e:
            logger.error(f"[Overrides] Failed to remove override for {question_id}: {e}")
            raise OverrideStoreError(f"Could not remove override for {question_id}: {e}") from e

        if removed:
            logger.info(f"[Overrides] Removed override for {question_id}")
        return removed

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_overrides(self) -> list[OverrideRecord]:
        """All overrides, oldest first."""
        try:
            conn = get_connection(self._db_path)
            try:
                rows = conn.execute(
                    "SELECT * FROM format_overrides ORDER BY created_at, question_id"
                ).fetchall()
            finally:
                conn.close()
        except STORE_ERRORS as e:
            self._read_failed("list overrides", e)
            return []
        return [OverrideRecord.from_row(r) for r in rows]

    def get_override_for_question(self, question_id: str) -> OverrideRecord | None:
        try:
            conn = get_connection(self._db_path)
            try:
                row = conn.execute(
                    "SELECT * FROM format_overrides WHERE question_id = ?", (question_id,)
                ).fetchone()
            finally:
                conn.close()
        except STORE_ERRORS as e:
            self._read_failed(f"read override for {question_id}", e)
            return None
        return OverrideRecord.from_row(row) if row else None

    def has_override(self, question_id: str) -> bool:
        return self.get_override_for_question(question_id) is not None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check(value: str | None, field_name: str) -> str:
        try:
            return validate_not_empty(value, field_name)
        except ValidationError as e:
            raise OverrideValidationError(str(e)) from e

    @classmethod
    def _check_question_id(cls, question_id: str | None) -> str:
        value = cls._check(question_id, "question_id")
        try:
            return validate_identifier(value, "question_id")
        except ValidationError as e:
            raise OverrideValidationError(str(e)) from e

    def _read_failed(self, action: str, error: Exception) -> None:
        if self._strict_reads:
            raise OverrideStoreError(f"Could not {action}: {error}") from error
        logger.warning(f"[Overrides] Could not {action}, treating as no override: {error}")
