"""Tests for ConfigurationManager -- the SQLite override store."""

import sqlite3

import pytest

from answer_standards.overrides.manager import (
    ConfigurationManager,
    OverrideStoreError,
    OverrideValidationError,
)
from answer_standards.overrides.schema import get_connection
from answer_standards.validators import ValidationError


class TestAddOverride:
    """Writes validate synchronously and upsert."""

    def test_add_and_read_back(self, manager):
        record = manager.add_override("q1", "Answer is a poem, keep as-is", user_id="alice")
        assert record.disables_formatting
        stored = manager.get_override_for_question("q1")
        assert stored.justification == "Answer is a poem, keep as-is"
        assert stored.user_id == "alice"
        assert stored.override_pattern is None
        assert stored.timestamp == record.timestamp

    def test_redirect_pattern(self, manager):
        manager.add_override("q1", "Really a process question", override_pattern="process",
                             original_pattern="definition")
        stored = manager.get_override_for_question("q1")
        assert stored.override_pattern == "process"
        assert stored.original_pattern == "definition"
        assert not stored.disables_formatting

    @pytest.mark.parametrize("justification", ["", "   ", None])
    def test_blank_justification_rejected(self, manager, justification):
        with pytest.raises(OverrideValidationError):
            manager.add_override("q1", justification)
        assert not manager.has_override("q1")

    def test_validation_error_is_value_error(self, manager):
        with pytest.raises(ValidationError):
            manager.add_override("", "A reason")
        with pytest.raises(ValueError):
            manager.add_override("", "A reason")

    def test_unknown_pattern_rejected(self, manager):
        with pytest.raises(OverrideValidationError, match="Unknown pattern"):
            manager.add_override("q1", "A good reason here", override_pattern="haiku")

    def test_unknown_pattern_lists_known_ids(self, manager):
        with pytest.raises(OverrideValidationError, match="must be one of: comparison-table"):
            manager.add_override("q1", "A good reason here", override_pattern="haiku")

    @pytest.mark.parametrize("question_id", ["q 1", "../q1", "-q1", "q1;drop"])
    def test_malformed_question_id_rejected(self, manager, question_id):
        with pytest.raises(OverrideValidationError, match="question_id"):
            manager.add_override(question_id, "A good reason here")
        assert manager.get_overrides() == []

    def test_identifier_punctuation_accepted(self, manager):
        manager.add_override("sd-42.v2:draft_1", "A good reason here")
        assert manager.has_override("sd-42.v2:draft_1")

    def test_unknown_pattern_allowed_without_catalog(self, db_path):
        mgr = ConfigurationManager(db_path)
        mgr.add_override("q1", "A good reason here", override_pattern="haiku")
        assert mgr.get_override_for_question("q1").override_pattern == "haiku"

    def test_overlong_justification_rejected(self, manager):
        with pytest.raises(OverrideValidationError):
            manager.add_override("q1", "x" * 2001)

    def test_justification_trimmed(self, manager):
        manager.add_override("q1", "  Keep the original table  ")
        assert manager.get_override_for_question("q1").justification == "Keep the original table"

    def test_last_write_wins(self, manager):
        manager.add_override("q1", "First reason given", override_pattern="list")
        manager.add_override("q1", "Second reason given", override_pattern="process")
        overrides = manager.get_overrides()
        assert len(overrides) == 1
        assert overrides[0].justification == "Second reason given"
        assert overrides[0].override_pattern == "process"


class TestRemoveAndList:
    def test_remove(self, manager):
        manager.add_override("q1", "A reason for this")
        assert manager.remove_override("q1") is True
        assert manager.has_override("q1") is False

    def test_remove_missing(self, manager):
        assert manager.remove_override("nope") is False

    def test_list_oldest_first(self, manager):
        for qid in ("q1", "q2", "q3"):
            manager.add_override(qid, f"Reason for {qid}")
        assert [o.question_id for o in manager.get_overrides()] == ["q1", "q2", "q3"]

    def test_empty_store(self, manager):
        assert manager.get_overrides() == []
        assert manager.get_override_for_question("q1") is None


class TestPersistence:
    def test_survives_new_instance(self, db_path, catalog):
        ConfigurationManager(db_path, catalog=catalog).add_override("q1", "Persisted reason")
        assert ConfigurationManager(db_path, catalog=catalog).has_override("q1")

    def test_visible_across_instances_without_restart(self, db_path):
        reader = ConfigurationManager(db_path)
        writer = ConfigurationManager(db_path)
        writer.add_override("q1", "Added while reader is live")
        assert reader.has_override("q1")
        writer.remove_override("q1")
        assert not reader.has_override("q1")

    def test_schema_rejects_blank_justification(self, manager, db_path):
        conn = get_connection(db_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO format_overrides (question_id, justification, created_at) "
                    "VALUES ('q9', '  ', '2026-01-01T00:00:00')"
                )
        finally:
            conn.close()


class TestStoreFailures:
    """Reads degrade to 'no override'; writes raise."""

    @pytest.fixture
    def broken_path(self, tmp_path):
        path = tmp_path / "broken.db"
        path.write_bytes(b"this is not a sqlite database" * 100)
        return path

    def test_reads_degrade(self, broken_path):
        mgr = ConfigurationManager(broken_path)
        assert mgr.get_overrides() == []
        assert mgr.get_override_for_question("q1") is None
        assert mgr.has_override("q1") is False

    def test_writes_raise(self, broken_path):
        mgr = ConfigurationManager(broken_path)
        with pytest.raises(OverrideStoreError):
            mgr.add_override("q1", "A valid justification")
        with pytest.raises(OverrideStoreError):
            mgr.remove_override("q1")

    def test_strict_reads_raise(self, broken_path):
        with pytest.raises(OverrideStoreError):
            ConfigurationManager(broken_path, strict_reads=True)
