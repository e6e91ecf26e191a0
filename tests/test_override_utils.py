"""Tests for override helpers -- advisory validation, stats, reports, cleanup."""

import json
from datetime import datetime, timedelta

from answer_standards.overrides import utils
from answer_standards.overrides.models import OverrideRecord

NOW = datetime(2026, 10, 18, 12, 0, 0)


def record(days_old, **kwargs):
    timestamp = (NOW - timedelta(days=days_old)).isoformat()
    return OverrideRecord(question_id=kwargs.pop("question_id", "q1"),
                          justification=kwargs.pop("justification", "Some reason"),
                          timestamp=timestamp, **kwargs)


class TestValidateOverride:
    def test_valid(self, manager):
        check = utils.validate_override(manager, "q1", "The answer is a deliberate poem and must stay as-is")
        assert check.is_valid
        assert check.errors == []

    def test_short_justification(self, manager):
        check = utils.validate_override(manager, "q1", "too short")
        assert not check.is_valid
        assert "at least 10 characters" in check.errors[0]

    def test_brief_justification_warns(self, manager):
        check = utils.validate_override(manager, "q1", "Keep as poem")
        assert check.is_valid
        assert "Consider providing a more detailed justification" in check.warnings

    def test_vague_terms_warn(self, manager):
        check = utils.validate_override(manager, "q1", "Formatting is wrong here")
        assert any("specific details" in w for w in check.warnings)

    def test_existing_override_reported(self, manager):
        manager.add_override("q1", "Existing override reason")
        check = utils.validate_override(manager, "q1", "Another long enough reason")
        assert "Override already exists for this question" in check.errors

    def test_missing_question_id(self, manager):
        check = utils.validate_override(manager, "  ", "A long enough reason")
        assert "Question ID is required" in check.errors


class TestJustificationQuality:
    def test_good(self):
        score, feedback = utils.validate_justification_quality(
            "The answer is a limerick used in onboarding material. Restructuring it would lose the rhyme."
        )
        assert score == 100
        assert feedback == ["Good justification quality."]

    def test_short_vague_single_sentence(self):
        score, feedback = utils.validate_justification_quality("It is wrong")
        assert score == 40
        assert len(feedback) == 3


class TestStats:
    def test_empty(self, manager):
        stats = utils.get_override_stats(manager)
        assert stats.total_overrides == 0
        assert stats.overrides_by_pattern == {}

    def test_counts(self, manager):
        manager.add_override("q1", "Poem answer stays", user_id="alice")
        manager.add_override("q2", "Really a process question", override_pattern="process", user_id="alice")
        manager.add_override("q3", "Really a process answer", override_pattern="process")
        stats = utils.get_override_stats(manager, total_questions=30)
        assert stats.total_overrides == 3
        assert stats.overrides_by_pattern == {"no-pattern": 1, "process": 2}
        assert stats.overrides_by_user == {"alice": 2, "unknown": 1}
        assert stats.override_rate == 10.0
        assert "really" in stats.most_common_reasons


class TestEffectivePattern:
    def test_no_override_uses_detected(self, manager):
        assert utils.get_effective_pattern(manager, "q1", "definition") == "definition"
        assert not utils.should_bypass_formatting(manager, "q1")

    def test_redirect(self, manager):
        manager.add_override("q1", "Really a list question", override_pattern="list")
        assert utils.get_effective_pattern(manager, "q1", "definition") == "list"

    def test_disable(self, manager):
        manager.add_override("q1", "Leave this one alone")
        assert utils.get_effective_pattern(manager, "q1", "definition") is None
        assert utils.should_bypass_formatting(manager, "q1")


class TestReport:
    def test_missing(self, manager):
        assert utils.generate_override_report(manager, "q1") is None

    def test_contents(self, manager):
        manager.add_override("q1", "Leave this one alone", user_id="bob", original_pattern="list")
        report = utils.generate_override_report(manager, "q1")
        assert report.startswith("Override Report for Question: q1")
        assert "User: bob" in report
        assert "Original Pattern: list" in report
        assert "Override Pattern: None (formatting disabled)" in report


class TestAge:
    def test_age_rounds_up(self):
        assert utils.get_override_age(record(0), now=NOW) == 0
        assert utils.get_override_age(record(1.5), now=NOW) == 2
        assert utils.get_override_age(record(10), now=NOW) == 10

    def test_recent(self):
        assert utils.is_recent_override(record(5), now=NOW)
        assert not utils.is_recent_override(record(45), now=NOW)
        assert utils.is_recent_override(record(45), days=60, now=NOW)

    def test_cleanup(self, manager):
        manager.add_override("fresh", "Recently added reason")
        stale = utils.suggest_override_cleanup(manager, max_age_days=90, now=datetime.now() + timedelta(days=100))
        assert [o.question_id for o in stale] == ["fresh"]
        assert utils.suggest_override_cleanup(manager) == []


class TestExport:
    def test_export_json(self, manager):
        manager.add_override("q1", "Leave this one alone", override_pattern="list")
        data = json.loads(utils.export_override_data(manager))
        assert data["total_overrides"] == 1
        assert data["overrides"][0]["question_id"] == "q1"
        assert data["overrides"][0]["is_recent"] is True
        assert data["statistics"]["overrides_by_pattern"] == {"list": 1}
