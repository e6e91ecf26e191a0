"""Tests for BatchValidator and corpus loading."""

import json

import pytest

from answer_standards.batch import BatchValidator, load_questions
from answer_standards.models import QuestionRecord
from answer_standards.validators import ValidationError

CORPUS = [
    {
        "id": "q1",
        "question": "What are the differences between REST and GraphQL?",
        "answer": "REST uses multiple endpoints while GraphQL uses a single endpoint.",
        "channel": "api",
    },
    {
        "id": "q2",
        "question": "List the types of joins",
        "answer": "- Inner join\n- Left join",
        "channel": "database",
    },
    {
        "id": "q3",
        "question": "Tell me a story",
        "answer": "Once upon a time.",
        "channel": "misc",
    },
    {
        "id": 4,
        "question": "What is a closure?",
        "answer": None,
        "channel": "javascript",
    },
]


@pytest.fixture
def questions():
    return [QuestionRecord.model_validate(item) for item in CORPUS]


@pytest.fixture
def batch(detector, validator, manager):
    return BatchValidator(detector, validator, overrides=manager)


class TestValidateQuestion:
    def test_needs_formatting(self, batch, questions):
        result = batch.validate_question(questions[0])
        assert result.pattern_id == "comparison-table"
        assert result.score == 75
        assert result.needs_formatting
        assert result.confidence == 12

    def test_no_content(self, batch, questions):
        result = batch.validate_question(questions[3])
        assert not result.has_content
        assert result.question_id == "4"

    def test_override_redirects(self, batch, manager, questions):
        manager.add_override("q1", "Treat this one as a list", override_pattern="list")
        result = batch.validate_question(questions[0])
        assert result.overridden
        assert result.pattern_id == "list"

    def test_override_disables(self, batch, manager, questions):
        manager.add_override("q1", "Leave this answer alone")
        result = batch.validate_question(questions[0])
        assert result.overridden
        assert result.pattern_id is None
        assert not result.needs_formatting


class TestRun:
    def test_report_totals(self, batch, questions):
        report = batch.run(questions)
        assert report.total_questions == 4
        assert report.questions_with_content == 3
        assert report.questions_with_patterns == 2
        assert report.questions_needing_formatting == 1
        assert report.average_score == round((75 + 100 + 100 + 100) / 4)
        assert report.overall_quality == "Good"

    def test_channel_filter(self, batch, questions):
        report = batch.run(questions, channel="database")
        assert [r.question_id for r in report.results] == ["q2"]
        assert report.filters == {"channel": "database", "limit": None}

    def test_limit(self, batch, questions):
        assert batch.run(questions, limit=2).total_questions == 2

    def test_time_budget_exhausted(self, detector, validator, questions):
        report = BatchValidator(detector, validator, time_budget_seconds=-1).run(questions)
        assert report.budget_exhausted
        assert report.total_questions == 0

    def test_breakdowns_and_issues(self, batch, questions):
        report = batch.run(questions)
        patterns = report.pattern_breakdown()
        assert patterns["comparison-table"].needs_formatting == 1
        assert patterns["no-pattern"].count == 2
        assert report.channel_breakdown()["api"].average_score == 75
        assert report.top_issues() == [("comparison-table-required", 1)]

    def test_needing_attention(self, detector, validator):
        bad = QuestionRecord(
            id="bad",
            question="What is a closure?",
            answer="- Closures. Are. Functions. Really.\n1. Odd",
        )
        report = BatchValidator(detector, validator).run([bad])
        attention = report.needing_attention()
        assert [r.question_id for r in attention] == ["bad"]

    def test_to_json(self, batch, questions):
        data = json.loads(batch.run(questions).to_json())
        assert data["metadata"]["total_questions"] == 4
        assert data["summary"]["content_coverage"] == 75
        assert data["summary"]["pattern_detection_rate"] == 50
        assert data["pattern_breakdown"]["list"]["count"] == 1
        assert data["top_issues"] == [{"issue": "comparison-table-required", "count": 1}]

    def test_empty_corpus(self, batch):
        report = batch.run([])
        assert report.total_questions == 0
        assert report.average_score == 100
        assert report.to_dict()["summary"]["content_coverage"] == 0


class TestLoadQuestions:
    def test_list(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps(CORPUS))
        loaded = load_questions(path)
        assert [q.id for q in loaded] == ["q1", "q2", "q3", "4"]
        assert loaded[3].answer_text == ""

    def test_wrapped(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps({"questions": CORPUS[:1]}))
        assert len(load_questions(path)) == 1

    def test_extra_fields_kept(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps([{"id": "x", "companies": ["acme"]}]))
        assert load_questions(path)[0].model_extra == {"companies": ["acme"]}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text("[oops")
        with pytest.raises(ValidationError):
            load_questions(path)

    def test_missing_id(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps([{"question": "no id"}]))
        with pytest.raises(ValidationError):
            load_questions(path)
