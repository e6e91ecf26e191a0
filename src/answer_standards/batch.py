"""
BatchValidator -- corpus-wide validation report.

Validates every question (detect + validate, no rewriting), consulting
the override store per question, and aggregates a report: coverage,
detection rate, how many answers need formatting, per-pattern and
per-channel breakdowns, the most frequent rules, and the questions that
need attention first.

Usage:
    questions = load_questions(Path("questions.json"))
    report = BatchValidator(overrides=mgr).run(questions, channel="system-design")
    Path("report.json").write_text(report.to_json())
"""

import json
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError

from .models import QuestionRecord
from .overrides.manager import ConfigurationManager
from .patterns.detector import PatternDetector
from .validation.models import ValidationViolation
from .validation.validator import FormatValidator
from .validators import ValidationError

logger = logging.getLogger(__name__)

NO_PATTERN = "no-pattern"
ATTENTION_SCORE = 60
ATTENTION_VIOLATIONS = 2
ATTENTION_LIMIT = 20
TOP_ISSUES_LIMIT = 10


@dataclass
class QuestionValidation:
    question_id: str
    channel: str = ""
    difficulty: str = ""
    pattern_id: str | None = None
    pattern_name: str | None = None
    confidence: int = 0
    score: int = 100
    violations: list[ValidationViolation] = field(default_factory=list)
    needs_formatting: bool = False
    has_content: bool = True
    overridden: bool = False
    answer_length: int = 0


@dataclass
class GroupStats:
    count: int = 0
    total_score: int = 0
    needs_formatting: int = 0

    @property
    def average_score(self) -> int:
        return round(self.total_score / self.count) if self.count else 0

    def add(self, result: QuestionValidation) -> None:
        self.count += 1
        self.total_score += result.score
        if result.needs_formatting:
            self.needs_formatting += 1

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "average_score": self.average_score,
            "needs_formatting": self.needs_formatting,
        }


@dataclass
class BatchReport:
    generated_at: str
    results: list[QuestionValidation]
    filters: dict = field(default_factory=dict)
    budget_exhausted: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.results)

    @property
    def questions_with_content(self) -> int:
        return sum(1 for r in self.results if r.has_content)

    @property
    def questions_with_patterns(self) -> int:
        return sum(1 for r in self.results if r.pattern_id)

    @property
    def questions_needing_formatting(self) -> int:
        return sum(1 for r in self.results if r.needs_formatting)

    @property
    def average_score(self) -> int:
        if not self.results:
            return 100
        return round(sum(r.score for r in self.results) / len(self.results))

    @property
    def overall_quality(self) -> str:
        if self.average_score >= 80:
            return "Good"
        if self.average_score >= 60:
            return "Fair"
        return "Poor"

    def _rate(self, part: int) -> int:
        return round(100 * part / self.total_questions) if self.total_questions else 0

    def pattern_breakdown(self) -> dict[str, GroupStats]:
        groups: dict[str, GroupStats] = {}
        for r in self.results:
            groups.setdefault(r.pattern_id or NO_PATTERN, GroupStats()).add(r)
        return groups

    def channel_breakdown(self) -> dict[str, GroupStats]:
        groups: dict[str, GroupStats] = {}
        for r in self.results:
            groups.setdefault(r.channel or "unknown", GroupStats()).add(r)
        return groups

    def top_issues(self, limit: int = TOP_ISSUES_LIMIT) -> list[tuple[str, int]]:
        counts = Counter(v.rule or v.message for r in self.results for v in r.violations)
        return counts.most_common(limit)

    def needing_attention(self, limit: int = ATTENTION_LIMIT) -> list[QuestionValidation]:
        flagged = [
            r for r in self.results
            if r.score < ATTENTION_SCORE or len(r.violations) > ATTENTION_VIOLATIONS
        ]
        return sorted(flagged, key=lambda r: r.score)[:limit]

    def to_dict(self) -> dict:
        return {
            "metadata": {
                "generated_at": self.generated_at,
                "total_questions": self.total_questions,
                "questions_with_content": self.questions_with_content,
                "questions_with_patterns": self.questions_with_patterns,
                "questions_needing_formatting": self.questions_needing_formatting,
                "average_score": self.average_score,
                "filters": self.filters,
                "budget_exhausted": self.budget_exhausted,
            },
            "summary": {
                "content_coverage": self._rate(self.questions_with_content),
                "pattern_detection_rate": self._rate(self.questions_with_patterns),
                "formatting_needed_rate": self._rate(self.questions_needing_formatting),
                "overall_quality": self.overall_quality,
            },
            "pattern_breakdown": {k: v.to_dict() for k, v in self.pattern_breakdown().items()},
            "channel_breakdown": {k: v.to_dict() for k, v in self.channel_breakdown().items()},
            "top_issues": [{"issue": issue, "count": count} for issue, count in self.top_issues()],
            "questions_needing_attention": [
                {
                    "id": r.question_id,
                    "channel": r.channel,
                    "score": r.score,
                    "violations": len(r.violations),
                    "pattern": r.pattern_name or "No pattern detected",
                }
                for r in self.needing_attention()
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


class BatchValidator:
    """Validates a corpus question by question."""

    def __init__(
        self,
        detector: PatternDetector | None = None,
        validator: FormatValidator | None = None,
        overrides: ConfigurationManager | None = None,
        time_budget_seconds: float | None = None,
    ):
        self._detector = detector or PatternDetector()
        self._validator = validator or FormatValidator()
        self._overrides = overrides
        self._time_budget = time_budget_seconds

    def validate_question(self, question: QuestionRecord) -> QuestionValidation:
        answer = question.answer_text
        base = QuestionValidation(
            question_id=question.id,
            channel=question.channel,
            difficulty=question.difficulty,
            answer_length=len(answer),
        )
        if not answer.strip():
            base.has_content = False
            return base

        override = self._overrides.get_override_for_question(question.id) if self._overrides else None
        if override is not None:
            base.overridden = True
            pattern = self._detector.catalog.get(override.override_pattern)
            confidence = 1.0 if pattern else 0.0
        else:
            detection = self._detector.detect(question.question)
            pattern, confidence = detection.pattern, detection.confidence

        if pattern is None:
            return base

        result = self._validator.validate(answer, pattern)
        base.pattern_id = pattern.id
        base.pattern_name = pattern.name
        base.confidence = round(confidence * 100)
        base.score = result.score
        base.violations = result.violations
        base.needs_formatting = result.score < self._validator.policy.pass_threshold
        return base

    def run(
        self,
        questions: Iterable[QuestionRecord],
        channel: str | None = None,
        limit: int | None = None,
    ) -> BatchReport:
        started = time.monotonic()
        results: list[QuestionValidation] = []
        exhausted = False

        for question in questions:
            if channel and question.channel != channel:
                continue
            if limit is not None and len(results) >= limit:
                break
            if self._time_budget is not None and time.monotonic() - started > self._time_budget:
                logger.warning(
                    f"[Batch] Time budget of {self._time_budget}s exhausted after "
                    f"{len(results)} questions"
                )
                exhausted = True
                break
            results.append(self.validate_question(question))

        report = BatchReport(
            generated_at=datetime.now().isoformat(),
            results=results,
            filters={"channel": channel, "limit": limit},
            budget_exhausted=exhausted,
        )
        logger.info(
            f"[Batch] Validated {report.total_questions} questions, "
            f"average score {report.average_score} ({report.overall_quality})"
        )
        return report


def load_questions(path: Path) -> list[QuestionRecord]:
    """Read a JSON corpus: a list of question objects or {"questions": [...]}."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e

    items = data.get("questions", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ValidationError(f"{path} must contain a list of questions")
    try:
        return [QuestionRecord.model_validate(item) for item in items]
    except PydanticValidationError as e:
        raise ValidationError(f"{path} contains an invalid question record: {e}") from e
