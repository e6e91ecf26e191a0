"""
FormattingPipeline -- the per-question state machine with format-and-recheck.

    UNDETECTED -> DETECTED(pattern) -> VALID | INVALID(violations)
    INVALID -> VALID via format() rounds, or stays INVALID (flagged for review)
    OVERRIDDEN from any state while an override without a pattern exists

Overrides are consulted on every call, never cached, so an operator can
add or remove one while a batch is running. An override that names a
pattern redirects detection to that pattern.

Usage:
    pipeline = FormattingPipeline(overrides=ConfigurationManager(db_path))
    outcome = pipeline.process(QuestionRecord(id="q1", question=..., answer=...))
    if outcome.needs_review:
        ...
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from .formatting.formatter import AutoFormatter
from .models import QuestionRecord
from .overrides.manager import ConfigurationManager
from .overrides.models import OverrideRecord
from .patterns.detector import PatternDetector
from .validation.models import ValidationResult
from .validation.validator import FormatValidator

logger = logging.getLogger(__name__)


class QuestionState(Enum):
    UNDETECTED = "undetected"
    DETECTED = "detected"
    VALID = "valid"
    INVALID = "invalid"
    OVERRIDDEN = "overridden"


@dataclass
class PipelineConfig:
    max_format_iterations: int = 3


@dataclass
class ProcessingOutcome:
    """Where one question ended up, and the answer text to publish or review."""

    question_id: str
    state: QuestionState
    original_answer: str = ""
    answer: str = ""
    pattern_id: str | None = None
    confidence: float = 0.0
    initial_score: int = 100
    initial_violations: int = 0
    validation: ValidationResult = field(default_factory=ValidationResult)
    iterations: int = 0
    override: OverrideRecord | None = None

    @property
    def score(self) -> int:
        return self.validation.score

    @property
    def changed(self) -> bool:
        return self.answer != self.original_answer

    @property
    def needs_review(self) -> bool:
        return self.state == QuestionState.INVALID

    @property
    def publishable(self) -> bool:
        return self.state != QuestionState.INVALID


class FormattingPipeline:
    """Detect -> validate -> format/re-validate, honoring overrides."""

    def __init__(
        self,
        detector: PatternDetector | None = None,
        validator: FormatValidator | None = None,
        formatter: AutoFormatter | None = None,
        overrides: ConfigurationManager | None = None,
        config: PipelineConfig | None = None,
    ):
        self._detector = detector or PatternDetector()
        self._validator = validator or FormatValidator()
        self._formatter = formatter or AutoFormatter(
            validator=self._validator, catalog=self._detector.catalog
        )
        self._overrides = overrides
        self._config = config or PipelineConfig()

    def process(self, question: QuestionRecord) -> ProcessingOutcome:
        answer = question.answer_text
        override = self._overrides.get_override_for_question(question.id) if self._overrides else None

        if override is not None:
            pattern = self._detector.catalog.get(override.override_pattern)
            if pattern is None:
                if override.override_pattern is not None:
                    logger.warning(
                        f"[Pipeline] {question.id}: override names unknown pattern "
                        f"'{override.override_pattern}', leaving answer untouched"
                    )
                return ProcessingOutcome(
                    question_id=question.id,
                    state=QuestionState.OVERRIDDEN,
                    original_answer=answer,
                    answer=answer,
                    override=override,
                )
            confidence = 1.0
        else:
            detection = self._detector.detect(question.question)
            pattern, confidence = detection.pattern, detection.confidence
            if pattern is None:
                return ProcessingOutcome(
                    question_id=question.id,
                    state=QuestionState.UNDETECTED,
                    original_answer=answer,
                    answer=answer,
                )

        result = self._validator.validate(answer, pattern)
        initial_score = result.score
        initial_violations = len(result.violations)
        current = answer
        iterations = 0
        while not result.is_valid and iterations < self._config.max_format_iterations:
            iterations += 1
            candidate = self._formatter.format(current, pattern)
            if candidate == current:
                break
            current = candidate
            result = self._validator.validate(current, pattern)
            logger.debug(
                f"[Pipeline] {question.id}: round {iterations} score={result.score}"
            )

        state = QuestionState.VALID if result.is_valid else QuestionState.INVALID
        if state == QuestionState.INVALID:
            logger.info(
                f"[Pipeline] {question.id}: {pattern.id} still invalid "
                f"(score {result.score}), flagged for review"
            )
        return ProcessingOutcome(
            question_id=question.id,
            state=state,
            original_answer=answer,
            answer=current,
            pattern_id=pattern.id,
            confidence=confidence,
            initial_score=initial_score,
            initial_violations=initial_violations,
            validation=result,
            iterations=iterations,
            override=override,
        )

    def process_many(self, questions: Iterable[QuestionRecord]) -> Iterator[ProcessingOutcome]:
        for question in questions:
            yield self.process(question)
