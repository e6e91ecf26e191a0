"""
FormatValidator -- scores how well an answer matches its expected pattern.

For each section of the pattern, a presence check for the section's
format runs first. A missing required section is one error and its
constraints are skipped; a missing optional section is skipped silently.
Each constraint then runs through its checker from CONSTRAINT_CHECKERS.

Scoring: 100 minus the ScoringPolicy penalty of each violation, floored
at 0. Valid means score >= pass_threshold and no error violations.

Usage:
    validator = FormatValidator()
    result = validator.validate(answer, pattern)
    if not result.is_valid:
        for v in result.violations:
            print(v.rule, v.message)
"""

import logging

from ..patterns.models import FormatPattern
from .checkers import CONSTRAINT_CHECKERS, PRESENCE_CHECKERS, missing_section
from .models import ScoringPolicy, Severity, ValidationResult, ValidationViolation

logger = logging.getLogger(__name__)


class FormatValidator:
    """Pure, deterministic structural validator."""

    def __init__(self, policy: ScoringPolicy | None = None):
        self._policy = policy or ScoringPolicy()

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    def validate(self, answer_text: str | None, pattern: FormatPattern | None) -> ValidationResult:
        """Validate one answer. Absent input or pattern returns a permissive result."""
        if not answer_text or not answer_text.strip() or pattern is None or not pattern.sections:
            return ValidationResult()

        violations: list[ValidationViolation] = []
        for section in pattern.sections:
            present = PRESENCE_CHECKERS.get(section.format)
            if present is not None and not present(answer_text):
                if section.required:
                    violations.append(missing_section(pattern.id, section.format))
                continue

            for constraint in section.constraints:
                violation = CONSTRAINT_CHECKERS[constraint.type](
                    answer_text, pattern.id, constraint.value
                )
                if violation is not None:
                    violations.append(violation)

        score = self._policy.score(violations)
        has_errors = any(v.severity == Severity.ERROR for v in violations)
        result = ValidationResult(
            is_valid=score >= self._policy.pass_threshold and not has_errors,
            score=score,
            violations=violations,
            suggestions=list(dict.fromkeys(v.fix for v in violations if v.fix)),
        )
        logger.debug(
            f"[Validator] {pattern.id}: score={score} "
            f"violations={len(violations)} valid={result.is_valid}"
        )
        return result
