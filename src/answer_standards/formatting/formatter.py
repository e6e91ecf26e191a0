"""
AutoFormatter -- rewrites non-conforming answers into their pattern's shape.

Usage:
    formatter = AutoFormatter()
    fixed = formatter.format(answer, pattern)

    result = formatter.validator.validate(answer, pattern)
    for suggestion in formatter.suggest_fixes(result, answer, pattern):
        print(suggestion.priority, suggestion.description)

Rules:
  - None stays None, "" stays "".
  - Patterns outside the formatter's catalog pass through unchanged.
  - Answers with no violations pass through unchanged.
  - A rewrite that does not raise the score is discarded.
"""

import logging

from ..patterns.catalog import PatternCatalog, default_catalog
from ..patterns.models import FormatPattern
from ..validation.models import ValidationResult
from ..validation.validator import FormatValidator
from . import fixes as fix_ops
from .models import Fix, FixSuggestion
from .transforms import TRANSFORMS

logger = logging.getLogger(__name__)


class AutoFormatter:
    """Best-effort, score-monotonic answer rewriter."""

    def __init__(
        self,
        validator: FormatValidator | None = None,
        catalog: PatternCatalog | None = None,
    ):
        self._validator = validator or FormatValidator()
        self._catalog = catalog or default_catalog()

    @property
    def validator(self) -> FormatValidator:
        return self._validator

    def is_supported(self, pattern: FormatPattern | None) -> bool:
        return (
            pattern is not None
            and pattern.id in self._catalog
            and any(s.format in TRANSFORMS for s in pattern.sections)
        )

    def format(self, answer_text: str | None, pattern: FormatPattern | None) -> str | None:
        """Return the reformatted answer, or the input when nothing better is possible."""
        if not answer_text or not answer_text.strip() or not self.is_supported(pattern):
            return answer_text

        before = self._validator.validate(answer_text, pattern)
        if not before.violations:
            return answer_text

        candidate = answer_text
        for section in pattern.sections:
            transform = TRANSFORMS.get(section.format)
            if transform is not None:
                candidate = transform(candidate, pattern)

        after = self._validator.validate(candidate, pattern)
        if after.score <= before.score:
            if candidate != answer_text:
                logger.info(
                    f"[AutoFormatter] {pattern.id}: rewrite scored {after.score}, "
                    f"not above {before.score}, keeping original"
                )
            return answer_text

        logger.debug(f"[AutoFormatter] {pattern.id}: score {before.score} -> {after.score}")
        return candidate

    def suggest_fixes(
        self,
        result: ValidationResult,
        answer_text: str | None = None,
        pattern: FormatPattern | None = None,
    ) -> list[FixSuggestion]:
        return fix_ops.suggest_fixes(result, answer_text, pattern)

    def apply_fix(self, answer_text: str | None, fix: Fix) -> str | None:
        return fix_ops.apply_fix(answer_text, fix)
