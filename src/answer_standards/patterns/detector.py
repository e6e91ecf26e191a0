"""
PatternDetector -- classifies question text into an expected answer pattern.

Keyword matching over the lower-cased question. Each pattern scores the
number of its distinct keywords that occur on word boundaries (simple
inflections like a plural "s" or "-ing" still match). Among matching
patterns the highest priority wins, then the most keyword matches, then
catalog order.

Usage:
    detector = PatternDetector()
    result = detector.detect("What are the differences between REST and GraphQL?")
    result.pattern.id   # "comparison-table"
    result.confidence   # 0.125

Stateless: the confidence comes back with the pattern it belongs to.
"""

import logging
import re
from dataclasses import dataclass, field

from .catalog import PatternCatalog, default_catalog
from .models import FormatPattern

logger = logging.getLogger(__name__)

INFLECTION_SUFFIX = r"(?:s|es|ed|d|ing)?"


@dataclass
class PatternCandidate:
    """A pattern that matched at least one keyword."""

    pattern: FormatPattern
    match_count: int
    matched_keywords: list[str] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        if not self.pattern.keywords:
            return 0.0
        return min(1.0, self.match_count / len(self.pattern.keywords))


@dataclass
class DetectionResult:
    """Outcome of detect(): the winning pattern, its confidence, and every candidate."""

    pattern: FormatPattern | None = None
    confidence: float = 0.0
    match_count: int = 0
    candidates: list[PatternCandidate] = field(default_factory=list)

    @property
    def pattern_id(self) -> str | None:
        return self.pattern.id if self.pattern else None


def _keyword_regex(keyword: str) -> re.Pattern:
    return re.compile(
        r"(?<![a-z0-9])" + re.escape(keyword) + INFLECTION_SUFFIX + r"(?![a-z0-9])"
    )


class PatternDetector:
    """Keyword/priority classifier over a PatternCatalog."""

    def __init__(self, catalog: PatternCatalog | None = None):
        self._catalog = catalog or default_catalog()
        self._matchers = {
            p.id: [(kw, _keyword_regex(kw)) for kw in p.keywords] for p in self._catalog
        }

    @property
    def catalog(self) -> PatternCatalog:
        return self._catalog

    def detect(self, question_text: str | None) -> DetectionResult:
        """Classify a question. None or blank input yields an empty result, never an error."""
        if not question_text or not question_text.strip():
            return DetectionResult()

        candidates = self._rank(question_text.lower())
        if not candidates:
            logger.debug(f"[Detector] No pattern for: {question_text[:80]!r}")
            return DetectionResult()

        winner = candidates[0]
        logger.debug(
            f"[Detector] {winner.pattern.id} "
            f"({winner.match_count}/{len(winner.pattern.keywords)} keywords)"
        )
        return DetectionResult(
            pattern=winner.pattern,
            confidence=winner.confidence,
            match_count=winner.match_count,
            candidates=candidates,
        )

    def detect_pattern(self, question_text: str | None) -> FormatPattern | None:
        return self.detect(question_text).pattern

    def suggest_patterns(self, question_text: str | None, limit: int = 3) -> list[PatternCandidate]:
        """Ranked alternatives for a reviewer, best first."""
        return self.detect(question_text).candidates[: max(0, limit)]

    def _rank(self, text: str) -> list[PatternCandidate]:
        candidates = []
        for position, pattern in enumerate(self._catalog):
            matched = [kw for kw, rx in self._matchers[pattern.id] if rx.search(text)]
            if matched:
                candidates.append((position, PatternCandidate(pattern, len(matched), matched)))

        candidates.sort(key=lambda item: (-item[1].pattern.priority, -item[1].match_count, item[0]))
        return [c for _, c in candidates]
