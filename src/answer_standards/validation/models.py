"""Data models for answer validation."""

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    """Violation severity. Structural absence is an error, style a warning, cosmetics info."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationViolation:
    """A single structural problem found in an answer.

    Attributes:
        rule: Pattern-scoped rule id (e.g. "comparison-table-required").
        severity: Severity member.
        message: Human-readable explanation of what's wrong.
        fix: How a person would fix it.
        check: Name of the failing check, used to pick automatic fixes.
        location: The text fragment that triggered the violation, if any.
    """

    rule: str
    severity: Severity
    message: str
    fix: str = ""
    check: str = ""
    location: str = ""

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
            "fix": self.fix,
            "location": self.location,
        }


@dataclass
class ValidationResult:
    """Outcome of validating one answer against one pattern."""

    is_valid: bool = True
    score: int = 100
    violations: list[ValidationViolation] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "score": self.score,
            "violations": [v.to_dict() for v in self.violations],
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class ScoringPolicy:
    """Penalty weights and the pass threshold. Injected into FormatValidator."""

    error_penalty: int = 25
    warning_penalty: int = 10
    info_penalty: int = 5
    pass_threshold: int = 80

    def penalty(self, severity: Severity) -> int:
        if severity == Severity.ERROR:
            return self.error_penalty
        if severity == Severity.WARNING:
            return self.warning_penalty
        return self.info_penalty

    def score(self, violations: list[ValidationViolation]) -> int:
        return max(0, 100 - sum(self.penalty(v.severity) for v in violations))

