"""Structural validation of answers against their patterns."""

from .consistency import ConsistencyResult, LanguageConsistencyChecker
from .models import ScoringPolicy, Severity, ValidationResult, ValidationViolation
from .validator import FormatValidator

__all__ = [
    "ConsistencyResult",
    "FormatValidator",
    "LanguageConsistencyChecker",
    "ScoringPolicy",
    "Severity",
    "ValidationResult",
    "ValidationViolation",
]
