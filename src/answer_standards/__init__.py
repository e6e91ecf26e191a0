"""
answer_standards -- answer formatting standards for Q&A knowledge bases.

    PatternDetector       question text -> expected answer pattern
    FormatValidator       answer + pattern -> score and violations
    AutoFormatter         answer + pattern -> restructured answer, fix suggestions
    ConfigurationManager  durable per-question overrides
    LanguageConsistencyChecker  code examples in different languages -> comparison
    MetricsCollector      pipeline outcomes -> compliance and auto-fix metrics
"""

from .formatting import AutoFormatter, Fix, FixSuggestion, FixType
from .metrics import MetricsCollector
from .overrides import ConfigurationManager, OverrideRecord, OverrideStoreError, OverrideValidationError
from .patterns import FormatPattern, PatternCatalog, PatternDetector, default_catalog
from .validation import (
    FormatValidator,
    LanguageConsistencyChecker,
    ScoringPolicy,
    Severity,
    ValidationResult,
    ValidationViolation,
)

__version__ = "0.1.0"

__all__ = [
    "AutoFormatter",
    "ConfigurationManager",
    "Fix",
    "FixSuggestion",
    "FixType",
    "FormatPattern",
    "FormatValidator",
    "LanguageConsistencyChecker",
    "MetricsCollector",
    "OverrideRecord",
    "OverrideStoreError",
    "OverrideValidationError",
    "PatternCatalog",
    "PatternDetector",
    "ScoringPolicy",
    "Severity",
    "ValidationResult",
    "ValidationViolation",
    "default_catalog",
]
