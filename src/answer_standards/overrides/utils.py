"""
Override helpers -- advisory validation, statistics, reports and cleanup.

These sit on top of ConfigurationManager and never write to the store.
"""

import json
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta

from ..validation.text_utils import count_sentences
from .manager import ConfigurationManager
from .models import OverrideRecord

MIN_JUSTIFICATION_LENGTH = 10
DETAILED_JUSTIFICATION_LENGTH = 20
RECENT_DAYS = 30
CLEANUP_AGE_DAYS = 90
NO_PATTERN = "no-pattern"

VAGUE_TERMS = ("bad", "wrong", "broken", "fix", "error", "doesn't work", "not good")


@dataclass
class OverrideValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class OverrideStats:
    total_overrides: int = 0
    overrides_by_pattern: dict[str, int] = field(default_factory=dict)
    overrides_by_user: dict[str, int] = field(default_factory=dict)
    average_justification_length: float = 0.0
    most_common_reasons: list[str] = field(default_factory=list)
    override_rate: float = 0.0


def _has_vague_terms(text: str) -> bool:
    lowered = text.lower()
    return any(re.search(rf"\b{re.escape(term)}\b", lowered) for term in VAGUE_TERMS)


def validate_override(
    manager: ConfigurationManager,
    question_id: str,
    justification: str,
    override_pattern: str | None = None,
) -> OverrideValidation:
    """Pre-flight check for an override form. Stricter than add_override, never raises."""
    errors: list[str] = []
    warnings: list[str] = []
    justification = justification or ""

    if not question_id or not question_id.strip():
        errors.append("Question ID is required")
    elif manager.has_override(question_id):
        errors.append("Override already exists for this question")

    stripped = justification.strip()
    if not stripped:
        errors.append("Justification is required")
    elif len(stripped) < MIN_JUSTIFICATION_LENGTH:
        errors.append(f"Justification must be at least {MIN_JUSTIFICATION_LENGTH} characters long")
    elif len(stripped) < DETAILED_JUSTIFICATION_LENGTH:
        warnings.append("Consider providing a more detailed justification")

    if override_pattern is not None and not override_pattern.strip():
        warnings.append("Override pattern is empty")

    if stripped and _has_vague_terms(stripped) and len(stripped) < 50:
        warnings.append("Consider providing more specific details about why the override is needed")

    return OverrideValidation(is_valid=not errors, errors=errors, warnings=warnings)


def validate_justification_quality(justification: str) -> tuple[int, list[str]]:
    """Score a justification 0-100 with feedback lines."""
    feedback: list[str] = []
    score = 100
    if len(justification) < 20:
        score -= 30
        feedback.append("Justification is too short. Provide more detail.")
    elif len(justification) < 50:
        score -= 15
        feedback.append("Consider providing more detailed explanation.")
    if _has_vague_terms(justification):
        score -= 20
        feedback.append("Avoid vague terms. Be specific about the issue.")
    if count_sentences(justification) < 2:
        score -= 10
        feedback.append("Consider using multiple sentences for clarity.")
    if score >= 80:
        feedback.append("Good justification quality.")
    return max(0, score), feedback


def get_override_stats(manager: ConfigurationManager, total_questions: int | None = None) -> OverrideStats:
    overrides = manager.get_overrides()
    if not overrides:
        return OverrideStats()

    by_pattern = Counter(o.override_pattern or NO_PATTERN for o in overrides)
    by_user = Counter(o.user_id or "unknown" for o in overrides)
    reasons: Counter = Counter()
    for o in overrides:
        words = [w for w in re.findall(r"[a-z']+", o.justification.lower()) if len(w) > 3]
        reasons.update(words[:5])

    rate = 0.0
    if total_questions:
        rate = round(100 * len(overrides) / total_questions, 2)

    return OverrideStats(
        total_overrides=len(overrides),
        overrides_by_pattern=dict(by_pattern),
        overrides_by_user=dict(by_user),
        average_justification_length=sum(len(o.justification) for o in overrides) / len(overrides),
        most_common_reasons=[word for word, _ in reasons.most_common(5)],
        override_rate=rate,
    )


def should_bypass_formatting(manager: ConfigurationManager, question_id: str) -> bool:
    return manager.has_override(question_id)


def get_effective_pattern(
    manager: ConfigurationManager, question_id: str, detected_pattern: str | None = None
) -> str | None:
    """The override's pattern when one exists (None = no formatting), else the detected one."""
    override = manager.get_override_for_question(question_id)
    if override is not None:
        return override.override_pattern
    return detected_pattern or None


def generate_override_report(manager: ConfigurationManager, question_id: str) -> str | None:
    override = manager.get_override_for_question(question_id)
    if override is None:
        return None

    lines = [
        f"Override Report for Question: {question_id}",
        f"Created: {override.timestamp}",
        f"User: {override.user_id or 'Unknown'}",
        "",
        "Justification:",
        override.justification,
    ]
    if override.original_pattern:
        lines += ["", f"Original Pattern: {override.original_pattern}"]
    if override.override_pattern:
        lines.append(f"Override Pattern: {override.override_pattern}")
    else:
        lines.append("Override Pattern: None (formatting disabled)")
    return "\n".join(lines)


def get_override_age(override: OverrideRecord, now: datetime | None = None) -> int:
    """Age in whole days, rounded up."""
    now = now or datetime.now()
    delta = abs(now - datetime.fromisoformat(override.timestamp))
    days = delta.days + (1 if delta - timedelta(days=delta.days) else 0)
    return days


def is_recent_override(override: OverrideRecord, days: int = RECENT_DAYS, now: datetime | None = None) -> bool:
    now = now or datetime.now()
    return datetime.fromisoformat(override.timestamp) > now - timedelta(days=days)


def suggest_override_cleanup(
    manager: ConfigurationManager, max_age_days: int = CLEANUP_AGE_DAYS, now: datetime | None = None
) -> list[OverrideRecord]:
    """Overrides older than max_age_days, candidates for review or removal."""
    return [o for o in manager.get_overrides() if get_override_age(o, now) > max_age_days]


def export_override_data(manager: ConfigurationManager, now: datetime | None = None) -> str:
    """JSON dump of all overrides with age/recency and the summary statistics."""
    now = now or datetime.now()
    overrides = manager.get_overrides()
    data = {
        "export_date": now.isoformat(),
        "total_overrides": len(overrides),
        "statistics": asdict(get_override_stats(manager)),
        "overrides": [
            {
                **o.to_dict(),
                "age": get_override_age(o, now),
                "is_recent": is_recent_override(o, now=now),
            }
            for o in overrides
        ],
    }
    return json.dumps(data, indent=2)
