"""
MetricsCollector -- formatting quality over time.

Records three kinds of events (validation, auto-fix, pattern detection) and
aggregates them into compliance, first-attempt pass rate, auto-fix success,
per-pattern usage, per-channel breakdowns and daily trends.

Usage:
    metrics = MetricsCollector()
    for outcome in pipeline.process_many(questions):
        metrics.record_outcome(outcome, channel="system-design")

    summary = metrics.summary()
    print(summary.compliance_rate, summary.auto_fix_success_rate)
    Path("metrics.json").write_text(metrics.to_json())

Events live in memory for the life of the collector. Timestamps are ISO
strings; a question's events are ordered by timestamp, then by recording
order, so "first attempt" and "current state" are well defined.

Rates are percentages rounded to one decimal. Compliance, average score
and average violations use each question's latest validation.
"""

import json
import logging
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta

from .pipeline import ProcessingOutcome, QuestionState

logger = logging.getLogger(__name__)

TOP_CHANNEL_PATTERNS = 3
DEFAULT_TREND_DAYS = 30


def _now() -> str:
    return datetime.now().isoformat()


def _rate(part: int, whole: int) -> float:
    return round(100 * part / whole, 1) if whole else 0.0


def _mean(values: list) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


# =============================================================================
# EVENTS
# =============================================================================


@dataclass
class ValidationEvent:
    question_id: str
    pattern_id: str
    score: int
    passed: bool
    violation_count: int = 0
    channel: str = ""
    timestamp: str = field(default_factory=_now)


@dataclass
class AutoFixEvent:
    question_id: str
    pattern_id: str
    success: bool
    before_score: int
    after_score: int
    timestamp: str = field(default_factory=_now)


@dataclass
class DetectionEvent:
    question_id: str
    detected_pattern: str
    confidence: float
    applied_pattern: str | None = None
    timestamp: str = field(default_factory=_now)


# =============================================================================
# AGGREGATES
# =============================================================================


@dataclass
class PatternUsage:
    detection_count: int = 0
    application_count: int = 0
    average_score: float = 0.0
    success_rate: float = 0.0


@dataclass
class ChannelMetrics:
    channel: str
    total_questions: int
    compliance_rate: float
    average_score: float
    top_patterns: list[str]


@dataclass
class MetricsTrend:
    date: str
    total_questions: int
    compliance_rate: float
    first_attempt_pass_rate: float
    auto_fix_success_rate: float


@dataclass
class FormatMetrics:
    total_questions: int = 0
    total_validations: int = 0
    compliance_rate: float = 0.0
    average_score: float = 0.0
    first_attempt_pass_rate: float = 0.0
    average_violations: float = 0.0
    auto_fix_attempts: int = 0
    auto_fix_successes: int = 0
    auto_fix_success_rate: float = 0.0
    pattern_usage: dict[str, PatternUsage] = field(default_factory=dict)
    channel_breakdown: list[ChannelMetrics] = field(default_factory=list)
    last_updated: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# COLLECTOR
# =============================================================================


class MetricsCollector:
    """In-memory event log with on-demand aggregation."""

    def __init__(self):
        self._validations: list[ValidationEvent] = []
        self._auto_fixes: list[AutoFixEvent] = []
        self._detections: list[DetectionEvent] = []

    def record_validation(self, event: ValidationEvent) -> None:
        self._validations.append(event)

    def record_auto_fix(self, event: AutoFixEvent) -> None:
        self._auto_fixes.append(event)

    def record_detection(self, event: DetectionEvent) -> None:
        self._detections.append(event)

    def record_outcome(
        self,
        outcome: ProcessingOutcome,
        channel: str = "",
        timestamp: str | None = None,
    ) -> None:
        """
        Turn one pipeline outcome into events.

        Outcomes without a pattern (undetected, or overridden to "keep as-is")
        are not validations and record nothing. A question that went through
        format rounds records its first validation, the auto-fix, and the
        final validation.
        """
        if outcome.pattern_id is None:
            return
        timestamp = timestamp or _now()
        fixed = outcome.iterations > 0

        self.record_detection(DetectionEvent(
            question_id=outcome.question_id,
            detected_pattern=outcome.pattern_id,
            confidence=outcome.confidence,
            applied_pattern=outcome.pattern_id,
            timestamp=timestamp,
        ))
        self.record_validation(ValidationEvent(
            question_id=outcome.question_id,
            pattern_id=outcome.pattern_id,
            score=outcome.initial_score,
            passed=not fixed and outcome.state == QuestionState.VALID,
            violation_count=outcome.initial_violations,
            channel=channel,
            timestamp=timestamp,
        ))
        if fixed:
            success = outcome.state == QuestionState.VALID
            self.record_auto_fix(AutoFixEvent(
                question_id=outcome.question_id,
                pattern_id=outcome.pattern_id,
                success=success,
                before_score=outcome.initial_score,
                after_score=outcome.score,
                timestamp=timestamp,
            ))
            self.record_validation(ValidationEvent(
                question_id=outcome.question_id,
                pattern_id=outcome.pattern_id,
                score=outcome.score,
                passed=success,
                violation_count=len(outcome.validation.violations),
                channel=channel,
                timestamp=timestamp,
            ))
        logger.debug(
            f"[Metrics] {outcome.question_id}: {outcome.pattern_id} "
            f"{outcome.initial_score} -> {outcome.score} ({outcome.state.value})"
        )

    # -------------------------------------------------------------------------
    # Aggregation
    # -------------------------------------------------------------------------

    def summary(self) -> FormatMetrics:
        return _summarize(self._validations, self._auto_fixes, self._detections)

    def metrics_between(self, start: datetime | str, end: datetime | str) -> FormatMetrics:
        """Metrics for events with start <= timestamp < end."""
        lo = start.isoformat() if isinstance(start, datetime) else start
        hi = end.isoformat() if isinstance(end, datetime) else end

        def within(events):
            return [e for e in events if lo <= e.timestamp < hi]

        return _summarize(within(self._validations), within(self._auto_fixes), within(self._detections))

    def trends(self, days: int = DEFAULT_TREND_DAYS, today: date | None = None) -> list[MetricsTrend]:
        """One entry per calendar day, oldest first, ending today."""
        today = today or date.today()
        trends = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            validations = [e for e in self._validations if e.timestamp.startswith(day)]
            fixes = [e for e in self._auto_fixes if e.timestamp.startswith(day)]
            latest = _latest_per_question(validations)
            trends.append(MetricsTrend(
                date=day,
                total_questions=len(latest),
                compliance_rate=_rate(sum(1 for e in latest if e.passed), len(latest)),
                first_attempt_pass_rate=_first_attempt_rate(validations),
                auto_fix_success_rate=_rate(sum(1 for e in fixes if e.success), len(fixes)),
            ))
        return trends

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_data(self) -> dict:
        return {
            "summary": self.summary().to_dict(),
            "events": {
                "validations": [asdict(e) for e in self._validations],
                "auto_fixes": [asdict(e) for e in self._auto_fixes],
                "detections": [asdict(e) for e in self._detections],
            },
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.export_data(), indent=indent)

    def clear(self) -> None:
        self._validations.clear()
        self._auto_fixes.clear()
        self._detections.clear()
        logger.info("[Metrics] Cleared all events")


# =============================================================================
# HELPERS
# =============================================================================


def _by_question(validations: list[ValidationEvent]) -> dict[str, list[ValidationEvent]]:
    grouped: dict[str, list[ValidationEvent]] = defaultdict(list)
    for event in validations:
        grouped[event.question_id].append(event)
    # sorted() is stable, so same-timestamp events keep recording order
    return {qid: sorted(events, key=lambda e: e.timestamp) for qid, events in grouped.items()}


def _latest_per_question(validations: list[ValidationEvent]) -> list[ValidationEvent]:
    return [events[-1] for events in _by_question(validations).values()]


def _first_attempt_rate(validations: list[ValidationEvent]) -> float:
    grouped = _by_question(validations)
    return _rate(sum(1 for events in grouped.values() if events[0].passed), len(grouped))


def _summarize(
    validations: list[ValidationEvent],
    fixes: list[AutoFixEvent],
    detections: list[DetectionEvent],
) -> FormatMetrics:
    latest = _latest_per_question(validations)
    successes = sum(1 for e in fixes if e.success)

    usage: dict[str, PatternUsage] = defaultdict(PatternUsage)
    for event in detections:
        usage[event.detected_pattern].detection_count += 1
        if event.applied_pattern:
            usage[event.applied_pattern].application_count += 1
    for pattern_id in {e.pattern_id for e in latest}:
        scored = [e for e in latest if e.pattern_id == pattern_id]
        usage[pattern_id].average_score = _mean([e.score for e in scored])
        usage[pattern_id].success_rate = _rate(sum(1 for e in scored if e.passed), len(scored))

    return FormatMetrics(
        total_questions=len(latest),
        total_validations=len(validations),
        compliance_rate=_rate(sum(1 for e in latest if e.passed), len(latest)),
        average_score=_mean([e.score for e in latest]),
        first_attempt_pass_rate=_first_attempt_rate(validations),
        average_violations=_mean([e.violation_count for e in latest]),
        auto_fix_attempts=len(fixes),
        auto_fix_successes=successes,
        auto_fix_success_rate=_rate(successes, len(fixes)),
        pattern_usage=dict(sorted(usage.items())),
        channel_breakdown=_channel_breakdown(latest),
    )


def _channel_breakdown(latest: list[ValidationEvent]) -> list[ChannelMetrics]:
    channels: dict[str, list[ValidationEvent]] = defaultdict(list)
    for event in latest:
        if event.channel:
            channels[event.channel].append(event)

    breakdown = []
    for channel, events in channels.items():
        patterns = Counter(e.pattern_id for e in events)
        breakdown.append(ChannelMetrics(
            channel=channel,
            total_questions=len(events),
            compliance_rate=_rate(sum(1 for e in events if e.passed), len(events)),
            average_score=_mean([e.score for e in events]),
            top_patterns=[p for p, _ in patterns.most_common(TOP_CHANNEL_PATTERNS)],
        ))
    breakdown.sort(key=lambda c: (-c.total_questions, c.channel))
    return breakdown
