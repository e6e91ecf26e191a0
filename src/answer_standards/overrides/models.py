"""Override data models."""

import sqlite3
from dataclasses import asdict, dataclass, field
from datetime import datetime


@dataclass
class OverrideRecord:
    """
    An operator decision that suppresses or redirects automatic formatting.

    override_pattern: Pattern id to use instead of the detected one.
                      None means "do not format this question at all".
    original_pattern: The pattern detection picked, kept for the audit trail.
    """

    question_id: str
    justification: str
    override_pattern: str | None = None
    original_pattern: str | None = None
    user_id: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def disables_formatting(self) -> bool:
        return self.override_pattern is None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "OverrideRecord":
        return cls(
            question_id=row["question_id"],
            justification=row["justification"],
            override_pattern=row["override_pattern"],
            original_pattern=row["original_pattern"],
            user_id=row["user_id"],
            timestamp=row["created_at"],
        )
