"""Data models for automatic fixes."""

from dataclasses import dataclass, field
from enum import Enum

from ..validation.models import Severity, ValidationViolation


class FixType(Enum):
    """Closed set of edit operations apply_fix understands."""

    REPLACE = "replace"
    INSERT = "insert"
    REMOVE = "remove"
    REFORMAT = "reformat"


class InsertAnchor:
    """Positions an insert fix can target."""

    END = "end"
    AFTER_FIRST_LINE = "after-first-line"
    AFTER_FIRST_TABLE_ROW = "after-first-table-row"


SEVERITY_PRIORITY = {
    Severity.ERROR: 100,
    Severity.WARNING: 50,
    Severity.INFO: 25,
}


@dataclass
class Fix:
    """A single mechanical edit.

    type: FixType member, or a raw string for fixes built elsewhere.
    target: Literal text for replace/remove, an InsertAnchor for insert,
            "content" for reformat.
    """

    id: str
    type: FixType | str
    description: str
    target: str
    replacement: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value if isinstance(self.type, FixType) else self.type,
            "description": self.description,
            "target": self.target,
            "replacement": self.replacement,
        }


@dataclass
class FixSuggestion:
    """All candidate fixes for one violation, least destructive first."""

    violation: ValidationViolation
    fixes: list[Fix] = field(default_factory=list)
    priority: int = 0
    description: str = ""
