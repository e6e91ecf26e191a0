"""
Pattern data models -- the static vocabulary of answer shapes.

A FormatPattern describes what a well-structured answer to a class of
question looks like: which sections it has, what markdown format each
section uses, and which constraints each section must satisfy.

Patterns are frozen. The catalog is built once and never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================


class SectionFormat(Enum):
    """Markdown shape a section is expected to take."""

    TABLE = "table"
    TEXT = "text"
    LIST = "list"
    PROCESS = "process"
    CODE = "code"
    PROS_CONS = "pros-cons"
    DIAGRAM = "diagram"
    TROUBLESHOOTING = "troubleshooting"


class ConstraintType(Enum):
    """Every constraint a section may carry. Each member has exactly one checker."""

    MIN_COLUMNS = "min-columns"
    HAS_HEADERS = "has-headers"
    SINGLE_SENTENCE = "single-sentence"
    BLANK_LINE_AFTER = "blank-line-after"
    BULLETED_LIST_REQUIRED = "bulleted-list-required"
    MAX_SENTENCES = "max-sentences"
    PROPER_BULLET_SYNTAX = "proper-bullet-syntax"
    MIN_LIST_ITEMS = "min-list-items"
    ACTION_VERBS = "action-verbs"
    PROPER_SEQUENCE = "proper-sequence"
    MIN_STEPS = "min-steps"
    REQUIRES_LANGUAGE = "requires-language"
    COMPLETE_BLOCKS = "complete-blocks"
    REQUIRED_SECTIONS = "required-sections"
    BULLETED_LISTS = "bulleted-lists"
    MAX_NODES = "max-nodes"
    NUMBERED_SOLUTIONS = "numbered-solutions"


# =============================================================================
# PATTERN STRUCTURE
# =============================================================================


@dataclass(frozen=True)
class Constraint:
    """A single rule attached to a section.

    type: A ConstraintType member. Strings are coerced, so an unknown
          constraint name raises ValueError at construction time.
    value: int, bool, str, or a tuple of names (e.g. required section headers).
    """

    type: ConstraintType
    value: int | bool | str | tuple[str, ...] = True

    def __post_init__(self):
        if not isinstance(self.type, ConstraintType):
            object.__setattr__(self, "type", ConstraintType(self.type))
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class Section:
    """One structural part of an answer."""

    name: str
    format: SectionFormat
    required: bool = True
    constraints: tuple[Constraint, ...] = ()

    def __post_init__(self):
        if not isinstance(self.format, SectionFormat):
            object.__setattr__(self, "format", SectionFormat(self.format))
        object.__setattr__(self, "constraints", tuple(self.constraints))


@dataclass(frozen=True)
class PatternStructure:
    """Sections, descriptive rule ids, a static template, and sample answers."""

    sections: tuple[Section, ...] = ()
    rules: tuple[str, ...] = ()
    template: str = ""
    examples: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sections", tuple(self.sections))
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "examples", tuple(self.examples))


@dataclass(frozen=True)
class FormatPattern:
    """
    A named answer shape with the question keywords that select it.

    priority: Higher wins when several patterns match the same question.
    """

    id: str
    name: str
    keywords: tuple[str, ...]
    priority: int
    structure: PatternStructure = field(default_factory=PatternStructure)

    def __post_init__(self):
        object.__setattr__(self, "keywords", tuple(k.lower() for k in self.keywords))

    @property
    def sections(self) -> tuple[Section, ...]:
        return self.structure.sections

    @property
    def template(self) -> str:
        return self.structure.template

    def constraint(self, constraint_type: ConstraintType) -> Constraint | None:
        """First constraint of the given type across all sections, if any."""
        for section in self.structure.sections:
            for c in section.constraints:
                if c.type == constraint_type:
                    return c
        return None
