"""
PatternCatalog -- the immutable, ordered set of answer patterns.

Usage:
    catalog = default_catalog()
    catalog.get("comparison-table")
    catalog.search(["compare", "versus"])

    custom = PatternCatalog.from_json(Path("patterns.json"))

Registration order matters: it is the final tie-break in detection.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator

from . import templates
from .models import Constraint, FormatPattern, PatternStructure, Section, SectionFormat

logger = logging.getLogger(__name__)


class PatternCatalogError(ValueError):
    """Raised when a catalog has duplicate ids or malformed pattern data."""

    pass


class PatternCatalog:
    """Read-only collection of FormatPatterns keyed by id."""

    def __init__(self, patterns: Iterable[FormatPattern]):
        ordered = tuple(patterns)
        by_id: dict[str, FormatPattern] = {}
        for pattern in ordered:
            if pattern.id in by_id:
                raise PatternCatalogError(f"Duplicate pattern id: {pattern.id}")
            by_id[pattern.id] = pattern
        self._patterns = ordered
        self._by_id = by_id

    def __iter__(self) -> Iterator[FormatPattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._by_id

    @property
    def ids(self) -> list[str]:
        return [p.id for p in self._patterns]

    def get(self, pattern_id: str | None) -> FormatPattern | None:
        if pattern_id is None:
            return None
        return self._by_id.get(pattern_id)

    def all(self) -> list[FormatPattern]:
        return list(self._patterns)

    def search(self, keywords: Iterable[str]) -> list[FormatPattern]:
        """Patterns whose keywords overlap the search terms, best overlap first."""
        terms = [k.lower().strip() for k in keywords if k and k.strip()]
        if not terms:
            return []

        scored = []
        for position, pattern in enumerate(self._patterns):
            overlap = sum(
                1 for term in terms
                if any(term in kw or kw in term for kw in pattern.keywords)
            )
            if overlap:
                scored.append((-overlap, -pattern.priority, position, pattern))
        scored.sort(key=lambda item: item[:3])
        return [item[3] for item in scored]

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_dicts(cls, items: Iterable[dict[str, Any]]) -> "PatternCatalog":
        """Build a catalog from plain dicts (the JSON shape)."""
        patterns = []
        for raw in items:
            try:
                patterns.append(_pattern_from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                pattern_id = raw.get("id", "?") if isinstance(raw, dict) else "?"
                raise PatternCatalogError(f"Invalid pattern '{pattern_id}': {e}") from e
        return cls(patterns)

    @classmethod
    def from_json(cls, path: Path) -> "PatternCatalog":
        """Load a catalog from a JSON file: a list, or {"patterns": [...]}."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PatternCatalogError(f"Pattern file {path} is not valid JSON: {e}") from e

        items = data.get("patterns", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise PatternCatalogError(f"Pattern file {path} must contain a list of patterns")
        catalog = cls.from_dicts(items)
        logger.info(f"[Catalog] Loaded {len(catalog)} patterns from {path}")
        return catalog


def _pattern_from_dict(raw: dict[str, Any]) -> FormatPattern:
    structure = raw.get("structure", {})
    sections = tuple(
        Section(
            name=s["name"],
            format=SectionFormat(s["format"]),
            required=bool(s.get("required", True)),
            constraints=tuple(
                Constraint(type=c["type"], value=c.get("value", True))
                for c in s.get("constraints", [])
            ),
        )
        for s in structure.get("sections", [])
    )
    return FormatPattern(
        id=raw["id"],
        name=raw.get("name", raw["id"]),
        keywords=tuple(raw.get("keywords", [])),
        priority=int(raw.get("priority", 0)),
        structure=PatternStructure(
            sections=sections,
            rules=tuple(structure.get("rules", [])),
            template=structure.get("template", ""),
            examples=tuple(structure.get("examples", [])),
        ),
    )


# =============================================================================
# BUILT-IN PATTERNS
# =============================================================================


def _c(constraint_type: str, value=True) -> Constraint:
    return Constraint(type=constraint_type, value=value)


DEFAULT_PATTERNS: tuple[FormatPattern, ...] = (
    FormatPattern(
        id="comparison-table",
        name="Comparison Table",
        keywords=(
            "difference", "differ", "compare", "comparison",
            "vs", "versus", "distinguish", "contrast",
        ),
        priority=90,
        structure=PatternStructure(
            sections=(
                Section(
                    name="comparison",
                    format=SectionFormat.TABLE,
                    constraints=(_c("min-columns", 2), _c("has-headers")),
                ),
            ),
            rules=("table-required", "table-headers", "min-columns"),
            template=templates.TABLE_TEMPLATE,
            examples=("What is the difference between TCP and UDP?",),
        ),
    ),
    FormatPattern(
        id="definition",
        name="Definition",
        keywords=("what is", "what are", "define", "definition", "meaning of", "explain what"),
        priority=80,
        structure=PatternStructure(
            sections=(
                Section(
                    name="definition",
                    format=SectionFormat.TEXT,
                    constraints=(
                        _c("single-sentence"),
                        _c("blank-line-after"),
                        _c("bulleted-list-required"),
                    ),
                ),
            ),
            rules=("single-sentence", "blank-line-after", "bulleted-list-required"),
            template=templates.DEFINITION_TEMPLATE,
            examples=("What is a closure?",),
        ),
    ),
    FormatPattern(
        id="list",
        name="List",
        keywords=("list", "types of", "kinds of", "examples", "categories", "features of"),
        priority=70,
        structure=PatternStructure(
            sections=(
                Section(
                    name="items",
                    format=SectionFormat.LIST,
                    constraints=(_c("max-sentences", 2), _c("proper-bullet-syntax")),
                ),
            ),
            rules=("list-required", "list-item-length", "bullet-consistency"),
            template=templates.LIST_TEMPLATE,
            examples=("List the types of joins in SQL.",),
        ),
    ),
    FormatPattern(
        id="process",
        name="Process Steps",
        keywords=("how to", "steps", "process", "procedure", "workflow", "lifecycle"),
        priority=85,
        structure=PatternStructure(
            sections=(
                Section(
                    name="steps",
                    format=SectionFormat.PROCESS,
                    constraints=(_c("action-verbs"), _c("proper-sequence")),
                ),
            ),
            rules=("process-required", "action-verb", "sequence-numbering"),
            template=templates.PROCESS_TEMPLATE,
            examples=("How to deploy a container to Kubernetes?",),
        ),
    ),
    FormatPattern(
        id="code-example",
        name="Code Example",
        keywords=("code", "implement", "write a", "syntax", "example of", "snippet", "function"),
        priority=75,
        structure=PatternStructure(
            sections=(
                Section(
                    name="code",
                    format=SectionFormat.CODE,
                    constraints=(_c("requires-language"), _c("complete-blocks")),
                ),
            ),
            rules=("code-required", "code-language", "incomplete-block"),
            template=templates.CODE_TEMPLATE,
            examples=("Implement a debounce function in JavaScript.",),
        ),
    ),
    FormatPattern(
        id="pros-cons",
        name="Pros and Cons",
        keywords=(
            "pros and cons", "advantages", "disadvantages", "drawbacks",
            "benefits and drawbacks", "trade-off", "tradeoff",
        ),
        priority=88,
        structure=PatternStructure(
            sections=(
                Section(
                    name="pros-cons",
                    format=SectionFormat.PROS_CONS,
                    constraints=(_c("required-sections"), _c("bulleted-lists")),
                ),
            ),
            rules=("missing-advantages", "missing-disadvantages", "list-format"),
            template=templates.PROS_CONS_TEMPLATE,
            examples=("What are the pros and cons of microservices?",),
        ),
    ),
    FormatPattern(
        id="architecture",
        name="Architecture Diagram",
        keywords=("architecture", "system design", "design a", "diagram", "components", "scalable"),
        priority=82,
        structure=PatternStructure(
            sections=(
                Section(
                    name="diagram",
                    format=SectionFormat.DIAGRAM,
                    constraints=(_c("max-nodes", 15),),
                ),
            ),
            rules=("diagram-required", "diagram-complexity"),
            template=templates.DIAGRAM_TEMPLATE,
            examples=("Design a scalable URL shortener.",),
        ),
    ),
    FormatPattern(
        id="troubleshooting",
        name="Troubleshooting",
        keywords=("troubleshoot", "debug", "debugging", "error", "fix", "not working", "fails", "issue"),
        priority=86,
        structure=PatternStructure(
            sections=(
                Section(
                    name="troubleshooting",
                    format=SectionFormat.TROUBLESHOOTING,
                    constraints=(
                        _c("required-sections", ("Problem", "Causes", "Solutions")),
                        _c("numbered-solutions"),
                    ),
                ),
            ),
            rules=("missing-problem", "missing-causes", "missing-solutions", "solutions-numbered"),
            template=templates.TROUBLESHOOTING_TEMPLATE,
            examples=("How do you debug a memory leak in Node.js?",),
        ),
    ),
    FormatPattern(
        id="best-practices",
        name="Best Practices",
        keywords=("best practice", "guidelines", "recommendations", "tips"),
        priority=72,
        structure=PatternStructure(
            sections=(
                Section(
                    name="practices",
                    format=SectionFormat.LIST,
                    constraints=(_c("max-sentences", 3), _c("proper-bullet-syntax")),
                ),
            ),
            rules=("list-required", "list-item-length", "bullet-consistency"),
            template=templates.BEST_PRACTICES_TEMPLATE,
            examples=("What are best practices for REST API versioning?",),
        ),
    ),
)


@lru_cache(maxsize=1)
def default_catalog() -> PatternCatalog:
    """The built-in catalog. Built once per process."""
    return PatternCatalog(DEFAULT_PATTERNS)
