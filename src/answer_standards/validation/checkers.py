"""
Section checkers -- one pure function per section format and per constraint type.

Two strategy maps drive FormatValidator:

  PRESENCE_CHECKERS    SectionFormat -> (answer) -> bool
  CONSTRAINT_CHECKERS  ConstraintType -> (answer, pattern_id, value) -> violation | None

Every ConstraintType member has an entry in CONSTRAINT_CHECKERS. Each
checker reports at most one violation, so a failed constraint always
costs the same penalty however many lines are affected.
"""

import re
from typing import Any, Callable

from ..patterns.models import ConstraintType, SectionFormat
from . import text_utils as tu
from .models import Severity, ValidationViolation

ADVANTAGES_TITLE = re.compile(r"^(Advantages?|Pros?|Benefits?)\b", re.IGNORECASE)
DISADVANTAGES_TITLE = re.compile(r"^(Disadvantages?|Cons?|Drawbacks?|Limitations?)\b", re.IGNORECASE)

ACTION_VERBS = frozenset("""
    access activate add analyze apply attach authenticate authorize avoid backup build bundle
    cache calculate call change check choose clean clear click clone close collect commit compare
    compile compress configure confirm connect convert copy create declare define delete deploy
    design detach disable disconnect download edit enable ensure enter evaluate examine exchange
    execute export extract fetch filter follow format generate get handle identify implement import
    initialize input insert inspect install isolate join keep launch leave link load log login
    logout make map measure merge migrate modify monitor mount move navigate open package parse
    partition pass patch plan post prepare process profile provide provision publish pull push put
    read rebase receive redirect refresh register release reload remove replace reproduce restart
    restore return review run save scale select send set setup sort specify split start stop store
    submit switch test toggle train tune turn type unlink unmount unzip update upload use validate
    verify wrap write
""".split())

_EDGE = re.compile(r"-\.->|==>|-->>|->>|-->|---|--|->|&")
_LABEL = re.compile(r"\[[^\]]*\]|\([^)]*\)|\{[^}]*\}|\|[^|]*\||\"[^\"]*\"")
_NODE_ID = re.compile(r"^[A-Za-z_][\w-]*$")
_MERMAID_KEYWORDS = {
    "graph", "flowchart", "subgraph", "end", "style", "classdef", "class",
    "click", "linkstyle", "direction",
}

ConstraintChecker = Callable[[str, str, Any], ValidationViolation | None]


def _violation(
    pattern_id: str,
    rule: str,
    severity: Severity,
    message: str,
    fix: str,
    location: str = "",
    check: str | None = None,
) -> ValidationViolation:
    return ValidationViolation(
        rule=f"{pattern_id}-{rule}",
        severity=severity,
        message=message,
        fix=fix,
        check=check or rule,
        location=location,
    )


# =============================================================================
# PRESENCE
# =============================================================================


def _has_mermaid(answer: str) -> bool:
    return any(b.language == "mermaid" for b in tu.find_code_blocks(answer))


PRESENCE_CHECKERS: dict[SectionFormat, Callable[[str], bool]] = {
    SectionFormat.TABLE: lambda a: bool(tu.find_tables(a)),
    SectionFormat.LIST: lambda a: bool(tu.list_items(a)),
    SectionFormat.PROCESS: lambda a: bool(tu.numbered_steps(a)),
    SectionFormat.CODE: lambda a: bool(tu.find_code_blocks(a)),
    SectionFormat.DIAGRAM: _has_mermaid,
}

PRESENCE_MESSAGES: dict[SectionFormat, tuple[str, str]] = {
    SectionFormat.TABLE: (
        "Comparison answers need a markdown table",
        "Present the comparison as a table with a header row and a separator row",
    ),
    SectionFormat.LIST: (
        "Answer should be a bulleted list",
        "Put each point on its own '- ' bullet",
    ),
    SectionFormat.PROCESS: (
        "Process answers need numbered steps",
        "Write each step as a numbered line: 1., 2., 3.",
    ),
    SectionFormat.CODE: (
        "Answer needs a fenced code block",
        "Wrap the code in ``` fences with a language identifier",
    ),
    SectionFormat.DIAGRAM: (
        "Architecture answers need a mermaid diagram",
        "Add a ```mermaid block showing the main components",
    ),
}


def missing_section(pattern_id: str, section_format: SectionFormat) -> ValidationViolation:
    """The error reported when a required section of the given format is absent."""
    message, fix = PRESENCE_MESSAGES[section_format]
    return _violation(
        pattern_id, "required", Severity.ERROR, message, fix,
        check=f"{section_format.value}-required",
    )


# =============================================================================
# TABLE
# =============================================================================


def check_min_columns(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    tables = tu.find_tables(answer)
    if not tables:
        return None
    columns = tables[0].column_count
    if columns < int(value):
        return _violation(
            pattern_id, "min-columns", Severity.ERROR,
            f"Table needs at least {value} columns, found {columns}",
            "Add a column for each item being compared",
            location=tables[0].header,
        )
    return None


def check_has_headers(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    tables = tu.find_tables(answer)
    if tables and not tables[0].has_separator:
        return _violation(
            pattern_id, "table-headers", Severity.ERROR,
            "Table is missing the header separator row (|---|---|)",
            "Add a separator row directly under the header row",
            location=tables[0].header,
        )
    return None


# =============================================================================
# DEFINITION
# =============================================================================


def check_single_sentence(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    start, _, paragraph = tu.first_paragraph(answer)
    if start < 0:
        return None
    if tu.is_structural_line(answer.splitlines()[start]):
        return _violation(
            pattern_id, "single-sentence", Severity.ERROR,
            "Answer should open with a one-sentence definition",
            "Start with a single sentence that defines the term",
            location=paragraph[:80],
        )
    sentences = tu.count_sentences(paragraph)
    if sentences > 1:
        return _violation(
            pattern_id, "single-sentence", Severity.ERROR,
            f"Opening definition should be one sentence, found {sentences}",
            "Keep the first paragraph to one defining sentence and move details into bullets",
            location=paragraph[:80],
        )
    return None


def check_blank_line_after(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    lines = answer.splitlines()
    start, end, _ = tu.first_paragraph(answer)
    if start < 0 or tu.is_structural_line(lines[start]):
        return None
    if end + 1 < len(lines) and lines[end + 1].strip():
        return _violation(
            pattern_id, "blank-line", Severity.WARNING,
            "Definition should be followed by a blank line",
            "Insert a blank line after the opening sentence",
            location=lines[end],
        )
    return None


def check_bulleted_list_required(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    _, end, _ = tu.first_paragraph(answer)
    if not any(item.line > end for item in tu.list_items(answer)):
        return _violation(
            pattern_id, "bulleted-list-required", Severity.ERROR,
            "Definition should be followed by a bulleted list of key points",
            "List the key characteristics as '- ' bullets after the definition",
        )
    return None


# =============================================================================
# LIST
# =============================================================================


def check_max_sentences(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    limit = int(value)
    long_items = [i for i in tu.list_items(answer) if tu.count_sentences(i.text) > limit]
    if long_items:
        return _violation(
            pattern_id, "list-item-length", Severity.WARNING,
            f"{len(long_items)} list item(s) exceed {limit} sentence(s)",
            f"Keep each bullet to at most {limit} sentence(s); split longer points",
            location=long_items[0].text[:80],
        )
    return None


def check_proper_bullet_syntax(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    items = tu.list_items(answer)
    improper = [i for i in items if not i.proper]
    if improper:
        line = answer.splitlines()[improper[0].line]
        return _violation(
            pattern_id, "bullet-consistency", Severity.WARNING,
            f"{len(improper)} bullet(s) use a non-standard marker or lack a space after the marker",
            "Use '- ' (dash and space) for every bullet",
            location=line,
            check="bullet-syntax",
        )
    markers = {i.marker for i in items}
    if len(markers) > 1:
        return _violation(
            pattern_id, "bullet-consistency", Severity.INFO,
            f"Mixed bullet markers: {', '.join(sorted(markers))}",
            "Use the same bullet marker throughout the list",
            check="bullet-syntax",
        )
    return None


def check_min_list_items(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    count = len(tu.list_items(answer))
    if count < int(value):
        return _violation(
            pattern_id, "min-list-items", Severity.WARNING,
            f"List should have at least {value} items, found {count}",
            "Add more distinct points",
        )
    return None


# =============================================================================
# PROCESS
# =============================================================================


def _first_word(text: str) -> str:
    words = text.split()
    return re.sub(r"[^a-z]", "", words[0].lower()) if words else ""


def check_action_verbs(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    weak = [s for s in tu.numbered_steps(answer) if _first_word(s.text) not in ACTION_VERBS]
    if weak:
        first = weak[0]
        return _violation(
            pattern_id, "action-verb", Severity.WARNING,
            f"{len(weak)} step(s) do not start with an action verb, "
            f"e.g. step {first.number}: \"{first.text[:50]}\"",
            "Start each step with a clear action verb (create, configure, run, etc.)",
            location=first.text[:80],
        )
    return None


def check_proper_sequence(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    """Every numbered line continues a single 1, 2, 3... count, nested lines included."""
    if not value:
        return None
    misnumbered = [
        (step, expected)
        for expected, step in enumerate(tu.numbered_steps(answer), 1)
        if step.number != expected
    ]
    if not misnumbered:
        return None
    step, expected = misnumbered[0]
    extra = f" ({len(misnumbered)} steps out of sequence)" if len(misnumbered) > 1 else ""
    return _violation(
        pattern_id, "sequence-numbering", Severity.ERROR,
        f"Process step numbering is not sequential: expected {expected}, found {step.number}{extra}",
        "Number the steps consecutively starting from 1 (1. 2. 3. ...)",
        location=answer.splitlines()[step.line],
    )


def check_min_steps(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    count = len(tu.numbered_steps(answer))
    if count < int(value):
        return _violation(
            pattern_id, "min-steps", Severity.WARNING,
            f"Process should have at least {value} steps, found {count}",
            "Break the process into more explicit steps",
        )
    return None


# =============================================================================
# CODE
# =============================================================================


def check_requires_language(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    bare = [b for b in tu.find_code_blocks(answer) if not b.language]
    if bare:
        lines = answer.splitlines()
        start = bare[0].start_line
        return _violation(
            pattern_id, "code-language", Severity.WARNING,
            f"{len(bare)} code block(s) have no language identifier",
            "Add a language after the opening fence, e.g. ```python",
            location="\n".join(lines[start : start + 2]),
        )
    return None


def check_complete_blocks(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    unclosed = [b for b in tu.find_code_blocks(answer) if not b.is_closed]
    if unclosed:
        return _violation(
            pattern_id, "incomplete-block", Severity.ERROR,
            "Code block is opened but never closed",
            "Add a closing ``` fence",
            location=answer.splitlines()[unclosed[0].start_line],
        )
    return None


# =============================================================================
# PROS-CONS / TROUBLESHOOTING
# =============================================================================


def section_title_regex(name: str) -> re.Pattern:
    stem = name[:-1] if name.lower().endswith("s") else name
    return re.compile(rf"^{re.escape(stem)}s?\b", re.IGNORECASE)


def check_required_sections(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    if value is True:
        wanted = [("Advantages", ADVANTAGES_TITLE), ("Disadvantages", DISADVANTAGES_TITLE)]
    else:
        names = [value] if isinstance(value, str) else list(value)
        wanted = [(name, section_title_regex(name)) for name in names]

    titles = [h.title for h in tu.headings(answer)]
    missing = [name for name, rx in wanted if not any(rx.search(t) for t in titles)]
    if not missing:
        return None
    rule = f"missing-{missing[0].lower()}" if len(missing) == 1 else "missing-sections"
    return _violation(
        pattern_id, rule, Severity.ERROR,
        f"Missing section(s): {', '.join(missing)}",
        "Add " + ", ".join(f"'## {name}'" for name in missing) + " heading(s)",
        location=",".join(missing),
        check="missing-sections",
    )


def check_bulleted_lists(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    for label, rx in (("Advantages", ADVANTAGES_TITLE), ("Disadvantages", DISADVANTAGES_TITLE)):
        body = tu.section_body(answer, rx)
        if body is not None and not tu.list_items(body):
            return _violation(
                pattern_id, "list-format", Severity.WARNING,
                f"{label} section should be a bulleted list",
                "Write each point under the heading as a '- ' bullet",
                location=label,
            )
    return None


def check_numbered_solutions(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    if not value:
        return None
    body = tu.section_body(answer, section_title_regex("Solutions"))
    if body is not None and not tu.numbered_steps(body):
        return _violation(
            pattern_id, "solutions-numbered", Severity.ERROR,
            "Solutions should be a numbered list",
            "Number each solution: 1., 2., 3.",
        )
    return None


# =============================================================================
# DIAGRAM
# =============================================================================


def count_mermaid_nodes(body: list[str]) -> int:
    nodes: set[str] = set()
    for line in body:
        stripped = line.strip()
        if not stripped or stripped.startswith("%%") or re.match(r"^(graph|flowchart)\b", stripped):
            continue
        for token in _EDGE.split(_LABEL.sub(" ", stripped)):
            token = token.strip().rstrip(";")
            if _NODE_ID.match(token) and token.lower() not in _MERMAID_KEYWORDS:
                nodes.add(token)
    return len(nodes)


def check_max_nodes(answer: str, pattern_id: str, value: Any) -> ValidationViolation | None:
    for block in tu.find_code_blocks(answer):
        if block.language != "mermaid":
            continue
        count = count_mermaid_nodes(block.body)
        if count > int(value):
            return _violation(
                pattern_id, "diagram-complexity", Severity.WARNING,
                f"Diagram has {count} nodes (max {value})",
                "Group related components so the diagram stays readable",
            )
    return None


CONSTRAINT_CHECKERS: dict[ConstraintType, ConstraintChecker] = {
    ConstraintType.MIN_COLUMNS: check_min_columns,
    ConstraintType.HAS_HEADERS: check_has_headers,
    ConstraintType.SINGLE_SENTENCE: check_single_sentence,
    ConstraintType.BLANK_LINE_AFTER: check_blank_line_after,
    ConstraintType.BULLETED_LIST_REQUIRED: check_bulleted_list_required,
    ConstraintType.MAX_SENTENCES: check_max_sentences,
    ConstraintType.PROPER_BULLET_SYNTAX: check_proper_bullet_syntax,
    ConstraintType.MIN_LIST_ITEMS: check_min_list_items,
    ConstraintType.ACTION_VERBS: check_action_verbs,
    ConstraintType.PROPER_SEQUENCE: check_proper_sequence,
    ConstraintType.MIN_STEPS: check_min_steps,
    ConstraintType.REQUIRES_LANGUAGE: check_requires_language,
    ConstraintType.COMPLETE_BLOCKS: check_complete_blocks,
    ConstraintType.REQUIRED_SECTIONS: check_required_sections,
    ConstraintType.BULLETED_LISTS: check_bulleted_lists,
    ConstraintType.MAX_NODES: check_max_nodes,
    ConstraintType.NUMBERED_SOLUTIONS: check_numbered_solutions,
}
