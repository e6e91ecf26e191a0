"""
Per-format text transforms used by AutoFormatter.

Each transform is a pure function (text, pattern) -> text that only
reorganizes or scaffolds around what the author wrote. Headings, fenced
code, tables and existing list lines pass through untouched; prose is
split into sentences and re-emitted as bullets, numbered steps, or table
cells. No sentence is dropped.

Transforms recognize structure they produced earlier, so running one
twice gives the same result as running it once.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from ..patterns import templates
from ..patterns.models import FormatPattern, SectionFormat
from ..validation import text_utils as tu
from ..validation.checkers import ADVANTAGES_TITLE, DISADVANTAGES_TITLE, section_title_regex

logger = logging.getLogger(__name__)

KEEP = "keep"
PROSE = "prose"
CODE = "code"

PLACEHOLDER_ITEM = "To be documented"

_BULLET_PREFIX = re.compile(r"^(\s*)(?:[•·‣⁃]\s*|[*+]\s+|-(?=[A-Za-z]))")
_TOP_LEVEL_BULLET = re.compile(r"^[-*+]\s+(\S.*)$")
_TOP_LEVEL_NUMBER = re.compile(r"^\d+[.)]\s+(\S.*)$")
_ANY_NUMBER = re.compile(r"^(\s*)\d+[.)]\s+(\S.*)$")
_BARE_FENCE = re.compile(r"^(\s*)(```+|~~~+)\s*$")


# =============================================================================
# BLOCK SEGMENTATION
# =============================================================================


@dataclass
class _Block:
    kind: str
    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(line.strip() for line in self.lines)

    @property
    def is_numbered(self) -> bool:
        return bool(self.lines) and bool(_TOP_LEVEL_NUMBER.match(self.lines[0]))


def _segment(text: str) -> list[_Block]:
    """Split text into blank-line separated blocks of prose or preserved structure."""
    code = tu.code_line_indexes(text)
    blocks: list[_Block] = []
    current: _Block | None = None
    for i, line in enumerate(text.splitlines()):
        in_code = i in code
        if not in_code and not line.strip():
            current = None
            continue
        if in_code:
            kind = CODE
        elif tu.is_structural_line(line):
            kind = KEEP
        elif current is not None and current.kind == KEEP and line[:1].isspace():
            kind = KEEP
        else:
            kind = PROSE
        if current is None or current.kind != kind:
            current = _Block(kind)
            blocks.append(current)
        current.lines.append(line)
    return blocks


def _render(blocks: list[_Block]) -> str:
    return "\n\n".join("\n".join(b.lines) for b in blocks if b.lines)


def _prose_sentences(text: str) -> list[str]:
    return [s for b in _segment(text) if b.kind == PROSE for s in tu.split_sentences(b.text)]


def _is_intro(block: _Block) -> bool:
    sentences = tu.split_sentences(block.text)
    return len(sentences) == 1 and sentences[0].endswith(":")


def normalize_bullets(text: str) -> str:
    """Rewrite non-standard bullet glyphs and unspaced dashes as '- '."""
    code = tu.code_line_indexes(text)
    lines = text.splitlines()
    for i, line in enumerate(lines):
        if i not in code and not tu.is_table_row(line):
            lines[i] = _BULLET_PREFIX.sub(r"\1- ", line)
    return "\n".join(lines)


def close_fences(text: str) -> str:
    """Append a closing fence when the answer ends inside a fenced block."""
    blocks = tu.find_code_blocks(text)
    if not blocks or blocks[-1].is_closed:
        return text
    lines = text.rstrip().splitlines()
    fence = re.match(r"^\s*(```+|~~~+)", lines[blocks[-1].start_line]).group(1)
    return "\n".join(lines + [fence])


# =============================================================================
# LIST / PROCESS
# =============================================================================


def bulletize(text: str, after_heading_only: bool = False) -> str:
    """One '- ' bullet per prose sentence."""
    out: list[_Block] = []
    seen_heading = False
    for block in _segment(normalize_bullets(text)):
        if block.kind != PROSE:
            if block.kind == KEEP:
                seen_heading = seen_heading or any(tu.is_heading(line) for line in block.lines)
            out.append(block)
        elif (after_heading_only and not seen_heading) or _is_intro(block):
            out.append(block)
        else:
            out.append(_Block(KEEP, [f"- {s}" for s in tu.split_sentences(block.text)]))
    return _render(out)


def number_steps(text: str) -> str:
    """One numbered step per sentence or top-level bullet, renumbered 1..n across the answer."""
    out: list[_Block] = []
    for block in _segment(normalize_bullets(text)):
        if block.kind == PROSE:
            if _is_intro(block):
                out.append(block)
                continue
            block = _Block(KEEP, [f"1. {s}" for s in tu.split_sentences(block.text)])
        elif block.kind == KEEP:
            block = _Block(KEEP, [_TOP_LEVEL_BULLET.sub(r"1. \1", line) for line in block.lines])

        if block.is_numbered and out and out[-1].is_numbered:
            out[-1].lines.extend(block.lines)
        else:
            out.append(block)

    step = 0
    for block in out:
        if block.kind != KEEP:
            continue
        for i, line in enumerate(block.lines):
            match = _ANY_NUMBER.match(line)
            if match:
                step += 1
                block.lines[i] = f"{match.group(1)}{step}. {match.group(2)}"
    return _render(out)


def format_list(text: str, pattern: FormatPattern) -> str:
    return bulletize(text)


def format_process(text: str, pattern: FormatPattern) -> str:
    return number_steps(text)


# =============================================================================
# DEFINITION
# =============================================================================


def format_definition(text: str, pattern: FormatPattern) -> str:
    """First sentence alone, a blank line, then the rest as bullets."""
    lines = text.splitlines()
    start, end, paragraph = tu.first_paragraph(text)
    if start < 0 or tu.is_structural_line(lines[start]):
        return text

    sentences = tu.split_sentences(paragraph)
    head = [line for line in lines[:start] if line.strip()]
    blocks = [_Block(KEEP, head)] if head else []
    blocks.append(_Block(KEEP, [sentences[0]]))

    rest = [f"- {s}" for s in sentences[1:]]
    tail = bulletize("\n".join(lines[end + 1 :]))
    if rest and tail and tu.is_list_line(tail.splitlines()[0]):
        blocks.append(_Block(KEEP, rest + tail.splitlines()))
    else:
        if rest:
            blocks.append(_Block(KEEP, rest))
        if tail:
            blocks.append(_Block(KEEP, tail.splitlines()))
    return _render(blocks)


# =============================================================================
# COMPARISON TABLE
# =============================================================================

_CONTRAST_SPLIT = re.compile(
    r"\s*(?:;|,?\s+(?:while|whereas|but|however|on the other hand|in contrast|unlike)\b,?)\s*",
    re.IGNORECASE,
)
_SUBJECT = re.compile(r"^((?:[A-Z][\w.+#/-]*)(?:\s+[A-Z][\w.+#/-]*)*)\s+(\S.*)$")
_ARTICLE = re.compile(r"^(?:The|A|An)\s+")
_NOT_SUBJECTS = {
    "It", "This", "That", "They", "These", "Those", "Both", "However", "While",
    "Whereas", "But", "In", "On", "For", "With", "When", "If", "Also", "Each",
    "Unlike", "Compared", "Similarly", "Then", "First", "Finally", "Overall",
}


def _cell(value: str) -> str:
    return value.replace("|", "\\|").strip() or "-"


def synthesize_comparison_table(text: str) -> str | None:
    """Build a markdown table from 'X does A while Y does B' style prose. None when it can't."""
    by_subject: dict[str, dict[str, list[str]]] = {}
    aspects: list[str] = []

    for sentence in _prose_sentences(text):
        for clause in _CONTRAST_SPLIT.split(sentence.rstrip(".!?")):
            clause = clause.strip()
            match = _SUBJECT.match(_ARTICLE.sub("", clause))
            if not match or match.group(1) in _NOT_SUBJECTS:
                continue
            subject, predicate = match.group(1), match.group(2).strip()
            verb, _, remainder = predicate.partition(" ")
            aspect = verb.lower()
            if aspect not in aspects:
                aspects.append(aspect)
            by_subject.setdefault(subject, {}).setdefault(aspect, []).append(remainder or predicate)

    subjects = list(by_subject)
    if len(subjects) < 2:
        return None

    rows = [
        "| Aspect | " + " | ".join(_cell(s) for s in subjects) + " |",
        "|" + "|".join("---" for _ in range(len(subjects) + 1)) + "|",
    ]
    for aspect in aspects:
        cells = [_cell("; ".join(by_subject[s].get(aspect, []))) for s in subjects]
        rows.append(f"| {aspect.capitalize()} | " + " | ".join(cells) + " |")
    return "\n".join(rows)


def format_comparison(text: str, pattern: FormatPattern) -> str:
    text = close_fences(text)
    tables = tu.find_tables(text)
    if tables:
        lines = text.splitlines()
        for table in reversed(tables):
            if not table.has_separator:
                lines.insert(table.start_line + 1, tu.separator_for(table.header))
        return "\n".join(lines)

    table = synthesize_comparison_table(text)
    if table:
        return f"{table}\n\n{text.strip()}"
    logger.debug("[AutoFormatter] Could not synthesize a table, appending template")
    return f"{text.rstrip()}\n\n{pattern.template or templates.TABLE_TEMPLATE}"


# =============================================================================
# CODE
# =============================================================================

LANGUAGE_SIGNATURES: list[tuple[str, re.Pattern]] = [
    ("json", re.compile(r"^\s*[\[{]\s*\"[\w-]+\"\s*:", re.DOTALL)),
    ("html", re.compile(r"<(?:!DOCTYPE|html|head|body|div|span|p|ul|li|script)\b", re.IGNORECASE)),
    ("python", re.compile(r"^\s*(?:def \w+\(|class \w+(?:\(.*\))?:|import \w+|from [\w.]+ import|print\(|elif )", re.MULTILINE)),
    ("typescript", re.compile(r"\binterface \w+\s*\{|:\s*(?:string|number|boolean)\b|\btype \w+\s*=")),
    ("java", re.compile(r"\bpublic\s+(?:static\s+)?(?:class|void|int|String)\b|System\.out\.println")),
    ("cpp", re.compile(r"#include\s*<|\bstd::|\bcout\s*<<")),
    ("go", re.compile(r"^package \w+|\bfunc \w+\(|\bfmt\.Print", re.MULTILINE)),
    ("rust", re.compile(r"\bfn \w+\(|\blet mut\b|println!")),
    ("javascript", re.compile(r"\b(?:const|let|var) \w+\s*=|\bfunction\s*\w*\s*\(|=>|console\.log|require\(")),
    ("sql", re.compile(r"\b(?:SELECT\b.+\bFROM|INSERT INTO|CREATE TABLE|UPDATE \w+ SET|DELETE FROM)\b", re.IGNORECASE | re.DOTALL)),
    ("bash", re.compile(r"^\s*(?:\$ |sudo |npm |pip |git |cd |echo |export |curl |docker |kubectl )", re.MULTILINE)),
    ("yaml", re.compile(r"^\s*[\w-]+:\s*\S.*\n\s*[\w-]+:", re.MULTILINE)),
]

_PROSE_LANGUAGES: list[tuple[str, re.Pattern]] = [
    ("typescript", re.compile(r"\bTypeScript\b", re.IGNORECASE)),
    ("javascript", re.compile(r"\bJavaScript\b|\bNode\.js\b", re.IGNORECASE)),
    ("python", re.compile(r"\bPython\b", re.IGNORECASE)),
    ("java", re.compile(r"\bJava\b")),
    ("cpp", re.compile(r"C\+\+")),
    ("go", re.compile(r"\bGolang\b", re.IGNORECASE)),
    ("rust", re.compile(r"\bRust\b")),
    ("sql", re.compile(r"\bSQL\b")),
    ("bash", re.compile(r"\b(?:Bash|shell)\b", re.IGNORECASE)),
]

DEFAULT_LANGUAGE = "text"


def infer_language(code: str, context: str = "") -> str:
    """Best guess at a fence language from the code, then from surrounding prose."""
    for language, signature in LANGUAGE_SIGNATURES:
        if signature.search(code):
            return language
    for language, mention in _PROSE_LANGUAGES:
        if mention.search(context):
            return language
    return DEFAULT_LANGUAGE


def format_code(text: str, pattern: FormatPattern) -> str:
    """Tag bare fences with an inferred language and close unterminated fences."""
    blocks = tu.find_code_blocks(text)
    if not blocks:
        return text

    lines = text.splitlines()
    code = tu.code_line_indexes(text)
    context = "\n".join(line for i, line in enumerate(lines) if i not in code)
    for block in blocks:
        match = _BARE_FENCE.match(lines[block.start_line])
        if match:
            language = infer_language("\n".join(block.body), context)
            lines[block.start_line] = f"{match.group(1)}{match.group(2)}{language}"
    return close_fences("\n".join(lines))


# =============================================================================
# PROS / CONS
# =============================================================================

_PRO_LABEL = re.compile(r"^(?:pros|advantages|benefits)\s*:\s*", re.IGNORECASE)
_CON_LABEL = re.compile(r"^(?:cons|disadvantages|drawbacks)\s*:\s*", re.IGNORECASE)
_CON_TRANSITION = re.compile(
    r"^(?:however|on the other hand|but|in contrast|conversely|on the downside)\b"
    r"|\b(?:disadvantages?|drawbacks?|downsides?|limitations?)\b",
    re.IGNORECASE,
)


def split_pros_cons(units: list[str]) -> tuple[list[str], list[str]]:
    """Split sentences into two halves at the first con cue; explicit labels switch sides."""
    pros: list[str] = []
    cons: list[str] = []
    side = pros
    for unit in units:
        if _PRO_LABEL.match(unit):
            side, unit = pros, _PRO_LABEL.sub("", unit)
        elif _CON_LABEL.match(unit):
            side, unit = cons, _CON_LABEL.sub("", unit)
        elif side is pros and _CON_TRANSITION.search(unit):
            side = cons
        if unit.strip():
            side.append(unit.strip())
    return pros, cons


def _side_label(line: str) -> str | None:
    """'Advantages:' / 'Disadvantages:' for an existing pros or cons heading."""
    found = tu.headings(line)
    if not found:
        return None
    if ADVANTAGES_TITLE.search(found[0].title):
        return "Advantages:"
    if DISADVANTAGES_TITLE.search(found[0].title):
        return "Disadvantages:"
    return None


def _fold_list(lines: list[str], units: list[str], kept: list[_Block]) -> None:
    if not lines:
        return
    if all(tu.is_list_line(line) for line in lines):
        units.extend(_TOP_LEVEL_BULLET.sub(r"\1", line.strip()) for line in lines)
    else:
        kept.append(_Block(KEEP, lines))


def format_pros_cons(text: str, pattern: FormatPattern) -> str:
    titles = [h.title for h in tu.headings(text)]
    has_pros = any(ADVANTAGES_TITLE.search(t) for t in titles)
    has_cons = any(DISADVANTAGES_TITLE.search(t) for t in titles)
    if has_pros and has_cons:
        return bulletize(text, after_heading_only=True)

    # an existing pros or cons heading becomes a side label, so its
    # content lands on the right side and the heading is not repeated
    units: list[str] = []
    kept: list[_Block] = []
    for block in _segment(normalize_bullets(text)):
        if block.kind == PROSE:
            units.extend(tu.split_sentences(block.text))
            continue
        if block.kind == CODE:
            kept.append(block)
            continue
        pending: list[str] = []
        for line in block.lines:
            label = _side_label(line)
            if label is None:
                pending.append(line)
                continue
            _fold_list(pending, units, kept)
            pending = []
            units.append(label)
        _fold_list(pending, units, kept)

    pros, cons = split_pros_cons(units)
    blocks = [
        _Block(KEEP, ["## Advantages"]),
        _Block(KEEP, [f"- {p}" for p in pros] or [f"- {PLACEHOLDER_ITEM}"]),
        _Block(KEEP, ["## Disadvantages"]),
        _Block(KEEP, [f"- {c}" for c in cons] or [f"- {PLACEHOLDER_ITEM}"]),
    ]
    return _render(blocks + kept)


# =============================================================================
# ARCHITECTURE / TROUBLESHOOTING
# =============================================================================


def format_architecture(text: str, pattern: FormatPattern) -> str:
    text = close_fences(text)
    if any(b.language == "mermaid" for b in tu.find_code_blocks(text)):
        return text
    return f"{text.rstrip()}\n\n{templates.DIAGRAM_TEMPLATE}"


TROUBLESHOOTING_SECTIONS = ("Problem", "Causes", "Solutions")

_CAUSE_CUE = re.compile(
    r"\b(?:because|caused?|due to|occurs? when|happens? when|results? from|reasons?|root cause)\b",
    re.IGNORECASE,
)


def _solutions_numbered(text: str) -> str:
    lines = text.splitlines()
    found = tu.headings(text)
    solutions = section_title_regex("Solutions")
    for idx, heading in enumerate(found):
        if solutions.search(heading.title):
            end = len(lines)
            for later in found[idx + 1 :]:
                if later.level <= heading.level:
                    end = later.line
                    break
            body = number_steps("\n".join(lines[heading.line + 1 : end]))
            rebuilt = lines[: heading.line + 1] + ([""] + body.splitlines() if body else [])
            if end < len(lines):
                rebuilt += [""] + lines[end:]
            return "\n".join(rebuilt)
    return text


def format_troubleshooting(text: str, pattern: FormatPattern) -> str:
    titles = [h.title for h in tu.headings(text)]
    present = [
        name for name in TROUBLESHOOTING_SECTIONS
        if any(section_title_regex(name).search(t) for t in titles)
    ]

    if present:
        missing = [s for s in TROUBLESHOOTING_SECTIONS if s not in present]
        scaffold = [close_fences(text).rstrip()]
        for name in missing:
            item = f"1. {PLACEHOLDER_ITEM}" if name == "Solutions" else f"- {PLACEHOLDER_ITEM}"
            scaffold.append(f"## {name}\n\n{item}")
        return _solutions_numbered("\n\n".join(scaffold))

    sentences: list[str] = []
    kept: list[_Block] = []
    for block in _segment(text):
        if block.kind == PROSE:
            sentences.extend(tu.split_sentences(block.text))
        else:
            kept.append(block)
    if not sentences:
        return text

    problem, remaining = sentences[0], sentences[1:]
    causes = [s for s in remaining if _CAUSE_CUE.search(s)]
    solutions = [s for s in remaining if not _CAUSE_CUE.search(s)]
    blocks = [
        _Block(KEEP, ["## Problem"]),
        _Block(PROSE, [problem]),
        _Block(KEEP, ["## Causes"]),
        _Block(KEEP, [f"- {c}" for c in causes] or [f"- {PLACEHOLDER_ITEM}"]),
        _Block(KEEP, ["## Solutions"]),
        _Block(KEEP, [f"{i}. {s}" for i, s in enumerate(solutions, 1)] or [f"1. {PLACEHOLDER_ITEM}"]),
    ]
    return _render(blocks + kept)


TRANSFORMS: dict[SectionFormat, Callable[[str, FormatPattern], str]] = {
    SectionFormat.TABLE: format_comparison,
    SectionFormat.TEXT: format_definition,
    SectionFormat.LIST: format_list,
    SectionFormat.PROCESS: format_process,
    SectionFormat.CODE: format_code,
    SectionFormat.PROS_CONS: format_pros_cons,
    SectionFormat.DIAGRAM: format_architecture,
    SectionFormat.TROUBLESHOOTING: format_troubleshooting,
}
