"""
Markdown text helpers shared by the validator and the formatter.

Everything here is line-based and regex-driven: sentence splitting,
bullet and numbered-step extraction, table detection, fenced code
blocks, and headings. Fenced code is skipped by the list, table and
heading helpers so code never counts as prose structure.
"""

import re
from dataclasses import dataclass, field

# =============================================================================
# SENTENCES
# =============================================================================

_ABBREVIATION = re.compile(
    r"\b(?:Mr|Mrs|Ms|Dr|Prof|Sr|Jr|St|vs|etc|approx|i\.e|e\.g)\.", re.IGNORECASE
)
_DECIMAL_POINT = re.compile(r"(?<=\d)\.(?=\d)")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_PROTECTED_DOT = "\x00"


def split_sentences(text: str | None) -> list[str]:
    """Split prose into sentences, ignoring abbreviations (e.g., Dr.) and decimals."""
    if not text or not text.strip():
        return []
    protected = _ABBREVIATION.sub(lambda m: m.group(0).replace(".", _PROTECTED_DOT), text)
    protected = _DECIMAL_POINT.sub(_PROTECTED_DOT, protected)
    protected = " ".join(protected.split())
    return [
        part.replace(_PROTECTED_DOT, ".").strip()
        for part in _SENTENCE_BREAK.split(protected)
        if part.strip()
    ]


def count_sentences(text: str | None) -> int:
    return len(split_sentences(text))


# =============================================================================
# CODE FENCES
# =============================================================================

_FENCE = re.compile(r"^\s*(```+|~~~+)\s*([^\s`]*)")


@dataclass
class CodeBlock:
    """A fenced block. end_line is None when the fence is never closed."""

    language: str
    start_line: int
    end_line: int | None
    body: list[str] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.end_line is not None


def find_code_blocks(text: str) -> list[CodeBlock]:
    blocks: list[CodeBlock] = []
    current: CodeBlock | None = None
    for i, line in enumerate(text.splitlines()):
        match = _FENCE.match(line)
        if current is None:
            if match:
                current = CodeBlock(language=match.group(2).lower(), start_line=i, end_line=None)
                blocks.append(current)
        elif match:
            current.end_line = i
            current = None
        else:
            current.body.append(line)
    return blocks


def code_line_indexes(text: str) -> set[int]:
    """Line numbers that are fences or inside fenced blocks."""
    inside: set[int] = set()
    total = len(text.splitlines())
    for block in find_code_blocks(text):
        end = block.end_line if block.end_line is not None else total - 1
        inside.update(range(block.start_line, end + 1))
    return inside


def prose_lines(text: str) -> list[tuple[int, str]]:
    """(index, line) pairs outside fenced code."""
    skip = code_line_indexes(text)
    return [(i, line) for i, line in enumerate(text.splitlines()) if i not in skip]


# =============================================================================
# LISTS
# =============================================================================

NONSTANDARD_BULLETS = "•·‣⁃"
_BULLET = re.compile(r"^(\s*)([-*+])\s+(\S.*)$")
_GLYPH_BULLET = re.compile(r"^(\s*)([" + NONSTANDARD_BULLETS + r"])\s*(\S.*)$")
_UNSPACED_DASH = re.compile(r"^(\s*)(-)([A-Za-z].*)$")
_NUMBERED = re.compile(r"^\s*(\d+)[.)]\s+(\S.*)$")


@dataclass
class ListItem:
    """One bullet line. proper is False for unspaced dashes and non-standard glyphs."""

    line: int
    marker: str
    text: str
    proper: bool


def list_items(text: str) -> list[ListItem]:
    items = []
    for i, line in prose_lines(text):
        if line.strip().startswith(("**", "---", "***")):
            continue
        match = _BULLET.match(line)
        if match:
            items.append(ListItem(i, match.group(2), match.group(3).strip(), True))
            continue
        match = _GLYPH_BULLET.match(line) or _UNSPACED_DASH.match(line)
        if match:
            items.append(ListItem(i, match.group(2), match.group(3).strip(), False))
    return items


def is_list_line(line: str) -> bool:
    return bool(_BULLET.match(line) or _GLYPH_BULLET.match(line))


@dataclass
class NumberedStep:
    line: int
    number: int
    text: str


def numbered_steps(text: str) -> list[NumberedStep]:
    steps = []
    for i, line in prose_lines(text):
        match = _NUMBERED.match(line)
        if match:
            steps.append(NumberedStep(i, int(match.group(1)), match.group(2).strip()))
    return steps


def is_numbered_line(line: str) -> bool:
    return bool(_NUMBERED.match(line))


# =============================================================================
# TABLES
# =============================================================================

_SEPARATOR_CELL = re.compile(r"^:?-+:?$")


def is_table_row(line: str) -> bool:
    stripped = line.strip()
    if not stripped or "|" not in stripped:
        return False
    if stripped.startswith("|") and stripped.endswith("|"):
        return True
    return stripped.replace("||", "").count("|") >= 2


def split_cells(line: str) -> list[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [cell.strip() for cell in stripped.split("|")]


def is_separator_row(line: str) -> bool:
    if "|" not in line:
        return False
    cells = split_cells(line)
    return bool(cells) and all(_SEPARATOR_CELL.match(c) for c in cells)


@dataclass
class Table:
    """A contiguous run of table rows."""

    start_line: int
    lines: list[str]

    @property
    def header(self) -> str:
        return self.lines[0]

    @property
    def has_separator(self) -> bool:
        return len(self.lines) > 1 and is_separator_row(self.lines[1])

    @property
    def column_count(self) -> int:
        return len(split_cells(self.header))


def find_tables(text: str) -> list[Table]:
    tables: list[Table] = []
    current: Table | None = None
    previous = -2
    for i, line in prose_lines(text):
        if is_table_row(line):
            if current is not None and i == previous + 1:
                current.lines.append(line)
            else:
                current = Table(start_line=i, lines=[line])
                tables.append(current)
            previous = i
        else:
            current = None
    return tables


def separator_for(header_line: str) -> str:
    return "|" + "|".join("---" for _ in split_cells(header_line)) + "|"


# =============================================================================
# HEADINGS AND PARAGRAPHS
# =============================================================================

_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")


@dataclass
class Heading:
    line: int
    level: int
    title: str


def headings(text: str) -> list[Heading]:
    found = []
    for i, line in prose_lines(text):
        match = _HEADING.match(line)
        if match:
            found.append(Heading(i, len(match.group(1)), match.group(2).strip()))
    return found


def is_heading(line: str) -> bool:
    return bool(_HEADING.match(line))


def is_structural_line(line: str) -> bool:
    """Headings, bullets, numbered steps, table rows and fences."""
    return (
        is_heading(line)
        or is_list_line(line)
        or is_numbered_line(line)
        or is_table_row(line)
        or bool(_FENCE.match(line))
    )


def first_paragraph(text: str) -> tuple[int, int, str]:
    """(first line, last line, text) of the first non-heading paragraph, or (-1, -1, "")."""
    lines = text.splitlines()
    start = next(
        (i for i, line in enumerate(lines) if line.strip() and not is_heading(line)),
        -1,
    )
    if start < 0:
        return -1, -1, ""
    end = start
    if not is_structural_line(lines[start]):
        while end + 1 < len(lines) and lines[end + 1].strip() and not is_structural_line(lines[end + 1]):
            end += 1
    return start, end, " ".join(line.strip() for line in lines[start : end + 1])


def section_body(text: str, title_regex: re.Pattern) -> str | None:
    """Text under the first heading whose title matches, up to the next heading of the same or higher level."""
    lines = text.splitlines()
    found = headings(text)
    for idx, heading in enumerate(found):
        if title_regex.search(heading.title):
            end = len(lines)
            for later in found[idx + 1 :]:
                if later.level <= heading.level:
                    end = later.line
                    break
            return "\n".join(lines[heading.line + 1 : end])
    return None
