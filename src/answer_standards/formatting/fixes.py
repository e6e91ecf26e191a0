"""
Fix suggestion and single-fix application.

suggest_fixes maps each violation (by its check name) to candidate Fix
objects, least destructive first: targeted replace/insert edits, then a
content-preserving restructure when the answer is available, then a
whole-answer template. Violations with no mechanical fix get an empty
list and a manual description.

apply_fix dispatches on FixType. Unknown types and anchors are a no-op.
"""

import logging
from typing import Callable

from ..patterns import templates
from ..patterns.models import FormatPattern
from ..validation import text_utils as tu
from ..validation.models import ValidationResult, ValidationViolation
from .models import SEVERITY_PRIORITY, Fix, FixSuggestion, FixType, InsertAnchor
from .transforms import PLACEHOLDER_ITEM, TRANSFORMS, infer_language, normalize_bullets

logger = logging.getLogger(__name__)

CONTENT = "content"


# =============================================================================
# SUGGEST
# =============================================================================


def _restructure(v: ValidationViolation, answer: str | None, pattern: FormatPattern | None) -> list[Fix]:
    """A reformat fix carrying the transformed answer, when it differs from the input."""
    if not answer or pattern is None or not pattern.sections:
        return []
    transform = TRANSFORMS.get(pattern.sections[0].format)
    if transform is None:
        return []
    restructured = transform(answer, pattern)
    if restructured == answer:
        return []
    return [Fix(
        id=f"fix-{v.rule}-restructure",
        type=FixType.REFORMAT,
        description=f"Restructure the answer as {pattern.name}",
        target=CONTENT,
        replacement=restructured,
    )]


def _template(v: ValidationViolation, template: str, description: str) -> Fix:
    return Fix(
        id=f"fix-{v.rule}-template",
        type=FixType.REFORMAT,
        description=description,
        target=CONTENT,
        replacement=template,
    )


def _append(v: ValidationViolation, text: str, description: str) -> Fix:
    return Fix(
        id=f"fix-{v.rule}",
        type=FixType.INSERT,
        description=description,
        target=InsertAnchor.END,
        replacement=text,
    )


def _table_required(v, answer, pattern):
    return _restructure(v, answer, pattern) + [
        _append(v, templates.TABLE_TEMPLATE, "Append a comparison table template"),
        _template(v, templates.TABLE_TEMPLATE, "Replace the answer with a comparison table template"),
    ]


def _table_headers(v, answer, pattern):
    separator = tu.separator_for(v.location) if v.location else "|---|---|---|"
    return [Fix(
        id=f"fix-{v.rule}",
        type=FixType.INSERT,
        description="Add table header separator",
        target=InsertAnchor.AFTER_FIRST_TABLE_ROW,
        replacement=separator,
    )]


def _bullet_syntax(v, answer, pattern):
    fixes = []
    if v.location:
        normalized = normalize_bullets(v.location)
        if normalized != v.location:
            fixes.append(Fix(
                id=f"fix-{v.rule}",
                type=FixType.REPLACE,
                description="Use '- ' as the bullet marker",
                target=v.location,
                replacement=normalized,
            ))
    return fixes + _restructure(v, answer, pattern)


def _list_required(v, answer, pattern):
    return _restructure(v, answer, pattern) + [
        _template(v, templates.LIST_TEMPLATE, "Replace the answer with a bulleted list template"),
    ]


def _process_required(v, answer, pattern):
    return _restructure(v, answer, pattern) + [
        _template(v, templates.PROCESS_TEMPLATE, "Replace the answer with a numbered steps template"),
    ]


def _code_required(v, answer, pattern):
    return [_append(v, templates.CODE_TEMPLATE, "Append a fenced code block")]


def _code_language(v, answer, pattern):
    if not v.location:
        return []
    fence, _, following = v.location.partition("\n")
    code = following
    if answer:
        bare = [b for b in tu.find_code_blocks(answer) if not b.language]
        if bare:
            code = "\n".join(bare[0].body)
    language = infer_language(code, answer or "")
    replacement = fence.rstrip() + language + ("\n" + following if "\n" in v.location else "")
    return [Fix(
        id=f"fix-{v.rule}",
        type=FixType.REPLACE,
        description=f"Add language identifier '{language}' to code block",
        target=v.location,
        replacement=replacement,
    )]


def _incomplete_block(v, answer, pattern):
    return [_append(v, "```", "Close the open code block")]


def _blank_line(v, answer, pattern):
    return [Fix(
        id=f"fix-{v.rule}",
        type=FixType.INSERT,
        description="Add blank line after definition",
        target=InsertAnchor.AFTER_FIRST_LINE,
        replacement="",
    )]


def _missing_sections(v, answer, pattern):
    names = [n for n in v.location.split(",") if n] if v.location else []
    scaffold = "\n\n".join(
        f"## {name}\n\n" + (f"1. {PLACEHOLDER_ITEM}" if name.lower().startswith("solution") else f"- {PLACEHOLDER_ITEM}")
        for name in names
    )
    fixes = _restructure(v, answer, pattern)
    if scaffold:
        fixes.insert(0, _append(v, scaffold, f"Add missing section(s): {', '.join(names)}"))
    return fixes


def _diagram_required(v, answer, pattern):
    return [_append(v, templates.DIAGRAM_TEMPLATE, "Add Mermaid diagram")]


FixBuilder = Callable[[ValidationViolation, str | None, FormatPattern | None], list[Fix]]

FIX_BUILDERS: dict[str, FixBuilder] = {
    "table-required": _table_required,
    "table-headers": _table_headers,
    "list-required": _list_required,
    "bullet-syntax": _bullet_syntax,
    "process-required": _process_required,
    "sequence-numbering": _restructure,
    "code-required": _code_required,
    "code-language": _code_language,
    "incomplete-block": _incomplete_block,
    "single-sentence": _restructure,
    "blank-line": _blank_line,
    "bulleted-list-required": _restructure,
    "missing-sections": _missing_sections,
    "list-format": _restructure,
    "solutions-numbered": _restructure,
    "diagram-required": _diagram_required,
}


def describe(violation: ValidationViolation, fixes: list[Fix]) -> str:
    severity = violation.severity.value
    if not fixes:
        return (
            f"No automatic fix for {severity} issue: {violation.message}. "
            f"Manual fix: {violation.fix or 'review the answer'}"
        )
    count = len(fixes)
    description = f"{count} fix{'es' if count > 1 else ''} available for {severity} issue: {violation.message}"
    steps = "\n".join(f"{i}. {fix.description}" for i, fix in enumerate(fixes, 1))
    return f"{description}\n\nSuggested fixes:\n{steps}"


def suggest_fixes(
    result: ValidationResult,
    answer_text: str | None = None,
    pattern: FormatPattern | None = None,
) -> list[FixSuggestion]:
    """Ranked fix suggestions, errors first. Violation order is kept within a severity."""
    suggestions = []
    for violation in result.violations:
        builder = FIX_BUILDERS.get(violation.check)
        fixes = builder(violation, answer_text, pattern) if builder else []
        suggestions.append(FixSuggestion(
            violation=violation,
            fixes=fixes,
            priority=SEVERITY_PRIORITY.get(violation.severity, 10),
            description=describe(violation, fixes),
        ))
    suggestions.sort(key=lambda s: -s.priority)
    return suggestions


# =============================================================================
# APPLY
# =============================================================================


def _insert(answer: str, fix: Fix) -> str:
    replacement = fix.replacement or ""
    if fix.target == InsertAnchor.END:
        return f"{answer}\n\n{replacement}"

    lines = answer.split("\n")
    if fix.target == InsertAnchor.AFTER_FIRST_LINE:
        lines.insert(1, replacement)
        return "\n".join(lines)
    if fix.target == InsertAnchor.AFTER_FIRST_TABLE_ROW:
        for i, line in enumerate(lines):
            if "|" in line:
                lines.insert(i + 1, replacement)
                break
        return "\n".join(lines)

    logger.debug(f"[AutoFormatter] Unknown insert anchor '{fix.target}', skipping")
    return answer


def _replace(answer: str, fix: Fix) -> str:
    if not fix.target or fix.replacement is None:
        return answer
    return answer.replace(fix.target, fix.replacement)


def _remove(answer: str, fix: Fix) -> str:
    if not fix.target:
        return answer
    return answer.replace(fix.target, "", 1)


def _reformat(answer: str, fix: Fix) -> str:
    return answer if fix.replacement is None else fix.replacement


APPLIERS: dict[FixType, Callable[[str, Fix], str]] = {
    FixType.REPLACE: _replace,
    FixType.INSERT: _insert,
    FixType.REMOVE: _remove,
    FixType.REFORMAT: _reformat,
}


def apply_fix(answer_text: str | None, fix: Fix) -> str | None:
    """Apply one fix. An unrecognized fix type returns the answer unchanged."""
    if answer_text is None:
        return None
    try:
        fix_type = fix.type if isinstance(fix.type, FixType) else FixType(fix.type)
    except ValueError:
        logger.debug(f"[AutoFormatter] Unknown fix type '{fix.type}' for {fix.id}, skipping")
        return answer_text
    return APPLIERS[fix_type](answer_text, fix)
