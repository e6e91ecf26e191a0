"""
LanguageConsistencyChecker -- compares code examples written in different languages.

An answer that shows the same idea in Python and JavaScript should show the
same idea: similar structure, similar size, explained the same way, and
visibly separated so a reader knows where one language ends.

Usage:
    checker = LanguageConsistencyChecker()
    result = checker.check(answer)
    if not result.is_consistent:
        for v in result.violations:
            print(v.message)

Only closed, non-empty fences labeled with a programming language take part.
Config, shell, markup and diagram blocks are ignored. Fewer than two distinct
languages means there is nothing to compare and the answer is consistent.
"""

import logging
import re
from dataclasses import dataclass, field
from itertools import combinations

from . import text_utils as tu
from .models import Severity, ValidationViolation

logger = logging.getLogger(__name__)

PENALTY_PER_VIOLATION = 15
MIN_EXPLANATION_LENGTH = 20
MAX_LINE_COUNT_RATIO = 0.5
MAX_COMPLEXITY_GAP = 2

NON_PROGRAMMING = frozenset({
    "", "text", "txt", "plain", "plaintext", "mermaid", "json", "yaml", "yml",
    "bash", "sh", "shell", "zsh", "console", "powershell", "sql", "html", "css",
    "markdown", "md", "xml", "toml", "ini", "diff", "dockerfile", "graphql",
})

LANGUAGE_ALIASES = {
    "js": "javascript",
    "jsx": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "python3": "python",
    "cs": "csharp",
    "c#": "csharp",
    "golang": "go",
    "rb": "ruby",
    "rs": "rust",
    "kt": "kotlin",
    "c++": "cpp",
}

# Words that tie an explanation to one language. A language without an entry
# is matched by its own name and aliases.
LANGUAGE_TERMS = {
    "javascript": ("javascript", "js", "node", "npm", "react", "vue"),
    "typescript": ("typescript", "ts", "tsc", "interface", "type annotation"),
    "python": ("python", "py", "pip", "django", "flask", "pandas"),
    "java": ("java", "jvm", "spring", "maven", "gradle"),
    "csharp": ("c#", "csharp", ".net", "dotnet", "linq"),
    "go": ("go", "golang", "goroutine", "channel"),
    "rust": ("rust", "cargo", "borrow checker", "crate"),
    "ruby": ("ruby", "rails", "gem"),
}

_CLASS = re.compile(r"\b(?:class|struct|interface|trait)\b")
_FUNCTION = re.compile(
    r"\bdef\s+\w+"
    r"|\bfunction\b\s*\w*\s*\("
    r"|\bfunc\s+(?:\([^)]*\)\s*)?\w+\s*\("
    r"|\bfn\s+\w+"
    r"|\bfun\s+\w+"
    r"|\w+\s*=\s*(?:async\s*)?\([^)]*\)\s*=>"
    r"|^\s*(?:(?:public|private|protected|static|final|async|virtual|override|abstract|internal)\s+)+"
    r"[\w<>\[\],]+\s+\w+\s*\("
    r"|^\s*(?!(?:if|else|for|while|switch|return|catch|new)\b)[A-Za-z_][\w<>\[\]*:]*\s+\*?[A-Za-z_]\w*\s*\([^;]*\)\s*\{\s*$"
)
_LOOP = re.compile(r"\b(?:for|while|foreach|loop)\b|\.(?:forEach|each|map)\b")
_CONDITIONAL = re.compile(r"\b(?:if|elif|unless|switch)\b|^\s*(?:match|case)\b")


# =============================================================================
# MODELS
# =============================================================================


@dataclass
class CodeStructure:
    """Line counts of each construct in one example."""

    lines: int = 0
    classes: int = 0
    functions: int = 0
    loops: int = 0
    conditionals: int = 0

    @property
    def complexity(self) -> int:
        return (
            2 * self.classes + 2 * self.functions
            + self.loops + self.conditionals + self.lines // 5
        )


@dataclass
class CodeExample:
    language: str
    start_line: int
    end_line: int
    code: str
    structure: CodeStructure


@dataclass
class LanguageComparison:
    language1: str
    language2: str
    differences: list[str] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.differences

    @property
    def similarity(self) -> float:
        return round(max(0.0, 1 - len(self.differences) / 7), 2)

    def to_dict(self) -> dict:
        return {
            "language1": self.language1,
            "language2": self.language2,
            "is_consistent": self.is_consistent,
            "similarity": self.similarity,
            "differences": list(self.differences),
        }


@dataclass
class ConsistencyResult:
    """Outcome of checking one answer's multi-language examples."""

    score: int = 100
    languages: list[str] = field(default_factory=list)
    violations: list[ValidationViolation] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    comparisons: list[LanguageComparison] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "is_consistent": self.is_consistent,
            "score": self.score,
            "languages": list(self.languages),
            "violations": [v.to_dict() for v in self.violations],
            "suggestions": list(self.suggestions),
            "comparisons": [c.to_dict() for c in self.comparisons],
        }


# =============================================================================
# HELPERS
# =============================================================================


def normalize_language(label: str) -> str:
    label = label.strip().lower()
    return LANGUAGE_ALIASES.get(label, label)


def analyze_structure(code: str) -> CodeStructure:
    structure = CodeStructure()
    for line in code.splitlines():
        if not line.strip():
            continue
        structure.lines += 1
        structure.classes += bool(_CLASS.search(line))
        structure.functions += bool(_FUNCTION.search(line))
        structure.loops += bool(_LOOP.search(line))
        structure.conditionals += bool(_CONDITIONAL.search(line))
    return structure


def _names(language: str) -> list[str]:
    return [language] + [alias for alias, canon in LANGUAGE_ALIASES.items() if canon == language]


def _mentions(text: str, terms) -> bool:
    lowered = text.lower()
    return any(
        re.search(r"(?<!\w)" + re.escape(term) + r"(?!\w)", lowered)
        for term in terms
    )


def _paragraphs(lines: list[str]) -> list[str]:
    chunks = re.split(r"\n\s*\n", "\n".join(lines))
    return [c.strip() for c in chunks if c.strip()]


# =============================================================================
# CHECKER
# =============================================================================


class LanguageConsistencyChecker:
    """Pairwise comparison of code examples that use different languages."""

    def extract_examples(self, answer: str | None) -> list[CodeExample]:
        if not answer:
            return []
        examples = []
        for block in tu.find_code_blocks(answer):
            language = normalize_language(block.language)
            code = "\n".join(block.body)
            if not block.is_closed or language in NON_PROGRAMMING or not code.strip():
                continue
            examples.append(CodeExample(
                language=language,
                start_line=block.start_line,
                end_line=block.end_line,
                code=code,
                structure=analyze_structure(code),
            ))
        return examples

    def check(self, answer: str | None) -> ConsistencyResult:
        examples = self.extract_examples(answer)
        languages = list(dict.fromkeys(e.language for e in examples))
        result = ConsistencyResult(languages=languages)
        if len(languages) < 2:
            return result

        lines = answer.splitlines()
        code_lines = tu.code_line_indexes(answer)

        def prose_between(start: int, end: int) -> list[str]:
            return [lines[i] for i in range(start, end) if i not in code_lines]

        self._compare_pairs(examples, result)
        self._check_explanations(examples, prose_between, len(lines), result)
        self._check_separation(examples, prose_between, result)

        result.score = max(0, 100 - PENALTY_PER_VIOLATION * len(result.violations))
        logger.debug(
            f"[LanguageConsistency] {', '.join(languages)}: "
            f"{len(result.violations)} violations, score {result.score}"
        )
        return result

    def compare(self, first: CodeExample, second: CodeExample) -> LanguageComparison:
        a, b = first.structure, second.structure
        comparison = LanguageComparison(first.language, second.language)
        differences = comparison.differences

        for construct in ("classes", "functions", "loops", "conditionals"):
            has_a, has_b = getattr(a, construct) > 0, getattr(b, construct) > 0
            if has_a != has_b:
                differences.append(
                    f"{construct} used in {first.language if has_a else second.language} only"
                )

        if abs(a.lines - b.lines) / max(a.lines, b.lines) > MAX_LINE_COUNT_RATIO:
            differences.append(
                f"line count differs ({first.language}: {a.lines}, {second.language}: {b.lines})"
            )
        if a.functions and b.functions and a.functions != b.functions:
            differences.append(
                f"function count differs ({first.language}: {a.functions}, "
                f"{second.language}: {b.functions})"
            )
        if abs(a.complexity - b.complexity) > MAX_COMPLEXITY_GAP:
            differences.append(
                f"complexity differs ({first.language}: {a.complexity}, "
                f"{second.language}: {b.complexity})"
            )
        return comparison

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def _compare_pairs(self, examples: list[CodeExample], result: ConsistencyResult) -> None:
        for first, second in combinations(examples, 2):
            if first.language == second.language:
                continue
            comparison = self.compare(first, second)
            result.comparisons.append(comparison)
            if comparison.is_consistent:
                continue
            result.violations.append(ValidationViolation(
                rule="language-consistency-structure",
                severity=Severity.WARNING,
                message=(
                    f"The {first.language} and {second.language} examples differ: "
                    + "; ".join(comparison.differences)
                ),
                fix="Show the same approach in every language, with comparable structure and length",
                check="structure",
                location=f"{first.language} vs {second.language}",
            ))

    def _check_explanations(self, examples, prose_between, total_lines, result) -> None:
        specific, generic, missing = [], [], []
        for i, example in enumerate(examples):
            before_start = examples[i - 1].end_line + 1 if i else 0
            after_end = examples[i + 1].start_line if i + 1 < len(examples) else total_lines
            before = _paragraphs(prose_between(before_start, example.start_line))
            after = _paragraphs(prose_between(example.end_line + 1, after_end))
            explanation = " ".join(filter(None, [before[-1] if before else "", after[0] if after else ""]))

            terms = LANGUAGE_TERMS.get(example.language, tuple(_names(example.language)))
            (specific if _mentions(explanation, terms) else generic).append(example.language)
            if len(explanation.strip()) < MIN_EXPLANATION_LENGTH:
                missing.append(example.language)

        if specific and generic:
            result.violations.append(ValidationViolation(
                rule="language-consistency-explanation",
                severity=Severity.WARNING,
                message=(
                    f"Explanations are language-specific for {', '.join(dict.fromkeys(specific))} "
                    f"but generic for {', '.join(dict.fromkeys(generic))}"
                ),
                fix="Explain every example the same way: all language-specific or all generic",
                check="explanation",
            ))
        if missing:
            result.violations.append(ValidationViolation(
                rule="language-consistency-missing-explanation",
                severity=Severity.WARNING,
                message=f"Missing or too short explanation for the {', '.join(dict.fromkeys(missing))} examples",
                fix="Introduce each code example with a sentence about what it shows",
                check="missing-explanation",
            ))

    def _check_separation(self, examples, prose_between, result) -> None:
        for prev, nxt in zip(examples, examples[1:]):
            if prev.language == nxt.language:
                continue
            between = "\n".join(prose_between(prev.end_line + 1, nxt.start_line))
            if not between.strip():
                result.violations.append(ValidationViolation(
                    rule="language-consistency-separation",
                    severity=Severity.WARNING,
                    message=f"The {prev.language} and {nxt.language} examples follow each other with no text between them",
                    fix=f'Add a line such as "In {nxt.language}:" before the second example',
                    check="separation",
                    location=f"{prev.language} -> {nxt.language}",
                ))
            elif not self._has_transition(between, nxt.language):
                result.suggestions.append(
                    f'Add a transition such as "In {nxt.language}:" between the '
                    f"{prev.language} and {nxt.language} examples"
                )

    @staticmethod
    def _has_transition(text: str, language: str) -> bool:
        lowered = text.lower()
        cues = ["alternatively", "similarly", "in contrast", "by comparison"]
        for name in _names(language):
            cues += [f"in {name}", f"{name} equivalent", f"{name} version", f"using {name}", f"{name}:"]
        return any(cue in lowered for cue in cues)
