"""Tests for FormatValidator -- per-pattern validation and scoring."""

import pytest

from answer_standards.patterns.models import FormatPattern
from answer_standards.validation.models import ScoringPolicy, Severity, ValidationViolation
from answer_standards.validation.validator import FormatValidator


def rules(result):
    return [v.rule for v in result.violations]


class TestPermissiveInputs:
    """Absent input never raises and never fails."""

    @pytest.mark.parametrize("answer", [None, "", "   \n\t"])
    def test_empty_answer(self, validator, pattern, answer):
        result = validator.validate(answer, pattern("comparison-table"))
        assert result.is_valid
        assert result.score == 100
        assert result.violations == []

    def test_no_pattern(self, validator):
        result = validator.validate("anything", None)
        assert result.is_valid and result.score == 100

    def test_pattern_without_sections(self, validator):
        bare = FormatPattern(id="bare", name="Bare", keywords=("x",), priority=1)
        assert validator.validate("anything", bare).score == 100


class TestComparisonTable:
    """Comparison answers need a table with headers and two or more columns."""

    def test_valid_table(self, validator, pattern):
        answer = "| Aspect | REST | GraphQL |\n|---|---|---|\n| Endpoints | many | one |"
        result = validator.validate(answer, pattern("comparison-table"))
        assert result.is_valid
        assert result.score == 100

    def test_missing_table(self, validator, pattern):
        answer = "REST uses multiple endpoints while GraphQL uses a single endpoint."
        result = validator.validate(answer, pattern("comparison-table"))
        assert rules(result) == ["comparison-table-required"]
        assert result.violations[0].severity is Severity.ERROR
        assert result.score == 75
        assert not result.is_valid

    def test_missing_separator(self, validator, pattern):
        answer = "| Aspect | REST | GraphQL |\n| Endpoints | many | one |"
        result = validator.validate(answer, pattern("comparison-table"))
        assert rules(result) == ["comparison-table-table-headers"]
        assert result.score == 75

    def test_single_column(self, validator, pattern):
        answer = "| Only |\n|---|\n| one |"
        result = validator.validate(answer, pattern("comparison-table"))
        assert rules(result) == ["comparison-table-min-columns"]


class TestDefinition:
    """One sentence, a blank line, then bullets."""

    def test_valid_definition(self, validator, pattern):
        answer = (
            "A closure is a function that captures variables from its enclosing scope.\n\n"
            "- Retains access to outer variables\n"
            "- Created when the function is defined"
        )
        result = validator.validate(answer, pattern("definition"))
        assert result.score == 100
        assert result.is_valid

    def test_paragraph_without_bullets(self, validator, pattern):
        answer = "A closure is a function. It captures scope.\nMore text here."
        result = validator.validate(answer, pattern("definition"))
        assert rules(result) == ["definition-single-sentence", "definition-bulleted-list-required"]
        assert result.score == 50

    def test_missing_blank_line_is_warning_only(self, validator, pattern):
        answer = "A closure is a function that captures scope.\n- Retains variables\n- Lives on"
        result = validator.validate(answer, pattern("definition"))
        assert rules(result) == ["definition-blank-line"]
        assert result.violations[0].severity is Severity.WARNING
        assert result.score == 90
        assert result.is_valid

    def test_abbreviations_do_not_split_sentence(self, validator, pattern):
        answer = "A monad is a structure, e.g. Maybe, that sequences computations.\n\n- Composable"
        assert validator.validate(answer, pattern("definition")).is_valid


class TestList:
    """Bulleted items with proper markers and short items."""

    def test_valid_list(self, validator, pattern):
        result = validator.validate("- Inner join\n- Left join\n- Right join", pattern("list"))
        assert result.score == 100

    def test_prose_instead_of_list(self, validator, pattern):
        result = validator.validate("Inner join. Left join. Right join.", pattern("list"))
        assert rules(result) == ["list-required"]
        assert result.violations[0].check == "list-required"

    def test_nonstandard_glyph(self, validator, pattern):
        result = validator.validate("• Inner join\n• Left join", pattern("list"))
        assert rules(result) == ["list-bullet-consistency"]
        assert result.violations[0].severity is Severity.WARNING
        assert result.score == 90

    def test_mixed_markers_is_info(self, validator, pattern):
        result = validator.validate("- Inner join\n* Left join", pattern("list"))
        assert result.violations[0].severity is Severity.INFO
        assert result.score == 95
        assert result.is_valid

    def test_long_item(self, validator, pattern):
        result = validator.validate("- One. Two. Three.\n- Four", pattern("list"))
        assert rules(result) == ["list-list-item-length"]

    def test_bullets_inside_code_do_not_count(self, validator, pattern):
        result = validator.validate("```yaml\n- item\n- other\n```", pattern("list"))
        assert rules(result) == ["list-required"]


class TestProcess:
    """Numbered, consecutive, verb-led steps."""

    def test_valid_process(self, validator, pattern):
        answer = "1. Install the package.\n2. Configure the service.\n3. Run the tests."
        assert validator.validate(answer, pattern("process")).score == 100

    def test_numbering_gap(self, validator, pattern):
        answer = "1. Install the package.\n3. Run the tests."
        result = validator.validate(answer, pattern("process"))
        assert rules(result) == ["process-sequence-numbering"]
        assert result.violations[0].severity is Severity.ERROR

    def test_restart_at_one_rejected(self, validator, pattern):
        answer = "1. Install it.\n2. Configure it.\n1. Run it.\n2. Verify it."
        result = validator.validate(answer, pattern("process"))
        assert rules(result) == ["process-sequence-numbering"]
        assert "expected 3, found 1" in result.violations[0].message
        assert not result.is_valid

    def test_repeated_one_rejected(self, validator, pattern):
        answer = "1. Install it.\n1. Configure it.\n1. Run it."
        result = validator.validate(answer, pattern("process"))
        assert rules(result) == ["process-sequence-numbering"]
        assert "2 steps out of sequence" in result.violations[0].message
        assert result.score == 75

    def test_nested_steps_count_in_sequence(self, validator, pattern):
        answer = "1. Install it.\n   1. Download the archive.\n2. Run it."
        assert rules(validator.validate(answer, pattern("process"))) == ["process-sequence-numbering"]

    def test_weak_verb(self, validator, pattern):
        answer = "1. The package is installed.\n2. Configure it."
        result = validator.validate(answer, pattern("process"))
        assert rules(result) == ["process-action-verb"]
        assert result.score == 90

    def test_no_steps(self, validator, pattern):
        result = validator.validate("Install it and then run it.", pattern("process"))
        assert rules(result) == ["process-required"]


class TestCodeExample:
    """Fenced blocks with a language that are closed."""

    def test_valid_code(self, validator, pattern):
        assert validator.validate("```python\nprint('hi')\n```", pattern("code-example")).score == 100

    def test_bare_fence(self, validator, pattern):
        result = validator.validate("```\nprint('hi')\n```", pattern("code-example"))
        assert rules(result) == ["code-example-code-language"]
        assert result.score == 90

    def test_unclosed_fence(self, validator, pattern):
        result = validator.validate("```python\nprint('hi')", pattern("code-example"))
        assert rules(result) == ["code-example-incomplete-block"]
        assert not result.is_valid

    def test_no_code(self, validator, pattern):
        result = validator.validate("Use print to output text.", pattern("code-example"))
        assert rules(result) == ["code-example-required"]


class TestProsCons:
    """Advantages and Disadvantages headings, each with bullets."""

    def test_valid(self, validator, pattern):
        answer = "## Advantages\n\n- Fast\n\n## Disadvantages\n\n- Complex"
        assert validator.validate(answer, pattern("pros-cons")).score == 100

    def test_missing_disadvantages(self, validator, pattern):
        result = validator.validate("## Advantages\n\n- Fast", pattern("pros-cons"))
        assert rules(result) == ["pros-cons-missing-disadvantages"]
        assert result.score == 75

    def test_prose_under_headings(self, validator, pattern):
        answer = "## Pros\n\nIt is fast.\n\n## Cons\n\nIt is complex."
        result = validator.validate(answer, pattern("pros-cons"))
        assert rules(result) == ["pros-cons-list-format"]
        assert result.is_valid


class TestArchitecture:
    """A mermaid diagram of manageable size."""

    def test_valid(self, validator, pattern):
        answer = "```mermaid\ngraph TD\n  A[Client] --> B[API]\n```"
        assert validator.validate(answer, pattern("architecture")).score == 100

    def test_missing_diagram(self, validator, pattern):
        result = validator.validate("Clients call the API gateway.", pattern("architecture"))
        assert rules(result) == ["architecture-required"]

    def test_too_many_nodes(self, validator, pattern):
        edges = "\n".join(f"  N{i} --> N{i + 1}" for i in range(16))
        result = validator.validate(f"```mermaid\ngraph TD\n{edges}\n```", pattern("architecture"))
        assert rules(result) == ["architecture-diagram-complexity"]
        assert result.violations[0].severity is Severity.WARNING


class TestTroubleshooting:
    """Problem, Causes and numbered Solutions."""

    def test_valid(self, validator, pattern):
        answer = (
            "## Problem\n\nThe app crashes.\n\n## Causes\n\n- Memory leak\n\n"
            "## Solutions\n\n1. Restart the app."
        )
        assert validator.validate(answer, pattern("troubleshooting")).score == 100

    def test_unnumbered_solutions(self, validator, pattern):
        answer = "## Problem\n\nCrash.\n\n## Causes\n\n- Leak\n\n## Solutions\n\n- Restart"
        result = validator.validate(answer, pattern("troubleshooting"))
        assert rules(result) == ["troubleshooting-solutions-numbered"]

    def test_all_sections_missing(self, validator, pattern):
        result = validator.validate("The app crashes at startup.", pattern("troubleshooting"))
        assert rules(result) == ["troubleshooting-missing-sections"]
        assert result.violations[0].location == "Problem,Causes,Solutions"


class TestScoring:
    """Penalties, floor, threshold."""

    def test_score_floor(self):
        errors = [ValidationViolation(f"r{i}", Severity.ERROR, "m") for i in range(5)]
        assert ScoringPolicy().score(errors) == 0

    def test_penalties(self):
        mixed = [
            ValidationViolation("a", Severity.ERROR, "m"),
            ValidationViolation("b", Severity.WARNING, "m"),
            ValidationViolation("c", Severity.INFO, "m"),
        ]
        assert ScoringPolicy().score(mixed) == 60

    def test_custom_threshold(self, pattern):
        strict = FormatValidator(ScoringPolicy(pass_threshold=95))
        result = strict.validate("```\nprint('hi')\n```", pattern("code-example"))
        assert result.score == 90
        assert not result.is_valid

    def test_deterministic(self, validator, pattern):
        answer = "REST uses endpoints while GraphQL uses one endpoint."
        first = validator.validate(answer, pattern("comparison-table"))
        second = validator.validate(answer, pattern("comparison-table"))
        assert first.to_dict() == second.to_dict()

    def test_suggestions_from_fixes(self, validator, pattern):
        result = validator.validate("Just prose.", pattern("comparison-table"))
        assert result.suggestions == [result.violations[0].fix]

    def test_errors_and_warnings_properties(self, validator, pattern):
        answer = "A closure is a function. It captures scope.\n- Item"
        result = validator.validate(answer, pattern("definition"))
        assert all(v.severity is Severity.ERROR for v in result.errors)
        assert all(v.severity is Severity.WARNING for v in result.warnings)
        assert len(result.errors) + len(result.warnings) == len(result.violations)
