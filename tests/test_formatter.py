"""Tests for AutoFormatter and the per-format transforms."""

import pytest

from answer_standards.formatting import transforms
from answer_standards.patterns.models import FormatPattern, PatternStructure, Section, SectionFormat
from answer_standards.validation import text_utils as tu

# (pattern id, non-conforming answer) pairs that the formatter can fully repair
REPAIRABLE = [
    ("comparison-table", "REST uses multiple endpoints while GraphQL uses a single endpoint."),
    ("comparison-table", "It depends on the workload."),
    (
        "definition",
        "A closure is a function that captures variables. It keeps them alive after the "
        "outer function returns. Closures enable data privacy.",
    ),
    ("list", "Inner join returns matches. Left join keeps left rows. Right join keeps right rows."),
    ("process", "Install the package. Configure the service. Run the tests."),
    ("process", "1. Install the package.\n1. Configure the service.\n1. Run the tests."),
    ("code-example", "Here is an example:\n\n```\ndef add(a, b):\n    return a + b\n```"),
    ("code-example", "```js\nconsole.log(1)"),
    (
        "pros-cons",
        "Microservices scale independently. Teams deploy separately. "
        "However, they add operational complexity. Debugging is harder.",
    ),
    ("architecture", "Clients call an API gateway which routes to services."),
    ("architecture", "The gateway is configured like this:\n```yaml\nroutes: /api"),
    ("comparison-table", "REST is faster.\n```\nsome code"),
    (
        "troubleshooting",
        "The server returns 502 errors. This happens when the upstream times out. "
        "Increase the proxy timeout. Restart the upstream service.",
    ),
]


class TestFormatContract:
    """Pass-through rules."""

    def test_none_and_empty(self, formatter, pattern):
        assert formatter.format(None, pattern("list")) is None
        assert formatter.format("", pattern("list")) == ""

    def test_valid_answer_unchanged(self, formatter, pattern):
        answer = "- Inner join\n- Left join"
        assert formatter.format(answer, pattern("list")) == answer

    def test_unknown_pattern_unchanged(self, formatter):
        custom = FormatPattern(
            id="custom",
            name="Custom",
            keywords=("custom",),
            priority=1,
            structure=PatternStructure(sections=(Section("items", SectionFormat.LIST),)),
        )
        assert not formatter.is_supported(custom)
        assert formatter.format("Some prose. More prose.", custom) == "Some prose. More prose."

    def test_none_pattern_unchanged(self, formatter):
        assert formatter.format("Some prose.", None) == "Some prose."


class TestRepairs:
    """Each pattern's transform brings a typical answer to a valid result."""

    @pytest.mark.parametrize("pattern_id, answer", REPAIRABLE)
    def test_repaired_answer_scores_full(self, formatter, validator, pattern, pattern_id, answer):
        p = pattern(pattern_id)
        assert validator.validate(answer, p).score < 100
        formatted = formatter.format(answer, p)
        result = validator.validate(formatted, p)
        assert result.is_valid, result.to_dict()
        assert result.score == 100

    @pytest.mark.parametrize("pattern_id, answer", REPAIRABLE)
    def test_score_never_drops(self, formatter, validator, pattern, pattern_id, answer):
        p = pattern(pattern_id)
        before = validator.validate(answer, p).score
        after = validator.validate(formatter.format(answer, p), p).score
        assert after >= before

    @pytest.mark.parametrize("pattern_id, answer", REPAIRABLE)
    def test_idempotent(self, formatter, pattern, pattern_id, answer):
        p = pattern(pattern_id)
        once = formatter.format(answer, p)
        assert formatter.format(once, p) == once


class TestComparison:
    def test_synthesized_table(self, formatter, pattern):
        answer = "REST uses multiple endpoints while GraphQL uses a single endpoint."
        formatted = formatter.format(answer, pattern("comparison-table"))
        assert formatted.startswith("| Aspect | REST | GraphQL |\n|---|---|---|")
        assert "| Uses | multiple endpoints | a single endpoint |" in formatted
        assert answer in formatted

    def test_separator_inserted_into_existing_table(self, formatter, pattern):
        answer = "Summary\n| Aspect | A | B |\n| Speed | fast | slow |"
        formatted = formatter.format(answer, pattern("comparison-table"))
        assert formatted.splitlines()[2] == "|---|---|---|"

    def test_no_subjects_falls_back_to_template(self):
        assert transforms.synthesize_comparison_table("It depends. This varies.") is None


class TestListAndProcess:
    def test_every_sentence_kept(self, formatter, pattern):
        answer = "Inner join returns matches. Left join keeps left rows. Right join keeps right rows."
        formatted = formatter.format(answer, pattern("list"))
        for sentence in tu.split_sentences(answer):
            assert f"- {sentence}" in formatted

    def test_intro_sentence_kept_as_prose(self):
        formatted = transforms.bulletize("Common joins:\n\nInner join. Left join.")
        assert formatted == "Common joins:\n\n- Inner join.\n- Left join."

    def test_glyph_bullets_normalized(self, formatter, pattern):
        assert formatter.format("• One\n• Two", pattern("list")) == "- One\n- Two"

    def test_bullets_become_steps(self):
        assert transforms.number_steps("- Install it\n- Run it") == "1. Install it\n2. Run it"

    def test_numbering_repaired(self, formatter, pattern):
        formatted = formatter.format("1. Install it.\n3. Run it.", pattern("process"))
        assert formatted == "1. Install it.\n2. Run it."

    def test_repeated_numbers_renumbered(self, formatter, pattern):
        formatted = formatter.format("1. Install it.\n1. Configure it.\n1. Run it.", pattern("process"))
        assert formatted == "1. Install it.\n2. Configure it.\n3. Run it."

    def test_numbering_continues_across_lists(self):
        text = "1. Install it.\n2. Run it.\n\nThen:\n\n1. Open the log."
        assert transforms.number_steps(text) == "1. Install it.\n2. Run it.\n\nThen:\n\n3. Open the log."

    def test_code_untouched_by_list_transform(self):
        text = "Config:\n\n```yaml\n- item\n```\n\nSome prose here."
        assert "```yaml\n- item\n```" in transforms.bulletize(text)


UNCLOSED_FENCES = [
    "```",
    "```\n ",
    "~~~\ncode",
    "```mermaid\ngraph TD\nA-->B",
    "REST is faster.\n```\nsome code",
]


class TestUnclosedFences:
    """Scaffolding never lands inside a code block left open at the end of the answer."""

    def test_template_after_closing_fence(self, formatter, pattern):
        formatted = formatter.format("REST is faster.\n```\nsome code", pattern("comparison-table"))
        assert "some code\n```\n\n| Feature |" in formatted
        assert all(block.is_closed for block in tu.find_code_blocks(formatted))

    @pytest.mark.parametrize("pattern_id", ["comparison-table", "architecture"])
    @pytest.mark.parametrize("answer", UNCLOSED_FENCES)
    def test_idempotent(self, formatter, pattern, pattern_id, answer):
        p = pattern(pattern_id)
        once = formatter.format(answer, p)
        assert formatter.format(once, p) == once

    def test_rewrite_without_gain_discarded(self, formatter, pattern, monkeypatch):
        def hide_table(text, p):
            return f"{text}\n```\n| A | B |\n|---|---|"

        monkeypatch.setitem(transforms.TRANSFORMS, SectionFormat.TABLE, hide_table)
        answer = "It depends on the workload."
        assert formatter.format(answer, pattern("comparison-table")) == answer


class TestCode:
    def test_language_inferred(self, formatter, pattern):
        answer = "Here is an example:\n\n```\ndef add(a, b):\n    return a + b\n```"
        assert "```python\n" in formatter.format(answer, pattern("code-example"))

    @pytest.mark.parametrize(
        "code, context, expected",
        [
            ("SELECT id FROM users", "", "sql"),
            ("const x = () => 1", "", "javascript"),
            ('{"a": 1}', "", "json"),
            ("x <- 1", "In Rust this is", "rust"),
            ("???", "", "text"),
        ],
    )
    def test_infer_language(self, code, context, expected):
        assert transforms.infer_language(code, context) == expected

    def test_unclosed_fence_closed(self, formatter, pattern):
        assert formatter.format("```js\nconsole.log(1)", pattern("code-example")).endswith("\n```")


class TestProsCons:
    def test_split_at_con_cue(self, formatter, pattern):
        answer = (
            "Microservices scale independently. Teams deploy separately. "
            "However, they add operational complexity. Debugging is harder."
        )
        formatted = formatter.format(answer, pattern("pros-cons"))
        pros, cons = formatted.split("## Disadvantages")
        assert "- Teams deploy separately." in pros
        assert "- Debugging is harder." in cons

    def test_labels_switch_sides(self):
        pros, cons = transforms.split_pros_cons(["Pros: fast", "cheap", "Cons: fragile"])
        assert pros == ["fast", "cheap"]
        assert cons == ["fragile"]

    def test_empty_side_gets_placeholder(self, formatter, pattern):
        formatted = formatter.format("It is fast. It is cheap.", pattern("pros-cons"))
        assert f"## Disadvantages\n\n- {transforms.PLACEHOLDER_ITEM}" in formatted

    def test_existing_headings_bulletized(self, formatter, pattern):
        answer = "## Pros\n\nIt is fast.\n\n## Cons\n\nIt is complex."
        formatted = formatter.format(answer, pattern("pros-cons"))
        assert formatted == "## Pros\n\n- It is fast.\n\n## Cons\n\n- It is complex."

    def test_single_heading_not_repeated(self, formatter, pattern):
        answer = "## Advantages\n\nIt is fast. It is cheap.\n\nHowever it is fragile."
        formatted = formatter.format(answer, pattern("pros-cons"))
        assert formatted == (
            "## Advantages\n\n- It is fast.\n- It is cheap.\n\n"
            "## Disadvantages\n\n- However it is fragile."
        )

    def test_existing_cons_heading_keeps_its_side(self, formatter, pattern):
        answer = "It is flexible.\n\n## Cons\n\n- Slow to start"
        formatted = formatter.format(answer, pattern("pros-cons"))
        assert formatted == "## Advantages\n\n- It is flexible.\n\n## Disadvantages\n\n- Slow to start"
        assert formatted.count("## Disadvantages") == 1


class TestTroubleshooting:
    def test_sections_built_from_prose(self, formatter, pattern):
        answer = (
            "The server returns 502 errors. This happens when the upstream times out. "
            "Increase the proxy timeout. Restart the upstream service."
        )
        formatted = formatter.format(answer, pattern("troubleshooting"))
        assert formatted.startswith("## Problem\n\nThe server returns 502 errors.")
        assert "## Causes\n\n- This happens when the upstream times out." in formatted
        assert "1. Increase the proxy timeout.\n2. Restart the upstream service." in formatted

    def test_missing_sections_scaffolded(self, formatter, validator, pattern):
        answer = "## Problem\n\nCrash on start.\n\n## Solutions\n\nRestart it. Clear the cache."
        formatted = formatter.format(answer, pattern("troubleshooting"))
        assert "## Causes" in formatted
        assert "1. Restart it.\n2. Clear the cache." in formatted
        assert validator.validate(formatted, pattern("troubleshooting")).is_valid
