"""
answer-standards CLI - detect, validate and format Q&A answers.

Commands:
    answer-standards detect "question"                 Classify a question
    answer-standards validate -q "question" -a "..."   Score an answer
    answer-standards format -q "question" -f ans.md    Rewrite an answer
    answer-standards fixes -q "question" -f ans.md     Ranked fix suggestions
    answer-standards consistency -f ans.md             Compare multi-language examples
    answer-standards batch corpus.json                 Corpus validation report
    answer-standards metrics corpus.json               Format a corpus, report metrics
    answer-standards overrides list|add|remove|show|stats|cleanup
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .batch import BatchValidator, load_questions
from .config import load_settings
from .formatting.formatter import AutoFormatter
from .metrics import MetricsCollector
from .overrides import utils as override_utils
from .overrides.manager import ConfigurationManager, OverrideStoreError, OverrideValidationError
from .patterns.catalog import PatternCatalog, PatternCatalogError, default_catalog
from .patterns.detector import PatternDetector
from .patterns.models import FormatPattern
from .pipeline import FormattingPipeline
from .validation.consistency import LanguageConsistencyChecker
from .validation.models import Severity, ValidationResult
from .validation.validator import FormatValidator
from .validators import ValidationError

app = typer.Typer(help="Answer formatting standards for Q&A knowledge bases")
overrides_app = typer.Typer(help="Manage per-question formatting overrides")
app.add_typer(overrides_app, name="overrides")
console = Console()

SEVERITY_STYLE = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

_state: dict = {"catalog": None}


def _catalog() -> PatternCatalog:
    return _state["catalog"] or default_catalog()


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}", soft_wrap=True)
    raise typer.Exit(1)


def _read_answer(answer: str | None, answer_file: Path | None) -> str:
    if answer_file is not None:
        if not answer_file.exists():
            _fail(f"Answer file not found: {answer_file}")
        return answer_file.read_text(encoding="utf-8")
    return answer or ""


def _resolve_pattern(question: str | None, pattern_id: str | None) -> FormatPattern:
    if pattern_id:
        pattern = _catalog().get(pattern_id)
        if pattern is None:
            _fail(f"Unknown pattern '{pattern_id}'. Known: {', '.join(_catalog().ids)}")
        return pattern
    pattern = PatternDetector(_catalog()).detect_pattern(question)
    if pattern is None:
        _fail("No pattern detected for this question. Pass --pattern to choose one.")
    return pattern


def _manager() -> ConfigurationManager:
    return ConfigurationManager(load_settings().db_path, catalog=_catalog())


def _print_result(pattern: FormatPattern, result: ValidationResult, title: str = "Validation") -> None:
    status = "[green]VALID[/green]" if result.is_valid else "[red]INVALID[/red]"
    console.print(f"\n[bold]{title}[/bold] ({pattern.id}): score {result.score}/100 {status}")
    if not result.violations:
        return
    table = Table()
    table.add_column("Severity")
    table.add_column("Rule", style="bold")
    table.add_column("Message")
    table.add_column("Fix", style="dim")
    for v in result.violations:
        style = SEVERITY_STYLE.get(v.severity, "white")
        table.add_row(f"[{style}]{v.severity.value}[/{style}]", v.rule, v.message, v.fix)
    console.print(table)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    patterns: Path = typer.Option(None, "--patterns", help="Load patterns from a JSON file"),
):
    """Detect, validate and format Q&A answers."""
    level = "DEBUG" if verbose else load_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _state["catalog"] = None
    if patterns is not None:
        try:
            _state["catalog"] = PatternCatalog.from_json(patterns)
        except (OSError, PatternCatalogError) as e:
            _fail(str(e))


# =============================================================================
# DETECT / VALIDATE / FORMAT / FIXES
# =============================================================================


@app.command()
def detect(question: str = typer.Argument(..., help="Question text")):
    """Classify a question into an answer pattern."""
    detector = PatternDetector(_catalog())
    result = detector.detect(question)
    if result.pattern is None:
        console.print("[yellow]No pattern detected[/yellow]")
        return

    console.print(
        f"\n[bold blue]{result.pattern.name}[/bold blue] ({result.pattern.id}) "
        f"confidence {result.confidence:.0%}"
    )
    table = Table(title="Candidates")
    table.add_column("Pattern", style="bold")
    table.add_column("Priority")
    table.add_column("Matches")
    table.add_column("Keywords")
    for candidate in detector.suggest_patterns(question, limit=5):
        table.add_row(
            candidate.pattern.id,
            str(candidate.pattern.priority),
            str(candidate.match_count),
            ", ".join(candidate.matched_keywords),
        )
    console.print(table)


@app.command()
def validate(
    question: str = typer.Option(None, "--question", "-q", help="Question text (for detection)"),
    pattern_id: str = typer.Option(None, "--pattern", "-p", help="Pattern id (skips detection)"),
    answer: str = typer.Option(None, "--answer", "-a", help="Answer text"),
    answer_file: Path = typer.Option(None, "--answer-file", "-f", help="Read the answer from a file"),
):
    """Score an answer against its pattern."""
    pattern = _resolve_pattern(question, pattern_id)
    text = _read_answer(answer, answer_file)
    result = FormatValidator(load_settings().scoring).validate(text, pattern)
    _print_result(pattern, result)
    if not result.is_valid:
        raise typer.Exit(1)


@app.command("format")
def format_answer(
    question: str = typer.Option(None, "--question", "-q", help="Question text (for detection)"),
    pattern_id: str = typer.Option(None, "--pattern", "-p", help="Pattern id (skips detection)"),
    answer: str = typer.Option(None, "--answer", "-a", help="Answer text"),
    answer_file: Path = typer.Option(None, "--answer-file", "-f", help="Read the answer from a file"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the formatted answer here"),
):
    """Rewrite an answer into its pattern's structure."""
    pattern = _resolve_pattern(question, pattern_id)
    text = _read_answer(answer, answer_file)
    validator = FormatValidator(load_settings().scoring)
    formatter = AutoFormatter(validator=validator, catalog=_catalog())

    before = validator.validate(text, pattern)
    formatted = formatter.format(text, pattern) or ""
    after = validator.validate(formatted, pattern)

    if output is not None:
        output.write_text(formatted, encoding="utf-8")
        console.print(f"Wrote {output}")
    else:
        console.print(formatted, markup=False, highlight=False, soft_wrap=True)
    console.print(f"\n[bold]Score:[/bold] {before.score} -> {after.score}")


@app.command()
def fixes(
    question: str = typer.Option(None, "--question", "-q", help="Question text (for detection)"),
    pattern_id: str = typer.Option(None, "--pattern", "-p", help="Pattern id (skips detection)"),
    answer: str = typer.Option(None, "--answer", "-a", help="Answer text"),
    answer_file: Path = typer.Option(None, "--answer-file", "-f", help="Read the answer from a file"),
):
    """List ranked fix suggestions for an answer."""
    pattern = _resolve_pattern(question, pattern_id)
    text = _read_answer(answer, answer_file)
    validator = FormatValidator(load_settings().scoring)
    result = validator.validate(text, pattern)
    suggestions = AutoFormatter(validator=validator, catalog=_catalog()).suggest_fixes(result, text, pattern)
    if not suggestions:
        console.print("[green]No issues found[/green]")
        return

    table = Table(title=f"Fix suggestions ({pattern.id})")
    table.add_column("Priority")
    table.add_column("Rule", style="bold")
    table.add_column("Fixes")
    for s in suggestions:
        listed = "\n".join(f"{f.type.value}: {f.description}" for f in s.fixes) or s.description
        table.add_row(str(s.priority), s.violation.rule, listed)
    console.print(table)


@app.command()
def consistency(
    answer: str = typer.Option(None, "--answer", "-a", help="Answer text"),
    answer_file: Path = typer.Option(None, "--answer-file", "-f", help="Read the answer from a file"),
):
    """Compare code examples written in different languages."""
    result = LanguageConsistencyChecker().check(_read_answer(answer, answer_file))
    if len(result.languages) < 2:
        console.print("[green]Fewer than two languages, nothing to compare[/green]")
        return

    status = "[green]CONSISTENT[/green]" if result.is_consistent else "[red]INCONSISTENT[/red]"
    console.print(
        f"\n[bold]Language consistency[/bold] ({', '.join(result.languages)}): "
        f"score {result.score}/100 {status}"
    )
    for v in result.violations:
        console.print(f"  [yellow]-[/yellow] {escape(v.message)}", soft_wrap=True)
    for s in result.suggestions:
        console.print(f"  [dim]{escape(s)}[/dim]", soft_wrap=True)
    if not result.is_consistent:
        raise typer.Exit(1)


# =============================================================================
# BATCH
# =============================================================================


@app.command()
def batch(
    corpus: Path = typer.Argument(..., help="JSON file of question records"),
    channel: str = typer.Option(None, help="Only validate this channel"),
    limit: int = typer.Option(None, help="Stop after this many questions"),
    budget: float = typer.Option(None, help="Wall-clock budget in seconds"),
    report: Path = typer.Option(None, help="Write the full JSON report here"),
    use_overrides: bool = typer.Option(True, "--overrides/--no-overrides", help="Consult the override store"),
):
    """Validate a whole corpus and summarize formatting quality."""
    if not corpus.exists():
        _fail(f"Corpus not found: {corpus}")
    try:
        questions = load_questions(corpus)
    except ValidationError as e:
        _fail(str(e))

    settings = load_settings()
    validator = BatchValidator(
        detector=PatternDetector(_catalog()),
        validator=FormatValidator(settings.scoring),
        overrides=_manager() if use_overrides else None,
        time_budget_seconds=budget,
    )
    result = validator.run(questions, channel=channel, limit=limit)
    data = result.to_dict()
    summary = data["summary"]

    console.print(f"\n[bold blue]Batch validation[/bold blue]: {corpus}")
    console.print(f"  Total questions: {result.total_questions}")
    console.print(f"  With content: {result.questions_with_content} ({summary['content_coverage']}%)")
    console.print(f"  Pattern detection rate: {summary['pattern_detection_rate']}%")
    console.print(
        f"  Needing formatting: {result.questions_needing_formatting} "
        f"({summary['formatting_needed_rate']}%)"
    )
    console.print(f"  Average score: {result.average_score}/100 ({summary['overall_quality']})")
    if result.budget_exhausted:
        console.print("[yellow]  Time budget exhausted, report is partial[/yellow]")

    table = Table(title="By pattern")
    table.add_column("Pattern", style="bold")
    table.add_column("Count")
    table.add_column("Avg score")
    table.add_column("Needs formatting")
    for name, stats in sorted(result.pattern_breakdown().items()):
        table.add_row(name, str(stats.count), str(stats.average_score), str(stats.needs_formatting))
    console.print(table)

    issues = result.top_issues(5)
    if issues:
        console.print("\n[bold]Top issues[/bold]")
        for i, (issue, count) in enumerate(issues, 1):
            console.print(f"  {i}. {issue} ({count})")

    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(result.to_json(), encoding="utf-8")
        console.print(f"\nReport written to {report}")


@app.command()
def metrics(
    corpus: Path = typer.Argument(..., help="JSON file of question records"),
    output: Path = typer.Option(None, "--output", "-o", help="Write metrics and events as JSON here"),
    use_overrides: bool = typer.Option(True, "--overrides/--no-overrides", help="Consult the override store"),
):
    """Format a whole corpus and report compliance and auto-fix metrics."""
    if not corpus.exists():
        _fail(f"Corpus not found: {corpus}")
    try:
        questions = load_questions(corpus)
    except ValidationError as e:
        _fail(str(e))

    settings = load_settings()
    validator = FormatValidator(settings.scoring)
    pipeline = FormattingPipeline(
        detector=PatternDetector(_catalog()),
        validator=validator,
        overrides=_manager() if use_overrides else None,
    )
    collector = MetricsCollector()
    for question in questions:
        collector.record_outcome(pipeline.process(question), channel=question.channel)
    summary = collector.summary()

    console.print(f"\n[bold blue]Formatting metrics[/bold blue]: {corpus}")
    console.print(f"  Questions with a pattern: {summary.total_questions}")
    console.print(f"  Compliance: {summary.compliance_rate}%")
    console.print(f"  First-attempt pass rate: {summary.first_attempt_pass_rate}%")
    console.print(
        f"  Auto-fix success: {summary.auto_fix_successes}/{summary.auto_fix_attempts} "
        f"({summary.auto_fix_success_rate}%)"
    )
    console.print(f"  Average score: {summary.average_score}/100")

    if summary.pattern_usage:
        table = Table(title="Pattern usage")
        table.add_column("Pattern", style="bold")
        table.add_column("Applied")
        table.add_column("Avg score")
        table.add_column("Success")
        for name, usage in summary.pattern_usage.items():
            table.add_row(name, str(usage.application_count), str(usage.average_score), f"{usage.success_rate}%")
        console.print(table)

    for channel in summary.channel_breakdown:
        console.print(
            f"  {channel.channel}: {channel.total_questions} questions, "
            f"{channel.compliance_rate}% compliant, top {', '.join(channel.top_patterns)}"
        )

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(collector.to_json(), encoding="utf-8")
        console.print(f"\nMetrics written to {output}")


# =============================================================================
# OVERRIDES
# =============================================================================


@overrides_app.command("list")
def overrides_list():
    """Show all overrides."""
    records = _manager().get_overrides()
    if not records:
        console.print("No overrides")
        return
    table = Table(title="Overrides")
    table.add_column("Question", style="bold")
    table.add_column("Pattern")
    table.add_column("User")
    table.add_column("Created")
    table.add_column("Justification")
    for r in records:
        table.add_row(
            r.question_id,
            r.override_pattern or "[dim]no formatting[/dim]",
            r.user_id or "-",
            r.timestamp[:19],
            escape(r.justification),
        )
    console.print(table)


@overrides_app.command("add")
def overrides_add(
    question_id: str = typer.Argument(..., help="Question id"),
    justification: str = typer.Option(..., "--justification", "-j", help="Why the override is needed"),
    pattern_id: str = typer.Option(None, "--pattern", "-p", help="Pattern to use instead (omit to disable formatting)"),
    user_id: str = typer.Option(None, "--user", help="Who is adding the override"),
    original_pattern: str = typer.Option(None, "--original", help="Pattern that detection picked"),
):
    """Add or replace a question's override."""
    manager = _manager()
    check = override_utils.validate_override(manager, question_id, justification, pattern_id)
    for warning in check.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    try:
        record = manager.add_override(
            question_id,
            justification,
            override_pattern=pattern_id,
            user_id=user_id,
            original_pattern=original_pattern,
        )
    except (OverrideValidationError, OverrideStoreError) as e:
        _fail(str(e))
    target = record.override_pattern or "no formatting"
    console.print(f"[green]Override saved[/green] for {record.question_id} -> {target}")


@overrides_app.command("remove")
def overrides_remove(question_id: str = typer.Argument(..., help="Question id")):
    """Remove a question's override."""
    try:
        removed = _manager().remove_override(question_id)
    except OverrideStoreError as e:
        _fail(str(e))
    if removed:
        console.print(f"[green]Removed[/green] override for {question_id}")
    else:
        console.print(f"No override for {question_id}")


@overrides_app.command("show")
def overrides_show(question_id: str = typer.Argument(..., help="Question id")):
    """Print the override report for a question."""
    report = override_utils.generate_override_report(_manager(), question_id)
    if report is None:
        _fail(f"No override for {question_id}")
    console.print(report, markup=False, highlight=False, soft_wrap=True)


@overrides_app.command("stats")
def overrides_stats():
    """Summarize overrides by pattern and user."""
    stats = override_utils.get_override_stats(_manager())
    console.print(f"\n[bold]Total overrides:[/bold] {stats.total_overrides}")
    if not stats.total_overrides:
        return
    console.print(f"Average justification length: {stats.average_justification_length:.0f} chars")
    table = Table(title="By pattern")
    table.add_column("Pattern", style="bold")
    table.add_column("Count")
    for name, count in sorted(stats.overrides_by_pattern.items()):
        table.add_row(name, str(count))
    console.print(table)
    if stats.most_common_reasons:
        console.print(f"Common reasons: {', '.join(stats.most_common_reasons)}")


@overrides_app.command("cleanup")
def overrides_cleanup(
    max_age_days: int = typer.Option(override_utils.CLEANUP_AGE_DAYS, help="Age threshold in days"),
    remove: bool = typer.Option(False, "--remove", help="Delete the stale overrides"),
):
    """List (or remove) overrides older than the age threshold."""
    manager = _manager()
    stale = override_utils.suggest_override_cleanup(manager, max_age_days=max_age_days)
    if not stale:
        console.print("No stale overrides")
        return
    for record in stale:
        age = override_utils.get_override_age(record)
        console.print(f"  {record.question_id} ({age} days): {escape(record.justification)}")
        if remove:
            try:
                manager.remove_override(record.question_id)
            except OverrideStoreError as e:
                _fail(str(e))
    if remove:
        console.print(f"[green]Removed {len(stale)} override(s)[/green]")


if __name__ == "__main__":
    app()
