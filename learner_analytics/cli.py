"""
Typer CLI for the learner analytics engine.

Commands:
    learner-analytics init-db                      - Create database tables
    learner-analytics analytics USER               - Learner summary and pending recommendations
    learner-analytics report USER --type weekly    - Generate and store a progress report
    learner-analytics diagnostic USER CHAPTER      - Latest diagnostic and learning path
    learner-analytics diagnostic-test LEVEL        - Generate a diagnostic question bank
    learner-analytics version                      - Show version information

Usage:
    learner-analytics --help
    learner-analytics report student-1 --type monthly
    learner-analytics analytics student-1 --chapter algebra-1
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from learner_analytics import __version__
from learner_analytics.analytics.service import AnalyticsService
from learner_analytics.db.database import init_db
from learner_analytics.logs import configure_logging
from learner_analytics.schemas import ReportType

app = typer.Typer(help="learner-analytics CLI: attempts -> mastery -> diagnostics -> reports")
console = Console()


def _build_service() -> AnalyticsService:
    """Service over the configured database and text generator."""
    return AnalyticsService.from_settings()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    configure_logging(level="DEBUG" if verbose else None)


@app.command("init-db")
def db_init() -> None:
    """
    Initialize database tables from the SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@app.command("analytics")
def show_analytics(
    user_id: str = typer.Argument(..., help="Learner id"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Only count attempts in this chapter"),
) -> None:
    """Show summary analytics and pending recommendations for a learner."""
    result = _build_service().get_user_analytics(user_id, chapter)
    summary = result.analytics

    table = Table(title=f"Analytics: {user_id}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Questions attempted", str(summary.total_questions))
    table.add_row("Correct answers", str(summary.correct_answers))
    table.add_row("Accuracy", f"{summary.accuracy:.1f}%")
    table.add_row("Study time", f"{summary.total_study_time} min")
    table.add_row("Concepts mastered", str(summary.concepts_mastered))
    console.print(table)

    if not result.recommendations:
        rprint("[dim]No pending recommendations[/dim]")
        return

    recs = Table(title=f"Pending Recommendations ({len(result.recommendations)})")
    recs.add_column("Priority", justify="right", style="yellow")
    recs.add_column("Type", style="cyan")
    recs.add_column("Recommendation")
    recs.add_column("Time", justify="right", style="dim")
    for rec in result.recommendations:
        recs.add_row(
            str(rec.priority_level),
            rec.recommendation_type,
            rec.recommendation_text,
            f"{rec.estimated_time_minutes} min",
        )
    console.print(recs)


@app.command("report")
def generate_report(
    user_id: str = typer.Argument(..., help="Learner id"),
    report_type: ReportType = typer.Option(ReportType.WEEKLY, "--type", "-t", help="Reporting window"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Scope the report to one chapter"),
) -> None:
    """Generate, store and display a progress report."""
    report = _build_service().generate_progress_report(user_id, report_type, chapter)

    table = Table(title=f"{report.report_type.title()} Report: {user_id}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Period", f"{report.report_period_start:%Y-%m-%d} to {report.report_period_end:%Y-%m-%d}")
    table.add_row("Questions attempted", str(report.questions_attempted))
    table.add_row("Accuracy", f"{report.accuracy_percentage:.1f}%")
    table.add_row("Time spent", f"{report.time_spent_minutes} min")
    table.add_row("Overall progress", f"{report.overall_progress:.1f}%")
    table.add_row("Concepts mastered", ", ".join(report.concepts_mastered) or "-")
    table.add_row("Strengths", ", ".join(report.strengths_identified) or "-")
    table.add_row("Needs work", ", ".join(report.areas_for_improvement) or "-")
    console.print(table)

    console.print(Panel(report.ai_insights, title="Insights", border_style="blue"))
    for recommendation in report.recommendations:
        rprint(f"  [cyan]•[/cyan] {recommendation}")


@app.command("diagnostic")
def show_diagnostic(
    user_id: str = typer.Argument(..., help="Learner id"),
    chapter_id: str = typer.Argument(..., help="Chapter id"),
) -> None:
    """Show the latest diagnostic result and learning path for a chapter."""
    service = _build_service()
    diagnostic = service.get_chapter_diagnostic(user_id, chapter_id)
    if diagnostic is None:
        rprint(f"[yellow]⚠[/yellow] {user_id} has not taken the {chapter_id} diagnostic")
        raise typer.Exit(code=1)

    table = Table(title=f"Diagnostic: {chapter_id}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Score", f"{diagnostic.correct_answers}/{diagnostic.total_questions} ({diagnostic.score_percentage:.0f}%)")
    table.add_row("Level", diagnostic.difficulty_level)
    table.add_row("Strengths", ", ".join(diagnostic.strengths) or "-")
    table.add_row("Weaknesses", ", ".join(diagnostic.weaknesses) or "-")
    table.add_row("Knowledge gaps", ", ".join(diagnostic.knowledge_gaps) or "-")
    console.print(table)

    path = service.get_learning_path(user_id, chapter_id)
    if path is None:
        return
    rprint(f"\n[bold]Learning path[/bold] (~{path.estimated_completion_days} days)")
    for number, step in enumerate(path.recommended_sequence, start=1):
        marker = "[green]✓[/green]" if number <= path.current_step else f"{number}."
        rprint(f"  {marker} {step}")


@app.command("diagnostic-test")
def generate_diagnostic_test(
    class_level: int = typer.Argument(..., min=1, max=12, help="Class level (1-12)"),
    count: int = typer.Option(30, "--count", "-n", min=1, max=60, help="Number of questions"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the question bank as JSON"),
) -> None:
    """Generate a diagnostic question bank (fixed bank when no generator is configured)."""
    service = _build_service()
    bank = service.generate_diagnostic_test(class_level, count)

    table = Table(title=f"Diagnostic test: class {class_level}", show_header=True)
    table.add_column("Id", style="dim")
    table.add_column("Topic", style="cyan")
    table.add_column("Difficulty")
    table.add_column("Question")
    for question in bank:
        table.add_row(question.id, question.topic, question.difficulty, question.question)
    console.print(table)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        payload = [question.model_dump() for question in bank]
        output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        rprint(f"[green]✓[/green] Wrote {len(bank)} questions to {output}")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]learner-analytics[/bold] v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
