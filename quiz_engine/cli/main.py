"""
Quiz CLI - load quizzes, take them from JSON files, inspect statistics.

Usage:
    anatomy-quiz init-db                          # Create tables
    anatomy-quiz load quizzes.json                # Import quiz definitions
    anatomy-quiz present skeletal-basics -u ana   # Show the learner's view
    anatomy-quiz submit QUIZ_ID answers.json -u ana
    anatomy-quiz attempts QUIZ_ID -u ana
    anatomy-quiz stats --user ana --quiz QUIZ_ID
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from quiz_engine.core.errors import AssessmentError
from quiz_engine.core.logs import configure_logging
from quiz_engine.db.database import init_db
from quiz_engine.db.repository import SqlStore
from quiz_engine.grading.service import AssessmentService
from quiz_engine.questions import get_handler
from quiz_engine.schemas import QuizDefinition

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="anatomy-quiz",
    help="Anatomy quiz assessment engine",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Configure logging before any command runs."""
    configure_logging(level="DEBUG" if verbose else None)


def _store() -> SqlStore:
    return SqlStore()


def _service() -> AssessmentService:
    store = _store()
    return AssessmentService(catalog=store, attempts=store)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {escape(str(e))}[/]")
        raise typer.Exit(code=1) from e


def _fail(error: AssessmentError) -> None:
    console.print(f"[red]{escape(error.message)}[/]")
    raise typer.Exit(code=1)


# =============================================================================
# Commands
# =============================================================================


@app.command("init-db")
def init_database() -> None:
    """Create the database tables."""
    init_db()
    console.print("[green]Database ready.[/]")


@app.command()
def load(
    path: Annotated[Path, typer.Argument(help="JSON file with one quiz or a list of quizzes")],
) -> None:
    """
    Import quiz definitions into the catalog.

    Authoring problems (e.g. no correct option) are reported as warnings;
    such questions still load and grade as incorrect.
    """
    data = _read_json(path)
    items = data if isinstance(data, list) else [data]
    store = _store()

    table = Table(title="Loaded quizzes")
    table.add_column("ID", style="dim")
    table.add_column("Slug", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_column("Points", justify="right")

    for item in items:
        try:
            quiz = QuizDefinition.model_validate(item)
        except ValidationError as e:
            console.print(f"[red]Invalid quiz definition:[/]\n{escape(str(e))}")
            raise typer.Exit(code=1) from e

        for question in quiz.questions:
            for problem in get_handler(question.type).validate(question):
                logger.warning(f"{quiz.slug}/{question.id}: {problem}")

        try:
            saved = store.add_quiz(quiz)
        except AssessmentError as e:
            _fail(e)
        table.add_row(saved.id, saved.slug, str(len(saved.questions)), f"{saved.total_points:g}")

    console.print(table)


@app.command()
def present(
    slug: Annotated[str, typer.Argument(help="Quiz slug")],
    user: Annotated[str, typer.Option("--user", "-u", help="Learner id")],
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw presentation JSON")] = False,
) -> None:
    """Show a quiz the way a learner receives it."""
    try:
        presented = _service().present_quiz(slug, user)
    except AssessmentError as e:
        _fail(e)

    if as_json:
        console.print_json(presented.model_dump_json(by_alias=True))
        return

    console.print(
        Panel(
            escape(presented.description or presented.title),
            title=f"[bold cyan]{escape(presented.title)}[/bold cyan]",
            subtitle=f"{presented.total_points:g} points · pass at {presented.passing_score:g}% · "
            f"attempts so far: {presented.user_attempt_count}",
        )
    )
    for number, question in enumerate(presented.questions, start=1):
        console.print(
            f"[bold]{number}. {escape('[' + question['type'] + ']')}[/bold] "
            f"{escape(question.get('question', ''))}  [dim]({escape(question['id'])})[/dim]"
        )
        for option in question.get("options", []):
            console.print(f"    [cyan]{escape(option['id'])}[/cyan]  {escape(option['text'])}")
        for label in question.get("labels", []):
            console.print(f"    [magenta]{escape(label['id'])}[/magenta]  {escape(label['text'])}")


@app.command()
def submit(
    quiz_id: Annotated[str, typer.Argument(help="Quiz id")],
    path: Annotated[Path, typer.Argument(help="Submission JSON: {answers: [{questionId, answer}], ...}")],
    user: Annotated[str, typer.Option("--user", "-u", help="Learner id")],
) -> None:
    """Grade a submission file and record the attempt."""
    payload = _read_json(path)
    try:
        result = _service().submit(quiz_id, user, payload)
    except AssessmentError as e:
        _fail(e)

    verdict = "[green]PASSED[/]" if result.passed else "[red]FAILED[/]"
    console.print(
        Panel(
            f"Score: {result.score:g}/{result.total_points:g} ({result.percentage}%)  {verdict}\n"
            f"Correct: {result.correct_answers}  Incorrect: {result.incorrect_answers}  "
            f"Skipped: {result.skipped_questions}",
            title=f"Attempt #{result.attempt_number}",
        )
    )

    if result.answers:
        table = Table(title="Review")
        table.add_column("Question", style="dim")
        table.add_column("Your answer")
        table.add_column("Correct answer")
        table.add_column("", justify="center")
        table.add_column("Explanation")
        for answer in result.answers:
            table.add_row(
                escape(answer.question_id),
                escape(json.dumps(answer.user_answer)),
                escape(json.dumps(answer.correct_answer)),
                "✓" if answer.is_correct else "✗",
                escape(answer.explanation),
            )
        console.print(table)


@app.command()
def attempts(
    quiz_id: Annotated[str, typer.Argument(help="Quiz id")],
    user: Annotated[str, typer.Option("--user", "-u", help="Learner id")],
) -> None:
    """List a learner's attempts on a quiz, newest first."""
    try:
        history = _service().attempt_history(quiz_id, user)
    except AssessmentError as e:
        _fail(e)

    if not history:
        console.print("[yellow]No attempts yet.[/]")
        return

    table = Table(title=f"Attempts on {quiz_id}")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Passed", justify="center")
    table.add_column("Completed")
    for summary in history:
        table.add_row(
            str(summary.attempt_number),
            f"{summary.score:g}/{summary.total_points:g}",
            str(summary.percentage),
            "yes" if summary.passed else "no",
            summary.completed_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def stats(
    user: Annotated[str | None, typer.Option("--user", "-u", help="Learner id")] = None,
    quiz: Annotated[str | None, typer.Option("--quiz", "-q", help="Quiz id")] = None,
) -> None:
    """Show running statistics for a learner and/or a quiz."""
    if not user and not quiz:
        console.print("[yellow]Pass --user and/or --quiz.[/]")
        raise typer.Exit(code=2)

    service = _service()
    table = Table(title="Statistics")
    table.add_column("Subject", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Average %", justify="right")
    table.add_column("Points", justify="right")

    try:
        if user:
            learner = service.learner_stats(user)
            table.add_row(f"user {user}", str(learner.quizzes_taken), f"{learner.average_score:.1f}", f"{learner.total_points:g}")
        if quiz:
            quiz_stats = service.quiz_stats(quiz)
            table.add_row(f"quiz {quiz}", str(quiz_stats.attempt_count), f"{quiz_stats.average_score:.1f}", "-")
    except AssessmentError as e:
        _fail(e)

    console.print(table)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
