"""
Command-line interface for QuizRoom.

Usage:
    quiz-room serve [--host HOST] [--port PORT] [--data-dir DIR]
    quiz-room list
    quiz-room validate
    quiz-room import-pdf <pdf_path> [--course CODE] [--topic TOPIC]
"""

from __future__ import annotations

from pathlib import Path
import sys

import click
from rich.console import Console
from rich.table import Table

from quiz_room.constants.about import APP_NAME, APP_VERSION
from quiz_room.constants.quiz_constants import IMPORTED_MARKS, IMPORTED_TIME_LIMIT_MINUTES
from quiz_room.core.errors import QuizRoomError
from quiz_room.core.quiz_importer import import_pdf
from quiz_room.core.quiz_manager import QuizManager
from quiz_room.core.services.quiz_repository import QuizRepository
from quiz_room.server.api_server import run_api_server
from quiz_room.utils.logging_config import configure_logging
from quiz_room.utils.settings import AppSettings

console = Console()


@click.group()
@click.version_option(version=APP_VERSION, prog_name="quiz-room")
@click.option(
    "--data-dir", "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding quiz JSON files (env: QUIZROOM_DATA_DIR)",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None) -> None:
    """QuizRoom: author, store and take timed quizzes."""
    settings = AppSettings.from_env()
    if data_dir is not None:
        settings.data_dir = data_dir
    configure_logging(settings.log_level)
    ctx.obj = settings


@cli.command()
@click.option("--host", default=None, help="Interface to bind (env: QUIZROOM_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (env: QUIZROOM_PORT)")
@click.pass_obj
def serve(settings: AppSettings, host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    manager = QuizManager(QuizRepository(settings.data_dir))
    try:
        run_api_server(
            manager,
            admin_code=settings.admin_code,
            host=host or settings.host,
            port=port or settings.port,
        )
    finally:
        manager.shutdown()


@cli.command(name="list")
@click.pass_obj
def list_quizzes(settings: AppSettings) -> None:
    """Show every stored quiz."""
    summaries = QuizRepository(settings.data_dir).list_summaries()
    if not summaries:
        console.print(f"[yellow]No quizzes found in: {settings.data_dir}[/]")
        return

    table = Table(title=f"{APP_NAME} quizzes", border_style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Course")
    table.add_column("Topic")
    table.add_column("Type")
    table.add_column("Questions", justify="right")
    table.add_column("Minutes", justify="right")
    for summary in summaries:
        table.add_row(
            summary.file_name,
            summary.course_code,
            summary.topic,
            summary.quiz_type,
            str(summary.question_count),
            f"{summary.time_limit_minutes:g}",
        )
    console.print(table)


@cli.command()
@click.pass_obj
def validate(settings: AppSettings) -> None:
    """Check every stored quiz file for the minimal document shape."""
    outcomes = QuizRepository(settings.data_dir).validate_all()
    console.print(f"Found {len(outcomes)} JSON files.")

    failures = 0
    for outcome in outcomes:
        if outcome.passed:
            console.print(f"[green][PASS][/] {outcome.file_name} ({outcome.question_count} questions)")
        else:
            failures += 1
            console.print(f"[red][FAIL][/] {outcome.file_name}: {outcome.message}")

    console.print()
    if failures:
        console.print(f"[red]Found {failures} errors.[/]")
        sys.exit(1)
    console.print("[green]All files valid![/]")


@cli.command(name="import-pdf")
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--course", "-c", default="UNKNOWN", help="Course code for the imported quiz")
@click.option("--topic", "-t", default="", help="Topic (defaults to the PDF file name)")
@click.pass_obj
def import_pdf_command(settings: AppSettings, pdf_path: Path, course: str, topic: str) -> None:
    """Convert a numbered multiple-choice exam PDF into a stored quiz."""
    try:
        document = import_pdf(
            pdf_path,
            course_code=course,
            topic=topic or pdf_path.stem,
            marks=IMPORTED_MARKS,
            time_limit_minutes=IMPORTED_TIME_LIMIT_MINUTES,
        )
        file_name = QuizRepository(settings.data_dir).save_quiz_document(document)
    except (QuizRoomError, ValueError, RuntimeError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    console.print(f"[green]Successfully converted[/] {pdf_path} -> {file_name}")
    console.print(f"Extracted {len(document.questions)} questions.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
