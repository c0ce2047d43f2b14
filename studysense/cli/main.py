"""
CLI entry point for studysense.
"""

# Standard library imports
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.markup import escape

# Local application imports
from studysense.analyzer import generate_analysis
from studysense.constants import DEFAULT_PLAN_DAYS, DEFAULT_STUDENT_ID
from studysense.db.database import StudyDatabase
from studysense.exceptions import (
    DatabaseError,
    EmptyDatasetError,
    IngestionError,
    TrainingError,
)
from studysense.ingest import load_sessions_from_csv, write_sample_csv
from studysense.models import StudySessionRecord
from studysense.planner import generate_weekly_plan
from studysense.predictor import PredictorConfig, ScorePredictor, train_predictor
from studysense.cli._render import render_history, render_plan, render_report


console = Console()

app = typer.Typer(
    name="studysense",
    help="StudySense: study session analysis and recommendations.",
    add_completion=False,
    rich_markup_mode="markdown",
)


class PredictorKind(str, Enum):
    heuristic = "heuristic"
    regression = "regression"


# ---------------------------------------------------------------------------
# Helpers for resolving the --db path (STUDYSENSE_DB envvar fallback)
# ---------------------------------------------------------------------------


def _resolve_db_path(db: Optional[Path]) -> Path:
    """Resolve db path from CLI flag or STUDYSENSE_DB envvar. Exits on missing."""
    if db is not None:
        return db
    env_val = os.environ.get("STUDYSENSE_DB")
    if env_val:
        return Path(env_val)
    console.print(
        "[bold red]Error: --db is required "
        "(or set the STUDYSENSE_DB environment variable).[/bold red]"
    )
    raise typer.Exit(code=1)


# Common typer options reused across commands
_db_option = typer.Option(  # noqa: B008
    None,
    "--db",
    help="Path to the DuckDB database file. "
    "Falls back to STUDYSENSE_DB env var.",
    envvar="STUDYSENSE_DB",
)

_csv_option = typer.Option(  # noqa: B008
    None,
    "--csv",
    help="CSV file of study sessions to analyse.",
)

_student_option = typer.Option(  # noqa: B008
    None,
    "--student",
    "-s",
    help="Student identifier.",
)

_predictor_option = typer.Option(  # noqa: B008
    PredictorKind.heuristic,
    "--predictor",
    "-p",
    help="Score predictor variant.",
)


def _load_csv_sessions(csv_path: Path) -> List[StudySessionRecord]:
    """
    Load sessions from a CSV file, printing any rejected rows.

    Exits with code 1 if the file cannot be read or holds no valid rows.
    """
    try:
        records, errors = load_sessions_from_csv(csv_path)
    except IngestionError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e

    if errors:
        console.print("[bold red]Rejected rows:[/bold red]")
        for error in errors:
            console.print(f"- {escape(str(error))}")

    if not records:
        console.print("[bold red]Error: no valid study sessions found.[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"Loaded [green]{len(records)}[/green] study session(s).")
    return records


def _load_sessions(
    csv_path: Optional[Path], db: Optional[Path], student: Optional[str]
) -> List[StudySessionRecord]:
    """Sessions from --csv, or from the database for --student."""
    if csv_path is not None:
        return _load_csv_sessions(csv_path)

    if student is None:
        console.print(
            "[bold red]Error: provide --csv, or --student "
            "to read sessions from the database.[/bold red]"
        )
        raise typer.Exit(code=1)

    db_path = _resolve_db_path(db)
    with StudyDatabase(db_path=db_path) as db_inst:
        return db_inst.get_sessions(student)


def _train(
    sessions: List[StudySessionRecord], kind: PredictorKind
) -> ScorePredictor:
    predictor = train_predictor(sessions, PredictorConfig(kind=kind.value))
    if predictor.kind != kind.value:
        console.print(
            f"[yellow]The {kind.value} predictor could not be fitted; "
            f"using the {predictor.kind} predictor instead.[/yellow]"
        )
    return predictor


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@app.command()
def sample(
    output: Path = typer.Option(  # noqa: B008
        Path("data/study_sessions.csv"),
        "--output",
        "-o",
        help="Where to write the sample CSV.",
    ),
):
    """Write a small sample dataset of study sessions."""
    try:
        path = write_sample_csv(output)
    except IngestionError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e
    console.print(f"[green]Sample data created at {escape(str(path))}[/green]")


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------


@app.command()
def ingest(
    csv_path: Path = typer.Argument(  # noqa: B008
        ..., help="CSV file of study sessions."
    ),
    student: str = typer.Option(  # noqa: B008
        ..., "--student", "-s", help="Student the sessions belong to."
    ),
    db: Optional[Path] = _db_option,
):
    """Validate study sessions from a CSV file and store them."""
    db_path = _resolve_db_path(db)
    records = _load_csv_sessions(csv_path)
    try:
        with StudyDatabase(db_path=db_path) as db_inst:
            stored = db_inst.add_sessions(student, records)
    except DatabaseError as e:
        console.print(f"[bold red]Database Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    console.print(
        f"[bold green]Ingestion complete![/bold green] "
        f"{stored} session(s) stored for [cyan]{escape(student)}[/cyan]."
    )


# ---------------------------------------------------------------------------
# Analyze
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    csv_path: Optional[Path] = _csv_option,
    student: Optional[str] = _student_option,
    db: Optional[Path] = _db_option,
    predictor_kind: PredictorKind = _predictor_option,
    save: bool = typer.Option(
        False, "--save", help="Store the report in the database."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the report as JSON."
    ),
):
    """
    Analyse study sessions and print trends, predictions and recommendations.

    Sessions come from --csv, or from the database when only --student is
    given.
    """
    try:
        sessions = _load_sessions(csv_path, db, student)
        predictor = _train(sessions, predictor_kind) if sessions else None
        report = generate_analysis(
            student or DEFAULT_STUDENT_ID, sessions, predictor=predictor
        )
        if save:
            with StudyDatabase(db_path=_resolve_db_path(db)) as db_inst:
                analysis_id = db_inst.save_analysis(report)
            console.print(f"Saved analysis [cyan]{analysis_id}[/cyan].")
    except EmptyDatasetError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e
    except TrainingError as e:
        console.print(f"[bold red]Training Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold red]Database Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        render_report(console, report)


# ---------------------------------------------------------------------------
# Predict & plan
# ---------------------------------------------------------------------------


@app.command()
def predict(
    hours: float = typer.Option(..., "--hours", min=0, help="Session length in hours."),
    time_of_day: str = typer.Option(
        ..., "--time", help="Time of day (morning, afternoon, evening)."
    ),
    understanding: int = typer.Option(
        ..., "--understanding", min=0, max=100, help="Understanding score, 0-100."
    ),
    csv_path: Optional[Path] = _csv_option,
    student: Optional[str] = _student_option,
    db: Optional[Path] = _db_option,
    predictor_kind: PredictorKind = _predictor_option,
):
    """Predict the retention score of a hypothetical study session."""
    try:
        sessions = _load_sessions(csv_path, db, student)
        predictor = _train(sessions, predictor_kind)
    except TrainingError as e:
        console.print(f"[bold red]Training Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold red]Database Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    score = predictor.predict(hours, time_of_day, understanding)
    console.print(
        f"Predicted retention for {hours}h in the {escape(time_of_day)} "
        f"({predictor.kind}): [bold green]{score:.1f}%[/bold green]"
    )


@app.command()
def plan(
    csv_path: Optional[Path] = _csv_option,
    student: Optional[str] = _student_option,
    db: Optional[Path] = _db_option,
    predictor_kind: PredictorKind = _predictor_option,
    days: int = typer.Option(
        DEFAULT_PLAN_DAYS, "--days", min=1, help="Number of days to plan."
    ),
):
    """Generate a weekly study plan with predicted retention per block."""
    try:
        sessions = _load_sessions(csv_path, db, student)
        predictor = _train(sessions, predictor_kind)
    except TrainingError as e:
        console.print(f"[bold red]Training Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    except DatabaseError as e:
        console.print(f"[bold red]Database Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    render_plan(console, generate_weekly_plan(predictor, days=days))


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@app.command()
def history(
    student: str = typer.Option(  # noqa: B008
        ..., "--student", "-s", help="Student identifier."
    ),
    db: Optional[Path] = _db_option,
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=1, help="Show at most this many analyses."
    ),
):
    """List stored analyses for a student, newest first."""
    db_path = _resolve_db_path(db)
    try:
        with StudyDatabase(db_path=db_path) as db_inst:
            stored = db_inst.get_analysis_history(student, limit=limit)
    except DatabaseError as e:
        console.print(f"[bold red]Database Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if not stored:
        console.print(
            f"[yellow]No stored analyses for student {escape(student)}.[/yellow]"
        )
        return
    render_history(console, stored)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the CLI application, exiting with status 1 on unexpected errors."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {escape(str(e))}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
