# Standard library imports
import json
import re
from pathlib import Path
from unittest.mock import patch

# Third-party imports
import pytest
from typer.testing import CliRunner

# Local application imports
from studysense.cli.main import app
from studysense.constants import SAMPLE_SESSIONS_CSV
from studysense.db.database import StudyDatabase
from studysense.exceptions import SessionRecordOperationError


runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def normalize_output(text: str) -> str:
    """
    Strip ANSI codes and collapse all whitespace to single spaces, so
    assertions survive rich wrapping long lines.
    """
    text = strip_ansi(text)
    return re.sub(r"\s+", " ", text).strip()


@pytest.fixture(autouse=True)
def no_db_envvar(monkeypatch):
    monkeypatch.delenv("STUDYSENSE_DB", raising=False)


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "sessions.csv"
    path.write_text(SAMPLE_SESSIONS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "cli.db"


def test_sample_writes_default_file():
    result = runner.invoke(app, ["sample"])
    assert result.exit_code == 0, result.output
    assert Path("data/study_sessions.csv").read_text(encoding="utf-8") == SAMPLE_SESSIONS_CSV
    assert "Sample data created" in normalize_output(result.stdout)


def test_sample_custom_output(tmp_path: Path):
    target = tmp_path / "out" / "s.csv"
    result = runner.invoke(app, ["sample", "--output", str(target)])
    assert result.exit_code == 0, result.output
    assert target.exists()


def test_analyze_csv_renders_report(sample_file: Path):
    result = runner.invoke(app, ["analyze", "--csv", str(sample_file)])
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "Loaded 10 study session(s)." in output
    assert "student_001" in output
    assert "Weekly Trends" in output
    assert "12.6h" in output
    assert "Subject Performance" in output
    assert "Optimal study times: morning, evening" in output
    assert "CONSISTENCY" in output
    assert "Next Step" in output


def test_analyze_json_output(sample_file: Path):
    result = runner.invoke(
        app, ["analyze", "--csv", str(sample_file), "--student", "s9", "--json"]
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout[result.stdout.index("{"):])
    assert payload["student_id"] == "s9"
    assert payload["weekly_trend"]["weekly_hours"] == pytest.approx(12.6)
    assert payload["optimal_times"] == ["morning", "evening"]
    assert [r["category"] for r in payload["recommendations"]] == ["consistency"]
    assert list(payload["subject_performance"]) == sorted(payload["subject_performance"])


def test_analyze_reports_rejected_rows(tmp_path: Path):
    path = tmp_path / "mixed.csv"
    path.write_text(
        SAMPLE_SESSIONS_CSV + "art,-2,morning,50,50\n", encoding="utf-8"
    )
    result = runner.invoke(app, ["analyze", "--csv", str(path)])
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "Rejected rows:" in output
    assert "mixed.csv (row 11)" in output
    assert "Loaded 10 study session(s)." in output


def test_analyze_header_only_csv_fails(tmp_path: Path):
    path = tmp_path / "empty.csv"
    path.write_text(SAMPLE_SESSIONS_CSV.splitlines()[0] + "\n", encoding="utf-8")
    result = runner.invoke(app, ["analyze", "--csv", str(path)])
    assert result.exit_code == 1
    assert "no valid study sessions found" in normalize_output(result.stdout)


def test_analyze_missing_csv_fails(tmp_path: Path):
    result = runner.invoke(app, ["analyze", "--csv", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in normalize_output(result.stdout)


def test_analyze_without_source_fails():
    result = runner.invoke(app, ["analyze"])
    assert result.exit_code == 1
    assert "provide --csv" in normalize_output(result.stdout)


def test_analyze_unknown_student_fails(db_file: Path):
    result = runner.invoke(
        app, ["analyze", "--student", "ghost", "--db", str(db_file)]
    )
    assert result.exit_code == 1
    assert "No study sessions supplied for student 'ghost'" in normalize_output(
        result.stdout
    )


def test_ingest_analyze_history_flow(sample_file: Path, db_file: Path):
    result = runner.invoke(
        app, ["ingest", str(sample_file), "--student", "s1", "--db", str(db_file)]
    )
    assert result.exit_code == 0, result.output
    assert "10 session(s) stored for s1" in normalize_output(result.stdout)

    result = runner.invoke(
        app, ["analyze", "--student", "s1", "--db", str(db_file), "--save"]
    )
    assert result.exit_code == 0, result.output
    assert "Saved analysis 1." in normalize_output(result.stdout)

    result = runner.invoke(app, ["history", "--student", "s1", "--db", str(db_file)])
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "Stored Analyses" in output
    assert "12.6" in output

    with StudyDatabase(db_file) as db:
        assert len(db.get_sessions("s1")) == 10
        assert db.get_latest_analysis("s1") is not None


def test_db_envvar_fallback(sample_file: Path, db_file: Path, monkeypatch):
    monkeypatch.setenv("STUDYSENSE_DB", str(db_file))
    result = runner.invoke(app, ["ingest", str(sample_file), "--student", "s1"])
    assert result.exit_code == 0, result.output
    with StudyDatabase(db_file) as db:
        assert db.get_student_ids() == ["s1"]


def test_ingest_without_db_fails(sample_file: Path):
    result = runner.invoke(app, ["ingest", str(sample_file), "--student", "s1"])
    assert result.exit_code == 1
    assert "--db is required" in normalize_output(result.stdout)


@patch("studysense.cli.main.StudyDatabase.add_sessions")
def test_ingest_database_error(mock_add, sample_file: Path, db_file: Path):
    mock_add.side_effect = SessionRecordOperationError("disk full")
    result = runner.invoke(
        app, ["ingest", str(sample_file), "--student", "s1", "--db", str(db_file)]
    )
    assert result.exit_code == 1
    assert "Database Error: disk full" in normalize_output(result.stdout)


def test_history_empty(db_file: Path):
    result = runner.invoke(app, ["history", "--student", "s1", "--db", str(db_file)])
    assert result.exit_code == 0, result.output
    assert "No stored analyses for student s1." in normalize_output(result.stdout)


def test_predict_heuristic(sample_file: Path):
    result = runner.invoke(
        app,
        [
            "predict",
            "--csv",
            str(sample_file),
            "--hours",
            "2.5",
            "--time",
            "morning",
            "--understanding",
            "80",
        ],
    )
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "(heuristic)" in output
    assert "93.0%" in output


def test_predict_regression_falls_back_on_tiny_dataset(tmp_path: Path):
    path = tmp_path / "tiny.csv"
    path.write_text(
        "subject,hours_studied,time_of_day,understanding_score,retention_score\n"
        "math,2.0,morning,80,80\n"
        "math,1.0,evening,60,70\n",
        encoding="utf-8",
    )
    result = runner.invoke(
        app,
        [
            "predict",
            "--csv",
            str(path),
            "--predictor",
            "regression",
            "--hours",
            "2",
            "--time",
            "morning",
            "--understanding",
            "70",
        ],
    )
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert (
        "The regression predictor could not be fitted; "
        "using the heuristic predictor instead." in output
    )
    assert "(heuristic)" in output


def test_plan_renders_table(sample_file: Path):
    result = runner.invoke(app, ["plan", "--csv", str(sample_file), "--days", "2"])
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "Optimized Weekly Study Plan" in output
    assert "Programming" in output


def test_plan_rejects_zero_days(sample_file: Path):
    result = runner.invoke(app, ["plan", "--csv", str(sample_file), "--days", "0"])
    assert result.exit_code != 0


@pytest.fixture
def bracketed_file(tmp_path: Path) -> Path:
    path = tmp_path / "bracketed.csv"
    path.write_text(
        "subject,hours_studied,time_of_day,understanding_score,retention_score\n"
        "[/math],2.0,[/dawn],80,85\n"
        "[bold]art,1.0,evening,70,60\n",
        encoding="utf-8",
    )
    return path


def test_analyze_prints_bracketed_labels_verbatim(bracketed_file: Path):
    result = runner.invoke(
        app, ["analyze", "--csv", str(bracketed_file), "--student", "[/s1]"]
    )
    assert result.exit_code == 0, result.output
    output = normalize_output(result.stdout)
    assert "[/s1]" in output
    assert "[/math]" in output
    assert "[bold]art" in output
    assert "[/dawn]" in output


def test_predict_prints_bracketed_time_verbatim(bracketed_file: Path):
    result = runner.invoke(
        app,
        [
            "predict",
            "--csv",
            str(bracketed_file),
            "--hours",
            "1.5",
            "--time",
            "[/night]",
            "--understanding",
            "70",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "in the [/night]" in normalize_output(result.stdout)


def test_ingest_prints_bracketed_student_verbatim(sample_file: Path, db_file: Path):
    result = runner.invoke(
        app,
        ["ingest", str(sample_file), "--student", "[/s1]", "--db", str(db_file)],
    )
    assert result.exit_code == 0, result.output
    assert "stored for [/s1]" in normalize_output(result.stdout)
