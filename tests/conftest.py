import sys
import pytest
from pathlib import Path
from typing import Generator, List

from studysense.constants import SAMPLE_SESSIONS_CSV
from studysense.db import StudyDatabase
from studysense.models import StudySessionRecord


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(request):
    """Run each test with its tmpdir as the working directory."""
    tmpdir = request.getfixturevalue("tmpdir")
    sys.path.insert(0, str(tmpdir))
    with tmpdir.as_cwd():
        yield


def make_session(
    subject: str = "math",
    hours: float = 2.0,
    time_of_day: str = "morning",
    understanding: int = 80,
    retention: int = 80,
) -> StudySessionRecord:
    """Build a StudySessionRecord with positional shorthand for tests."""
    return StudySessionRecord(
        subject=subject,
        hours_studied=hours,
        time_of_day=time_of_day,
        understanding_score=understanding,
        retention_score=retention,
    )


@pytest.fixture
def sample_sessions() -> List[StudySessionRecord]:
    """
    The ten bundled sample sessions, in file order.

    Known aggregates: 18.0 total hours, retention sum 760, understanding
    mean 76.5, bucket hours morning 7.5 / afternoon 4.0 / evening 6.5.
    """
    rows = [
        ("mathematics", 2.0, "morning", 85, 90),
        ("physics", 1.5, "afternoon", 70, 65),
        ("programming", 3.0, "evening", 90, 80),
        ("history", 1.0, "morning", 60, 75),
        ("english", 1.5, "evening", 75, 70),
        ("chemistry", 2.5, "morning", 80, 85),
        ("mathematics", 1.5, "afternoon", 75, 70),
        ("programming", 2.0, "evening", 85, 80),
        ("physics", 2.0, "morning", 80, 85),
        ("history", 1.0, "afternoon", 65, 60),
    ]
    return [make_session(*row) for row in rows]


@pytest.fixture
def linear_sessions() -> List[StudySessionRecord]:
    """
    Sessions whose retention is exactly
    20 + 5 * hours + 3 * ordinal(time_of_day) + 0.5 * understanding.
    """
    rows = [
        ("math", 1.0, "morning", 60, 55),
        ("math", 2.0, "afternoon", 70, 68),
        ("physics", 3.0, "evening", 80, 81),
        ("physics", 1.0, "evening", 90, 76),
        ("history", 2.0, "morning", 50, 55),
        ("history", 4.0, "afternoon", 60, 73),
    ]
    return [make_session(*row) for row in rows]


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    path = tmp_path / "study_sessions.csv"
    path.write_text(SAMPLE_SESSIONS_CSV, encoding="utf-8")
    return path


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_study.db"


@pytest.fixture(params=["memory", "file"])
def db_manager(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[StudyDatabase, None, None]:
    """A StudyDatabase backed by memory or a temporary file; closed on teardown."""
    if request.param == "memory":
        db_man = StudyDatabase(db_path_memory)
    else:
        db_man = StudyDatabase(db_path_file)
    try:
        yield db_man
    finally:
        db_man.close_connection()


@pytest.fixture
def initialized_db_manager(db_manager: StudyDatabase) -> StudyDatabase:
    db_manager.initialize_schema()
    return db_manager
