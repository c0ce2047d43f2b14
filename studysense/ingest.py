"""
Loading study sessions from CSV files.

Rows are read with DuckDB's CSV reader and validated one by one into
StudySessionRecord models. Invalid rows are reported as MalformedRecordError
values rather than aborting the whole file.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import duckdb
from pydantic import ValidationError

from .constants import CSV_COLUMNS, SAMPLE_SESSIONS_CSV
from .exceptions import IngestionError, MalformedRecordError
from .models import StudySessionRecord

logger = logging.getLogger(__name__)


def _read_csv_rows(path: Path) -> List[Dict[str, Optional[str]]]:
    """Read every row of ``path`` as a mapping of column name to raw text."""
    conn = duckdb.connect(database=":memory:")
    try:
        relation = conn.read_csv(str(path), header=True, all_varchar=True)
        columns = [c.strip() for c in relation.columns]
        missing = [c for c in CSV_COLUMNS if c not in columns]
        if missing:
            raise IngestionError(
                path, f"Missing required column(s): {', '.join(missing)}"
            )
        return [dict(zip(columns, row, strict=True)) for row in relation.fetchall()]
    except duckdb.Error as e:
        raise IngestionError(
            path, f"Could not parse CSV: {e}", original_exception=e
        ) from e
    finally:
        conn.close()


def parse_session_row(
    row: Dict[str, Optional[str]], source: Path, row_number: int
) -> Union[StudySessionRecord, MalformedRecordError]:
    """
    Validate one raw CSV row.

    Returns:
        StudySessionRecord | MalformedRecordError: The record, or an error
        naming the first invalid field.
    """
    data = {
        column: row[column].strip() if row.get(column) is not None else None
        for column in CSV_COLUMNS
    }
    try:
        return StudySessionRecord.model_validate(data)
    except ValidationError as e:
        error_details = e.errors()[0]
        field = ".".join(map(str, error_details["loc"]))
        msg = error_details["msg"]
        return MalformedRecordError(
            source, row_number, f"Validation error in field '{field}': {msg}"
        )


def load_sessions_from_csv(
    path: Union[str, Path],
) -> Tuple[List[StudySessionRecord], List[MalformedRecordError]]:
    """
    Load and validate study sessions from a CSV file.

    The file must have the header
    ``subject,hours_studied,time_of_day,understanding_score,retention_score``.
    Records keep the row order of the file.

    Returns:
        Tuple[List[StudySessionRecord], List[MalformedRecordError]]: Valid
        records in file order and one error per rejected row (row numbers are
        1-based, header excluded).

    Raises:
        IngestionError: If the file is missing, unreadable, or lacks a
            required column.
    """
    source = Path(path)
    if not source.is_file():
        raise IngestionError(source, "File not found.")

    records: List[StudySessionRecord] = []
    errors: List[MalformedRecordError] = []
    for index, row in enumerate(_read_csv_rows(source), start=1):
        result = parse_session_row(row, source, index)
        if isinstance(result, StudySessionRecord):
            records.append(result)
        else:
            logger.warning(f"Skipping malformed session row: {result}")
            errors.append(result)

    logger.info(
        f"Loaded {len(records)} session(s) from {source} ({len(errors)} rejected)"
    )
    return records, errors


def write_sample_csv(path: Union[str, Path]) -> Path:
    """Write the bundled ten-session sample dataset to ``path``."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(SAMPLE_SESSIONS_CSV, encoding="utf-8")
    except OSError as e:
        raise IngestionError(
            target, f"Could not write sample data: {e}", original_exception=e
        ) from e
    logger.info(f"Sample session data written to {target}")
    return target
