"""
Marshalling between studysense models and database rows.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence, Tuple

from pydantic import ValidationError

from ..exceptions import MarshallingError
from ..models import AnalysisReport, StoredAnalysis, StudySessionRecord


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, as stored in TIMESTAMP columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def session_records_to_db_params(
    student_id: str,
    records: Sequence[StudySessionRecord],
    recorded_at: datetime,
) -> List[Tuple]:
    """
    Convert records into parameter tuples ordered as
    (student_id, subject, hours_studied, time_of_day, understanding_score,
    retention_score, recorded_at).
    """
    return [
        (
            student_id,
            record.subject,
            record.hours_studied,
            record.time_of_day,
            record.understanding_score,
            record.retention_score,
            recorded_at,
        )
        for record in records
    ]


def db_row_to_session_record(row_dict: Dict[str, Any]) -> StudySessionRecord:
    """
    Raises:
        MarshallingError: If the row does not form a valid record.
    """
    try:
        return StudySessionRecord(
            subject=row_dict["subject"],
            hours_studied=row_dict["hours_studied"],
            time_of_day=row_dict["time_of_day"],
            understanding_score=row_dict["understanding_score"],
            retention_score=row_dict["retention_score"],
        )
    except (KeyError, ValidationError) as e:
        raise MarshallingError(
            f"Failed to parse session record from DB row: {e}",
            original_exception=e,
        ) from e


def report_to_db_params(
    report: AnalysisReport, created_at: datetime
) -> Tuple[str, datetime, str]:
    """(student_id, created_at, report_json) for one analysis row."""
    return (report.student_id, created_at, report.model_dump_json())


def db_row_to_stored_analysis(row_dict: Dict[str, Any]) -> StoredAnalysis:
    """
    Raises:
        MarshallingError: If the stored JSON is not a valid report.
    """
    try:
        created_at = row_dict["created_at"]
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return StoredAnalysis(
            analysis_id=row_dict["analysis_id"],
            created_at=created_at,
            report=AnalysisReport.model_validate_json(row_dict["report_json"]),
        )
    except (KeyError, ValidationError) as e:
        raise MarshallingError(
            f"Failed to parse analysis {row_dict.get('analysis_id')} from DB row: {e}",
            original_exception=e,
        ) from e
