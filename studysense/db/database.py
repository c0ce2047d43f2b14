"""
DuckDB persistence for study sessions and analysis reports.
"""

import duckdb
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from . import db_utils
from .connection import ConnectionHandler
from .schema_manager import SchemaManager
from ..exceptions import (
    AnalysisOperationError,
    DatabaseError,
    MarshallingError,
    SessionRecordOperationError,
)
from ..models import AnalysisReport, StoredAnalysis, StudySessionRecord

logger = logging.getLogger(__name__)


def _rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> List[Dict[str, Any]]:
    """Convert cursor results to list of dictionaries using column names."""
    rows = cursor.fetchall()
    if not rows:
        return []
    description = cursor.description
    if description is None:
        return []
    columns = [desc[0] for desc in description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


def _rollback_quietly(conn: duckdb.DuckDBPyConnection, context: str) -> None:
    """Roll back after a failed write; a rollback failure is only logged."""
    if conn and not getattr(conn, "closed", True):
        try:
            conn.rollback()
            logger.info(f"Transaction rolled back due to error in {context}.")
        except duckdb.Error as rb_err:
            logger.error(
                f"Failed to rollback transaction during {context}: {rb_err}"
            )


class StudyDatabase:
    """
    Facade over the database subsystem for session and analysis storage.

    Coordinates the ConnectionHandler, SchemaManager and marshalling helpers.
    Intended for use as a context manager.
    """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Args:
            db_path (str | Path): Database file, or ':memory:' for an
                in-memory database.
            read_only (bool): If True, open the database in read-only mode.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_manager = SchemaManager(self._handler)
        logger.info(
            f"StudyDatabase initialized for DB at: {self._handler.db_path_resolved}"
        )

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    @property
    def read_only(self) -> bool:
        return self._handler.read_only

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self._handler.get_connection()

    def close_connection(self) -> None:
        self._handler.close_connection()

    def __enter__(self) -> "StudyDatabase":
        """Open the connection and create the schema for a new writable DB."""
        self.get_connection()
        if self._handler.is_new_db and not self._handler.read_only:
            self.initialize_schema()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close_connection()

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        self._schema_manager.initialize_schema(
            force_recreate_tables=force_recreate_tables
        )

    # --- Session record operations ---

    _INSERT_SESSION_SQL = """
        INSERT INTO study_sessions (student_id, subject, hours_studied, time_of_day,
                                    understanding_score, retention_score, recorded_at)
        VALUES ($1, $2, $3, $4, $5, $6, $7);
        """

    def add_sessions(
        self, student_id: str, records: Sequence[StudySessionRecord]
    ) -> int:
        """
        Append session records for a student in a single transaction.

        Records keep their order; reading them back returns the same sequence.
        An empty sequence is a no-op.

        Returns:
            int: Number of records inserted.

        Raises:
            SessionRecordOperationError: If the insert fails; the transaction
                is rolled back.
        """
        if not records:
            return 0

        params = db_utils.session_records_to_db_params(
            student_id, records, db_utils.utc_now_naive()
        )
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                cursor.executemany(self._INSERT_SESSION_SQL, params)
                cursor.commit()
        except duckdb.Error as e:
            logger.error(
                f"Error inserting sessions for student {student_id}: {e}"
            )
            _rollback_quietly(conn, "session insert")
            raise SessionRecordOperationError(
                f"Failed to add sessions: {e}", original_exception=e
            ) from e
        logger.info(f"Stored {len(params)} session(s) for student {student_id}")
        return len(params)

    def get_sessions(self, student_id: str) -> List[StudySessionRecord]:
        """
        Return a student's sessions in the order they were added.

        Raises:
            SessionRecordOperationError: If the query fails or a row cannot be
                converted into a record.
        """
        conn = self.get_connection()
        sql = """
            SELECT subject, hours_studied, time_of_day,
                   understanding_score, retention_score
            FROM study_sessions
            WHERE student_id = $1
            ORDER BY session_id;
        """
        try:
            cursor = conn.execute(sql, (student_id,))
            rows = _rows_to_dicts(cursor)
        except duckdb.Error as e:
            logger.error(f"Error fetching sessions for student {student_id}: {e}")
            raise SessionRecordOperationError(
                f"Failed to get sessions: {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_session_record(row) for row in rows]
        except MarshallingError as e:
            raise SessionRecordOperationError(
                f"Failed to parse sessions for student {student_id}.",
                original_exception=e,
            ) from e

    def get_student_ids(self) -> List[str]:
        """Sorted ids of every student with stored sessions."""
        conn = self.get_connection()
        sql = "SELECT DISTINCT student_id FROM study_sessions ORDER BY student_id;"
        try:
            rows = _rows_to_dicts(conn.execute(sql))
            return [row["student_id"] for row in rows]
        except duckdb.Error as e:
            logger.error(f"Could not fetch student ids due to a database error: {e}")
            raise SessionRecordOperationError(
                "Could not fetch student ids.", original_exception=e
            ) from e

    # --- Analysis operations ---

    def save_analysis(self, report: AnalysisReport) -> int:
        """
        Persist a report as JSON.

        Returns:
            int: The new analysis id.

        Raises:
            AnalysisOperationError: If the insert fails.
        """
        sql = """
            INSERT INTO analyses (student_id, created_at, report_json)
            VALUES ($1, $2, $3)
            RETURNING analysis_id;
        """
        params = db_utils.report_to_db_params(report, db_utils.utc_now_naive())
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                result = cursor.execute(sql, params).fetchone()
                cursor.commit()
        except duckdb.Error as e:
            logger.error(
                f"Error saving analysis for student {report.student_id}: {e}"
            )
            _rollback_quietly(conn, "analysis insert")
            raise AnalysisOperationError(
                f"Failed to save analysis: {e}", original_exception=e
            ) from e
        if result is None:
            raise AnalysisOperationError(
                "Failed to retrieve analysis_id after insert."
            )
        analysis_id = int(result[0])
        logger.info(
            f"Saved analysis {analysis_id} for student {report.student_id}"
        )
        return analysis_id

    def get_analysis_history(
        self, student_id: str, limit: Optional[int] = None
    ) -> List[StoredAnalysis]:
        """
        Return stored analyses for a student, newest first.

        Raises:
            AnalysisOperationError: If the query fails or a stored report
                cannot be parsed.
        """
        conn = self.get_connection()
        sql = """
            SELECT analysis_id, created_at, report_json
            FROM analyses
            WHERE student_id = $1
            ORDER BY analysis_id DESC
        """
        params: List[Any] = [student_id]
        if limit is not None:
            sql += " LIMIT $2"
            params.append(limit)
        try:
            rows = _rows_to_dicts(conn.execute(sql, params))
        except duckdb.Error as e:
            logger.error(
                f"Error fetching analyses for student {student_id}: {e}"
            )
            raise AnalysisOperationError(
                f"Failed to get analyses: {e}", original_exception=e
            ) from e
        try:
            return [db_utils.db_row_to_stored_analysis(row) for row in rows]
        except MarshallingError as e:
            raise AnalysisOperationError(
                f"Failed to parse stored analyses for student {student_id}.",
                original_exception=e,
            ) from e

    def get_latest_analysis(self, student_id: str) -> Optional[AnalysisReport]:
        """Most recently saved report for a student, or None."""
        history = self.get_analysis_history(student_id, limit=1)
        return history[0].report if history else None

    def delete_student(self, student_id: str) -> int:
        """
        Remove all sessions and analyses stored for a student.

        Returns:
            int: Number of session records removed.

        Raises:
            DatabaseError: If the deletion fails; the transaction is rolled back.
        """
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                count_row = cursor.execute(
                    "SELECT COUNT(*) FROM study_sessions WHERE student_id = $1;",
                    (student_id,),
                ).fetchone()
                cursor.execute(
                    "DELETE FROM study_sessions WHERE student_id = $1;",
                    (student_id,),
                )
                cursor.execute(
                    "DELETE FROM analyses WHERE student_id = $1;", (student_id,)
                )
                cursor.commit()
        except duckdb.Error as e:
            logger.error(f"Error deleting data for student {student_id}: {e}")
            _rollback_quietly(conn, "student deletion")
            raise DatabaseError(
                f"Failed to delete student {student_id}: {e}",
                original_exception=e,
            ) from e
        removed = count_row[0] if count_row else 0
        logger.info(f"Deleted {removed} session(s) for student {student_id}")
        return removed
