import duckdb
import logging

from . import schema
from .connection import ConnectionHandler
from ..exceptions import DatabaseConnectionError, SchemaInitializationError

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates and, on request, recreates the database schema."""

    def __init__(self, handler: ConnectionHandler):
        self._handler = handler

    def initialize_schema(self, force_recreate_tables: bool = False) -> None:
        """
        Create all tables inside one transaction.

        Skipped for read-only file databases. ``force_recreate_tables`` drops
        the existing tables first, deleting all stored sessions and analyses.

        Raises:
            DatabaseConnectionError: If recreation is requested in read-only mode.
            SchemaInitializationError: If the DDL fails.
        """
        if self._handler.read_only:
            if force_recreate_tables:
                raise DatabaseConnectionError(
                    "Cannot force_recreate_tables in read-only mode."
                )
            if not self._handler.is_memory:
                logger.warning(
                    "Attempting to initialize schema in read-only mode. Skipping."
                )
                return

        conn = self._handler.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.begin()
                if force_recreate_tables:
                    self._drop_tables(cursor)
                cursor.execute(schema.DB_SCHEMA_SQL)
                cursor.commit()
            logger.info(
                f"Database schema at {self._handler.db_path_resolved} initialized successfully (or already exists)."
            )
        except duckdb.Error as e:
            logger.error(
                f"Error initializing database schema at {self._handler.db_path_resolved}: {e}"
            )
            if conn and not getattr(conn, "closed", True):
                try:
                    conn.rollback()
                    logger.info(
                        "Transaction rolled back due to schema initialization error."
                    )
                except duckdb.Error as rb_err:
                    logger.error(f"Failed to rollback transaction: {rb_err}")
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e

    def _drop_tables(self, cursor: duckdb.DuckDBPyConnection) -> None:
        logger.warning(
            f"Forcing table recreation for {self._handler.db_path_resolved}. ALL EXISTING DATA WILL BE LOST."
        )
        cursor.execute("DROP TABLE IF EXISTS analyses CASCADE;")
        cursor.execute("DROP TABLE IF EXISTS study_sessions CASCADE;")
        cursor.execute("DROP SEQUENCE IF EXISTS analyses_seq;")
        cursor.execute("DROP SEQUENCE IF EXISTS study_sessions_seq;")
