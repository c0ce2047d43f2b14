from pathlib import Path
from typing import Optional, Union


class StudySenseError(Exception):
    """Base exception for all studysense errors."""

    pass


# --- Analysis errors ---


class AnalysisError(StudySenseError):
    """Base exception for failures inside the analysis pipeline."""

    pass


class EmptyDatasetError(AnalysisError):
    """Raised when an analysis or fit is requested over zero sessions."""

    pass


class TrainingError(AnalysisError):
    """Raised when a predictor cannot be fitted to the supplied sessions."""

    pass


# --- Ingestion errors ---


class IngestionError(StudySenseError):
    """Raised when a session source cannot be read at all."""

    def __init__(
        self,
        source: Union[str, Path],
        message: str,
        original_exception: Optional[Exception] = None,
    ):
        self.source = Path(source)
        self.message = message
        self.original_exception = original_exception
        super().__init__(f"{self.source.name}: {message}")


class MalformedRecordError(StudySenseError):
    """Describes a single session row that failed validation."""

    def __init__(self, source: Union[str, Path], row: int, message: str):
        self.source = Path(source)
        self.row = row
        self.message = message
        super().__init__(f"{self.source.name} (row {row}): {message}")


# --- Storage errors ---


class DatabaseError(StudySenseError):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class SessionRecordOperationError(DatabaseError):
    """Indicates an error while storing or loading study session records."""

    pass


class AnalysisOperationError(DatabaseError):
    """Indicates an error while storing or loading analysis reports."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass
