"""
Exception taxonomy for the workbook ETL.

Failures are isolated to the smallest unit possible (row < sheet < run):
- StructuralError: the sheet cannot be interpreted and is excluded entirely
- ResolutionError: no persisted match corresponds to the sheet; it is skipped
- PersistenceError: a sheet's transaction failed and was rolled back
- RunError: the run itself could not continue; partial results are returned
"""

from typing import Optional


class EtlError(Exception):
    """Base class for pipeline errors."""


class StructuralError(EtlError):
    """Unparsable metadata or missing critical header fields for a sheet."""

    def __init__(self, sheet_name: str, message: str):
        self.sheet_name = sheet_name
        self.message = message
        super().__init__(f"{sheet_name}: {message}")


class ResolutionError(EtlError):
    """No persisted match could be found for a player sheet."""

    def __init__(self, sheet_name: str, message: str):
        self.sheet_name = sheet_name
        self.message = message
        super().__init__(f"{sheet_name}: {message}")


class PersistenceError(EtlError):
    """A sheet's unit of work failed and was rolled back."""

    def __init__(self, sheet_name: str, message: str, cause: Optional[BaseException] = None):
        self.sheet_name = sheet_name
        self.message = message
        self.cause = cause
        super().__init__(f"{sheet_name}: {message}")


class RunError(EtlError):
    """Unexpected failure that aborts the remaining run."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
