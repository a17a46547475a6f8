"""Custom exceptions for cntblank."""

from typing import Optional


class CntBlankError(Exception):
    """Base exception for all profiling operations."""
    pass


class FileHandlingError(CntBlankError):
    """Exception raised for file handling operations."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        self.file_path = file_path
        if file_path:
            message = f"{message} (File: {file_path})"
        super().__init__(message)


class OpenError(FileHandlingError):
    """Exception raised when a source cannot be opened or its sheet is missing."""
    pass


class UnsupportedFileFormatError(FileHandlingError):
    """Exception raised when file format is not supported."""
    pass


class InsufficientMemoryError(OpenError):
    """Exception raised when system doesn't have enough memory to load a workbook."""
    pass


class EmptySourceError(FileHandlingError):
    """Exception raised when a header is expected but the source has no rows."""
    pass


class EmptyHeaderError(CntBlankError):
    """Exception raised when the header row has no cells."""
    pass


class RowParseError(CntBlankError):
    """Exception raised for a malformed row; the row is skipped."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"{message}, #line {line}"
        super().__init__(message)


class TooManyErrorsError(FileHandlingError):
    """Exception raised when a source has more malformed rows than allowed."""
    pass


class DialectError(CntBlankError):
    """Exception raised for an invalid dialect configuration."""
    pass


class ReportWriteError(CntBlankError):
    """Exception raised when reports cannot be written."""
    pass
