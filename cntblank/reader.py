"""
Record source for cntblank.
Reads delimited text and Excel workbooks row by row behind one interface.
"""

import csv
import logging
import sys
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union, Iterator, List, TextIO, BinaryIO

import pandas as pd
import psutil

from .config import (
    MAX_ERROR_LINES, PROGRESS_INTERVAL, MEMORY_THRESHOLD,
    SPREADSHEET_FORMATS, EXCEL_PARAMS, EXCEL_SHEET_PARAMS
)
from .dialect import Dialect
from .dtparse import format_datetime
from .exceptions import (
    OpenError, InsufficientMemoryError, RowParseError, TooManyErrorsError
)

STDIN_LOCATORS = (None, '', '-')


class RecordSource:
    """
    Uniform row reader over delimited text or a materialised Excel sheet.

    Use :meth:`open` to construct one. ``read()`` returns the next row,
    ``None`` at end of data, or raises :class:`RowParseError` for a malformed
    row the caller should skip.
    """

    def __init__(self,
                 dialect: Dialect,
                 text: Optional[TextIO] = None,
                 rows: Optional[List[List[str]]] = None,
                 path: Optional[str] = None,
                 closer: Optional[Callable[[], object]] = None):
        self.dialect = dialect
        self.path = path
        self.line = 0
        self.errors = 0
        self.column_sizes: Counter = Counter()
        self.logger = self._setup_logger()

        self._closer = closer
        self._rows = rows
        self._csv_reader = None
        self._expected_width: Optional[int] = None
        self._failed = False
        self._finished = False
        if text is not None:
            self._csv_reader = csv.reader(
                self._skip_comments(text),
                delimiter=dialect.delimiter,
                skipinitialspace=True
            )

    def _setup_logger(self) -> logging.Logger:
        """Set up logging for read operations."""
        return logging.getLogger(f"{__name__}.RecordSource")

    @property
    def name(self) -> str:
        return self.path or '<stdin>'

    @classmethod
    def open(cls,
             locator: Optional[Union[str, Path]],
             dialect: Dialect,
             memory_threshold: float = MEMORY_THRESHOLD) -> 'RecordSource':
        """
        Open a source for reading.

        Args:
            locator: File path; ``None``, ``""`` or ``"-"`` reads standard input
            dialect: How to read the source
            memory_threshold: Maximum memory usage allowed before a workbook
                is loaded (0.0 to 1.0)

        Returns:
            An open RecordSource

        Raises:
            OpenError: If the file is inaccessible, the workbook cannot be
                parsed, or the selected sheet does not exist
        """
        if locator in STDIN_LOCATORS:
            return cls.from_stream(sys.stdin.buffer, dialect)

        file_path = Path(locator)
        cls._validate_file(file_path)

        if file_path.suffix.lower() in SPREADSHEET_FORMATS:
            rows = cls._read_sheet(file_path, dialect.sheet_number, memory_threshold)
            return cls(dialect, rows=rows, path=str(file_path))

        try:
            handle = open(file_path, 'rb')
        except OSError as e:
            raise OpenError(f"Failed to open file: {e}", str(file_path))
        text = dialect.encoding.open_text(handle)
        return cls(dialect, text=text, path=str(file_path), closer=text.close)

    @classmethod
    def from_stream(cls, stream: BinaryIO, dialect: Dialect) -> 'RecordSource':
        """Read delimited text from an already open binary stream, left open on close."""
        text = dialect.encoding.open_text(stream)
        return cls(dialect, text=text, closer=text.detach)

    @staticmethod
    def _validate_file(file_path: Path) -> None:
        """
        Validate file exists and is a regular file.

        Raises:
            OpenError: If file doesn't exist or is not a file
        """
        if not file_path.exists():
            raise OpenError("File not found", str(file_path))

        if not file_path.is_file():
            raise OpenError("Path is not a file", str(file_path))

    @staticmethod
    def _check_memory_usage(memory_threshold: float) -> None:
        """Check current memory usage and raise exception if threshold exceeded."""
        memory_percent = psutil.virtual_memory().percent / 100
        if memory_percent > memory_threshold:
            raise InsufficientMemoryError(
                f"Memory usage ({memory_percent:.1%}) exceeds threshold "
                f"({memory_threshold:.1%})"
            )

    @classmethod
    def _read_sheet(cls,
                    file_path: Path,
                    sheet_number: int,
                    memory_threshold: float) -> List[List[str]]:
        """Load one sheet of an Excel workbook as a matrix of strings."""
        cls._check_memory_usage(memory_threshold)
        try:
            with pd.ExcelFile(file_path, **EXCEL_PARAMS) as xl_file:
                sheets = xl_file.sheet_names
                if sheet_number > len(sheets):
                    raise OpenError(
                        f"Workbook has only {len(sheets)} sheets, "
                        f"given sheet number is {sheet_number}",
                        str(file_path)
                    )
                index = sheet_number - 1 if sheet_number > 0 else 0
                df = xl_file.parse(sheet_name=index, **EXCEL_SHEET_PARAMS)
        except OpenError:
            raise
        except Exception as e:
            raise OpenError(f"Failed to read workbook: {e}", str(file_path))

        return [[_cell_text(value) for value in row]
                for row in df.itertuples(index=False, name=None)]

    def _skip_comments(self, text: TextIO) -> Iterator[str]:
        """
        Yield lines of ``text``, dropping comment lines.

        A line is a comment only at the start of a record; inside an open
        quoted field it is part of the cell.
        """
        comment = self.dialect.comment
        in_quotes = False
        for line in text:
            if not in_quotes and comment and line.startswith(comment):
                continue
            # An escaped quote ("") does not change the parity
            if line.count('"') % 2 == 1:
                in_quotes = not in_quotes
            yield line

    def read(self) -> Optional[List[str]]:
        """
        Read the next row.

        Returns:
            The row's cells, or None at end of data

        Raises:
            RowParseError: If the row is malformed; it is skipped
            TooManyErrorsError: If more than MAX_ERROR_LINES rows were
                malformed; the source stays failed
        """
        if self._failed:
            raise TooManyErrorsError("Too many error lines", self.path)
        if self._finished:
            return None

        if self._csv_reader is not None:
            record = self._read_delimited()
        else:
            record = self._read_matrix()

        if record is None:
            self._finish()
            return None

        self.line += 1
        self.column_sizes[len(record)] += 1
        if self.line % PROGRESS_INTERVAL == 0:
            self.logger.info(f"{self.name}: ==> Processed {self.line:,} lines <==")
        return record

    def _read_delimited(self) -> Optional[List[str]]:
        while True:
            try:
                record = next(self._csv_reader)
            except StopIteration:
                return None
            except csv.Error as e:
                self._reject(str(e))
            if not record:
                # Empty lines are not records
                continue
            if self.dialect.strict:
                if self._expected_width is None:
                    self._expected_width = len(record)
                elif len(record) != self._expected_width:
                    self._reject(
                        f"wrong number of fields: {len(record)}, "
                        f"expected {self._expected_width}"
                    )
            return record

    def _read_matrix(self) -> Optional[List[str]]:
        if self.line >= len(self._rows):
            return None
        return self._rows[self.line]

    def _reject(self, message: str) -> None:
        """Count a malformed row and raise the matching error."""
        line_number = self._csv_reader.line_num
        self.errors += 1
        self.logger.error(f"{self.name}: {message}, #line {line_number}")
        if self.errors > MAX_ERROR_LINES:
            self._failed = True
            self.logger.error(f"{self.name}: too many error lines")
            raise TooManyErrorsError("Too many error lines", self.path)
        raise RowParseError(message, line_number)

    def _finish(self) -> None:
        """Report the summary once the source is exhausted."""
        if self._finished:
            return
        self._finished = True
        self.logger.info(f"{self.name}: finish parsing {self.line} lines with {self.errors} errors")
        for size, count in sorted(self.column_sizes.items()):
            self.logger.info(f"  column size {size} has {count} lines")

    def __iter__(self) -> Iterator[List[str]]:
        """Iterate over rows, skipping malformed ones."""
        while True:
            try:
                record = self.read()
            except RowParseError:
                continue
            if record is None:
                return
            yield record

    def close(self) -> None:
        """Close the underlying file; safe to call more than once."""
        if self._closer is not None:
            closer, self._closer = self._closer, None
            closer()

    def __enter__(self) -> 'RecordSource':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def _cell_text(value) -> str:
    """Render a spreadsheet cell as the text a delimited file would hold."""
    if value is None:
        return ''
    if isinstance(value, float) and pd.isna(value):
        return ''
    if value is pd.NaT:
        return ''
    if isinstance(value, datetime):
        return format_datetime(value)
    return str(value)
