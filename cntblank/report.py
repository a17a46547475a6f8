"""
Streaming column profiler for cntblank.
Folds rows one at a time into a Report of per-column statistics.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Any, Optional

from .dtparse import parse_datetime, format_datetime
from .exceptions import EmptyHeaderError, EmptySourceError, RowParseError
from .reader import RecordSource

INT_PATTERN = re.compile(r'[+-]?[0-9]+')
FLOAT_PATTERN = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

TRUE_TOKENS = {'1', 't', 'true'}
FALSE_TOKENS = {'0', 'f', 'false'}


def parse_int(value: str) -> Optional[int]:
    """Parse a base-10 integer without separators; None if not an integer."""
    if not INT_PATTERN.fullmatch(value):
        return None
    number = int(value)
    if number < INT64_MIN or number > INT64_MAX:
        return None
    return number


def parse_float(value: str) -> Optional[float]:
    """Parse a decimal floating-point number; None if not a number."""
    if not FLOAT_PATTERN.fullmatch(value):
        return None
    number = float(value)
    if number in (float('inf'), float('-inf')):
        return None
    return number


def parse_bool(value: str) -> Optional[bool]:
    lowered = value.lower()
    if lowered in TRUE_TOKENS:
        return True
    if lowered in FALSE_TOKENS:
        return False
    return None


def is_full_width(value: str) -> bool:
    """True if every character of ``value`` occupies a double-width cell."""
    return bool(value) and all(
        unicodedata.east_asian_width(char) in ('F', 'W') for char in value
    )


@dataclass
class ReportField:
    """Running statistics for one column."""

    seq: int
    name: str
    blank: int = 0
    min_length: int = 0
    max_length: int = 0
    int_type: int = 0
    int_minimum: Optional[int] = None
    int_maximum: Optional[int] = None
    float_type: int = 0
    float_minimum: Optional[float] = None
    float_maximum: Optional[float] = None
    bool_type: int = 0
    true_count: int = 0
    false_count: int = 0
    time_type: int = 0
    time_minimum: Optional[datetime] = None
    time_maximum: Optional[datetime] = None
    full_width: int = 0

    def update(self, value: str) -> bool:
        """
        Fold one cell into the statistics.

        Every type check runs independently, so one cell may count as
        several types (``"42"`` is both an integer and a float).

        Returns:
            True if the cell was blank
        """
        value = value.strip()
        if not value:
            self.blank += 1
            return True

        length = len(value)
        if self.min_length == 0 or length < self.min_length:
            self.min_length = length
        if length > self.max_length:
            self.max_length = length

        if is_full_width(value):
            self.full_width += 1

        int_value = parse_int(value)
        if int_value is not None:
            if self.int_type == 0:
                self.int_minimum = self.int_maximum = int_value
            else:
                self.int_minimum = min(self.int_minimum, int_value)
                self.int_maximum = max(self.int_maximum, int_value)
            self.int_type += 1

        float_value = parse_float(value)
        if float_value is not None:
            if self.float_type == 0:
                self.float_minimum = self.float_maximum = float_value
            else:
                self.float_minimum = min(self.float_minimum, float_value)
                self.float_maximum = max(self.float_maximum, float_value)
            self.float_type += 1

        bool_value = parse_bool(value)
        if bool_value is not None:
            if bool_value:
                self.true_count += 1
            else:
                self.false_count += 1
            self.bool_type += 1

        try:
            time_value = parse_datetime(value)
        except ValueError:
            time_value = None
        if time_value is not None:
            if self.time_type == 0:
                self.time_minimum = self.time_maximum = time_value
            else:
                self.time_minimum = min(self.time_minimum, time_value)
                self.time_maximum = max(self.time_maximum, time_value)
            self.time_type += 1

        return False

    def format(self, total: int) -> List[str]:
        """
        Render the field as one report line.

        Args:
            total: Number of records in the report, the blank ratio denominator

        Returns:
            14 strings in REPORT_OUTPUT_FIELDS order; inapplicable columns
            are empty strings
        """
        s = [''] * 14
        s[0] = str(self.seq)
        s[1] = self.name
        s[2] = str(self.blank)
        s[3] = f"{self.blank / total:.4f}" if total else 'NaN'
        s[4] = _count(self.min_length)
        s[5] = _count(self.max_length)
        s[6] = _count(self.int_type)
        s[7] = _count(self.float_type)
        s[8] = _count(self.bool_type)
        s[9] = _count(self.time_type)
        s[10], s[11] = self._extrema()
        if self.bool_type > 0:
            s[12] = str(self.true_count)
            s[13] = str(self.false_count)
        return s

    def _extrema(self):
        """Pick the minimum/maximum display pair."""
        if self.time_type > self.float_type:
            return format_datetime(self.time_minimum), format_datetime(self.time_maximum)
        if self.float_type > 0 and self.int_type > 0:
            # Show the integer form whenever it is not above the float form
            if self.int_minimum <= self.float_minimum:
                minimum = str(self.int_minimum)
            else:
                minimum = f"{self.float_minimum:.4f}"
            if self.int_maximum <= self.float_maximum:
                maximum = str(self.int_maximum)
            else:
                maximum = f"{self.float_maximum:.4f}"
            return minimum, maximum
        if self.float_type > 0:
            return f"{self.float_minimum:.4f}", f"{self.float_maximum:.4f}"
        if self.int_type > 0:
            return str(self.int_minimum), str(self.int_maximum)
        return '', ''

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation; extrema only appear with their type."""
        data: Dict[str, Any] = {
            'seq': self.seq,
            'name': self.name,
            'blank': self.blank,
            'minLength': self.min_length,
            'maxLength': self.max_length,
            'typeInt': self.int_type,
            'typeFloat': self.float_type,
            'typeBool': self.bool_type,
            'typeTime': self.time_type,
        }
        if self.int_type > 0:
            data['intMinimum'] = self.int_minimum
            data['intMaximum'] = self.int_maximum
        if self.float_type > 0:
            data['floatMinimum'] = self.float_minimum
            data['floatMaximum'] = self.float_maximum
        if self.time_type > 0:
            data['minTime'] = self.time_minimum.isoformat()
            data['maxTime'] = self.time_maximum.isoformat()
        if self.bool_type > 0:
            data['boolTrue'] = self.true_count
            data['boolFalse'] = self.false_count
        return data


def _count(value: int) -> str:
    return str(value) if value > 0 else ''


@dataclass
class Report:
    """Per-source profiling result."""

    path: Optional[str] = None
    filename: Optional[str] = None
    md5hex: Optional[str] = None
    has_header: bool = False
    records: int = 0
    fields: List[ReportField] = field(default_factory=list)

    @classmethod
    def new(cls, path: Optional[str] = None, md5hex: Optional[str] = None) -> 'Report':
        """Create an empty report for the source at ``path``."""
        if not path:
            return cls()
        return cls(path=str(path), filename=Path(path).name, md5hex=md5hex)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.path:
            data['path'] = self.path
            data['filename'] = self.filename
        if self.md5hex:
            data['md5'] = self.md5hex
        data['header'] = self.has_header
        data['records'] = self.records
        data['fields'] = [f.to_dict() for f in self.fields]
        return data


class ProfilerState(Enum):
    AWAITING_HEADER = 'awaiting_header'
    ACCUMULATING = 'accumulating'


class Profiler:
    """
    Folds a row stream into a Report without buffering rows.

    With a header the first row names the columns; otherwise every row is a
    record from the start. Columns are added whenever a row is wider than
    any row before it.
    """

    def __init__(self, has_header: bool = True, report: Optional[Report] = None):
        """
        Initialize Profiler.

        Args:
            has_header: Consume the first row as column names
            report: Report to fill, a new empty one if omitted
        """
        self.report = report if report is not None else Report()
        self.state = ProfilerState.AWAITING_HEADER if has_header else ProfilerState.ACCUMULATING
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logging for profiling operations."""
        return logging.getLogger(f"{__name__}.Profiler")

    def consume(self, row: List[str]) -> int:
        """
        Fold one row according to the current state.

        Returns:
            Number of blank cells in the row (0 for the header)
        """
        if self.state is ProfilerState.AWAITING_HEADER:
            self.consume_header(row)
            return 0
        return self.consume_record(row)

    def consume_header(self, row: List[str]) -> None:
        """
        Name the columns from a header row.

        Raises:
            EmptyHeaderError: If the row has no cells
        """
        if len(row) == 0:
            raise EmptyHeaderError("Header record has no elements")
        for i, cell in enumerate(row):
            name = cell.strip().replace('\n', '').replace('\r', '')
            self.report.fields.append(ReportField(seq=i + 1, name=name or _column_name(i)))
        self.report.has_header = True
        self.state = ProfilerState.ACCUMULATING

    def consume_record(self, row: List[str]) -> int:
        """
        Fold one data row into the per-column statistics.

        Returns:
            Number of blank cells in the row
        """
        report = self.report
        report.records += 1
        fields = report.fields
        for i in range(len(fields), len(row)):
            # The column was absent, so blank, in every earlier record
            fields.append(ReportField(seq=i + 1, name=_column_name(i), blank=report.records - 1))

        blank_count = 0
        for f, cell in zip(fields, row):
            if f.update(cell):
                blank_count += 1
        return blank_count

    def profile(self, source: RecordSource) -> Report:
        """
        Read every row of ``source`` into the report.

        Args:
            source: Open record source

        Returns:
            The filled report

        Raises:
            EmptySourceError: If a header is expected but the source is empty
            EmptyHeaderError: If the header row has no cells
            TooManyErrorsError: If the source has too many malformed rows
        """
        if self.state is ProfilerState.AWAITING_HEADER:
            header = self._read_header(source)
            self.consume_header(header)
            self.logger.info(f"start parsing with {len(self.report.fields)} columns.")
        else:
            self.logger.info("start parsing without header row")

        for record in source:
            blank_count = self.consume_record(record)
            if blank_count > 0:
                self.logger.debug(
                    f"line #{source.line} has {len(record)} fields with {blank_count} NULL(s)."
                )

        self.logger.info(
            f"get {self.report.records} records with {len(self.report.fields)} columns"
        )
        return self.report

    def _read_header(self, source: RecordSource) -> List[str]:
        while True:
            try:
                header = source.read()
            except RowParseError:
                continue
            if header is None:
                raise EmptySourceError("Reader is empty", source.path)
            return header


def _column_name(index: int) -> str:
    return f"Column{index + 1:03d}"
