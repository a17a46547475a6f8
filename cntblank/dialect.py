"""
Dialect configuration shared by the record source and the report writers.
"""

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, TextIO, Optional

from .config import DEFAULT_DELIMITER, DEFAULT_COMMENT, DEFAULT_SHEET_NUMBER
from .exceptions import DialectError

logger = logging.getLogger(__name__)


class Encoding(Enum):
    """Character encodings understood by cntblank, valued by codec name."""

    UTF8 = 'utf-8'
    SHIFT_JIS = 'cp932'  # Shift-JIS with the Windows (NEC/IBM) extensions

    @classmethod
    def parse(cls, tag: Optional[str]) -> 'Encoding':
        """
        Resolve an encoding tag given on the command line.

        Unknown tags are not fatal: a warning is logged and UTF-8 is used.
        """
        name = (tag or '').strip().lower().replace('-', '').replace('_', '')
        if name in ('', 'utf8'):
            return cls.UTF8
        if name in ('sjis', 'shiftjis', 'cp932', 'mskanji'):
            return cls.SHIFT_JIS
        logger.warning(f"Unknown encoding '{tag}', reading raw bytes as UTF-8")
        return cls.UTF8

    def open_text(self, stream: BinaryIO) -> TextIO:
        """
        Wrap a binary stream for reading or writing text in this encoding.

        Undecodable bytes become U+FFFD instead of aborting the stream.
        """
        return io.TextIOWrapper(stream, encoding=self.value, errors='replace', newline='')


@dataclass(frozen=True)
class Dialect:
    """
    Describes how one tabular source is read, or how reports are written.

    Attributes:
        delimiter: Field delimiter
        comment: Lines starting with this character are skipped
        strict: Every row must have as many cells as the first row
        has_header: First row holds column names
        encoding: Source (or output) character encoding
        sheet_number: Spreadsheet sheet, 1-based; 0 selects the first sheet
        emit_metadata: Writers put a metadata preamble before each report
    """

    delimiter: str = DEFAULT_DELIMITER
    comment: str = DEFAULT_COMMENT
    strict: bool = False
    has_header: bool = True
    encoding: Encoding = Encoding.UTF8
    sheet_number: int = DEFAULT_SHEET_NUMBER
    emit_metadata: bool = False

    def __post_init__(self):
        if len(self.delimiter) != 1 or self.delimiter in '\r\n"':
            raise DialectError(f"Invalid delimiter {self.delimiter!r}")
        if len(self.comment) > 1 or self.comment == self.delimiter:
            raise DialectError(f"Invalid comment marker {self.comment!r}")
        if self.sheet_number < 0:
            raise DialectError(f"Sheet number must not be negative: {self.sheet_number}")

    @classmethod
    def create(cls,
               delimiter: Optional[str] = None,
               encoding: Optional[str] = None,
               has_header: bool = True,
               **options) -> 'Dialect':
        """
        Build a dialect from command line values.

        Only the first character of ``delimiter`` is used; an empty value
        selects the default delimiter.
        """
        return cls(
            delimiter=delimiter[0] if delimiter else DEFAULT_DELIMITER,
            encoding=Encoding.parse(encoding),
            has_header=has_header,
            **options
        )
