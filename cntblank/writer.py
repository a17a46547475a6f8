"""
Report writers for cntblank.
Render finished reports as delimited text, JSON, HTML or an Excel workbook.
"""

import csv
import html
import json
import logging
import re
from typing import Dict, List, Optional, IO, Type

import pandas as pd

from .config import DEFAULT_OUTPUT_FORMAT, EXCEL_WRITER_PARAMS
from .dialect import Dialect
from .exceptions import ReportWriteError, UnsupportedFileFormatError
from .report import Report

REPORT_OUTPUT_FIELDS = [
    'seq',
    'Name',
    '#Blank',
    '%Blank',
    'MinLength',
    'MaxLength',
    '#Int',
    '#Float',
    '#Bool',
    '#Time',
    'Minimum',
    'Maximum',
    '#True',
    '#False',
]

SHEET_NAME_LIMIT = 31
INVALID_SHEET_CHARS = re.compile(r'[\[\]:*?/\\]')


def report_frame(report: Report) -> pd.DataFrame:
    """One row per field, in REPORT_OUTPUT_FIELDS columns."""
    rows = [f.format(report.records) for f in report.fields]
    return pd.DataFrame(rows, columns=REPORT_OUTPUT_FIELDS)


def metadata_rows(report: Report) -> List[List[str]]:
    """Preamble lines describing the source of a report."""
    rows = []
    if report.path:
        rows.append(['# File', report.path, report.filename or '', report.md5hex or ''])
    rows.append(['# Field', str(len(report.fields)),
                 '(has header)' if report.has_header else '', ''])
    rows.append(['# Record', str(report.records), '', ''])
    return rows


class ReportWriter:
    """
    Base class for report writers.

    Subclasses render a list of reports to a stream. Writers with
    ``binary = True`` need a binary stream, all others a text stream.
    """

    binary = False

    def __init__(self, dialect: Optional[Dialect] = None):
        self.dialect = dialect if dialect is not None else Dialect()
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logging for write operations."""
        return logging.getLogger(f"{__name__}.{type(self).__name__}")

    def write(self, reports: List[Report], stream: IO) -> None:
        """
        Write all reports to ``stream``.

        Raises:
            ReportWriteError: If rendering or writing fails
        """
        self.logger.info(f"write {len(reports)} reports")
        try:
            self._write(reports, stream)
        except ReportWriteError:
            raise
        except Exception as e:
            raise ReportWriteError(f"Failed to write reports: {e}")

    def _write(self, reports: List[Report], stream: IO) -> None:
        raise NotImplementedError


class CsvReportWriter(ReportWriter):
    """Delimited text, one block per report separated by an empty line."""

    def _write(self, reports: List[Report], stream: IO) -> None:
        delimiter = self.dialect.delimiter
        preamble = csv.writer(stream, delimiter=delimiter, lineterminator='\n')
        for i, report in enumerate(reports):
            if i > 0:
                stream.write('\n')
            self.logger.debug(f"[{i + 1}] write csv file")
            if self.dialect.emit_metadata:
                preamble.writerows(metadata_rows(report))
            report_frame(report).to_csv(
                stream,
                sep=delimiter,
                header=self.dialect.has_header,
                index=False,
                lineterminator='\n'
            )


class JsonReportWriter(ReportWriter):
    """A JSON array with one object per report."""

    def _write(self, reports: List[Report], stream: IO) -> None:
        json.dump([r.to_dict() for r in reports], stream, indent=2, ensure_ascii=False)
        stream.write('\n')


class HtmlReportWriter(ReportWriter):
    """A standalone HTML page with one table per report."""

    def _write(self, reports: List[Report], stream: IO) -> None:
        stream.write('<!DOCTYPE html>\n<html>\n<head>\n<meta charset="utf-8">\n'
                     '<title>cntblank report</title>\n</head>\n<body>\n')
        for report in reports:
            title = report.filename or report.path or '(stdin)'
            stream.write(f'<h2>{html.escape(title)}</h2>\n<dl>\n')
            if report.path:
                stream.write(f'<dt>Path</dt><dd>{html.escape(report.path)}</dd>\n')
            if report.md5hex:
                stream.write(f'<dt>MD5</dt><dd>{report.md5hex}</dd>\n')
            stream.write(f'<dt>Fields</dt><dd>{len(report.fields):,}'
                         f'{" (has header)" if report.has_header else ""}</dd>\n')
            stream.write(f'<dt>Records</dt><dd>{report.records:,}</dd>\n</dl>\n')
            stream.write(report_frame(report).to_html(index=False, na_rep=''))
            stream.write('\n')
        stream.write('</body>\n</html>\n')


class ExcelReportWriter(ReportWriter):
    """An Excel workbook with one sheet per report."""

    binary = True

    def _write(self, reports: List[Report], stream: IO) -> None:
        with pd.ExcelWriter(stream, **EXCEL_WRITER_PARAMS) as xl_writer:
            if not reports:
                pd.DataFrame(columns=REPORT_OUTPUT_FIELDS).to_excel(
                    xl_writer, sheet_name='Report', index=False
                )
            for i, report in enumerate(reports):
                sheet_name = self._sheet_name(i, report)
                start_row = 0
                if self.dialect.emit_metadata:
                    meta = pd.DataFrame(metadata_rows(report))
                    meta.to_excel(xl_writer, sheet_name=sheet_name, index=False, header=False)
                    start_row = len(meta) + 1
                report_frame(report).to_excel(
                    xl_writer,
                    sheet_name=sheet_name,
                    index=False,
                    header=self.dialect.has_header,
                    startrow=start_row
                )

    @staticmethod
    def _sheet_name(index: int, report: Report) -> str:
        # The index prefix keeps names unique after truncation
        base = INVALID_SHEET_CHARS.sub('_', report.filename or 'stdin')
        return f"{index + 1}_{base}"[:SHEET_NAME_LIMIT]


WRITERS: Dict[str, Type[ReportWriter]] = {
    'csv': CsvReportWriter,
    'json': JsonReportWriter,
    'html': HtmlReportWriter,
    'excel': ExcelReportWriter,
}


def create_writer(format_name: Optional[str], dialect: Optional[Dialect] = None) -> ReportWriter:
    """
    Create the writer for an output format name.

    Args:
        format_name: One of csv, json, html, excel; empty selects csv
        dialect: Output dialect (delimiter, header line, metadata)

    Raises:
        UnsupportedFileFormatError: If the format is unknown
    """
    name = (format_name or DEFAULT_OUTPUT_FORMAT).lower()
    if name == 'xlsx':
        name = 'excel'
    if name not in WRITERS:
        raise UnsupportedFileFormatError(
            f"Unsupported output format: {format_name}. "
            f"Supported formats: {', '.join(WRITERS)}"
        )
    return WRITERS[name](dialect)
