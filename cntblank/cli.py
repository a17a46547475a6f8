"""
Command line interface for cntblank.
Count blank cells on text-based tabular data.
"""

import argparse
import logging
import sys
from contextlib import ExitStack
from typing import List, Optional

from .app import Application
from .config import (
    DEFAULT_DELIMITER, DEFAULT_ENCODING, LOG_FILE, LOG_FORMAT, OUTPUT_FORMATS,
    ensure_directories
)
from .dialect import Dialect
from .exceptions import CntBlankError
from .writer import create_writer

__version__ = "0.3.0"


def setup_logging(verbose: bool = False, log_to_file: bool = True) -> None:
    """Set up logging for the application."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_to_file:
        try:
            ensure_directories()
            handlers.append(logging.FileHandler(LOG_FILE))
        except OSError as e:
            print(f"Cannot write log file {LOG_FILE}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cntblank",
        description="Count blank cells on text-based tabular data."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Set verbose mode on.")
    parser.add_argument("-e", "--input-encoding", default=DEFAULT_ENCODING,
                        help="Input encoding (utf8 or sjis).")
    parser.add_argument("-E", "--output-encoding", default=DEFAULT_ENCODING,
                        help="Output encoding (utf8 or sjis).")
    parser.add_argument("--input-delimiter", default=DEFAULT_DELIMITER,
                        help="Input field delimiter.")
    parser.add_argument("--output-delimiter", default=DEFAULT_DELIMITER,
                        help="Output field delimiter.")
    parser.add_argument("--without-header", action="store_true",
                        help="Tabular does not have header line.")
    parser.add_argument("--output-without-header", action="store_true",
                        help="Output report does not have header line.")
    parser.add_argument("--strict", action="store_true",
                        help="Check column size strictly.")
    parser.add_argument("--sheet", type=int, default=0,
                        help="Excel sheet number which starts with 1.")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="Traverse directory recursively.")
    parser.add_argument("--output-meta", action="store_true",
                        help="Put meta information.")
    parser.add_argument("-o", "--output",
                        help="Output file.")
    parser.add_argument("--output-format", choices=OUTPUT_FORMATS, default=None,
                        help="Output format.")
    parser.add_argument("--no-progress", action="store_true",
                        help="Do not show a progress bar.")
    parser.add_argument("tabfile", nargs="*",
                        help="Tabular data files.")
    return parser


def populate_dialects(args: argparse.Namespace):
    """Build the input and output dialects from parsed arguments."""
    in_dialect = Dialect.create(
        args.input_delimiter,
        args.input_encoding,
        not args.without_header,
        strict=args.strict,
        sheet_number=args.sheet
    )
    out_dialect = Dialect.create(
        args.output_delimiter,
        args.output_encoding,
        not args.output_without_header,
        emit_metadata=args.output_meta
    )
    return in_dialect, out_dialect


def main(argv: Optional[List[str]] = None) -> int:
    """Run cntblank; returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    logger = logging.getLogger("cntblank")

    try:
        in_dialect, out_dialect = populate_dialects(args)
        writer = create_writer(args.output_format, out_dialect)
    except CntBlankError as e:
        logger.error(e)
        return 1

    app = Application(writer, recursive=args.recursive, show_progress=not args.no_progress)
    with ExitStack() as stack:
        try:
            if args.output:
                binary = stack.enter_context(open(args.output, 'wb'))
            else:
                binary = sys.stdout.buffer
        except OSError as e:
            logger.error(f"Cannot open output file: {e}")
            return 1

        if writer.binary:
            stream = binary
        else:
            stream = out_dialect.encoding.open_text(binary)
            # Flush and release the wrapper without closing standard output
            stack.callback(stream.detach)
            stack.callback(stream.flush)

        try:
            app.run(args.tabfile, in_dialect, stream)
        except CntBlankError as e:
            logger.error(e)
            return 1
    return 0
