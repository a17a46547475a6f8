"""
Application driver for cntblank.
Collects target files, profiles each one and hands the reports to a writer.
"""

import logging
from pathlib import Path
from typing import List, Optional, IO, Union, Sequence

from tqdm import tqdm

from .collector import FileCollector, TargetFile
from .config import SUPPORTED_FORMATS
from .dialect import Dialect
from .exceptions import CntBlankError
from .reader import RecordSource
from .report import Profiler, Report
from .writer import ReportWriter


class Application:
    """
    Profiles a list of sources independently and writes all their reports.
    """

    def __init__(self,
                 writer: ReportWriter,
                 recursive: bool = False,
                 show_progress: bool = True):
        """
        Initialize Application.

        Args:
            writer: Writer that renders the finished reports
            recursive: Traverse directories recursively
            show_progress: Show a progress bar over the target files
        """
        self.writer = writer
        self.collector = FileCollector(recursive, SUPPORTED_FORMATS)
        self.show_progress = show_progress
        self.reports: List[Report] = []
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logging for the application."""
        return logging.getLogger(f"{__name__}.Application")

    def run(self,
            paths: Sequence[Union[str, Path]],
            dialect: Dialect,
            stream: IO) -> List[Report]:
        """
        Profile every target and write the reports.

        A source that fails is logged and represented by an empty report;
        the remaining sources are still profiled.

        Args:
            paths: Files and directories; empty reads standard input
            dialect: How to read the sources
            stream: Output stream for the writer

        Returns:
            One report per target, in target order
        """
        if len(paths) == 0:
            targets: List[Optional[TargetFile]] = [None]
        else:
            targets = list(self.collector.collect_all(paths))

        self.reports = []
        progress_bar = None
        if self.show_progress and len(targets) > 1:
            progress_bar = tqdm(total=len(targets), desc="Profiling", unit="files")

        try:
            for i, target in enumerate(targets):
                path = target.path if target is not None else None
                try:
                    report = self.process(target, dialect)
                except CntBlankError as e:
                    self.logger.error(f"[{i + 1}] error while processing {path or '<stdin>'}: {e}")
                    report = Report.new(path)
                self.reports.append(report)
                if progress_bar:
                    progress_bar.update(1)
        finally:
            if progress_bar:
                progress_bar.close()

        self.writer.write(self.reports, stream)
        return self.reports

    def process(self, target: Optional[TargetFile], dialect: Dialect) -> Report:
        """
        Profile one target; None reads standard input.

        Raises:
            CntBlankError: If the source cannot be opened or profiled
        """
        if target is None:
            report = Report.new()
            self.logger.info("profile <stdin>")
        else:
            report = Report.new(target.path, target.checksum())
            self.logger.info(f"profile {target.path} ({target.size / (1024 * 1024):.2f} MB)")

        with RecordSource.open(target.path if target else None, dialect) as source:
            profiler = Profiler(dialect.has_header, report)
            return profiler.profile(source)
