"""
File collection for cntblank.
Expands paths and directories into the list of tabular files to profile.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .config import SUPPORTED_FORMATS
from .exceptions import FileHandlingError

CHECKSUM_BLOCK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class TargetFile:
    """A file selected for profiling."""

    path: str
    size: int
    filename: str
    extension: str

    @classmethod
    def from_path(cls, file_path: Path) -> 'TargetFile':
        file_stat = file_path.stat()
        return cls(
            path=str(file_path),
            size=file_stat.st_size,
            filename=file_path.name,
            extension=file_path.suffix.lower(),
        )

    def checksum(self) -> str:
        """
        MD5 checksum of the file contents as a hex string.

        Raises:
            FileHandlingError: If the file cannot be read
        """
        hasher = hashlib.md5()
        try:
            with open(self.path, 'rb') as f:
                for block in iter(lambda: f.read(CHECKSUM_BLOCK_SIZE), b''):
                    hasher.update(block)
        except OSError as e:
            raise FileHandlingError(f"Failed to compute checksum: {e}", self.path)
        return hasher.hexdigest()


class FileCollector:
    """
    Collects target files from files and directories.

    Hidden files are skipped. When extensions are given, only files with one
    of them are collected.
    """

    def __init__(self,
                 recursive: bool = False,
                 extensions: Optional[Iterable[str]] = None):
        self.recursive = recursive
        self.extensions = {e.lower() for e in (SUPPORTED_FORMATS if extensions is None else extensions)}
        self.files: List[TargetFile] = []
        self.logger = self._setup_logger()

    def _setup_logger(self) -> logging.Logger:
        """Set up logging for collection."""
        return logging.getLogger(f"{__name__}.FileCollector")

    def collect_all(self, paths: Iterable[Union[str, Path]]) -> List[TargetFile]:
        """
        Collect every path; a failing path is logged and skipped.

        Returns:
            All files collected so far
        """
        paths = list(paths)
        self.logger.debug(f"start to collect {len(paths)} paths")
        for i, path in enumerate(paths):
            try:
                self.collect(path)
            except FileHandlingError as e:
                self.logger.error(f"path #{i + 1}: {e}")
        self.logger.debug(f"finish to collect {len(self.files)} files")
        return self.files

    def collect(self, path: Union[str, Path]) -> None:
        """
        Collect one file, or the files of one directory.

        Raises:
            FileHandlingError: If the path is empty or does not exist
        """
        if not path:
            raise FileHandlingError("Path is empty to collect files")
        root = Path(path)
        if not root.exists():
            raise FileHandlingError("File not found", str(root))

        if root.is_dir():
            self.logger.info(f"walk directory: {root}")
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames.sort()
                if not self.recursive:
                    dirnames.clear()
                for filename in sorted(filenames):
                    candidate = Path(dirpath) / filename
                    if self.is_target(candidate):
                        self.files.append(TargetFile.from_path(candidate))
        elif self.is_target(root):
            self.files.append(TargetFile.from_path(root))

    def is_target(self, path: Path) -> bool:
        """Check a file against the hidden-file and extension filters."""
        if path.name.startswith('.'):
            return False
        if not self.extensions:
            return True
        return path.suffix.lower() in self.extensions
