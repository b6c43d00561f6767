"""Duplicate scan orchestration.

Turns discovered paths into classified descriptors (in parallel, since
each ``stat`` is independent), then hands them to the grouper. A file
that vanishes or cannot be read between discovery and ``stat`` is logged
and skipped; it never aborts the scan.

Each physical file is described once. Symbolic links are skipped, and
paths that reach the same file (a repeated path, an aliased directory, a
hard link) collapse onto the first one listed, so a file can never be
grouped with itself.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from dupectl.core.classifier import Classifier
from dupectl.core.discovery import discover_files
from dupectl.core.grouper import DEFAULT_WORKERS, DuplicateGrouper
from dupectl.core.hasher import HashEngine
from dupectl.core.protected import is_protected_path
from dupectl.models.descriptor import FileDescriptor
from dupectl.models.scan_result import FileFailure, ScanResult


class SymlinkSkippedError(OSError):
    """Raised for symbolic links, which are never scanned."""


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=UTC)


def build_descriptor(
    path: str,
    classifier: Classifier,
    protected_patterns: Iterable[str] = (),
    protect_read_only: bool = False,
) -> FileDescriptor:
    """Build a classified descriptor for one file.

    Args:
        path: Absolute file path.
        classifier: Classifier bound to the scan environment.
        protected_patterns: Extra protected glob patterns.
        protect_read_only: Mark read-only files as protected.

    Returns:
        FileDescriptor with location, priority and protection set.

    Raises:
        ValueError: If ``path`` is empty.
        SymlinkSkippedError: If ``path`` is a symbolic link.
        OSError: If the file cannot be stat'ed.
    """
    if not path:
        msg = "Path cannot be empty"
        raise ValueError(msg)

    absolute = os.path.abspath(path)
    st = os.lstat(absolute)
    if stat.S_ISLNK(st.st_mode):
        msg = f"Symbolic link: {absolute}"
        raise SymlinkSkippedError(msg)
    if not stat.S_ISREG(st.st_mode):
        msg = f"Not a regular file: {absolute}"
        raise IsADirectoryError(msg) if stat.S_ISDIR(st.st_mode) else OSError(msg)

    created = getattr(st, "st_birthtime", st.st_ctime)
    modified = _timestamp(st.st_mtime)
    accessed = _timestamp(st.st_atime)
    read_only = not (st.st_mode & stat.S_IWUSR)

    classification = classifier.classify(absolute, st.st_size, modified, accessed)
    is_protected = is_protected_path(absolute, protected_patterns) or (
        protect_read_only and read_only
    )

    return FileDescriptor.for_path(
        absolute,
        size=st.st_size,
        created=_timestamp(created),
        modified=modified,
        accessed=accessed,
        read_only=read_only,
        device=st.st_dev,
        inode=st.st_ino,
        location=classification.location,
        priority=classification.priority,
        is_protected=is_protected,
    )


class DuplicateScanner:
    """Runs discovery, descriptor construction and grouping for a tree.

    Args:
        classifier: Classifier bound to the scan environment. Detected
            from the running system if None.
        hash_engine: Fingerprinting engine (SHA256 if None).
        workers: Threads for descriptor construction and hashing.
        protected_patterns: Extra protected glob patterns.
        protect_read_only: Mark read-only files as protected.
        cancel: Optional event aborting in-flight hashing.
        logger: Logger for scan progress.
    """

    def __init__(
        self,
        classifier: Classifier | None = None,
        hash_engine: HashEngine | None = None,
        workers: int = DEFAULT_WORKERS,
        protected_patterns: Iterable[str] = (),
        protect_read_only: bool = True,
        cancel: threading.Event | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._classifier = classifier if classifier is not None else Classifier()
        self._workers = workers
        self._protected_patterns = tuple(protected_patterns)
        self._protect_read_only = protect_read_only
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._grouper = DuplicateGrouper(
            hash_engine=hash_engine,
            max_workers=workers,
            cancel=cancel,
            logger=self._logger,
        )

    def build_descriptors(
        self, paths: Sequence[str]
    ) -> tuple[list[FileDescriptor], list[FileFailure]]:
        """Build descriptors for many paths, preserving input order.

        Each descriptor is fully constructed by its worker before the
        calling thread appends it to the result. Symbolic links are
        skipped, and a path reaching a file already described (same
        device and inode) is dropped in favor of the first one.

        Returns:
            Tuple of (descriptors, failures).
        """
        descriptors: list[FileDescriptor] = []
        failures: list[FileFailure] = []
        seen: dict[tuple[int, int], str] = {}
        paths = list(dict.fromkeys(paths))

        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            futures = [
                pool.submit(
                    build_descriptor,
                    path,
                    self._classifier,
                    self._protected_patterns,
                    self._protect_read_only,
                )
                for path in paths
            ]
            for path, future in zip(paths, futures, strict=True):
                try:
                    descriptor = future.result()
                except SymlinkSkippedError:
                    self._logger.debug("Skipping symbolic link %s", path)
                    continue
                except OSError as e:
                    self._logger.warning("Skipping %s: %s", path, e)
                    failures.append(FileFailure(path=path, error=str(e)))
                    continue

                file_id = descriptor.file_id
                if file_id is not None and file_id in seen:
                    self._logger.info("Skipping %s: same file as %s", path, seen[file_id])
                    continue
                if file_id is not None:
                    seen[file_id] = descriptor.path
                descriptors.append(descriptor)

        return descriptors, failures

    def scan_paths(self, paths: Sequence[str], directory: str = "") -> ScanResult:
        """Scan an explicit list of paths.

        Args:
            paths: Absolute file paths.
            directory: Root directory recorded in the result.

        Returns:
            ScanResult with groups ordered by reclaimable bytes.
        """
        if paths is None:
            msg = "Path list cannot be None"
            raise ValueError(msg)

        start = time.perf_counter()
        descriptors, failures = self.build_descriptors(paths)
        report = self._grouper.group_with_report(descriptors)

        return ScanResult(
            directory=directory,
            groups=report.groups,
            total_files=len(descriptors),
            failures=failures + report.failures,
            elapsed=time.perf_counter() - start,
        )

    def scan(
        self,
        root: str | Path,
        extensions: Iterable[str] = (),
        exclude_patterns: Iterable[str] = (),
        min_size: int = 0,
    ) -> ScanResult:
        """Discover files under ``root`` and group duplicates.

        Raises:
            NotADirectoryError: If ``root`` is not a directory.
        """
        start = time.perf_counter()
        directory = str(Path(root).expanduser().resolve())
        paths = list(discover_files(directory, extensions, exclude_patterns, min_size))
        self._logger.info("Discovered %d file(s) under %s", len(paths), directory)

        result = self.scan_paths(paths, directory=directory)
        result.elapsed = time.perf_counter() - start
        return result
