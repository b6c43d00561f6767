"""Duplicate grouping.

Partitions descriptors into equivalence groups in two passes:

1. Bucket by size. A file whose size is unique in the corpus cannot have
   a duplicate and is never hashed.
2. Fingerprint the remaining candidates in a thread pool, then partition
   by fingerprint.

Groups are sorted by reclaimable bytes only after every hash finished, so
the result order does not depend on worker scheduling.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from dupectl.core.hasher import HashCancelledError, HashEngine
from dupectl.models.descriptor import FileDescriptor
from dupectl.models.group import EquivalenceGroup
from dupectl.models.scan_result import FileFailure

DEFAULT_WORKERS = 4


@dataclass(slots=True)
class GroupingReport:
    """Everything the grouping pass produced.

    Attributes:
        groups: Equivalence groups, largest waste first.
        failures: Files that could not be fingerprinted.
        candidates: Files that shared a size with another file.
        hashed: Files fingerprinted successfully.
        skipped_empty: Zero-byte files excluded up front.
    """

    groups: list[EquivalenceGroup] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    candidates: int = 0
    hashed: int = 0
    skipped_empty: int = 0


def bucket_by_size(descriptors: Sequence[FileDescriptor]) -> dict[int, list[FileDescriptor]]:
    """Group non-empty descriptors by size, keeping only shared sizes."""
    buckets: dict[int, list[FileDescriptor]] = defaultdict(list)
    for descriptor in descriptors:
        if descriptor.size > 0:
            buckets[descriptor.size].append(descriptor)
    return {size: members for size, members in buckets.items() if len(members) >= 2}


def _check_distinct_files(descriptors: Sequence[FileDescriptor]) -> None:
    """Raise ValueError if two descriptors name the same file."""
    paths: set[str] = set()
    file_ids: dict[tuple[int, int], str] = {}
    for descriptor in descriptors:
        if descriptor.path in paths:
            msg = f"File listed more than once: {descriptor.path}"
            raise ValueError(msg)
        paths.add(descriptor.path)
        file_id = descriptor.file_id
        if file_id is None:
            continue
        if file_id in file_ids:
            msg = f"{descriptor.path} is the same file as {file_ids[file_id]}"
            raise ValueError(msg)
        file_ids[file_id] = descriptor.path


class DuplicateGrouper:
    """Finds groups of byte-identical files.

    Args:
        hash_engine: Engine used for fingerprints not yet computed.
        max_workers: Hashing threads. 1 hashes on the calling thread.
        cancel: Optional event; once set, pending hashes abort and
            grouping raises ``HashCancelledError``.
        logger: Logger for progress and per-file failures.
    """

    def __init__(
        self,
        hash_engine: HashEngine | None = None,
        max_workers: int = DEFAULT_WORKERS,
        cancel: threading.Event | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        self._engine = hash_engine if hash_engine is not None else HashEngine()
        self._max_workers = max_workers
        self._cancel = cancel
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def group(self, descriptors: Sequence[FileDescriptor]) -> list[EquivalenceGroup]:
        """Partition descriptors into equivalence groups.

        Args:
            descriptors: Descriptors to examine.

        Returns:
            Groups with at least two members, largest ``bytes_wasted`` first.

        Raises:
            ValueError: If ``descriptors`` is None or names the same file
                twice (by path, or by device and inode).
            SizeMismatchError: If equal fingerprints come with different sizes.
            HashCancelledError: If hashing was cancelled.
        """
        return self.group_with_report(descriptors).groups

    def group_with_report(self, descriptors: Sequence[FileDescriptor]) -> GroupingReport:
        """Like :meth:`group`, also returning failures and counters."""
        if descriptors is None:
            msg = "Descriptor list cannot be None"
            raise ValueError(msg)
        _check_distinct_files(descriptors)

        report = GroupingReport()
        if len(descriptors) < 2:
            return report

        report.skipped_empty = sum(1 for d in descriptors if d.size == 0)
        buckets = bucket_by_size(descriptors)
        candidates = [d for members in buckets.values() for d in members]
        report.candidates = len(candidates)
        self._logger.info(
            "Size pass: %d file(s) -> %d candidate(s) in %d size bucket(s)",
            len(descriptors),
            len(candidates),
            len(buckets),
        )
        if not candidates:
            return report

        hashed = self._fingerprint_all(candidates, report.failures)
        report.hashed = len(hashed)

        partitions: dict[str, list[FileDescriptor]] = defaultdict(list)
        for descriptor in hashed:
            partitions[str(descriptor.fingerprint)].append(descriptor)

        groups: list[EquivalenceGroup] = []
        for members in partitions.values():
            if len(members) < 2:
                continue
            # Discovery order inside a group is kept stable by path
            members.sort(key=lambda d: d.path)
            group = EquivalenceGroup(members, logger=self._logger)
            if group.count >= 2:
                group.seal()
                groups.append(group)

        groups.sort(key=lambda g: (-g.bytes_wasted, str(g.fingerprint)))
        report.groups = groups
        self._logger.info(
            "Hash pass: %d hashed, %d failed, %d group(s)",
            report.hashed,
            len(report.failures),
            len(groups),
        )
        return report

    def _fingerprint_all(
        self,
        candidates: list[FileDescriptor],
        failures: list[FileFailure],
    ) -> list[FileDescriptor]:
        """Fingerprint candidates, collecting failures instead of raising.

        Results are gathered on the calling thread, which is the only
        writer of the returned list.
        """
        hashed: list[FileDescriptor] = []

        if self._max_workers == 1:
            for descriptor in candidates:
                if self._fingerprint_one(descriptor, failures):
                    hashed.append(descriptor)
            return hashed

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures: dict[Future[object], FileDescriptor] = {
                pool.submit(descriptor.compute_fingerprint, self._engine, self._cancel): descriptor
                for descriptor in candidates
            }
            try:
                for future in as_completed(futures):
                    descriptor = futures[future]
                    try:
                        future.result()
                    except OSError as e:
                        self._record_failure(descriptor, e, failures)
                        continue
                    hashed.append(descriptor)
            except HashCancelledError:
                for pending in futures:
                    pending.cancel()
                raise

        return hashed

    def _fingerprint_one(self, descriptor: FileDescriptor, failures: list[FileFailure]) -> bool:
        try:
            descriptor.compute_fingerprint(self._engine, self._cancel)
        except OSError as e:
            self._record_failure(descriptor, e, failures)
            return False
        return True

    def _record_failure(
        self,
        descriptor: FileDescriptor,
        error: OSError,
        failures: list[FileFailure],
    ) -> None:
        self._logger.warning("Cannot hash %s: %s", descriptor.path, error)
        failures.append(FileFailure(path=descriptor.path, error=str(error)))
