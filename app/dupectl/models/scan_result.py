"""Scan result models.

``ScanResult`` is what the scanner hands to the persistence and export
layers. ``ScanRecord`` and its children are the serialized form stored
in the scan history file, one JSON line per scan.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from dupectl.models.group import EquivalenceGroup


@dataclass(frozen=True, slots=True)
class FileFailure:
    """A file that could not be examined or fingerprinted.

    Attributes:
        path: Absolute file path.
        error: Error message from the failed read.
    """

    path: str
    error: str


@dataclass(slots=True)
class ScanResult:
    """Outcome of scanning one directory tree.

    Attributes:
        directory: Scanned root directory.
        groups: Duplicate groups, largest waste first.
        total_files: Number of files that produced a descriptor.
        failures: Files skipped because they could not be read.
        elapsed: Seconds spent scanning.
    """

    directory: str
    groups: list[EquivalenceGroup]
    total_files: int
    failures: list[FileFailure] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def groups_found(self) -> int:
        """Number of duplicate groups."""
        return len(self.groups)

    @property
    def total_bytes_wasted(self) -> int:
        """Sum of reclaimable bytes over all groups."""
        return sum(group.bytes_wasted for group in self.groups)

    @property
    def duplicate_files(self) -> int:
        """Number of files that belong to a duplicate group."""
        return sum(group.count for group in self.groups)

    def to_record(self) -> ScanRecord:
        """Build a persistable record with a fresh id and timestamp."""
        return ScanRecord(
            id=uuid.uuid4().hex[:12],
            timestamp=datetime.now(UTC).isoformat(),
            directory=self.directory,
            total_files=self.total_files,
            groups=tuple(GroupRecord.from_group(group) for group in self.groups),
        )


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Serialized form of one group member."""

    path: str
    directory: str
    name: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "path": self.path,
            "directory": self.directory,
            "name": self.name,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            path=data["path"],
            directory=data["directory"],
            name=data["name"],
            size=int(data["size"]),
        )


@dataclass(frozen=True, slots=True)
class GroupRecord:
    """Serialized form of an equivalence group."""

    fingerprint: str
    size: int
    files: tuple[FileRecord, ...]

    @property
    def count(self) -> int:
        """Number of files in the group."""
        return len(self.files)

    @property
    def bytes_wasted(self) -> int:
        """Bytes reclaimable by keeping a single copy."""
        return self.size * max(self.count - 1, 0)

    @classmethod
    def from_group(cls, group: EquivalenceGroup) -> GroupRecord:
        """Snapshot a live group."""
        files = tuple(
            FileRecord(path=d.path, directory=d.directory, name=d.name, size=d.size)
            for d in group
        )
        return cls(fingerprint=str(group.fingerprint), size=group.size, files=files)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "fingerprint": self.fingerprint,
            "size": self.size,
            "count": self.count,
            "bytes_wasted": self.bytes_wasted,
            "files": [f.to_dict() for f in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GroupRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            fingerprint=data["fingerprint"],
            size=int(data["size"]),
            files=tuple(FileRecord.from_dict(f) for f in data["files"]),
        )


@dataclass(frozen=True, slots=True)
class ScanRecord:
    """One stored scan.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the scan finished (ISO 8601 with timezone).
        directory: Scanned root directory.
        total_files: Number of files examined.
        groups: Duplicate groups found.
    """

    id: str
    timestamp: str
    directory: str
    total_files: int
    groups: tuple[GroupRecord, ...] = ()

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Scan record ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    @property
    def groups_found(self) -> int:
        """Number of duplicate groups."""
        return len(self.groups)

    @property
    def total_bytes_wasted(self) -> int:
        """Sum of reclaimable bytes over all groups."""
        return sum(group.bytes_wasted for group in self.groups)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "directory": self.directory,
            "total_files": self.total_files,
            "groups_found": self.groups_found,
            "total_bytes_wasted": self.total_bytes_wasted,
            "groups": [group.to_dict() for group in self.groups],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanRecord:
        """Deserialize from dictionary.

        Derived counters in the input are ignored and recomputed.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            directory=data["directory"],
            total_files=int(data["total_files"]),
            groups=tuple(GroupRecord.from_dict(g) for g in data.get("groups", [])),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> ScanRecord:
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))
