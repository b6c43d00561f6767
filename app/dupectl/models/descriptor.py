"""File descriptor model for duplicate detection.

This module defines the per-file data unit of the core: identity
metadata captured at scan time, a lazily computed content fingerprint,
the derived location/priority classification, and the pending action
that the resolver assigns.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from dupectl.models.errors import ProtectedFileError
from dupectl.models.fingerprint import Fingerprint, OnceCell

if TYPE_CHECKING:
    import threading

    from dupectl.core.hasher import HashEngine


class Location(str, Enum):
    """Where a file lives, as far as cleanup policy is concerned.

    Attributes:
        SYSTEM_DRIVE: On the boot volume, outside any more specific area.
        EXTERNAL_DRIVE: On a fixed, non-boot volume.
        NETWORK_DRIVE: On a network mount.
        REMOVABLE_DRIVE: On removable media (USB stick, SD card).
        CLOUD_SYNC: Inside a cloud synchronisation folder.
        TEMP_DIRECTORY: Inside a temporary or cache directory.
        USER_PROFILE: Inside the user's home directory.
        PROGRAM_FILES: Inside an application installation root.
        SYSTEM_DIRECTORY: Inside an operating system directory.
        UNKNOWN: Volume type could not be determined.
    """

    SYSTEM_DRIVE = "system_drive"
    EXTERNAL_DRIVE = "external_drive"
    NETWORK_DRIVE = "network_drive"
    REMOVABLE_DRIVE = "removable_drive"
    CLOUD_SYNC = "cloud_sync"
    TEMP_DIRECTORY = "temp_directory"
    USER_PROFILE = "user_profile"
    PROGRAM_FILES = "program_files"
    SYSTEM_DIRECTORY = "system_directory"
    UNKNOWN = "unknown"


class Priority(IntEnum):
    """Retention priority, higher means more worth keeping."""

    VERY_LOW = 1
    LOW = 2
    NORMAL = 3
    HIGH = 4
    VERY_HIGH = 5
    PROTECTED = 6


class ActionKind(str, Enum):
    """Disposition assigned to a file within its duplicate group.

    Attributes:
        NONE: No action assigned yet.
        KEEP: Leave the file untouched.
        DELETE: Remove the file permanently.
        RECYCLE: Send the file to the platform trash.
        MOVE: Move the file to ``target_path``.
        RENAME: Rename the file to ``target_path``.
        REVIEW: Flag for a human decision; no automatic change.
        CREATE_LINK: Replace the file with a link to ``target_path``.
        COMPRESS: Replace the file with a gzip-compressed copy.
        ARCHIVE: Store the file in the zip archive at ``target_path``.
    """

    NONE = "none"
    KEEP = "keep"
    DELETE = "delete"
    RECYCLE = "recycle"
    MOVE = "move"
    RENAME = "rename"
    REVIEW = "review"
    CREATE_LINK = "create_link"
    COMPRESS = "compress"
    ARCHIVE = "archive"

    @property
    def is_destructive(self) -> bool:
        """Whether the action discards the file's content at its location."""
        return self in (ActionKind.DELETE, ActionKind.RECYCLE)

    @property
    def needs_target(self) -> bool:
        """Whether the action requires ``target_path`` to be set."""
        return self in (
            ActionKind.MOVE,
            ActionKind.RENAME,
            ActionKind.CREATE_LINK,
            ActionKind.ARCHIVE,
        )


@dataclass(eq=False, slots=True)
class FileDescriptor:
    """One on-disk file as seen at scan time.

    Identity fields are captured once by the scanner and only change when
    a Move/Rename/Compress execution relocates the file. Two descriptors
    compare equal when their content matches (fingerprint and size); the
    path takes no part in equality.

    Attributes:
        path: Absolute file path.
        directory: Parent directory of ``path``.
        name: Base name of ``path``.
        size: Size in bytes.
        created: Creation (or metadata change) time, UTC.
        modified: Last modification time, UTC.
        accessed: Last access time, UTC.
        read_only: Whether the owner lacks write permission.
        device: Device number of the file, 0 if unknown.
        inode: Inode number of the file, 0 if unknown.
        location: Derived location classification.
        priority: Derived retention priority.
        is_protected: Explicitly marked as never to be destroyed.
        action: Pending action.
        reason: Human-readable reason for ``action``.
        target_path: Destination for actions that need one.
        action_executed: Whether ``action`` has been carried out.
        action_error: Error text from the last failed execution.
    """

    path: str
    directory: str
    name: str
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    read_only: bool = False
    device: int = 0
    inode: int = 0
    location: Location = Location.UNKNOWN
    priority: Priority = Priority.NORMAL
    is_protected: bool = False
    action: ActionKind = ActionKind.NONE
    reason: str = ""
    target_path: str | None = None
    action_executed: bool = False
    action_error: str | None = None
    _fingerprint: OnceCell[Fingerprint] = field(
        default_factory=OnceCell, init=False, repr=False
    )

    def __post_init__(self) -> None:
        """Validate descriptor data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)
        if not os.path.isabs(self.path):
            msg = f"Path must be absolute, got {self.path!r}"
            raise ValueError(msg)
        if self.size < 0:
            msg = f"Size cannot be negative, got {self.size}"
            raise ValueError(msg)
        self._check_action_allowed(self.action)

    @classmethod
    def for_path(
        cls,
        path: str,
        size: int,
        created: datetime,
        modified: datetime,
        accessed: datetime,
        **kwargs: object,
    ) -> FileDescriptor:
        """Create a descriptor, deriving ``directory`` and ``name`` from ``path``."""
        return cls(
            path=path,
            directory=os.path.dirname(path),
            name=os.path.basename(path),
            size=size,
            created=created,
            modified=modified,
            accessed=accessed,
            **kwargs,  # type: ignore[arg-type]
        )

    # --- Fingerprint ---

    @property
    def fingerprint(self) -> Fingerprint | None:
        """The content fingerprint, or None if not computed yet."""
        return self._fingerprint.get()

    @property
    def hash_calculated(self) -> bool:
        """Whether the fingerprint has been computed."""
        return self._fingerprint.is_set

    def compute_fingerprint(
        self,
        engine: HashEngine,
        cancel: threading.Event | None = None,
    ) -> Fingerprint:
        """Return the fingerprint, hashing the file on first use only.

        The value is never recomputed, even if the file changes later.
        Callers needing fresh content must build a new descriptor.

        Raises:
            OSError: If the file cannot be read.
            HashCancelledError: If ``cancel`` was set mid-computation.
        """
        return self._fingerprint.get_or_init(lambda: engine.fingerprint(self.path, cancel=cancel))

    def assign_fingerprint(self, fingerprint: Fingerprint) -> None:
        """Attach a fingerprint computed elsewhere.

        Raises:
            RuntimeError: If a fingerprint is already attached.
        """
        self._fingerprint.set(fingerprint)

    @property
    def content_key(self) -> tuple[str, int] | None:
        """Equality key ``(fingerprint, size)``, or None before hashing."""
        fingerprint = self._fingerprint.get()
        if fingerprint is None:
            return None
        return (str(fingerprint), self.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileDescriptor):
            return NotImplemented
        if self is other:
            return True
        key = self.content_key
        return key is not None and key == other.content_key

    __hash__ = None  # type: ignore[assignment]

    # --- Action state ---

    @property
    def protected(self) -> bool:
        """Whether the file must never receive a destructive action."""
        return self.is_protected or self.priority == Priority.PROTECTED

    def set_action(
        self,
        action: ActionKind,
        reason: str = "",
        target_path: str | None = None,
    ) -> None:
        """Assign the pending action.

        Assigning a new action clears the previous execution status so the
        new action can run.

        Raises:
            ProtectedFileError: If ``action`` is destructive and the file is
                protected.
            ValueError: If ``target_path`` is an empty string.
        """
        self._check_action_allowed(action)
        if target_path is not None:
            self.set_target_path(target_path)
        self.action = action
        self.reason = reason
        self.action_executed = False
        self.action_error = None

    def set_target_path(self, target_path: str | None) -> None:
        """Set or clear the destination for Move/Rename style actions."""
        if target_path is not None and not target_path:
            msg = "Target path cannot be empty"
            raise ValueError(msg)
        self.target_path = target_path

    def set_priority(self, priority: Priority) -> None:
        """Override the derived priority.

        Raises:
            ProtectedFileError: If raising to PROTECTED while a destructive
                action is pending.
        """
        if priority == Priority.PROTECTED and self.action.is_destructive:
            msg = f"Cannot protect {self.path}: destructive action {self.action.value} pending"
            raise ProtectedFileError(msg)
        self.priority = priority

    def mark_protected(self) -> None:
        """Mark the file as explicitly protected.

        Raises:
            ProtectedFileError: If a destructive action is pending.
        """
        if self.action.is_destructive:
            msg = f"Cannot protect {self.path}: destructive action {self.action.value} pending"
            raise ProtectedFileError(msg)
        self.is_protected = True

    def mark_executed(self) -> None:
        """Record a successful execution of the pending action."""
        self.action_executed = True
        self.action_error = None

    def mark_failed(self, error: str) -> None:
        """Record a failed execution of the pending action."""
        self.action_executed = False
        self.action_error = error

    @property
    def file_id(self) -> tuple[int, int] | None:
        """``(device, inode)`` of the file, or None if not recorded."""
        if not self.inode:
            return None
        return (self.device, self.inode)

    def relocate(self, new_path: str) -> None:
        """Point the descriptor at the file's new location in place."""
        if not os.path.isabs(new_path):
            msg = f"Path must be absolute, got {new_path!r}"
            raise ValueError(msg)
        self.path = new_path
        self.directory = os.path.dirname(new_path)
        self.name = os.path.basename(new_path)
        self.device = 0
        self.inode = 0

    def _check_action_allowed(self, action: ActionKind) -> None:
        if action.is_destructive and self.protected:
            msg = f"Destructive action {action.value} on protected file {self.path}"
            raise ProtectedFileError(msg)

    def __str__(self) -> str:
        return f"{self.name} ({self.size} bytes)"
