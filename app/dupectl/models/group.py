"""Equivalence group model.

An equivalence group holds descriptors verified to share identical
content. Membership checks are hard failures: a descriptor that does not
belong is rejected with an exception, never merged silently.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from dupectl.models.descriptor import FileDescriptor
from dupectl.models.errors import (
    FingerprintMismatchError,
    GroupSealedError,
    SizeMismatchError,
)
from dupectl.models.fingerprint import Fingerprint


class EquivalenceGroup:
    """Collection of content-equal file descriptors.

    Zero-byte files are never members: an empty file is not a meaningful
    duplicate. After :meth:`seal`, membership is frozen while member action
    fields remain mutable.

    Args:
        members: Optional initial descriptors, added one by one.
        logger: Logger for membership diagnostics.
    """

    def __init__(
        self,
        members: list[FileDescriptor] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._members: list[FileDescriptor] = []
        self._sealed = False
        for member in members or []:
            self.add(member)

    def add(self, descriptor: FileDescriptor) -> bool:
        """Add a descriptor to the group.

        Args:
            descriptor: Descriptor with a computed fingerprint.

        Returns:
            True if added, False if ignored because the file is empty.

        Raises:
            ValueError: If ``descriptor`` is None, has no fingerprint, or its
                path is already a member.
            GroupSealedError: If the group membership is frozen.
            FingerprintMismatchError: If the fingerprint differs from the
                group's.
            SizeMismatchError: If the fingerprint matches but size differs.
        """
        if descriptor is None:
            msg = "Descriptor cannot be None"
            raise ValueError(msg)
        if self._sealed:
            msg = f"Cannot add {descriptor.path}: group membership is sealed"
            raise GroupSealedError(msg)
        if descriptor.fingerprint is None:
            msg = f"Descriptor has no fingerprint: {descriptor.path}"
            raise ValueError(msg)

        if descriptor.size == 0:
            self._log.debug("Ignoring zero-byte file: %s", descriptor.path)
            return False

        if any(member.path == descriptor.path for member in self._members):
            msg = f"{descriptor.path} is already a member of this group"
            raise ValueError(msg)

        if self._members:
            first = self._members[0]
            if descriptor.fingerprint != first.fingerprint:
                self._log.error(
                    "Rejected %s: expected %s, got %s",
                    descriptor.path,
                    first.fingerprint,
                    descriptor.fingerprint,
                )
                msg = (
                    f"Fingerprint mismatch for {descriptor.path}: "
                    f"expected {first.fingerprint}, got {descriptor.fingerprint}"
                )
                raise FingerprintMismatchError(msg)
            if descriptor.size != first.size:
                msg = (
                    f"Size mismatch for {descriptor.path} under {first.fingerprint}: "
                    f"expected {first.size}, got {descriptor.size}"
                )
                raise SizeMismatchError(msg)

        self._members.append(descriptor)
        self._log.debug(
            "Added %s to group %s (%d member(s))",
            descriptor.name,
            descriptor.fingerprint.short,
            len(self._members),
        )
        return True

    def seal(self) -> None:
        """Freeze group membership."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        """Whether membership is frozen."""
        return self._sealed

    @property
    def members(self) -> tuple[FileDescriptor, ...]:
        """Members in insertion order."""
        return tuple(self._members)

    @property
    def count(self) -> int:
        """Number of members."""
        return len(self._members)

    @property
    def size(self) -> int:
        """Size of each member in bytes (0 for an empty group)."""
        return self._members[0].size if self._members else 0

    @property
    def fingerprint(self) -> Fingerprint | None:
        """Shared fingerprint, or None for an empty group."""
        return self._members[0].fingerprint if self._members else None

    @property
    def bytes_wasted(self) -> int:
        """Bytes reclaimable by keeping a single copy."""
        if self.count <= 1:
            return 0
        return self.size * (self.count - 1)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[FileDescriptor]:
        return iter(self._members)

    def __repr__(self) -> str:
        return (
            f"EquivalenceGroup(fingerprint={self.fingerprint}, count={self.count}, "
            f"size={self.size}, bytes_wasted={self.bytes_wasted})"
        )
