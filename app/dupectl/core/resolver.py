"""Action resolution for duplicate groups.

Pure policy logic: given an equivalence group, pick the survivor and
decide what happens to every other copy. Nothing here touches the
filesystem.

Policy for non-survivors, first match wins:
- protected (explicitly or by priority) -> KEEP
- on removable media -> DELETE
- in a cloud sync folder -> KEEP (deleting would propagate)
- anything else -> RECYCLE
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from dupectl.models.descriptor import ActionKind, FileDescriptor, Location
from dupectl.models.group import EquivalenceGroup

REASON_SURVIVOR = "highest priority"
REASON_PROTECTED = "protected file"
REASON_REMOVABLE = "removable media, duplicate not retained"
REASON_CLOUD_SYNC = "avoid disrupting sync state"
REASON_DUPLICATE = "duplicate auto-detected"


def survivor_order_key(descriptor: FileDescriptor) -> tuple[int, int, float, str]:
    """Sort key placing the preferred survivor first.

    Priority descending, then files on the system drive, then the most
    recently modified, and finally the path so ties are deterministic.
    """
    return (
        -int(descriptor.priority),
        0 if descriptor.location == Location.SYSTEM_DRIVE else 1,
        -descriptor.modified.timestamp(),
        descriptor.path,
    )


@dataclass(slots=True)
class ActionSummary:
    """Planned actions across a set of groups.

    Attributes:
        counts: Number of files per assigned action.
        bytes_to_free: Bytes released by DELETE and RECYCLE actions.
    """

    counts: Counter[ActionKind] = field(default_factory=Counter)
    bytes_to_free: int = 0

    @property
    def total(self) -> int:
        """Number of files with an assigned action."""
        return sum(self.counts.values())


class ActionResolver:
    """Assigns an action to every member of each duplicate group.

    Args:
        logger: Logger for per-group decisions.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def resolve(self, groups: Iterable[EquivalenceGroup]) -> None:
        """Resolve every group in place."""
        for group in groups:
            self.resolve_group(group)

    def resolve_group(self, group: EquivalenceGroup) -> FileDescriptor | None:
        """Assign actions within one group.

        Args:
            group: Group to resolve.

        Returns:
            The survivor, or None if the group has fewer than two members.

        Raises:
            ProtectedFileError: If policy would destroy a protected file.
        """
        if group.count <= 1:
            return None

        ordered = sorted(group.members, key=survivor_order_key)
        survivor = ordered[0]
        survivor.set_action(ActionKind.KEEP, REASON_SURVIVOR)

        for descriptor in ordered[1:]:
            action, reason = self._decide(descriptor)
            descriptor.set_action(action, reason)

        self._logger.debug(
            "Group %s: keeping %s, %d other copy(ies)",
            group.fingerprint.short if group.fingerprint else "-",
            survivor.path,
            len(ordered) - 1,
        )
        return survivor

    @staticmethod
    def _decide(descriptor: FileDescriptor) -> tuple[ActionKind, str]:
        if descriptor.protected:
            return ActionKind.KEEP, REASON_PROTECTED
        if descriptor.location == Location.REMOVABLE_DRIVE:
            return ActionKind.DELETE, REASON_REMOVABLE
        if descriptor.location == Location.CLOUD_SYNC:
            return ActionKind.KEEP, REASON_CLOUD_SYNC
        return ActionKind.RECYCLE, REASON_DUPLICATE


def summarize(groups: Iterable[EquivalenceGroup]) -> ActionSummary:
    """Count planned actions and the bytes destructive actions would free."""
    summary = ActionSummary()
    for group in groups:
        for descriptor in group:
            if descriptor.action == ActionKind.NONE:
                continue
            summary.counts[descriptor.action] += 1
            if descriptor.action.is_destructive:
                summary.bytes_to_free += descriptor.size
    return summary
