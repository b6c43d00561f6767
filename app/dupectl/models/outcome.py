"""Action execution outcome model."""

from __future__ import annotations

from dataclasses import dataclass

from dupectl.models.descriptor import ActionKind, FileDescriptor


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of executing the pending action of one descriptor.

    Attributes:
        descriptor: The descriptor acted upon.
        action: Action that was executed (captured at execution time).
        success: Whether the action completed successfully.
        error: Error message if the action failed, None otherwise.
        elapsed: Wall-clock seconds spent on this action alone.
        dry_run: Whether this was a dry-run (no filesystem change).
        skipped: Whether the action had already been executed earlier.
    """

    descriptor: FileDescriptor
    action: ActionKind
    success: bool
    error: str | None = None
    elapsed: float = 0.0
    dry_run: bool = False
    skipped: bool = False

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return not self.success

    @property
    def path(self) -> str:
        """Current path of the descriptor."""
        return self.descriptor.path
