"""Exception hierarchy for the duplicate detection core.

Contract violations signal defects in grouping or policy logic and are
never handled inside the core. They propagate and halt the current scan.
"""


class DupectlError(Exception):
    """Base exception for dupectl."""


class ContractViolationError(DupectlError):
    """Raised when an invariant of the core data model is broken."""


class ProtectedFileError(ContractViolationError):
    """Raised when a destructive action targets a protected file."""


class GroupInvariantError(ContractViolationError):
    """Base for equivalence group membership violations."""


class FingerprintMismatchError(GroupInvariantError):
    """Raised when a descriptor's fingerprint differs from its group's."""


class SizeMismatchError(GroupInvariantError):
    """Raised when equal fingerprints come with different sizes.

    This means a hash collision or corrupted input.
    """


class GroupSealedError(GroupInvariantError):
    """Raised when adding to a group whose membership is frozen."""
