"""Data models for dupectl.

This module exports the core data structures used throughout the application.
"""

from dupectl.models.descriptor import ActionKind, FileDescriptor, Location, Priority
from dupectl.models.errors import (
    ContractViolationError,
    DupectlError,
    FingerprintMismatchError,
    GroupInvariantError,
    GroupSealedError,
    ProtectedFileError,
    SizeMismatchError,
)
from dupectl.models.fingerprint import Fingerprint, OnceCell
from dupectl.models.group import EquivalenceGroup
from dupectl.models.outcome import ActionOutcome
from dupectl.models.scan_result import (
    FileFailure,
    FileRecord,
    GroupRecord,
    ScanRecord,
    ScanResult,
)

__all__ = [
    "ActionKind",
    "ActionOutcome",
    "ContractViolationError",
    "DupectlError",
    "EquivalenceGroup",
    "FileDescriptor",
    "FileFailure",
    "FileRecord",
    "Fingerprint",
    "FingerprintMismatchError",
    "GroupInvariantError",
    "GroupRecord",
    "GroupSealedError",
    "Location",
    "OnceCell",
    "Priority",
    "ProtectedFileError",
    "ScanRecord",
    "ScanResult",
    "SizeMismatchError",
]
