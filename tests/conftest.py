"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from dupectl.models.descriptor import FileDescriptor, Location, Priority
from dupectl.models.fingerprint import Fingerprint

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)

DescriptorFactory = Callable[..., FileDescriptor]


@pytest.fixture(autouse=True)
def isolated_xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config and scan history out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for classification tests."""
    return NOW


@pytest.fixture
def make_descriptor() -> DescriptorFactory:
    """Factory for in-memory descriptors that never touch the disk.

    Keyword arguments override the defaults; ``digest`` attaches a
    SHA256 fingerprint with that digest.
    """

    def _make(
        path: str = "/data/file.bin",
        size: int = 42,
        digest: str | None = None,
        modified: datetime | None = None,
        location: Location = Location.SYSTEM_DRIVE,
        priority: Priority = Priority.NORMAL,
        **kwargs: object,
    ) -> FileDescriptor:
        stamp = modified or NOW - timedelta(days=60)
        descriptor = FileDescriptor.for_path(
            path,
            size=size,
            created=stamp,
            modified=stamp,
            accessed=stamp,
            location=location,
            priority=priority,
            **kwargs,
        )
        if digest is not None:
            descriptor.assign_fingerprint(Fingerprint("SHA256", digest))
        return descriptor

    return _make


@pytest.fixture
def write_file() -> Callable[[Path, bytes], Path]:
    """Write bytes to a file, creating parent directories."""

    def _write(path: Path, content: bytes) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write
