"""Unit tests for FileDescriptor and its enums."""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from dupectl.core.hasher import HashEngine
from dupectl.models.descriptor import ActionKind, FileDescriptor, Location, Priority
from dupectl.models.errors import ProtectedFileError
from dupectl.models.fingerprint import Fingerprint

DescriptorFactory = Callable[..., FileDescriptor]
STAMP = datetime(2026, 1, 1, tzinfo=UTC)


class TestActionKind:
    """Tests for ActionKind helpers."""

    def test_destructive_kinds(self) -> None:
        """Only DELETE and RECYCLE destroy the file."""
        destructive = {kind for kind in ActionKind if kind.is_destructive}
        assert destructive == {ActionKind.DELETE, ActionKind.RECYCLE}

    def test_kinds_needing_target(self) -> None:
        """Move-like actions need a target path; COMPRESS defaults one."""
        assert ActionKind.MOVE.needs_target
        assert ActionKind.ARCHIVE.needs_target
        assert not ActionKind.COMPRESS.needs_target
        assert not ActionKind.KEEP.needs_target


class TestFileDescriptorCreation:
    """Tests for descriptor construction and validation."""

    def test_for_path_derives_name_and_directory(
        self, make_descriptor: DescriptorFactory
    ) -> None:
        """directory and name come from the path."""
        d = make_descriptor("/data/photos/cat.jpg")
        assert d.directory == "/data/photos"
        assert d.name == "cat.jpg"

    def test_defaults(self, make_descriptor: DescriptorFactory) -> None:
        """A new descriptor has no action and no fingerprint."""
        d = make_descriptor()
        assert d.action == ActionKind.NONE
        assert d.action_executed is False
        assert d.hash_calculated is False
        assert d.fingerprint is None

    def test_relative_path_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """Paths must be absolute."""
        with pytest.raises(ValueError, match="absolute"):
            make_descriptor("relative/file.txt")

    def test_empty_path_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """An empty path is invalid."""
        with pytest.raises(ValueError):
            make_descriptor("")

    def test_negative_size_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """Sizes cannot be negative."""
        with pytest.raises(ValueError, match="negative"):
            make_descriptor(size=-1)

    def test_str(self, make_descriptor: DescriptorFactory) -> None:
        """String form shows name and size."""
        assert str(make_descriptor("/x/a.txt", size=10)) == "a.txt (10 bytes)"


class TestFingerprintMemoization:
    """Tests for the compute-once fingerprint."""

    def test_compute_fingerprint_hashes_once(self, tmp_path: Path) -> None:
        """The file is read once; later changes are not observed."""
        path = tmp_path / "data.bin"
        path.write_bytes(b"first")
        d = FileDescriptor.for_path(
            str(path),
            size=5,
            created=STAMP,
            modified=STAMP,
            accessed=STAMP,
        )
        engine = HashEngine("SHA256")

        first = d.compute_fingerprint(engine)
        path.write_bytes(b"other")
        second = d.compute_fingerprint(engine)

        assert first is second
        assert d.hash_calculated is True

    def test_assign_fingerprint_only_once(self, make_descriptor: DescriptorFactory) -> None:
        """A second assignment is refused."""
        d = make_descriptor(digest="aa")
        with pytest.raises(RuntimeError):
            d.assign_fingerprint(Fingerprint("SHA256", "bb"))

    def test_missing_file_raises_oserror(self, tmp_path: Path) -> None:
        """Hashing a vanished file raises and leaves the cell empty."""
        d = FileDescriptor.for_path(
            str(tmp_path / "gone.bin"),
            size=1,
            created=STAMP,
            modified=STAMP,
            accessed=STAMP,
        )
        with pytest.raises(OSError):
            d.compute_fingerprint(HashEngine())
        assert d.hash_calculated is False


class TestEquality:
    """Tests for content-based equality."""

    def test_equal_content_different_paths(self, make_descriptor: DescriptorFactory) -> None:
        """Same fingerprint and size compare equal regardless of path."""
        a = make_descriptor("/a/one.txt", digest="aa")
        b = make_descriptor("/b/two.txt", digest="aa")
        assert a == b

    def test_same_fingerprint_different_size(self, make_descriptor: DescriptorFactory) -> None:
        """Size takes part in equality."""
        a = make_descriptor("/a", size=1, digest="aa")
        b = make_descriptor("/b", size=2, digest="aa")
        assert a != b

    def test_unhashed_descriptors_not_equal(self, make_descriptor: DescriptorFactory) -> None:
        """Without fingerprints only identity counts."""
        a = make_descriptor("/a")
        b = make_descriptor("/b")
        assert a != b
        assert a == a

    def test_unhashable(self, make_descriptor: DescriptorFactory) -> None:
        """Descriptors cannot be set members (equality is mutable)."""
        with pytest.raises(TypeError):
            hash(make_descriptor())


class TestActionState:
    """Tests for action assignment and protection."""

    def test_set_action_resets_execution(self, make_descriptor: DescriptorFactory) -> None:
        """A new action clears the executed flag and error."""
        d = make_descriptor()
        d.set_action(ActionKind.RECYCLE, "dup")
        d.mark_failed("boom")
        d.set_action(ActionKind.DELETE, "dup")
        assert d.action == ActionKind.DELETE
        assert d.action_error is None
        assert d.action_executed is False

    def test_set_action_with_target(self, make_descriptor: DescriptorFactory) -> None:
        """A target passed with the action is stored; None keeps the previous one."""
        d = make_descriptor()
        d.set_action(ActionKind.MOVE, "archive", target_path="/archive")
        assert d.target_path == "/archive"
        d.set_action(ActionKind.KEEP)
        assert d.target_path == "/archive"

    def test_empty_target_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """An empty target is refused and leaves the action unchanged."""
        d = make_descriptor()
        with pytest.raises(ValueError, match="Target path"):
            d.set_action(ActionKind.MOVE, target_path="")
        assert d.action == ActionKind.NONE
        assert d.target_path is None

    def test_set_target_path_clears(self, make_descriptor: DescriptorFactory) -> None:
        """set_target_path(None) removes the destination."""
        d = make_descriptor()
        d.set_target_path("/elsewhere/a")
        assert d.target_path == "/elsewhere/a"
        d.set_target_path(None)
        assert d.target_path is None

    def test_protected_file_refuses_destructive_action(
        self, make_descriptor: DescriptorFactory
    ) -> None:
        """Explicitly protected files cannot be deleted or recycled."""
        d = make_descriptor(is_protected=True)
        for action in (ActionKind.DELETE, ActionKind.RECYCLE):
            with pytest.raises(ProtectedFileError):
                d.set_action(action)
        d.set_action(ActionKind.KEEP)
        assert d.action == ActionKind.KEEP

    def test_protected_priority_refuses_destructive_action(
        self, make_descriptor: DescriptorFactory
    ) -> None:
        """PROTECTED priority implies protection."""
        d = make_descriptor(priority=Priority.PROTECTED)
        assert d.protected is True
        with pytest.raises(ProtectedFileError):
            d.set_action(ActionKind.DELETE)

    def test_protected_at_construction_with_destructive_action(self) -> None:
        """The invariant holds for the constructor too."""
        with pytest.raises(ProtectedFileError):
            FileDescriptor.for_path(
                "/x/a",
                size=1,
                created=STAMP,
                modified=STAMP,
                accessed=STAMP,
                is_protected=True,
                action=ActionKind.DELETE,
            )

    def test_mark_protected_with_pending_destruction(
        self, make_descriptor: DescriptorFactory
    ) -> None:
        """Protection cannot be added while a destructive action is pending."""
        d = make_descriptor()
        d.set_action(ActionKind.DELETE)
        with pytest.raises(ProtectedFileError):
            d.mark_protected()
        with pytest.raises(ProtectedFileError):
            d.set_priority(Priority.PROTECTED)

    def test_relocate_updates_identity(self, make_descriptor: DescriptorFactory) -> None:
        """relocate rewrites path, directory and name."""
        d = make_descriptor("/a/old.txt")
        d.relocate("/b/new.txt")
        assert (d.path, d.directory, d.name) == ("/b/new.txt", "/b", "new.txt")

    def test_file_id(self, make_descriptor: DescriptorFactory) -> None:
        """file_id is None until an inode is recorded, and reset by relocate."""
        assert make_descriptor().file_id is None
        d = make_descriptor("/a/old.txt", device=3, inode=99)
        assert d.file_id == (3, 99)
        d.relocate("/b/new.txt")
        assert d.file_id is None

    def test_relocate_requires_absolute_path(self, make_descriptor: DescriptorFactory) -> None:
        """Relative destinations are rejected."""
        with pytest.raises(ValueError):
            make_descriptor().relocate("new.txt")

    def test_location_values(self) -> None:
        """Location values are stable lower-case identifiers."""
        assert Location.REMOVABLE_DRIVE.value == "removable_drive"
        assert Location.CLOUD_SYNC.value == "cloud_sync"
