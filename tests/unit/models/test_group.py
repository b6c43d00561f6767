"""Unit tests for EquivalenceGroup."""

import logging
from collections.abc import Callable

import pytest
from dupectl.models.descriptor import FileDescriptor
from dupectl.models.errors import (
    FingerprintMismatchError,
    GroupSealedError,
    SizeMismatchError,
)
from dupectl.models.group import EquivalenceGroup

DescriptorFactory = Callable[..., FileDescriptor]


class TestEquivalenceGroupAdd:
    """Tests for EquivalenceGroup.add."""

    def test_empty_group(self) -> None:
        """A new group has no members and no fingerprint."""
        group = EquivalenceGroup()
        assert group.count == 0
        assert group.size == 0
        assert group.fingerprint is None
        assert group.bytes_wasted == 0

    def test_three_copies_of_42_bytes(self, make_descriptor: DescriptorFactory) -> None:
        """Three identical 42-byte files waste 84 bytes."""
        group = EquivalenceGroup()
        for name in ("a", "b", "c"):
            assert group.add(make_descriptor(f"/d/{name}", size=42, digest="aa")) is True

        assert group.count == 3
        assert group.size == 42
        assert group.bytes_wasted == 84
        assert str(group.fingerprint) == "SHA256:aa"

    def test_zero_byte_file_ignored(self, make_descriptor: DescriptorFactory) -> None:
        """Empty files are never added."""
        group = EquivalenceGroup()
        assert group.add(make_descriptor("/d/empty", size=0, digest="e3b0")) is False
        assert group.count == 0

    def test_fingerprint_mismatch_raises(
        self, make_descriptor: DescriptorFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A different fingerprint is rejected and logged at error level."""
        group = EquivalenceGroup([make_descriptor("/d/a", digest="aa")])

        with caplog.at_level(logging.ERROR), pytest.raises(FingerprintMismatchError):
            group.add(make_descriptor("/d/b", digest="bb"))

        assert group.count == 1
        assert any("Rejected /d/b" in r.message for r in caplog.records)

    def test_size_mismatch_raises(self, make_descriptor: DescriptorFactory) -> None:
        """Same fingerprint with a different size violates the invariant."""
        group = EquivalenceGroup([make_descriptor("/d/a", size=10, digest="aa")])
        with pytest.raises(SizeMismatchError):
            group.add(make_descriptor("/d/b", size=11, digest="aa"))

    def test_unhashed_descriptor_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """Members need a fingerprint."""
        with pytest.raises(ValueError, match="no fingerprint"):
            EquivalenceGroup().add(make_descriptor("/d/a"))

    def test_same_path_twice_rejected(self, make_descriptor: DescriptorFactory) -> None:
        """A file cannot be a duplicate of itself."""
        group = EquivalenceGroup([make_descriptor("/d/a", digest="aa")])
        with pytest.raises(ValueError, match="already a member"):
            group.add(make_descriptor("/d/a", digest="aa"))
        assert group.count == 1

    def test_none_rejected(self) -> None:
        """None is not a descriptor."""
        with pytest.raises(ValueError):
            EquivalenceGroup().add(None)  # type: ignore[arg-type]

    def test_sealed_group_refuses_members(self, make_descriptor: DescriptorFactory) -> None:
        """Membership is frozen after seal()."""
        group = EquivalenceGroup([make_descriptor("/d/a", digest="aa")])
        group.seal()
        assert group.sealed is True
        with pytest.raises(GroupSealedError):
            group.add(make_descriptor("/d/b", digest="aa"))

    def test_custom_logger(
        self, make_descriptor: DescriptorFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An injected logger receives the group's diagnostics."""
        log = logging.getLogger("test.group")
        group = EquivalenceGroup(logger=log)
        with caplog.at_level(logging.DEBUG, logger="test.group"):
            group.add(make_descriptor("/d/a", digest="aa"))
        assert any(r.name == "test.group" for r in caplog.records)


class TestEquivalenceGroupAccess:
    """Tests for read access to group members."""

    def test_members_is_a_snapshot(self, make_descriptor: DescriptorFactory) -> None:
        """members returns a tuple in insertion order."""
        a = make_descriptor("/d/a", digest="aa")
        b = make_descriptor("/d/b", digest="aa")
        group = EquivalenceGroup([a, b])
        assert group.members == (a, b)
        assert list(group) == [a, b]
        assert len(group) == 2

    def test_repr(self, make_descriptor: DescriptorFactory) -> None:
        """repr names the fingerprint and member count."""
        group = EquivalenceGroup([make_descriptor("/d/a", digest="aa")])
        assert "count=1" in repr(group)
