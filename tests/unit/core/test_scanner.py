"""Unit tests for descriptor construction and DuplicateScanner."""

import os
import stat
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from dupectl.core.classifier import Classifier, PlatformRoots, VolumeTable
from dupectl.core.executor import ActionExecutor
from dupectl.core.resolver import ActionResolver
from dupectl.core.scanner import DuplicateScanner, SymlinkSkippedError, build_descriptor
from dupectl.models.descriptor import ActionKind

NOW = datetime(2026, 6, 1, tzinfo=UTC)


@pytest.fixture
def classifier() -> Classifier:
    """Classifier with a minimal, fixed environment."""
    return Classifier(roots=PlatformRoots(boot_root="/"), volumes=VolumeTable([]), now=NOW)


class TestBuildDescriptor:
    """Tests for build_descriptor."""

    def test_reads_metadata(self, tmp_path: Path, classifier: Classifier) -> None:
        """Size, times and classification come from the file."""
        path = tmp_path / "f.txt"
        path.write_bytes(b"abc")

        d = build_descriptor(str(path), classifier)

        assert d.path == str(path)
        assert d.size == 3
        assert d.modified.tzinfo is not None
        assert d.read_only is False
        assert d.is_protected is False
        assert d.action == ActionKind.NONE

    def test_read_only_protected_when_requested(
        self, tmp_path: Path, classifier: Classifier
    ) -> None:
        """Read-only files are protected only if asked."""
        path = tmp_path / "ro.txt"
        path.write_bytes(b"abc")
        path.chmod(stat.S_IRUSR)
        try:
            assert build_descriptor(str(path), classifier, protect_read_only=True).is_protected
            assert not build_descriptor(str(path), classifier).is_protected
        finally:
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def test_extra_protected_pattern(self, tmp_path: Path, classifier: Classifier) -> None:
        """Configured patterns mark matching files protected."""
        path = tmp_path / "keep.me"
        path.write_bytes(b"abc")

        d = build_descriptor(str(path), classifier, protected_patterns=["*.me"])

        assert d.is_protected is True

    def test_directory_rejected(self, tmp_path: Path, classifier: Classifier) -> None:
        """Only regular files become descriptors."""
        with pytest.raises(OSError):
            build_descriptor(str(tmp_path), classifier)

    def test_empty_path_rejected(self, classifier: Classifier) -> None:
        """Empty paths are input errors."""
        with pytest.raises(ValueError):
            build_descriptor("", classifier)

    def test_symlink_rejected(self, tmp_path: Path, classifier: Classifier) -> None:
        """A symbolic link is never described, even when its target is a file."""
        real = tmp_path / "real.txt"
        real.write_bytes(b"abc")
        link = tmp_path / "link.txt"
        link.symlink_to(real)

        with pytest.raises(SymlinkSkippedError):
            build_descriptor(str(link), classifier)

    def test_records_file_identity(self, tmp_path: Path, classifier: Classifier) -> None:
        """Device and inode are captured from the file."""
        path = tmp_path / "f.txt"
        path.write_bytes(b"abc")
        st = path.stat()

        d = build_descriptor(str(path), classifier)

        assert d.file_id == (st.st_dev, st.st_ino)


class TestDuplicateScanner:
    """Tests for DuplicateScanner.scan."""

    def test_scan_finds_duplicates(self, tmp_path: Path, classifier: Classifier) -> None:
        """A full scan groups identical files and counts all files."""
        for rel, content in {
            "a.txt": b"x" * 42,
            "b/b.txt": b"x" * 42,
            "c.txt": b"x" * 42,
            "other.txt": b"y" * 42,
        }.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)

        result = DuplicateScanner(classifier=classifier, workers=2).scan(tmp_path)

        assert result.directory == str(tmp_path.resolve())
        assert result.total_files == 4
        assert result.groups_found == 1
        assert result.total_bytes_wasted == 84
        assert result.failures == []

    def test_scan_filters(self, tmp_path: Path, classifier: Classifier) -> None:
        """Extension filters reach discovery."""
        (tmp_path / "a.txt").write_bytes(b"same")
        (tmp_path / "b.txt").write_bytes(b"same")
        (tmp_path / "c.log").write_bytes(b"same")

        result = DuplicateScanner(classifier=classifier).scan(tmp_path, extensions=["log"])

        assert result.total_files == 1
        assert result.groups == []

    def test_vanished_file_recorded_as_failure(
        self, tmp_path: Path, classifier: Classifier
    ) -> None:
        """Files that disappear before stat are skipped with a failure."""
        real = tmp_path / "real.txt"
        real.write_bytes(b"x")
        ghost = os.path.join(tmp_path, "ghost.txt")

        descriptors, failures = DuplicateScanner(classifier=classifier).build_descriptors(
            [str(real), ghost]
        )

        assert [d.path for d in descriptors] == [str(real)]
        assert [f.path for f in failures] == [ghost]

    def test_scan_paths_rejects_none(self, classifier: Classifier) -> None:
        """None is not a path list."""
        with pytest.raises(ValueError):
            DuplicateScanner(classifier=classifier).scan_paths(None)  # type: ignore[arg-type]

    def test_default_classifier_detects_environment(self) -> None:
        """Without a classifier the running platform is detected."""
        with patch("dupectl.core.scanner.Classifier") as mock_classifier:
            DuplicateScanner()
        mock_classifier.assert_called_once_with()


class TestSameFileUnderSeveralPaths:
    """Tests for files reaching the scanner under more than one path."""

    def test_repeated_path_described_once(self, tmp_path: Path, classifier: Classifier) -> None:
        """A path listed twice is neither grouped with itself nor removed."""
        path = tmp_path / "only.txt"
        path.write_bytes(b"x" * 130)
        trash = MagicMock(side_effect=lambda p: os.remove(p))

        result = DuplicateScanner(classifier=classifier).scan_paths([str(path), str(path)])
        ActionResolver().resolve(result.groups)
        members = [d for group in result.groups for d in group]
        ActionExecutor(trash=trash).execute(members)

        assert result.total_files == 1
        assert result.groups == []
        assert path.exists()
        trash.assert_not_called()

    def test_symlink_sorting_before_target(self, tmp_path: Path, classifier: Classifier) -> None:
        """A link and its target are not duplicates; the real file survives."""
        real = tmp_path / "real.txt"
        real.write_bytes(b"y" * 64)
        link = tmp_path / "alink.txt"
        link.symlink_to(real)

        result = DuplicateScanner(classifier=classifier).scan_paths([str(link), str(real)])

        assert result.failures == []
        assert result.total_files == 1
        assert result.groups == []
        assert real.exists()

    def test_hard_links_collapse(self, tmp_path: Path, classifier: Classifier) -> None:
        """Hard links to one inode count as one file and waste nothing."""
        first = tmp_path / "first.txt"
        first.write_bytes(b"z" * 32)
        second = tmp_path / "second.txt"
        os.link(first, second)

        descriptors, failures = DuplicateScanner(classifier=classifier).build_descriptors(
            [str(first), str(second)]
        )

        assert [d.path for d in descriptors] == [str(first)]
        assert failures == []

    def test_real_copy_still_grouped(self, tmp_path: Path, classifier: Classifier) -> None:
        """Collapsing aliases leaves genuine copies grouped."""
        original = tmp_path / "a.txt"
        original.write_bytes(b"q" * 50)
        copy = tmp_path / "b.txt"
        copy.write_bytes(b"q" * 50)

        result = DuplicateScanner(classifier=classifier).scan_paths(
            [str(original), str(original), str(copy)]
        )

        assert result.groups_found == 1
        assert result.total_bytes_wasted == 50
