"""Unit tests for HashEngine."""

import hashlib
import threading
from pathlib import Path

import pytest
import xxhash
from dupectl.core.hasher import (
    DEFAULT_ALGORITHM,
    HashCancelledError,
    HashEngine,
    UnsupportedAlgorithmError,
    supported_algorithms,
)


class TestSupportedAlgorithms:
    """Tests for the algorithm registry."""

    def test_default_is_sha256(self) -> None:
        """SHA256 is the default algorithm."""
        assert DEFAULT_ALGORITHM == "SHA256"
        assert HashEngine().algorithm == "SHA256"

    def test_registry_contents(self) -> None:
        """Cryptographic and xxHash algorithms are registered."""
        algorithms = supported_algorithms()
        for tag in ("SHA256", "SHA512", "MD5", "XXH64", "XXH128"):
            assert tag in algorithms

    def test_unknown_algorithm(self) -> None:
        """Unknown tags raise an error that is also a ValueError."""
        with pytest.raises(UnsupportedAlgorithmError):
            HashEngine("CRC32")
        with pytest.raises(ValueError):
            HashEngine("CRC32")

    def test_tag_is_case_insensitive(self) -> None:
        """Lower-case tags are accepted and normalized."""
        assert HashEngine("sha512").algorithm == "SHA512"

    def test_invalid_chunk_size(self) -> None:
        """Chunk size must be positive."""
        with pytest.raises(ValueError):
            HashEngine(chunk_size=0)


class TestFingerprint:
    """Tests for HashEngine.fingerprint."""

    def test_sha256_digest(self, tmp_path: Path) -> None:
        """The digest matches hashlib's."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"hello world")

        fp = HashEngine("SHA256").fingerprint(str(path))

        assert fp.algorithm == "SHA256"
        assert fp.digest == hashlib.sha256(b"hello world").hexdigest()
        assert fp.duration >= 0

    def test_xxh64_digest(self, tmp_path: Path) -> None:
        """xxHash digests come from the xxhash library."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"hello world")

        fp = HashEngine("XXH64").fingerprint(str(path))

        assert str(fp) == f"XXH64:{xxhash.xxh64(b'hello world').hexdigest()}"

    def test_small_chunks_give_same_digest(self, tmp_path: Path) -> None:
        """Chunking does not change the digest."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"x" * 10_000)

        big = HashEngine(chunk_size=1 << 20).fingerprint(str(path))
        small = HashEngine(chunk_size=7).fingerprint(str(path))

        assert big == small

    def test_empty_file(self, tmp_path: Path) -> None:
        """Empty files hash to the algorithm's empty digest."""
        path = tmp_path / "empty"
        path.touch()
        fp = HashEngine("MD5").fingerprint(str(path))
        assert fp.digest == hashlib.md5(b"").hexdigest()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable files raise OSError."""
        with pytest.raises(OSError):
            HashEngine().fingerprint(str(tmp_path / "missing"))

    def test_cancelled(self, tmp_path: Path) -> None:
        """A set cancel event aborts hashing."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"data")
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(HashCancelledError):
            HashEngine().fingerprint(str(path), cancel=cancel)
