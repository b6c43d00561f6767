"""Streaming content fingerprinting.

Files are read in fixed-size chunks so memory use does not depend on
file size. Algorithms are pluggable and identified by an upper-case tag
that prefixes every digest (``"SHA256:<hex>"``).
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

import xxhash

from dupectl.models.errors import DupectlError
from dupectl.models.fingerprint import Fingerprint

DEFAULT_ALGORITHM = "SHA256"
DEFAULT_CHUNK_SIZE = 1024 * 1024


class _Digest(Protocol):
    def update(self, data: bytes, /) -> None: ...

    def hexdigest(self) -> str: ...


ALGORITHMS: dict[str, Callable[[], _Digest]] = {
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
    "SHA1": hashlib.sha1,
    "MD5": hashlib.md5,
    "BLAKE2B": hashlib.blake2b,
    "XXH64": xxhash.xxh64,
    "XXH128": xxhash.xxh3_128,
}


class UnsupportedAlgorithmError(DupectlError, ValueError):
    """Raised when an unknown hash algorithm tag is requested."""


class HashCancelledError(DupectlError):
    """Raised when a fingerprint computation is cancelled.

    No fingerprint is produced for a cancelled computation.
    """


def supported_algorithms() -> list[str]:
    """Return the registered algorithm tags, sorted."""
    return sorted(ALGORITHMS)


class HashEngine:
    """Computes file fingerprints with a fixed algorithm.

    The engine holds no per-file state. Memoization lives on the
    descriptor, which calls the engine at most once.

    Args:
        algorithm: Algorithm tag, case-insensitive. Defaults to SHA256.
        chunk_size: Bytes read per chunk.
        logger: Logger for per-file timing diagnostics.

    Raises:
        UnsupportedAlgorithmError: If ``algorithm`` is not registered.
    """

    def __init__(
        self,
        algorithm: str = DEFAULT_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        tag = algorithm.upper()
        if tag not in ALGORITHMS:
            msg = (
                f"Unsupported hash algorithm: {algorithm} "
                f"(supported: {', '.join(supported_algorithms())})"
            )
            raise UnsupportedAlgorithmError(msg)
        if chunk_size <= 0:
            msg = f"Chunk size must be positive, got {chunk_size}"
            raise ValueError(msg)
        self._algorithm = tag
        self._factory = ALGORITHMS[tag]
        self._chunk_size = chunk_size
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @property
    def algorithm(self) -> str:
        """Upper-case algorithm tag."""
        return self._algorithm

    def fingerprint(self, path: str, cancel: threading.Event | None = None) -> Fingerprint:
        """Hash a file's content.

        Args:
            path: Path of the file to read.
            cancel: Optional event checked between chunks.

        Returns:
            Fingerprint with the computation time attached.

        Raises:
            OSError: If the file cannot be opened or read.
            HashCancelledError: If ``cancel`` is set before completion.
        """
        start = time.perf_counter()
        digest = self._factory()

        with open(path, "rb") as f:
            while chunk := f.read(self._chunk_size):
                _raise_if_cancelled(cancel, path)
                digest.update(chunk)
        _raise_if_cancelled(cancel, path)

        duration = time.perf_counter() - start
        fingerprint = Fingerprint(
            algorithm=self._algorithm,
            digest=digest.hexdigest().lower(),
            duration=duration,
        )
        self._logger.debug("Hashed %s in %.3fs (%s)", path, duration, fingerprint.short)
        return fingerprint


def _raise_if_cancelled(cancel: threading.Event | None, path: str) -> None:
    if cancel is not None and cancel.is_set():
        msg = f"Hashing cancelled: {path}"
        raise HashCancelledError(msg)
