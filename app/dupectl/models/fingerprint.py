"""Content fingerprint model and its compute-once cache cell.

A fingerprint is an algorithm-tagged digest. Every stored or displayed
form uses ``"<ALG>:<HEX>"`` so digests produced by different algorithms
can never be mistaken for each other.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Algorithm-tagged content digest.

    Attributes:
        algorithm: Upper-case algorithm tag (e.g., "SHA256").
        digest: Lower-case hexadecimal digest.
        duration: Seconds spent computing the digest. Diagnostic only,
            ignored by equality.
    """

    algorithm: str
    digest: str
    duration: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        """Validate fingerprint data after initialization."""
        if not self.algorithm:
            msg = "Fingerprint algorithm cannot be empty"
            raise ValueError(msg)
        if not self.digest:
            msg = "Fingerprint digest cannot be empty"
            raise ValueError(msg)
        if ":" in self.algorithm:
            msg = f"Algorithm tag cannot contain ':', got {self.algorithm!r}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.digest}"

    @property
    def short(self) -> str:
        """First eight digest characters, for log lines."""
        return self.digest[:8]

    @classmethod
    def parse(cls, text: str, duration: float = 0.0) -> Fingerprint:
        """Parse the ``"<ALG>:<HEX>"`` form.

        Args:
            text: Tagged digest string.
            duration: Optional computation time to attach.

        Returns:
            Fingerprint with normalized tag and digest case.

        Raises:
            ValueError: If the text has no algorithm tag.
        """
        algorithm, sep, digest = text.partition(":")
        if not sep:
            msg = f"Fingerprint must be '<ALG>:<HEX>', got {text!r}"
            raise ValueError(msg)
        return cls(algorithm=algorithm.upper(), digest=digest.lower(), duration=duration)


class OnceCell(Generic[T]):
    """A cell that is written at most once.

    ``get_or_init`` runs the factory under a lock, so concurrent callers
    never compute the value twice. If the factory raises, the cell stays
    empty and the exception propagates.
    """

    __slots__ = ("_lock", "_value", "_filled")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: T | None = None
        self._filled = False

    @property
    def is_set(self) -> bool:
        """Whether a value has been stored."""
        return self._filled

    def get(self) -> T | None:
        """Return the stored value, or None if the cell is empty."""
        return self._value

    def set(self, value: T) -> None:
        """Store a value.

        Raises:
            RuntimeError: If the cell already holds a value.
        """
        with self._lock:
            if self._filled:
                msg = "OnceCell is already set"
                raise RuntimeError(msg)
            self._value = value
            self._filled = True

    def get_or_init(self, factory: Callable[[], T]) -> T:
        """Return the stored value, computing it with ``factory`` if empty."""
        with self._lock:
            if not self._filled:
                self._value = factory()
                self._filled = True
            return self._value  # type: ignore[return-value]
