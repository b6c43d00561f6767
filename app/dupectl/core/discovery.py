"""File discovery for duplicate scans.

Walks a directory tree and yields the absolute paths of regular files,
applying the extension, exclude-pattern and minimum-size filters before
anything reaches the core.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lower-case extensions without a leading dot ("JPG" and ".jpg" -> "jpg")."""
    return frozenset(ext.lower().lstrip(".") for ext in extensions if ext.strip("."))


def _relative_to_root(path: str, root: str) -> str:
    try:
        return os.path.relpath(path, root)
    except ValueError:
        # Different drive on Windows
        return path


def discover_files(
    root: str | Path,
    extensions: Iterable[str] = (),
    exclude_patterns: Iterable[str] = (),
    min_size: int = 0,
) -> Iterator[str]:
    """Yield absolute paths of files under ``root``.

    Directories are walked in sorted order so results are reproducible.
    Symbolic links are not followed and are never yielded.

    Args:
        root: Directory to scan.
        extensions: Keep only these extensions (case-insensitive, dot
            optional). Empty keeps everything.
        exclude_patterns: Drop files whose path relative to ``root``
            contains any of these substrings (case-insensitive).
        min_size: Drop files smaller than this many bytes.

    Yields:
        Absolute file paths.

    Raises:
        NotADirectoryError: If ``root`` is not a directory.
    """
    root_path = Path(root).expanduser().resolve()
    if not root_path.is_dir():
        msg = f"Not a directory: {root_path}"
        raise NotADirectoryError(msg)

    wanted = normalize_extensions(extensions)
    excludes = [p.lower() for p in exclude_patterns if p]
    root_str = str(root_path)

    def on_error(error: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", error.filename, error.strerror)

    for dirpath, dirnames, filenames in os.walk(root_str, onerror=on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)

            if wanted and os.path.splitext(filename)[1].lower().lstrip(".") not in wanted:
                continue

            if excludes:
                relative = _relative_to_root(path, root_str).lower()
                if any(pattern in relative for pattern in excludes):
                    continue

            try:
                if os.path.islink(path) or not os.path.isfile(path):
                    continue
                if min_size > 0 and os.path.getsize(path) < min_size:
                    continue
            except OSError as e:
                logger.warning("Cannot stat %s: %s", path, e)
                continue

            yield path
