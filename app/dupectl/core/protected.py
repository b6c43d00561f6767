"""Protected file paths that must never receive a destructive action.

Files matching these patterns are marked protected when their descriptor
is built. Duplicates of such files may still be removed elsewhere, but
the protected copy itself is always kept.
"""

import fnmatch
from collections.abc import Iterable
from pathlib import Path

# Protected filesystem path patterns (glob-style).
# Patterns starting with ~ are expanded to the user's home directory
# before matching. Patterns starting with / are matched as-is.
PROTECTED_PATH_PATTERNS: list[str] = [
    # SSH, GPG and credentials
    "~/.ssh/*",
    "~/.gnupg/*",
    "~/.gpg/*",
    "~/.local/share/keyrings/*",
    "~/.password-store/*",
    # Version control internals
    "*/.git/*",
    "*/.hg/*",
    "*/.svn/*",
    # dupectl itself
    "~/.config/dupectl/*",
    "~/.local/state/dupectl/*",
    # System
    "/etc/*",
    "/boot/*",
    "/usr/bin/*",
    "/usr/sbin/*",
    # Windows
    "?:\\Windows\\*",
    "?:\\Program Files\\*",
    "?:\\Program Files (x86)\\*",
]


def expand_pattern(pattern: str, home: str | None = None) -> str:
    """Expand a leading ``~`` in a pattern to the home directory."""
    if pattern.startswith("~"):
        return (home if home is not None else str(Path.home())) + pattern[1:]
    return pattern


def is_protected_path(path: str, extra_patterns: Iterable[str] = ()) -> bool:
    """Check if a file path is protected from destructive actions.

    The path argument should be an absolute path (e.g., /home/user/.ssh/id_rsa).
    Patterns using ~ notation are expanded to the actual home directory before
    comparison using fnmatch for glob-style matching.

    Args:
        path: Absolute filesystem path to check.
        extra_patterns: Additional user-configured patterns.

    Returns:
        True if the path matches any protected pattern, False otherwise.
    """
    home = str(Path.home())

    for pattern in (*PROTECTED_PATH_PATTERNS, *extra_patterns):
        if fnmatch.fnmatch(path, expand_pattern(pattern, home)):
            return True

    return False
