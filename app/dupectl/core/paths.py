"""Config and state locations for dupectl.

Both follow the XDG Base Directory layout:
- config.toml lives in $XDG_CONFIG_HOME/dupectl (default ~/.config/dupectl)
- scans.jsonl lives in $XDG_STATE_HOME/dupectl (default ~/.local/state/dupectl)
"""

import os
from pathlib import Path

APP_NAME = "dupectl"
CONFIG_FILENAME = "config.toml"
SCAN_HISTORY_FILENAME = "scans.jsonl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Return ``$env_var/dupectl``, or ``~/default_subdir/dupectl`` if unset."""
    base = os.environ.get(env_var)
    root = Path(base) if base else Path.home() / default_subdir
    return root / APP_NAME


def get_config_dir() -> Path:
    """Directory holding the user configuration."""
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Directory holding the scan history."""
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Default location of config.toml."""
    return get_config_dir() / CONFIG_FILENAME


def get_scan_history_path() -> Path:
    """Default location of the scan history file."""
    return get_state_dir() / SCAN_HISTORY_FILENAME


def ensure_dir(path: Path, name: str) -> Path:
    """Create ``path`` and its parents if missing.

    Args:
        path: Directory to create.
        name: What the directory is for, used in error messages.

    Returns:
        ``path``, which now exists.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        reason = "Permission denied" if isinstance(e, PermissionError) else str(e)
        msg = f"Cannot create {name} directory {path}: {reason}"
        raise RuntimeError(msg) from e
    return path
