"""Scan configuration.

Defaults for the scan and clean commands, stored as TOML in
~/.config/dupectl/config.toml. Only the CLI layer reads this file; the
core receives every setting as an explicit argument.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dupectl.core.hasher import DEFAULT_ALGORITHM, supported_algorithms
from dupectl.core.paths import ensure_dir, get_config_path


class DupeConfig(BaseModel):
    """Configuration for duplicate scans.

    Attributes:
        algorithm: Hash algorithm tag.
        workers: Threads used for stat and hashing.
        min_size: Ignore files smaller than this many bytes.
        extensions: Only consider these extensions (empty = all).
        exclude_patterns: Skip paths containing any of these substrings.
        protected_patterns: Extra glob patterns for protected files.
        protect_read_only: Treat read-only files as protected.
        max_results: Number of groups shown by default.
    """

    model_config = ConfigDict(extra="forbid")

    algorithm: Annotated[
        str,
        Field(description="Hash algorithm tag"),
    ] = DEFAULT_ALGORITHM
    workers: Annotated[
        int,
        Field(ge=1, le=64, description="Worker threads (1-64)"),
    ] = 4
    min_size: Annotated[
        int,
        Field(ge=0, description="Minimum file size in bytes"),
    ] = 1
    extensions: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)
    protected_patterns: list[str] = Field(default_factory=list)
    protect_read_only: bool = True
    max_results: Annotated[
        int,
        Field(ge=1, description="Groups shown by default"),
    ] = 50

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Normalize and check the algorithm tag."""
        tag = v.strip().upper()
        if tag not in supported_algorithms():
            msg = f"unsupported algorithm '{v}' (supported: {', '.join(supported_algorithms())})"
            raise ValueError(msg)
        return tag


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> DupeConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated DupeConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return DupeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> DupeConfig:
    """Load configuration, falling back to defaults if the file is missing.

    Raises:
        ConfigParseError: If the file exists but is not valid TOML.
        ConfigError: If the file exists but doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return DupeConfig()


def save_config(config: DupeConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The DupeConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    try:
        ensure_dir(config_path.parent, "config")
    except RuntimeError as e:
        raise ConfigError(str(e)) from e

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config.model_dump(), f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
