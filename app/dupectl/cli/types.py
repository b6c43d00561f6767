"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum

import typer

from dupectl.core.classifier import Classifier
from dupectl.core.config import ConfigError, DupeConfig, load_config_or_default
from dupectl.core.hasher import HashEngine
from dupectl.core.scanner import DuplicateScanner
from dupectl.utils.formatting import print_error


class AlgorithmChoice(str, Enum):
    """Hash algorithms selectable on the command line."""

    SHA256 = "SHA256"
    SHA512 = "SHA512"
    SHA1 = "SHA1"
    MD5 = "MD5"
    BLAKE2B = "BLAKE2B"
    XXH64 = "XXH64"
    XXH128 = "XXH128"


def require_config() -> DupeConfig:
    """Load the user configuration or exit with code 1.

    A missing config file yields the defaults.
    """
    try:
        return load_config_or_default()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def create_scanner(config: DupeConfig) -> DuplicateScanner:
    """Build a scanner from effective settings.

    Args:
        config: Configuration with command-line overrides applied.

    Returns:
        DuplicateScanner bound to the running system.
    """
    return DuplicateScanner(
        classifier=Classifier(),
        hash_engine=HashEngine(config.algorithm),
        workers=config.workers,
        protected_patterns=config.protected_patterns,
        protect_read_only=config.protect_read_only,
    )
