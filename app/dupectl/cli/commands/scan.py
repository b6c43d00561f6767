"""Scan command implementation.

Finds duplicate files under a directory, shows them grouped by content,
and records the scan in the history.
"""

from pathlib import Path
from typing import Annotated

import typer

from dupectl.cli.display import create_groups_table
from dupectl.cli.types import AlgorithmChoice, create_scanner, require_config
from dupectl.core.config import DupeConfig
from dupectl.core.export import ExportError, export_groups
from dupectl.core.state import ScanStore
from dupectl.models.errors import ContractViolationError
from dupectl.models.scan_result import ScanRecord, ScanResult
from dupectl.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)


def apply_overrides(
    config: DupeConfig,
    extensions: list[str] | None,
    exclude: list[str] | None,
    min_size: int | None,
    algorithm: AlgorithmChoice | None,
    workers: int | None,
) -> DupeConfig:
    """Merge command-line options over the loaded configuration.

    Returns:
        A new validated DupeConfig.
    """
    updates: dict[str, object] = {}
    if extensions:
        updates["extensions"] = extensions
    if exclude:
        updates["exclude_patterns"] = exclude
    if min_size is not None:
        updates["min_size"] = min_size
    if algorithm is not None:
        updates["algorithm"] = algorithm.value
    if workers is not None:
        updates["workers"] = workers
    return DupeConfig.model_validate({**config.model_dump(), **updates})


def run_scan(directory: Path, config: DupeConfig) -> ScanResult:
    """Scan ``directory`` with ``config`` or exit with an error code.

    Exit code 1 for an unusable directory, 2 for a broken invariant.
    """
    scanner = create_scanner(config)
    try:
        with console.status(f"Scanning {directory}..."):
            result = scanner.scan(
                directory,
                extensions=config.extensions,
                exclude_patterns=config.exclude_patterns,
                min_size=config.min_size,
            )
    except (NotADirectoryError, FileNotFoundError) as e:
        print_error(f"Not a directory: {directory}")
        raise typer.Exit(code=1) from e
    except ContractViolationError as e:
        print_error(f"Scan aborted: {e}")
        raise typer.Exit(code=2) from e

    for failure in result.failures:
        print_warning(f"Skipped {failure.path}: {failure.error}")
    return result


def scan_duplicates(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory to scan recursively."),
    ],
    extensions: Annotated[
        list[str] | None,
        typer.Option(
            "--ext",
            "-e",
            help="Only consider files with this extension (repeatable).",
        ),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-x",
            help="Skip paths containing this text (repeatable).",
        ),
    ] = None,
    min_size: Annotated[
        int | None,
        typer.Option(
            "--min-size",
            help="Ignore files smaller than this many bytes.",
            min=0,
        ),
    ] = None,
    max_results: Annotated[
        int | None,
        typer.Option(
            "--max-results",
            "-n",
            help="Maximum number of groups to display.",
            min=1,
        ),
    ] = None,
    algorithm: Annotated[
        AlgorithmChoice | None,
        typer.Option(
            "--algorithm",
            "-a",
            help="Hash algorithm used for fingerprints.",
            case_sensitive=False,
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            help="Worker threads for hashing (1-64).",
            min=1,
            max=64,
        ),
    ] = None,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export",
            help="Export groups to a .json, .csv or .txt file.",
        ),
    ] = None,
    no_save: Annotated[
        bool,
        typer.Option(
            "--no-save",
            help="Do not record this scan in the history.",
        ),
    ] = False,
) -> None:
    """Scan a directory for duplicate files.

    Examples:
        dupectl scan ~/Pictures                  # Scan with configured defaults
        dupectl scan ~/Music --ext mp3 --ext flac
        dupectl scan . --exclude node_modules
        dupectl scan ~/data --algorithm xxh128   # Faster non-cryptographic hash
        dupectl scan ~ --export dupes.csv        # Export all groups
    """
    config = apply_overrides(
        require_config(), extensions, exclude, min_size, algorithm, workers
    )
    result = run_scan(directory, config)
    record = result.to_record()

    if not no_save:
        try:
            ScanStore().record_scan(record)
        except (OSError, RuntimeError) as e:
            print_warning(f"Could not record scan to history: {e}")

    if export_path is not None:
        try:
            destination = export_groups(record.groups, export_path)
        except ExportError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_info(f"Scan results exported to {destination}")

    if not record.groups:
        print_success(f"No duplicates found among {result.total_files} file(s).")
        return

    print_scan_record(record, max_results or config.max_results)
    console.print(
        f"[dim]Scanned {result.total_files} file(s) in {result.elapsed:.2f}s, "
        f"scan id {record.id}[/dim]"
    )


def print_scan_record(record: ScanRecord, limit: int | None = None) -> None:
    """Print the groups of a scan followed by a summary line."""
    groups = record.groups[:limit] if limit else record.groups
    console.print(create_groups_table(groups))

    duplicates = sum(group.count for group in record.groups)
    console.print(
        f"\nFound {record.groups_found} group(s), {duplicates} file(s), "
        f"[warning]{format_size(record.total_bytes_wasted)}[/warning] reclaimable"
    )
    if limit and len(groups) < record.groups_found:
        console.print(f"[dim](showing {len(groups)} of {record.groups_found} groups)[/dim]")
