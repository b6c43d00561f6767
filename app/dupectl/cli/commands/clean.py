"""Clean command implementation.

Scans a directory, decides which copy of each duplicate group to keep,
and recycles or deletes the others after confirmation.
"""

from pathlib import Path
from typing import Annotated

import typer

from dupectl.cli.commands.scan import run_scan
from dupectl.cli.display import (
    create_outcomes_table,
    create_plan_table,
    print_outcomes_summary,
    print_plan_summary,
)
from dupectl.cli.types import require_config
from dupectl.core.executor import ActionExecutor
from dupectl.core.resolver import ActionResolver, summarize
from dupectl.models.descriptor import ActionKind, FileDescriptor
from dupectl.models.errors import ContractViolationError
from dupectl.utils.formatting import console, print_error, print_info, print_success


def clean_duplicates(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory to clean recursively."),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be done without changing files."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove redundant copies of duplicate files.

    The best copy of each group is kept. Copies on removable media are
    deleted, copies in cloud-synced folders and protected files are kept,
    and everything else is moved to the trash.

    Examples:
        dupectl clean ~/Downloads --dry-run     # Preview the plan
        dupectl clean ~/Downloads               # Ask, then clean
        dupectl clean /media/usb --yes          # No confirmation
    """
    config = require_config()
    result = run_scan(directory, config)

    if not result.groups:
        print_success("No duplicates found. Nothing to clean.")
        return

    try:
        ActionResolver().resolve(result.groups)
    except ContractViolationError as e:
        print_error(f"Cannot plan actions: {e}")
        raise typer.Exit(code=2) from e

    console.print(create_plan_table(result.groups, dry_run=dry_run))
    summary = summarize(result.groups)
    print_plan_summary(summary)

    pending: list[FileDescriptor] = [
        descriptor
        for group in result.groups
        for descriptor in group
        if descriptor.action not in (ActionKind.NONE, ActionKind.KEEP)
    ]
    if not pending:
        print_info("All copies are kept. Nothing to clean.")
        return

    # Confirm unless --yes or --dry-run
    if not dry_run and not yes:
        confirmed = typer.confirm(
            f"\nProceed with {len(pending)} action(s)?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        outcomes = ActionExecutor(dry_run=dry_run).execute(pending)
    except ContractViolationError as e:
        print_error(f"Execution aborted: {e}")
        raise typer.Exit(code=2) from e

    console.print(create_outcomes_table(outcomes))
    if dry_run:
        print_info(f"Dry-run: {len(outcomes)} action(s) would be executed.")
        return

    print_outcomes_summary(outcomes)

    # Exit with error if any action failed
    if any(outcome.failed for outcome in outcomes):
        raise typer.Exit(code=1)
