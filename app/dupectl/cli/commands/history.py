"""History commands for viewing past scans.

This module provides the `dupectl history` commands for listing stored
scans and showing the duplicate groups a scan found.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from dupectl.cli.commands.scan import print_scan_record
from dupectl.core.state import AmbiguousScanIdError, ScanNotFoundError, ScanStore
from dupectl.models.scan_result import ScanRecord
from dupectl.utils.formatting import console, format_size, print_error, print_info

app = typer.Typer(
    name="history",
    help="View past duplicate scans.",
    no_args_is_help=True,
)


@app.command(name="list")
def list_history(
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of scans to show.",
            min=1,
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List recorded scans, newest first.

    Examples:
        dupectl history list            # Show last 20 scans
        dupectl history list -n 50      # Show last 50 scans
        dupectl history list --json     # JSON output for scripting
    """
    records = ScanStore().list_scans(limit=limit)

    if not records:
        print_info("No scans recorded yet.")
        return

    if json_output:
        data = [
            {
                "id": r.id,
                "timestamp": r.timestamp,
                "directory": r.directory,
                "total_files": r.total_files,
                "groups_found": r.groups_found,
                "bytes_wasted": r.total_bytes_wasted,
            }
            for r in records
        ]
        console.print_json(json.dumps(data))
        return

    _print_table(records)


@app.command()
def show(
    scan_id: Annotated[
        str,
        typer.Argument(help="Scan id or a unique prefix of it."),
    ],
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of groups to display.",
            min=1,
        ),
    ] = None,
) -> None:
    """Show the duplicate groups found by a recorded scan."""
    try:
        record = ScanStore().load_scan(scan_id)
    except (ScanNotFoundError, AmbiguousScanIdError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(
        f"Scan [bold]{record.id}[/bold] of {record.directory} "
        f"at {_format_timestamp(record.timestamp)}"
    )
    if not record.groups:
        print_info(f"No duplicates were found among {record.total_files} file(s).")
        return
    print_scan_record(record, limit)


def _print_table(records: list[ScanRecord]) -> None:
    """Print scans as Rich table."""
    table = Table(
        title="Scan History",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted")
    table.add_column("Timestamp", style="info")
    table.add_column("Directory", overflow="fold")
    table.add_column("Files", justify="right")
    table.add_column("Groups", justify="right")
    table.add_column("Wasted", style="warning", justify="right")

    for record in records:
        table.add_row(
            record.id,
            _format_timestamp(record.timestamp),
            record.directory,
            str(record.total_files),
            str(record.groups_found),
            format_size(record.total_bytes_wasted),
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
