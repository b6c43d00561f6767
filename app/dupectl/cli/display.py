"""Shared Rich display functions for duplicate groups and action results.

Provides the table builders and summary printers used by the scan,
clean and history commands.
"""

from collections.abc import Sequence

from rich.table import Table

from dupectl.core.resolver import ActionSummary
from dupectl.models.descriptor import ActionKind
from dupectl.models.group import EquivalenceGroup
from dupectl.models.outcome import ActionOutcome
from dupectl.models.scan_result import GroupRecord
from dupectl.utils.formatting import console, format_size, print_success

_ACTION_STYLES: dict[ActionKind, str] = {
    ActionKind.KEEP: "keep",
    ActionKind.DELETE: "destructive",
    ActionKind.RECYCLE: "warning",
    ActionKind.REVIEW: "review",
}


def _action_markup(action: ActionKind) -> str:
    style = _ACTION_STYLES.get(action, "info")
    return f"[{style}]{action.value}[/{style}]"


def create_groups_table(groups: Sequence[GroupRecord], title: str = "Duplicate Groups") -> Table:
    """Create a Rich table listing duplicate groups.

    One row per group member; the group columns are filled on the first
    row of each group only.

    Args:
        groups: Group records to display.
        title: Table title.

    Returns:
        Rich Table configured for group display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Hash", style="muted", no_wrap=True)
    table.add_column("Size", style="info", justify="right")
    table.add_column("Wasted", style="warning", justify="right")
    table.add_column("File", overflow="fold")

    for index, group in enumerate(groups, start=1):
        for position, record in enumerate(group.files):
            if position == 0:
                table.add_row(
                    str(index),
                    group.fingerprint.split(":", 1)[-1][:12],
                    format_size(group.size),
                    format_size(group.bytes_wasted),
                    record.path,
                )
            else:
                table.add_row("", "", "", "", record.path)
        table.add_section()

    return table


def create_plan_table(groups: Sequence[EquivalenceGroup], dry_run: bool = False) -> Table:
    """Create a Rich table showing the action planned for every file.

    Args:
        groups: Resolved groups.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for plan display.
    """
    title = "Planned Actions (Dry Run)" if dry_run else "Planned Actions"
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action", width=12)
    table.add_column("Priority", width=10)
    table.add_column("Location", style="muted")
    table.add_column("File", overflow="fold")
    table.add_column("Reason", style="muted")

    for group in groups:
        for descriptor in group:
            path = descriptor.path
            if descriptor.protected:
                path = f"[protected]{path}[/protected]"
            table.add_row(
                _action_markup(descriptor.action),
                descriptor.priority.name.lower(),
                descriptor.location.value,
                path,
                descriptor.reason,
            )
        table.add_section()

    return table


def create_outcomes_table(outcomes: Sequence[ActionOutcome]) -> Table:
    """Create a Rich table displaying executed actions.

    Args:
        outcomes: Outcomes returned by the executor.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Action", width=12)
    table.add_column("File", overflow="fold")
    table.add_column("Message")

    for outcome in outcomes:
        if outcome.dry_run:
            status = "[info]DRY[/info]"
            message = "not executed"
        elif outcome.skipped:
            status = "[muted]SKIP[/muted]"
            message = "already executed"
        elif outcome.success:
            status = "[success]OK[/success]"
            message = f"{outcome.elapsed * 1000:.1f} ms"
        else:
            status = "[error]FAIL[/error]"
            message = outcome.error or "Unknown error"

        table.add_row(status, outcome.action.value, outcome.path, f"[muted]{message}[/muted]")

    return table


def print_plan_summary(summary: ActionSummary) -> None:
    """Print counts per action and the bytes destructive actions free."""
    if not summary.total:
        return
    parts = [
        f"{_action_markup(action)}: {count}"
        for action, count in sorted(summary.counts.items(), key=lambda item: item[0].value)
    ]
    console.print(f"\nSummary: {', '.join(parts)}")
    console.print(f"Space to free: [warning]{format_size(summary.bytes_to_free)}[/warning]")


def print_outcomes_summary(outcomes: Sequence[ActionOutcome]) -> None:
    """Print a summary of executed actions.

    Shows a success message when all actions succeed, or a count of
    succeeded and failed actions otherwise.
    """
    success_count = sum(1 for o in outcomes if o.success)
    fail_count = sum(1 for o in outcomes if o.failed)

    if fail_count == 0:
        print_success(f"All {success_count} action(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )
