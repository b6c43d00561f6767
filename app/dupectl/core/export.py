"""Export of duplicate groups to JSON, CSV or plain text.

The format is chosen from the file extension.
"""

import csv
import json
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from dupectl.models.scan_result import GroupRecord
from dupectl.utils.formatting import format_size

CSV_HEADER = ["Hash", "GroupSize", "FileSize", "BytesWasted", "FullPath", "Directory", "FileName"]


class ExportError(Exception):
    """Raised when results cannot be exported."""


def _write_json(groups: Sequence[GroupRecord], path: Path) -> None:
    data = [group.to_dict() for group in groups]
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _write_csv(groups: Sequence[GroupRecord], path: Path) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for group in groups:
            for record in group.files:
                writer.writerow(
                    [
                        group.fingerprint,
                        group.count,
                        group.size,
                        group.bytes_wasted,
                        record.path,
                        record.directory,
                        record.name,
                    ]
                )


def _write_text(groups: Sequence[GroupRecord], path: Path) -> None:
    lines = [
        "DUPLICATE FILES REPORT",
        f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}",
        "=" * 80,
    ]
    for group in groups:
        lines.append("")
        lines.append(f"Group - {group.count} files - {format_size(group.bytes_wasted)} wasted")
        lines.append(f"Size: {format_size(group.size)} each")
        lines.append(f"Hash: {group.fingerprint}")
        lines.extend(f"  {record.path}" for record in group.files)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


WRITERS: dict[str, Callable[[Sequence[GroupRecord], Path], None]] = {
    ".json": _write_json,
    ".csv": _write_csv,
    ".txt": _write_text,
}


def export_groups(groups: Sequence[GroupRecord], path: Path) -> Path:
    """Write duplicate groups to ``path`` in the format its extension names.

    Args:
        groups: Group records, in the order they should appear.
        path: Destination file (.json, .csv or .txt).

    Returns:
        The resolved destination path.

    Raises:
        ExportError: If the extension is unsupported or writing fails.
    """
    destination = path.expanduser().resolve()
    writer = WRITERS.get(destination.suffix.lower())
    if writer is None:
        msg = f"Unsupported export format '{destination.suffix}'. Use .json, .csv or .txt"
        raise ExportError(msg)
    if destination.is_dir():
        raise ExportError(f"Export path is a directory: {destination}")

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        writer(groups, destination)
    except OSError as e:
        raise ExportError(f"Failed to export: {e}") from e
    return destination
