"""Scan history persistence.

This module provides the ScanStore class for persisting and querying
scan records in a JSONL file format.
"""

import json
import logging
from pathlib import Path

from dupectl.core.paths import SCAN_HISTORY_FILENAME, ensure_dir, get_state_dir
from dupectl.models.scan_result import ScanRecord

logger = logging.getLogger(__name__)


class ScanNotFoundError(LookupError):
    """Raised when no stored scan matches an id."""


class AmbiguousScanIdError(LookupError):
    """Raised when an id prefix matches more than one stored scan."""


class ScanStore:
    """Manages scan history in a JSONL file.

    Storage location: ~/.local/state/dupectl/scans.jsonl

    Each line is a complete JSON object representing a ScanRecord. This
    format allows append-only writes and skips corrupt lines on read.

    Args:
        state_dir: Optional override for the state directory.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to the scans.jsonl file."""
        return self._state_dir / SCAN_HISTORY_FILENAME

    def record_scan(self, record: ScanRecord) -> None:
        """Append a scan record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        ensure_dir(self._state_dir, "state")
        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(record.to_json_line() + "\n")
            f.flush()
        logger.debug("Saved scan %s to %s", record.id, self.history_path)

    def list_scans(self, limit: int | None = None) -> list[ScanRecord]:
        """Read stored scans, newest first.

        Args:
            limit: Maximum number of records to return (None = all).

        Returns:
            List of ScanRecord, newest first. Empty if nothing is stored.
        """
        if not self.history_path.exists():
            return []

        records: list[ScanRecord] = []
        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(ScanRecord.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping corrupt scan line %d: %s", line_num, str(e))

        records.reverse()
        if limit is not None:
            records = records[:limit]
        return records

    def load_scan(self, scan_id: str) -> ScanRecord:
        """Load one scan by full id or unique id prefix.

        Raises:
            ScanNotFoundError: If no record matches.
            AmbiguousScanIdError: If the prefix matches several records.
        """
        if not scan_id:
            msg = "Scan id cannot be empty"
            raise ValueError(msg)

        records = self.list_scans()
        for record in records:
            if record.id == scan_id:
                return record

        matches = [record for record in records if record.id.startswith(scan_id)]
        if not matches:
            raise ScanNotFoundError(f"No scan with id {scan_id}")
        if len(matches) > 1:
            raise AmbiguousScanIdError(f"Scan id prefix {scan_id} matches {len(matches)} scans")
        return matches[0]
