from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log buffering.

Rejected rows are kept out of the console (only their count is shown) and
written here instead:
- JSON Lines, fixed ErrorRecord schema
- one ``errors-YYYYMMDD-HHMMSS.log`` (UTC) per buffer, created on first flush
- single-threaded use; the store serializes ingestion
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush appends JSON Lines."""

    def __init__(self, logs_dir: Path | str = "logs") -> None:
        self.logs_dir = Path(logs_dir)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None if nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
