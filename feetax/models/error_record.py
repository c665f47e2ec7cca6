from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""Row-level validation errors and their JSON Lines log form.

RowValidationError is what the validator hands back for a rejected row.
ErrorRecord is the fixed-schema line written to the error log file, so a
failed upload can be diagnosed after the fact. Use row=-1 in an ErrorRecord
for file-level problems where no row applies.
"""

__all__ = [
    "RowValidationError",
    "ErrorRecord",
]


@dataclass(frozen=True)
class RowValidationError:
    """One rejected row.

    Attributes:
        row_index: Display row number (raw index + 2: header row plus 1-based numbering)
        message: Human-readable reason for the first rule that failed
    """
    row_index: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_index}: {self.message}"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source file name being ingested
        row: Display row number. -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Validation or decode message
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_row_error(file: str, error: RowValidationError) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            row=error.row_index,
            error_type="ROW_VALIDATION",
            message=error.message,
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
