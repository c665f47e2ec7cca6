from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from .error_record import RowValidationError
from .student_record import StudentRecord

"""Result models for ingestion and aggregation.

IngestionResult is what one batch produces. AnalyticsSummary is derived
entirely from the current record collection and recomputed, never patched,
whenever that collection changes.
"""

__all__ = [
    "BucketingMode",
    "CategoryTotal",
    "TimeBucket",
    "AnalyticsSummary",
    "IngestionResult",
]


class BucketingMode(Enum):
    """How the time-series breakdown is built.

    - PROPORTIONAL: six fixed-share months (Jan..Jun) split out of the totals.
      Placeholder policy kept for compatibility with existing dashboards.
    - DATE: calendar months derived from each record's date.
    """
    PROPORTIONAL = "proportional"
    DATE = "date"


@dataclass(frozen=True)
class CategoryTotal:
    """Sub-totals for one distinct key of a categorical field."""
    key: str
    amount: float  # sum of gross amounts
    tax: float  # sum of calculated tax
    count: int  # number of records


@dataclass(frozen=True)
class TimeBucket:
    label: str  # "Jan" (proportional) or "2024-03" / "undated" (date)
    amount: float
    tax: float


@dataclass(frozen=True)
class AnalyticsSummary:
    """Aggregate totals plus per-category and time breakdowns."""
    total_amount: float
    total_tax: float
    total_students: int
    avg_tax: float  # total_tax / total_students, 0 when empty
    by_month: list[TimeBucket] = field(default_factory=list)
    by_course: list[CategoryTotal] = field(default_factory=list)
    by_branch: list[CategoryTotal] = field(default_factory=list)
    by_state: list[CategoryTotal] = field(default_factory=list)
    by_payment_mode: list[CategoryTotal] = field(default_factory=list)
    bucketing: BucketingMode = BucketingMode.PROPORTIONAL

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["bucketing"] = self.bucketing.value
        return data


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one ingestion batch."""
    records: tuple[StudentRecord, ...]
    errors: tuple[RowValidationError, ...]

    @property
    def accepted(self) -> int:
        return len(self.records)

    @property
    def rejected(self) -> int:
        return len(self.errors)

    @property
    def total_rows(self) -> int:
        return self.accepted + self.rejected
