from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

"""StudentRecord model.

A StudentRecord is one accepted spreadsheet row after validation and tax
computation. Records are created once per accepted row during ingestion and
never mutated; a re-upload replaces the whole collection.
"""

__all__ = [
    "StudentRecord",
]


@dataclass(frozen=True)
class StudentRecord:
    """Normalized, typed fee-payment record.

    Invariants:
        gross_amount == amount + other_amount
        net_amount == gross_amount - calculated_tax
    """
    id: str  # unique within the ingestion batch
    reg_no: str
    name: str
    email: str
    state: str
    course: str
    branch: str
    year: str
    semester: str
    date: str  # ISO date (YYYY-MM-DD) or "" when the row carried none
    payment_mode: str
    amount: float
    other_amount: float
    total_paid: float
    gross_amount: float
    calculated_tax: float
    net_amount: float
    processed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StudentRecord:
        """Rebuild a record from :meth:`to_dict` output, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
