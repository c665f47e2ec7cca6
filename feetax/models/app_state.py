from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

from .analytics import AnalyticsSummary
from .student_record import StudentRecord

"""Settings and application state models.

AppState is replaced as a whole on every transition (see services.store);
nothing in here is mutated in place.
"""

__all__ = [
    "AppSettings",
    "AppState",
    "SETTING_FIELDS",
]


@dataclass(frozen=True)
class AppSettings:
    """User-configurable settings (persisted independently of records).

    default_tax_rate is informational only; the slab table drives tax.
    """
    currency_symbol: str = "₹"
    default_tax_rate: float = 0.1
    institute_name: str = "Student Institute"
    academic_year: str = "2024-25"
    home_state: str = "Delhi"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        return cls(**{k: v for k, v in data.items() if k in SETTING_FIELDS})


SETTING_FIELDS: frozenset[str] = frozenset(f.name for f in fields(AppSettings))


@dataclass(frozen=True)
class AppState:
    """Everything the front-end renders.

    Only records and settings are persisted; the flags are session-local.
    """
    records: tuple[StudentRecord, ...] = ()
    summary: AnalyticsSummary | None = None
    settings: AppSettings = field(default_factory=AppSettings)
    # UI flags
    is_uploading: bool = False
    is_processing: bool = False
    show_analytics: bool = False
    show_settings: bool = False
