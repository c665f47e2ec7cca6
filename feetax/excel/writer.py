from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.student_record import StudentRecord
from ..services.validator import FIELD_SPECS

"""Export of accepted records back to a tabular file.

Input fields are written under their first-priority alias so the export can
be uploaded again as-is. Derived fields follow, for reference only; they are
recomputed on re-import.
"""

__all__ = [
    "DEFAULT_EXPORT_NAME",
    "EXPORT_SHEET_NAME",
    "DERIVED_COLUMNS",
    "records_to_rows",
    "write_records",
]

DEFAULT_EXPORT_NAME = "student_tax_data.xlsx"
EXPORT_SHEET_NAME = "Processed Data"

# column label -> StudentRecord attribute
DERIVED_COLUMNS: dict[str, str] = {
    "id": "id",
    "grossAmount": "gross_amount",
    "calculatedTax": "calculated_tax",
    "netAmount": "net_amount",
    "processed": "processed",
}


def records_to_rows(records: Sequence[StudentRecord]) -> list[dict[str, Any]]:
    """Flatten records into one row dict per record."""
    rows: list[dict[str, Any]] = []
    for record in records:
        row = {spec.label: getattr(record, spec.name) for spec in FIELD_SPECS}
        row.update({label: getattr(record, attr) for label, attr in DERIVED_COLUMNS.items()})
        rows.append(row)
    return rows


def write_records(records: Sequence[StudentRecord], path: Path) -> Path:
    """Write ``records`` to ``path`` (.xlsx or .csv) and return the path."""
    columns = [spec.label for spec in FIELD_SPECS] + list(DERIVED_COLUMNS)
    frame = pd.DataFrame(records_to_rows(records), columns=columns)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        frame.to_csv(path, index=False)
    else:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name=EXPORT_SHEET_NAME, index=False)
    return path
