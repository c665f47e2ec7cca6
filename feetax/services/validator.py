from __future__ import annotations

import math
import numbers
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

import pandas as pd

from ..models.error_record import RowValidationError

"""Record validator: one raw spreadsheet row -> normalized fields or one error.

Column names differ between exports (``Reg No`` vs ``regNo``, ``Bank Income``
vs ``amount`` ...). Every logical field therefore carries a prioritized alias
list in FIELD_SPECS and is read through ``resolve_field``; the first alias with
a present value wins.

Rules are checked in a fixed order and the first failure rejects the row:
1. identity: registration number, or both name and email
2. email format (when an email is present)
3. course present
4. amount present, numeric, non-negative
5. optional amounts (other_amount, total_paid) non-negative
6. date parseable (when present)
"""

__all__ = [
    "FieldKind",
    "FieldSpec",
    "FIELD_SPECS",
    "ValidationOutcome",
    "display_row_number",
    "resolve_field",
    "parse_number",
    "validate_row",
]

HEADER_ROWS = 1  # header line above the first data row
EXCEL_EPOCH = datetime(1899, 12, 30)
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FieldKind(Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


@dataclass(frozen=True)
class FieldSpec:
    """Logical field with its raw-column aliases in priority order."""
    name: str
    aliases: tuple[str, ...]
    kind: FieldKind = FieldKind.TEXT
    required: bool = False

    @property
    def label(self) -> str:
        """Column label used when rows are written back out."""
        return self.aliases[0]


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec("reg_no", ("Reg No", "Reg No.", "reg_no", "regNo", "RegNo", "Registration No")),
    FieldSpec("name", ("Name", "name", "Student Name", "studentName")),
    FieldSpec("email", ("Email", "email", "E-mail", "Email Address")),
    FieldSpec("state", ("State", "state")),
    FieldSpec("course", ("coursecode", "Course", "course", "Course Code", "courseCode"), required=True),
    FieldSpec("branch", ("branchcode", "Branch", "branch", "Branch Code", "branchCode")),
    FieldSpec("year", ("year", "Year")),
    FieldSpec("semester", ("semester", "Semester")),
    FieldSpec("date", ("date", "Date", "Payment Date"), FieldKind.DATE),
    FieldSpec("payment_mode", ("pmode", "Payment Mode", "paymentMode", "PMode", "Mode")),
    FieldSpec(
        "amount", ("amount", "Amount", "Bank Income", "bankIncome"), FieldKind.NUMBER, required=True
    ),
    FieldSpec("other_amount", ("Other Income", "otherIncome", "Other Amount", "otherAmount"), FieldKind.NUMBER),
    FieldSpec("total_paid", ("totalPaid", "Total Paid", "total_paid"), FieldKind.NUMBER),
)

_SPECS_BY_NAME = {spec.name: spec for spec in FIELD_SPECS}


@dataclass(frozen=True)
class ValidationOutcome:
    """Either normalized fields (``values``) or exactly one ``error``."""
    values: dict[str, Any] | None = None
    error: RowValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def display_row_number(raw_index: int) -> int:
    """Spreadsheet row a user sees for data row ``raw_index`` (0-based)."""
    return raw_index + HEADER_ROWS + 1


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def resolve_field(row: Mapping[Any, Any], field_name: str) -> Any:
    """Return the first present value among the field's aliases, else None."""
    spec = _SPECS_BY_NAME[field_name]
    for alias in spec.aliases:
        if alias in row and not _is_blank(row[alias]):
            return row[alias]
    return None


def parse_number(value: Any) -> float | None:
    """Coerce a cell to a finite float.

    Accepts ints, floats, numpy scalars and strings such as ``" 1,200.50 "``.
    Returns None for blanks, booleans and anything unparseable.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        try:
            number = float(value)
        except (OverflowError, ValueError, TypeError):
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # pandas widens integer columns holding blanks to float
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _parse_date(value: Any) -> str | None:
    """Normalize a date cell to ISO ``YYYY-MM-DD``; None when unparseable."""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        # Excel serial day number
        try:
            return (EXCEL_EPOCH + timedelta(days=float(value))).strftime("%Y-%m-%d")
        except (OverflowError, ValueError):
            return None
    try:
        parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is pd.NaT or pd.isna(parsed):
        return None
    return parsed.strftime("%Y-%m-%d")


def validate_row(row: Any, raw_index: int) -> ValidationOutcome:
    """Validate one raw row.

    Args:
        row: Column label -> cell value mapping as read from the sheet
        raw_index: 0-based position of the row among the data rows

    Returns:
        ValidationOutcome carrying normalized values, or a single
        RowValidationError for the first rule the row breaks
    """
    row_number = display_row_number(raw_index)

    def reject(message: str) -> ValidationOutcome:
        return ValidationOutcome(error=RowValidationError(row_index=row_number, message=message))

    if not isinstance(row, Mapping):
        return reject("Row is not a key/value mapping")

    text = {
        spec.name: _coerce_text(resolve_field(row, spec.name))
        for spec in FIELD_SPECS
        if spec.kind is FieldKind.TEXT
    }

    if not text["reg_no"] and not (text["name"] and text["email"]):
        return reject("Registration number or name and email is required")
    if text["email"] and not EMAIL_PATTERN.match(text["email"]):
        return reject("Invalid email format")
    if not text["course"]:
        return reject("Course is required")

    raw_amount = resolve_field(row, "amount")
    if raw_amount is None:
        return reject("Amount is required")
    amount = parse_number(raw_amount)
    if amount is None:
        return reject(f"Amount is not a number: {raw_amount!r}")
    if amount < 0:
        return reject("Amount must be positive")

    optional_amounts: dict[str, float] = {}
    for name, label in (("other_amount", "Other amount"), ("total_paid", "Total paid")):
        # unparseable optional amounts fall back to 0
        value = parse_number(resolve_field(row, name))
        if value is not None and value < 0:
            return reject(f"{label} must be positive")
        optional_amounts[name] = value if value is not None else 0.0

    raw_date = resolve_field(row, "date")
    iso_date = ""
    if raw_date is not None:
        parsed = _parse_date(raw_date)
        if parsed is None:
            return reject(f"Invalid date: {raw_date!r}")
        iso_date = parsed

    values: dict[str, Any] = dict(text)
    values["date"] = iso_date
    values["amount"] = amount
    values.update(optional_amounts)
    return ValidationOutcome(values=values)
