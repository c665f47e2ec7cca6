from __future__ import annotations

from datetime import datetime

import pytest

from feetax.services.validator import (
    FIELD_SPECS,
    display_row_number,
    parse_number,
    resolve_field,
    validate_row,
)

"""Unit tests for row validation and column alias resolution."""


def test_valid_fee_row_normalized(make_fee_row):
    outcome = validate_row(make_fee_row(), 0)
    assert outcome.ok
    values = outcome.values
    assert values["reg_no"] == "R001"
    assert values["course"] == "BTECH"
    assert values["branch"] == "CSE"
    assert values["year"] == "2024"
    assert values["semester"] == "1"
    assert values["date"] == "2024-03-15"
    assert values["payment_mode"] == "UPI"
    assert values["amount"] == 1000.0
    assert values["total_paid"] == 1000.0
    assert values["other_amount"] == 0.0


def test_valid_income_layout_row():
    row = {
        "Name": "Asha",
        "Email": "asha@example.com",
        "State": "Delhi",
        "Course": "BCA",
        "Bank Income": "450,000",
        "Other Income": 50000,
    }
    outcome = validate_row(row, 0)
    assert outcome.ok
    assert outcome.values["name"] == "Asha"
    assert outcome.values["state"] == "Delhi"
    assert outcome.values["course"] == "BCA"
    assert outcome.values["amount"] == 450000.0
    assert outcome.values["other_amount"] == 50000.0
    assert outcome.values["reg_no"] == ""
    assert outcome.values["date"] == ""


def test_display_row_number_offsets_header():
    assert display_row_number(0) == 2
    assert display_row_number(3) == 5


def test_error_carries_display_row(make_fee_row):
    outcome = validate_row(make_fee_row(amount=-5), 3)
    assert not outcome.ok
    assert outcome.values is None
    assert outcome.error.row_index == 5
    assert outcome.error.message == "Amount must be positive"
    assert str(outcome.error) == "Row 5: Amount must be positive"


def test_alias_priority_first_present_wins():
    row = {"Reg No": "", "reg_no": "SECOND", "regNo": "THIRD"}
    # blank first alias is skipped
    assert resolve_field(row, "reg_no") == "SECOND"
    row = {"Reg No": "FIRST", "regNo": "THIRD"}
    assert resolve_field(row, "reg_no") == "FIRST"


def test_alias_skips_none_and_nan():
    row = {"amount": None, "Amount": float("nan"), "Bank Income": 10}
    assert resolve_field(row, "amount") == 10


def test_alias_table_has_unique_field_names():
    names = [spec.name for spec in FIELD_SPECS]
    assert len(names) == len(set(names))


def test_missing_identity_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(reg_no=""), 0)
    assert outcome.error.message == "Registration number or name and email is required"


def test_name_without_email_rejected():
    outcome = validate_row({"Name": "Ravi", "Course": "BCA", "amount": 10}, 0)
    assert not outcome.ok


def test_invalid_email_rejected():
    row = {"Name": "Ravi", "Email": "not-an-email", "Course": "BCA", "amount": 10}
    outcome = validate_row(row, 0)
    assert outcome.error.message == "Invalid email format"


def test_missing_course_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(coursecode=None), 0)
    assert outcome.error.message == "Course is required"


def test_missing_amount_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(amount=None), 0)
    assert outcome.error.message == "Amount is required"


def test_unparseable_amount_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(amount="lots"), 0)
    assert outcome.error.message.startswith("Amount is not a number")


def test_first_failing_rule_only(make_fee_row):
    # both course and amount are bad; course is checked first
    outcome = validate_row(make_fee_row(coursecode="", amount=-1), 0)
    assert outcome.error.message == "Course is required"


def test_optional_amount_unparseable_defaults_to_zero(make_fee_row):
    outcome = validate_row(make_fee_row(totalPaid="n/a"), 0)
    assert outcome.ok
    assert outcome.values["total_paid"] == 0.0


def test_optional_amount_negative_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(totalPaid=-10), 0)
    assert outcome.error.message == "Total paid must be positive"


def test_date_cell_normalized(make_fee_row):
    outcome = validate_row(make_fee_row(date=datetime(2024, 7, 1, 9, 30)), 0)
    assert outcome.values["date"] == "2024-07-01"


def test_excel_serial_date_normalized(make_fee_row):
    # 45292 == 2024-01-01 in the 1900 date system
    outcome = validate_row(make_fee_row(date=45292), 0)
    assert outcome.values["date"] == "2024-01-01"


def test_unparseable_date_rejected(make_fee_row):
    outcome = validate_row(make_fee_row(date="someday"), 0)
    assert not outcome.ok
    assert outcome.error.message.startswith("Invalid date")


@pytest.mark.parametrize("row", [None, "R001,BTECH,1000", 42, ["R001"]])
def test_malformed_row_never_raises(row):
    outcome = validate_row(row, 0)
    assert not outcome.ok
    assert outcome.error.row_index == 2


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (10, 10.0),
        (10.5, 10.5),
        (" 1,200.50 ", 1200.5),
        ("0", 0.0),
        ("", None),
        ("abc", None),
        (True, None),
        (None, None),
        (float("inf"), None),
        (10**400, None),
        ("nan", None),
    ],
)
def test_parse_number(value, expected):
    assert parse_number(value) == expected


@pytest.mark.parametrize("field", ["amount", "Other Income", "totalPaid"])
def test_oversized_integer_amount_does_not_raise(make_fee_row, field):
    outcome = validate_row(make_fee_row(**{field: 10**400}), 0)
    if field == "amount":
        assert outcome.error.message == f"Amount is not a number: {10**400!r}"
    else:
        # optional amounts fall back to 0
        assert outcome.ok
        assert outcome.values["other_amount" if field == "Other Income" else "total_paid"] == 0.0
