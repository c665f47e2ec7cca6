from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from ..models.analytics import IngestionResult
from ..models.error_record import RowValidationError
from ..models.student_record import StudentRecord
from ..models.tax_slab import DEFAULT_TAX_SLABS, TaxSlab
from .tax_engine import compute_tax
from .validator import validate_row

"""Ingestion pipeline: raw rows -> validated, taxed StudentRecords.

A batch never stops on a bad row. Each row either becomes a record or one
RowValidationError; both sequences are returned to the caller, which decides
what to tell the user.
"""

__all__ = [
    "ingest",
    "next_batch_id",
]

logger = logging.getLogger(__name__)

_batch_counter = itertools.count(1)


def next_batch_id() -> str:
    """Process-wide monotonic batch token, e.g. ``"b0003"``."""
    return f"b{next(_batch_counter):04d}"


def build_record(values: dict[str, Any], record_id: str, slabs: Sequence[TaxSlab]) -> StudentRecord:
    """Attach identity and derived tax fields to validated values."""
    gross = values["amount"] + values["other_amount"]
    tax = compute_tax(gross, slabs)
    return StudentRecord(
        id=record_id,
        reg_no=values["reg_no"],
        name=values["name"],
        email=values["email"],
        state=values["state"],
        course=values["course"],
        branch=values["branch"],
        year=values["year"],
        semester=values["semester"],
        date=values["date"],
        payment_mode=values["payment_mode"],
        amount=values["amount"],
        other_amount=values["other_amount"],
        total_paid=values["total_paid"],
        gross_amount=gross,
        calculated_tax=tax,
        net_amount=gross - tax,
    )


def ingest(
    rows: Iterable[Any],
    slabs: Sequence[TaxSlab] = DEFAULT_TAX_SLABS,
    *,
    batch_id: str | None = None,
    on_row: Callable[[int], None] | None = None,
) -> IngestionResult:
    """Validate, tax and collect every row of a batch.

    Args:
        rows: Raw rows in sheet order
        slabs: Progressive slab table applied to each record's gross amount
        batch_id: Prefix for record ids; a fresh one is drawn when omitted
        on_row: Optional callback invoked with the raw index after each row

    Returns:
        IngestionResult with accepted records and per-row errors, both in
        input order
    """
    if batch_id is None:
        batch_id = next_batch_id()
    records: list[StudentRecord] = []
    errors: list[RowValidationError] = []
    seq = itertools.count(1)

    for index, row in enumerate(rows):
        outcome = validate_row(row, index)
        if outcome.error is not None:
            errors.append(outcome.error)
            logger.debug(f"rejected {outcome.error}")
        elif outcome.values is not None:
            records.append(build_record(outcome.values, f"{batch_id}-{next(seq):05d}", slabs))
        if on_row is not None:
            on_row(index)

    logger.debug(f"batch {batch_id}: accepted={len(records)} rejected={len(errors)}")
    return IngestionResult(records=tuple(records), errors=tuple(errors))
