from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from ..models.analytics import AnalyticsSummary, BucketingMode, CategoryTotal, TimeBucket
from ..models.student_record import StudentRecord

"""Aggregation of accepted records into an AnalyticsSummary.

Pure function of the record collection. Category breakdowns group on exact
string equality, so "CSE" and "cse" are different keys.
"""

__all__ = [
    "CATEGORY_FIELDS",
    "MONTH_SHARES",
    "UNDATED_BUCKET",
    "aggregate",
]

# summary attribute -> StudentRecord field
CATEGORY_FIELDS: dict[str, str] = {
    "by_course": "course",
    "by_branch": "branch",
    "by_state": "state",
    "by_payment_mode": "payment_mode",
}

# Placeholder split used by BucketingMode.PROPORTIONAL
MONTH_SHARES: tuple[tuple[str, float], ...] = (
    ("Jan", 0.10),
    ("Feb", 0.15),
    ("Mar", 0.20),
    ("Apr", 0.25),
    ("May", 0.20),
    ("Jun", 0.10),
)

UNDATED_BUCKET = "undated"


def _category_totals(frame: pd.DataFrame, column: str) -> list[CategoryTotal]:
    grouped = frame.groupby(column, sort=True).agg(
        amount=("gross_amount", "sum"),
        tax=("calculated_tax", "sum"),
        count=("id", "count"),
    )
    return [
        CategoryTotal(key=str(key), amount=float(row["amount"]), tax=float(row["tax"]), count=int(row["count"]))
        for key, row in grouped.iterrows()
    ]


def _proportional_buckets(total_amount: float, total_tax: float) -> list[TimeBucket]:
    return [
        TimeBucket(label=label, amount=total_amount * share, tax=total_tax * share)
        for label, share in MONTH_SHARES
    ]


def _date_buckets(frame: pd.DataFrame) -> list[TimeBucket]:
    months = frame["date"].str.slice(0, 7).where(frame["date"] != "", UNDATED_BUCKET)
    grouped = frame.assign(month=months).groupby("month", sort=True).agg(
        amount=("gross_amount", "sum"),
        tax=("calculated_tax", "sum"),
    )
    buckets = [
        TimeBucket(label=str(label), amount=float(row["amount"]), tax=float(row["tax"]))
        for label, row in grouped.iterrows()
    ]
    # calendar months first, undated last
    buckets.sort(key=lambda b: (b.label == UNDATED_BUCKET, b.label))
    return buckets


def aggregate(
    records: Sequence[StudentRecord],
    bucketing: BucketingMode = BucketingMode.PROPORTIONAL,
) -> AnalyticsSummary:
    """Build totals and breakdowns for ``records``.

    Args:
        records: Accepted records of the current collection
        bucketing: Time-series policy for ``by_month``

    Returns:
        AnalyticsSummary. For an empty collection every total is 0 and every
        breakdown (including ``by_month``) is empty.
    """
    if not records:
        return AnalyticsSummary(
            total_amount=0.0,
            total_tax=0.0,
            total_students=0,
            avg_tax=0.0,
            bucketing=bucketing,
        )

    frame = pd.DataFrame([r.to_dict() for r in records])
    total_amount = float(frame["gross_amount"].sum())
    total_tax = float(frame["calculated_tax"].sum())
    count = len(frame)

    if bucketing is BucketingMode.DATE:
        by_month = _date_buckets(frame)
    else:
        by_month = _proportional_buckets(total_amount, total_tax)

    breakdowns = {attr: _category_totals(frame, column) for attr, column in CATEGORY_FIELDS.items()}
    return AnalyticsSummary(
        total_amount=total_amount,
        total_tax=total_tax,
        total_students=count,
        avg_tax=total_tax / count,
        by_month=by_month,
        bucketing=bucketing,
        **breakdowns,
    )
