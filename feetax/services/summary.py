from __future__ import annotations

from ..models.analytics import AnalyticsSummary, IngestionResult

"""Summary line rendering and display formatting.

Amounts are rounded here, at display time only; the pipeline keeps full
float precision.

Format of the SUMMARY line:
SUMMARY file={name} rows={total} accepted={accepted} rejected={rejected}
total_amount={amount} total_tax={tax} avg_tax={avg}
"""

__all__ = [
    "format_number",
    "format_amount",
    "render_summary_line",
    "render_summary_report",
]


def format_number(value: float) -> str:
    """Render ``value`` with two decimals, or without any when it is whole."""
    rounded = round(value, 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.2f}"


def format_amount(value: float, currency_symbol: str = "") -> str:
    """Human-facing amount with thousands separators, e.g. ``₹1,234.50``."""
    rounded = round(value, 2)
    if rounded == int(rounded):
        body = f"{int(rounded):,}"
    else:
        body = f"{rounded:,.2f}"
    return f"{currency_symbol}{body}"


def render_summary_line(file_name: str, result: IngestionResult, summary: AnalyticsSummary) -> str:
    """Render the SUMMARY line for one upload.

    Examples:
        >>> from feetax.models.analytics import AnalyticsSummary, IngestionResult
        >>> s = AnalyticsSummary(total_amount=6000.0, total_tax=0.0, total_students=3, avg_tax=0.0)
        >>> render_summary_line("fees.xlsx", IngestionResult(records=(), errors=()), s)
        'SUMMARY file=fees.xlsx rows=0 accepted=0 rejected=0 total_amount=6000 total_tax=0 avg_tax=0'
    """
    return (
        f"SUMMARY file={file_name} "
        f"rows={result.total_rows} "
        f"accepted={result.accepted} "
        f"rejected={result.rejected} "
        f"total_amount={format_number(summary.total_amount)} "
        f"total_tax={format_number(summary.total_tax)} "
        f"avg_tax={format_number(summary.avg_tax)}"
    )


def render_summary_report(summary: AnalyticsSummary, currency_symbol: str = "") -> list[str]:
    """Plain-text lines describing ``summary`` for terminal output."""
    lines = [
        f"Total amount: {format_amount(summary.total_amount, currency_symbol)}",
        f"Total tax: {format_amount(summary.total_tax, currency_symbol)}",
        f"Students: {summary.total_students}",
        f"Average tax: {format_amount(summary.avg_tax, currency_symbol)}",
    ]
    sections = (
        ("By course", summary.by_course),
        ("By branch", summary.by_branch),
        ("By state", summary.by_state),
        ("By payment mode", summary.by_payment_mode),
    )
    for title, entries in sections:
        if not entries:
            continue
        lines.append(f"{title}:")
        for entry in entries:
            key = entry.key or "(blank)"
            lines.append(
                f"  {key}: {format_amount(entry.amount, currency_symbol)} "
                f"tax={format_amount(entry.tax, currency_symbol)} count={entry.count}"
            )
    if summary.by_month:
        lines.append(f"By month ({summary.bucketing.value}):")
        for bucket in summary.by_month:
            lines.append(
                f"  {bucket.label}: {format_amount(bucket.amount, currency_symbol)} "
                f"tax={format_amount(bucket.tax, currency_symbol)}"
            )
    return lines
