from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader: file -> raw rows.

The first row of the sheet is the header; every following non-blank row
becomes a ``{column label: cell value}`` dict. Blank cells are None.
Parsing problems of any kind surface as SourceDecodeError so the caller can
abort the upload without touching current data.
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SourceDecodeError",
    "read_frame",
    "rows_from_frame",
    "read_rows",
]

SUPPORTED_SUFFIXES = frozenset({".xlsx", ".xlsm", ".csv"})


class SourceDecodeError(Exception):
    """Raised when the source could not be turned into rows at all."""


def read_frame(path: Path, sheet: str | None = None) -> pd.DataFrame:
    """Read one sheet without header interpretation.

    Parameters
    ----------
    path: spreadsheet or CSV path
    sheet: sheet name (None -> first sheet; ignored for CSV)
    """
    if not path.exists():
        raise SourceDecodeError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SourceDecodeError(f"unsupported file type '{suffix}': {path.name}")
    try:
        if suffix == ".csv":
            return pd.read_csv(path, header=None, dtype=object, skip_blank_lines=True)
        xls = pd.ExcelFile(path)
        if sheet is not None and sheet not in xls.sheet_names:
            raise SourceDecodeError(f"sheet '{sheet}' not found in {path.name}")
        target = sheet if sheet is not None else xls.sheet_names[0]
        return xls.parse(target, header=None)
    except SourceDecodeError:
        raise
    except pd.errors.EmptyDataError as e:
        raise SourceDecodeError(f"{path.name} is empty") from e
    except Exception as e:
        raise SourceDecodeError(f"failed to read {path.name}: {e}") from e


def rows_from_frame(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Apply the first row as header and return data rows.

    Unlabelled header cells are named ``__EMPTY_<n>``. Rows where every cell
    is blank are dropped.
    """
    if df.shape[0] == 0:
        return []
    columns: list[str] = []
    for idx, c in enumerate(df.iloc[0].tolist()):
        columns.append(f"__EMPTY_{idx}" if pd.isna(c) else str(c).strip())
    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[1:].iterrows():
        if raw.isna().all():
            continue
        row: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            row[col] = None if pd.isna(val) else val
        rows.append(row)
    return rows


def read_rows(path: Path, sheet: str | None = None) -> list[dict[str, Any]]:
    """Decode ``path`` into raw rows (header row excluded)."""
    return rows_from_frame(read_frame(path, sheet))
