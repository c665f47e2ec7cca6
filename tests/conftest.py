# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("FEETAX_STORAGE_PATH", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """storage_path: ./storage.json
namespace: student-tax-storage
error_log_dir: ./logs
time_bucketing: proportional
settings:
  currency_symbol: "Rs."
  institute_name: Test Institute
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "feetax.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def fee_row(reg_no: str = "R001", amount: Any = 1000, **overrides: Any) -> dict[str, Any]:
    """Raw row in the fee-export layout."""
    row: dict[str, Any] = {
        "Reg No": reg_no,
        "coursecode": "BTECH",
        "branchcode": "CSE",
        "year": 2024,
        "semester": 1,
        "date": "2024-03-15",
        "amount": amount,
        "totalPaid": amount,
        "pmode": "UPI",
    }
    row.update(overrides)
    return row


@pytest.fixture()
def fee_rows() -> list[dict[str, Any]]:
    return [
        fee_row("R001", 1000),
        fee_row("R002", 2000, branchcode="ECE", pmode="CASH"),
        fee_row("R003", 3000, date="2024-04-02"),
    ]


def make_excel(directory: Path, name: str, rows: list[list[object]], sheet: str = "Sheet1") -> Path:
    """Write ``rows`` (header first) as a single-sheet workbook."""
    path = directory / name
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


def rows_to_grid(rows: list[dict[str, Any]]) -> list[list[object]]:
    header = list(rows[0].keys())
    return [header] + [[r.get(h) for h in header] for r in rows]


@pytest.fixture()
def make_fee_row():
    return fee_row


@pytest.fixture()
def excel_factory():
    return make_excel


@pytest.fixture()
def grid():
    return rows_to_grid
