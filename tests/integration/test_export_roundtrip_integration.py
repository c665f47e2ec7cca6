from __future__ import annotations

from pathlib import Path

import pytest

from feetax.services.store import Store
from feetax.storage.json_storage import JsonFileStorage

"""Export -> re-upload round trip.

An exported file is a valid upload: re-ingesting it yields the same tax
figures for every record.
"""


def _figures(records):
    return [(r.reg_no, r.gross_amount, r.calculated_tax, r.net_amount) for r in records]


@pytest.mark.parametrize("export_name", ["export.xlsx", "export.csv"])
def test_export_reimport_preserves_tax(temp_workdir: Path, excel_factory, grid, make_fee_row, export_name):
    rows = [
        make_fee_row("R001", 500000, **{"Other Income": 1000}),
        make_fee_row("R002", 1000, **{"Other Income": 0}),
        make_fee_row("R003", 2500000, date="2024-04-02", **{"Other Income": None}),
    ]
    source = excel_factory(temp_workdir / "data", "fees.xlsx", grid(rows))

    store = Store(JsonFileStorage(temp_workdir / "storage.json"))
    first = store.upload_file(source)
    assert first.rejected == 0

    exported = store.export(temp_workdir / "out" / export_name)
    assert exported.exists()

    second = Store().upload_file(exported)
    assert second.rejected == 0
    for again, original in zip(_figures(second.records), _figures(first.records), strict=True):
        assert again[0] == original[0]
        assert again[1:] == pytest.approx(original[1:])
    assert [r.date for r in second.records] == [r.date for r in first.records]


def test_export_defaults_to_standard_name(temp_workdir: Path, fee_rows):
    store = Store()
    store.replace_data(fee_rows)
    path = store.export()
    assert path == Path("student_tax_data.xlsx")
    assert (temp_workdir / "student_tax_data.xlsx").exists()
