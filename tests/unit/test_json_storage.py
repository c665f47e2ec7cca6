from __future__ import annotations

import json
from pathlib import Path

import pytest

from feetax.models.app_state import AppSettings
from feetax.services.ingestion import ingest
from feetax.storage.json_storage import JsonFileStorage, StorageError


def test_load_missing_file_returns_none(tmp_path: Path):
    assert JsonFileStorage(tmp_path / "none.json").load() is None


def test_save_and_load(tmp_path: Path, fee_rows):
    storage = JsonFileStorage(tmp_path / "s.json")
    records = ingest(fee_rows).records
    storage.save(records, AppSettings(currency_symbol="$"))
    loaded = storage.load()
    assert loaded.records == records
    assert loaded.settings.currency_symbol == "$"


def test_layout_keyed_by_namespace(tmp_path: Path):
    path = tmp_path / "s.json"
    JsonFileStorage(path, namespace="ns").save([], AppSettings())
    document = json.loads(path.read_text(encoding="utf-8"))
    assert set(document) == {"ns"}
    assert set(document["ns"]) == {"records", "settings"}


def test_namespaces_share_a_file(tmp_path: Path, fee_rows):
    path = tmp_path / "s.json"
    JsonFileStorage(path, namespace="a").save(ingest(fee_rows).records, AppSettings())
    JsonFileStorage(path, namespace="b").save([], AppSettings(home_state="Goa"))
    assert len(JsonFileStorage(path, namespace="a").load().records) == 3
    assert JsonFileStorage(path, namespace="b").load().settings.home_state == "Goa"


def test_clear_removes_namespace(tmp_path: Path):
    storage = JsonFileStorage(tmp_path / "s.json")
    storage.save([], AppSettings())
    storage.clear()
    assert storage.load() is None


def test_corrupt_file(tmp_path: Path):
    path = tmp_path / "s.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonFileStorage(path).load()


def test_unknown_settings_keys_ignored(tmp_path: Path):
    path = tmp_path / "s.json"
    path.write_text(
        json.dumps({"student-tax-storage": {"records": [], "settings": {"theme": "dark", "home_state": "Goa"}}}),
        encoding="utf-8",
    )
    loaded = JsonFileStorage(path).load()
    assert loaded.settings.home_state == "Goa"
