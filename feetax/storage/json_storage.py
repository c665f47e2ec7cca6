from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..models.app_state import AppSettings
from ..models.student_record import StudentRecord

"""Durable key-value storage for records and settings.

Layout (one JSON document, several namespaces may share a file)::

    {"student-tax-storage": {"records": [...], "settings": {...}}}

Only records and settings are stored; UI flags and the summary are not
(the summary is recomputed from records on load).
"""

__all__ = [
    "PersistedState",
    "StorageError",
    "JsonFileStorage",
]


class StorageError(Exception):
    """Raised when persisted state cannot be read or written."""


@dataclass(frozen=True)
class PersistedState:
    records: tuple[StudentRecord, ...]
    settings: AppSettings


class JsonFileStorage:
    """JSON file store keyed by an application namespace."""

    def __init__(self, path: Path | str, namespace: str = "student-tax-storage") -> None:
        self.path = Path(path)
        self.namespace = namespace

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"cannot read storage {self.path}: {e}") from e
        if not isinstance(document, dict):
            raise StorageError(f"storage root must be an object: {self.path}")
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # write-then-rename so readers never see a half-written file
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"cannot write storage {self.path}: {e}") from e

    def load(self) -> PersistedState | None:
        """Return the stored state for this namespace, or None if absent."""
        entry = self._read_document().get(self.namespace)
        if entry is None:
            return None
        try:
            records = tuple(StudentRecord.from_dict(r) for r in entry.get("records", []))
            settings = AppSettings.from_dict(entry.get("settings") or {})
        except (AttributeError, TypeError) as e:
            raise StorageError(f"malformed state under '{self.namespace}': {e}") from e
        return PersistedState(records=records, settings=settings)

    def save(self, records: Sequence[StudentRecord], settings: AppSettings) -> None:
        document = self._read_document()
        document[self.namespace] = {
            "records": [r.to_dict() for r in records],
            "settings": settings.to_dict(),
        }
        self._write_document(document)

    def clear(self) -> None:
        document = self._read_document()
        if document.pop(self.namespace, None) is not None:
            self._write_document(document)
