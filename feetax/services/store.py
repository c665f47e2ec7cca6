from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from ..config.loader import SettingsError, validate_settings_update
from ..excel.reader import read_rows
from ..excel.writer import DEFAULT_EXPORT_NAME, write_records
from ..logging.error_log import ErrorLogBuffer
from ..models.analytics import AnalyticsSummary, BucketingMode, IngestionResult
from ..models.app_state import SETTING_FIELDS, AppSettings, AppState
from ..models.error_record import ErrorRecord
from ..models.student_record import StudentRecord
from ..models.tax_slab import DEFAULT_TAX_SLABS, TaxSlab
from ..storage.json_storage import JsonFileStorage
from .aggregator import aggregate
from .ingestion import ingest

"""Application state store.

State transitions are expressed as actions applied by the pure ``reduce``
function; ``Store`` owns the current AppState, serializes ingestion,
persists records/settings and notifies subscribers after every transition.

A decode failure during upload propagates to the caller and leaves records
and summary untouched.
"""

__all__ = [
    "IngestionBusyError",
    "UploadStarted",
    "UploadFinished",
    "DataReplaced",
    "SettingsUpdated",
    "DataCleared",
    "AnalyticsToggled",
    "SettingsToggled",
    "ProcessingStarted",
    "AnalyticsRecomputed",
    "reduce",
    "Store",
]

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


class IngestionBusyError(RuntimeError):
    """Raised when an ingestion is requested while another is in flight."""


# Actions


@dataclass(frozen=True)
class UploadStarted:
    pass


@dataclass(frozen=True)
class UploadFinished:
    pass


@dataclass(frozen=True)
class DataReplaced:
    records: tuple[StudentRecord, ...]
    summary: AnalyticsSummary


@dataclass(frozen=True)
class SettingsUpdated:
    changes: dict[str, Any]


@dataclass(frozen=True)
class DataCleared:
    pass


@dataclass(frozen=True)
class AnalyticsToggled:
    pass


@dataclass(frozen=True)
class SettingsToggled:
    pass


@dataclass(frozen=True)
class ProcessingStarted:
    pass


@dataclass(frozen=True)
class AnalyticsRecomputed:
    summary: AnalyticsSummary


Action = (
    UploadStarted
    | UploadFinished
    | DataReplaced
    | SettingsUpdated
    | DataCleared
    | AnalyticsToggled
    | SettingsToggled
    | ProcessingStarted
    | AnalyticsRecomputed
)


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state after ``action``; ``state`` itself is never modified."""
    if isinstance(action, UploadStarted):
        return replace(state, is_uploading=True)
    if isinstance(action, UploadFinished):
        return replace(state, is_uploading=False)
    if isinstance(action, DataReplaced):
        return replace(state, records=action.records, summary=action.summary)
    if isinstance(action, SettingsUpdated):
        return replace(state, settings=replace(state.settings, **action.changes))
    if isinstance(action, DataCleared):
        return replace(state, records=(), summary=None)
    if isinstance(action, AnalyticsToggled):
        return replace(state, show_analytics=not state.show_analytics)
    if isinstance(action, SettingsToggled):
        return replace(state, show_settings=not state.show_settings)
    if isinstance(action, ProcessingStarted):
        return replace(state, is_processing=True)
    if isinstance(action, AnalyticsRecomputed):
        return replace(state, summary=action.summary, is_processing=False)
    raise TypeError(f"unknown action: {action!r}")


class Store:
    """Owner of the current AppState.

    Args:
        storage: Where records/settings persist (None keeps everything in memory)
        bucketing: Time-series policy passed to the aggregator
        slabs: Tax slab table used for every ingestion
        settings: Initial settings when storage holds none
    """

    def __init__(
        self,
        storage: JsonFileStorage | None = None,
        *,
        bucketing: BucketingMode = BucketingMode.PROPORTIONAL,
        slabs: Sequence[TaxSlab] = DEFAULT_TAX_SLABS,
        settings: AppSettings | None = None,
    ) -> None:
        self.storage = storage
        self.bucketing = bucketing
        self.slabs = slabs
        self._ingest_lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._state = self._hydrate(settings or AppSettings())

    def _hydrate(self, default_settings: AppSettings) -> AppState:
        if self.storage is None:
            return AppState(settings=default_settings)
        persisted = self.storage.load()
        if persisted is None:
            return AppState(settings=default_settings)
        summary = aggregate(persisted.records, self.bucketing) if persisted.records else None
        logger.debug(f"hydrated {len(persisted.records)} records from {self.storage.path}")
        return AppState(records=persisted.records, summary=summary, settings=persisted.settings)

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AppState:
        """Apply ``action``, persist if records/settings changed, notify listeners."""
        previous = self._state
        new_state = reduce(previous, action)
        if self.storage is not None and (
            new_state.records is not previous.records or new_state.settings is not previous.settings
        ):
            # persist first: a storage failure leaves the current state in place
            self.storage.save(new_state.records, new_state.settings)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def _ingest(
        self,
        rows: Iterable[Any],
        on_row: Callable[[int], None] | None,
    ) -> IngestionResult:
        result = ingest(rows, self.slabs, on_row=on_row)
        summary = aggregate(result.records, self.bucketing)
        self.dispatch(DataReplaced(records=result.records, summary=summary))
        if result.errors:
            logger.debug(f"{result.rejected} rows had validation errors")
        return result

    def replace_data(
        self,
        raw_rows: Iterable[Any],
        *,
        on_row: Callable[[int], None] | None = None,
    ) -> IngestionResult:
        """Ingest ``raw_rows`` and replace records and summary in one step.

        Raises:
            IngestionBusyError: another ingestion is still running
        """
        if not self._ingest_lock.acquire(blocking=False):
            raise IngestionBusyError("an ingestion is already in progress")
        try:
            return self._ingest(raw_rows, on_row)
        finally:
            self._ingest_lock.release()

    def upload_file(
        self,
        path: Path,
        *,
        sheet: str | None = None,
        error_log: ErrorLogBuffer | None = None,
        on_rows_read: Callable[[int], Callable[[int], None] | None] | None = None,
    ) -> IngestionResult:
        """Decode ``path`` and replace the current data with its rows.

        Args:
            path: Spreadsheet or CSV file
            sheet: Sheet name (None -> first sheet)
            error_log: Buffer receiving one ErrorRecord per rejected row
            on_rows_read: Called with the decoded row count; may return a
                per-row progress callback

        Raises:
            SourceDecodeError: the file could not be decoded (state unchanged)
            IngestionBusyError: another ingestion is still running
        """
        if not self._ingest_lock.acquire(blocking=False):
            raise IngestionBusyError("an ingestion is already in progress")
        try:
            self.dispatch(UploadStarted())
            try:
                rows = read_rows(path, sheet)
                on_row = on_rows_read(len(rows)) if on_rows_read is not None else None
                result = self._ingest(rows, on_row)
            finally:
                self.dispatch(UploadFinished())
        finally:
            self._ingest_lock.release()

        if error_log is not None:
            for error in result.errors:
                error_log.append(ErrorRecord.from_row_error(path.name, error))
        return result

    def update_settings(self, **changes: Any) -> AppSettings:
        """Merge ``changes`` into the settings; records are left as they are.

        Raises:
            SettingsError: unknown key or value of the wrong type
        """
        unknown = set(changes) - SETTING_FIELDS
        if unknown:
            raise SettingsError(f"unknown settings: {sorted(unknown)}")
        validate_settings_update(changes)
        return self.dispatch(SettingsUpdated(changes=dict(changes))).settings

    def reset_settings(self) -> AppSettings:
        """Restore every setting to its default; records are left as they are."""
        return self.dispatch(SettingsUpdated(changes=AppSettings().to_dict())).settings

    def clear(self) -> None:
        self.dispatch(DataCleared())

    def process_data(self) -> AnalyticsSummary:
        """Recompute the summary from the current records."""
        self.dispatch(ProcessingStarted())
        summary = aggregate(self._state.records, self.bucketing)
        self.dispatch(AnalyticsRecomputed(summary=summary))
        return summary

    def toggle_analytics(self) -> None:
        self.dispatch(AnalyticsToggled())

    def toggle_settings(self) -> None:
        self.dispatch(SettingsToggled())

    def export(self, path: Path | None = None) -> Path:
        """Write current records to ``path`` (default student_tax_data.xlsx)."""
        return write_records(self._state.records, path or Path(DEFAULT_EXPORT_NAME))
