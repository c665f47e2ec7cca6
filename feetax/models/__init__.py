"""Domain models for the student fee / tax pipeline.

This package contains the domain model classes shared by the pipeline
services, the spreadsheet reader/writer, storage and the CLI.
"""

from .analytics import AnalyticsSummary, BucketingMode, CategoryTotal, IngestionResult, TimeBucket
from .app_state import AppSettings, AppState
from .error_record import ErrorRecord, RowValidationError
from .student_record import StudentRecord
from .tax_slab import DEFAULT_TAX_SLABS, TaxSlab

__all__ = [
    # Tax table
    "DEFAULT_TAX_SLABS",
    "TaxSlab",
    # Records and errors
    "StudentRecord",
    "RowValidationError",
    "ErrorRecord",
    # Results
    "AnalyticsSummary",
    "BucketingMode",
    "CategoryTotal",
    "IngestionResult",
    "TimeBucket",
    # State
    "AppSettings",
    "AppState",
]
