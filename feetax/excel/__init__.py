from .reader import SourceDecodeError, read_rows
from .writer import records_to_rows, write_records

__all__ = [
    "SourceDecodeError",
    "read_rows",
    "records_to_rows",
    "write_records",
]
