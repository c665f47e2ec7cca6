"""Student fee tax pipeline: spreadsheet rows -> validated, taxed records -> analytics."""

__version__ = "0.1.0"
