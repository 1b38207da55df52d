"""Error taxonomy for the CSV to InfluxDB loader."""

from __future__ import annotations
from typing import Sequence


class CsvInfluxError(Exception):
    """Base exception for the loader."""


class ConfigurationError(CsvInfluxError):
    """Fatal error detected before or during the inference pass."""


class InvalidSeparator(ConfigurationError):
    """Raised when the separator is not exactly one character."""


class SourceFileError(ConfigurationError):
    """Raised when the input file cannot be opened or parsed."""


class MalformedRowError(ConfigurationError):
    """Raised when a row does not have one value per header column."""

    def __init__(self, row_number: int, expected: int, found: int):
        super().__init__(
            f"Row {row_number}: expected {expected} values, found {found}"
        )
        self.row_number = row_number
        self.expected = expected
        self.found = found


class DuplicateHeaderName(ConfigurationError):
    """Raised when a column name appears more than once in the header."""

    def __init__(self, name: str, header: Sequence[str]):
        super().__init__(
            f"Header name '{name}' appears more than once ({','.join(header)})"
        )
        self.name = name
        self.header = list(header)


class MissingFieldColumn(ConfigurationError):
    """Raised when every column is either the timestamp or a tag."""

    def __init__(self, header: Sequence[str]):
        super().__init__(
            f"You must have at least one field (non-tag) column ({','.join(header)})"
        )
        self.header = list(header)


class MissingTimestampColumn(ConfigurationError):
    """Raised when the timestamp column is not in the header."""

    def __init__(self, column: str, header: Sequence[str]):
        super().__init__(
            f"Timestamp column ({column}) does not match any header ({','.join(header)})"
        )
        self.column = column
        self.header = list(header)


class UnmatchedTagColumn(ConfigurationError):
    """Raised when a configured tag column is not in the header."""

    def __init__(self, tag_columns: Sequence[str], header: Sequence[str], missing: Sequence[str]):
        super().__init__(
            f"Tag names ({','.join(tag_columns)}) do not all have matching headers "
            f"({','.join(header)}); missing: {','.join(missing)}"
        )
        self.tag_columns = list(tag_columns)
        self.header = list(header)
        self.missing = list(missing)


class UnresolvedColumnType(ConfigurationError):
    """Raised when a field column has no kind after the inference window."""

    def __init__(self, column: str, sample_rows: int):
        super().__init__(
            f"No type found in the first {sample_rows} rows for column: {column}"
        )
        self.column = column
        self.sample_rows = sample_rows


class TimestampFormatError(ConfigurationError):
    """Raised when the timestamp format cannot be turned into a pattern."""


class DatabaseNotFound(ConfigurationError):
    """Raised when the database is missing and auto-creation is disabled."""


class BackendError(ConfigurationError):
    """Raised when the database cannot be checked or created on the server."""
