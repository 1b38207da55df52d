"""Streaming reader for delimited text files with a header row."""

from __future__ import annotations
import csv
from pathlib import Path
from typing import Iterator, List, Union

from .exceptions import InvalidSeparator, MalformedRowError, SourceFileError


def read_rows(path: Union[str, Path], separator: str = ",") -> Iterator[List[str]]:
    """Yield every record of ``path`` as a list of raw strings, header first.

    Values are never coerced: empty cells stay empty strings. Blank lines are
    skipped. Every record must have as many values as the header.
    """
    if len(separator) != 1:
        raise InvalidSeparator(f"Separator must be a single character, got {separator!r}")
    try:
        f = open(path, 'r', encoding='utf-8', newline='')
    except OSError as e:
        raise SourceFileError(f"Failed to open {path}: {e}") from e

    with f:
        reader = csv.reader(f, delimiter=separator)
        width = None
        row_number = 0
        try:
            for row in reader:
                if not row:
                    continue
                if width is None:
                    width = len(row)
                elif len(row) != width:
                    raise MalformedRowError(row_number, width, len(row))
                yield row
                row_number += 1
        except (csv.Error, UnicodeDecodeError) as e:
            raise SourceFileError(f"CSV error in {path}: {e}") from e


class CsvSource:
    """Re-readable delimited file: each call to ``rows`` starts a fresh pass."""

    def __init__(self, path: Union[str, Path], separator: str = ","):
        self.path = Path(path)
        self.separator = separator

    def header(self) -> List[str]:
        records = read_rows(self.path, self.separator)
        try:
            return next(records)
        except StopIteration:
            raise SourceFileError(f"{self.path} has no header row") from None
        finally:
            records.close()

    def rows(self) -> Iterator[List[str]]:
        """Yield data rows only, in file order."""
        records = read_rows(self.path, self.separator)
        try:
            next(records, None)
            yield from records
        finally:
            records.close()
