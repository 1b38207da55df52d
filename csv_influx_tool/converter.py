"""Convert raw rows into time-series points using a frozen schema."""

from __future__ import annotations
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Union

from .classifier import ColumnRole
from .schema_inference import ColumnKind, ColumnSchema, KindPatterns

logger = logging.getLogger(__name__)

FieldValue = Union[int, float, bool, str, datetime]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


@dataclass(frozen=True)
class DataPoint:
    """One time-series observation."""

    measurement: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    time: Optional[datetime] = None


class RowConverter:
    """Turn data rows into ``DataPoint`` objects.

    Any non-tag value shaped like a timestamp is parsed as one, whatever the
    column's inferred kind. Blank cells in numeric columns become zero;
    non-numeric values there, and unmatched boolean values, stay raw strings.
    """

    def __init__(self, schema: ColumnSchema, patterns: KindPatterns, measurement: str):
        self.schema = schema
        self.patterns = patterns
        self.measurement = measurement
        self._columns = [(name, schema.roles.role(name)) for name in schema.header]

    def parse_timestamp(self, text: str) -> datetime:
        parsed = datetime.strptime(text, self.patterns.timestamp_format)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def convert(self, row: Sequence[str], row_number: int) -> Optional[DataPoint]:
        """Build the point for ``row``; returns None when nothing can be stored."""
        tags: Dict[str, str] = {}
        fields: Dict[str, FieldValue] = {}
        ts: Optional[datetime] = None

        for (name, role), text in zip(self._columns, row):
            if role is ColumnRole.TAG:
                tags[name] = text
                continue
            if self.patterns.is_timestamp(text):
                try:
                    parsed = self.parse_timestamp(text)
                except ValueError as e:
                    logger.warning("#%d: %s: Invalid time: %s", row_number, name, e)
                    continue
                if role is ColumnRole.TIMESTAMP:
                    ts = parsed
                else:
                    fields[name] = parsed
                continue
            if role is ColumnRole.TIMESTAMP:
                logger.warning("#%d: %s: %r does not match %s, stored as a field",
                               row_number, name, text, self.patterns.timestamp_format)
                fields[name] = text
                continue
            fields[name] = self.parse_field(name, text, row_number)

        if not fields:
            logger.warning("#%d: row has no field values, skipped", row_number)
            return None
        return DataPoint(measurement=self.measurement, tags=tags, fields=fields, time=ts)

    def parse_field(self, name: str, text: str, row_number: int) -> FieldValue:
        kind = self.schema.kind(name)
        patterns = self.patterns
        if kind is ColumnKind.INTEGER:
            return self._parse_integer(name, text, row_number)
        if kind is ColumnKind.FLOAT:
            return self._parse_float(name, text, row_number)
        if kind is ColumnKind.BOOLEAN:
            if patterns.true.fullmatch(text):
                return True
            if patterns.false.fullmatch(text):
                return False
        return text

    def _parse_integer(self, name: str, text: str, row_number: int) -> Union[int, str]:
        if not text.strip():
            return 0
        if not NUMBER.fullmatch(text):
            return text
        try:
            value = int(text)
        except ValueError:
            number = float(text)
            if not number.is_integer():
                logger.warning("#%d: %s: %r is not an integer, stored as 0",
                               row_number, name, text)
                return 0
            value = int(number)
        if not INT64_MIN <= value <= INT64_MAX:
            logger.warning("#%d: %s: integer %s out of range, stored as 0",
                           row_number, name, text)
            return 0
        return value

    def _parse_float(self, name: str, text: str, row_number: int) -> Union[float, str]:
        if not text.strip():
            return 0.0
        if not NUMBER.fullmatch(text):
            return text
        value = float(text)
        if not math.isfinite(value):
            logger.warning("#%d: %s: float %s out of range, stored as 0",
                           row_number, name, text)
            return 0.0
        return value
