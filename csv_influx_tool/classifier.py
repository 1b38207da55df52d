"""Assign each header column the timestamp, tag or field role."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Tuple

from .exceptions import (
    DuplicateHeaderName,
    MissingFieldColumn,
    MissingTimestampColumn,
    UnmatchedTagColumn,
)


class ColumnRole(str, Enum):
    """Role of a column in the produced points."""
    TIMESTAMP = "timestamp"
    TAG = "tag"
    FIELD = "field"


@dataclass(frozen=True)
class ColumnRoles:
    """Immutable role assignment for one header."""

    header: Tuple[str, ...]
    roles: Mapping[str, ColumnRole]

    def role(self, column: str) -> ColumnRole:
        return self.roles[column]

    @property
    def timestamp_column(self) -> str:
        return next(c for c in self.header if self.roles[c] is ColumnRole.TIMESTAMP)

    @property
    def tag_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.header if self.roles[c] is ColumnRole.TAG)

    @property
    def field_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.header if self.roles[c] is ColumnRole.FIELD)


def parse_tag_columns(text: str, separator: str = ",") -> Tuple[str, ...]:
    """Split a separator-delimited tag list, dropping blanks."""
    names = (name.strip() for name in text.split(separator))
    return tuple(name for name in names if name)


def classify_columns(
    header: Sequence[str], timestamp_column: str, tag_columns: Iterable[str] = ()
) -> ColumnRoles:
    """Classify header columns, failing on an invalid configuration."""
    header = tuple(header)
    tags = tuple(tag_columns)
    tag_set = set(tags)

    seen = set()
    for name in header:
        if name in seen:
            raise DuplicateHeaderName(name, header)
        seen.add(name)

    roles = {}
    for name in header:
        if name == timestamp_column:
            roles[name] = ColumnRole.TIMESTAMP
        elif name in tag_set:
            roles[name] = ColumnRole.TAG
        else:
            roles[name] = ColumnRole.FIELD

    if ColumnRole.FIELD not in roles.values():
        raise MissingFieldColumn(header)
    if timestamp_column not in roles:
        raise MissingTimestampColumn(timestamp_column, header)
    missing = [t for t in tags if t not in roles]
    if missing:
        raise UnmatchedTagColumn(tags, header, missing)

    return ColumnRoles(header=header, roles=MappingProxyType(roles))
