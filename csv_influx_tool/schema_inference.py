"""Sample-based kind inference for field columns."""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import yaml
from tabulate import tabulate

from .classifier import ColumnRole, ColumnRoles
from .exceptions import TimestampFormatError, UnresolvedColumnType

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_ROWS = 100

# Number of digits each supported strftime directive renders to.
_DIRECTIVE_DIGITS = {
    "Y": 4,
    "y": 2,
    "m": 2,
    "d": 2,
    "H": 2,
    "I": 2,
    "M": 2,
    "S": 2,
    "j": 3,
    "f": 6,
}

TRUE_LITERALS = ("true", "T", "True", "TRUE")
FALSE_LITERALS = ("false", "F", "False", "FALSE")


class ColumnKind(str, Enum):
    """Value kind frozen for a field column."""
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"


def timestamp_pattern(fmt: str) -> re.Pattern:
    """Build the digit-shape regex matched by values rendered with ``fmt``."""
    parts = []
    i = 0
    while i < len(fmt):
        ch = fmt[i]
        if ch != "%":
            parts.append(re.escape(ch))
            i += 1
            continue
        if i + 1 >= len(fmt):
            raise TimestampFormatError(f"Timestamp format {fmt!r} ends with a bare '%'")
        directive = fmt[i + 1]
        if directive == "%":
            parts.append("%")
        elif directive in _DIRECTIVE_DIGITS:
            parts.append(r"\d{%d}" % _DIRECTIVE_DIGITS[directive])
        else:
            raise TimestampFormatError(
                f"Unsupported directive %{directive} in timestamp format {fmt!r}"
            )
        i += 2
    return re.compile("".join(parts), re.ASCII)


class KindPatterns:
    """Ordered value patterns used both by inference and conversion."""

    # matched with fullmatch
    integer = re.compile(r"\d+", re.ASCII)
    decimal = re.compile(r"\d+\.\d+", re.ASCII)
    true = re.compile("|".join(TRUE_LITERALS))
    false = re.compile("|".join(FALSE_LITERALS))

    def __init__(self, timestamp_format: str):
        self.timestamp_format = timestamp_format
        self.timestamp = timestamp_pattern(timestamp_format)

    def is_timestamp(self, text: str) -> bool:
        return self.timestamp.fullmatch(text) is not None


def classify_value(text: str, patterns: KindPatterns) -> Optional[ColumnKind]:
    """Return the kind a raw value proves, or None when it proves nothing.

    Timestamp-shaped values are treated as undecided even when all digits.
    """
    if patterns.is_timestamp(text):
        return None
    if patterns.integer.fullmatch(text):
        return ColumnKind.INTEGER
    if patterns.decimal.fullmatch(text):
        return ColumnKind.FLOAT
    if patterns.true.fullmatch(text) or patterns.false.fullmatch(text):
        return ColumnKind.BOOLEAN
    return None


@dataclass(frozen=True)
class ColumnSchema:
    """Roles for every column plus the frozen kind of every field column."""

    roles: ColumnRoles
    kinds: Mapping[str, ColumnKind]

    @property
    def header(self):
        return self.roles.header

    def kind(self, column: str) -> ColumnKind:
        return self.kinds[column]


def infer_column_kinds(
    rows: Iterable[Sequence[str]],
    roles: ColumnRoles,
    patterns: KindPatterns,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
) -> ColumnSchema:
    """Scan at most ``sample_rows`` data rows and freeze a kind per field column."""
    fields = roles.field_columns
    positions = [(roles.header.index(name), name) for name in fields]
    kinds: Dict[str, ColumnKind] = {}
    unresolved = len(fields)
    scanned = 0

    for row in rows:
        if unresolved == 0 or scanned >= sample_rows:
            break
        scanned += 1
        for pos, name in positions:
            if name in kinds:
                continue
            kind = classify_value(row[pos], patterns)
            if kind is not None:
                kinds[name] = kind
                unresolved -= 1

    logger.debug("Inferred kinds from %d sample rows", scanned)
    for name in fields:
        if name not in kinds:
            raise UnresolvedColumnType(name, sample_rows)
    return ColumnSchema(roles=roles, kinds=MappingProxyType(dict(kinds)))


def schema_rows(schema: ColumnSchema) -> List[Dict[str, str]]:
    """Flatten a schema to one ``{name, role, kind}`` dict per column."""
    rows = []
    for name in schema.header:
        role = schema.roles.role(name)
        if role is ColumnRole.FIELD:
            kind = schema.kind(name).value
        elif role is ColumnRole.TAG:
            kind = ColumnKind.STRING.value
        else:
            kind = "time"
        rows.append({"name": name, "role": role.value, "kind": kind})
    return rows


def describe_schema(schema: ColumnSchema) -> str:
    """Render the schema as a grid table for the run log."""
    rows = schema_rows(schema)
    return tabulate(
        [[r["name"], r["role"], r["kind"]] for r in rows],
        headers=["column", "role", "kind"],
        tablefmt="grid",
    )


def export_schema_yaml(measurement: str, schema: ColumnSchema, output_dir: str) -> Path:
    """Write the inferred schema to ``<measurement>_schema.yaml``."""
    path = Path(output_dir) / f"{measurement.lower()}_schema.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump({"measurement": measurement, "columns": schema_rows(schema)}, f,
                       sort_keys=False)
    return path
