"""
Schema-driven validation of parsed CSV rows.

Structural checks run first and report every missing column. Cell checks
follow the FieldSpec of each column; the first failure aborts the batch in
``first_error`` mode, while ``collect_all`` gathers every failure and raises
them together. Either way no row is returned from a failing batch.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from pydantic import TypeAdapter, ValidationError

from riskpulse.config import ValidationMode
from riskpulse.domain.schemas import PERCENT_MAX, PERCENT_MIN, FieldKind, UploadSchema
from riskpulse.errors import (
    BatchValidationError,
    FieldValueError,
    InvalidTimestamp,
    MissingColumns,
    OutOfRangeValue,
)
from riskpulse.ingest.parser import Row, normalize_header

_DATETIME = TypeAdapter(datetime)

# ASCII decimal with optional exponent; no digit separators or non-ASCII digits.
_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

RowValues = Dict[str, Any]


def locate_columns(header: Row, schema: UploadSchema) -> Dict[str, int]:
    """
    Map each schema field to its position in the header.

    Raises
    ------
    MissingColumns
        Naming every required field absent from the header.
    """
    positions: Dict[str, int] = {}
    for index, name in enumerate(normalize_header(header)):
        # first occurrence wins for duplicated headers
        positions.setdefault(name, index)

    missing = [name for name in schema.required_fields if name not in positions]
    if missing:
        raise MissingColumns(missing)
    return {name: positions[name] for name in schema.fields if name in positions}


def parse_percentage(field: str, row: int, raw: str) -> float:
    if not _NUMBER.fullmatch(raw.strip()):
        raise OutOfRangeValue(field, row, raw)
    value = float(raw)
    if not math.isfinite(value) or not PERCENT_MIN <= value <= PERCENT_MAX:
        raise OutOfRangeValue(field, row, raw)
    return value


def parse_timestamp(field: str, row: int, raw: str) -> datetime:
    """Parse an instant; naive values are taken as UTC."""
    # bare numbers would otherwise be read as Unix epoch seconds
    if not raw or _NUMBER.fullmatch(raw.strip()):
        raise InvalidTimestamp(field, row, raw)
    try:
        value = _DATETIME.validate_python(raw)
    except ValidationError:
        raise InvalidTimestamp(field, row, raw) from None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def validate_row(
    cells: Row, positions: Dict[str, int], schema: UploadSchema, row: int
) -> RowValues:
    """Convert one data row into typed values keyed by field name."""
    values: RowValues = {}
    for name, spec in schema.fields.items():
        if name not in positions:
            continue
        index = positions[name]
        raw = cells[index] if index < len(cells) else ""
        if spec.kind is FieldKind.TIMESTAMP:
            values[name] = parse_timestamp(name, row, raw)
        elif spec.kind is FieldKind.PERCENTAGE:
            values[name] = parse_percentage(name, row, raw)
        else:
            values[name] = raw
    return values


def validate_rows(
    header: Row,
    data_rows: Sequence[Row],
    schema: UploadSchema,
    mode: ValidationMode = "first_error",
) -> List[RowValues]:
    """
    Validate a whole batch and return typed values for every row.

    Rows are numbered from 1 starting at the first data row.
    """
    positions = locate_columns(header, schema)

    validated: List[RowValues] = []
    failures: List[FieldValueError] = []
    for row_number, cells in enumerate(data_rows, start=1):
        try:
            validated.append(validate_row(cells, positions, schema, row_number))
        except FieldValueError as exc:
            if mode == "first_error":
                raise
            failures.append(exc)

    if failures:
        raise BatchValidationError(failures)
    return validated


__all__ = [
    "RowValues",
    "locate_columns",
    "parse_percentage",
    "parse_timestamp",
    "validate_row",
    "validate_rows",
]
