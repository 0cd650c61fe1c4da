"""
Exception hierarchy for riskpulse.

Ingestion errors are raised before any store call and always abort the
whole batch. Gateway errors carry the store's own message verbatim.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class RiskPulseError(Exception):
    """Base class for all riskpulse errors."""


class IngestionError(RiskPulseError):
    """A CSV upload was rejected before reaching the store."""


class MalformedInput(IngestionError):
    """The uploaded content could not be read or split into header + data rows."""


class MissingColumns(IngestionError):
    """The header lacks one or more required columns."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class FieldValueError(IngestionError):
    """A single cell failed its field constraint."""

    def __init__(self, message: str, field: str, row: int, value: Optional[str]) -> None:
        self.field = field
        self.row = row
        self.value = value
        super().__init__(message)


class OutOfRangeValue(FieldValueError):
    """A numeric cell is not a number or falls outside [0, 100]."""

    def __init__(self, field: str, row: int, value: Optional[str]) -> None:
        super().__init__(
            f"Row {row}: '{field}' must be a number between 0 and 100 (got {value!r})",
            field,
            row,
            value,
        )


class InvalidTimestamp(FieldValueError):
    """A timestamp cell does not parse to a valid instant."""

    def __init__(self, field: str, row: int, value: Optional[str]) -> None:
        super().__init__(
            f"Row {row}: '{field}' is not a valid timestamp (got {value!r})",
            field,
            row,
            value,
        )


class BatchValidationError(IngestionError):
    """The first failing cell of every invalid row in a batch, in row order."""

    def __init__(self, errors: Sequence[FieldValueError]) -> None:
        self.errors: List[FieldValueError] = list(errors)
        lines = "; ".join(str(err) for err in self.errors)
        super().__init__(f"{len(self.errors)} invalid value(s): {lines}")


class GatewayError(RiskPulseError):
    """Failure at the persistence boundary."""


class ConnectivityError(GatewayError):
    """The store could not be reached while reading."""


class PersistenceFailure(GatewayError):
    """The store rejected a write or failed while performing it."""


__all__ = [
    "RiskPulseError",
    "IngestionError",
    "MalformedInput",
    "MissingColumns",
    "FieldValueError",
    "OutOfRangeValue",
    "InvalidTimestamp",
    "BatchValidationError",
    "GatewayError",
    "ConnectivityError",
    "PersistenceFailure",
]
