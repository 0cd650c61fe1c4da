"""
Declarative upload schemas, one per record kind.

Each schema maps a CSV column name to a FieldSpec describing how the cell is
checked. The validator walks these specs, so a new column or a new feed only
needs an entry here.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from riskpulse.domain.models import RecordKind

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0


class FieldKind(enum.Enum):
    TIMESTAMP = "timestamp"
    PERCENTAGE = "percentage"
    TEXT = "text"


@dataclass(frozen=True)
class FieldSpec:
    kind: FieldKind
    required: bool = True


@dataclass(frozen=True)
class UploadSchema:
    """
    Column contract for one upload feed.

    Attributes
    ----------
    kind : RecordKind
        Feed this schema validates.
    fields : Mapping[str, FieldSpec]
        Columns read from the file, in declaration order.
    ignored : tuple[str, ...]
        Columns that are never read even when present (derived server-side).
    """

    kind: RecordKind
    fields: Mapping[str, FieldSpec]
    ignored: Tuple[str, ...] = field(default=())

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.required)


_RISK_FIELDS: Dict[str, FieldSpec] = {
    "timestamp": FieldSpec(FieldKind.TIMESTAMP),
    "financial_risk": FieldSpec(FieldKind.PERCENTAGE),
    "cyber_risk": FieldSpec(FieldKind.PERCENTAGE),
    "reputation_risk": FieldSpec(FieldKind.PERCENTAGE),
}

SCHEMAS: Dict[RecordKind, UploadSchema] = {
    RecordKind.RISK: UploadSchema(RecordKind.RISK, _RISK_FIELDS),
    RecordKind.PREDICTION: UploadSchema(RecordKind.PREDICTION, _RISK_FIELDS),
    RecordKind.EMPLOYEE: UploadSchema(
        RecordKind.EMPLOYEE,
        {
            "timestamp": FieldSpec(FieldKind.TIMESTAMP),
            "workload": FieldSpec(FieldKind.PERCENTAGE),
            "satisfaction": FieldSpec(FieldKind.PERCENTAGE),
            "department": FieldSpec(FieldKind.TEXT),
        },
        ignored=("resignation_risk",),
    ),
}


def schema_for(kind: RecordKind | str) -> UploadSchema:
    """Look up the upload schema for a feed name or RecordKind."""
    return SCHEMAS[RecordKind(kind)]


__all__ = [
    "PERCENT_MIN",
    "PERCENT_MAX",
    "FieldKind",
    "FieldSpec",
    "UploadSchema",
    "SCHEMAS",
    "schema_for",
]
