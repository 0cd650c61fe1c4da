"""
Domain package for riskpulse.

Exports the record models and the declarative upload schemas. Keep this
package focused on data definitions; parsing and I/O live elsewhere.
"""

from riskpulse.domain.models import (
    EmployeeSample,
    NewEmployeeSample,
    NewRiskSample,
    PredictionSample,
    RecordKind,
    RiskSample,
    stored_model,
)
from riskpulse.domain.schemas import SCHEMAS, FieldKind, FieldSpec, UploadSchema, schema_for

__all__ = [
    "EmployeeSample",
    "NewEmployeeSample",
    "NewRiskSample",
    "PredictionSample",
    "RecordKind",
    "RiskSample",
    "stored_model",
    "SCHEMAS",
    "FieldKind",
    "FieldSpec",
    "UploadSchema",
    "schema_for",
]
