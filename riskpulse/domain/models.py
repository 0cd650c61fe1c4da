"""
Domain models for riskpulse.

Record shapes aligned with `riskpulse/schema.sql`. Persisted records carry the
store-assigned `id`, `created_at` and owner; the `New*` models are the
validated payloads the ingestion pipeline hands to a gateway.
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Type, Union
from uuid import UUID

from pydantic import BaseModel, Field

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


class RecordKind(str, enum.Enum):
    """The three upload feeds and their backing tables."""

    RISK = "risk"
    PREDICTION = "prediction"
    EMPLOYEE = "employee"

    @property
    def table(self) -> str:
        return f"{self.value}_data"


class NewRiskSample(BaseModel):
    """A validated risk/prediction row, not yet stored."""

    timestamp: datetime
    financial_risk: float = Field(..., ge=0, le=100)
    cyber_risk: float = Field(..., ge=0, le=100)
    reputation_risk: float = Field(..., ge=0, le=100)

    model_config = _FROZEN


class NewEmployeeSample(BaseModel):
    """A validated employee row with its derived resignation risk."""

    timestamp: datetime
    workload: float = Field(..., ge=0, le=100)
    satisfaction: float = Field(..., ge=0, le=100)
    resignation_risk: int = Field(..., ge=0, le=100)
    department: str

    model_config = _FROZEN


class RiskSample(NewRiskSample):
    """
    Representation of a single row in the `risk_data` or `prediction_data` table.
    """

    id: UUID = Field(..., description="Store-assigned identifier.")
    created_at: datetime = Field(..., description="Row creation timestamp.")
    owner: str = Field(..., alias="user_id", description="Identifier of the uploading user.")


class EmployeeSample(NewEmployeeSample):
    """
    Representation of a single row in the `employee_data` table.
    """

    id: UUID = Field(..., description="Store-assigned identifier.")
    created_at: datetime = Field(..., description="Row creation timestamp.")
    owner: str = Field(..., alias="user_id", description="Identifier of the uploading user.")


# Prediction feeds share the risk table layout.
PredictionSample = RiskSample

NewRecord = Union[NewRiskSample, NewEmployeeSample]
StoredRecord = Union[RiskSample, EmployeeSample]


def stored_model(kind: RecordKind) -> Type[StoredRecord]:
    """Model class used for rows read back from `kind`'s table."""
    return EmployeeSample if kind is RecordKind.EMPLOYEE else RiskSample


__all__ = [
    "RecordKind",
    "NewRiskSample",
    "NewEmployeeSample",
    "RiskSample",
    "PredictionSample",
    "EmployeeSample",
    "NewRecord",
    "StoredRecord",
    "stored_model",
]
