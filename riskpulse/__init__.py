"""
riskpulse - organizational risk metrics ingestion and dashboard feeds.

This package validates CSV uploads of three record kinds and stores them in
a hosted PostgreSQL database:

- Risk samples (financial, cyber and reputation risk)
- Prediction samples (same shape as risk samples, separate table)
- Employee samples (workload and satisfaction, with a derived resignation risk)

Uploads are all-or-nothing: a single bad cell rejects the whole file before
the store is touched. Dashboard views read ordered snapshots through the
same gateway and refresh on change.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from riskpulse.config import Settings, get_settings
from riskpulse.domain.models import (
    EmployeeSample,
    PredictionSample,
    RecordKind,
    RiskSample,
)
from riskpulse.errors import (
    BatchValidationError,
    ConnectivityError,
    InvalidTimestamp,
    MalformedInput,
    MissingColumns,
    OutOfRangeValue,
    PersistenceFailure,
    RiskPulseError,
)
from riskpulse.infrastructure.gateway import (
    InMemoryGateway,
    PersistenceGateway,
    PostgresGateway,
)
from riskpulse.ingest.derivation import resignation_risk
from riskpulse.ingest.pipeline import IngestionPipeline, IngestionState, ingest
from riskpulse.utils.logging import configure_logging, get_logger
from riskpulse.views.live import LiveView

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "EmployeeSample",
    "PredictionSample",
    "RecordKind",
    "RiskSample",
    # Errors
    "BatchValidationError",
    "ConnectivityError",
    "InvalidTimestamp",
    "MalformedInput",
    "MissingColumns",
    "OutOfRangeValue",
    "PersistenceFailure",
    "RiskPulseError",
    # Persistence
    "InMemoryGateway",
    "PersistenceGateway",
    "PostgresGateway",
    # Ingestion
    "IngestionPipeline",
    "IngestionState",
    "ingest",
    "resignation_risk",
    # Presentation
    "LiveView",
    # Logging
    "configure_logging",
    "get_logger",
]
