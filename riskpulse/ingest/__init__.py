"""
Ingestion package for riskpulse.

Parser, validator and derivation are pure; the pipeline is the only piece
that talks to a gateway.
"""

from riskpulse.ingest.derivation import resignation_risk
from riskpulse.ingest.parser import parse_csv
from riskpulse.ingest.pipeline import IngestionPipeline, IngestionState, ingest
from riskpulse.ingest.validator import locate_columns, validate_rows

__all__ = [
    "IngestionPipeline",
    "IngestionState",
    "ingest",
    "locate_columns",
    "parse_csv",
    "resignation_risk",
    "validate_rows",
]
