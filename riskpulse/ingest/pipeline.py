"""
CSV ingestion pipeline: read -> parse -> validate -> derive -> persist.

Usage:
    from riskpulse.ingest.pipeline import IngestionPipeline

    pipeline = IngestionPipeline(PostgresGateway())
    stored = pipeline.ingest(Path("employees.csv"), "employee")

Every parse or validation failure is raised before the gateway is called, so
a rejected upload stores nothing. Gateway failures propagate unchanged. The
pipeline never retries: one upload is one attempt.
"""

from __future__ import annotations

import enum
import os
from typing import IO, List, Optional, Union

from riskpulse.config import Settings, ValidationMode, get_settings
from riskpulse.domain.models import (
    NewEmployeeSample,
    NewRecord,
    NewRiskSample,
    RecordKind,
    StoredRecord,
)
from riskpulse.domain.schemas import schema_for
from riskpulse.errors import MalformedInput
from riskpulse.infrastructure.gateway import PersistenceGateway
from riskpulse.ingest.derivation import resignation_risk
from riskpulse.ingest.parser import parse_csv
from riskpulse.ingest.validator import RowValues, validate_rows
from riskpulse.utils.logging import get_logger

log = get_logger(__name__)

# Paths are read from disk; a plain str is the CSV text itself.
Source = Union[str, bytes, "os.PathLike[str]", IO[str], IO[bytes]]


class IngestionState(str, enum.Enum):
    IDLE = "idle"
    READING = "reading"
    PARSING = "parsing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    SUCCESS = "success"
    FAILED = "failed"


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInput("Failed to read file content") from exc


def read_source(source: Source) -> str:
    """Buffer the whole upload in memory as text."""
    if isinstance(source, bytes):
        text = _decode(source)
    elif isinstance(source, str):
        text = source
    elif isinstance(source, os.PathLike):
        try:
            with open(source, "rb") as f:
                text = _decode(f.read())
        except OSError as exc:
            raise MalformedInput(f"Failed to read file: {exc}") from exc
    else:
        data = source.read()
        text = _decode(data) if isinstance(data, bytes) else data

    text = text.lstrip("\ufeff")
    if not text:
        raise MalformedInput("Failed to read file content")
    return text


def build_record(kind: RecordKind, values: RowValues) -> NewRecord:
    """Typed insert payload for one validated row, with derived fields filled."""
    if kind is RecordKind.EMPLOYEE:
        return NewEmployeeSample(
            **values,
            resignation_risk=resignation_risk(values["workload"], values["satisfaction"]),
        )
    return NewRiskSample(**values)


class IngestionPipeline:
    """
    Orchestrates one upload at a time against a persistence gateway.

    Parameters
    ----------
    gateway : PersistenceGateway
        Store that receives validated batches.
    settings : Settings | None
        Source of the default validation mode.
    validation_mode : {"first_error", "collect_all"} | None
        Overrides settings. ``first_error`` stops at the first bad cell;
        ``collect_all`` reports every bad row in one BatchValidationError.

    The pipeline holds no lock: callers must not start a second upload on
    the same instance while one is in flight.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        settings: Optional[Settings] = None,
        validation_mode: Optional[ValidationMode] = None,
    ) -> None:
        settings = settings or get_settings()
        self._gateway = gateway
        self._mode: ValidationMode = validation_mode or settings.validation_mode
        self.state = IngestionState.IDLE

    def _transition(self, state: IngestionState, kind: RecordKind) -> None:
        log.debug(f"[INGEST] {self.state.value} -> {state.value}", extra={"kind": kind.value})
        self.state = state

    def ingest(self, source: Source, kind: Union[RecordKind, str]) -> List[StoredRecord]:
        """
        Validate an uploaded CSV and store it as one batch.

        Returns
        -------
        list
            The records echoed by the gateway, with store-assigned ids.

        Raises
        ------
        MalformedInput, MissingColumns, OutOfRangeValue, InvalidTimestamp,
        BatchValidationError
            Before any store call.
        PersistenceFailure
            When the store rejects the batch.
        """
        kind = RecordKind(kind)
        schema = schema_for(kind)
        self.state = IngestionState.IDLE

        try:
            self._transition(IngestionState.READING, kind)
            text = read_source(source)

            self._transition(IngestionState.PARSING, kind)
            rows = parse_csv(text)

            self._transition(IngestionState.VALIDATING, kind)
            values = validate_rows(rows[0], rows[1:], schema, self._mode)
            batch = [build_record(kind, row) for row in values]

            self._transition(IngestionState.PERSISTING, kind)
            stored = self._gateway.insert_batch(kind, batch)
        except Exception as exc:
            self._transition(IngestionState.FAILED, kind)
            log.warning(
                f"[INGEST FAILED] {kind.value}: {exc}",
                extra={"kind": kind.value, "error_type": type(exc).__name__},
            )
            raise

        self._transition(IngestionState.SUCCESS, kind)
        log.info(
            f"[INGEST SUCCESS] {kind.value}",
            extra={"kind": kind.value, "rows": len(stored)},
        )
        return stored


def ingest(
    source: Source,
    kind: Union[RecordKind, str],
    gateway: PersistenceGateway,
    settings: Optional[Settings] = None,
) -> List[StoredRecord]:
    """One-shot convenience wrapper around IngestionPipeline.ingest."""
    return IngestionPipeline(gateway, settings).ingest(source, kind)


__all__ = [
    "IngestionPipeline",
    "IngestionState",
    "Source",
    "build_record",
    "ingest",
    "read_source",
]
