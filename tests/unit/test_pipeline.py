from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path

import pytest

from riskpulse.domain.models import EmployeeSample, RecordKind, RiskSample
from riskpulse.errors import (
    BatchValidationError,
    InvalidTimestamp,
    MalformedInput,
    MissingColumns,
    OutOfRangeValue,
    PersistenceFailure,
)
from riskpulse.ingest.pipeline import IngestionPipeline, IngestionState, ingest, read_source

RISK_CSV = (
    "timestamp,financial_risk,cyber_risk,reputation_risk\n"
    "2024-03-02T00:00:00Z,40,50,60\n"
    "2024-03-01T00:00:00Z,10,20,30\n"
)
EMPLOYEE_CSV = (
    "timestamp,workload,satisfaction,department\n"
    "2024-03-01T00:00:00Z,80,20,Engineering\n"
)


class FailingGateway:
    """Gateway whose inserts are always rejected."""

    def fetch_all(self, kind):
        return []

    def insert_batch(self, kind, records):
        raise PersistenceFailure('new row violates check constraint "risk_data_cyber_risk_check"')

    def subscribe(self, kind, on_change):
        return lambda: None


@pytest.fixture
def pipeline(spy_gateway, unit_settings) -> IngestionPipeline:
    return IngestionPipeline(spy_gateway, unit_settings)


class TestSuccessfulIngest:
    """Valid uploads reach the gateway as one batch."""

    def test_risk_rows_round_trip_in_timestamp_order(self, pipeline, spy_gateway):
        stored = pipeline.ingest(RISK_CSV, "risk")

        assert len(spy_gateway.insert_calls) == 1
        assert len(stored) == 2
        assert all(isinstance(record, RiskSample) for record in stored)
        assert all(record.owner == "spy-user" for record in stored)

        fetched = spy_gateway.fetch_all(RecordKind.RISK)
        assert [r.financial_risk for r in fetched] == [10.0, 40.0]
        assert fetched[0].timestamp == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_prediction_uses_its_own_collection(self, pipeline, spy_gateway):
        pipeline.ingest(RISK_CSV, RecordKind.PREDICTION)
        assert spy_gateway.insert_calls[0][0] is RecordKind.PREDICTION
        assert spy_gateway.fetch_all(RecordKind.RISK) == []
        assert len(spy_gateway.fetch_all(RecordKind.PREDICTION)) == 2

    def test_employee_resignation_risk_is_derived(self, pipeline, spy_gateway):
        stored = pipeline.ingest(EMPLOYEE_CSV, "employee")
        (record,) = stored
        assert isinstance(record, EmployeeSample)
        assert record.resignation_risk == 80
        assert record.department == "Engineering"

    def test_supplied_resignation_risk_is_overwritten(self, pipeline, spy_gateway):
        csv_text = (
            "resignation_risk,department,satisfaction,workload,timestamp\n"
            "3,Ops,100,0,2024-03-01T00:00:00\n"
        )
        (record,) = pipeline.ingest(csv_text, "employee")
        assert record.resignation_risk == 0

    def test_state_ends_in_success(self, pipeline):
        assert pipeline.state is IngestionState.IDLE
        pipeline.ingest(RISK_CSV, "risk")
        assert pipeline.state is IngestionState.SUCCESS

    def test_module_level_ingest(self, spy_gateway, unit_settings):
        stored = ingest(RISK_CSV.encode("utf-8"), "risk", spy_gateway, unit_settings)
        assert len(stored) == 2


class TestRejectedUploads:
    """Rejected uploads never reach the gateway."""

    def test_out_of_range_value(self, pipeline, spy_gateway):
        csv_text = (
            "timestamp,financial_risk,cyber_risk,reputation_risk\n"
            "2024-03-01T00:00:00,10,200,30\n"
        )
        with pytest.raises(OutOfRangeValue) as excinfo:
            pipeline.ingest(csv_text, "risk")
        assert excinfo.value.field == "cyber_risk"
        assert excinfo.value.row == 1
        assert spy_gateway.insert_calls == []
        assert pipeline.state is IngestionState.FAILED

    def test_missing_satisfaction_column(self, pipeline, spy_gateway):
        csv_text = "timestamp,workload,department\n2024-03-01T00:00:00,50,Ops\n"
        with pytest.raises(MissingColumns) as excinfo:
            pipeline.ingest(csv_text, "employee")
        assert excinfo.value.missing == ["satisfaction"]
        assert spy_gateway.insert_calls == []

    def test_bad_timestamp(self, pipeline, spy_gateway):
        csv_text = "timestamp,financial_risk,cyber_risk,reputation_risk\nlater,10,20,30\n"
        with pytest.raises(InvalidTimestamp):
            pipeline.ingest(csv_text, "risk")
        assert spy_gateway.insert_calls == []

    def test_header_only(self, pipeline, spy_gateway):
        with pytest.raises(MalformedInput):
            pipeline.ingest("timestamp,financial_risk,cyber_risk,reputation_risk\n", "risk")
        assert spy_gateway.calls == 0

    def test_one_bad_row_rejects_whole_batch(self, pipeline, spy_gateway):
        csv_text = RISK_CSV + "2024-03-03T00:00:00Z,10,20,-1\n"
        with pytest.raises(OutOfRangeValue):
            pipeline.ingest(csv_text, "risk")
        assert spy_gateway.fetch_all(RecordKind.RISK) == []

    def test_collect_all_mode(self, spy_gateway, unit_settings):
        pipeline = IngestionPipeline(spy_gateway, unit_settings, validation_mode="collect_all")
        csv_text = (
            "timestamp,financial_risk,cyber_risk,reputation_risk\n"
            "2024-03-01T00:00:00,101,20,30\n"
            "2024-03-02T00:00:00,10,20,30\n"
            "bad,10,20,30\n"
        )
        with pytest.raises(BatchValidationError) as excinfo:
            pipeline.ingest(csv_text, "risk")
        assert [err.row for err in excinfo.value.errors] == [1, 3]
        assert spy_gateway.insert_calls == []

    def test_unknown_kind(self, pipeline, spy_gateway):
        with pytest.raises(ValueError):
            pipeline.ingest(RISK_CSV, "weather")
        assert spy_gateway.calls == 0

    def test_persistence_failure_propagates(self, unit_settings):
        pipeline = IngestionPipeline(FailingGateway(), unit_settings)
        with pytest.raises(PersistenceFailure, match="check constraint"):
            pipeline.ingest(RISK_CSV, "risk")
        assert pipeline.state is IngestionState.FAILED

    def test_pipeline_is_reusable_after_failure(self, pipeline):
        with pytest.raises(MalformedInput):
            pipeline.ingest("", "risk")
        pipeline.ingest(RISK_CSV, "risk")
        assert pipeline.state is IngestionState.SUCCESS


class TestReadSource:
    """Accepted upload sources."""

    def test_text_is_returned_as_is(self):
        assert read_source("a,b\n1,2") == "a,b\n1,2"

    def test_bytes_with_bom(self):
        assert read_source(b"\xef\xbb\xbfa,b\n1,2") == "a,b\n1,2"

    def test_path(self, tmp_path: Path):
        path = tmp_path / "upload.csv"
        path.write_text(RISK_CSV, encoding="utf-8")
        assert read_source(path) == RISK_CSV

    def test_missing_path(self, tmp_path: Path):
        with pytest.raises(MalformedInput, match="Failed to read file"):
            read_source(tmp_path / "absent.csv")

    def test_binary_and_text_streams(self):
        assert read_source(io.BytesIO(b"a,b\n1,2")) == "a,b\n1,2"
        assert read_source(io.StringIO("\ufeffa,b\n1,2")) == "a,b\n1,2"

    def test_invalid_utf8(self):
        with pytest.raises(MalformedInput, match="Failed to read file content"):
            read_source(b"\xff\xfe\x00bad")

    def test_empty(self):
        with pytest.raises(MalformedInput):
            read_source(b"")
