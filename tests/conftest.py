"""
Pytest configuration for riskpulse.

Provides fixtures for:
- Settings isolated from the developer's environment
- In-memory and spy gateways for unit tests
- Database connection management and table cleanup for integration tests
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, List, Sequence

import psycopg
import pytest

from riskpulse.config import Settings
from riskpulse.domain.models import NewRecord, RecordKind, StoredRecord
from riskpulse.infrastructure.gateway import InMemoryGateway, OnChange
from riskpulse.infrastructure.subscriptions import Unsubscribe

SCHEMA_PATH = Path(__file__).parent.parent / "riskpulse" / "schema.sql"
FIXED_NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class SpyGateway:
    """Records every call and delegates to an in-memory store."""

    def __init__(self) -> None:
        self.inner = InMemoryGateway(owner_id="spy-user", clock=lambda: FIXED_NOW)
        self.insert_calls: List[tuple[RecordKind, list]] = []
        self.fetch_calls: List[RecordKind] = []

    @property
    def calls(self) -> int:
        return len(self.insert_calls) + len(self.fetch_calls)

    def fetch_all(self, kind: RecordKind) -> List[StoredRecord]:
        self.fetch_calls.append(RecordKind(kind))
        return self.inner.fetch_all(kind)

    def insert_batch(self, kind: RecordKind, records: Sequence[NewRecord]) -> List[StoredRecord]:
        self.insert_calls.append((RecordKind(kind), list(records)))
        return self.inner.insert_batch(kind, records)

    def subscribe(self, kind: RecordKind, on_change: OnChange) -> Unsubscribe:
        return self.inner.subscribe(kind, on_change)


@pytest.fixture
def unit_settings() -> Settings:
    """Settings built from defaults only, ignoring env vars and .env."""
    return Settings(_env_file=None, owner_id="test-user", log_level="DEBUG")


@pytest.fixture
def fixed_now() -> datetime:
    """Clock value stamped on records by the in-memory gateways."""
    return FIXED_NOW


@pytest.fixture
def memory_gateway() -> InMemoryGateway:
    return InMemoryGateway(owner_id="test-user", clock=lambda: FIXED_NOW)


@pytest.fixture
def spy_gateway() -> SpyGateway:
    return SpyGateway()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "riskpulse"),
        owner_id="integration-tests",
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the riskpulse tables exist.
    """
    db_connection.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the three tables before and after each test function.
    """
    statement = "TRUNCATE TABLE public.risk_data, public.prediction_data, public.employee_data;"
    db_connection.execute(statement)
    db_connection.commit()
    yield
    db_connection.execute(statement)
    db_connection.commit()
