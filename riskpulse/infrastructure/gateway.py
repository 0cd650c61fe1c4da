"""
Persistence gateways: the boundary between riskpulse and the backing store.

The ingestion pipeline and the dashboard views depend only on the
PersistenceGateway protocol. Two implementations ship:

- PostgresGateway: psycopg against the hosted database. Batch inserts are a
  single ``INSERT ... SELECT FROM unnest(...)`` statement, so a batch is
  stored entirely or not at all. Changes are detected by polling.
- InMemoryGateway: a thread-safe process-local store with push notifications,
  used by tests and the CLI's ``--memory`` mode.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import (
    Callable,
    Dict,
    Generator,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row
from pydantic import ValidationError

from riskpulse.config import Settings, get_settings
from riskpulse.domain.models import NewRecord, RecordKind, StoredRecord, stored_model
from riskpulse.errors import ConnectivityError, PersistenceFailure
from riskpulse.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    get_sync_connection,
)
from riskpulse.infrastructure.subscriptions import PollingWatcher, Unsubscribe
from riskpulse.utils.logging import get_logger

log = get_logger(__name__)

OnChange = Callable[[List[StoredRecord]], None]

# Column order and Postgres array types for batch inserts, per table layout.
_INSERT_COLUMNS: Dict[RecordKind, Sequence[tuple[str, str]]] = {
    RecordKind.RISK: (
        ("timestamp", "timestamptz"),
        ("financial_risk", "float8"),
        ("cyber_risk", "float8"),
        ("reputation_risk", "float8"),
    ),
    RecordKind.EMPLOYEE: (
        ("timestamp", "timestamptz"),
        ("workload", "float8"),
        ("satisfaction", "float8"),
        ("resignation_risk", "int4"),
        ("department", "text"),
    ),
}
_INSERT_COLUMNS[RecordKind.PREDICTION] = _INSERT_COLUMNS[RecordKind.RISK]


@runtime_checkable
class PersistenceGateway(Protocol):
    """
    Minimal store contract required by ingestion and the dashboard.
    """

    def fetch_all(self, kind: RecordKind) -> List[StoredRecord]:
        """
        Return every record of `kind`, ascending by timestamp.

        Raises
        ------
        ConnectivityError
            When the store cannot be reached.
        """
        ...

    def insert_batch(self, kind: RecordKind, records: Sequence[NewRecord]) -> List[StoredRecord]:
        """
        Store `records` and return them with identifiers assigned.

        Raises
        ------
        PersistenceFailure
            When the store rejects the batch; the message is the store's own.
        """
        ...

    def subscribe(self, kind: RecordKind, on_change: OnChange) -> Unsubscribe:
        """
        Call `on_change` with the freshly fetched collection after each change.

        Returns a callable that cancels the subscription.
        """
        ...


class PostgresGateway:
    """
    Gateway backed by the hosted PostgreSQL database.

    Parameters
    ----------
    settings : Settings | None
        Connection and owner settings. Defaults to the cached settings.
    dsn_override : str | None
        Connect directly to this DSN instead of using the shared pool.
    poll_interval_seconds : float | None
        Change-detection period for subscriptions. Defaults to settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dsn_override: Optional[str] = None,
        poll_interval_seconds: Optional[float] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dsn_override = dsn_override
        self._poll_interval = poll_interval_seconds or self._settings.refresh_interval_seconds
        self._watchers: List[PollingWatcher[StoredRecord]] = []

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        if self._dsn_override:
            with get_sync_connection(self._dsn_override) as conn:
                yield conn
        else:
            with PoolManager().connection() as conn:
                yield conn

    def fetch_all(self, kind: RecordKind) -> List[StoredRecord]:
        kind = RecordKind(kind)
        query = sql.SQL("SELECT * FROM {} ORDER BY {} ASC, {} ASC").format(
            sql.Identifier("public", kind.table),
            sql.Identifier("timestamp"),
            sql.Identifier("created_at"),
        )
        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._settings.db_statement_timeout_ms)
                    cur.execute(query)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            log.error("Fetch failed", extra={"table": kind.table, "error": str(exc)})
            raise ConnectivityError(str(exc)) from exc

        model = stored_model(kind)
        return [model.model_validate(row) for row in rows]

    def insert_batch(self, kind: RecordKind, records: Sequence[NewRecord]) -> List[StoredRecord]:
        kind = RecordKind(kind)
        if not records:
            return []

        columns = _INSERT_COLUMNS[kind]
        query = sql.SQL(
            "INSERT INTO {table} ({columns}, {owner}) "
            "SELECT u.*, %s::text FROM unnest({arrays}) AS u "
            "RETURNING *"
        ).format(
            table=sql.Identifier("public", kind.table),
            columns=sql.SQL(", ").join(sql.Identifier(name) for name, _ in columns),
            owner=sql.Identifier("user_id"),
            arrays=sql.SQL(", ").join(
                sql.SQL("%s::{}[]").format(sql.SQL(pg_type)) for _, pg_type in columns
            ),
        )
        try:
            params = [self._settings.owner_id] + [
                [getattr(record, name) for record in records] for name, _ in columns
            ]
        except AttributeError as exc:
            raise PersistenceFailure(f"Record does not match {kind.table}: {exc}") from exc

        try:
            with self._connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._settings.db_statement_timeout_ms)
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            log.error("Batch insert rejected", extra={"table": kind.table, "error": str(exc)})
            raise PersistenceFailure(str(exc)) from exc

        log.info("Batch inserted", extra={"table": kind.table, "rows": len(rows)})
        model = stored_model(kind)
        return [model.model_validate(row) for row in rows]

    def subscribe(self, kind: RecordKind, on_change: OnChange) -> Unsubscribe:
        kind = RecordKind(kind)
        watcher: PollingWatcher[StoredRecord] = PollingWatcher(
            fetch=lambda: self.fetch_all(kind),
            on_change=on_change,
            interval_seconds=self._poll_interval,
            name=f"{kind.table}_changes",
        ).start()
        self._watchers.append(watcher)

        def unsubscribe() -> None:
            watcher.stop()
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unsubscribe

    def close(self) -> None:
        for watcher in list(self._watchers):
            watcher.stop()
        self._watchers.clear()


class InMemoryGateway:
    """
    Process-local gateway with the same contract as PostgresGateway.

    Inserts are validated as a whole before anything is stored, and
    subscribers are notified synchronously after each successful insert.
    """

    def __init__(
        self,
        owner_id: str = "local-user",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._owner_id = owner_id
        self._clock = clock
        self._lock = threading.RLock()
        self._tables: Dict[RecordKind, List[StoredRecord]] = {kind: [] for kind in RecordKind}
        self._subscribers: Dict[RecordKind, List[OnChange]] = {kind: [] for kind in RecordKind}

    def fetch_all(self, kind: RecordKind) -> List[StoredRecord]:
        kind = RecordKind(kind)
        with self._lock:
            rows = list(self._tables[kind])
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(rows, key=lambda record: record.timestamp)

    def insert_batch(self, kind: RecordKind, records: Sequence[NewRecord]) -> List[StoredRecord]:
        kind = RecordKind(kind)
        model = stored_model(kind)
        created_at = self._clock()
        try:
            stored = [
                model(
                    **record.model_dump(),
                    id=uuid.uuid4(),
                    created_at=created_at,
                    owner=self._owner_id,
                )
                for record in records
            ]
        except (ValidationError, TypeError) as exc:
            raise PersistenceFailure(f"Record does not match {kind.table}: {exc}") from exc

        with self._lock:
            self._tables[kind].extend(stored)
            subscribers = list(self._subscribers[kind])

        log.info("Batch inserted", extra={"table": kind.table, "rows": len(stored)})
        if stored:
            self._notify(kind, subscribers)
        return stored

    def _notify(self, kind: RecordKind, subscribers: List[OnChange]) -> None:
        snapshot = self.fetch_all(kind)
        for callback in subscribers:
            try:
                callback(list(snapshot))
            except Exception:  # noqa: BLE001
                log.exception("Subscriber callback failed", extra={"table": kind.table})

    def subscribe(self, kind: RecordKind, on_change: OnChange) -> Unsubscribe:
        kind = RecordKind(kind)
        with self._lock:
            self._subscribers[kind].append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                if on_change in self._subscribers[kind]:
                    self._subscribers[kind].remove(on_change)

        return unsubscribe


__all__ = ["OnChange", "PersistenceGateway", "PostgresGateway", "InMemoryGateway"]
