"""
Live dashboard view: an explicit observer over one record collection.

A LiveView owns its subscription and its periodic refresh, keeps the latest
ordered snapshot, and notifies a render callback. The ingestion pipeline
stays stateless; after an upload the view re-fetches the full collection
rather than trusting the pipeline's echo.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional, Union

from riskpulse.domain.models import RecordKind, StoredRecord
from riskpulse.errors import GatewayError
from riskpulse.infrastructure.gateway import PersistenceGateway
from riskpulse.infrastructure.subscriptions import PollingWatcher, Unsubscribe
from riskpulse.ingest.pipeline import IngestionPipeline, Source
from riskpulse.utils.logging import get_logger

log = get_logger(__name__)


class UploadInProgress(RuntimeError):
    """A second upload was submitted while the first was still running."""


class LiveView:
    """
    Observer over one collection of a gateway.

    Parameters
    ----------
    gateway : PersistenceGateway
        Store to read from and subscribe to.
    kind : RecordKind | str
        Collection shown by this view.
    on_update : Callable[[LiveView], None] | None
        Called after every snapshot change (e.g., to re-render).
    refresh_interval_seconds : float
        Period of the fallback poll; 0 disables it and relies on the
        gateway subscription alone.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        kind: Union[RecordKind, str],
        on_update: Optional[Callable[["LiveView"], None]] = None,
        refresh_interval_seconds: float = 0.0,
    ) -> None:
        self.gateway = gateway
        self.kind = RecordKind(kind)
        self._on_update = on_update
        self._interval = refresh_interval_seconds
        self._lock = threading.Lock()
        self._records: List[StoredRecord] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._poller: Optional[PollingWatcher[StoredRecord]] = None
        self.error: Optional[str] = None
        self.busy = False

    @property
    def records(self) -> List[StoredRecord]:
        with self._lock:
            return list(self._records)

    def _apply(self, records: List[StoredRecord]) -> None:
        with self._lock:
            self._records = list(records)
            self.error = None
        if self._on_update is not None:
            self._on_update(self)

    def refresh(self) -> List[StoredRecord]:
        """Re-fetch the whole collection and publish it."""
        try:
            records = self.gateway.fetch_all(self.kind)
        except GatewayError as exc:
            self.error = str(exc)
            raise
        self._apply(records)
        return records

    def start(self) -> "LiveView":
        self.refresh()
        self._unsubscribe = self.gateway.subscribe(self.kind, self._apply)
        if self._interval > 0:
            self._poller = PollingWatcher(
                fetch=lambda: self.gateway.fetch_all(self.kind),
                on_change=self._apply,
                interval_seconds=self._interval,
                name=f"{self.kind.table}_refresh",
            ).start()
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._poller is not None:
            self._poller.stop()
            self._poller = None

    def upload(self, source: Source, pipeline: IngestionPipeline) -> List[StoredRecord]:
        """
        Run one upload through `pipeline`, then refresh from the store.

        Raises UploadInProgress if called again before the first finishes.
        """
        with self._lock:
            if self.busy:
                raise UploadInProgress(f"An upload to {self.kind.table} is already running")
            self.busy = True
        try:
            stored = pipeline.ingest(source, self.kind)
        finally:
            with self._lock:
                self.busy = False
        self.refresh()
        return stored

    def __enter__(self) -> "LiveView":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


__all__ = ["LiveView", "UploadInProgress"]
