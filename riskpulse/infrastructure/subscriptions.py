"""
Polling-based change detection for stores without a push channel.

A PollingWatcher re-fetches a collection on a fixed interval in a daemon
thread and calls back with the fresh, ordered snapshot whenever the set of
record ids differs from the previous poll.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from riskpulse.errors import GatewayError
from riskpulse.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


def _fingerprint(records: Sequence[object]) -> Tuple[object, ...]:
    return tuple(getattr(record, "id", record) for record in records)


class PollingWatcher(Generic[T]):
    """
    Periodically fetch a collection and report changes.

    Parameters
    ----------
    fetch : Callable[[], list]
        Returns the full ordered collection.
    on_change : Callable[[list], None]
        Invoked with the new snapshot after a change is observed.
    interval_seconds : float
        Delay between polls.
    name : str
        Thread name, for logs.
    """

    def __init__(
        self,
        fetch: Callable[[], List[T]],
        on_change: Callable[[List[T]], None],
        interval_seconds: float,
        name: str = "riskpulse-poll",
    ) -> None:
        self._fetch = fetch
        self._on_change = on_change
        self._interval = interval_seconds
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last: Optional[Tuple[object, ...]] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def prime(self) -> None:
        """Record the current snapshot as the baseline without calling back."""
        try:
            self._last = _fingerprint(self._fetch())
        except GatewayError as exc:
            log.warning("Initial poll failed for %s: %s", self._name, exc)

    def poll_once(self) -> bool:
        """Fetch once; return True when a change was reported."""
        try:
            records = self._fetch()
        except GatewayError as exc:
            log.warning("Poll failed for %s: %s", self._name, exc)
            return False

        current = _fingerprint(records)
        if current == self._last:
            return False
        self._last = current
        try:
            self._on_change(records)
        except Exception:  # noqa: BLE001
            log.exception("Change callback failed", extra={"watcher": self._name})
        return True

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.poll_once()

    def start(self) -> "PollingWatcher[T]":
        self.prime()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        log.debug("Polling watcher started", extra={"watcher": self._name})
        return self

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval + 1)
        self._thread = None


__all__ = ["PollingWatcher", "Unsubscribe"]
