from __future__ import annotations

import threading
from dataclasses import dataclass

from riskpulse.errors import ConnectivityError
from riskpulse.infrastructure.subscriptions import PollingWatcher


@dataclass(frozen=True)
class Item:
    id: int


class FakeFeed:
    """Scripted fetch results; an exception instance is raised instead of returned."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class TestPollingWatcher:
    """Change detection by record ids."""

    def test_first_poll_without_prime_reports(self):
        seen = []
        watcher = PollingWatcher(FakeFeed([Item(1)]), seen.append, interval_seconds=60)
        assert watcher.poll_once() is True
        assert seen == [[Item(1)]]

    def test_prime_sets_baseline(self):
        seen = []
        feed = FakeFeed([Item(1)], [Item(1)], [Item(1), Item(2)])
        watcher = PollingWatcher(feed, seen.append, interval_seconds=60)

        watcher.prime()
        assert watcher.poll_once() is False
        assert watcher.poll_once() is True
        assert seen == [[Item(1), Item(2)]]

    def test_reordering_counts_as_change(self):
        seen = []
        feed = FakeFeed([Item(2), Item(1)], [Item(1), Item(2)])
        watcher = PollingWatcher(feed, seen.append, interval_seconds=60)
        watcher.prime()
        assert watcher.poll_once() is True

    def test_gateway_error_is_skipped(self):
        seen = []
        feed = FakeFeed(ConnectivityError("connection refused"), [Item(1)])
        watcher = PollingWatcher(feed, seen.append, interval_seconds=60)

        watcher.prime()
        assert watcher.poll_once() is True
        assert seen == [[Item(1)]]

    def test_failed_poll_keeps_previous_baseline(self):
        seen = []
        feed = FakeFeed([Item(1)], ConnectivityError("timeout"), [Item(1)])
        watcher = PollingWatcher(feed, seen.append, interval_seconds=60)

        watcher.prime()
        assert watcher.poll_once() is False
        assert watcher.poll_once() is False
        assert seen == []

    def test_failing_callback_still_advances_baseline(self):
        def broken(records):
            raise RuntimeError("render failed")

        feed = FakeFeed([Item(1)], [Item(1)])
        watcher = PollingWatcher(feed, broken, interval_seconds=60)
        assert watcher.poll_once() is True
        assert watcher.poll_once() is False

    def test_failing_callback_keeps_thread_polling(self):
        calls = []
        third_call = threading.Event()

        def broken(records):
            calls.append(records)
            if len(calls) >= 3:
                third_call.set()
            raise RuntimeError("render failed")

        counter = iter(range(1_000_000))
        watcher = PollingWatcher(
            lambda: [Item(next(counter))], broken, interval_seconds=0.01
        )

        watcher.start()
        try:
            assert third_call.wait(timeout=2)
            assert watcher.running
        finally:
            watcher.stop()

    def test_background_thread_reports_and_stops(self):
        changed = threading.Event()
        feed = FakeFeed([], [Item(1)])
        watcher = PollingWatcher(feed, lambda records: changed.set(), interval_seconds=0.01)

        watcher.start()
        try:
            assert watcher.running
            assert changed.wait(timeout=2)
        finally:
            watcher.stop()
        assert not watcher.running
