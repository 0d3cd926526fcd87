"""Tests for the progress reporter."""

import threading
import time

from log_analyzer.models import ProgressEvent
from log_analyzer.progress import ProgressReporter


class TestProgressReporter:
    def test_events_delivered_to_listener(self):
        seen = []
        reporter = ProgressReporter(capacity=2, listeners=[seen.append])
        reporter.start()
        for n in (10, 20, 30):
            assert reporter.publish(ProgressEvent(worker_id=1, processed=n)) is True
        reporter.close()

        assert [e.processed for e in seen] == [10, 20, 30]
        assert reporter.received == 3
        assert reporter.dropped == 0

    def test_events_are_logged(self, caplog):
        caplog.set_level("INFO", logger="log_analyzer.progress")
        reporter = ProgressReporter(capacity=1)
        reporter.start()
        reporter.publish(ProgressEvent(worker_id=3, processed=40))
        reporter.close()
        assert "worker-3 processed 40 lines" in caplog.text

    def test_failing_listener_does_not_stop_consumer(self):
        seen = []

        def broken(event):
            raise RuntimeError("listener failure")

        reporter = ProgressReporter(capacity=4, listeners=[broken, seen.append])
        reporter.start()
        reporter.publish(ProgressEvent(1, 10))
        reporter.publish(ProgressEvent(1, 20))
        reporter.close()
        assert len(seen) == 2

    def test_publish_times_out_when_full(self):
        """A stalled consumer must not block publishers beyond the timeout."""
        release = threading.Event()
        reporter = ProgressReporter(capacity=1, publish_timeout=0.05,
                                    listeners=[lambda e: release.wait(5)])
        reporter.start()

        results = [reporter.publish(ProgressEvent(1, n)) for n in range(1, 6)]
        release.set()
        reporter.close()

        assert results.count(False) >= 1
        assert reporter.dropped == results.count(False)
        assert reporter.received + reporter.dropped == 5

    def test_publish_after_close_is_dropped(self):
        reporter = ProgressReporter(capacity=1)
        reporter.start()
        reporter.close()
        assert reporter.publish(ProgressEvent(1, 10)) is False

    def test_close_without_start(self):
        reporter = ProgressReporter(capacity=1)
        reporter.close()  # should not raise
        reporter.close()

    def test_close_does_not_wait_for_stalled_listener(self):
        release = threading.Event()
        reporter = ProgressReporter(capacity=1, publish_timeout=0.01, close_timeout=0.1,
                                    listeners=[lambda e: release.wait(60)])
        reporter.start()
        try:
            for n in range(1, 4):
                reporter.publish(ProgressEvent(1, n))
            started = time.monotonic()
            reporter.close()
            assert time.monotonic() - started < 1.0
            assert reporter.dropped >= 1
        finally:
            release.set()
