"""Progress reporter: background thread that surfaces worker progress events.

Purely advisory. Publishing never blocks a worker for longer than the
configured timeout, and a slow or failing listener cannot affect the
aggregation result.
"""

import logging
import queue
import threading
import time
from typing import Callable

from log_analyzer.models import ProgressEvent

logger = logging.getLogger(__name__)

_STOP = object()

Listener = Callable[[ProgressEvent], None]


class ProgressReporter:
    def __init__(self, capacity: int, publish_timeout: float = 0.5,
                 close_timeout: float = 0.5,
                 listeners: list[Listener] | None = None):
        self._queue: queue.Queue = queue.Queue(maxsize=max(capacity, 1))
        self._publish_timeout = publish_timeout
        self._close_timeout = close_timeout
        self._listeners: list[Listener] = list(listeners or [])
        self._lock = threading.Lock()
        self._received = 0
        self._dropped = 0
        self._closed = False
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def received(self) -> int:
        with self._lock:
            return self._received

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def start(self):
        """Start the consumer thread."""
        self._thread = threading.Thread(
            target=self._consume_loop, name="progress-reporter", daemon=True
        )
        self._thread.start()

    def publish(self, event: ProgressEvent) -> bool:
        """Hand an event to the consumer. Returns False if it was dropped."""
        if self._closed:
            return False
        try:
            self._queue.put(event, timeout=self._publish_timeout)
        except queue.Full:
            with self._lock:
                self._dropped += 1
            logger.debug("Progress channel full, dropped event from worker-%d", event.worker_id)
            return False
        return True

    def close(self):
        """Stop the consumer thread, waiting at most close_timeout seconds.

        Events still queued when a stalled listener holds the consumer past
        the deadline are discarded and counted as dropped.
        """
        if self._closed:
            return
        self._closed = True
        if self._thread is None:
            return

        deadline = time.monotonic() + self._close_timeout
        try:
            self._queue.put(_STOP, timeout=self._close_timeout)
        except queue.Full:
            self._discard_pending()
            self._queue.put_nowait(_STOP)

        self._thread.join(timeout=max(deadline - time.monotonic(), 0))
        if self._thread.is_alive():
            self._stopped.set()
            discarded = self._discard_pending()
            self._queue.put_nowait(_STOP)
            logger.warning("Progress consumer still busy after %.1fs, "
                           "abandoned it (%d events discarded)",
                           self._close_timeout, discarded)

    def _discard_pending(self) -> int:
        discarded = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            if event is not _STOP:
                discarded += 1
        with self._lock:
            self._dropped += discarded
        return discarded

    def _consume_loop(self):
        while True:
            event = self._queue.get()
            if event is _STOP:
                break
            if self._stopped.is_set():
                with self._lock:
                    self._dropped += 1
                break
            with self._lock:
                self._received += 1
            logger.info("[Progress] worker-%d processed %d lines so far...",
                        event.worker_id, event.processed)
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("Progress listener %r failed", listener)
