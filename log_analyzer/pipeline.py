"""Concurrent log analysis: producer → work queue → worker pool → aggregate.

One producer thread enqueues every line followed by one close marker per
worker. ``pool_size`` workers drain the queue, parse each line and fold it
into the shared AggregatorState. Workers publish progress every
``progress_every`` lines to a ProgressReporter owned by the pipeline.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from log_analyzer.aggregator import AggregatorState, Tally
from log_analyzer.config import Config
from log_analyzer.models import DEFAULT_SOURCE_NAME, AggregateRecord, ProgressEvent
from log_analyzer.parser import parse_line
from log_analyzer.progress import Listener, ProgressReporter

logger = logging.getLogger(__name__)

_CLOSED = object()


class PipelineCancelled(Exception):
    """Raised when a run is aborted through its cancel event."""

    def __init__(self, processed: int):
        super().__init__(f"pipeline cancelled after {processed} lines")
        self.processed = processed


class LogPipeline:
    def __init__(self, config: Config | None = None,
                 listeners: Sequence[Listener] = ()):
        self._config = config or Config()
        self._listeners = list(listeners)

    @property
    def config(self) -> Config:
        return self._config

    def run(self, lines: Sequence[str], owner_id: int = 0,
            source_name: str = DEFAULT_SOURCE_NAME,
            cancel_event: threading.Event | None = None) -> AggregateRecord:
        """Analyze *lines* and return the aggregate for this run.

        Malformed lines never fail the run. The only failure is
        PipelineCancelled, raised when *cancel_event* is set mid-run.
        """
        cfg = self._config
        pool_size = cfg.pool_size
        logger.info("Starting analysis of %d lines with %d workers", len(lines), pool_size)

        work: queue.Queue = queue.Queue(maxsize=len(lines) + pool_size)
        state = AggregatorState()
        reporter = ProgressReporter(
            capacity=pool_size,
            publish_timeout=cfg.progress_timeout,
            listeners=self._listeners,
        )
        reporter.start()

        producer = threading.Thread(
            target=self._produce, args=(work, lines, pool_size),
            name="line-producer", daemon=True,
        )
        try:
            producer.start()
            with ThreadPoolExecutor(max_workers=pool_size,
                                    thread_name_prefix="worker") as executor:
                futures = [
                    executor.submit(self._work, worker_id, work, state, reporter, cancel_event)
                    for worker_id in range(1, pool_size + 1)
                ]
                processed = sum(f.result() for f in futures)
            producer.join()
        finally:
            reporter.close()

        if processed < len(lines) and cancel_event is not None and cancel_event.is_set():
            logger.warning("Analysis cancelled after %d of %d lines", processed, len(lines))
            raise PipelineCancelled(processed)

        tally = state.snapshot()
        record = AggregateRecord(
            owner_id=owner_id,
            source_name=source_name,
            total_requests=tally.total_requests,
            unique_client_count=tally.unique_client_count,
            error_count=tally.error_count,
            average_response_time=(
                tally.average_response_time if cfg.compute_average_response else 0.0
            ),
        )
        logger.info("[Analysis] Completed log analysis successfully")
        logger.info("[Analysis] Total Requests: %d | Errors: %d | Unique clients: %d",
                    record.total_requests, record.error_count, record.unique_client_count)
        return record

    @staticmethod
    def _produce(work: queue.Queue, lines: Sequence[str], pool_size: int):
        for line in lines:
            work.put(line)
        for _ in range(pool_size):
            work.put(_CLOSED)

    def _work(self, worker_id: int, work: queue.Queue, state: AggregatorState,
              reporter: ProgressReporter, cancel_event: threading.Event | None) -> int:
        """Drain the queue until a close marker; return lines processed."""
        per_worker = self._config.reduction == "per_worker"
        every = self._config.progress_every
        local = Tally()
        processed = 0

        while True:
            line = work.get()
            if line is _CLOSED:
                break
            if cancel_event is not None and cancel_event.is_set():
                break

            record = parse_line(line)
            if per_worker:
                local.fold(record)
            else:
                state.fold(record)

            processed += 1
            if processed % every == 0:
                reporter.publish(ProgressEvent(worker_id, processed))

        if per_worker:
            state.merge(local)
        logger.info("[Worker-%d] Finished processing %d lines", worker_id, processed)
        return processed
