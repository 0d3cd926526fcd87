"""Running counters for a pipeline run."""

import threading
from dataclasses import dataclass, field

from log_analyzer.models import ParsedRecord


@dataclass
class Tally:
    """Plain accumulator. Not thread-safe on its own."""

    total_requests: int = 0
    error_count: int = 0
    response_time_total: int = 0
    client_keys: set[str] = field(default_factory=set)

    def fold(self, record: ParsedRecord):
        """Add one parsed line's contribution. Malformed lines add nothing."""
        if record.malformed:
            return
        self.total_requests += record.request_count
        self.error_count += int(record.is_error)
        self.response_time_total += record.response_time_ms
        if record.client_key is not None:
            self.client_keys.add(record.client_key)

    def merge(self, other: "Tally"):
        self.total_requests += other.total_requests
        self.error_count += other.error_count
        self.response_time_total += other.response_time_total
        self.client_keys |= other.client_keys

    @property
    def unique_client_count(self) -> int:
        return len(self.client_keys)

    @property
    def average_response_time(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.response_time_total / self.total_requests


class AggregatorState:
    """Tally shared between workers; every update happens under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tally = Tally()
        self._updates = 0

    def fold(self, record: ParsedRecord):
        with self._lock:
            self._tally.fold(record)
            self._updates += 1

    def merge(self, tally: Tally):
        """Fold a worker's private tally in as a single update."""
        with self._lock:
            self._tally.merge(tally)
            self._updates += 1

    @property
    def updates(self) -> int:
        with self._lock:
            return self._updates

    def snapshot(self) -> Tally:
        """Return a point-in-time copy of the counters."""
        with self._lock:
            return Tally(
                total_requests=self._tally.total_requests,
                error_count=self._tally.error_count,
                response_time_total=self._tally.response_time_total,
                client_keys=set(self._tally.client_keys),
            )
