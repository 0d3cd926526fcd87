"""Record types flowing through the analysis pipeline."""

from dataclasses import dataclass, asdict, fields
from typing import Any

DEFAULT_SOURCE_NAME = "uploaded_file.log"


@dataclass(frozen=True)
class ParsedRecord:
    """Result of parsing one access-log line. Never stored."""

    request_count: int = 0
    is_error: bool = False
    client_key: str | None = None
    response_time_ms: int = 0

    method: str | None = None
    path: str | None = None
    status: str | None = None

    @property
    def malformed(self) -> bool:
        return self.request_count == 0


MALFORMED = ParsedRecord()


@dataclass(frozen=True)
class ProgressEvent:
    worker_id: int
    processed: int


@dataclass
class AggregateRecord:
    """Summary of one pipeline run; the unit handed to the repository."""

    owner_id: int = 0
    source_name: str = DEFAULT_SOURCE_NAME
    total_requests: int = 0
    unique_client_count: int = 0
    error_count: int = 0
    average_response_time: float = 0.0

    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AggregateRecord":
        """Build a record from a dict, ignoring unknown keys.

        Raises ValueError when a counter is not an integer or the counters
        break ``error_count <= total_requests``.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        try:
            for key in ("owner_id", "total_requests", "unique_client_count", "error_count"):
                if key in values:
                    values[key] = int(values[key])
            if "average_response_time" in values:
                values["average_response_time"] = float(values["average_response_time"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid analysis record: {e}") from e

        record = cls(**values)
        if record.error_count > record.total_requests:
            raise ValueError("error_count cannot exceed total_requests")
        if min(record.total_requests, record.error_count, record.unique_client_count) < 0:
            raise ValueError("counters must be non-negative")
        return record
