"""Thread-safe analysis repository persisted as a single JSON document.

Writes are atomic: the document is written to a temp file in the same
directory and swapped in with os.replace. Without a path the repository
keeps records in memory only.
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import replace
from datetime import datetime, timezone

from log_analyzer.models import AggregateRecord

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    def __init__(self, record_id: int):
        super().__init__(f"record not found: {record_id}")
        self.record_id = record_id


class StoreLoadError(Exception):
    """The store file exists but could not be read or decoded."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"cannot load analysis store {path}: {cause}")
        self.path = path
        self.cause = cause


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisRepository:
    def __init__(self, path: str | None = None):
        self._path = path
        self._lock = threading.Lock()
        self._records: dict[int, AggregateRecord] = {}
        self._next_id = 1
        if path:
            self._load()

    def _load(self):
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            logger.info("No analysis store at %s, starting empty", self._path)
            return
        except OSError as e:
            raise StoreLoadError(self._path, e) from e

        if not content.strip():
            logger.info("Analysis store %s is empty, starting empty", self._path)
            return

        try:
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("top-level document must be an object")
            records = data.get("records", [])
            if not isinstance(records, list):
                raise ValueError("'records' must be a list")
            for item in records:
                if not isinstance(item, dict):
                    raise ValueError("record entries must be objects")
                record = AggregateRecord.from_dict(item)
                if not isinstance(record.id, int):
                    raise ValueError(f"record without an integer id: {item!r}")
                self._records[record.id] = record
            next_id = int(data.get("next_id", 1))
        except (ValueError, TypeError) as e:
            raise StoreLoadError(self._path, e) from e

        self._next_id = max(next_id, max(self._records, default=0) + 1)
        logger.info("Loaded %d analyses from %s", len(self._records), self._path)

    def _save(self):
        """Write the store atomically. Caller holds the lock."""
        if not self._path:
            return
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        document = {
            "next_id": self._next_id,
            "records": [r.to_dict() for r in self._records.values()],
        }
        tmp_fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self._path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def create(self, record: AggregateRecord) -> AggregateRecord:
        """Store a new record, assigning id and timestamps. Returns the stored copy."""
        with self._lock:
            now = _now()
            stored = replace(record, id=self._next_id, created_at=now, updated_at=now)
            self._records[stored.id] = stored
            self._next_id += 1
            self._save()
        logger.info("[Database] Log analysis %d saved", stored.id)
        return replace(stored)

    def get_all(self, owner_id: int | None = None) -> list[AggregateRecord]:
        with self._lock:
            records = sorted(self._records.values(), key=lambda r: r.id)
        if owner_id is not None:
            records = [r for r in records if r.owner_id == owner_id]
        return [replace(r) for r in records]

    def get_by_id(self, record_id: int) -> AggregateRecord | None:
        with self._lock:
            record = self._records.get(record_id)
        return replace(record) if record else None

    def update(self, record: AggregateRecord) -> AggregateRecord:
        """Overwrite the counters of an existing record.

        id, owner_id and created_at are kept from the stored copy.
        """
        with self._lock:
            existing = self._records.get(record.id)
            if existing is None:
                raise RecordNotFoundError(record.id)
            updated = replace(
                record,
                owner_id=existing.owner_id,
                created_at=existing.created_at,
                updated_at=_now(),
            )
            self._records[record.id] = updated
            self._save()
        return replace(updated)

    def delete(self, record_id: int):
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFoundError(record_id)
            del self._records[record_id]
            self._save()
        logger.info("[Database] Log analysis %d deleted", record_id)
