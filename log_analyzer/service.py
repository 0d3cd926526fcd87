"""Analysis service: wires the reader, the pipeline and the repository."""

import logging
import os
import threading
from typing import Sequence

from log_analyzer.models import DEFAULT_SOURCE_NAME, AggregateRecord
from log_analyzer.pipeline import LogPipeline
from log_analyzer.reader import read_lines
from log_analyzer.repository import AnalysisRepository, RecordNotFoundError

logger = logging.getLogger(__name__)


class LogAnalysisService:
    def __init__(self, pipeline: LogPipeline, repository: AnalysisRepository):
        self._pipeline = pipeline
        self._repository = repository

    def analyze_lines(self, lines: Sequence[str], owner_id: int = 0,
                      source_name: str = DEFAULT_SOURCE_NAME,
                      cancel_event: threading.Event | None = None) -> AggregateRecord:
        return self._pipeline.run(lines, owner_id=owner_id, source_name=source_name,
                                  cancel_event=cancel_event)

    def analyze_file(self, filepath: str, owner_id: int = 0,
                     source_name: str | None = None, save: bool = True,
                     cancel_event: threading.Event | None = None) -> AggregateRecord:
        """Read *filepath*, analyze it and (by default) store the result.

        SourceReadError propagates unchanged; nothing is analyzed or stored.
        """
        lines = read_lines(filepath)
        logger.info("[Log Parser] Starting log processing for %d lines...", len(lines))

        record = self.analyze_lines(
            lines,
            owner_id=owner_id,
            source_name=source_name or os.path.basename(filepath),
            cancel_event=cancel_event,
        )
        if save:
            record = self._repository.create(record)
        return record

    def create_analysis(self, record: AggregateRecord) -> AggregateRecord:
        return self._repository.create(record)

    def list_analyses(self, owner_id: int | None = None) -> list[AggregateRecord]:
        return self._repository.get_all(owner_id=owner_id)

    def get_analysis(self, record_id: int) -> AggregateRecord:
        record = self._repository.get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def update_analysis(self, record: AggregateRecord) -> AggregateRecord:
        return self._repository.update(record)

    def delete_analysis(self, record_id: int):
        self._repository.delete(record_id)
