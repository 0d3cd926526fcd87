"""Materialize a log file into a list of lines."""

import logging

logger = logging.getLogger(__name__)


class SourceReadError(Exception):
    """The input could not be read; no line was analyzed."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"cannot read {path}: {cause}")
        self.path = path
        self.cause = cause


def read_lines(filepath: str) -> list[str]:
    """Return every line of *filepath* without line terminators.

    Raises SourceReadError if the file cannot be opened or decoded.
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", filepath, e)
        raise SourceReadError(filepath, e) from e
    logger.info("Read %d lines from %s", len(lines), filepath)
    return lines
