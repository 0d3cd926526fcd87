"""Access-log line parser.

Expected line shape (timestamp prefix optional)::

    [2025-10-17 10:00:00] GET /api/users 200 120ms 192.168.1.1

Parsing is tolerant: a line with too few fields is dropped, a bad
response time degrades to 0 but the request still counts.
"""

import logging
import re

from log_analyzer.models import MALFORMED, ParsedRecord

logger = logging.getLogger(__name__)

MIN_FIELDS = 5  # method, path, status, response time, client
STATUS_FIELD = 2
RESPONSE_TIME_FIELD = 3
RESPONSE_TIME_SUFFIX = "ms"
ERROR_STATUS_CLASSES = ("4", "5")

_INT_RE = re.compile(r"\+?[0-9]+")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _strip_timestamp(line: str) -> str:
    """Drop everything up to and including the first ']'."""
    idx = line.find("]")
    if idx == -1:
        return line
    return line[idx + 1:].strip()


def _parse_response_time(raw: str, line: str) -> int:
    """'120ms' → 120, '+120ms' → 120. Negative or non-integer values → 0."""
    value = raw.removesuffix(RESPONSE_TIME_SUFFIX)
    if not _INT_RE.fullmatch(value):
        logger.warning("Failed to parse response time %r in line: %s", value, line)
        return 0
    return int(value)


def _is_error_status(status: str) -> bool:
    return status[:1] in ERROR_STATUS_CLASSES


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_line(line: str) -> ParsedRecord:
    """Parse a single access-log line.

    Returns MALFORMED (request_count=0) for empty or structurally invalid
    lines; never raises.
    """
    cleaned = line.strip()
    if not cleaned:
        return MALFORMED

    cleaned = _strip_timestamp(cleaned)

    parts = cleaned.split()
    if len(parts) < MIN_FIELDS:
        logger.warning("Skipping malformed line (%d fields): %s", len(parts), cleaned)
        return MALFORMED

    status = parts[STATUS_FIELD]
    response_time = _parse_response_time(parts[RESPONSE_TIME_FIELD], cleaned)

    # The whole cleaned line is the uniqueness key, not the client field.
    return ParsedRecord(
        request_count=1,
        is_error=_is_error_status(status),
        client_key=cleaned,
        response_time_ms=response_time,
        method=parts[0],
        path=parts[1],
        status=status,
    )
