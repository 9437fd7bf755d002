"""Timestamp extraction and the global sort over all matched records.

The sort key is the literal ISO-8601-like substring, compared as a plain
string. That orders chronologically as long as every file in the bundle
uses the same precision and zone suffix, which is the case for the
container logs a support bundle captures.
"""

import logging
import re
from typing import Generator, Iterable

from sb_log_analyzer.models import LogRecord

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9:.]+Z?")


def extract_timestamp(line: str) -> str | None:
    """Return the first ISO-8601-like token in *line*, or None."""
    match = TIMESTAMP_PATTERN.search(line)
    return match.group(0) if match else None


class TimestampSorter:
    """Buffers keyed records and emits them in timestamp order.

    Records without a timestamp are dropped; ``dropped`` counts them.
    """

    def __init__(self, descending: bool = False):
        self.descending = descending
        self.dropped = 0

    def key_records(self, records: Iterable[LogRecord]) -> Generator[LogRecord, None, None]:
        for record in records:
            key = extract_timestamp(record.raw_line)
            if key is None:
                self.dropped += 1
                continue
            yield record.with_timestamp(key)

    def sort(self, records: Iterable[LogRecord]) -> list[LogRecord]:
        # sorted() is stable; descending is the exact reverse of ascending,
        # ties included.
        ordered = sorted(self.key_records(records), key=lambda r: r.timestamp_key)
        if self.descending:
            ordered.reverse()
        if self.dropped:
            logger.debug("Dropped %d matched line(s) without a timestamp", self.dropped)
        return ordered


def sort_records(records: Iterable[LogRecord], descending: bool = False) -> list[LogRecord]:
    """Convenience wrapper: key, stably sort, and return records."""
    return TimestampSorter(descending=descending).sort(records)
