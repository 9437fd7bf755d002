"""Literal substring search across collected files, plus the exclude filter."""

import logging
from typing import Generator, Iterable

from sb_log_analyzer.models import LogRecord

logger = logging.getLogger(__name__)


def read_lines(filepath: str) -> Generator[str, None, None]:
    """Yield each line of a file without its trailing newline."""
    with open(filepath, "r", encoding="utf-8", errors="replace", newline="\n") as f:
        for line in f:
            yield line[:-1] if line.endswith("\n") else line


def extract_matches(paths: Iterable[str], search_string: str) -> Generator[LogRecord, None, None]:
    """Yield a LogRecord for every line containing *search_string* (case-sensitive).

    Files that cannot be opened are skipped with a warning.
    """
    for path in paths:
        try:
            for line in read_lines(path):
                if search_string in line:
                    yield LogRecord(source_path=path, raw_line=line)
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)


def exclude_records(records: Iterable[LogRecord], exclude_string: str) -> Iterable[LogRecord]:
    """Drop records whose line contains *exclude_string*. Empty string disables."""
    if not exclude_string:
        return records
    return (r for r in records if exclude_string not in r.raw_line)
