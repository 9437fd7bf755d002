"""Filter-only mode: strip lines containing any listed string, then collapse blanks."""

import logging
import os
import shutil
import tempfile
from typing import Generator, Iterable

from sb_log_analyzer.matcher import read_lines
from sb_log_analyzer.normalizer import collapse_blanks

logger = logging.getLogger(__name__)


def remove_lines(lines: Iterable[str], removals: list[str]) -> Generator[str, None, None]:
    """Drop lines containing any of the literal *removals*; empty entries are ignored."""
    removals = [r for r in removals if r]
    for line in lines:
        if any(r in line for r in removals):
            continue
        yield line


def filter_lines(lines: Iterable[str], removals: list[str]) -> Generator[str, None, None]:
    return collapse_blanks(remove_lines(lines, removals))


def _write_lines(f, lines: Iterable[str]) -> int:
    count = 0
    for line in lines:
        f.write(line + "\n")
        count += 1
    return count


def filter_file(input_file: str, output_file: str, removals: list[str]) -> bool:
    """Filter *input_file* into *output_file*. Returns True if done in place.

    Same-path runs go through a temp file in the target directory and an
    atomic ``os.replace``.

    Raises FileNotFoundError if the input file doesn't exist.
    """
    if not os.path.isfile(input_file):
        raise FileNotFoundError(f"Input file not found: {input_file}")

    lines = filter_lines(read_lines(input_file), removals)
    in_place = os.path.realpath(input_file) == os.path.realpath(output_file)

    if not in_place:
        with open(output_file, "w", encoding="utf-8") as f:
            count = _write_lines(f, lines)
        logger.debug("Wrote %d line(s) to %s", count, output_file)
        return False

    fd, tmp = tempfile.mkstemp(dir=os.path.dirname(os.path.abspath(output_file)))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            count = _write_lines(f, lines)
        shutil.copymode(input_file, tmp)
        os.replace(tmp, output_file)
    except Exception:
        os.unlink(tmp)
        raise
    logger.debug("Rewrote %s in place (%d line(s))", output_file, count)
    return True
