"""Blank-line handling shared by the search and filter-only modes."""

from typing import Generator, Iterable


def collapse_blanks(lines: Iterable[str]) -> Generator[str, None, None]:
    """Collapse every run of consecutive empty lines to a single empty line."""
    prev_blank = False
    for line in lines:
        if line == "":
            if not prev_blank:
                yield line
            prev_blank = True
        else:
            prev_blank = False
            yield line


def separate_records(lines: Iterable[str]) -> Generator[str, None, None]:
    """Follow every line with one empty line (sed 'G')."""
    for line in lines:
        yield line
        yield ""
