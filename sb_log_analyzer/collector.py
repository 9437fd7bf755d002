"""Recursive file enumeration under the bundle's log root."""

import fnmatch
import logging
import os
from typing import Generator

logger = logging.getLogger(__name__)


def matches_patterns(filename: str, patterns: list[str]) -> bool:
    """True if the basename matches any pattern. No patterns matches everything."""
    if not patterns:
        return True
    return any(fnmatch.fnmatchcase(filename, p) for p in patterns)


def _walk_error(err: OSError) -> None:
    logger.warning("Skipping unreadable directory %s: %s", err.filename, err.strerror)


def _walk(root: str, patterns: list[str]) -> Generator[str, None, None]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if os.path.islink(path) or not os.path.isfile(path):
                continue
            if matches_patterns(name, patterns):
                yield path


def collect_files(root: str, patterns: list[str] | None = None) -> Generator[str, None, None]:
    """Return a lazy sequence of regular files under *root* matching *patterns*.

    The root is validated before anything is yielded.

    Raises FileNotFoundError if root is not a directory.
    Raises PermissionError if root cannot be listed.
    """
    if not os.path.isdir(root):
        raise FileNotFoundError(f"Search directory not found: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise PermissionError(f"Search directory not readable: {root}")
    return _walk(root, [p for p in (patterns or []) if p])
