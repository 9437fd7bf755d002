"""Rewrites tagged lines with the owner/node label of the pod that logged them."""

import os
import re

from sb_log_analyzer.models import LogRecord, PathTag
from sb_log_analyzer.resolver import IdentityResolver

# .../logs/<namespace>/<pod>/<file>; the last "logs" segment with two more
# directories below it wins.
LOG_PATH_PATTERN = re.compile(r"^(?:.*[/.])?logs/([^/]+)/([^/]+)/[^:]+")


def parse_path_tag(source_path: str, search_dir: str | None = None) -> PathTag | None:
    """Extract (namespace, pod) from a structural log path, or None.

    With *search_dir* the path is read relative to it as
    <namespace>/<pod>/<file...>, so "logs" directories above the bundle
    are never mistaken for the log root.
    """
    if search_dir is not None:
        parts = os.path.relpath(source_path, search_dir).split(os.sep)
        if len(parts) < 3 or parts[0] == os.pardir:
            return None
        namespace, pod = parts[0], parts[1]
    else:
        match = LOG_PATH_PATTERN.match(source_path)
        if not match:
            return None
        namespace, pod = match.groups()
    # pod-abc.previous -> pod-abc
    pod = pod.split(".", 1)[0]
    return PathTag(namespace=namespace, pod=pod)


def rest_of_line(tagged_line: str) -> str:
    """Everything after the first colon."""
    return tagged_line.split(":", 1)[1] if ":" in tagged_line else tagged_line


class Annotator:
    """Formats sorted records as output lines.

    With annotation disabled (or no resolver) the tagged line is emitted
    as is.
    """

    def __init__(self, resolver: IdentityResolver | None = None, enabled: bool = True,
                 search_dir: str | None = None):
        self.resolver = resolver
        self.search_dir = search_dir
        self.enabled = enabled and resolver is not None

    def format(self, record: LogRecord) -> str:
        line = record.tagged_line
        if not self.enabled:
            return line
        tag = parse_path_tag(record.source_path, self.search_dir)
        if tag is None:
            return line

        identity = self.resolver.resolve(tag.namespace, tag.pod)
        if identity is None:
            return f"[{tag.namespace}]:{rest_of_line(line)}"
        return f"[{identity.label}]:{rest_of_line(line)}"
