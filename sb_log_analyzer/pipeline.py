"""Search pipeline: collect -> match -> exclude -> sort -> annotate -> normalize -> write."""

import logging
from dataclasses import dataclass
from typing import Generator, Iterable

from sb_log_analyzer.annotator import Annotator
from sb_log_analyzer.collector import collect_files
from sb_log_analyzer.config import Config
from sb_log_analyzer.matcher import exclude_records, extract_matches
from sb_log_analyzer.normalizer import collapse_blanks, separate_records
from sb_log_analyzer.resolver import IdentityResolver, build_resolver
from sb_log_analyzer.sorter import TimestampSorter
from sb_log_analyzer.sources import prefetch_identities

logger = logging.getLogger(__name__)


@dataclass
class SearchStats:
    records_sorted: int = 0
    records_dropped: int = 0
    lines_written: int = 0


def build_annotator(config: Config) -> Annotator:
    """Set up identity resolution for the run, or a pass-through annotator.

    The optional prefetch happens here, once, before any record is read.
    """
    if not config.annotate_pods:
        return Annotator(enabled=False)

    logger.info("Pod annotation mode enabled - will discover namespaces dynamically")
    prefetched = {}
    if config.prefetch_identities:
        prefetched = prefetch_identities(
            config.inventory_file,
            config.identity_namespace,
            kubectl=config.kubectl,
            timeout=config.kubectl_timeout,
        )
        if not prefetched:
            logger.warning(
                "No pod identities from bundle inventory or live cluster; "
                "pod annotation disabled for this run"
            )
            return Annotator(enabled=False)

    resolver = build_resolver(config.sb_path, prefetched, config.identity_namespace)
    return Annotator(resolver, search_dir=config.search_dir)


def search_lines(config: Config, annotator: Annotator,
                 stats: SearchStats | None = None) -> Generator[str, None, None]:
    """Return the final output lines for a search run.

    Collection, matching and sorting happen before this returns, so a
    missing search directory raises here rather than mid-write.
    """
    stats = stats if stats is not None else SearchStats()
    paths = collect_files(config.search_dir, config.file_patterns)
    records = exclude_records(extract_matches(paths, config.search_string), config.exclude_string)

    sorter = TimestampSorter(descending=config.descending)
    ordered = sorter.sort(records)
    stats.records_sorted = len(ordered)
    stats.records_dropped = sorter.dropped

    annotated = (annotator.format(r) for r in ordered)
    return collapse_blanks(separate_records(annotated))


def write_output(path: str, lines: Iterable[str]) -> int:
    """Write lines to *path*, newline terminated. Returns the line count."""
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
            count += 1
    return count


def run_search(config: Config, resolver: IdentityResolver | None = None) -> SearchStats:
    """Run the whole search pipeline and write ``config.output_file``.

    Raises FileNotFoundError / PermissionError if the search directory is
    missing or unreadable.
    """
    if resolver is not None:
        annotator = Annotator(resolver, enabled=config.annotate_pods,
                              search_dir=config.search_dir)
    else:
        annotator = build_annotator(config)

    stats = SearchStats()
    lines = search_lines(config, annotator, stats)
    stats.lines_written = write_output(config.output_file, lines)
    logger.info("Sorted %d record(s), dropped %d without timestamp, wrote %d line(s)",
                stats.records_sorted, stats.records_dropped, stats.lines_written)
    return stats
