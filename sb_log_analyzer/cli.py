"""sb-log-analyzer — search, merge and annotate support bundle logs."""

import logging
import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from sb_log_analyzer.config import load_config, load_yaml_config, parse_list
from sb_log_analyzer.filter_only import filter_file
from sb_log_analyzer.pipeline import run_search

logger = logging.getLogger(__name__)

USAGE_EPILOG = """\
modes:
  search:      --sb-path <sb_path> [--annotate-pods] <search_string> <file_patterns> <exclude_string> <output_file>
               (always searches logs/ under sb_path)
  filter-only: --filter-only <input_file> <remove_list> <output_file>
               (remove lines containing any comma-separated string, then collapse blank lines)

Any argument that is not one of the options above is taken as a positional
argument, so a search or exclude string such as "-v" is accepted as is.

env:
  SORT_ORDER=asc|desc   (default asc)  asc = oldest->newest, desc = newest->oldest
"""


# option -> number of values it takes
OPTION_ARITY = {
    "-h": 0,
    "--help": 0,
    "--sb-path": 1,
    "--annotate-pods": 0,
    "--prefetch-identities": 0,
    "--filter-only": 0,
    "--config": 1,
}


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="sb-log-analyzer",
        description="Search support bundle logs, merge them by timestamp, and annotate pod owners.",
        epilog=USAGE_EPILOG,
        formatter_class=RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--sb-path",
        help="Support bundle root directory (logs are read from <sb_path>/logs)",
    )
    parser.add_argument(
        "--annotate-pods",
        action="store_true",
        help="Prefix each line with [namespace/owner node] resolved from pod manifests",
    )
    parser.add_argument(
        "--prefetch-identities",
        action="store_true",
        help="Load pod identities once from the bundle inventory or a live kubectl query",
    )
    parser.add_argument(
        "--filter-only",
        action="store_true",
        help="Treat the positionals as <input_file> <remove_list> <output_file>: remove lines "
             "containing any comma-separated string, then collapse blank lines",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file",
    )
    parser.add_argument(
        "positional",
        nargs="*",
        metavar="SEARCH_STRING FILE_PATTERNS EXCLUDE_STRING OUTPUT_FILE",
        help="Search mode arguments",
    )
    return parser


def split_argv(argv: list[str]) -> list[str]:
    """Reorder *argv* as known options first, then everything else after "--".

    Only the options in OPTION_ARITY (and their values) are options. Every
    other token, including ones starting with "-", is positional.
    """
    options: list[str] = []
    positional: list[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        name = arg.split("=", 1)[0]
        if arg == "--":
            positional.extend(argv[i + 1:])
            break
        if name in OPTION_ARITY and "=" in arg:
            options.append(arg)
            i += 1
        elif arg in OPTION_ARITY:
            width = 1 + OPTION_ARITY[arg]
            options.extend(argv[i:i + width])
            i += width
        else:
            positional.append(arg)
            i += 1
    if positional:
        return options + ["--"] + positional
    return options


def _usage_error(parser: ArgumentParser, message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    parser.print_usage(sys.stderr)
    return 1


def run_filter_only(parser: ArgumentParser, input_file: str, remove_arg: str, output_file: str) -> int:
    removals = parse_list(remove_arg)
    try:
        in_place = filter_file(input_file, output_file, removals)
    except FileNotFoundError as e:
        return _usage_error(parser, str(e))
    mode = " (in-place)" if in_place else ""
    print(f"Filtered {input_file} -> {output_file}{mode} (removed: {' '.join(removals)})")
    return 0


def run(argv: list[str] | None = None) -> int:
    """Parse arguments, dispatch to a mode, and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(split_argv(sys.argv[1:] if argv is None else argv))

    if args.filter_only:
        if len(args.positional) != 3:
            return _usage_error(parser, "--filter-only expects 3 arguments: "
                                        "<input_file> <remove_list> <output_file>")
        return run_filter_only(parser, *args.positional)

    if len(args.positional) != 4:
        return _usage_error(parser, "expected 4 arguments: "
                                    "<search_string> <file_patterns> <exclude_string> <output_file>")
    if not args.sb_path:
        return _usage_error(parser, "--sb-path <sb_path> must be specified.")

    (args.search_string, args.file_patterns,
     args.exclude_string, args.output_file) = args.positional

    config = load_config(args, load_yaml_config(args.config))
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.info("Searching %s for %r (patterns=%s, exclude=%r, order=%s)",
                config.search_dir, config.search_string, config.file_patterns or ["*"],
                config.exclude_string, config.sort_order)

    try:
        run_search(config)
    except (FileNotFoundError, PermissionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote results to {config.output_file}  (order={config.sort_order})")
    return 0


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [sb-log-analyzer] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)


if __name__ == "__main__":
    main()
