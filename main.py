"""sb-log-analyzer — search, merge and annotate support bundle logs."""

from sb_log_analyzer.cli import main

if __name__ == "__main__":
    main()
