"""Console entry point: ``memtop``."""

import logging
import os
import sys

from memtop.config import LOG_LEVEL_ENV, MonitorConfig
from memtop.monitor import Monitor

EXIT_INTERRUPTED = 130


def resolve_log_level(name: str | None) -> int:
    """Map a level name like 'debug' to its number; WARNING if unknown."""
    level = getattr(logging, (name or "WARNING").upper(), None)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging() -> int:
    """Send diagnostics to stderr so stdout only carries the table."""
    level = resolve_log_level(os.environ.get(LOG_LEVEL_ENV))
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    return level


def main() -> int:
    """Entry point for the memtop console monitor."""
    configure_logging()
    monitor = Monitor.from_config(MonitorConfig())
    try:
        return monitor.run()
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
