"""Runtime defaults for memtop."""

from dataclasses import dataclass

from memtop.ranking import SortKey

PROC_ROOT = "/proc"
DISPLAY_LIMIT = 25
REFRESH_INTERVAL = 2.0  # seconds
MIN_REFRESH_INTERVAL = 0.1
TABLE_WIDTH = 86
TITLE = "--- System Monitor (Linux) ---"
LOG_LEVEL_ENV = "MEMTOP_LOG_LEVEL"


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Settings shared by the console loop and the Textual viewer."""

    proc_root: str = PROC_ROOT
    backend: str = "procfs"  # or "psutil"
    refresh_interval: float = REFRESH_INTERVAL
    display_limit: int = DISPLAY_LIMIT
    sort_key: SortKey = SortKey.MEM
