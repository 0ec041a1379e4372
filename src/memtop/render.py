"""Fixed-width text rendering of a snapshot."""

from collections.abc import Sequence

from memtop.config import DISPLAY_LIMIT, TABLE_WIDTH, TITLE
from memtop.models import ProcessRecord, Snapshot

NAME_MAX = 18
COMMAND_MAX = 34
KB_PER_MB = 1024
KB_PER_GB = 1024**2


def truncate_name(name: str) -> str:
    """Cut names over 18 characters to 18 plus '..'."""
    return name[:NAME_MAX] + ".." if len(name) > NAME_MAX else name


def truncate_command(command: str) -> str:
    """Cut commands over 34 characters to 34 plus '...'."""
    return command[:COMMAND_MAX] + "..." if len(command) > COMMAND_MAX else command


def format_loads(loads: tuple[float, float, float]) -> str:
    """Format load averages the way the kernel prints them."""
    return " ".join(f"{load:.2f}" for load in loads)


class TableRenderer:
    """
    Render a Snapshot as a bordered table of constant size.

    Every line is ``width + 2`` characters and the process section always
    holds ``limit`` rows, so consecutive frames overwrite each other cleanly.
    """

    def __init__(
        self,
        limit: int = DISPLAY_LIMIT,
        width: int = TABLE_WIDTH,
        title: str = TITLE,
    ) -> None:
        self.limit = limit
        self.width = width
        self.title = title

    @property
    def content_width(self) -> int:
        """Columns available between '| ' and ' |'."""
        return self.width - 2

    def _border(self) -> str:
        return "+" + "-" * self.width + "+"

    def _separator(self) -> str:
        return "|" + "-" * self.width + "|"

    def _blank(self) -> str:
        return "|" + " " * self.width + "|"

    def _row(self, text: str) -> str:
        return "| " + text[: self.content_width].ljust(self.content_width) + " |"

    def _title(self) -> str:
        title = self.title[: self.width]
        pad = (self.width - len(title)) // 2
        return "|" + " " * pad + title + " " * (self.width - pad - len(title)) + "|"

    def _memory_line(self, snapshot: Snapshot) -> str:
        """
        Memory summary on the left, load averages right-aligned.

        Layouts are tried from widest to most compact. If none fits, the
        memory summary is cut; the load field is never the part dropped.
        """
        system = snapshot.system
        used = system.used_memory_kb / KB_PER_GB
        total = system.total_memory_kb / KB_PER_GB
        free = system.free_memory_kb / KB_PER_GB
        loads = format_loads(system.load_averages)

        padded = f"Memory: {used:6.2f}G / {total:6.2f}G Used ({free:6.2f}G Free)"
        compact = f"Memory: {used:.2f}G / {total:.2f}G Used ({free:.2f}G Free)"
        layouts = [
            (padded, f"Load Avg (1,5,15 min): {loads:>14}"),
            (compact, f"Load Avg (1,5,15 min): {loads}"),
            (compact, f"Load Avg: {loads}"),
        ]
        for left, right in layouts:
            if len(left) + 1 + len(right) <= self.content_width:
                break
        left = left[: max(0, self.content_width - len(right) - 1)]
        return self._row(left + " " * (self.content_width - len(left) - len(right)) + right)

    @staticmethod
    def _header() -> str:
        return f"{'PID':<8}{'NAME':<20}{'S':<4}{'MEM (MB)':>12}  {'COMMAND':<36}"

    @staticmethod
    def _process(proc: ProcessRecord) -> str:
        return (
            f"{proc.pid:<8}"
            f"{truncate_name(proc.name):<20}"
            f"{proc.state:<4}"
            f"{proc.resident_memory_kb / KB_PER_MB:11.1f}M"
            f"  {truncate_command(proc.command_line):<36}"
        )

    def render(self, snapshot: Snapshot, ranked: Sequence[ProcessRecord]) -> str:
        """
        Format ``snapshot`` with ``ranked`` as the visible process rows.

        ``ranked`` is expected to be the output of ``rank()``; only its first
        ``limit`` entries are drawn. The process count line reports the full
        snapshot size.
        """
        lines = [
            self._border(),
            self._title(),
            self._blank(),
            self._memory_line(snapshot),
            self._row(f"Total Processes: {len(snapshot.processes):>67}"),
            self._blank(),
            self._row(self._header()),
            self._separator(),
        ]
        visible = list(ranked[: self.limit])
        lines.extend(self._row(self._process(proc)) for proc in visible)
        lines.extend(self._blank() for _ in range(self.limit - len(visible)))
        lines.append(self._border())
        return "\n".join(lines)
