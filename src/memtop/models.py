"""Data models for memtop."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

UNKNOWN_NAME = "N/A"
UNKNOWN_STATE = "?"
KERNEL_COMMAND = "[kernel]"


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable view of one process, collected in a single sampling pass."""

    pid: int
    name: str = UNKNOWN_NAME
    state: str = UNKNOWN_STATE  # 'R', 'S', 'Z', 'D', etc.
    resident_memory_kb: int = 0  # VmRSS
    command_line: str = KERNEL_COMMAND


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """System-wide memory totals and load averages."""

    total_memory_kb: int = 0
    free_memory_kb: int = 0
    load_averages: tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def used_memory_kb(self) -> int:
        """Memory in use, in kB."""
        return self.total_memory_kb - self.free_memory_kb


@dataclass(slots=True, frozen=True)
class Snapshot:
    """One complete, internally consistent collection pass."""

    system: SystemSnapshot
    processes: tuple[ProcessRecord, ...]


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A reading that came straight from the source."""

    value: T


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """A reading that fell back to defaults because the source was unavailable."""

    value: T
    reason: str


Reading = Ok | Degraded
