"""Shared fixtures: fake procfs trees and in-memory metric sources."""

from pathlib import Path

import pytest

from memtop.models import Degraded, Ok, ProcessRecord
from memtop.source import ProcessRootError

MEMINFO = """\
MemTotal:       16301584 kB
MemFree:         8150792 kB
MemAvailable:   12000000 kB
Buffers:          204800 kB
Cached:          3145728 kB
"""

LOADAVG = "0.52 0.58 0.59 2/1234 56789\n"


def status_text(name: str, state: str = "S (sleeping)", vmrss_kb: int | None = None) -> str:
    """Build a /proc/<pid>/status body with the keys memtop reads."""
    lines = [
        f"Name:\t{name}",
        "Umask:\t0022",
        f"State:\t{state}",
        "Tgid:\t1",
        "PPid:\t0",
    ]
    if vmrss_kb is not None:
        lines.append(f"VmRSS:\t{vmrss_kb:8d} kB")
    lines.append("Threads:\t1")
    return "\n".join(lines) + "\n"


class FakeProc:
    """Builder for a procfs-like directory tree under tmp_path."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(exist_ok=True)

    def meminfo(self, text: str = MEMINFO) -> "FakeProc":
        (self.root / "meminfo").write_text(text)
        return self

    def loadavg(self, text: str = LOADAVG) -> "FakeProc":
        (self.root / "loadavg").write_text(text)
        return self

    def process(
        self,
        pid: int,
        status: str | None = None,
        cmdline: bytes | None = None,
    ) -> "FakeProc":
        pid_dir = self.root / str(pid)
        pid_dir.mkdir()
        if status is not None:
            (pid_dir / "status").write_text(status)
        if cmdline is not None:
            (pid_dir / "cmdline").write_bytes(cmdline)
        return self


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """An empty fake procfs root."""
    return FakeProc(tmp_path / "proc")


class FakeSource:
    """In-memory MetricSource returning fixed data."""

    def __init__(
        self,
        processes: list[ProcessRecord] | None = None,
        memory: tuple[int, int] = (16301584, 8150792),
        loads: tuple[float, float, float] = (0.52, 0.58, 0.59),
    ) -> None:
        self.processes = {proc.pid: proc for proc in processes or []}
        self.memory = memory
        self.loads = loads
        self.calls: list[str] = []

    def read_system_memory(self):
        self.calls.append("memory")
        return Ok(self.memory)

    def read_load_averages(self):
        self.calls.append("loads")
        return Ok(self.loads)

    def enumerate_processes(self) -> list[int]:
        self.calls.append("enumerate")
        return list(self.processes)

    def read_process_detail(self, pid: int) -> ProcessRecord:
        self.calls.append(f"detail:{pid}")
        return self.processes[pid]


class DegradedSource(FakeSource):
    """Source whose system-level reads are all unavailable."""

    def read_system_memory(self):
        return Degraded((0, 0), "meminfo unavailable")

    def read_load_averages(self):
        return Degraded((0.0, 0.0, 0.0), "loadavg unavailable")


class BrokenSource(FakeSource):
    """Source whose process root cannot be listed."""

    def enumerate_processes(self) -> list[int]:
        self.calls.append("enumerate")
        raise ProcessRootError("/proc", PermissionError(13, "Permission denied"))


@pytest.fixture
def sample_processes() -> list[ProcessRecord]:
    """A handful of records with distinct memory sizes."""
    return [
        ProcessRecord(pid=1, name="systemd", state="S", resident_memory_kb=12288,
                      command_line="/sbin/init splash"),
        ProcessRecord(pid=100, name="bash", state="S", resident_memory_kb=2048,
                      command_line="-bash"),
        ProcessRecord(pid=200, name="python3", state="R", resident_memory_kb=4096,
                      command_line="python3 -m http.server"),
        ProcessRecord(pid=2, name="kthreadd"),
    ]
