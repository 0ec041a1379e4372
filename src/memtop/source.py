"""Metric sources: where memtop reads process and memory state from."""

import logging
import os
import re
from typing import Protocol

import psutil

from memtop.config import PROC_ROOT
from memtop.models import KERNEL_COMMAND, Degraded, Ok, ProcessRecord, Reading

logger = logging.getLogger(__name__)

_PID_RE = re.compile(r"[0-9]+")

NO_LOAD = (0.0, 0.0, 0.0)
NO_MEMORY = (0, 0)


class ProcessRootError(Exception):
    """The process root could not be listed; nothing can be sampled."""

    def __init__(self, root: str, cause: BaseException) -> None:
        super().__init__(f"Could not open {root}: {cause}")
        self.root = root
        self.cause = cause


class MetricSource(Protocol):
    """Read current memory totals, load averages and per-process details."""

    def read_system_memory(self) -> Reading:
        """Return ``(total_kb, free_kb)``."""
        ...

    def read_load_averages(self) -> Reading:
        """Return the 1, 5 and 15 minute load averages."""
        ...

    def enumerate_processes(self) -> list[int]:
        """List live pids. Raises ProcessRootError when that is impossible."""
        ...

    def read_process_detail(self, pid: int) -> ProcessRecord:
        """Best-effort record for ``pid``; never raises."""
        ...


def parse_kb_value(line: str) -> int:
    """Parse the numeric token of a ``Key:  value kB`` line, 0 if absent."""
    tokens = line.split()
    if len(tokens) < 2:
        return 0
    try:
        return max(0, int(tokens[1]))
    except ValueError:
        return 0


def parse_meminfo(text: str) -> tuple[int, int]:
    """
    Extract MemTotal and MemFree (kB) from meminfo text.

    A free value larger than the total is clamped to the total when both
    keys are present.
    """
    total: int | None = None
    free: int | None = None
    for line in text.splitlines():
        tokens = line.split(None, 1)
        if not tokens:
            continue
        if tokens[0] == "MemTotal:":
            total = parse_kb_value(line)
        elif tokens[0] == "MemFree:":
            free = parse_kb_value(line)

    if total is not None and free is not None and free > total:
        logger.debug("MemFree %d kB exceeds MemTotal %d kB, clamping", free, total)
        free = total
    return total or 0, free or 0


def parse_loadavg(text: str) -> tuple[float, float, float]:
    """Parse the first three whitespace tokens of the first loadavg line."""
    lines = text.splitlines()
    tokens = lines[0].split() if lines else []
    if len(tokens) < 3:
        raise ValueError(f"expected three load averages, got {tokens!r}")
    load1, load5, load15 = (float(token) for token in tokens[:3])
    return load1, load5, load15


def parse_status(text: str) -> dict[str, object]:
    """
    Pick Name, State and VmRSS out of a ``/proc/<pid>/status`` file.

    Only the keys that are present end up in the result, keyed by the
    matching ProcessRecord field name.
    """
    fields: dict[str, object] = {}
    for line in text.splitlines():
        if line.startswith("Name:"):
            fields["name"] = line[len("Name:"):].lstrip(" \t")
        elif line.startswith("State:"):
            tokens = line.split()
            if len(tokens) > 1:
                fields["state"] = tokens[1][0]
        elif line.startswith("VmRSS:"):
            fields["resident_memory_kb"] = parse_kb_value(line)
    return fields


def parse_cmdline(data: bytes) -> str:
    """Join a NUL separated argv into one display string ('' when empty)."""
    first_line = data.split(b"\n", 1)[0]
    return first_line.replace(b"\0", b" ").decode("utf-8", errors="replace")


class ProcfsSource:
    """
    Metric source reading the Linux procfs text resources.

    Every read except the listing of the process root degrades to defaults
    when the resource is missing, which is the normal outcome for a process
    that exits between enumeration and detail read.
    """

    def __init__(self, root: str = PROC_ROOT) -> None:
        """
        Initialize the ProcfsSource.

        Args:
            root: Mount point of procfs. Tests point this at a fake tree.
        """
        self._root = root

    @property
    def root(self) -> str:
        """Get the process root."""
        return self._root

    def _path(self, *parts: str) -> str:
        return os.path.join(self._root, *parts)

    def _read_text(self, *parts: str) -> str:
        with open(self._path(*parts), encoding="utf-8", errors="replace") as f:
            return f.read()

    def read_system_memory(self) -> Reading:
        """Read MemTotal and MemFree from meminfo; zeros when it is unreadable."""
        try:
            text = self._read_text("meminfo")
        except OSError as exc:
            return Degraded(NO_MEMORY, f"meminfo unavailable: {exc}")
        return Ok(parse_meminfo(text))

    def read_load_averages(self) -> Reading:
        """Read the first three loadavg tokens; zeros when missing or garbled."""
        try:
            return Ok(parse_loadavg(self._read_text("loadavg")))
        except OSError as exc:
            return Degraded(NO_LOAD, f"loadavg unavailable: {exc}")
        except ValueError as exc:
            return Degraded(NO_LOAD, f"loadavg unparsable: {exc}")

    def enumerate_processes(self) -> list[int]:
        """
        List the all-digit directories under the process root.

        Raises:
            ProcessRootError: The root cannot be opened or listed.
        """
        pids: list[int] = []
        try:
            with os.scandir(self._root) as entries:
                for entry in entries:
                    if not _PID_RE.fullmatch(entry.name):
                        continue
                    try:
                        is_dir = entry.is_dir(follow_symlinks=False)
                    except OSError:
                        continue  # Vanished while listing
                    if is_dir:
                        pids.append(int(entry.name))
        except OSError as exc:
            raise ProcessRootError(self._root, exc) from exc
        return pids

    def read_process_detail(self, pid: int) -> ProcessRecord:
        """
        Build a record from status and cmdline.

        Each file that cannot be read leaves its fields at the record defaults.
        """
        fields: dict[str, object] = {}
        try:
            fields.update(parse_status(self._read_text(str(pid), "status")))
        except OSError as exc:
            logger.debug("status of pid %d unavailable: %s", pid, exc)

        try:
            with open(self._path(str(pid), "cmdline"), "rb") as f:
                command_line = parse_cmdline(f.read())
        except OSError as exc:
            logger.debug("cmdline of pid %d unavailable: %s", pid, exc)
        else:
            if command_line:
                fields["command_line"] = command_line

        return ProcessRecord(pid=pid, **fields)


# psutil reports long status names; the table shows the kernel's one-letter codes
_PSUTIL_STATES = {
    psutil.STATUS_RUNNING: "R",
    psutil.STATUS_SLEEPING: "S",
    psutil.STATUS_DISK_SLEEP: "D",
    psutil.STATUS_STOPPED: "T",
    psutil.STATUS_TRACING_STOP: "t",
    psutil.STATUS_ZOMBIE: "Z",
    psutil.STATUS_DEAD: "X",
    psutil.STATUS_WAKING: "W",
    psutil.STATUS_IDLE: "I",
    psutil.STATUS_LOCKED: "L",
    psutil.STATUS_WAITING: "W",
    psutil.STATUS_PARKED: "P",
}


class PsutilSource:
    """
    Metric source backed by psutil, for hosts without a procfs mount.

    Handles NoSuchProcess, AccessDenied and ZombieProcess per process by
    falling back to the record defaults.
    """

    _attrs = ["name", "status", "memory_info", "cmdline"]

    def read_system_memory(self) -> Reading:
        """Report total and free memory in kB, free clamped to total."""
        try:
            mem = psutil.virtual_memory()
        except (psutil.Error, OSError) as exc:
            return Degraded(NO_MEMORY, f"virtual_memory failed: {exc}")
        total = mem.total // 1024
        return Ok((total, min(mem.free // 1024, total)))

    def read_load_averages(self) -> Reading:
        """Report the load averages psutil sees (emulated on Windows)."""
        try:
            load1, load5, load15 = psutil.getloadavg()
        except (psutil.Error, OSError) as exc:
            return Degraded(NO_LOAD, f"getloadavg failed: {exc}")
        return Ok((load1, load5, load15))

    def enumerate_processes(self) -> list[int]:
        """List live pids. Raises ProcessRootError if the table cannot be read."""
        try:
            return psutil.pids()
        except (psutil.Error, OSError) as exc:
            raise ProcessRootError("process table", exc) from exc

    def read_process_detail(self, pid: int) -> ProcessRecord:
        """Build a record from one as_dict() call; vanished processes get defaults."""
        try:
            info = psutil.Process(pid).as_dict(attrs=self._attrs, ad_value=None)
        except psutil.Error as exc:
            logger.debug("pid %d unavailable: %s", pid, exc)
            return ProcessRecord(pid=pid)

        fields: dict[str, object] = {}
        if info.get("name"):
            fields["name"] = info["name"]
        state = _PSUTIL_STATES.get(info.get("status"))
        if state:
            fields["state"] = state
        mem_info = info.get("memory_info")
        if mem_info is not None:
            fields["resident_memory_kb"] = mem_info.rss // 1024
        cmdline = info.get("cmdline") or []
        command_line = " ".join(cmdline)
        fields["command_line"] = command_line if command_line else KERNEL_COMMAND
        return ProcessRecord(pid=pid, **fields)


def create_source(backend: str = "procfs", proc_root: str = PROC_ROOT) -> MetricSource:
    """Build the metric source named by ``backend``."""
    if backend == "procfs":
        return ProcfsSource(proc_root)
    if backend == "psutil":
        return PsutilSource()
    raise ValueError(f"unknown metric source backend: {backend!r}")
