"""Ordering and truncation of process records."""

from collections.abc import Iterable
from enum import Enum

from memtop.models import ProcessRecord


class SortKey(Enum):
    """Sort keys for the process table."""

    MEM = "mem"
    PID = "pid"
    NAME = "name"


_KEY_FUNCS = {
    SortKey.MEM: lambda p: p.resident_memory_kb,
    SortKey.PID: lambda p: p.pid,
    SortKey.NAME: lambda p: p.name.lower(),
}


def default_descending(key: SortKey) -> bool:
    """Memory reads biggest-first, everything else ascending."""
    return key is SortKey.MEM


def rank(
    processes: Iterable[ProcessRecord],
    by: SortKey = SortKey.MEM,
    descending: bool | None = None,
    limit: int = 25,
) -> list[ProcessRecord]:
    """
    Sort processes by ``by`` and keep the first ``limit`` of them.

    The whole set is sorted before truncating. Records that compare equal on
    ``by`` keep ascending pid order in both directions, so the output is
    deterministic for a given input.

    Args:
        processes: Records from one snapshot.
        by: Field to sort on.
        descending: Sort direction; ``None`` uses the key's natural direction.
        limit: Maximum number of records to return.
    """
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    if descending is None:
        descending = default_descending(by)

    # sorted() is stable even with reverse=True, so the pid pre-sort survives ties
    by_pid = sorted(processes, key=lambda p: p.pid)
    ordered = sorted(by_pid, key=_KEY_FUNCS[by], reverse=descending)
    return ordered[:limit]
