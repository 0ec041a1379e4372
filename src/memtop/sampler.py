"""One sampling pass over a metric source."""

import logging

from memtop.models import Degraded, Snapshot, SystemSnapshot
from memtop.source import MetricSource

logger = logging.getLogger(__name__)


class Sampler:
    """Collects a complete Snapshot from a MetricSource."""

    def __init__(self, source: MetricSource) -> None:
        self._source = source

    @property
    def source(self) -> MetricSource:
        """Get the metric source."""
        return self._source

    def sample(self) -> Snapshot:
        """
        Collect system metrics, then every process, in enumeration order.

        Unavailable metrics come back as defaults. Only ProcessRootError from
        the enumeration step propagates.
        """
        memory = self._source.read_system_memory()
        loads = self._source.read_load_averages()
        for reading in (memory, loads):
            if isinstance(reading, Degraded):
                logger.debug("degraded reading: %s", reading.reason)

        pids = self._source.enumerate_processes()
        processes = tuple(self._source.read_process_detail(pid) for pid in pids)

        total_kb, free_kb = memory.value
        return Snapshot(
            system=SystemSnapshot(
                total_memory_kb=total_kb,
                free_memory_kb=free_kb,
                load_averages=loads.value,
            ),
            processes=processes,
        )
