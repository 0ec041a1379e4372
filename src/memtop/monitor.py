"""Sample, rank, render and sleep, until told otherwise."""

import logging
import time
from collections.abc import Callable
from enum import Enum

from rich.console import Console

from memtop.config import MIN_REFRESH_INTERVAL, MonitorConfig
from memtop.models import Snapshot
from memtop.ranking import SortKey, rank
from memtop.render import TableRenderer
from memtop.sampler import Sampler
from memtop.source import ProcessRootError, create_source

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


class LoopState(Enum):
    """States of the refresh loop."""

    SAMPLING = "sampling"
    RENDERING = "rendering"
    IDLE = "idle"
    FATAL = "fatal"


class Monitor:
    """
    Refresh loop driving Sampler -> rank -> TableRenderer -> console.

    Runs on the calling thread. Every cycle builds a fresh Snapshot, so a
    frame never mixes data from two passes. The only way out, short of an
    external signal, is a ProcessRootError, which ends the loop in FATAL.
    """

    def __init__(
        self,
        sampler: Sampler,
        renderer: TableRenderer | None = None,
        console: Console | None = None,
        sleep: Callable[[float], None] = time.sleep,
        poll_rate: float = 2.0,
        sort_key: SortKey = SortKey.MEM,
    ) -> None:
        """
        Initialize the Monitor.

        Args:
            sampler: Produces one Snapshot per cycle.
            renderer: Formats the snapshot. Its limit is also the rank limit.
            console: Output console; cleared before every frame.
            sleep: Blocking delay, injectable so tests run without waiting.
            poll_rate: Seconds to idle between frames. Default 2.0s.
            sort_key: Field the process rows are ordered by.
        """
        self._sampler = sampler
        self._renderer = renderer or TableRenderer()
        self._console = console or Console(highlight=False, emoji=False)
        self._sleep = sleep
        self._poll_rate = max(MIN_REFRESH_INTERVAL, poll_rate)
        self._sort_key = sort_key
        self._state = LoopState.SAMPLING

    @classmethod
    def from_config(cls, config: MonitorConfig, **kwargs) -> "Monitor":
        """Wire the default collaborators for ``config``."""
        source = create_source(config.backend, config.proc_root)
        return cls(
            Sampler(source),
            renderer=TableRenderer(limit=config.display_limit),
            poll_rate=config.refresh_interval,
            sort_key=config.sort_key,
            **kwargs,
        )

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_REFRESH_INTERVAL, value)

    @property
    def state(self) -> LoopState:
        """Get the state the loop is in (or stopped in)."""
        return self._state

    def render_frame(self, snapshot: Snapshot) -> str:
        """Rank the snapshot's processes and format the whole table."""
        ranked = rank(snapshot.processes, by=self._sort_key, limit=self._renderer.limit)
        return self._renderer.render(snapshot, ranked)

    def next_frame(self) -> str:
        """Sample once and return the rendered table. May raise ProcessRootError."""
        return self.render_frame(self._sampler.sample())

    def _show(self, frame: str) -> None:
        self._console.clear()
        self._console.print(frame, markup=False, highlight=False, emoji=False, soft_wrap=True)

    def run(self, max_cycles: int | None = None) -> int:
        """
        Run the loop and return an exit code.

        Args:
            max_cycles: Stop after this many rendered frames. ``None`` loops
                until the process is terminated from outside.

        Returns:
            EXIT_FATAL after a ProcessRootError, EXIT_OK when ``max_cycles``
            frames were shown.
        """
        self._state = LoopState.SAMPLING
        snapshot: Snapshot | None = None
        cycles = 0

        while True:
            if self._state is LoopState.SAMPLING:
                try:
                    snapshot = self._sampler.sample()
                except ProcessRootError as exc:
                    logger.error("Error: %s", exc)
                    self._state = LoopState.FATAL
                else:
                    self._state = LoopState.RENDERING

            elif self._state is LoopState.RENDERING:
                self._show(self.render_frame(snapshot))
                snapshot = None
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    return EXIT_OK
                self._state = LoopState.IDLE

            elif self._state is LoopState.IDLE:
                self._sleep(self._poll_rate)
                self._state = LoopState.SAMPLING

            else:
                return EXIT_FATAL
