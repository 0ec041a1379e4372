"""memtop - Textual viewer for the memory table."""

import sys

from rich.text import Text
from textual.app import App, ComposeResult
from textual.widgets import Footer, Static

from memtop.config import MonitorConfig
from memtop.monitor import EXIT_FATAL, Monitor
from memtop.render import TableRenderer
from memtop.sampler import Sampler
from memtop.source import MetricSource, ProcessRootError, create_source


class MemtopApp(App):
    """Shows the same fixed-width table as the console loop, in a Textual screen."""

    TITLE = "memtop"
    SUB_TITLE = "Process Memory Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #frame {
        height: 1fr;
        width: auto;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        config: MonitorConfig | None = None,
        source: MetricSource | None = None,
    ) -> None:
        """Initialize the MemtopApp."""
        super().__init__()
        self._config = config or MonitorConfig()
        if source is None:
            source = create_source(self._config.backend, self._config.proc_root)
        self._monitor = Monitor(
            Sampler(source),
            renderer=TableRenderer(limit=self._config.display_limit),
            poll_rate=self._config.refresh_interval,
            sort_key=self._config.sort_key,
        )
        self.last_frame: str | None = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="frame")
        yield Footer()

    def on_mount(self) -> None:
        """Draw the first frame and schedule the refresh."""
        self.refresh_frame()
        self.set_interval(self._monitor.poll_rate, self.refresh_frame)

    def refresh_frame(self) -> None:
        """Sample, render and display one frame."""
        try:
            frame = self._monitor.next_frame()
        except ProcessRootError as exc:
            self.exit(return_code=EXIT_FATAL, message=f"Error: {exc}")
            return
        self.last_frame = frame
        self.query_one("#frame", Static).update(Text(frame, no_wrap=True))

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()


def main() -> None:
    """Entry point for the memtop Textual viewer."""
    app = MemtopApp()
    app.run()
    sys.exit(app.return_code or 0)


if __name__ == "__main__":
    main()
