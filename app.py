#!/usr/bin/env python3
"""Live timer TUI for the active work session."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer

from errors import StorageError
from models import Config
from storage import DataStore
from tracker import SessionTracker, TimerSnapshot
from utils import utc_now
from widgets import SessionPanel, StatusLine, TimerHeader

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerApp(App):
    """Re-reads the session every tick; leaving the view never touches it."""

    CSS = """
    Screen {
        background: $surface;
    }

    #timer-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #session-panel {
        height: auto;
        padding: 1 2;
    }

    #status-line {
        height: auto;
        padding: 0 2;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Exit view"),
        Binding("ctrl+c", "quit", "Exit view", show=False, priority=True),
    ]

    def __init__(self, config: Config, store: DataStore | None = None, clock: Callable[[], datetime] = utc_now):
        super().__init__()
        self.config = config
        self.tracker = SessionTracker(config, store, clock)
        self.clock = clock
        self.session_gone = False
        self._timer = None

    def compose(self) -> ComposeResult:
        yield TimerHeader(id="timer-header")
        yield SessionPanel(id="session-panel")
        yield StatusLine(id="status-line")
        yield Footer()

    def on_mount(self):
        self.title = "clockin"
        self.refresh_timer()
        if not self.session_gone:
            self._timer = self.set_interval(TICK_SECONDS, self.refresh_timer)

    def current_snapshot(self) -> TimerSnapshot | None:
        """Snapshot of the session on disk, or None once it has been stopped."""
        try:
            session = self.tracker.current_session()
        except StorageError:
            logger.exception("Could not read the session file")
            return None
        if session is None:
            return None
        return self.tracker.snapshot(session, self.clock())

    def refresh_timer(self) -> None:
        snapshot = self.current_snapshot()
        tz = self.config.tzinfo

        self.query_one("#timer-header", TimerHeader).update_display(self.clock(), tz)
        status = self.query_one("#status-line", StatusLine)
        if snapshot is None:
            self.session_gone = True
            status.update_display(None)
            if self._timer is not None:
                self._timer.stop()
                self._timer = None
            return

        self.query_one("#session-panel", SessionPanel).update_display(snapshot, tz)
        status.update_display(snapshot.is_paused)


def run_timer(config: Config, store: DataStore | None = None) -> None:
    app = TimerApp(config, store)
    app.run()
