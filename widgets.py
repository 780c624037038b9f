"""Custom widgets for the live timer view."""

from __future__ import annotations

from datetime import datetime, tzinfo

from textual.widgets import Static
from rich.text import Text

from tracker import TimerSnapshot
from utils import format_duration


class TimerHeader(Static):
    """Shows today's date."""

    def update_display(self, now: datetime, tz: tzinfo):
        local = now.astimezone(tz)
        self.update(Text(local.strftime("%A, %B %d, %Y"), style="bold"))


class SessionPanel(Static):
    """Started / session / today's total, then expected end and daily target."""

    def update_display(self, snapshot: TimerSnapshot, tz: tzinfo):
        started = snapshot.start_time.astimezone(tz).strftime("%H:%M:%S")
        expected_end = snapshot.expected_end.astimezone(tz).strftime("%H:%M:%S")

        text = Text()
        text.append(f"Started: {started}", style="green")
        text.append("  |  ")
        text.append(f"Session: {format_duration(snapshot.elapsed_ms)}", style="bold green")
        text.append("  |  ")
        text.append(f"Today's Total: {format_duration(snapshot.todays_total_ms)}\n", style="green")
        text.append(f"Expected End: {expected_end}", style="cyan")
        text.append("  |  ")
        text.append(f"Daily Target: {format_duration(snapshot.daily_target_ms)}\n", style="cyan")
        # Dim the pause line while nothing has been paused
        text.append(
            f"Total Paused: {format_duration(snapshot.paused_ms)}",
            style="magenta" if snapshot.paused_ms else "dim",
        )
        self.update(text)


class StatusLine(Static):
    """Hint line under the panel."""

    def update_display(self, is_paused: bool | None):
        if is_paused is None:
            self.update(Text("No active tracking session found.", style="bold red"))
        elif is_paused:
            self.update(Text('PAUSED - Use "clockin resume" to continue tracking', style="bold yellow"))
        else:
            self.update(Text('Press q to exit the timer view, then "clockin stop" to finish tracking', style="dim"))
