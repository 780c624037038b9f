"""Tests for the app module."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

from app import TimerApp
from models import WorkSession
from widgets import StatusLine

UTC = timezone.utc
HOUR = 3_600_000


class TestTimerAppSnapshot:
    """Tests for reading the session from disk."""

    def test_no_session(self, config, store, clock):
        """Test that a missing session yields no snapshot."""
        with patch.object(TimerApp, "run"):
            app = TimerApp(config, store, clock)
            assert app.current_snapshot() is None

    def test_running_session(self, config, store, clock):
        store.session.save(WorkSession(start_time=datetime(2025, 1, 14, 14, 35, tzinfo=UTC)))
        with patch.object(TimerApp, "run"):
            app = TimerApp(config, store, clock)
            snapshot = app.current_snapshot()

        assert snapshot is not None
        assert snapshot.elapsed_ms == int(1.75 * HOUR)
        assert not snapshot.is_paused

    def test_session_reread_each_time(self, config, store, clock):
        """Test that a session stopped elsewhere disappears from the view."""
        store.session.save(WorkSession(start_time=datetime(2025, 1, 14, 14, 35, tzinfo=UTC)))
        with patch.object(TimerApp, "run"):
            app = TimerApp(config, store, clock)
            assert app.current_snapshot() is not None
            store.session.clear()
            assert app.current_snapshot() is None


class TestTimerAppRun:
    """Tests that drive the app headless."""

    def test_quit_leaves_session_running(self, config, store, clock):
        """Test that leaving the view does not stop or pause the session."""
        session = WorkSession(start_time=datetime(2025, 1, 14, 14, 35, tzinfo=UTC))
        store.session.save(session)
        app = TimerApp(config, store, clock)

        async def drive():
            async with app.run_test() as pilot:
                await pilot.pause()
                await pilot.press("q")

        asyncio.run(drive())

        loaded = store.session.load()
        assert loaded is not None
        assert loaded.start_time == session.start_time
        assert not loaded.is_paused
        assert not app.session_gone

    def test_missing_session_shows_message(self, config, store, clock):
        app = TimerApp(config, store, clock)
        rendered = []

        async def drive():
            async with app.run_test() as pilot:
                await pilot.pause()
                with patch.object(StatusLine, "update") as update:
                    app.refresh_timer()
                    rendered.append(update.call_args[0][0].plain)
                await pilot.press("q")

        asyncio.run(drive())

        assert app.session_gone
        assert rendered == ["No active tracking session found."]
