"""Tests for the tracker module."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from errors import ConflictError, NotFoundError, ValidationError
from models import Config, SickEntry, TimeEntry, VacationEntry, WorkingDay, WorkSession
from tracker import SessionTracker, suggest_pause_minutes, target_daily_minutes
from utils import WEEKDAY_NAMES

UTC = timezone.utc


def _start_session(store, start: datetime, paused_ms: int = 0) -> WorkSession:
    session = WorkSession(start_time=start, paused_time_ms=paused_ms)
    store.session.save(session)
    return session


class TestPauseArithmetic:
    """Tests for the daily target and pause suggestion."""

    def test_target_daily_minutes(self):
        assert target_daily_minutes(Config(hours_per_week=37.5)) == 450
        assert target_daily_minutes(Config(hours_per_week=40)) == 480

    def test_target_rounds_half_up(self):
        """Test that half minutes round up."""
        assert target_daily_minutes(Config(hours_per_week=38.75)) == 465
        four_days = [WorkingDay(day=d, is_working_day=i < 4) for i, d in enumerate(WEEKDAY_NAMES)]
        assert target_daily_minutes(Config(hours_per_week=2.5, working_days=four_days)) == 38

    def test_suggest_pause(self):
        assert suggest_pause_minutes(500, 450) == 50
        assert suggest_pause_minutes(450.9, 450) == 0
        assert suggest_pause_minutes(300, 450) == 0


class TestStartPauseResume:
    """Tests for the session state machine."""

    def test_start(self, config, store, clock):
        session = SessionTracker(config, store, clock).start()
        assert session.start_time == clock.now
        assert store.session.load() == session

    def test_start_twice(self, config, store, clock):
        tracker = SessionTracker(config, store, clock)
        tracker.start()
        with pytest.raises(ConflictError, match="already active"):
            tracker.start()

    def test_start_on_vacation_day(self, config, store, clock):
        """Test that work cannot be tracked on a booked vacation day."""
        store.vacations.append(VacationEntry(id="v", start_date=date(2025, 1, 13), end_date=date(2025, 1, 15), days=3))
        with pytest.raises(ConflictError, match="vacation day scheduled for today"):
            SessionTracker(config, store, clock).start()
        assert not store.session.exists()

    def test_start_on_sick_day(self, config, store, clock):
        store.sick_days.append(SickEntry(id="s", start_date=date(2025, 1, 14), end_date=date(2025, 1, 14), days=1))
        with pytest.raises(ConflictError, match="sick day scheduled for today"):
            SessionTracker(config, store, clock).start()

    def test_today_uses_configured_timezone(self, config, store, clock):
        """Test that 23:30 UTC is already tomorrow in Berlin."""
        config.timezone = "Europe/Berlin"
        clock.now = datetime(2025, 1, 14, 23, 30, tzinfo=UTC)
        store.vacations.append(VacationEntry(id="v", start_date=date(2025, 1, 15), end_date=date(2025, 1, 15), days=1))
        with pytest.raises(ConflictError):
            SessionTracker(config, store, clock).start()

    def test_pause_and_resume(self, config, store, clock):
        """Test that a resumed pause folds into the paused total."""
        tracker = SessionTracker(config, store, clock)
        tracker.start()
        clock.advance(hours=1)
        paused = tracker.pause()
        assert paused.is_paused
        assert paused.pause_start_time == clock.now

        clock.advance(minutes=20)
        resumed = tracker.resume()
        assert not resumed.is_paused
        assert resumed.pause_start_time is None
        assert resumed.paused_time_ms == 20 * 60_000
        assert store.session.load() == resumed

    def test_pause_twice(self, config, store, clock):
        tracker = SessionTracker(config, store, clock)
        tracker.start()
        tracker.pause()
        with pytest.raises(ConflictError, match="already paused"):
            tracker.pause()

    def test_resume_when_not_paused(self, config, store, clock):
        tracker = SessionTracker(config, store, clock)
        tracker.start()
        with pytest.raises(ConflictError, match="not paused"):
            tracker.resume()

    def test_commands_without_session(self, config, store, clock):
        tracker = SessionTracker(config, store, clock)
        for action in (tracker.pause, tracker.resume, tracker.stop):
            with pytest.raises(NotFoundError, match="No active tracking session"):
                action()


class TestStop:
    """Tests for stopping a session and the pause suggestion."""

    @pytest.fixture
    def config(self, data_dir) -> Config:
        """37.5 hours over five days, so the daily target is 450 minutes."""
        return Config(hours_per_week=37.5, data_directory=data_dir, timezone="Europe/Berlin", setup_completed=True)

    def _prompter(self, answer: bool):
        from prompts import AutoPrompter

        return AutoPrompter(answer)

    def test_suggested_pause_accepted(self, config, store, clock):
        """Test 08:00 to 16:20 suggests and applies a 50 minute pause."""
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC))
        prompter = self._prompter(True)

        result = SessionTracker(config, store, clock).stop(prompter)

        assert result.suggested_pause == 50
        assert result.pause_applied
        assert len(prompter.questions) == 1
        entries = store.time_entries.load_all()
        assert len(entries) == 1
        assert entries[0].pause_time == 50
        assert entries[0].working_ms == 450 * 60_000
        assert not store.session.exists()

    def test_suggested_pause_declined(self, config, store, clock):
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC))

        result = SessionTracker(config, store, clock).stop(self._prompter(False))

        assert not result.pause_applied
        assert store.time_entries.load_all()[0].pause_time == 0

    def test_no_prompt_without_overtime(self, config, store, clock):
        """Test exactly 7.5h does not ask anything."""
        clock.now = datetime(2025, 1, 14, 15, 30, tzinfo=UTC)
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC))
        prompter = self._prompter(True)

        SessionTracker(config, store, clock).stop(prompter)

        assert prompter.questions == []
        assert store.time_entries.load_all()[0].pause_time == 0

    def test_suggestion_replaces_smaller_tracked_pause(self, config, store, clock):
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC), paused_ms=10 * 60_000)
        SessionTracker(config, store, clock).stop(self._prompter(True))
        assert store.time_entries.load_all()[0].pause_time == 50

    def test_declined_keeps_tracked_pause(self, config, store, clock):
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC), paused_ms=10 * 60_000)
        SessionTracker(config, store, clock).stop(self._prompter(False))
        assert store.time_entries.load_all()[0].pause_time == 10

    def test_no_prompt_when_tracked_pause_is_larger(self, config, store, clock):
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC), paused_ms=60 * 60_000)
        prompter = self._prompter(True)
        SessionTracker(config, store, clock).stop(prompter)
        assert prompter.questions == []
        assert store.time_entries.load_all()[0].pause_time == 60

    def test_no_prompter_keeps_tracked_pause(self, config, store, clock):
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC))
        result = SessionTracker(config, store, clock).stop()
        assert result.suggested_pause == 50
        assert store.time_entries.load_all()[0].pause_time == 0

    def test_stop_while_paused_folds_open_pause(self, config, store, clock):
        """Test that an open pause counts towards the stored pause."""
        store.session.save(
            WorkSession(
                start_time=datetime(2025, 1, 14, 12, 0, tzinfo=UTC),
                paused_time_ms=5 * 60_000,
                is_paused=True,
                pause_start_time=datetime(2025, 1, 14, 16, 0, tzinfo=UTC),
            )
        )
        SessionTracker(config, store, clock).stop(self._prompter(True))
        assert store.time_entries.load_all()[0].pause_time == 25

    def test_entry_date_uses_configured_timezone(self, config, store, clock):
        """Test that a session started 23:30 UTC belongs to the next Berlin day."""
        clock.now = datetime(2025, 1, 15, 1, 0, tzinfo=UTC)
        _start_session(store, datetime(2025, 1, 14, 23, 30, tzinfo=UTC))
        entry = SessionTracker(config, store, clock).stop(self._prompter(False)).entry
        assert entry.date == date(2025, 1, 15)

    def test_no_suggestion_without_working_days(self, data_dir, store, clock):
        config = Config(
            data_directory=data_dir,
            working_days=[WorkingDay(day=d, is_working_day=False) for d in WEEKDAY_NAMES],
        )
        _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC))
        prompter = self._prompter(True)
        result = SessionTracker(config, store, clock).stop(prompter)
        assert result.suggested_pause == 0
        assert prompter.questions == []

    def test_stop_then_start_again_same_day(self, config, store, clock):
        """Test that two tracked sessions may share a date."""
        tracker = SessionTracker(config, store, clock)
        clock.now = datetime(2025, 1, 14, 8, 0, tzinfo=UTC)
        tracker.start()
        clock.advance(hours=2)
        tracker.stop(self._prompter(False))
        clock.advance(hours=1)
        tracker.start()
        clock.advance(hours=2)
        tracker.stop(self._prompter(False))
        assert [e.date for e in store.time_entries.load_all()] == [date(2025, 1, 14)] * 2


class TestAddTimeEntry:
    """Tests for manual time entries."""

    @pytest.fixture
    def tracker(self, config, store, clock) -> SessionTracker:
        config.timezone = "Europe/Berlin"
        return SessionTracker(config, store, clock)

    @pytest.mark.parametrize(
        ("args", "message"),
        [
            (("invalid-date", "09:00", "17:00"), "Invalid date format"),
            (("2025-02-30", "09:00", "17:00"), "Invalid date format"),
            (("2025-01-14", "invalid-time", "17:00"), "Invalid start time format"),
            (("2025-01-14", "09:00", "25:00"), "Invalid end time format"),
            (("2030-01-01", "09:00", "17:00"), "future dates"),
            (("2025-01-14", "17:00", "09:00"), "End time must be after start time"),
        ],
    )
    def test_validation(self, tracker, store, args, message):
        with pytest.raises(ValidationError, match=message):
            tracker.add_time_entry(*args)
        assert store.time_entries.load_all() == []

    def test_negative_pause(self, tracker):
        with pytest.raises(ValidationError, match="Pause time cannot be negative"):
            tracker.add_time_entry("2025-01-14", "09:00", "17:00", pause_minutes=-30)

    @pytest.mark.parametrize("pause", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_pause(self, tracker, store, pause):
        """Test that NaN and infinite pauses are rejected, not crashed on."""
        with pytest.raises(ValidationError, match="Pause time must be a number of minutes"):
            tracker.add_time_entry("2025-01-14", "09:00", "17:00", pause_minutes=pause)
        assert store.time_entries.load_all() == []

    def test_pause_longer_than_session(self, tracker):
        with pytest.raises(ValidationError, match="longer than the pause time"):
            tracker.add_time_entry("2025-01-14", "09:00", "10:00", pause_minutes=120)

    def test_adds_entry(self, tracker, store):
        """Test a basic entry stored in UTC."""
        entry = tracker.add_time_entry("2025-01-14", "9:00", "17:30", "Important project work", 30)

        assert store.time_entries.load_all() == [entry]
        assert entry.date == date(2025, 1, 14)
        assert entry.type == "work"
        assert entry.description == "Important project work"
        assert entry.start_time.astimezone(UTC) == datetime(2025, 1, 14, 8, 0, tzinfo=UTC)
        assert entry.working_ms == 8 * 3_600_000

    def test_boundary_times(self, tracker):
        entry = tracker.add_time_entry("2025-01-14", "00:00", "23:59")
        assert entry.working_ms == (23 * 60 + 59) * 60_000

    def test_unique_ids(self, tracker):
        a = tracker.add_time_entry("2025-01-13", "09:00", "17:00")
        b = tracker.add_time_entry("2025-01-14", "09:00", "17:00")
        assert a.id != b.id

    def test_existing_entry_conflict(self, tracker, store):
        tracker.add_time_entry("2025-01-14", "09:00", "12:00")
        with pytest.raises(ConflictError, match="A time entry already exists for Jan 14th, 2025"):
            tracker.add_time_entry("2025-01-14", "13:00", "17:00")
        assert len(store.time_entries.load_all()) == 1

    def test_vacation_conflict(self, tracker, store):
        store.vacations.append(VacationEntry(id="v", start_date=date(2025, 1, 13), end_date=date(2025, 1, 15), days=3))
        with pytest.raises(ConflictError, match="vacation day scheduled for Jan 14th, 2025"):
            tracker.add_time_entry("2025-01-14", "09:00", "17:00")

    def test_sick_conflict(self, tracker, store):
        store.sick_days.append(SickEntry(id="s", start_date=date(2025, 1, 14), end_date=date(2025, 1, 14), days=1))
        with pytest.raises(ConflictError, match="sick day scheduled for Jan 14th, 2025"):
            tracker.add_time_entry("2025-01-14", "09:00", "17:00")


class TestSnapshot:
    """Tests for the timer snapshot."""

    def test_snapshot(self, config, store, clock):
        """Test elapsed, today's total and the projected end."""
        clock.now = datetime(2025, 1, 14, 10, 0, tzinfo=UTC)
        store.time_entries.append(
            TimeEntry(
                id="early",
                date=date(2025, 1, 14),
                start_time=datetime(2025, 1, 14, 5, 0, tzinfo=UTC),
                end_time=datetime(2025, 1, 14, 7, 0, tzinfo=UTC),
            )
        )
        session = _start_session(store, datetime(2025, 1, 14, 8, 0, tzinfo=UTC), paused_ms=15 * 60_000)

        snap = SessionTracker(config, store, clock).snapshot()

        assert snap.elapsed_ms == 105 * 60_000
        assert snap.todays_total_ms == (120 + 105) * 60_000
        assert snap.daily_target_ms == 8 * 3_600_000
        assert snap.paused_ms == 15 * 60_000
        assert snap.expected_end == session.start_time + timedelta(hours=6, minutes=15)
        assert not snap.is_paused

    def test_snapshot_target_already_met(self, config, store, clock):
        """Test that the projected end never lies before the start plus pauses."""
        clock.now = datetime(2025, 1, 14, 18, 0, tzinfo=UTC)
        store.time_entries.append(
            TimeEntry(
                id="long",
                date=date(2025, 1, 14),
                start_time=datetime(2025, 1, 14, 6, 0, tzinfo=UTC),
                end_time=datetime(2025, 1, 14, 16, 0, tzinfo=UTC),
            )
        )
        session = _start_session(store, datetime(2025, 1, 14, 17, 0, tzinfo=UTC))
        snap = SessionTracker(config, store, clock).snapshot()
        assert snap.expected_end == session.start_time

    def test_snapshot_without_session(self, config, store, clock):
        with pytest.raises(NotFoundError):
            SessionTracker(config, store, clock).snapshot()
