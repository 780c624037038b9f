"""The live work session: start, pause, resume, stop, plus manual entries."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Callable

from errors import ConflictError, NotFoundError, ValidationError
from models import Config, TimeEntry, WorkSession
from overlap import SICK, VACATION, OverlapGuard
from storage import DataStore
from utils import (
    MS_PER_MINUTE,
    current_paused_ms,
    elapsed_ms,
    format_day_year,
    generate_id,
    local_date,
    ms_between,
    pause_duration_ms,
    utc_now,
)

if TYPE_CHECKING:
    from prompts import Prompter

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def target_daily_minutes(config: Config) -> int:
    """Daily target in whole minutes, halves rounded up."""
    return math.floor(config.daily_hours * 60 + 0.5)


def suggest_pause_minutes(gross_minutes: float, target_minutes: int) -> int:
    """Pause that would trim the session down to the daily target."""
    return max(0, math.floor(gross_minutes - target_minutes))


@dataclass
class StopResult:
    entry: TimeEntry
    suggested_pause: int = 0
    pause_applied: bool = False

    @property
    def working_ms(self) -> int:
        return self.entry.working_ms


@dataclass
class TimerSnapshot:
    """Everything the timer view shows at one instant."""

    now: datetime
    start_time: datetime
    elapsed_ms: int
    todays_total_ms: int
    expected_end: datetime
    daily_target_ms: float
    paused_ms: int
    is_paused: bool


class SessionTracker:
    def __init__(self, config: Config, store: DataStore | None = None, clock: Callable[[], datetime] = utc_now):
        self.config = config
        self.store = store or DataStore(config.data_directory)
        self.clock = clock
        self.guard = OverlapGuard(self.store)

    def today(self) -> date:
        return local_date(self.clock(), self.config.tzinfo)

    def current_session(self) -> WorkSession | None:
        return self.store.session.load()

    def _require_session(self) -> WorkSession:
        session = self.store.session.load()
        if session is None:
            raise NotFoundError("No active tracking session found.")
        return session

    def start(self) -> WorkSession:
        if self.store.session.exists():
            raise ConflictError("A tracking session is already active!")

        today = self.today()
        leave = self.guard.leave_on(today)
        if leave == VACATION:
            raise ConflictError("Cannot start time tracking: vacation day scheduled for today.", [today])
        if leave == SICK:
            raise ConflictError("Cannot start time tracking: sick day scheduled for today.", [today])

        session = WorkSession(start_time=self.clock())
        self.store.session.save(session)
        logger.info("Started session at %s", session.start_time)
        return session

    def pause(self) -> WorkSession:
        session = self._require_session()
        if session.is_paused:
            raise ConflictError("Session is already paused.")

        session.is_paused = True
        session.pause_start_time = self.clock()
        self.store.session.save(session)
        logger.info("Paused session at %s", session.pause_start_time)
        return session

    def resume(self) -> WorkSession:
        session = self._require_session()
        if not session.is_paused:
            raise ConflictError("Session is not paused.")

        now = self.clock()
        session.paused_time_ms += pause_duration_ms(now, session.pause_start_time)
        session.is_paused = False
        session.pause_start_time = None
        self.store.session.save(session)
        logger.info("Resumed session, %d ms paused in total", session.paused_time_ms)
        return session

    def stop(self, prompter: Prompter | None = None) -> StopResult:
        """End the session and store it as a time entry.

        When the session ran past the daily target the prompter is asked
        whether the overrun should be booked as pause instead. An accepted
        suggestion replaces the tracked pause.
        """
        session = self._require_session()
        end_time = self.clock()

        pause_minutes = current_paused_ms(session, end_time) / MS_PER_MINUTE
        gross_minutes = ms_between(session.start_time, end_time) / MS_PER_MINUTE

        suggested = 0
        applied = False
        if self.config.working_days_count:
            suggested = suggest_pause_minutes(gross_minutes, target_daily_minutes(self.config))
            if suggested > 0 and suggested > pause_minutes and prompter is not None:
                question = (
                    f"You worked {gross_minutes / 60:.1f}h, past your daily target. "
                    f"Book a pause of {suggested} minutes instead of {pause_minutes:.0f}?"
                )
                if prompter.confirm(question, default=True):
                    pause_minutes = suggested
                    applied = True

        entry = TimeEntry(
            id=generate_id(),
            date=local_date(session.start_time, self.config.tzinfo),
            start_time=session.start_time,
            end_time=end_time,
            pause_time=pause_minutes,
            type="work",
        )
        self.store.time_entries.append(entry)
        self.store.session.clear()
        logger.info("Stopped session, stored entry %s with %.1f min pause", entry.id, pause_minutes)
        return StopResult(entry=entry, suggested_pause=suggested, pause_applied=applied)

    def add_time_entry(
        self,
        entry_date: str,
        start: str,
        end: str,
        description: str | None = None,
        pause_minutes: float = 0,
    ) -> TimeEntry:
        """Record a finished work block after the fact.

        Times are "H:MM" on a 24h clock in the configured timezone.
        """
        if not isinstance(entry_date, str) or not _DATE_RE.match(entry_date):
            raise ValidationError("Invalid date format. Please use YYYY-MM-DD format.")
        try:
            day = date.fromisoformat(entry_date)
        except ValueError as exc:
            raise ValidationError("Invalid date format. Please use YYYY-MM-DD format.") from exc

        start_t = _parse_clock(start)
        if start_t is None:
            raise ValidationError("Invalid start time format. Please use HH:MM format (24-hour).")
        end_t = _parse_clock(end)
        if end_t is None:
            raise ValidationError("Invalid end time format. Please use HH:MM format (24-hour).")

        pause_minutes = pause_minutes or 0
        if not math.isfinite(pause_minutes):
            raise ValidationError("Pause time must be a number of minutes.")
        if pause_minutes < 0:
            raise ValidationError("Pause time cannot be negative.")
        if day > self.today():
            raise ValidationError("Cannot add time entries for future dates.")

        tz = self.config.tzinfo
        start_dt = datetime.combine(day, start_t, tzinfo=tz)
        end_dt = datetime.combine(day, end_t, tzinfo=tz)
        if end_dt <= start_dt:
            raise ValidationError("End time must be after start time.")
        if (end_dt - start_dt) <= timedelta(minutes=pause_minutes):
            raise ValidationError("Work session must be longer than the pause time.")

        pretty = format_day_year(day)
        if any(e.date == day for e in self.store.time_entries.load_all()):
            raise ConflictError(f"A time entry already exists for {pretty}.", [day])
        leave = self.guard.leave_on(day)
        if leave == VACATION:
            raise ConflictError(f"Cannot add time entry: vacation day scheduled for {pretty}.", [day])
        if leave == SICK:
            raise ConflictError(f"Cannot add time entry: sick day scheduled for {pretty}.", [day])

        entry = TimeEntry(
            id=generate_id(),
            date=day,
            start_time=start_dt,
            end_time=end_dt,
            pause_time=pause_minutes,
            type="work",
            description=description or None,
        )
        self.store.time_entries.append(entry)
        logger.info("Added time entry %s for %s", entry.id, day)
        return entry

    def completed_ms_on(self, day: date) -> int:
        return sum(e.working_ms for e in self.store.time_entries.load_all() if e.date == day and e.is_closed)

    def snapshot(self, session: WorkSession | None = None, now: datetime | None = None) -> TimerSnapshot:
        session = session or self._require_session()
        now = now or self.clock()

        daily_ms = self.config.daily_ms
        completed = self.completed_ms_on(local_date(session.start_time, self.config.tzinfo))
        live = elapsed_ms(session, now)
        remaining = max(0, daily_ms - completed)
        paused = current_paused_ms(session, now)

        return TimerSnapshot(
            now=now,
            start_time=session.start_time,
            elapsed_ms=live,
            todays_total_ms=completed + live,
            expected_end=session.start_time + timedelta(milliseconds=remaining + paused),
            daily_target_ms=daily_ms,
            paused_ms=paused,
            is_paused=session.is_paused,
        )


def _parse_clock(value: str) -> time | None:
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))
