"""Date and time helpers for session and leave arithmetic."""

from __future__ import annotations

import secrets
import time as time_module
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models import WorkSession

WEEKDAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Millisecond timestamp plus random suffix, both base 36."""
    stamp = int(time_module.time() * 1000)
    return _base36(stamp) + _base36(secrets.randbits(52))


def _base36(n: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        n, rem = divmod(n, 36)
        out = digits[rem] + out
        if not n:
            return out


def parse_datetime(value: datetime | date | str | None) -> datetime | None:
    """Parse an ISO-8601 value into an aware datetime, or None if it is not one.

    Naive values are taken as UTC. A bare date becomes midnight UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    elif not isinstance(value, str):
        return None
    else:
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_date(value: str | None) -> date | None:
    """Parse an ISO date (time part ignored), or None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def is_valid_date_string(value: str | None) -> bool:
    return parse_datetime(value) is not None


def to_iso(dt: datetime) -> str:
    """Format as UTC ISO-8601 with milliseconds and a Z suffix."""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def ms_between(start: datetime, end: datetime) -> int:
    return (end - start) // ONE_MS


def working_time_ms(
    start: datetime | str | None,
    end: datetime | str | None,
    pause_minutes: float | None = 0,
) -> int:
    """Net working time: end - start - pause, never negative."""
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)
    if start_dt is None or end_dt is None:
        return 0
    try:
        pause_ms = float(pause_minutes or 0) * MS_PER_MINUTE
    except (TypeError, ValueError):
        return 0
    working = ms_between(start_dt, end_dt) - pause_ms
    # NaN compares False, so it falls through to 0 as well
    if working > 0:
        return int(working)
    return 0


def pause_duration_ms(now: datetime, pause_start: datetime | str | None) -> int:
    """Length of an open pause.

    An unparsable start, or one that lies after `now`, contributes nothing.
    """
    start = parse_datetime(pause_start)
    if start is None:
        return 0
    return max(0, ms_between(start, now))


def current_paused_ms(session: WorkSession, now: datetime) -> int:
    """Accumulated pause plus the pause currently open, if any."""
    paused = session.paused_time_ms
    if session.is_paused:
        paused += pause_duration_ms(now, session.pause_start_time)
    return paused


def elapsed_ms(session: WorkSession, now: datetime) -> int:
    """Live session time with all pauses removed. Display only."""
    return ms_between(session.start_time, now) - current_paused_ms(session, now)


def local_date(dt: datetime, tz: tzinfo) -> date:
    """The calendar day of `dt` in the given zone."""
    return dt.astimezone(tz).date()


def start_of_day(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time(), tzinfo=tz)


def get_week_start(d: date) -> date:
    """Get the Monday that starts the ISO week containing date d."""
    return d - timedelta(days=d.weekday())


def get_week_bounds(d: date) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing d."""
    start = get_week_start(d)
    return start, start + timedelta(days=6)


def date_range(start: date, end: date) -> list[date]:
    """Every date from start to end, both inclusive."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_day(d: date) -> str:
    """Short human date, e.g. 'Jan 14th'."""
    return f"{d.strftime('%b')} {_ordinal(d.day)}"


def format_day_year(d: date) -> str:
    """e.g. 'Jan 14th, 2025'."""
    return f"{format_day(d)}, {d.year}"


def format_duration(ms: float) -> str:
    """HH:MM:SS; negative durations render as 00:00:00."""
    total_seconds = max(0, int(ms // 1000))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hh_mm(ms: float) -> str:
    total_minutes = max(0, int(ms // MS_PER_MINUTE))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"
