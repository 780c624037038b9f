from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import ClassVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from errors import ConfigError
from utils import WEEKDAY_NAMES, working_time_ms


@dataclass
class WorkingDay:
    day: str
    is_working_day: bool


def default_working_days() -> list[WorkingDay]:
    """Monday to Friday."""
    return [WorkingDay(day=name, is_working_day=i < 5) for i, name in enumerate(WEEKDAY_NAMES)]


@dataclass
class Config:
    name: str = ""
    hours_per_week: float = 40.0
    vacation_days_per_year: float = 25.0
    working_days: list[WorkingDay] = field(default_factory=default_working_days)
    data_directory: Path = field(default_factory=lambda: Path.home() / "clockin-data")
    timezone: str = "UTC"
    setup_completed: bool = False
    start_date: date | None = None
    country: str = "DE"
    region: str = "BY"

    def validate(self) -> None:
        """Raise ConfigError if any field is out of range."""
        if not 0 < self.hours_per_week <= 168:
            raise ConfigError(f"Hours per week must be between 0 and 168, got {self.hours_per_week}")
        if self.vacation_days_per_year < 0:
            raise ConfigError("Vacation days per year cannot be negative")

        names = [wd.day for wd in self.working_days]
        if len(names) != 7 or set(names) != set(WEEKDAY_NAMES):
            raise ConfigError("Working days must list each weekday exactly once")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown timezone: {self.timezone}") from exc

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def working_days_count(self) -> int:
        return sum(1 for wd in self.working_days if wd.is_working_day)

    @property
    def daily_hours(self) -> float:
        """Expected hours for one working day."""
        if not self.working_days_count:
            return 0.0
        return self.hours_per_week / self.working_days_count

    @property
    def daily_ms(self) -> float:
        return self.daily_hours * 3_600_000

    def is_working_day(self, d: date) -> bool:
        name = WEEKDAY_NAMES[d.weekday()]
        return any(wd.day == name and wd.is_working_day for wd in self.working_days)

    def working_day_names(self) -> list[str]:
        return [wd.day.capitalize() for wd in self.working_days if wd.is_working_day]


@dataclass
class TimeEntry:
    id: str
    date: date
    start_time: datetime
    end_time: datetime | None = None
    pause_time: float = 0.0
    type: str = "work"
    description: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.end_time is not None

    @property
    def working_ms(self) -> int:
        """Net working time in milliseconds (0 while open)."""
        return working_time_ms(self.start_time, self.end_time, self.pause_time)


@dataclass
class LeaveEntry:
    """A contiguous leave span; both ends are inclusive."""

    kind: ClassVar[str] = "leave"

    id: str
    start_date: date
    end_date: date
    days: int
    description: str | None = None

    def covers(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date

    def dates(self) -> list[date]:
        """Every calendar date in the span."""
        span = (self.end_date - self.start_date).days
        return [self.start_date + timedelta(days=i) for i in range(span + 1)]


@dataclass
class VacationEntry(LeaveEntry):
    kind: ClassVar[str] = "vacation"


@dataclass
class SickEntry(LeaveEntry):
    kind: ClassVar[str] = "sick"


@dataclass
class HolidayEntry:
    id: str
    date: date
    name: str
    country: str
    region: str


@dataclass
class WorkSession:
    start_time: datetime
    paused_time_ms: int = 0
    is_paused: bool = False
    pause_start_time: datetime | None = None


@dataclass
class WeeklyRow:
    date: date
    entry_type: str
    hours_ms: float
    start_time: datetime | None = None
    end_time: datetime | None = None
    pause_minutes: float = 0.0
    description: str | None = None

    @property
    def is_leave(self) -> bool:
        return self.entry_type != "work"


@dataclass
class WeeklySummary:
    week_start: date
    week_end: date
    expected_weekly_hours: float
    rows: list[WeeklyRow] = field(default_factory=list)

    @property
    def total_ms(self) -> float:
        return sum(row.hours_ms for row in self.rows)

    @property
    def difference_hours(self) -> float:
        return self.total_ms / 3_600_000 - self.expected_weekly_hours

    @property
    def overtime(self) -> bool:
        return self.difference_hours > 0

    @property
    def undertime(self) -> bool:
        return self.difference_hours < 0


@dataclass
class SummaryData:
    baseline: date
    elapsed_weeks: float
    expected_hours: float
    total_worked_ms: float
    current_week_ms: float
    total_vacation_days: int
    remaining_vacation_days: float
    total_sick_days: int
    working_holidays: int
    expected_hours_per_week: float

    @property
    def overtime_ms(self) -> float:
        """Credited minus expected; negative means undertime."""
        return self.total_worked_ms - self.expected_hours * 3_600_000
