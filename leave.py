"""Vacation and sick leave bookkeeping."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable

from errors import ValidationError
from models import Config, SickEntry, VacationEntry
from overlap import SICK, VACATION, OverlapGuard
from storage import DataStore
from utils import date_range, generate_id, local_date, parse_date, utc_now

logger = logging.getLogger(__name__)

FIRST_WORKING_DAY_LOOKAHEAD = 14
MAX_SEARCH_DAYS = 365


def _plural(n: int | float, word: str) -> str:
    return f"{n:g} {word}" if n == 1 else f"{n:g} {word}s"


def validate_day_count(days: int | float, label: str) -> int:
    """Whole, positive number of days."""
    if isinstance(days, bool) or not isinstance(days, (int, float)):
        raise ValidationError(f"Number of {label} must be a number.")
    if days <= 0:
        raise ValidationError(f"Number of {label} must be positive.")
    if isinstance(days, float) and not days.is_integer():
        raise ValidationError(f"{label.capitalize()} must be a whole number. Fractions are not allowed.")
    return int(days)


class LeaveManager:
    """Shared plumbing for the leave managers."""

    def __init__(self, config: Config, store: DataStore | None = None, clock: Callable[[], datetime] = utc_now):
        self.config = config
        self.store = store or DataStore(config.data_directory)
        self.clock = clock
        self.guard = OverlapGuard(self.store)

    def today(self) -> date:
        return local_date(self.clock(), self.config.tzinfo)

    def _resolve_date(self, value: date | str | None) -> date:
        if value is None or value == "":
            return self.today()
        if isinstance(value, date):
            return value
        parsed = parse_date(value)
        if parsed is None:
            raise ValidationError(f"Invalid date: {value!r}. Please use YYYY-MM-DD format.")
        return parsed

    def find_next_working_day(self, d: date) -> date | None:
        cursor = d
        for _ in range(FIRST_WORKING_DAY_LOOKAHEAD):
            if self.config.is_working_day(cursor):
                return cursor
            cursor += timedelta(days=1)
        return None

    def working_days_in_range(self, start: date, end: date) -> list[date]:
        return [d for d in date_range(start, end) if self.config.is_working_day(d)]


class VacationManager(LeaveManager):
    """Vacation spans count working days only."""

    def add_vacation(self, days: int | float, start_date: date | str | None = None) -> VacationEntry:
        """Book `days` working days starting on, or after, start_date (default today)."""
        requested = validate_day_count(days, "vacation days")

        first = self.find_next_working_day(self._resolve_date(start_date))
        if first is None:
            raise ValidationError("Could not determine a working day to start vacation.")

        collected: list[date] = []
        cursor = first
        while len(collected) < requested and (cursor - first).days <= MAX_SEARCH_DAYS:
            if self.config.is_working_day(cursor):
                collected.append(cursor)
            cursor += timedelta(days=1)

        if len(collected) < requested:
            raise ValidationError("Could not find enough working days within a reasonable timeframe.")

        self.guard.check_all(collected, "vacation", VACATION)

        entry = VacationEntry(
            id=generate_id(),
            start_date=collected[0],
            end_date=collected[-1],
            days=requested,
            description=_plural(requested, "vacation day"),
        )
        self.store.vacations.append(entry)
        logger.info("Added vacation %s - %s (%d days)", entry.start_date, entry.end_date, entry.days)
        return entry

    def add_vacation_range(self, start_date: date | str, end_date: date | str) -> VacationEntry | None:
        """Book every working day between the two dates.

        Returns None, writing nothing, if the range holds no working day.
        """
        start = self._resolve_date(start_date)
        end = self._resolve_date(end_date)
        if start > end:
            raise ValidationError("Start date must be before end date.")

        working_days = self.working_days_in_range(start, end)
        if not working_days:
            logger.warning("No working days between %s and %s", start, end)
            return None

        self.guard.check_all(working_days, "vacation range", VACATION)

        count = len(working_days)
        entry = VacationEntry(
            id=generate_id(),
            start_date=start,
            end_date=end,
            days=count,
            description=f"Vacation range: {_plural(count, 'working day')}",
        )
        self.store.vacations.append(entry)
        logger.info("Added vacation range %s - %s (%d working days)", start, end, count)
        return entry

    def vacation_entries(self) -> list[VacationEntry]:
        return sorted(self.store.vacations.load_all(), key=lambda e: e.start_date)

    def get_total_vacation_days(self) -> int | float:
        return sum(entry.days for entry in self.store.vacations.load_all())

    def get_remaining_vacation_days(self) -> float:
        return max(0, self.config.vacation_days_per_year - self.get_total_vacation_days())


class SickManager(LeaveManager):
    """Sick spans are consecutive calendar days, weekends included."""

    def add_sick_days(
        self,
        days: int | float,
        description: str | None = None,
        start_date: date | str | None = None,
    ) -> SickEntry:
        requested = validate_day_count(days, "sick days")
        start = self._resolve_date(start_date)
        sick_dates = [start + timedelta(days=i) for i in range(requested)]

        self.guard.check_all(sick_dates, "sick days", SICK)

        entry = SickEntry(
            id=generate_id(),
            start_date=sick_dates[0],
            end_date=sick_dates[-1],
            days=requested,
            description=description or _plural(requested, "sick day"),
        )
        self.store.sick_days.append(entry)
        logger.info("Added sick leave %s - %s (%d days)", entry.start_date, entry.end_date, entry.days)
        return entry

    def sick_entries(self) -> list[SickEntry]:
        return sorted(self.store.sick_days.load_all(), key=lambda e: e.start_date)

    def get_total_sick_days(self) -> int | float:
        return sum(entry.days for entry in self.store.sick_days.load_all())
