"""Weekly and overall hour accounting."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Callable

from leave import SickManager, VacationManager
from models import Config, SummaryData, TimeEntry, WeeklyRow, WeeklySummary
from storage import DataStore
from utils import MS_PER_HOUR, date_range, get_week_bounds, local_date, start_of_day, utc_now

logger = logging.getLogger(__name__)

HOLIDAY = "holiday"
SICK = "sick"
VACATION = "vacation"
WORK = "work"


def format_hours(ms: float) -> str:
    """Signed hours with one decimal, e.g. '4.8h' or '-0.2h'.

    Anything that rounds to zero renders as '0.0h', never '-0.0h'.
    """
    if ms is None or not math.isfinite(ms):
        return "0.0h"
    try:
        hours = (Decimal(ms) / MS_PER_HOUR).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # too large for the default Decimal precision
        return f"{ms / MS_PER_HOUR:.1f}h"
    if hours == 0:
        return "0.0h"
    return f"{hours}h"


class SummaryEngine:
    def __init__(self, config: Config, store: DataStore | None = None, clock: Callable[[], datetime] = utc_now):
        self.config = config
        self.store = store or DataStore(config.data_directory)
        self.clock = clock
        self.vacations = VacationManager(config, self.store, clock)
        self.sick = SickManager(config, self.store, clock)

    def today(self) -> date:
        return local_date(self.clock(), self.config.tzinfo)

    def weekly_summary(self, anchor: date | None = None) -> WeeklySummary:
        """Rows for the ISO week holding `anchor` (default today).

        A working day covered by leave gets one leave row, chosen by
        holiday > sick > vacation. Days with finished time entries also get
        one work row summing those entries.
        """
        week_start, week_end = get_week_bounds(anchor or self.today())

        holiday_names: dict[date, str] = {}
        for holiday in self.store.holidays.load_all():
            if week_start <= holiday.date <= week_end:
                holiday_names.setdefault(holiday.date, holiday.name)
        sick_spans = self.store.sick_days.load_all()
        vacation_spans = self.store.vacations.load_all()

        by_date: dict[date, list[TimeEntry]] = {}
        for entry in self.store.time_entries.load_all():
            if entry.is_closed and week_start <= entry.date <= week_end:
                by_date.setdefault(entry.date, []).append(entry)

        daily_ms = self.config.daily_ms
        rows: list[WeeklyRow] = []
        for day in date_range(week_start, week_end):
            if self.config.is_working_day(day):
                leave_row = self._leave_row(day, daily_ms, holiday_names, sick_spans, vacation_spans)
                if leave_row is not None:
                    rows.append(leave_row)

            entries = by_date.get(day)
            if entries:
                rows.append(
                    WeeklyRow(
                        date=day,
                        entry_type=WORK,
                        hours_ms=sum(e.working_ms for e in entries),
                        start_time=min(e.start_time for e in entries),
                        end_time=max(e.end_time for e in entries),
                        pause_minutes=sum(e.pause_time for e in entries),
                        description="; ".join(e.description for e in entries if e.description) or None,
                    )
                )

        return WeeklySummary(
            week_start=week_start,
            week_end=week_end,
            expected_weekly_hours=self.config.hours_per_week,
            rows=rows,
        )

    @staticmethod
    def _leave_row(day, daily_ms, holiday_names, sick_spans, vacation_spans) -> WeeklyRow | None:
        if day in holiday_names:
            return WeeklyRow(date=day, entry_type=HOLIDAY, hours_ms=daily_ms, description=holiday_names[day])
        for kind, spans in ((SICK, sick_spans), (VACATION, vacation_spans)):
            for span in spans:
                if span.covers(day):
                    return WeeklyRow(date=day, entry_type=kind, hours_ms=daily_ms, description=span.description)
        return None

    def baseline(self) -> date:
        """Employment start, else the first tracked day, else today."""
        if self.config.start_date:
            return self.config.start_date
        dates = [e.date for e in self.store.time_entries.load_all()]
        if dates:
            return min(dates)
        return self.today()

    def leave_dates(self) -> set[date]:
        dates: set[date] = set()
        for entry in self.store.vacations.load_all():
            dates.update(entry.dates())
        for entry in self.store.sick_days.load_all():
            dates.update(entry.dates())
        return dates

    def working_holidays(self, baseline: date, today: date) -> int:
        """Holidays to credit: elapsed, on a working weekday, not already leave."""
        leave = self.leave_dates()
        dates = {
            h.date
            for h in self.store.holidays.load_all()
            if baseline <= h.date <= today and self.config.is_working_day(h.date) and h.date not in leave
        }
        return len(dates)

    def summary(self) -> SummaryData:
        now = self.clock()
        today = local_date(now, self.config.tzinfo)
        week_start, week_end = get_week_bounds(today)

        baseline = self.baseline()
        elapsed = now - start_of_day(baseline, self.config.tzinfo)
        elapsed_weeks = max(0.0, elapsed / timedelta(weeks=1))
        expected_hours = elapsed_weeks * self.config.hours_per_week

        worked_ms = 0
        current_week_ms = 0
        for entry in self.store.time_entries.load_all():
            if not entry.is_closed:
                continue
            worked_ms += entry.working_ms
            if week_start <= entry.date <= week_end:
                current_week_ms += entry.working_ms

        vacation_days = self.vacations.get_total_vacation_days()
        sick_days = self.sick.get_total_sick_days()
        holidays = self.working_holidays(baseline, today)

        credited_days = vacation_days + sick_days + holidays
        total_ms = worked_ms + credited_days * self.config.daily_ms
        logger.debug(
            "Summary since %s: %d ms tracked, %s leave/holiday days credited", baseline, worked_ms, credited_days
        )

        return SummaryData(
            baseline=baseline,
            elapsed_weeks=elapsed_weeks,
            expected_hours=expected_hours,
            total_worked_ms=total_ms,
            current_week_ms=current_week_ms,
            total_vacation_days=vacation_days,
            remaining_vacation_days=self.vacations.get_remaining_vacation_days(),
            total_sick_days=sick_days,
            working_holidays=holidays,
            expected_hours_per_week=self.config.hours_per_week,
        )

    def ensure_time_entries_csv(self) -> tuple[Path, bool]:
        """Path of the time-entry CSV, creating a header-only file if needed.

        The flag says whether the file was created.
        """
        store = self.store.time_entries
        created = not store.path.exists()
        if created:
            store.write_header()
            logger.info("Created empty %s", store.path)
        return store.path, created
