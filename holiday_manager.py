"""Public holiday import and lookup."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Protocol

import holidays

from errors import HolidaySourceError
from models import Config, HolidayEntry
from storage import DataStore
from utils import local_date, utc_now

logger = logging.getLogger(__name__)

# Holiday categories that count as work-free
WORK_FREE_HOLIDAY_TYPES = frozenset({"public", "bank"})


@dataclass
class RawHoliday:
    date: date
    name: str
    type: str
    is_substitute: bool = False


class HolidaySource(Protocol):
    def fetch(self, year: int, country: str, region: str) -> list[RawHoliday]:
        """Holiday definitions for a region; empty if the region is unknown."""
        ...


class PythonHolidaysSource:
    """Reads holiday definitions from the `holidays` package."""

    def _build(self, country: str, region: str, year: int, category: str, observed: bool):
        return holidays.country_holidays(
            country,
            subdiv=region or None,
            years=year,
            categories=(category,),
            observed=observed,
        )

    def fetch(self, year: int, country: str, region: str) -> list[RawHoliday]:
        try:
            base = holidays.country_holidays(country, subdiv=region or None, years=year)
        except NotImplementedError:
            logger.debug("holidays has no calendar for %s-%s", country, region)
            return []

        raw: list[RawHoliday] = []
        for category in base.supported_categories:
            with_observed = self._build(country, region, year, category, observed=True)
            plain = self._build(country, region, year, category, observed=False)
            for day in sorted(with_observed):
                plain_names = set(plain.get_list(day)) if day in plain else set()
                for name in with_observed.get_list(day):
                    raw.append(
                        RawHoliday(
                            date=day,
                            name=name,
                            type=category,
                            is_substitute=name not in plain_names,
                        )
                    )
        return raw


def build_holiday_id(country: str, region: str, day: date | str, name: str) -> str:
    """Stable id from a hash of the fields, so delimiters inside names cannot collide."""
    day_str = day.isoformat() if isinstance(day, date) else day
    payload = f"{country}|{region}|{day_str}|{name}"
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()[:24]
    return f"hol_{digest}"


@dataclass
class HolidayInitResult:
    year: int
    country: str
    region: str
    status: str  # "created", "replaced" or "skipped"
    entries: list[HolidayEntry] = field(default_factory=list)
    existing: int = 0

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


class HolidayManager:
    def __init__(
        self,
        config: Config,
        store: DataStore | None = None,
        source: HolidaySource | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.store = store or DataStore(config.data_directory)
        self.source = source or PythonHolidaysSource()
        self.clock = clock

    def init_holidays(
        self,
        year: int | None = None,
        country: str | None = None,
        region: str | None = None,
        force: bool = False,
    ) -> HolidayInitResult:
        """Import the holidays of one year and region.

        Does nothing if that year and region were imported before, unless
        `force` is set, in which case the earlier import is replaced.
        """
        year = year or local_date(self.clock(), self.config.tzinfo).year
        country = (country or self.config.country).upper()
        region = (region or self.config.region).upper()

        stored = self.store.holidays.load_all()
        matches = [h for h in stored if self._matches(h, year, country, region)]

        if matches and not force:
            logger.warning(
                "Holidays for %s (%s-%s) already exist (%d entries)", year, country, region, len(matches)
            )
            return HolidayInitResult(year, country, region, "skipped", existing=len(matches))

        entries = self._fetch(year, country, region)

        if matches:
            others = [h for h in stored if not self._matches(h, year, country, region)]
            logger.info("Replacing %d holidays for %s (%s-%s)", len(matches), year, country, region)
            self.store.holidays.rewrite_all(others + entries)
            status = "replaced"
        else:
            for entry in entries:
                self.store.holidays.append(entry)
            status = "created"

        logger.info("Stored %d holidays for %s (%s-%s)", len(entries), year, country, region)
        return HolidayInitResult(year, country, region, status, entries=entries, existing=len(matches))

    @staticmethod
    def _matches(entry: HolidayEntry, year: int, country: str, region: str) -> bool:
        return entry.country == country and entry.region == region and entry.date.year == year

    def _fetch(self, year: int, country: str, region: str) -> list[HolidayEntry]:
        raw = self.source.fetch(year, country, region)
        if not raw:
            raise HolidaySourceError(
                f"No holidays found for {country}-{region} in {year}. "
                "Check that the country/region codes are supported."
            )

        entries: dict[tuple[date, str], HolidayEntry] = {}
        for holiday in raw:
            if holiday.type.lower() not in WORK_FREE_HOLIDAY_TYPES:
                continue
            if holiday.is_substitute:
                continue
            day = holiday.date.date() if isinstance(holiday.date, datetime) else holiday.date
            key = (day, holiday.name)
            if key in entries:
                continue
            entries[key] = HolidayEntry(
                id=build_holiday_id(country, region, day, holiday.name),
                date=day,
                name=holiday.name,
                country=country,
                region=region,
            )

        return [entries[key] for key in sorted(entries)]

    def holidays(self, year: int | None = None) -> list[HolidayEntry]:
        stored = self.store.holidays.load_all()
        if year is not None:
            stored = [h for h in stored if h.date.year == year]
        return sorted(stored, key=lambda h: (h.date, h.name))

    def is_holiday(self, d: date) -> bool:
        return any(h.date == d for h in self.store.holidays.load_all())

    def get_holiday_dates(self, start: date, end: date) -> list[date]:
        """Holiday dates between start and end, both inclusive."""
        return [h.date for h in self.store.holidays.load_all() if start <= h.date <= end]

    def get_holiday_count(self, start: date, end: date) -> int:
        return len(self.get_holiday_dates(start, end))
