from __future__ import annotations

import csv
import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Generic, Iterable, TypeVar

from errors import StorageError
from models import HolidayEntry, SickEntry, TimeEntry, VacationEntry, WorkSession
from utils import parse_datetime, to_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIME_ENTRIES_FILE = "time-entries.csv"
VACATION_ENTRIES_FILE = "vacation-entries.csv"
SICK_ENTRIES_FILE = "sick-entries.csv"
HOLIDAY_ENTRIES_FILE = "holiday-entries.csv"
SESSION_FILE = "current-session.json"

# Older files were written with field ids instead of titles
_HEADER_ALIASES = {
    "id": "ID",
    "date": "Date",
    "startTime": "Start Time",
    "endTime": "End Time",
    "pauseTime": "Pause Time (minutes)",
    "type": "Type",
    "description": "Description",
    "startDate": "Start Date",
    "endDate": "End Date",
    "days": "Days",
    "name": "Name",
    "country": "Country",
    "region": "Region",
}

_SESSION_ALIASES = {
    "startTime": "start_time",
    "pausedTime": "paused_time_ms",
    "isPaused": "is_paused",
    "pauseStartTime": "pause_start_time",
}


def _parse_date(val: str | None) -> date:
    if not val:
        raise ValueError("missing date")
    return date.fromisoformat(val.strip()[:10])


def _parse_timestamp(val: str | None):
    dt = parse_datetime(val)
    if dt is None:
        raise ValueError(f"invalid timestamp {val!r}")
    return dt


def _parse_number(val: str | None) -> int | float:
    """Whole numbers come back as int; legacy fractional values stay float."""
    if val is None or val.strip() == "":
        return 0
    number = float(val)
    if number.is_integer():
        return int(number)
    return number


def _format_number(val: float) -> str:
    if float(val).is_integer():
        return str(int(val))
    return str(val)


class CsvStore(Generic[T]):
    """Flat CSV store for one entry type."""

    filename = ""
    headers: list[str] = []

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        return self.data_dir / self.filename

    def load_all(self) -> list[T]:
        """Read every record; a missing file is an empty store."""
        if not self.path.exists():
            return []

        try:
            return self._read_entries()
        except (UnicodeDecodeError, csv.Error) as exc:
            raise StorageError(f"{self.path}: unreadable file: {exc}") from exc

    def _read_entries(self) -> list[T]:
        entries: list[T] = []
        with self.path.open(newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            if reader.fieldnames is None:
                return []
            fieldnames = [_HEADER_ALIASES.get(name.strip(), name.strip()) for name in reader.fieldnames]
            missing = [h for h in self.headers if h not in fieldnames and h != "Description"]
            if missing:
                raise StorageError(f"{self.path}: missing column(s) {', '.join(missing)}")
            reader.fieldnames = fieldnames

            for row in reader:
                try:
                    entries.append(self._row_to_entry(row))
                except (ValueError, TypeError, KeyError) as exc:
                    raise StorageError(f"{self.path}:{reader.line_num}: {exc}") from exc
        return entries

    def append(self, entry: T) -> None:
        """Add one record without touching the others."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        write_header = not self.path.exists() or self.path.stat().st_size == 0
        with self.path.open("a", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.headers)
            if write_header:
                writer.writeheader()
            writer.writerow(self._entry_to_row(entry))
        logger.debug("Appended %s to %s", type(entry).__name__, self.path)

    def rewrite_all(self, entries: Iterable[T]) -> None:
        """Replace the whole store; the swap is atomic."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{self.filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(handle, fieldnames=self.headers)
                writer.writeheader()
                for entry in entries:
                    writer.writerow(self._entry_to_row(entry))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Rewrote %s", self.path)

    def write_header(self) -> None:
        """Create an empty store holding only the header row."""
        if not self.path.exists():
            self.rewrite_all([])

    def _row_to_entry(self, row: dict) -> T:
        raise NotImplementedError

    def _entry_to_row(self, entry: T) -> dict:
        raise NotImplementedError


class TimeEntryStore(CsvStore[TimeEntry]):
    filename = TIME_ENTRIES_FILE
    headers = ["ID", "Date", "Start Time", "End Time", "Pause Time (minutes)", "Type", "Description"]

    def _row_to_entry(self, row: dict) -> TimeEntry:
        end_raw = row.get("End Time")
        return TimeEntry(
            id=row["ID"],
            date=_parse_date(row["Date"]),
            start_time=_parse_timestamp(row["Start Time"]),
            end_time=_parse_timestamp(end_raw) if end_raw else None,
            pause_time=_parse_number(row.get("Pause Time (minutes)")),
            type=row.get("Type") or "work",
            description=row.get("Description") or None,
        )

    def _entry_to_row(self, entry: TimeEntry) -> dict:
        return {
            "ID": entry.id,
            "Date": entry.date.isoformat(),
            "Start Time": to_iso(entry.start_time),
            "End Time": to_iso(entry.end_time) if entry.end_time else "",
            "Pause Time (minutes)": _format_number(entry.pause_time),
            "Type": entry.type,
            "Description": entry.description or "",
        }


class _LeaveStore(CsvStore[T]):
    headers = ["ID", "Start Date", "End Date", "Days", "Description"]
    entry_class: type = VacationEntry

    def _row_to_entry(self, row: dict):
        return self.entry_class(
            id=row["ID"],
            start_date=_parse_date(row["Start Date"]),
            end_date=_parse_date(row["End Date"]),
            days=_parse_number(row["Days"]),
            description=row.get("Description") or None,
        )

    def _entry_to_row(self, entry) -> dict:
        return {
            "ID": entry.id,
            "Start Date": entry.start_date.isoformat(),
            "End Date": entry.end_date.isoformat(),
            "Days": _format_number(entry.days),
            "Description": entry.description or "",
        }


class VacationEntryStore(_LeaveStore[VacationEntry]):
    filename = VACATION_ENTRIES_FILE
    entry_class = VacationEntry


class SickEntryStore(_LeaveStore[SickEntry]):
    filename = SICK_ENTRIES_FILE
    entry_class = SickEntry


class HolidayEntryStore(CsvStore[HolidayEntry]):
    filename = HOLIDAY_ENTRIES_FILE
    headers = ["ID", "Date", "Name", "Country", "Region"]

    def _row_to_entry(self, row: dict) -> HolidayEntry:
        return HolidayEntry(
            id=row["ID"],
            date=_parse_date(row["Date"]),
            name=row["Name"],
            country=row["Country"],
            region=row["Region"],
        )

    def _entry_to_row(self, entry: HolidayEntry) -> dict:
        return {
            "ID": entry.id,
            "Date": entry.date.isoformat(),
            "Name": entry.name,
            "Country": entry.country,
            "Region": entry.region,
        }


class SessionStore:
    """The single live session of a data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        return self.data_dir / SESSION_FILE

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> WorkSession | None:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            data = {_SESSION_ALIASES.get(k, k): v for k, v in raw.items()}
            start = _parse_timestamp(data["start_time"])
            paused = int(data.get("paused_time_ms") or 0)
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            raise StorageError(f"{self.path}: {exc}") from exc

        pause_raw = data.get("pause_start_time")
        pause_start = parse_datetime(pause_raw)
        if pause_raw and pause_start is None:
            logger.warning("Ignoring unreadable pause start %r in %s", pause_raw, self.path)

        return WorkSession(
            start_time=start,
            paused_time_ms=paused,
            is_paused=bool(data.get("is_paused", False)),
            pause_start_time=pause_start,
        )

    def save(self, session: WorkSession) -> None:
        payload = {
            "start_time": to_iso(session.start_time),
            "paused_time_ms": session.paused_time_ms,
            "is_paused": session.is_paused,
        }
        if session.pause_start_time is not None:
            payload["pause_start_time"] = to_iso(session.pause_start_time)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class DataStore:
    """All stores of one data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.time_entries = TimeEntryStore(self.data_dir)
        self.vacations = VacationEntryStore(self.data_dir)
        self.sick_days = SickEntryStore(self.data_dir)
        self.holidays = HolidayEntryStore(self.data_dir)
        self.session = SessionStore(self.data_dir)
