"""Shared fixtures for tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from holiday_manager import RawHoliday
from models import Config
from storage import DataStore


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class ScriptedPrompter:
    """Replays canned answers and records every question."""

    def __init__(self, confirms: list[bool] | None = None, answers: list[str] | None = None):
        self.confirms = list(confirms or [])
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def confirm(self, question: str, default: bool = True) -> bool:
        self.questions.append(question)
        if self.confirms:
            return self.confirms.pop(0)
        return default

    def ask(self, question: str, default: str | None = None) -> str:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        return default or ""


class FakeHolidaySource:
    """Holiday source returning a fixed list per call, shifted to the requested year."""

    def __init__(self, holidays: list[tuple[str, str, str, bool]] | None = None):
        # (MM-DD, name, type, is_substitute)
        self.holidays = holidays if holidays is not None else [
            ("01-01", "New Year's Day", "public", False),
            ("01-06", "Epiphany", "public", False),
            ("01-06", "Epiphany", "public", False),
            ("05-01", "Labour Day", "public", False),
            ("08-15", "Assumption Day", "bank", False),
            ("10-31", "Reformation Day", "optional", False),
            ("12-24", "Christmas Eve", "observance", False),
            ("12-25", "Christmas Day", "public", False),
            ("12-27", "Christmas Day (observed)", "public", True),
        ]
        self.calls: list[tuple[int, str, str]] = []

    def fetch(self, year: int, country: str, region: str) -> list[RawHoliday]:
        self.calls.append((year, country, region))
        return [
            RawHoliday(date=date.fromisoformat(f"{year}-{md}"), name=name, type=kind, is_substitute=sub)
            for md, name, kind, sub in self.holidays
        ]


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def config(data_dir: Path) -> Config:
    """Monday to Friday, 40 hours a week, UTC."""
    return Config(
        name="Test User",
        hours_per_week=40,
        vacation_days_per_year=25,
        data_directory=data_dir,
        timezone="UTC",
        setup_completed=True,
    )


@pytest.fixture
def store(data_dir: Path) -> DataStore:
    return DataStore(data_dir)


@pytest.fixture
def clock() -> FixedClock:
    """Tuesday, 14 January 2025, 16:20 UTC."""
    return FixedClock(datetime(2025, 1, 14, 16, 20, tzinfo=timezone.utc))


@pytest.fixture
def holiday_source() -> FakeHolidaySource:
    return FakeHolidaySource()


@pytest.fixture
def clockin_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global pointer file at a temp directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("CLOCKIN_HOME", str(home))
    return home


@pytest.fixture
def make_holiday_source():
    """Factory for holiday sources with a custom list."""
    return FakeHolidaySource


@pytest.fixture
def make_prompter():
    """Factory for scripted prompters."""
    return ScriptedPrompter


@pytest.fixture(autouse=True)
def fake_user_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the default data directory out of the real home."""
    home = tmp_path / "user"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
