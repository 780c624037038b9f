"""First-run questionnaire that produces and saves a Config."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rich.console import Console
from rich.table import Table

from config import ConfigManager
from errors import ValidationError
from models import Config, WorkingDay, default_working_days
from prompts import Prompter
from utils import WEEKDAY_NAMES

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5

T = TypeVar("T")


def _parse_name(raw: str) -> str:
    name = raw.strip()
    if not name:
        raise ValueError("Name cannot be empty")
    return name


def _parse_hours(raw: str) -> float:
    hours = float(raw)
    if not 0 < hours <= 168:
        raise ValueError("Please enter a valid number of hours (1-168)")
    return hours


def _parse_vacation_days(raw: str) -> float:
    days = float(raw)
    if not 0 <= days <= 365:
        raise ValueError("Please enter a valid number of days (0-365)")
    return days


def _parse_timezone(raw: str) -> str:
    name = raw.strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc
    return name


def _parse_start_date(raw: str) -> date | None:
    raw = raw.strip()
    if not raw:
        return None
    return date.fromisoformat(raw)


class SetupWizard:
    def __init__(self, config_manager: ConfigManager, prompter: Prompter, console: Console | None = None):
        self.config_manager = config_manager
        self.prompter = prompter
        self.console = console or Console()

    def run_setup(self) -> Config:
        """Ask until the user confirms, then save with setup_completed set."""
        self.console.print("\n[bold blue]Welcome to Clockin Setup![/bold blue]")
        self.console.print("[dim]Let's configure your time tracking preferences.[/dim]\n")

        while True:
            config = self.collect_user_input()
            self.console.print("\n[yellow]Setup Summary:[/yellow]")
            self.display_summary(config)

            if self.prompter.confirm("Is this configuration correct?", default=True):
                config.setup_completed = True
                self.config_manager.save_config(config)
                self.console.print("[bold green]Setup completed successfully![/bold green]")
                return config
            self.console.print("[yellow]Let's start over...[/yellow]\n")

    def _ask_valid(self, question: str, parse: Callable[[str], T], default: str | None = None) -> T:
        for _ in range(MAX_ATTEMPTS):
            answer = self.prompter.ask(question, default=default)
            try:
                return parse(answer)
            except ValueError as exc:
                self.console.print(f"[red]{exc}[/red]")
        raise ValidationError(f"No valid answer to {question!r} after {MAX_ATTEMPTS} attempts.")

    def collect_user_input(self) -> Config:
        defaults = self.config_manager.default_config()

        name = self._ask_valid("What's your name?", _parse_name)
        hours = self._ask_valid("How many hours do you work per week?", _parse_hours, "40")
        vacation = self._ask_valid("How many vacation days do you get per year?", _parse_vacation_days, "25")
        working_days = self.collect_working_days()
        data_directory = self.collect_data_directory()
        timezone = self._ask_valid("Which timezone do you work in?", _parse_timezone, defaults.timezone)
        start_date = self._ask_valid(
            "Employment start date (YYYY-MM-DD, empty to use your first entry)", _parse_start_date, ""
        )

        return Config(
            name=name,
            hours_per_week=hours,
            vacation_days_per_year=vacation,
            working_days=working_days,
            data_directory=data_directory,
            timezone=timezone,
            start_date=start_date,
            country=defaults.country,
            region=defaults.region,
        )

    def collect_working_days(self) -> list[WorkingDay]:
        if self.prompter.confirm("Use default working days (Monday-Friday)?", default=True):
            return default_working_days()
        return [
            WorkingDay(
                day=day,
                is_working_day=self.prompter.confirm(
                    f"Is {day.capitalize()} a working day?", default=day not in ("saturday", "sunday")
                ),
            )
            for day in WEEKDAY_NAMES
        ]

    def collect_data_directory(self) -> Path:
        current = self.config_manager.current_data_directory()
        if self.config_manager.pointer_path.exists():
            question = f"Keep current data directory ({current})?"
        else:
            question = f"Store data in default directory ({current})?"
        if self.prompter.confirm(question, default=True):
            return current
        answer = self._ask_valid("Where should your data be stored?", _parse_name, str(current))
        return Path(answer).expanduser()

    def display_summary(self, config: Config) -> None:
        table = Table(show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_row("Name", config.name)
        table.add_row("Hours per week", f"{config.hours_per_week:g}")
        table.add_row("Vacation days per year", f"{config.vacation_days_per_year:g}")
        table.add_row("Working days", ", ".join(config.working_day_names()) or "none")
        table.add_row("Data directory", str(config.data_directory))
        table.add_row("Timezone", config.timezone)
        table.add_row("Start date", config.start_date.isoformat() if config.start_date else "first entry")
        self.console.print(table)
