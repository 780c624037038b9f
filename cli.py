"""Command-line interface for clockin."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from app import run_timer
from config import ConfigManager
from errors import (
    ConfigError,
    ConflictError,
    HolidaySourceError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from holiday_manager import HolidayManager
from leave import SickManager, VacationManager
from models import Config
from prompts import AutoPrompter, RichPrompter
from setup_wizard import SetupWizard
from summary import SummaryEngine, format_hours
from tracker import SessionTracker
from utils import format_day, format_day_year, format_duration, format_hh_mm

app = typer.Typer(
    name="clockin",
    help="Clockin: track work sessions, vacation, sick leave and overtime",
    add_completion=False,
)
vacation_app = typer.Typer(help="Book and list vacation days")
sick_app = typer.Typer(help="Book and list sick days")
holidays_app = typer.Typer(help="Import and list public holidays")
app.add_typer(vacation_app, name="vacation")
app.add_typer(sick_app, name="sick")
app.add_typer(holidays_app, name="holidays")

console = Console()

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich, on stderr."""
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("CLOCKIN_LOG_LEVEL", "WARNING").upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def report_errors() -> Iterator[None]:
    """Print business-rule failures; make source and storage failures fatal."""
    try:
        yield
    except (ValidationError, ConflictError) as exc:
        console.print(f"[red]{exc}[/red]")
    except NotFoundError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
    except (ConfigError, StorageError, HolidaySourceError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(1)


def ensure_setup() -> Config:
    """Load the config, running the setup wizard first if there is none."""
    manager = ConfigManager()
    config = manager.load_config()
    if config is None or not config.setup_completed:
        console.print("[yellow]Clockin is not set up yet.[/yellow]")
        config = SetupWizard(manager, RichPrompter(console), console).run_setup()
    return config


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    setup_logging(verbose)


@app.command()
def setup() -> None:
    """Run the setup wizard."""
    with report_errors():
        manager = ConfigManager()
        SetupWizard(manager, RichPrompter(console), console).run_setup()


@app.command()
def reset(force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt")) -> None:
    """Delete the configuration and run the setup wizard again."""
    with report_errors():
        prompter = RichPrompter(console)
        if not force and not prompter.confirm(
            "This will delete all configuration. Are you sure?", default=False
        ):
            console.print("[yellow]Reset cancelled.[/yellow]")
            return

        manager = ConfigManager()
        for path in manager.reset():
            console.print(f"[green]Cleared {path}[/green]")
        console.print("[green]Configuration reset successfully![/green]")
        console.print("[yellow]Starting fresh setup...[/yellow]\n")
        SetupWizard(manager, prompter, console).run_setup()


@app.command()
def whoami() -> None:
    """Show the current configuration."""
    with report_errors():
        config = ensure_setup()
        table = Table(show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_row("Name", config.name)
        table.add_row("Hours per week", f"{config.hours_per_week:g}")
        table.add_row("Daily target", format_hh_mm(config.daily_ms))
        table.add_row("Vacation days per year", f"{config.vacation_days_per_year:g}")
        table.add_row("Working days", ", ".join(config.working_day_names()) or "none")
        table.add_row("Data directory", str(config.data_directory))
        table.add_row("Timezone", config.timezone)
        table.add_row("Start date", config.start_date.isoformat() if config.start_date else "first entry")
        table.add_row("Holiday region", f"{config.country}-{config.region}")
        console.print(table)


@app.command()
def start(no_timer: bool = typer.Option(False, "--no-timer", help="Do not open the timer view")) -> None:
    """Start tracking time."""
    with report_errors():
        config = ensure_setup()
        SessionTracker(config).start()
        console.print("[green]Started tracking time![/green]")
        if not no_timer:
            run_timer(config)


@app.command()
def pause() -> None:
    """Pause the running session."""
    with report_errors():
        SessionTracker(ensure_setup()).pause()
        console.print("[yellow]Tracking paused.[/yellow]")


@app.command()
def resume(no_timer: bool = typer.Option(False, "--no-timer", help="Do not open the timer view")) -> None:
    """Resume a paused session."""
    with report_errors():
        config = ensure_setup()
        SessionTracker(config).resume()
        console.print("[green]Tracking resumed.[/green]")
        if not no_timer:
            run_timer(config)


@app.command()
def stop(
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept a suggested pause without asking"),
    no: bool = typer.Option(False, "--no", help="Decline a suggested pause without asking"),
) -> None:
    """Stop the session and store it as a time entry."""
    with report_errors():
        if yes and no:
            raise ValidationError("Use either --yes or --no, not both.")
        if yes or no:
            prompter = AutoPrompter(answer=yes)
        else:
            prompter = RichPrompter(console)

        result = SessionTracker(ensure_setup()).stop(prompter)
        console.print("[green]Stopped tracking time![/green]")
        if result.pause_applied:
            console.print(f"[cyan]Pause set to {result.suggested_pause} minutes.[/cyan]")
        console.print(f"[cyan]Total working time: {format_duration(result.working_ms)}[/cyan]")


@app.command()
def timer() -> None:
    """Show the live timer for the running session."""
    with report_errors():
        config = ensure_setup()
        if SessionTracker(config).current_session() is None:
            raise NotFoundError("No active tracking session found.")
        run_timer(config)
        console.print("[yellow]Timer view exited. Session is still active.[/yellow]")


@app.command()
def add(
    date: str = typer.Argument(..., help="Date as YYYY-MM-DD"),
    start_time: str = typer.Argument(..., metavar="START", help="Start time as HH:MM"),
    end_time: str = typer.Argument(..., metavar="END", help="End time as HH:MM"),
    pause_minutes: float = typer.Option(0, "--pause", "-p", help="Pause in minutes"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="What you worked on"),
) -> None:
    """Add a finished time entry by hand."""
    with report_errors():
        entry = SessionTracker(ensure_setup()).add_time_entry(
            date, start_time, end_time, description=description, pause_minutes=pause_minutes
        )
        console.print("[green]Time entry added successfully![/green]")
        console.print(f"Date: {format_day_year(entry.date)}")
        console.print(f"Working time: {format_duration(entry.working_ms)}")
        if entry.pause_time:
            console.print(f"Pause time: {entry.pause_time:g} minutes")
        if entry.description:
            console.print(f"Description: {entry.description}")


@app.command()
def summary(
    week: bool = typer.Option(False, "--week", "-w", help="Show this week's breakdown"),
    csv: bool = typer.Option(False, "--csv", help="Open the time entry CSV"),
) -> None:
    """Show overtime and leave totals."""
    with report_errors():
        engine = SummaryEngine(ensure_setup())
        if csv:
            _open_csv(engine)
        elif week:
            _show_weekly(engine)
        else:
            _show_summary(engine)


def _open_csv(engine: SummaryEngine) -> None:
    path, created = engine.ensure_time_entries_csv()
    if created:
        console.print("[yellow]Created empty time entries CSV file.[/yellow]")
    if typer.launch(str(path)) != 0:
        console.print("[red]Failed to open CSV file.[/red]")
        console.print(f"[dim]File location: {path}[/dim]")
        return
    console.print("[green]Opening CSV file...[/green]")


def _show_summary(engine: SummaryEngine) -> None:
    data = engine.summary()
    table = Table(title="Work Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Tracking since", format_day_year(data.baseline))
    table.add_row("Total Hours Credited", format_hours(data.total_worked_ms))
    table.add_row("Expected Hours", f"{data.expected_hours:.1f}h")
    table.add_row("Expected Hours/Week", f"{data.expected_hours_per_week:.1f}h")
    table.add_row("Current Week Hours", format_hours(data.current_week_ms))
    style = "green" if data.overtime_ms >= 0 else "yellow"
    table.add_row("Overtime Hours", f"[{style}]{format_hours(data.overtime_ms)}[/{style}]")
    table.add_row("Vacation Days Used", f"{data.total_vacation_days:g}")
    table.add_row("Vacation Days Remaining", f"{data.remaining_vacation_days:g}")
    table.add_row("Sick Days", f"{data.total_sick_days:g}")
    table.add_row("Working Holidays", str(data.working_holidays))
    console.print(table)


def _show_weekly(engine: SummaryEngine) -> None:
    week = engine.weekly_summary()
    tz = engine.config.tzinfo
    title = f"Weekly Summary ({format_day(week.week_start)} - {format_day_year(week.week_end)})"

    if not week.rows:
        console.print(f"[bold blue]{title}[/bold blue]")
        console.print("[yellow]No entries found for this week.[/yellow]")
        return

    table = Table(title=title)
    for column in ("Date", "Type", "Start", "End", "Break", "Hours", "Description"):
        table.add_column(column)
    for row in week.rows:
        if row.is_leave:
            start = end = brk = "-"
        else:
            start = row.start_time.astimezone(tz).strftime("%H:%M")
            end = row.end_time.astimezone(tz).strftime("%H:%M")
            brk = f"{row.pause_minutes:g}m"
        table.add_row(
            format_day(row.date), row.entry_type, start, end, brk, format_hours(row.hours_ms), row.description or ""
        )
    console.print(table)

    console.print(f"[cyan]Total weekly hours: {format_hours(week.total_ms)}[/cyan]")
    console.print(f"[cyan]Expected weekly hours: {week.expected_weekly_hours:g}h[/cyan]")
    if week.overtime:
        console.print(f"[green]Overtime: +{week.difference_hours:.1f}h[/green]")
    elif week.undertime:
        console.print(f"[yellow]Under time: {week.difference_hours:.1f}h[/yellow]")
    else:
        console.print("[blue]Exactly on target![/blue]")


def _leave_table(title: str, entries) -> Table:
    table = Table(title=title)
    for column in ("Start", "End", "Days", "Description"):
        table.add_column(column)
    for entry in entries:
        table.add_row(
            format_day_year(entry.start_date),
            format_day_year(entry.end_date),
            f"{entry.days:g}",
            entry.description or "",
        )
    return table


@vacation_app.command("add")
def vacation_add(
    days: float = typer.Argument(..., help="Number of working days"),
    start_date: Optional[str] = typer.Argument(None, metavar="[START]", help="First day, YYYY-MM-DD"),
) -> None:
    """Book a number of working days from a start date (default today)."""
    with report_errors():
        manager = VacationManager(ensure_setup())
        entry = manager.add_vacation(days, start_date)
        console.print(
            f"[green]Added {entry.description}: "
            f"{format_day_year(entry.start_date)} - {format_day_year(entry.end_date)}[/green]"
        )
        console.print(f"Remaining vacation days: {manager.get_remaining_vacation_days():g}")


@vacation_app.command("range")
def vacation_range(
    start_date: str = typer.Argument(..., metavar="START", help="First day, YYYY-MM-DD"),
    end_date: str = typer.Argument(..., metavar="END", help="Last day, YYYY-MM-DD"),
) -> None:
    """Book every working day between two dates."""
    with report_errors():
        manager = VacationManager(ensure_setup())
        entry = manager.add_vacation_range(start_date, end_date)
        if entry is None:
            console.print("[yellow]No working days in the selected range. Nothing was added.[/yellow]")
            return
        console.print(
            f"[green]Added {entry.description}: "
            f"{format_day_year(entry.start_date)} - {format_day_year(entry.end_date)}[/green]"
        )
        console.print(f"Remaining vacation days: {manager.get_remaining_vacation_days():g}")


@vacation_app.command("list")
def vacation_list() -> None:
    """List booked vacation."""
    with report_errors():
        manager = VacationManager(ensure_setup())
        entries = manager.vacation_entries()
        if not entries:
            console.print("[yellow]No vacation booked yet.[/yellow]")
            return
        console.print(_leave_table("Vacation", entries))
        console.print(
            f"Used: {manager.get_total_vacation_days():g}  "
            f"Remaining: {manager.get_remaining_vacation_days():g}"
        )


@sick_app.command("add")
def sick_add(
    days: float = typer.Argument(..., help="Number of calendar days"),
    start_date: Optional[str] = typer.Argument(None, metavar="[START]", help="First day, YYYY-MM-DD"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Note for the entry"),
) -> None:
    """Book consecutive sick days from a start date (default today)."""
    with report_errors():
        entry = SickManager(ensure_setup()).add_sick_days(days, description, start_date)
        console.print(
            f"[green]Added {entry.description}: "
            f"{format_day_year(entry.start_date)} - {format_day_year(entry.end_date)}[/green]"
        )


@sick_app.command("list")
def sick_list() -> None:
    """List booked sick days."""
    with report_errors():
        manager = SickManager(ensure_setup())
        entries = manager.sick_entries()
        if not entries:
            console.print("[yellow]No sick days recorded.[/yellow]")
            return
        console.print(_leave_table("Sick days", entries))
        console.print(f"Total: {manager.get_total_sick_days():g}")


@holidays_app.command("init")
def holidays_init(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year to import (default this year)"),
    country: Optional[str] = typer.Option(None, "--country", "-c", help="ISO country code"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="Subdivision code"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an earlier import"),
) -> None:
    """Import the public holidays of a year and region."""
    with report_errors():
        config = ensure_setup()
        result = HolidayManager(config).init_holidays(year, country, region, force)
        label = f"{result.year} ({result.country}-{result.region})"
        if result.skipped:
            console.print(
                f"[yellow]Holidays for {label} already exist ({result.existing} entries). "
                "Use --force to replace them.[/yellow]"
            )
            return
        verb = "Replaced" if result.status == "replaced" else "Imported"
        console.print(f"[green]{verb} {len(result.entries)} holidays for {label}.[/green]")


@holidays_app.command("list")
def holidays_list(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Only this year"),
) -> None:
    """List imported holidays."""
    with report_errors():
        entries = HolidayManager(ensure_setup()).holidays(year)
        if not entries:
            raise NotFoundError('No holidays imported yet. Run "clockin holidays init" first.')
        table = Table(title="Holidays")
        for column in ("Date", "Name", "Region"):
            table.add_column(column)
        for entry in entries:
            table.add_row(format_day_year(entry.date), entry.name, f"{entry.country}-{entry.region}")
        console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
