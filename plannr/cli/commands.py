"""plannr CLI: inspect and edit the calendar store."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from plannr.database import close_db, init_db
from plannr.logging_config import get_logger, setup_logging
from plannr.migrator import MigrationError
from plannr.modules.calendar import (
    AmbiguousCalendarError,
    Calendar,
    CalendarNotFoundError,
    CalendarService,
    Event,
    EventInterval,
    EventIntervalError,
    ICalendarError,
)
from plannr.modules.calendar.fixtures import load_fixtures

app = typer.Typer(help="plannr calendar store CLI", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

# Errors reported as a failed command instead of a traceback
COMMAND_ERRORS = (
    AmbiguousCalendarError,
    CalendarNotFoundError,
    EventIntervalError,
    ICalendarError,
    MigrationError,
    SQLAlchemyError,
)


@app.callback()
def main() -> None:
    """Manage calendars and events stored in a local SQLite database."""
    setup_logging()


def _async_run(command: Callable[[], Awaitable[None]], migrate: bool = True) -> None:
    """Run an async command body with the database open.

    Pending migrations are applied first unless ``migrate`` is False.
    Known failures are logged and turned into exit code 1.
    """

    async def _wrapped() -> None:
        try:
            if migrate:
                await init_db()
            await command()
        finally:
            await close_db()

    try:
        asyncio.run(_wrapped())
    except COMMAND_ERRORS as exc:
        logger.error("command_failed", error=str(exc), error_type=type(exc).__name__)
        err_console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)


def _calendar_table(calendars: list[Calendar], title: str = "Calendars") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="green")
    for calendar in calendars:
        table.add_row(str(calendar.id), calendar.name)
    return table


def _event_table(events: list[Event], title: str = "Events") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Calendar", style="cyan", no_wrap=True)
    table.add_column("Label", style="green")
    table.add_column("Interval", style="yellow")
    for event in events:
        table.add_row(str(event.id), str(event.calendar_id), event.label, str(event.interval))
    return table


# ─────────────────────────────────────────────────────────────────────────────
# Database Commands
# ─────────────────────────────────────────────────────────────────────────────

@app.command()
def migrate() -> None:
    """Apply pending schema migrations."""

    async def _migrate():
        applied = await init_db()
        if not applied:
            console.print("[green]Database is up to date.[/green]")
            return
        for migration in applied:
            console.print(f"[green]✓ Applied {migration.revision} {migration.doc}[/green]")

    _async_run(_migrate, migrate=False)


@app.command("clear-db")
def clear_db(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Clear database (destroys all calendars and events)."""
    if not yes and not typer.confirm("Delete ALL calendars and events?"):
        console.print("Cancelled.")
        return

    async def _clear():
        await CalendarService().clear()
        console.print("[green]✓ Database cleared[/green]")

    _async_run(_clear)


@app.command("init-fixtures")
def init_fixtures(
    reset: bool = typer.Option(True, "--reset/--no-reset", help="Clear the database first"),
) -> None:
    """Create some entries in the tables for testing."""

    async def _init():
        events = await load_fixtures(CalendarService(), reset=reset)
        console.print(f"[green]✓ Created {len(events)} events[/green]")

    _async_run(_init)


# ─────────────────────────────────────────────────────────────────────────────
# Calendar Commands
# ─────────────────────────────────────────────────────────────────────────────

@app.command("list-calendars")
def list_calendars() -> None:
    """List all calendars."""

    async def _list():
        calendars = await CalendarService().get_calendars()
        if not calendars:
            console.print("[yellow]No calendars found.[/yellow]")
            return
        console.print(_calendar_table(calendars))

    _async_run(_list)


@app.command("create-calendar")
def create_calendar(
    name: str = typer.Argument(..., help="Calendar name"),
) -> None:
    """Create a new calendar."""

    async def _create():
        calendar = await CalendarService().new_calendar(name)
        console.print(_calendar_table([calendar], title="Created calendar"))

    _async_run(_create)


# ─────────────────────────────────────────────────────────────────────────────
# Event Commands
# ─────────────────────────────────────────────────────────────────────────────

@app.command("list-events")
def list_events(
    calendar_id: Optional[int] = typer.Option(None, "--calendar-id", help="Only events of the calendar with this ID"),
    calendar: Optional[str] = typer.Option(None, "--calendar", "-c", help="Only events of the calendar matching this name"),
) -> None:
    """List all events, or those of one calendar."""
    if calendar_id is not None and calendar is not None:
        err_console.print("[red]Error: only one of `--calendar-id` and `--calendar` can be set[/red]")
        raise typer.Exit(1)

    async def _list():
        service = CalendarService()
        selected = calendar_id
        if calendar is not None:
            selected = (await service.find_calendar(calendar)).id
        elif calendar_id is not None and await service.get_calendar(calendar_id) is None:
            raise CalendarNotFoundError(f"No calendar with ID `{calendar_id}`")

        events = await service.get_events(selected)
        if not events:
            console.print("[yellow]No events found.[/yellow]")
            return
        console.print(_event_table(events))

    _async_run(_list)


@app.command("create-event")
def create_event(
    calendar_id: int = typer.Argument(..., help="Calendar ID"),
    label: str = typer.Argument(..., help="Event label"),
    start_time: str = typer.Argument(..., help="Start: YYYY-MM-DD or 'YYYY-MM-DD HH:MM' (UTC)"),
    end_time: str = typer.Argument(..., help="End, in the same format as start"),
) -> None:
    """Create a new event."""

    async def _create():
        interval = EventInterval.parse(start_time, end_time)
        event = await CalendarService().new_event(calendar_id, label, interval)
        console.print(_event_table([event], title="Created event"))

    _async_run(_create)


@app.command("import-ics")
def import_ics(
    calendar_id: int = typer.Argument(..., help="Calendar ID"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="iCalendar (.ics) file"),
) -> None:
    """Import the events of an iCalendar file into a calendar."""

    async def _import():
        events = await CalendarService().import_ics(calendar_id, path.read_bytes())
        if not events:
            console.print(f"[yellow]No events found in {path}.[/yellow]")
            return
        console.print(_event_table(events, title="Imported events"))

    _async_run(_import)


if __name__ == "__main__":
    app()
