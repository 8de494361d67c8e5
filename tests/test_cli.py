"""Tests for the plannr command line interface."""

from __future__ import annotations

import pytest
from rich.console import Console
from typer.testing import CliRunner

from plannr.cli import commands
from plannr.cli.commands import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(db_url, monkeypatch):
    """Point the CLI at a fresh database and widen Rich output."""
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setenv("PLANNR_LOG_LEVEL", "WARNING")
    monkeypatch.setattr(commands, "console", Console(width=200))
    monkeypatch.setattr(commands, "err_console", Console(stderr=True, width=200))


def invoke(*args: str):
    return runner.invoke(app, list(args))


class TestDatabaseCommands:
    """Tests for migrate / clear-db / init-fixtures."""

    def test_migrate(self) -> None:
        result = invoke("migrate")
        assert result.exit_code == 0, result.output
        assert "Applied 20250719160308 initial" in result.stdout

        again = invoke("migrate")
        assert again.exit_code == 0
        assert "up to date" in again.stdout

    def test_commands_migrate_implicitly(self) -> None:
        """Any command works against an empty database file."""
        result = invoke("list-calendars")
        assert result.exit_code == 0, result.output
        assert "No calendars found" in result.stdout

    def test_init_fixtures(self) -> None:
        result = invoke("init-fixtures")
        assert result.exit_code == 0, result.output
        assert "Created 4 events" in result.stdout

        calendars = invoke("list-calendars")
        assert "first test calendar" in calendars.stdout
        assert "second test calendar" in calendars.stdout

    def test_init_fixtures_no_reset(self) -> None:
        invoke("init-fixtures")
        invoke("init-fixtures", "--no-reset")
        result = invoke("list-events")
        assert result.stdout.count("multiday event 1") == 2

    def test_clear_db(self) -> None:
        invoke("init-fixtures")
        result = invoke("clear-db", "--yes")
        assert result.exit_code == 0, result.output
        assert "No calendars found" in invoke("list-calendars").stdout
        assert "No events found" in invoke("list-events").stdout

    def test_clear_db_cancelled(self) -> None:
        invoke("init-fixtures")
        result = runner.invoke(app, ["clear-db"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert "first test calendar" in invoke("list-calendars").stdout


class TestCalendarCommands:
    """Tests for calendar commands."""

    def test_create_and_list(self) -> None:
        created = invoke("create-calendar", "Work")
        assert created.exit_code == 0, created.output
        assert "Work" in created.stdout

        listed = invoke("list-calendars")
        assert "Work" in listed.stdout


class TestEventCommands:
    """Tests for event commands."""

    def test_create_datetime_event(self) -> None:
        invoke("create-calendar", "Work")
        result = invoke("create-event", "1", "Standup", "2023-11-14 22:13", "2023-11-14 23:13")
        assert result.exit_code == 0, result.output
        assert "Standup" in result.stdout
        assert "2023-11-14 22:13 UTC - 2023-11-14 23:13 UTC" in result.stdout

    def test_create_date_event(self) -> None:
        invoke("create-calendar", "Trips")
        result = invoke("create-event", "1", "Holiday", "2025-07-04", "2025-07-06")
        assert result.exit_code == 0, result.output
        assert "2025-07-04 - 2025-07-06" in result.stdout

    def test_create_event_rejects_reversed_range(self) -> None:
        invoke("create-calendar", "Work")
        result = invoke("create-event", "1", "Standup", "2025-07-03 11:00", "2025-07-03 10:00")
        assert result.exit_code == 1
        assert "No events found" in invoke("list-events").stdout

    def test_create_event_rejects_mixed_formats(self) -> None:
        invoke("create-calendar", "Work")
        result = invoke("create-event", "1", "Standup", "2025-07-03", "2025-07-03 10:00")
        assert result.exit_code == 1

    def test_create_event_unknown_calendar(self) -> None:
        result = invoke("create-event", "5", "Orphan", "2025-07-04", "2025-07-04")
        assert result.exit_code == 1

    def test_list_events_by_name(self) -> None:
        invoke("init-fixtures")
        result = invoke("list-events", "-c", "second")
        assert result.exit_code == 0, result.output
        assert "event 1" in result.stdout
        assert "event 2" not in result.stdout
        assert "multiday" not in result.stdout

    def test_list_events_by_id(self) -> None:
        invoke("init-fixtures")
        result = invoke("list-events", "--calendar-id", "1")
        assert result.exit_code == 0, result.output
        assert "multiday event 1" in result.stdout
        assert "event 2" in result.stdout

    def test_list_events_ambiguous_name(self) -> None:
        invoke("init-fixtures")
        result = invoke("list-events", "--calendar", "test calendar")
        assert result.exit_code == 1

    def test_list_events_unknown_id(self) -> None:
        invoke("init-fixtures")
        result = invoke("list-events", "--calendar-id", "99")
        assert result.exit_code == 1

    def test_list_events_options_exclusive(self) -> None:
        result = invoke("list-events", "--calendar-id", "1", "--calendar", "first")
        assert result.exit_code == 1


class TestImportCommand:
    """Tests for import-ics."""

    ICS = "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//plannr//tests//EN",
            "BEGIN:VEVENT",
            "UID:standup@plannr.test",
            "DTSTAMP:20231114T000000Z",
            "SUMMARY:Standup",
            "DTSTART:20231114T221320Z",
            "DTEND:20231114T231320Z",
            "END:VEVENT",
            "END:VCALENDAR",
            "",
        ]
    )

    def test_import(self, tmp_path) -> None:
        path = tmp_path / "work.ics"
        path.write_text(self.ICS, encoding="utf-8")
        invoke("create-calendar", "Work")

        result = invoke("import-ics", "1", str(path))
        assert result.exit_code == 0, result.output
        assert "Imported events" in result.stdout
        assert "2023-11-14 22:13 UTC - 2023-11-14 23:13 UTC" in result.stdout
        assert "Standup" in invoke("list-events", "--calendar-id", "1").stdout

    def test_import_unknown_calendar(self, tmp_path) -> None:
        path = tmp_path / "work.ics"
        path.write_text(self.ICS, encoding="utf-8")
        result = invoke("import-ics", "3", str(path))
        assert result.exit_code == 1

    def test_import_malformed_file(self, tmp_path) -> None:
        path = tmp_path / "empty.ics"
        path.write_text("", encoding="utf-8")
        invoke("create-calendar", "Work")
        result = invoke("import-ics", "1", str(path))
        assert result.exit_code == 1
        assert "No events found" in invoke("list-events").stdout
