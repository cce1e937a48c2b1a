"""slotwise CLI commands for inspecting and editing availability."""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from slotwise.config import get_settings
from slotwise.logging_config import setup_logging

app = typer.Typer(help="slotwise appointment availability CLI", no_args_is_help=True)
console = Console()

_STATE_STYLE = {
    "past": ("·", "dim"),
    "calendarBlocked": ("X", "magenta"),
    "blocked": ("X", "red"),
    "booked": ("✓", "blue"),
    "unavailable": ("✕", "yellow"),
    "available": ("✓", "green"),
}

OrgOption = typer.Option(None, "--org", "-o", help="Organization id")
CalendarOption = typer.Option(None, "--calendar", "-c", help="Calendar id")


def _async_run(coro):
    """Run an async coroutine."""
    return asyncio.run(coro)


def _tenant(org: Optional[str], calendar: Optional[str]):
    """Tenant from options or configured defaults; None means the legacy document."""
    from slotwise.modules.availability.models import TenantKey

    settings = get_settings()
    org = org or settings.default_org_id
    calendar = calendar or settings.default_calendar_id
    if not org and not calendar:
        return None
    if not org or not calendar:
        raise typer.BadParameter("--org and --calendar must be given together")
    return TenantKey(org_id=org, calendar_id=calendar)


def _parse_date(value: Optional[str]) -> dt.date:
    if not value:
        return dt.datetime.now(get_settings().zone).date()
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


async def _prepare() -> None:
    from slotwise.database import init_db

    setup_logging()
    await init_db()


@app.command("init-db")
def init_db_command() -> None:
    """Create the database tables."""
    _async_run(_prepare())
    console.print("[green]✓[/green] Database ready")


@app.command()
def week(
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Any day of the week (YYYY-MM-DD)"),
    org: Optional[str] = OrgOption,
    calendar: Optional[str] = CalendarOption,
) -> None:
    """Show the resolved admin grid for a week."""
    from slotwise.modules.availability.service import AvailabilityService

    tenant = _tenant(org, calendar)
    anchor = _parse_date(date)

    async def _run():
        await _prepare()
        return await AvailabilityService().week_view(tenant, anchor)

    view = _async_run(_run())
    if view.is_empty:
        console.print("[yellow]No slots available this week[/yellow]")
        return

    table = Table(title=f"Week of {view.week_start.isoformat()}")
    table.add_column("Time", style="bold")
    for day in view.days:
        header = day.date.strftime("%a %d %b")
        if day.fully_unavailable:
            header += " (off)"
        table.add_column(header, justify="center")

    for time in view.time_labels:
        cells = []
        for day in view.days:
            icon, style = _STATE_STYLE[day.slots[time].state.value]
            cells.append(f"[{style}]{icon}[/{style}]")
        table.add_row(time, *cells)

    console.print(table)


@app.command("toggle-slot")
def toggle_slot(
    date: str = typer.Argument(..., help="Day (YYYY-MM-DD)"),
    time: str = typer.Argument(..., help="Slot start (HH:MM)"),
    org: Optional[str] = OrgOption,
    calendar: Optional[str] = CalendarOption,
) -> None:
    """Mark a slot unavailable, or available again."""
    from slotwise.clock import validate_hhmm
    from slotwise.modules.availability.toggle import AvailabilityEditor, ToggleAction

    tenant = _tenant(org, calendar)
    day = _parse_date(date)
    try:
        validate_hhmm(time)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    async def _run():
        await _prepare()
        return await AvailabilityEditor(tenant).toggle_slot(day, time)

    result = _async_run(_run())
    if not result.success:
        console.print("[red]✗ Failed to update slot availability[/red]")
        raise typer.Exit(code=1)
    label = "available" if result.action == ToggleAction.MARKED_AVAILABLE else "unavailable"
    console.print(f"[green]✓[/green] Slot {day.isoformat()} {time} marked as {label}")


@app.command("toggle-day")
def toggle_day(
    date: str = typer.Argument(..., help="Day (YYYY-MM-DD)"),
    org: Optional[str] = OrgOption,
    calendar: Optional[str] = CalendarOption,
) -> None:
    """Disable every slot of a day, or re-enable a fully disabled day."""
    from slotwise.modules.availability.toggle import AvailabilityEditor, ToggleAction

    tenant = _tenant(org, calendar)
    day = _parse_date(date)

    async def _run():
        await _prepare()
        return await AvailabilityEditor(tenant).toggle_day(day)

    result = _async_run(_run())
    day_name = day.strftime("%A, %B %d")
    if not result.success:
        console.print("[red]✗ Failed to update day availability[/red]")
        raise typer.Exit(code=1)
    if result.action == ToggleAction.NOTHING:
        console.print("[yellow]No working hours configured; nothing to toggle[/yellow]")
    elif result.action == ToggleAction.DAY_ENABLED:
        console.print(f"[green]✓[/green] All slots made available for {day_name}")
    else:
        console.print(f"[green]✓[/green] All slots blocked for {day_name}")


@app.command()
def slots(
    timeframe: str = typer.Option("asap", "--timeframe", "-t", help="asap, this_week, next_week or this_month"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum slots to show (0 = all)"),
    org: Optional[str] = OrgOption,
    calendar: Optional[str] = CalendarOption,
) -> None:
    """List bookable slots the way the booking wizard offers them."""
    from slotwise.modules.booking.service import BookingService

    tenant = _tenant(org, calendar)

    async def _run():
        await _prepare()
        return await BookingService().available_slots(tenant, timeframe, limit=limit)

    found = _async_run(_run())
    if not found:
        console.print("[yellow]No available slots. Try selecting a different timeframe[/yellow]")
        return

    table = Table(title=f"Bookable slots ({timeframe})")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Slot id", style="dim")
    for slot in found:
        table.add_row(slot.date.strftime("%a %d %b %Y"), slot.time, slot.id)
    console.print(table)


@app.command("seed-slots")
def seed_slots(
    start: str = typer.Argument(..., help="First day (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="Last day (YYYY-MM-DD)"),
    org: Optional[str] = OrgOption,
    calendar: Optional[str] = CalendarOption,
) -> None:
    """Store a bookable slot for every open cell between two days."""
    from slotwise.modules.availability.repository import SettingsRepository
    from slotwise.modules.booking.models import DateRange, TimeSlot
    from slotwise.modules.booking.repository import AppointmentRepository, TimeSlotRepository
    from slotwise.modules.booking.service import generate_candidate_slots

    tenant = _tenant(org, calendar)
    window = DateRange(start=_parse_date(start), end=_parse_date(end))
    if window.end < window.start:
        raise typer.BadParameter("end must not be before start")

    async def _run():
        await _prepare()
        settings = await SettingsRepository().load(tenant)
        appointments = await AppointmentRepository().list(tenant)
        candidates = generate_candidate_slots(settings, appointments, window)
        # Fresh ids: candidate ids are only unique within one tenant.
        fresh = [TimeSlot(date=slot.date, time=slot.time) for slot in candidates]
        return await TimeSlotRepository().bulk_create(fresh, tenant)

    created = _async_run(_run())
    console.print(f"[green]✓[/green] Created {len(created)} time slots")


if __name__ == "__main__":
    app()
