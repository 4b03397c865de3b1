"""
Main CLI application using Typer.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_booking_repository import JsonBookingRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import get_timezone
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="bookingslots",
    help="Show bookable appointment slots for barbers",
    add_completion=False
)

console = Console()

PERIOD_LABELS = {
    "morning": "Morning",
    "afternoon": "Afternoon",
    "evening": "Evening",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="Bookings JSON file. Defaults to bookings_file from the config"),
]


def _parse_date(value: str, label: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        console.print(f"[red]Could not parse {label} '{value}': {e}[/red]")
        raise typer.Exit(1)


def _load(config_file: Optional[Path], data_file: Optional[Path]):
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    repository = JsonBookingRepository.from_config(config, data_file=data_file)
    return config, repository


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Inspect appointment availability.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def slots(
    barber: Annotated[str, typer.Argument(help="Barber id or name")],
    service: Annotated[str, typer.Argument(help="Service id or name")],
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Day (YYYY-MM-DD). Defaults to today")] = None,
    available_only: Annotated[bool, typer.Option("--available-only", help="Hide unavailable slots.")] = False,
    lead_hours: Annotated[Optional[float], typer.Option("--lead-hours", help="Override the minimum booking lead time")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the slots of one day for a barber and service.

    Examples:

        bookingslots slots carlos "Corte masculino"

        bookingslots slots carlos svc-1 --date 2024-11-25 --available-only
    """
    try:
        config, repository = _load(config_file, data_file)

        service_config = config.resolve_service(service)
        barber_config = config.resolve_barber(barber, service=service_config)

        settings = config.settings
        if lead_hours is not None:
            settings = settings.model_copy(update={"booking_lead_hours": lead_hours})

        availability = AvailabilityService(repository=repository, settings=settings)
        if day:
            target_date = _parse_date(day, "date")
        else:
            target_date = datetime.now(get_timezone(settings.timezone)).date()

        grouped = availability.grouped_slots_for_day(
            barber_id=barber_config.id,
            service_duration_minutes=service_config.duration_minutes,
            target_date=target_date,
            available_only=available_only,
        )

        console.print(
            f"\n[bold cyan]{barber_config.name}[/bold cyan] · {service_config.name} "
            f"({service_config.duration_minutes} min) · {target_date.strftime('%d/%m/%Y')}\n"
        )

        if not len(grouped):
            console.print("[yellow]⚠ No times available this day.[/yellow]\n")
            return

        for period, period_slots in grouped.items():
            if not period_slots:
                continue

            table = Table(title=PERIOD_LABELS[period], show_header=True, header_style="bold cyan")
            table.add_column("Time", style="bold")
            table.add_column("Ends", style="dim")
            table.add_column("Status")

            for slot in period_slots:
                status = "[green]available[/green]" if slot.is_available else "[red]taken[/red]"
                table.add_row(slot.time, slot.ends_at.strftime("%H:%M"), status)

            console.print(table)

        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (AvailabilityError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def days(
    barber: Annotated[str, typer.Argument(help="Barber id or name")],
    service: Annotated[str, typer.Argument(help="Service id or name")],
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD). Defaults to today")] = None,
    count: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days, capped at max_booking_days")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show which upcoming days still have free times.
    """
    try:
        config, repository = _load(config_file, data_file)

        service_config = config.resolve_service(service)
        barber_config = config.resolve_barber(barber, service=service_config)
        availability = AvailabilityService(repository=repository, settings=config.settings)

        overview = availability.day_overview(
            barber_id=barber_config.id,
            service_duration_minutes=service_config.duration_minutes,
            start_date=_parse_date(start, "start date") if start else None,
            days=count,
        )

        table = Table(
            title=f"{barber_config.name} · {service_config.name}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold")
        table.add_column("Free slots", justify="right")
        table.add_column("First", style="dim")

        for entry in overview:
            first = entry.slots[0].time if entry.slots else "-"
            style = None if entry.has_availability else "dim"
            table.add_row(
                entry.date.strftime("%a %d/%m/%Y"),
                str(len(entry.slots)),
                first,
                style=style,
            )

        console.print()
        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (AvailabilityError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_barbers(
    config_file: ConfigOption = None,
):
    """
    List all configured barbers and their working days.
    """
    weekday_names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

    try:
        config = AppConfig.load_from_yaml(config_file or get_default_config_path())

        if not config.barbers:
            console.print("[yellow]No barbers defined in the config file.[/yellow]")
            return

        table = Table(title="Barbers", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Working hours")

        for barber in config.barbers:
            hours = ", ".join(
                f"{weekday_names[rule.day_of_week]} {rule.start_time}-{rule.end_time}"
                for rule in sorted(barber.working_hours, key=lambda r: r.day_of_week)
                if rule.is_active
            )
            table.add_row(barber.id, barber.name, hours or "-")

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_services(
    config_file: ConfigOption = None,
):
    """
    List all configured services.
    """
    try:
        config = AppConfig.load_from_yaml(config_file or get_default_config_path())

        table = Table(title="Services", show_header=True, header_style="bold cyan")
        table.add_column("Id", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Duration", justify="right")
        table.add_column("Price", justify="right")

        for service in config.services:
            table.add_row(
                service.id,
                service.name,
                f"{service.duration_minutes} min",
                f"{service.price_cents / 100:.2f}",
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
