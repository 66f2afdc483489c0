"""
Main CLI application using Typer.
"""

from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingError
from ..domain.models import User
from ..domain.slot_generator import SlotGenerator
from ..logging_config import setup_logging
from ..adapters.google_calendar import GoogleCalendarClient
from ..adapters.memory_repository import InMemoryRepository
from ..adapters.mock_adapters import ConsoleNotifier, MockCalendarClient, MockPaymentGateway
from ..adapters.seed import seed_repository
from ..adapters.sql_repository import SqlRepository
from ..adapters.stripe_gateway import StripePaymentGateway
from ..services.availability import AvailabilityService
from ..services.booking import BookingService
from ..services.reminders import ReminderService

app = typer.Typer(
    name="slotbook",
    help="Book services: browse slots, reserve, pay and sync to the calendar",
    add_completion=False
)

console = Console()

MOCK_USER = User(id="demo", email="demo@example.com", name="Demo Kunde")

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
MockOption = Annotated[bool, typer.Option("--mock", help="In-Memory-Daten (pro Aufruf neu, ohne Zustand), Mock-Zahlung und Mock-Kalender nutzen.")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Aktueller Zeitpunkt (ISO 8601), Standard: jetzt")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug-Logging aktivieren.")] = False,
):
    """
    slotbook - Termine für Dienstleistungen buchen.
    """
    setup_logging("DEBUG" if verbose else "WARNING")


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_repository(config: AppConfig, mock: bool):
    """
    Return the repository for this run.

    Mock runs get a fresh in-memory repository seeded from the config plus a
    demo user. Nothing carries over between invocations: a booking made by
    `book --mock` is unknown to a later `webhook --mock`. Otherwise the
    configured database is used.
    """
    if mock:
        repository = InMemoryRepository()
        seed_repository(repository, config)
        repository.add_user(MOCK_USER)
        return repository

    return SqlRepository.from_url(
        config.database.url,
        lock_timeout_seconds=config.database.lock_timeout_seconds,
    )


def _build_booking_service(config: AppConfig, repository, mock: bool) -> BookingService:
    if mock:
        payment_gateway = MockPaymentGateway()
        calendar_client = MockCalendarClient()
    else:
        payment_gateway = StripePaymentGateway(
            secret_key=config.stripe.secret_key,
            webhook_secret=config.stripe.webhook_secret,
        )
        calendar_client = GoogleCalendarClient(
            client_id=config.google.client_id,
            client_secret=config.google.client_secret,
        )

    return BookingService(
        repository=repository,
        payment_gateway=payment_gateway,
        calendar_client=calendar_client,
        app_url=config.app_url,
    )


def _parse_instant(value: Optional[str], tz: str) -> DateTime:
    """Parse an ISO 8601 instant; naive values are read in ``tz``."""
    if value is None:
        return pendulum.now(tz)

    parsed = pendulum.parse(value, tz=tz)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Kein gültiger Zeitpunkt: {value}")
    return parsed


def _fail(message: object) -> None:
    console.print(f"[bold red]Fehler:[/bold red] {message}")
    raise typer.Exit(1)


@app.command()
def services(
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List all bookable services.
    """
    try:
        config = _load_config(config_file)
        repository = _build_repository(config, mock)
        service_list = repository.list_services()
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    if not service_list:
        console.print("[yellow]Keine Dienstleistungen konfiguriert.[/yellow]")
        return

    table = Table(
        title="Dienstleistungen",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("ID", style="bold yellow")
    table.add_column("Name")
    table.add_column("Dauer", justify="right")
    table.add_column("Preis", justify="right", style="dim")

    for service in service_list:
        table.add_row(
            service.id,
            service.name,
            f"{service.duration_minutes} Min.",
            f"{service.price:.2f} {service.currency.upper()}",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Datum (YYYY-MM-DD)")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service ID")],
    available_only: Annotated[bool, typer.Option("--available-only", help="Nur freie Slots anzeigen.")] = False,
    now: NowOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the slots of a service for one day.

    Examples:

        slotbook slots 2026-11-02 --service strategy-session --mock

        slotbook slots 2026-11-02 -s quick-consultation --available-only
    """
    try:
        config = _load_config(config_file)
        tz = config.timezone

        try:
            target_day = pendulum.from_format(day, "YYYY-MM-DD", tz=tz).date()
        except ValueError as e:
            _fail(f"Datum konnte nicht gelesen werden: {e}")

        current = _parse_instant(now, tz)

        repository = _build_repository(config, mock)
        availability = AvailabilityService(
            repository=repository,
            slot_generator=SlotGenerator(timezone=tz),
        )
        slot_list = availability.list_slots(
            day=target_day,
            service_id=service,
            now=current,
            available_only=available_only,
        )
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    console.print()
    if not slot_list:
        console.print("[yellow]⚠ Keine Slots an diesem Tag.[/yellow]\n")
        return

    free_count = sum(1 for slot in slot_list if slot.available)
    console.print(f"[bold green]✓ {free_count} von {len(slot_list)} Slot(s) frei:[/bold green]\n")

    for slot in slot_list:
        marker = "[green]frei[/green]" if slot.available else "[red]belegt[/red]"
        console.print(f"  {slot.format_display()}  {marker}")

    console.print()


@app.command()
def book(
    service_id: Annotated[str, typer.Argument(help="Service ID")],
    start: Annotated[str, typer.Argument(help="Beginn (ISO 8601, z. B. 2026-11-02T10:00:00Z)")],
    user: Annotated[str, typer.Option("--user", "-u", help="User ID")] = MOCK_USER.id,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Reserve a slot and start the checkout.
    """
    try:
        config = _load_config(config_file)
        start_at = _parse_instant(start, config.timezone)

        repository = _build_repository(config, mock)
        booking_service = _build_booking_service(config, repository, mock)
        result = booking_service.start_checkout(
            service_id=service_id,
            user_id=user,
            start=start_at,
        )
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    booking = result.booking
    console.print(Panel.fit(
        f"[bold green]✓ Slot reserviert[/bold green]\n\n"
        f"[bold]Buchung:[/bold] {booking.id}\n"
        f"[bold]Zeit:[/bold] {booking.time_range}\n"
        f"[bold]Status:[/bold] {booking.status.value}\n"
        f"[bold]Bezahlen:[/bold] {result.url}",
        title="Buchung"
    ))


@app.command()
def webhook(
    payload_file: Annotated[Path, typer.Argument(help="Datei mit dem rohen Webhook-Body")],
    signature: Annotated[str, typer.Option("--signature", help="Wert des Stripe-Signature Headers")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Process a payment webhook delivery.
    """
    try:
        config = _load_config(config_file)
        payload = payload_file.read_bytes()

        repository = _build_repository(config, mock)
        booking_service = _build_booking_service(config, repository, mock)
        event = booking_service.handle_payment_webhook(payload, signature)
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    console.print(f"[green]✓ Event verarbeitet:[/green] {event.type}")


@app.command()
def remind(
    now: NowOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Send reminders for upcoming confirmed bookings.
    """
    try:
        config = _load_config(config_file)
        current = _parse_instant(now, config.timezone)

        repository = _build_repository(config, mock)
        reminders = ReminderService(
            repository=repository,
            notifier=ConsoleNotifier(console),
            lead_times_hours=config.reminders.lead_times_hours,
            window_minutes=config.reminders.window_minutes,
        )
        sent = reminders.process_reminders(current)
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    console.print(f"[green]✓ {sent} Erinnerung(en) versendet.[/green]")


@app.command()
def init_db(
    config_file: ConfigOption = None,
):
    """
    Create the database tables and seed services and working hours.
    """
    try:
        config = _load_config(config_file)
        repository = SqlRepository.from_url(
            config.database.url,
            lock_timeout_seconds=config.database.lock_timeout_seconds,
        )
        repository.create_schema()
        seed_repository(repository, config)
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    console.print(f"\n[green]✓ Datenbank initialisiert:[/green] {config.database.url}\n")


@app.command()
def add_user(
    user_id: Annotated[str, typer.Argument(help="User ID")],
    email: Annotated[str, typer.Argument(help="E-Mail-Adresse")],
    name: Annotated[str, typer.Option("--name", help="Anzeigename")] = "",
    google_refresh_token: Annotated[Optional[str], typer.Option("--google-refresh-token", help="Token für den Kalender-Sync")] = None,
    config_file: ConfigOption = None,
):
    """
    Create or update a customer in the database.
    """
    try:
        config = _load_config(config_file)
        repository = SqlRepository.from_url(
            config.database.url,
            lock_timeout_seconds=config.database.lock_timeout_seconds,
        )
        repository.add_user(
            User(id=user_id, email=email, name=name, google_refresh_token=google_refresh_token)
        )
    except (FileNotFoundError, ValueError, BookingError) as e:
        _fail(e)

    console.print(f"[green]✓ Benutzer gespeichert:[/green] {user_id} ({email})")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
