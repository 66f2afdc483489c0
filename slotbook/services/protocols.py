"""
Protocols describing the collaborators the booking services depend on.

Dependency inversion toward these protocols lets the CLI plug in SQL, Stripe
and Google adapters while tests and ``--mock`` runs use in-memory stand-ins.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from ..domain.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    CheckoutSession,
    PaymentEvent,
    Service,
    TimeRange,
    User,
    WorkingHourWindow,
)


class BookingRepository(Protocol):
    """Persistence operations needed by the booking services."""

    def list_services(self, active_only: bool = True) -> List[Service]:
        """Return services, optionally only active ones."""

    def get_service(self, service_id: str) -> Optional[Service]:
        """Return a service by id or None."""

    def add_service(self, service: Service) -> Service:
        """Create or replace a service."""

    def list_working_hours(self, day_of_week: int) -> List[WorkingHourWindow]:
        """Return the windows for a weekday (0=Monday)."""

    def add_working_hours(self, day_of_week: int, window: WorkingHourWindow) -> None:
        """Add a window to a weekday."""

    def list_bookings(
        self,
        time_range: TimeRange,
        statuses: Sequence[BookingStatus],
    ) -> List[Booking]:
        """Return bookings in the given statuses that overlap ``time_range``."""

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Return a booking by id or None."""

    def insert_booking_if_no_conflict(self, request: BookingRequest) -> Booking:
        """
        Atomically check for overlapping active bookings and insert a PENDING one.

        Raises:
            SlotConflictError: If an active booking overlaps the request
        """

    def attach_checkout_session(self, booking_id: str, session_id: str) -> Booking:
        """Store the payment provider session id on a booking."""

    def confirm_booking(self, booking_id: str) -> Booking:
        """Mark a PENDING booking CONFIRMED and PAID; BookingStateError otherwise."""

    def set_calendar_event(self, booking_id: str, event_id: str) -> Booking:
        """Store the calendar event id on a booking."""

    def cancel_booking(self, booking_id: str) -> Booking:
        """Mark a booking CANCELLED, releasing its slot."""

    def get_user(self, user_id: str) -> Optional[User]:
        """Return a user by id or None."""

    def add_user(self, user: User) -> User:
        """Create or replace a user."""


class PaymentGateway(Protocol):
    """Checkout provider behaviour needed by the booking service."""

    def create_checkout_session(
        self,
        booking: Booking,
        service: Service,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a hosted checkout for the service price."""

    def parse_webhook(self, payload: bytes, signature: str) -> PaymentEvent:
        """
        Verify and decode a webhook delivery.

        Raises:
            WebhookVerificationError: If the signature does not match
        """


class CalendarClient(Protocol):
    """Calendar sync behaviour needed by the booking service."""

    def create_event(self, booking: Booking, service: Service, user: User) -> str:
        """Create an event for the booking and return its id."""


class Notifier(Protocol):
    """Outbound message delivery used for reminders."""

    def send(self, address: str, message: str) -> None:
        """Send a message to an address."""
