"""
Write path for bookings: conflict-checked creation, checkout and payment
confirmation.

The conflict check itself lives in the repository so that "check overlap,
then insert" runs atomically against concurrent writers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pendulum import DateTime

from ..domain.exceptions import (
    BookingNotFoundError,
    BookingStateError,
    CalendarSyncError,
    PaymentError,
    ServiceNotFoundError,
    UserNotFoundError,
)
from ..domain.models import Booking, BookingRequest, BookingStatus, PaymentEvent, Service
from ..domain.slot_generator import validate_duration
from .protocols import BookingRepository, CalendarClient, PaymentGateway

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass(frozen=True)
class CheckoutResult:
    """A pending booking and where to send the customer to pay for it."""
    booking: Booking
    url: str


class BookingService:
    """
    Creates bookings and moves them through PENDING -> CONFIRMED.
    """

    def __init__(
        self,
        repository: BookingRepository,
        payment_gateway: Optional[PaymentGateway] = None,
        calendar_client: Optional[CalendarClient] = None,
        app_url: str = "http://localhost:3000",
    ) -> None:
        self._repository = repository
        self._payment_gateway = payment_gateway
        self._calendar_client = calendar_client
        self._app_url = app_url.rstrip("/")

    def create_booking(self, *, service_id: str, user_id: str, start: DateTime) -> Booking:
        """
        Create a PENDING booking if the slot is still free.

        Raises:
            ServiceNotFoundError: If the service is unknown or inactive
            UserNotFoundError: If the user is unknown
            InvalidDurationError: If the service carries an invalid duration
            SlotConflictError: If an active booking overlaps the slot
        """
        service = self._get_service(service_id)
        if self._repository.get_user(user_id) is None:
            raise UserNotFoundError(f"User not found: {user_id}")

        minutes = validate_duration(service.duration_minutes)
        request = BookingRequest(
            service_id=service.id,
            user_id=user_id,
            start=start,
            end=start.add(minutes=minutes),
        )

        booking = self._repository.insert_booking_if_no_conflict(request)
        logger.info(
            "Created pending booking %s for %s at %s",
            booking.id,
            service.id,
            booking.start.to_iso8601_string(),
        )
        return booking

    def start_checkout(self, *, service_id: str, user_id: str, start: DateTime) -> CheckoutResult:
        """
        Create a PENDING booking and a checkout session for it.

        If the payment provider fails the booking is cancelled again so it
        stops blocking the slot.
        """
        if self._payment_gateway is None:
            raise PaymentError("No payment gateway configured")

        booking = self.create_booking(service_id=service_id, user_id=user_id, start=start)
        service = self._get_service(service_id)

        try:
            session = self._payment_gateway.create_checkout_session(
                booking=booking,
                service=service,
                success_url=f"{self._app_url}/booking/success?id={booking.id}",
                cancel_url=f"{self._app_url}/booking/cancel?id={booking.id}",
            )
        except PaymentError:
            logger.warning("Checkout failed for booking %s, releasing slot", booking.id)
            self._repository.cancel_booking(booking.id)
            raise

        booking = self._repository.attach_checkout_session(booking.id, session.id)
        return CheckoutResult(booking=booking, url=session.url)

    def handle_payment_webhook(self, payload: bytes, signature: str) -> PaymentEvent:
        """
        Verify a payment webhook and confirm the booking it refers to.

        Events other than a completed checkout are acknowledged and ignored.

        Raises:
            WebhookVerificationError: If the signature is invalid
            BookingNotFoundError: If the referenced booking does not exist
        """
        if self._payment_gateway is None:
            raise PaymentError("No payment gateway configured")

        event = self._payment_gateway.parse_webhook(payload, signature)

        if event.type != CHECKOUT_COMPLETED or not event.booking_id:
            logger.debug("Ignoring payment event %s", event.type)
            return event

        self.confirm_booking(event.booking_id)
        return event

    def confirm_booking(self, booking_id: str) -> Booking:
        """
        Mark a PENDING booking as paid and confirmed, then sync it to the calendar.

        Only PENDING bookings move to CONFIRMED. A cancelled booking has
        released its slot, so a late payment for it is logged and the booking
        is returned unchanged.
        """
        existing = self._repository.get_booking(booking_id)
        if existing is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")

        if existing.status == BookingStatus.CONFIRMED:
            return existing

        try:
            booking = self._repository.confirm_booking(booking_id)
        except BookingStateError as exc:
            logger.warning(
                "Payment received for booking %s in status %s, not confirming (refund needed)",
                booking_id,
                exc.status,
            )
            return self._repository.get_booking(booking_id)

        logger.info("Booking %s confirmed", booking.id)

        return self.sync_to_calendar(booking)

    def cancel_booking(self, booking_id: str) -> Booking:
        """Cancel a booking and release its slot."""
        if self._repository.get_booking(booking_id) is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")
        booking = self._repository.cancel_booking(booking_id)
        logger.info("Booking %s cancelled", booking.id)
        return booking

    def sync_to_calendar(self, booking: Booking) -> Booking:
        """
        Create a calendar event for a confirmed booking.

        Users without a calendar token are skipped. Calendar failures are
        logged and do not undo the confirmation.
        """
        if self._calendar_client is None:
            return booking

        user = self._repository.get_user(booking.user_id)
        if user is None or not user.google_refresh_token:
            return booking

        service = self._get_service(booking.service_id, active_only=False)

        try:
            event_id = self._calendar_client.create_event(booking, service, user)
        except CalendarSyncError as exc:
            logger.warning("Calendar sync failed for booking %s: %s", booking.id, exc)
            return booking

        return self._repository.set_calendar_event(booking.id, event_id)

    def _get_service(self, service_id: str, active_only: bool = True) -> Service:
        service = self._repository.get_service(service_id)
        if service is None or (active_only and not service.active):
            raise ServiceNotFoundError(f"Service not found: {service_id}")
        return service
