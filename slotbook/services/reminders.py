"""
Appointment reminders, meant to be triggered periodically (e.g. every 30 minutes).
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pendulum import DateTime

from ..domain.models import Booking, BookingStatus, TimeRange
from .protocols import BookingRepository, Notifier

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Sends reminders for confirmed bookings starting after a lead time.

    For each lead time ``L`` a run at ``now`` picks bookings starting in
    ``[now + L - window, now + L)``. Running every ``window`` minutes covers
    each booking exactly once per lead time.
    """

    def __init__(
        self,
        repository: BookingRepository,
        notifier: Notifier,
        lead_times_hours: Sequence[int] = (24, 1),
        window_minutes: int = 30,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._lead_times_hours = list(lead_times_hours)
        self._window_minutes = window_minutes

    def due_bookings(self, now: DateTime, lead_time_hours: int) -> List[Booking]:
        """Confirmed bookings whose start falls in the reminder window."""
        upper = now.add(hours=lead_time_hours)
        lower = upper.subtract(minutes=self._window_minutes)

        candidates = self._repository.list_bookings(
            TimeRange(start=lower, end=upper),
            [BookingStatus.CONFIRMED],
        )
        return [booking for booking in candidates if lower <= booking.start < upper]

    def process_reminders(self, now: DateTime) -> int:
        """
        Send all reminders due at ``now``.

        Returns:
            Number of messages sent
        """
        sent = 0

        for lead_time in self._lead_times_hours:
            for booking in self.due_bookings(now, lead_time):
                user = self._repository.get_user(booking.user_id)
                service = self._repository.get_service(booking.service_id)
                if user is None or service is None:
                    logger.warning("Skipping reminder for booking %s: missing user or service", booking.id)
                    continue

                message = (
                    f"Reminder: {service.name} starts at "
                    f"{booking.start.in_timezone('UTC').format('YYYY-MM-DD HH:mm')} UTC"
                )
                self._notifier.send(user.email, message)
                logger.info("Sent %dh reminder for booking %s to %s", lead_time, booking.id, user.email)
                sent += 1

        return sent
