"""
Application service answering "which slots can I book on this day?".

The service fetches working hours and active bookings from the repository and
delegates the slot calculation to the domain-level ``SlotGenerator``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ServiceNotFoundError
from ..domain.models import ACTIVE_STATUSES, CandidateSlot, Service, TimeRange
from ..domain.slot_generator import SlotGenerator
from .protocols import BookingRepository

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Orchestrates repository reads and slot generation for one day.
    """

    def __init__(
        self,
        repository: BookingRepository,
        slot_generator: SlotGenerator,
    ) -> None:
        self._repository = repository
        self._slot_generator = slot_generator

    @property
    def timezone(self) -> str:
        return self._slot_generator.timezone

    def get_service(self, service_id: str) -> Service:
        """Return an active service or raise ServiceNotFoundError."""
        service = self._repository.get_service(service_id)
        if service is None or not service.active:
            raise ServiceNotFoundError(f"Service not found: {service_id}")
        return service

    def day_range(self, day: date) -> TimeRange:
        """Midnight-to-midnight range of ``day`` in the reference timezone."""
        start = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        return TimeRange(start=start, end=start.add(days=1))

    def list_slots(
        self,
        *,
        day: date,
        service_id: str,
        now: DateTime,
        available_only: bool = False,
    ) -> List[CandidateSlot]:
        """
        Compute the candidate slots for a service on a given day.

        Args:
            day: Calendar day to query
            service_id: Service whose duration sets the slot length
            now: Current instant
            available_only: Drop unavailable slots from the result

        Returns:
            Slots ordered by start time
        """
        service = self.get_service(service_id)

        windows = self._repository.list_working_hours(day.weekday())
        bookings = self._repository.list_bookings(self.day_range(day), ACTIVE_STATUSES)

        slots = self._slot_generator.generate(
            day=day,
            duration_minutes=service.duration_minutes,
            windows=windows,
            booked_intervals=[booking.time_range for booking in bookings],
            now=now,
        )

        logger.debug(
            "Generated %d slots for %s on %s (%d windows, %d bookings)",
            len(slots),
            service.id,
            day.isoformat(),
            len(windows),
            len(bookings),
        )

        if available_only:
            return [slot for slot in slots if slot.available]
        return slots
