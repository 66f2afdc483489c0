"""
In-memory repository for tests, demos and ``--mock`` runs.
"""

import threading
import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from ..domain.exceptions import BookingNotFoundError, BookingStateError, SlotConflictError
from ..domain.intervals import first_conflict, overlaps
from ..domain.models import (
    ACTIVE_STATUSES,
    Booking,
    BookingRequest,
    BookingStatus,
    PaymentStatus,
    Service,
    TimeRange,
    User,
    WorkingHourWindow,
)


class InMemoryRepository:
    """
    Dictionary-backed repository.

    A single lock guards every mutation, so the conflict search and the insert
    in ``insert_booking_if_no_conflict`` run as one step. Returned bookings are
    copies; callers cannot change stored state by mutating them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.services: Dict[str, Service] = {}
        self.working_hours: Dict[int, List[WorkingHourWindow]] = {}
        self.bookings: Dict[str, Booking] = {}
        self.users: Dict[str, User] = {}

    def list_services(self, active_only: bool = True) -> List[Service]:
        return [
            service for service in self.services.values()
            if service.active or not active_only
        ]

    def get_service(self, service_id: str) -> Optional[Service]:
        return self.services.get(service_id)

    def add_service(self, service: Service) -> Service:
        with self._lock:
            self.services[service.id] = service
        return service

    def list_working_hours(self, day_of_week: int) -> List[WorkingHourWindow]:
        return list(self.working_hours.get(day_of_week, []))

    def add_working_hours(self, day_of_week: int, window: WorkingHourWindow) -> None:
        with self._lock:
            self.working_hours.setdefault(day_of_week, []).append(window)

    def list_bookings(
        self,
        time_range: TimeRange,
        statuses: Sequence[BookingStatus],
    ) -> List[Booking]:
        with self._lock:
            matches = [
                replace(booking) for booking in self.bookings.values()
                if booking.status in statuses and overlaps(booking, time_range)
            ]
        return sorted(matches, key=lambda booking: booking.start)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self.bookings.get(booking_id)
        return replace(booking) if booking else None

    def insert_booking_if_no_conflict(self, request: BookingRequest) -> Booking:
        with self._lock:
            active = [
                booking for booking in self.bookings.values()
                if booking.status in ACTIVE_STATUSES
            ]
            conflict = first_conflict(request, active)
            if conflict is not None:
                raise SlotConflictError(conflicting_id=conflict.id)

            booking = Booking(
                id=uuid.uuid4().hex,
                service_id=request.service_id,
                user_id=request.user_id,
                start=request.start,
                end=request.end,
            )
            self.bookings[booking.id] = booking
            return replace(booking)

    def attach_checkout_session(self, booking_id: str, session_id: str) -> Booking:
        return self._update(booking_id, checkout_session_id=session_id)

    def confirm_booking(self, booking_id: str) -> Booking:
        return self._update(
            booking_id,
            expected_status=BookingStatus.PENDING,
            status=BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.PAID,
        )

    def set_calendar_event(self, booking_id: str, event_id: str) -> Booking:
        return self._update(booking_id, calendar_event_id=event_id)

    def cancel_booking(self, booking_id: str) -> Booking:
        return self._update(booking_id, status=BookingStatus.CANCELLED)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def add_user(self, user: User) -> User:
        with self._lock:
            self.users[user.id] = user
        return user

    def _update(
        self,
        booking_id: str,
        expected_status: Optional[BookingStatus] = None,
        **changes,
    ) -> Booking:
        with self._lock:
            booking = self.bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError(f"Booking not found: {booking_id}")
            if expected_status is not None and booking.status != expected_status:
                raise BookingStateError(
                    f"Booking {booking_id} is {booking.status.value}, expected {expected_status.value}",
                    status=booking.status.value,
                )
            updated = replace(booking, **changes)
            self.bookings[booking_id] = updated
            return replace(updated)
