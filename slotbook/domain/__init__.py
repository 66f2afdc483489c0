"""
Domain layer - Pure business logic without external dependencies.
"""

from .intervals import first_conflict, overlaps
from .models import (
    ACTIVE_STATUSES,
    BookedInterval,
    Booking,
    BookingRequest,
    BookingStatus,
    CandidateSlot,
    PaymentStatus,
    Service,
    TimeRange,
    User,
    WorkingHourWindow,
    parse_local_time,
)
from .slot_generator import SlotGenerator, validate_duration

__all__ = [
    "ACTIVE_STATUSES",
    "BookedInterval",
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "CandidateSlot",
    "PaymentStatus",
    "Service",
    "SlotGenerator",
    "TimeRange",
    "User",
    "WorkingHourWindow",
    "first_conflict",
    "overlaps",
    "parse_local_time",
    "validate_duration",
]
