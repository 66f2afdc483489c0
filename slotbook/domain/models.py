"""
Domain models for working hours, booked intervals, slots and bookings.
"""

import re
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidLocalTimeError
from .intervals import overlaps

_LOCAL_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_local_time(value: "str | time") -> time:
    """
    Parse a wall-clock time in ``HH:MM`` format.

    Args:
        value: String such as ``"09:30"`` or an existing ``datetime.time``

    Returns:
        ``datetime.time`` with seconds and microseconds set to zero

    Raises:
        InvalidLocalTimeError: If the value is malformed or out of range
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)

    if not isinstance(value, str):
        raise InvalidLocalTimeError(f"Expected a 'HH:MM' string, got {type(value).__name__}")

    match = _LOCAL_TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidLocalTimeError(f"Invalid time '{value}', expected HH:MM")

    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour < 24:
        raise InvalidLocalTimeError(f"Hour must be between 0 and 23, got {hour}")
    if not 0 <= minute < 60:
        raise InvalidLocalTimeError(f"Minute must be between 0 and 59, got {minute}")

    return time(hour=hour, minute=minute)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another (half-open)."""
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


# Bookings as seen by slot generation are plain time ranges.
BookedInterval = TimeRange


@dataclass(frozen=True)
class WorkingHourWindow:
    """
    A recurring daily window during which a service may be booked.

    Invariant: start_of_day must be before end_of_day.
    """
    start_of_day: time
    end_of_day: time

    def __post_init__(self):
        if self.start_of_day >= self.end_of_day:
            raise ValueError(
                f"Window start {self.start_of_day} must be before window end {self.end_of_day}"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "WorkingHourWindow":
        """Build a window from two ``HH:MM`` strings."""
        return cls(start_of_day=parse_local_time(start), end_of_day=parse_local_time(end))

    def __str__(self) -> str:
        return f"{self.start_of_day.strftime('%H:%M')}-{self.end_of_day.strftime('%H:%M')}"


@dataclass(frozen=True)
class CandidateSlot:
    """
    A bookable slot computed for a single availability query.
    """
    start: DateTime
    end: DateTime
    available: bool

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "available": self.available,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Wochentag, DD.MM.YYYY | HH:MM – HH:MM Uhr
        """
        weekday_names = {
            0: "Montag",
            1: "Dienstag",
            2: "Mittwoch",
            3: "Donnerstag",
            4: "Freitag",
            5: "Samstag",
            6: "Sonntag"
        }

        weekday = weekday_names[self.start.weekday()]
        date_str = self.start.format("DD.MM.YYYY")
        time_str = f"{self.start.format('HH:mm')} – {self.end.format('HH:mm')} Uhr"

        return f"{weekday}, {date_str} | {time_str} ({self.duration_minutes()} Min.)"


class BookingStatus(str, Enum):
    """Lifecycle state of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    """Payment state of a booking."""

    UNPAID = "UNPAID"
    PAID = "PAID"


# Statuses that hold on to their time range.
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


@dataclass(frozen=True)
class Service:
    """A bookable service offered by the business."""
    id: str
    name: str
    duration_minutes: int
    price: float
    description: str = ""
    currency: str = "usd"
    active: bool = True

    def price_in_minor_units(self) -> int:
        """Price in cents (or the currency's smallest unit)."""
        return int(round(self.price * 100))


@dataclass(frozen=True)
class User:
    """A customer able to book services."""
    id: str
    email: str
    name: str = ""
    google_refresh_token: Optional[str] = None


@dataclass(frozen=True)
class BookingRequest:
    """A booking that has not been written yet."""
    service_id: str
    user_id: str
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")


@dataclass
class Booking:
    """A persisted booking."""
    id: str
    service_id: str
    user_id: str
    start: DateTime
    end: DateTime
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    checkout_session_id: Optional[str] = None
    calendar_event_id: Optional[str] = None
    created_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class CheckoutSession:
    """A payment provider checkout session."""
    id: str
    url: str


@dataclass(frozen=True)
class PaymentEvent:
    """A verified payment webhook event."""
    type: str
    booking_id: Optional[str] = None
    session_id: Optional[str] = None
