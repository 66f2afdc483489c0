"""
Core business logic for generating bookable time slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O). The current instant is passed in rather than read from the
clock, so results are deterministic for a given set of inputs.
"""

from datetime import date
from numbers import Real
from typing import Iterable, List, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidDurationError
from .intervals import first_conflict
from .models import CandidateSlot, TimeRange, WorkingHourWindow


def validate_duration(duration_minutes: object) -> int:
    """
    Validate a duration in minutes and return it as an int.

    Integral floats (``30.0``) are accepted; booleans, fractional values and
    anything not strictly positive are rejected.

    Raises:
        InvalidDurationError: If the duration is not a positive whole number
    """
    not_whole = InvalidDurationError(
        f"Duration must be a whole number of minutes, got {duration_minutes!r}"
    )

    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, Real):
        raise not_whole

    try:
        minutes = int(duration_minutes)
    except (ValueError, OverflowError) as exc:  # nan, inf
        raise not_whole from exc

    if minutes != duration_minutes:
        raise not_whole

    if minutes <= 0:
        raise InvalidDurationError(f"Duration must be greater than zero, got {duration_minutes!r}")

    return minutes


class SlotGenerator:
    """
    Generates fixed-length candidate slots for one day.

    Algorithm, per working-hour window:
    1. Start a cursor at the window's opening time on the given day
    2. Emit back-to-back slots while a full slot still fits in the window
    3. Mark each slot unavailable if it overlaps a booking or starts before now
    4. Concatenate all windows and sort by start time
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone

    def generate(
        self,
        day: date,
        duration_minutes: int,
        windows: Sequence[WorkingHourWindow],
        booked_intervals: Iterable[TimeRange],
        now: DateTime,
    ) -> List[CandidateSlot]:
        """
        Generate candidate slots for a single day.

        Args:
            day: Calendar date, interpreted midnight-to-midnight in ``self.timezone``
            duration_minutes: Slot length in minutes, must be positive
            windows: Working-hour windows for the day's weekday (any order)
            booked_intervals: Existing bookings to avoid (any order)
            now: Current instant; slots starting before it are unavailable

        Returns:
            Slots ordered by start time, both available and unavailable

        Raises:
            InvalidDurationError: If duration_minutes is not a positive whole number
        """
        minutes = validate_duration(duration_minutes)

        if not windows:
            return []

        day_start = self._start_of_day(day)
        booked = list(booked_intervals)

        slots: List[CandidateSlot] = []
        for window in windows:
            slots.extend(
                self._slots_for_window(day_start, window, minutes, booked, now)
            )

        # Windows may come unordered or overlap; sort is stable so ties keep window order
        return sorted(slots, key=lambda slot: slot.start)

    def _start_of_day(self, day: date) -> DateTime:
        return pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)

    def _slots_for_window(
        self,
        day_start: DateTime,
        window: WorkingHourWindow,
        minutes: int,
        booked: List[TimeRange],
        now: DateTime,
    ) -> List[CandidateSlot]:
        """
        Split one window into consecutive slots of ``minutes`` length.

        A slot ending exactly at the window end is included; a trailing
        remainder shorter than ``minutes`` is dropped.
        """
        cursor = day_start.set(
            hour=window.start_of_day.hour,
            minute=window.start_of_day.minute,
        )
        window_end = day_start.set(
            hour=window.end_of_day.hour,
            minute=window.end_of_day.minute,
        )

        slots: List[CandidateSlot] = []

        while cursor.add(minutes=minutes) <= window_end:
            candidate = TimeRange(start=cursor, end=cursor.add(minutes=minutes))

            is_booked = first_conflict(candidate, booked) is not None
            is_past = candidate.start < now

            slots.append(
                CandidateSlot(
                    start=candidate.start,
                    end=candidate.end,
                    available=not is_booked and not is_past,
                )
            )

            cursor = candidate.end

        return slots
