"""
Tests for domain models.
"""

from datetime import time

import pendulum
import pytest

from slotbook.domain.exceptions import InvalidLocalTimeError
from slotbook.domain.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    CandidateSlot,
    Service,
    TimeRange,
    WorkingHourWindow,
    parse_local_time,
)


def _dt(value: str):
    return pendulum.parse(value, tz="UTC")


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        start = _dt("2024-11-25 09:00")
        end = _dt("2024-11-25 17:00")

        tr = TimeRange(start=start, end=end)

        assert tr.start == start
        assert tr.end == end
        assert tr.duration_minutes() == 480  # 8 hours

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=_dt("2024-11-25 17:00"), end=_dt("2024-11-25 09:00"))

    def test_empty_time_range_raises_error(self):
        """A zero-length range is rejected."""
        with pytest.raises(ValueError):
            TimeRange(start=_dt("2024-11-25 09:00"), end=_dt("2024-11-25 09:00"))

    def test_overlaps(self):
        """Test overlap detection."""
        tr1 = TimeRange(start=_dt("2024-11-25 09:00"), end=_dt("2024-11-25 12:00"))
        tr2 = TimeRange(start=_dt("2024-11-25 11:00"), end=_dt("2024-11-25 14:00"))
        tr3 = TimeRange(start=_dt("2024-11-25 14:00"), end=_dt("2024-11-25 17:00"))

        assert tr1.overlaps(tr2)
        assert tr2.overlaps(tr1)
        assert not tr1.overlaps(tr3)
        # Touching endpoints do not overlap
        assert not tr2.overlaps(tr3)


class TestParseLocalTime:
    """Tests for HH:MM parsing."""

    def test_parses_valid_times(self):
        assert parse_local_time("09:00") == time(9, 0)
        assert parse_local_time("9:30") == time(9, 30)
        assert parse_local_time(" 23:59 ") == time(23, 59)
        assert parse_local_time("00:00") == time(0, 0)

    def test_accepts_time_objects(self):
        """Existing time values are normalised to whole minutes."""
        assert parse_local_time(time(8, 15, 42)) == time(8, 15)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "-1:00", "0900", "9", "09:00:00", "", "ab:cd"])
    def test_rejects_invalid_strings(self, value):
        with pytest.raises(InvalidLocalTimeError):
            parse_local_time(value)

    def test_rejects_non_strings(self):
        """YAML reads unquoted 17:00 as an integer; that must not slip through."""
        with pytest.raises(InvalidLocalTimeError):
            parse_local_time(1020)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_local_time("25:00")


class TestWorkingHourWindow:
    """Tests for WorkingHourWindow model."""

    def test_from_strings(self):
        window = WorkingHourWindow.from_strings("09:30", "17:00")

        assert window.start_of_day == time(9, 30)
        assert window.end_of_day == time(17, 0)
        assert str(window) == "09:30-17:00"

    def test_start_must_precede_end(self):
        with pytest.raises(ValueError, match="must be before window end"):
            WorkingHourWindow.from_strings("17:00", "09:00")

        with pytest.raises(ValueError):
            WorkingHourWindow.from_strings("09:00", "09:00")


class TestCandidateSlot:
    """Tests for CandidateSlot model."""

    def test_format_display(self):
        slot = CandidateSlot(
            start=_dt("2024-11-25 09:00"),
            end=_dt("2024-11-25 09:30"),
            available=True,
        )

        assert slot.format_display() == "Montag, 25.11.2024 | 09:00 – 09:30 Uhr (30 Min.)"

    def test_to_dict(self):
        slot = CandidateSlot(
            start=_dt("2024-11-25 09:00"),
            end=_dt("2024-11-25 10:00"),
            available=False,
        )

        data = slot.to_dict()

        assert data["available"] is False
        assert data["start"].startswith("2024-11-25T09:00:00")
        assert slot.time_range.duration_minutes() == 60


class TestServiceAndBooking:
    """Tests for Service and Booking models."""

    def test_price_in_minor_units(self):
        service = Service(id="s", name="Audit", duration_minutes=90, price=249.99)

        assert service.price_in_minor_units() == 24999

    def test_booking_request_requires_positive_range(self):
        with pytest.raises(ValueError):
            BookingRequest(
                service_id="s",
                user_id="u",
                start=_dt("2024-11-25 10:00"),
                end=_dt("2024-11-25 09:00"),
            )

    def test_booking_is_active(self):
        booking = Booking(
            id="b1",
            service_id="s",
            user_id="u",
            start=_dt("2024-11-25 10:00"),
            end=_dt("2024-11-25 11:00"),
        )

        assert booking.status == BookingStatus.PENDING
        assert booking.is_active

        booking.status = BookingStatus.CANCELLED
        assert not booking.is_active
