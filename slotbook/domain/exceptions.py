"""
Domain-specific exception hierarchy for the booking application.
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class InvalidDurationError(BookingError, ValueError):
    """Raised when a duration is not a positive whole number of minutes."""


class InvalidLocalTimeError(BookingError, ValueError):
    """Raised when a wall-clock time cannot be parsed or is out of range."""


class SlotConflictError(BookingError):
    """Raised when a requested slot overlaps an active booking at write time."""

    def __init__(self, message: str = "Slot is no longer available", conflicting_id: str | None = None):
        super().__init__(message)
        self.conflicting_id = conflicting_id


class ServiceNotFoundError(BookingError):
    """Raised when a service does not exist or is inactive."""


class BookingNotFoundError(BookingError):
    """Raised when a booking id cannot be resolved."""


class UserNotFoundError(BookingError):
    """Raised when a user id cannot be resolved."""


class BookingStateError(BookingError):
    """Raised when a booking is not in the status a transition requires."""

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.status = status


class StorageError(BookingError):
    """Raised when the database cannot complete a transaction (e.g. lock timeout)."""


class PaymentError(BookingError):
    """Raised when the payment provider rejects or fails a request."""


class WebhookVerificationError(PaymentError):
    """Raised when a webhook payload does not carry a valid signature."""


class CalendarSyncError(BookingError):
    """Raised when a calendar event cannot be created."""
