"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService
from .booking import BookingService, CheckoutResult
from .protocols import BookingRepository, CalendarClient, Notifier, PaymentGateway
from .reminders import ReminderService

__all__ = [
    "AvailabilityService",
    "BookingRepository",
    "BookingService",
    "CalendarClient",
    "CheckoutResult",
    "Notifier",
    "PaymentGateway",
    "ReminderService",
]
