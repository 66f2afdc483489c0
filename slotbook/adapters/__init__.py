"""
Adapters layer - persistence, Stripe and Google Calendar integrations.
"""

from .google_calendar import GoogleCalendarClient
from .memory_repository import InMemoryRepository
from .mock_adapters import ConsoleNotifier, MockCalendarClient, MockPaymentGateway
from .seed import seed_repository
from .sql_repository import SqlRepository, create_db_engine
from .stripe_gateway import StripePaymentGateway

__all__ = [
    "ConsoleNotifier",
    "GoogleCalendarClient",
    "InMemoryRepository",
    "MockCalendarClient",
    "MockPaymentGateway",
    "SqlRepository",
    "StripePaymentGateway",
    "create_db_engine",
    "seed_repository",
]
