"""
Mock payment and calendar adapters for running without Stripe or Google.
"""

import hashlib
import hmac
import json
import uuid
from typing import Dict, List, Tuple

from rich.console import Console

from ..domain.exceptions import WebhookVerificationError
from ..domain.models import Booking, CheckoutSession, PaymentEvent, Service, User
from .stripe_gateway import _event_from_payload


class MockPaymentGateway:
    """
    Mock gateway that simulates Stripe Checkout.

    Sessions point at a fake URL; webhooks are signed with an HMAC-SHA256 of
    the raw payload so signature handling can still be exercised.
    """

    def __init__(self, webhook_secret: str = "mock_webhook_secret"):
        self.webhook_secret = webhook_secret
        self.sessions: Dict[str, Tuple[str, Service]] = {}

    def create_checkout_session(
        self,
        booking: Booking,
        service: Service,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        session_id = f"cs_mock_{uuid.uuid4().hex[:12]}"
        self.sessions[session_id] = (booking.id, service)
        return CheckoutSession(
            id=session_id,
            url=f"https://checkout.mock/pay/{session_id}?success={success_url}",
        )

    def sign(self, payload: bytes) -> str:
        """Signature accepted by ``parse_webhook`` for this payload."""
        return hmac.new(self.webhook_secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()

    def completed_event_payload(self, booking_id: str, session_id: str = "cs_mock") -> bytes:
        """Build a ``checkout.session.completed`` body for a booking."""
        body = {
            "type": "checkout.session.completed",
            "data": {"object": {"id": session_id, "metadata": {"bookingId": booking_id}}},
        }
        return json.dumps(body).encode("utf-8")

    def parse_webhook(self, payload: bytes, signature: str) -> PaymentEvent:
        if not hmac.compare_digest(self.sign(payload), signature or ""):
            raise WebhookVerificationError("Invalid webhook signature")

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise WebhookVerificationError(f"Webhook payload is not valid JSON: {exc}") from exc

        return _event_from_payload(data)


class MockCalendarClient:
    """
    Mock calendar that records created events in memory.
    """

    def __init__(self):
        self.events: List[Dict[str, str]] = []

    def create_event(self, booking: Booking, service: Service, user: User) -> str:
        event_id = f"evt_mock_{uuid.uuid4().hex[:12]}"
        self.events.append(
            {
                "id": event_id,
                "booking_id": booking.id,
                "summary": f"Booking: {service.name}",
                "attendee": user.email,
            }
        )
        return event_id


class ConsoleNotifier:
    """
    Notifier printing messages to the terminal instead of sending them.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def send(self, address: str, message: str) -> None:
        self.console.print(f"[cyan]✉ {address}[/cyan]: {message}")
