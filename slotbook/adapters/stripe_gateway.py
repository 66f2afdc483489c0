"""
Stripe Checkout integration for booking payments.
"""

import json
import logging

import stripe

from ..domain.exceptions import PaymentError, WebhookVerificationError
from ..domain.models import Booking, CheckoutSession, PaymentEvent, Service

logger = logging.getLogger(__name__)


class StripePaymentGateway:
    """
    Creates Stripe Checkout sessions and verifies Stripe webhooks.

    The booking id travels in the session metadata (``bookingId``) and comes
    back on the ``checkout.session.completed`` event.
    """

    def __init__(self, secret_key: str | None, webhook_secret: str | None = None):
        """
        Initialize the gateway.

        Args:
            secret_key: Stripe secret API key
            webhook_secret: Signing secret of the webhook endpoint
        """
        if not secret_key:
            raise PaymentError("Stripe secret key missing (STRIPE_SECRET_KEY)")
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def create_checkout_session(
        self,
        booking: Booking,
        service: Service,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a one-off card payment for the service price.

        Raises:
            PaymentError: If the Stripe API call fails
        """
        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": service.currency,
                            "product_data": {"name": service.name},
                            "unit_amount": service.price_in_minor_units(),
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata={"bookingId": booking.id},
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout failed for booking %s: %s", booking.id, exc)
            raise PaymentError(f"Failed to create checkout session: {exc}") from exc

        logger.info("Created checkout session %s for booking %s", session.id, booking.id)
        return CheckoutSession(id=session.id, url=session.url)

    def parse_webhook(self, payload: bytes, signature: str) -> PaymentEvent:
        """
        Verify the ``Stripe-Signature`` header and decode the event.

        Raises:
            WebhookVerificationError: If the secret is missing or the signature is invalid
        """
        if not self.webhook_secret:
            raise WebhookVerificationError("Stripe webhook secret missing (STRIPE_WEBHOOK_SECRET)")

        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload

        try:
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError(f"Invalid webhook signature: {exc}") from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise WebhookVerificationError(f"Webhook payload is not valid JSON: {exc}") from exc

        return _event_from_payload(data)


def _event_from_payload(data: dict) -> PaymentEvent:
    """Extract the fields we care about from a Stripe event body."""
    event_type = data.get("type", "")
    session = (data.get("data") or {}).get("object") or {}
    metadata = session.get("metadata") or {}

    return PaymentEvent(
        type=event_type,
        booking_id=metadata.get("bookingId"),
        session_id=session.get("id"),
    )
