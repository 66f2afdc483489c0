"""
Tests for the Stripe payment gateway.
"""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pendulum
import pytest
import stripe

from slotbook.adapters.stripe_gateway import StripePaymentGateway
from slotbook.domain.exceptions import PaymentError, WebhookVerificationError
from slotbook.domain.models import Booking, Service

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def booking():
    start = pendulum.datetime(2024, 11, 25, 10, tz="UTC")
    return Booking(id="b1", service_id="audit", user_id="alice", start=start, end=start.add(minutes=90))


@pytest.fixture
def service():
    return Service(id="audit", name="Technical Audit", duration_minutes=90, price=150, currency="eur")


def _stripe_signature(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_missing_secret_key_is_rejected():
    with pytest.raises(PaymentError):
        StripePaymentGateway(secret_key=None)


def test_checkout_session_request(monkeypatch, booking, service):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)

    session = gateway.create_checkout_session(booking, service, "https://app/ok", "https://app/cancel")

    assert session.id == "cs_test_1"
    assert session.url == "https://checkout.stripe.com/c/cs_test_1"
    (kwargs,) = calls
    assert kwargs["api_key"] == "sk_test"
    assert kwargs["mode"] == "payment"
    assert kwargs["metadata"] == {"bookingId": "b1"}
    assert kwargs["success_url"] == "https://app/ok"
    price_data = kwargs["line_items"][0]["price_data"]
    assert price_data["unit_amount"] == 15000
    assert price_data["currency"] == "eur"
    assert price_data["product_data"]["name"] == "Technical Audit"


def test_stripe_error_becomes_payment_error(monkeypatch, booking, service):
    def failing_create(**kwargs):
        raise stripe.APIConnectionError("network unreachable")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)
    gateway = StripePaymentGateway(secret_key="sk_test")

    with pytest.raises(PaymentError):
        gateway.create_checkout_session(booking, service, "https://app/ok", "https://app/cancel")


class TestParseWebhook:
    """Tests for webhook verification and decoding."""

    def setup_method(self):
        self.gateway = StripePaymentGateway(secret_key="sk_test", webhook_secret=WEBHOOK_SECRET)

    def test_completed_event(self):
        payload = json.dumps(
            {
                "type": "checkout.session.completed",
                "data": {"object": {"id": "cs_1", "metadata": {"bookingId": "b1"}}},
            }
        )

        event = self.gateway.parse_webhook(payload.encode("utf-8"), _stripe_signature(payload))

        assert event.type == "checkout.session.completed"
        assert event.booking_id == "b1"
        assert event.session_id == "cs_1"

    def test_event_without_metadata(self):
        payload = json.dumps({"type": "charge.refunded", "data": {"object": {"id": "ch_1"}}})

        event = self.gateway.parse_webhook(payload.encode("utf-8"), _stripe_signature(payload))

        assert event.type == "charge.refunded"
        assert event.booking_id is None

    def test_wrong_secret_is_rejected(self):
        payload = json.dumps({"type": "checkout.session.completed"})

        with pytest.raises(WebhookVerificationError):
            self.gateway.parse_webhook(payload.encode("utf-8"), _stripe_signature(payload, "whsec_other"))

    def test_tampered_payload_is_rejected(self):
        payload = json.dumps({"type": "checkout.session.completed"})
        signature = _stripe_signature(payload)

        with pytest.raises(WebhookVerificationError):
            self.gateway.parse_webhook(payload.replace("completed", "expired").encode("utf-8"), signature)

    def test_missing_webhook_secret(self):
        gateway = StripePaymentGateway(secret_key="sk_test")

        with pytest.raises(WebhookVerificationError):
            gateway.parse_webhook(b"{}", _stripe_signature("{}"))

    def test_verification_error_is_payment_error(self):
        with pytest.raises(PaymentError):
            self.gateway.parse_webhook(b"{}", "t=1,v1=deadbeef")
