"""
Tests for the Google Calendar client.
"""

import pendulum
import pytest
import requests

from slotbook.adapters.google_calendar import GoogleCalendarClient
from slotbook.domain.exceptions import CalendarSyncError
from slotbook.domain.models import Booking, Service, User


class FakeResponse:
    def __init__(self, data, status_code=200):
        self._data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._data


@pytest.fixture
def booking():
    start = pendulum.datetime(2024, 11, 25, 10, tz="Europe/Berlin")
    return Booking(id="b1", service_id="consult", user_id="alice", start=start, end=start.add(hours=1))


@pytest.fixture
def service():
    return Service(id="consult", name="Consultation", duration_minutes=60, price=100, description="Intro call")


@pytest.fixture
def user():
    return User(id="alice", email="alice@example.com", google_refresh_token="refresh-1")


@pytest.fixture
def client():
    return GoogleCalendarClient(client_id="cid", client_secret="secret")


def test_create_event_refreshes_token_and_posts_event(monkeypatch, client, booking, service, user):
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        if url == GoogleCalendarClient.TOKEN_ENDPOINT:
            return FakeResponse({"access_token": "access-1"})
        return FakeResponse({"id": "evt_42"})

    monkeypatch.setattr(requests, "post", fake_post)

    event_id = client.create_event(booking, service, user)

    assert event_id == "evt_42"
    token_url, token_kwargs = calls[0]
    assert token_kwargs["data"]["refresh_token"] == "refresh-1"
    assert token_kwargs["data"]["grant_type"] == "refresh_token"
    event_url, event_kwargs = calls[1]
    assert event_url.endswith("/calendars/primary/events")
    assert event_kwargs["headers"]["Authorization"] == "Bearer access-1"
    assert event_kwargs["json"]["summary"] == "Booking: Consultation"


def test_build_event_uses_utc_and_reminders(booking, service, user):
    event = GoogleCalendarClient.build_event(booking, service, user)

    assert event["start"]["dateTime"] == "2024-11-25T09:00:00Z"
    assert event["end"]["dateTime"] == "2024-11-25T10:00:00Z"
    assert event["start"]["timeZone"] == "UTC"
    assert event["description"] == "Intro call"
    assert event["attendees"] == [{"email": "alice@example.com"}]
    assert event["reminders"]["overrides"] == [
        {"method": "email", "minutes": 1440},
        {"method": "popup", "minutes": 60},
    ]


def test_http_error_becomes_calendar_sync_error(monkeypatch, client, booking, service, user):
    def fake_post(url, **kwargs):
        if url == GoogleCalendarClient.TOKEN_ENDPOINT:
            return FakeResponse({"access_token": "access-1"})
        return FakeResponse({"error": "forbidden"}, status_code=403)

    monkeypatch.setattr(requests, "post", fake_post)

    with pytest.raises(CalendarSyncError):
        client.create_event(booking, service, user)


def test_connection_error_during_token_refresh(monkeypatch, client, booking, service, user):
    def fake_post(url, **kwargs):
        raise requests.exceptions.ConnectionError("offline")

    monkeypatch.setattr(requests, "post", fake_post)

    with pytest.raises(CalendarSyncError):
        client.create_event(booking, service, user)


def test_token_response_without_access_token(monkeypatch, client, booking, service, user):
    monkeypatch.setattr(requests, "post", lambda url, **kwargs: FakeResponse({}))

    with pytest.raises(CalendarSyncError):
        client.create_event(booking, service, user)


def test_user_without_refresh_token(client, booking, service):
    with pytest.raises(CalendarSyncError):
        client.create_event(booking, service, User(id="bob", email="bob@example.com"))


def test_missing_client_credentials(booking, service, user):
    client = GoogleCalendarClient(client_id=None, client_secret=None)

    with pytest.raises(CalendarSyncError):
        client.create_event(booking, service, user)
