"""
Google Calendar API client for syncing confirmed bookings.
"""

import logging
from typing import Any, Dict

import requests

from ..domain.exceptions import CalendarSyncError
from ..domain.models import Booking, Service, User

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar event creation.

    Each user grants offline access once; the stored refresh token is
    exchanged for a short-lived access token on every sync.
    """

    TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        calendar_id: str = "primary",
        timeout: int = 30,
    ):
        """
        Initialize the calendar client.

        Args:
            client_id: Google OAuth client id
            client_secret: Google OAuth client secret
            calendar_id: Calendar to insert events into
            timeout: Request timeout in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.calendar_id = calendar_id
        self.timeout = timeout

    def create_event(self, booking: Booking, service: Service, user: User) -> str:
        """
        Create a calendar event for a booking.

        Args:
            booking: Confirmed booking
            service: Booked service (summary and description)
            user: Customer; must carry a Google refresh token

        Returns:
            Id of the created event

        Raises:
            CalendarSyncError: If authentication or the API call fails
        """
        if not user.google_refresh_token:
            raise CalendarSyncError(f"User {user.id} has not connected a Google calendar")

        access_token = self._get_access_token(user.google_refresh_token)
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{self.calendar_id}/events"

        try:
            response = requests.post(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                json=self.build_event(booking, service, user),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarSyncError(f"Failed to create Google Calendar event: {e}") from e

        event_id = data.get("id")
        if not event_id:
            raise CalendarSyncError("Google Calendar response did not contain an event id")

        logger.info("Synced booking %s to Google Calendar event %s", booking.id, event_id)
        return event_id

    @staticmethod
    def build_event(booking: Booking, service: Service, user: User) -> Dict[str, Any]:
        """
        Build the event resource.

        Reminders: email one day before, popup one hour before.
        """
        return {
            "summary": f"Booking: {service.name}",
            "description": service.description or "",
            "start": {
                "dateTime": booking.start.in_timezone("UTC").to_iso8601_string(),
                "timeZone": "UTC",
            },
            "end": {
                "dateTime": booking.end.in_timezone("UTC").to_iso8601_string(),
                "timeZone": "UTC",
            },
            "attendees": [{"email": user.email}],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 60},
                ],
            },
        }

    def _get_access_token(self, refresh_token: str) -> str:
        """Exchange a refresh token for an access token."""
        if not self.client_id or not self.client_secret:
            raise CalendarSyncError("Google client credentials missing (GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET)")

        try:
            response = requests.post(
                self.TOKEN_ENDPOINT,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarSyncError(f"Failed to refresh Google access token: {e}") from e

        access_token = data.get("access_token")
        if not access_token:
            raise CalendarSyncError("Google token response did not contain an access token")
        return access_token
