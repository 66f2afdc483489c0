"""
Tests for YAML configuration loading.
"""

from datetime import time

import pytest
from pydantic import ValidationError

from slotbook.config import AppConfig, ServiceConfig, WorkingHoursConfig

VALID_CONFIG = """
timezone: Europe/Berlin
app_url: https://book.example.com/
services:
  - id: consult
    name: Consultation
    duration_minutes: 60
    price: 120
    currency: EUR
  - id: quick
    name: Quick call
    duration_minutes: 15
    price: 0
working_hours:
  - day_of_week: 0
    start: "09:00"
    end: "12:00"
  - day_of_week: 0
    start: "13:00"
    end: "17:00"
  - day_of_week: 4
    start: "10:00"
    end: "14:00"
database:
  url: sqlite:///test.db
reminders:
  lead_times_hours: [48]
  window_minutes: 15
"""


def _write(tmp_path, content: str):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_valid_config(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, VALID_CONFIG))

    assert config.timezone == "Europe/Berlin"
    assert config.app_url == "https://book.example.com"
    assert [service.id for service in config.services] == ["consult", "quick"]
    assert config.find_service("consult").to_service().currency == "eur"
    assert config.find_service("missing") is None
    assert config.database.url == "sqlite:///test.db"
    assert config.reminders.lead_times_hours == [48]
    assert config.working_hours[0].start == time(9, 0)


def test_windows_for_day(tmp_path):
    config = AppConfig.load_from_yaml(_write(tmp_path, VALID_CONFIG))

    assert [str(window) for window in config.windows_for_day(0)] == ["09:00-12:00", "13:00-17:00"]
    assert config.windows_for_day(2) == []


def test_defaults_for_empty_file(tmp_path, monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    config = AppConfig.load_from_yaml(_write(tmp_path, ""))

    assert config.timezone == "UTC"
    assert config.services == []
    assert config.reminders.lead_times_hours == [24, 1]
    assert config.reminders.window_minutes == 30
    assert config.stripe.secret_key is None


def test_credentials_fall_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_env")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_env")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "google-id")

    config = AppConfig.load_from_yaml(_write(tmp_path, VALID_CONFIG))

    assert config.stripe.secret_key == "sk_env"
    assert config.stripe.webhook_secret == "whsec_env"
    assert config.google.client_id == "google-id"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_yaml(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError):
        AppConfig.load_from_yaml(_write(tmp_path, "services: [unclosed"))


def test_root_must_be_mapping(tmp_path):
    with pytest.raises(ValueError):
        AppConfig.load_from_yaml(_write(tmp_path, "- just\n- a list\n"))


def test_unquoted_time_is_rejected(tmp_path):
    """YAML reads 17:00 as a sexagesimal integer; only quoted times are accepted."""
    content = "working_hours:\n  - day_of_week: 0\n    start: 09:00\n    end: 17:00\n"

    with pytest.raises(ValidationError):
        AppConfig.load_from_yaml(_write(tmp_path, content))


@pytest.mark.parametrize("start,end", [("12:00", "09:00"), ("09:00", "09:00"), ("25:00", "26:00"), ("9am", "5pm")])
def test_invalid_working_hours(start, end):
    with pytest.raises(ValidationError):
        WorkingHoursConfig(day_of_week=0, start=start, end=end)


def test_invalid_day_of_week():
    with pytest.raises(ValidationError):
        WorkingHoursConfig(day_of_week=7, start="09:00", end="10:00")


@pytest.mark.parametrize("duration", [0, -30])
def test_invalid_service_duration(duration):
    with pytest.raises(ValidationError):
        ServiceConfig(id="x", name="X", duration_minutes=duration, price=10)


def test_duplicate_service_ids():
    with pytest.raises(ValidationError):
        AppConfig(
            services=[
                {"id": "consult", "name": "A", "duration_minutes": 30, "price": 1},
                {"id": "consult", "name": "B", "duration_minutes": 60, "price": 2},
            ]
        )


def test_unknown_timezone():
    with pytest.raises(ValidationError):
        AppConfig(timezone="Mars/Olympus_Mons")


def test_reminder_settings_must_be_positive():
    with pytest.raises(ValidationError):
        AppConfig(reminders={"lead_times_hours": [24, 0]})
    with pytest.raises(ValidationError):
        AppConfig(reminders={"window_minutes": 0})
