"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from datetime import time
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import Service, WorkingHourWindow, parse_local_time


class ServiceConfig(BaseModel):
    """A service offered for booking."""
    id: str
    name: str
    description: str = ""
    duration_minutes: int
    price: float = Field(ge=0)
    currency: str = "usd"
    active: bool = True

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    def to_service(self) -> Service:
        return Service(
            id=self.id,
            name=self.name,
            description=self.description,
            duration_minutes=self.duration_minutes,
            price=self.price,
            currency=self.currency.lower(),
            active=self.active,
        )


class WorkingHoursConfig(BaseModel):
    """Weekly opening window. Times must be quoted in YAML ("09:00")."""
    day_of_week: int  # 0=Monday, 6=Sunday
    start: time
    end: time

    @field_validator("day_of_week")
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        """Validate weekday is between 0 and 6."""
        if value not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_time(cls, value) -> time:
        return parse_local_time(value)

    @model_validator(mode="after")
    def validate_window_order(self) -> "WorkingHoursConfig":
        """Ensure the window opens before it closes."""
        if self.end <= self.start:
            raise ValueError("end must be later than start")
        return self

    def to_window(self) -> WorkingHourWindow:
        return WorkingHourWindow(start_of_day=self.start, end_of_day=self.end)


class DatabaseConfig(BaseModel):
    """Relational storage settings."""
    url: str = "sqlite:///slotbook.db"
    lock_timeout_seconds: float = Field(default=5.0, gt=0)


class StripeConfig(BaseModel):
    """Stripe credentials, falling back to the environment."""
    secret_key: Optional[str] = Field(default_factory=lambda: os.getenv("STRIPE_SECRET_KEY"))
    webhook_secret: Optional[str] = Field(default_factory=lambda: os.getenv("STRIPE_WEBHOOK_SECRET"))


class GoogleConfig(BaseModel):
    """Google OAuth client used for calendar sync."""
    client_id: Optional[str] = Field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_ID"))
    client_secret: Optional[str] = Field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_SECRET"))


class RemindersConfig(BaseModel):
    """When reminder messages go out."""
    lead_times_hours: List[int] = Field(default_factory=lambda: [24, 1])
    window_minutes: int = 30

    @field_validator("lead_times_hours")
    @classmethod
    def validate_lead_times(cls, value: List[int]) -> List[int]:
        if any(hours <= 0 for hours in value):
            raise ValueError("lead_times_hours must all be greater than zero")
        return value

    @field_validator("window_minutes")
    @classmethod
    def validate_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("window_minutes must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    app_url: str = "http://localhost:3000"
    services: List[ServiceConfig] = Field(default_factory=list)
    working_hours: List[WorkingHoursConfig] = Field(default_factory=list)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    reminders: RemindersConfig = Field(default_factory=RemindersConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the reference timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceConfig]) -> List[ServiceConfig]:
        """Ensure service ids are unique."""
        seen: set[str] = set()
        for service in value:
            if service.id in seen:
                raise ValueError(f"Duplicate service id detected: {service.id}")
            seen.add(service.id)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_service(self, service_id: str) -> ServiceConfig | None:
        """Find a configured service by id."""
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def windows_for_day(self, day_of_week: int) -> List[WorkingHourWindow]:
        """Working-hour windows configured for a weekday (0=Monday)."""
        return [
            entry.to_window()
            for entry in self.working_hours
            if entry.day_of_week == day_of_week
        ]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of slotbook/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
