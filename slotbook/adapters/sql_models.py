"""
Relational schema for services, weekly availability, users and bookings.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ServiceRow(Base):
    __tablename__ = "services"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    active = Column(Boolean, nullable=False, default=True)


class AvailabilityRow(Base):
    """One opening window on a weekday; times stored as HH:MM."""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day_of_week = Column(Integer, nullable=False, index=True)  # 0=Monday
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False, default="")
    google_refresh_token = Column(Text, nullable=True)


class BookingRow(Base):
    """A booking; instants are stored as naive UTC."""

    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True)
    service_id = Column(String(64), ForeignKey("services.id"), nullable=False)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(16), nullable=False, default="PENDING")
    payment_status = Column(String(16), nullable=False, default="UNPAID")
    stripe_session_id = Column(String(255), nullable=True)
    google_event_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_bookings_status_start", "status", "start_time"),
    )
