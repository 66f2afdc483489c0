"""
SQLAlchemy-backed repository.

The booking write path runs its conflict search and insert in one
transaction that other writers cannot interleave with: SQLite takes the
writer lock up front (``BEGIN IMMEDIATE``), other backends run at
``SERIALIZABLE`` isolation and a serialization failure is reported as a
slot conflict.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Sequence

import pendulum
from pendulum import DateTime
from sqlalchemy import create_engine, event, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..domain.exceptions import (
    BookingNotFoundError,
    BookingStateError,
    SlotConflictError,
    StorageError,
)
from ..domain.intervals import first_conflict
from ..domain.models import (
    ACTIVE_STATUSES,
    Booking,
    BookingRequest,
    BookingStatus,
    PaymentStatus,
    Service,
    TimeRange,
    User,
    WorkingHourWindow,
)
from .sql_models import AvailabilityRow, Base, BookingRow, ServiceRow, UserRow

logger = logging.getLogger(__name__)

# SQLSTATE for serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def create_db_engine(url: str, lock_timeout_seconds: float = 5.0) -> Engine:
    """
    Create an engine whose transactions serialize booking writes.

    Args:
        url: SQLAlchemy database URL
        lock_timeout_seconds: How long a writer waits for a lock before failing

    Returns:
        Configured SQLAlchemy engine
    """
    if url.startswith("sqlite"):
        kwargs = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": lock_timeout_seconds,
            },
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

        engine = create_engine(url, **kwargs)

        # Let SQLAlchemy emit BEGIN itself so it can take the write lock immediately
        @event.listens_for(engine, "connect")
        def _disable_driver_transactions(dbapi_connection, _connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    connect_args = {}
    if url.startswith("postgresql"):
        timeout_ms = int(lock_timeout_seconds * 1000)
        connect_args["options"] = f"-c lock_timeout={timeout_ms} -c statement_timeout={timeout_ms}"

    return create_engine(
        url,
        pool_pre_ping=True,
        isolation_level="SERIALIZABLE",
        connect_args=connect_args,
    )


def _to_db(value: DateTime) -> datetime:
    return value.in_timezone("UTC").naive()


def _from_db(value: datetime) -> DateTime:
    return pendulum.instance(value, tz="UTC")


def _service_from_row(row: ServiceRow) -> Service:
    return Service(
        id=row.id,
        name=row.name,
        description=row.description or "",
        duration_minutes=row.duration_minutes,
        price=row.price,
        currency=row.currency,
        active=row.active,
    )


def _user_from_row(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name or "",
        google_refresh_token=row.google_refresh_token,
    )


def _booking_from_row(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        service_id=row.service_id,
        user_id=row.user_id,
        start=_from_db(row.start_time),
        end=_from_db(row.end_time),
        status=BookingStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        checkout_session_id=row.stripe_session_id,
        calendar_event_id=row.google_event_id,
        created_at=_from_db(row.created_at),
    )


class SqlRepository:
    """
    Repository over the relational schema in ``sql_models``.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, lock_timeout_seconds: float = 5.0) -> "SqlRepository":
        return cls(create_db_engine(url, lock_timeout_seconds))

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        try:
            Base.metadata.create_all(self.engine)
        except DBAPIError as exc:
            raise StorageError(f"Could not create schema: {exc.orig}") from exc

    @contextmanager
    def _transaction(self, inserts_booking: bool = False) -> Iterator[Session]:
        """
        Open a session inside one transaction.

        Driver errors surface as StorageError. When ``inserts_booking`` is set,
        integrity and serialization failures mean a concurrent writer took the
        slot and surface as SlotConflictError instead.
        """
        try:
            with self._session_factory.begin() as session:
                yield session
        except IntegrityError as exc:
            if inserts_booking:
                raise SlotConflictError("Slot could not be reserved") from exc
            raise StorageError(f"Constraint violated: {exc.orig}") from exc
        except DBAPIError as exc:
            sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
            if inserts_booking and sqlstate in _RETRYABLE_SQLSTATES:
                logger.info("Concurrent booking write lost serialization: %s", exc.orig)
                raise SlotConflictError("Slot was taken by a concurrent booking") from exc
            raise StorageError(f"Database operation failed: {exc.orig}") from exc

    def list_services(self, active_only: bool = True) -> List[Service]:
        with self._transaction() as session:
            query = select(ServiceRow).order_by(ServiceRow.name)
            if active_only:
                query = query.where(ServiceRow.active.is_(True))
            return [_service_from_row(row) for row in session.scalars(query)]

    def get_service(self, service_id: str) -> Optional[Service]:
        with self._transaction() as session:
            row = session.get(ServiceRow, service_id)
            return _service_from_row(row) if row else None

    def add_service(self, service: Service) -> Service:
        with self._transaction() as session:
            session.merge(
                ServiceRow(
                    id=service.id,
                    name=service.name,
                    description=service.description,
                    duration_minutes=service.duration_minutes,
                    price=service.price,
                    currency=service.currency,
                    active=service.active,
                )
            )
        return service

    def list_working_hours(self, day_of_week: int) -> List[WorkingHourWindow]:
        with self._transaction() as session:
            rows = session.scalars(
                select(AvailabilityRow)
                .where(AvailabilityRow.day_of_week == day_of_week)
                .where(AvailabilityRow.active.is_(True))
                .order_by(AvailabilityRow.id)
            ).all()
            return [WorkingHourWindow.from_strings(row.start_time, row.end_time) for row in rows]

    def add_working_hours(self, day_of_week: int, window: WorkingHourWindow) -> None:
        with self._transaction() as session:
            session.add(
                AvailabilityRow(
                    day_of_week=day_of_week,
                    start_time=window.start_of_day.strftime("%H:%M"),
                    end_time=window.end_of_day.strftime("%H:%M"),
                )
            )

    def list_bookings(
        self,
        time_range: TimeRange,
        statuses: Sequence[BookingStatus],
    ) -> List[Booking]:
        with self._transaction() as session:
            rows = session.scalars(
                select(BookingRow)
                .where(BookingRow.status.in_([status.value for status in statuses]))
                .where(BookingRow.start_time < _to_db(time_range.end))
                .where(BookingRow.end_time > _to_db(time_range.start))
                .order_by(BookingRow.start_time)
            ).all()
            return [_booking_from_row(row) for row in rows]

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._transaction() as session:
            row = session.get(BookingRow, booking_id)
            return _booking_from_row(row) if row else None

    def insert_booking_if_no_conflict(self, request: BookingRequest) -> Booking:
        with self._transaction(inserts_booking=True) as session:
            # The query only narrows candidates; first_conflict decides
            rows = session.scalars(
                select(BookingRow)
                .where(BookingRow.status.in_([status.value for status in ACTIVE_STATUSES]))
                .where(BookingRow.start_time < _to_db(request.end))
                .where(BookingRow.end_time > _to_db(request.start))
            ).all()
            conflict = first_conflict(request, [_booking_from_row(row) for row in rows])
            if conflict is not None:
                raise SlotConflictError(conflicting_id=conflict.id)

            row = BookingRow(
                id=uuid.uuid4().hex,
                service_id=request.service_id,
                user_id=request.user_id,
                start_time=_to_db(request.start),
                end_time=_to_db(request.end),
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.UNPAID.value,
                created_at=_to_db(pendulum.now("UTC")),
            )
            session.add(row)
            session.flush()
            return _booking_from_row(row)

    def attach_checkout_session(self, booking_id: str, session_id: str) -> Booking:
        return self._update(booking_id, stripe_session_id=session_id)

    def confirm_booking(self, booking_id: str) -> Booking:
        return self._update(
            booking_id,
            expected_status=BookingStatus.PENDING,
            status=BookingStatus.CONFIRMED.value,
            payment_status=PaymentStatus.PAID.value,
        )

    def set_calendar_event(self, booking_id: str, event_id: str) -> Booking:
        return self._update(booking_id, google_event_id=event_id)

    def cancel_booking(self, booking_id: str) -> Booking:
        return self._update(booking_id, status=BookingStatus.CANCELLED.value)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._transaction() as session:
            row = session.get(UserRow, user_id)
            return _user_from_row(row) if row else None

    def add_user(self, user: User) -> User:
        with self._transaction() as session:
            session.merge(
                UserRow(
                    id=user.id,
                    email=user.email,
                    name=user.name,
                    google_refresh_token=user.google_refresh_token,
                )
            )
        return user

    def _update(
        self,
        booking_id: str,
        expected_status: Optional[BookingStatus] = None,
        **values,
    ) -> Booking:
        with self._transaction() as session:
            statement = update(BookingRow).where(BookingRow.id == booking_id).values(**values)
            if expected_status is not None:
                statement = statement.where(BookingRow.status == expected_status.value)

            result = session.execute(statement, execution_options={"synchronize_session": False})
            if result.rowcount == 0:
                row = self._get_booking_row(session, booking_id)
                if expected_status is None:
                    return _booking_from_row(row)
                raise BookingStateError(
                    f"Booking {booking_id} is {row.status}, expected {expected_status.value}",
                    status=row.status,
                )

            return _booking_from_row(self._get_booking_row(session, booking_id))

    @staticmethod
    def _get_booking_row(session: Session, booking_id: str) -> BookingRow:
        row = session.get(BookingRow, booking_id)
        if row is None:
            raise BookingNotFoundError(f"Booking not found: {booking_id}")
        return row
