"""
Shared test fixtures.

Provides:
  • an in-memory SQLite database (StaticPool) shared by the app and the test
  • users for each role, a facility with two courts, and a booking factory
  • an in-memory email queue on ``app.state``
  • TestClients authenticated as a given user (auth dependency overridden)

Clients are created without entering the lifespan, so no Redis connection
is attempted.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import get_current_user
from app.database import Base, get_db
from app.main import app
from app.models import Booking, BookingStatus, Court, Facility, User, UserRole
from tests.mocks.email_queue import InMemoryEmailQueue


# ── Database ───────────────────────────────────────────────────────────────


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def player(db) -> User:
    user = User(email="player@example.com", name="Pat Player", role=UserRole.USER)
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def owner(db) -> User:
    user = User(email="owner@example.com", name="Olive Owner", role=UserRole.FACILITY_OWNER)
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def admin(db) -> User:
    user = User(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def courts(db, owner) -> list[Court]:
    facility = Facility(owner_id=owner.id, name="Riverside Sports", city="Pune")
    db.add(facility)
    db.flush()
    courts = [
        Court(facility_id=facility.id, name="Court 1", sport_type="badminton", price_per_hour=Decimal("100")),
        Court(facility_id=facility.id, name="Court 2", sport_type="badminton", price_per_hour=Decimal("120")),
    ]
    db.add_all(courts)
    db.commit()
    return courts


@pytest.fixture()
def make_booking(db, courts):
    """Factory: make_booking(user, days_ahead=3, start="10:00", ...)"""

    def _make(
        user: User,
        days_ahead: int = 3,
        start: str = "10:00",
        end: str = "11:00",
        status: BookingStatus = BookingStatus.CONFIRMED,
        amount: str = "100",
        court: Court | None = None,
    ) -> Booking:
        court = court or courts[0]
        booking = Booking(
            user_id=user.id,
            facility_id=court.facility_id,
            court_id=court.id,
            booking_date=date.today() + timedelta(days=days_ahead),
            start_time=start,
            end_time=end,
            status=status,
            total_amount=Decimal(amount),
            final_amount=Decimal(amount),
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


# ── Email queue ────────────────────────────────────────────────────────────


@pytest.fixture()
def email_queue() -> InMemoryEmailQueue:
    return InMemoryEmailQueue()


# ── HTTP clients ───────────────────────────────────────────────────────────


@pytest.fixture()
def client_for(db, email_queue):
    """Factory: client_for(user) -> TestClient authenticated as ``user``"""

    def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    app.state.email_queue = email_queue

    def _make(user: User | None) -> TestClient:
        if user is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:

            async def _current_user():
                return user

            app.dependency_overrides[get_current_user] = _current_user
        return TestClient(app, raise_server_exceptions=False)

    yield _make

    app.dependency_overrides.clear()


@pytest.fixture()
def player_client(client_for, player) -> TestClient:
    return client_for(player)


@pytest.fixture()
def owner_client(client_for, owner) -> TestClient:
    return client_for(owner)


@pytest.fixture()
def admin_client(client_for, admin) -> TestClient:
    return client_for(admin)


@pytest.fixture()
def unauthed_client(client_for) -> TestClient:
    return client_for(None)
