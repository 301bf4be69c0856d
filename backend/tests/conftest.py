# backend/tests/conftest.py
"""
Pytest configuration for the booking core.

Every test runs against a throwaway SQLite file. The environment is set
BEFORE any spacebook import so the module-level engine binds to it and a
developer's .env can never point the suite at a real database.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="spacebook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'spacebook_test.db')}"
os.environ["BOOKING_LOCK_BACKEND"] = "local"
os.environ["OVERPAYMENT_POLICY"] = "allow"
os.environ["RESCHEDULE_PRICING"] = "locked"
os.environ["CI"] = "true"

from datetime import date, time
from decimal import Decimal

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from spacebook.core.booking_lock import LocalLockRegistry, set_lock_backend
from spacebook.core.config import settings
from spacebook.database import Base, SessionLocal, engine
from spacebook.main import app
from spacebook.models import Branch, Reservation, ReservationStatus, Resource
from spacebook.schemas.reservation import ReservationCreate

BOOKING_DATE = date(2025, 3, 14)


def _validate_test_database_url(database_url: str) -> None:
    if not database_url.startswith("sqlite") or _TEST_DIR not in database_url:
        raise RuntimeError(
            f"Refusing to run tests against {database_url[:30]}...: tests drop every table"
        )


_validate_test_database_url(settings.database_url)


@pytest.fixture(autouse=True)
def _fresh_schema():
    """Recreate all tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _isolated_lock_backend():
    set_lock_backend(LocalLockRegistry())
    yield
    set_lock_backend(None)


@pytest.fixture
def db() -> Session:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def branch(db: Session) -> Branch:
    branch = Branch(name="Downtown", city="Lisbon", state="LX")
    db.add(branch)
    db.commit()
    return branch


@pytest.fixture
def other_branch(db: Session) -> Branch:
    branch = Branch(name="Riverside", city="Porto", state="PT")
    db.add(branch)
    db.commit()
    return branch


@pytest.fixture
def resource(db: Session, branch: Branch) -> Resource:
    """Meeting room at 100.00/hour."""
    resource = Resource(
        branch_id=branch.id, name="Room A", capacity=8, hourly_rate=Decimal("100.00")
    )
    db.add(resource)
    db.commit()
    return resource


@pytest.fixture
def make_resource(db: Session, branch: Branch):
    def _make(**overrides) -> Resource:
        values = {
            "branch_id": branch.id,
            "name": "Room",
            "capacity": 4,
            "hourly_rate": Decimal("50.00"),
        }
        values.update(overrides)
        resource = Resource(**values)
        db.add(resource)
        db.commit()
        return resource

    return _make


@pytest.fixture
def reservation_request(resource: Resource):
    """Build a ReservationCreate for ``resource`` on BOOKING_DATE."""

    def _build(start: str = "09:00", end: str = "10:00", **overrides) -> ReservationCreate:
        payload = {
            "resource_id": resource.id,
            "branch_id": resource.branch_id,
            "customer_id": "01HCUSTOMER0000000000000001",
            "date": BOOKING_DATE.isoformat(),
            "start_time": start,
            "end_time": end,
        }
        payload.update(overrides)
        return ReservationCreate(**payload)

    return _build


@pytest.fixture
def seed_reservation(db: Session, resource: Resource):
    """Insert a reservation row directly, bypassing the service."""

    def _seed(
        start: time,
        end: time,
        status: ReservationStatus = ReservationStatus.PENDING,
        on_date: date = BOOKING_DATE,
        total: Decimal = Decimal("100.00"),
    ) -> Reservation:
        reservation = Reservation(
            resource_id=resource.id,
            branch_id=resource.branch_id,
            customer_id="01HCUSTOMER0000000000000002",
            reservation_date=on_date,
            start_time=start,
            end_time=end,
            status=status.value,
            hourly_rate_snapshot=resource.hourly_rate,
            total_amount=total,
        )
        db.add(reservation)
        db.commit()
        return reservation

    return _seed
