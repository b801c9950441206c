"""
Test configuration for the clinic scheduling backend.
"""
import os

# Must be set before the application is imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic.core.database import Base, get_db, redis_client
from clinic.core.security import get_password_hash, get_token_codec
from clinic.main import app
from clinic.models.admin import Admin
from clinic.models.appointment import Appointment, AppointmentStatus
from clinic.models.doctor import Doctor
from clinic.models.patient import Patient

# In-memory database shared by every connection of the test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client bound to the test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    redis_client.flushdb()

    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides = {}


@pytest.fixture
def codec():
    return get_token_codec()


@pytest.fixture
def admin(db):
    admin = Admin(username="root", email="admin@example.com", password_hash=PASSWORD_HASH)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def doctor(db):
    doctor = Doctor(
        name="Gregory House",
        email="house@example.com",
        password_hash=PASSWORD_HASH,
        specialty="Diagnostics",
        phone="5551234567",
        available_times=["09:00-10:00", "10:00-11:00", "11:00-12:00", "14:00-15:00"],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def other_doctor(db):
    doctor = Doctor(
        name="Lisa Cuddy",
        email="cuddy@example.com",
        password_hash=PASSWORD_HASH,
        specialty="Endocrinology",
        phone="5559876543",
        available_times=["13:00-14:00", "15:00-16:00"],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor


@pytest.fixture
def patient(db):
    patient = Patient(
        name="John Smith",
        email="john@example.com",
        password_hash=PASSWORD_HASH,
        phone="5550001111",
        address="12 Baker Street",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def other_patient(db):
    patient = Patient(
        name="Jane Roe",
        email="jane@example.com",
        password_hash=PASSWORD_HASH,
        phone="5550002222",
        address="7 Elm Street",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def tomorrow_at():
    """Build a naive datetime tomorrow at the given hour."""
    def _at(hour, minute=0):
        day = datetime.now() + timedelta(days=1)
        return day.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return _at


@pytest.fixture
def make_appointment(db):
    def _make(doctor, patient, when, status=AppointmentStatus.SCHEDULED):
        appointment = Appointment(
            doctor=doctor,
            patient=patient,
            appointment_time=when,
            status=int(status),
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment
    return _make


def bearer(codec, identity):
    return {"Authorization": f"Bearer {codec.issue(identity.email)}"}


@pytest.fixture
def auth_headers(codec):
    """Authorization headers for an identity, built without going through login."""
    def _headers(identity):
        return bearer(codec, identity)
    return _headers
