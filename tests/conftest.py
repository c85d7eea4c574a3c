import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLINIC_TIMEZONE", "UTC")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.main import app
from app.models import Base, Doctor, Medicine, Patient
from app.schemas.appointment import AppointmentCreate
from app.services.appointment_service import create_appointment

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def other_db(db):
    """A second session on the same database, standing in for a concurrent request."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def patient(db):
    patient = Patient(first_name="Asha", last_name="Rao", reg_no="P-0001")
    db.add(patient)
    db.commit()
    return patient


@pytest.fixture()
def doctor(db):
    doctor = Doctor(first_name="Vikram", last_name="Iyer", specialization="General", consultation_fee=Decimal("300.00"))
    db.add(doctor)
    db.commit()
    return doctor


@pytest.fixture()
def make_doctor(db):
    def _make(first_name="Meera", fee=None):
        doctor = Doctor(first_name=first_name, consultation_fee=fee)
        db.add(doctor)
        db.commit()
        return doctor

    return _make


@pytest.fixture()
def make_medicine(db):
    def _make(name, stock, strength="", form="", selling_price=Decimal("10.00")):
        medicine = Medicine(name=name, strength=strength, form=form, stock=stock, selling_price=selling_price)
        db.add(medicine)
        db.commit()
        return medicine

    return _make


@pytest.fixture()
def book(db, patient, doctor):
    """Book an appointment for the default patient; keyword args override the payload."""

    def _book(day=(2024, 1, 1), time="10:00", **overrides):
        hour, minute = (int(part) for part in time.split(":"))
        data = {
            "patient_id": patient.id,
            "doctor_id": doctor.id,
            "appointment_date": datetime(*day, hour, minute, tzinfo=timezone.utc),
            "appointment_time": time,
            "reason": "Fever",
        }
        data.update(overrides)
        return create_appointment(db, AppointmentCreate(**data))

    return _book
