import os
from datetime import datetime, timezone

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("CLINIC_TIMEZONE", "UTC")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import mongomock
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from telehealth.api.deps import get_identity_provider
from telehealth.core.clock import FixedClock, get_clock
from telehealth.core.security import create_access_token
from telehealth.db.client import USERS, get_db
from telehealth.main import app
from telehealth.services.appointment_service import AppointmentService
from telehealth.services.availability_service import AvailabilityService
from telehealth.services.identity_service import IdentityProvider

IDENTITY_SECRET = "identity-provider-test-secret"

# Sunday; the next day is a Monday
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
MONDAY = "2026-10-19"
NEXT_MONDAY = "2026-10-26"


@pytest.fixture
def db():
    return mongomock.MongoClient()["telehealth_test"]


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def availability(db, clock):
    return AvailabilityService(db, clock)


@pytest.fixture
def appointments(db, clock, availability):
    return AppointmentService(db, clock, availability)


def make_doctor(db, name="Dr. A", accepting=True, availability=None, **extra):
    doc = {
        "name": name,
        "email": "dr.a@example.com",
        "role": "doctor",
        "externalId": f"ext-{name}",
        "specialization": "Cardiology",
        "licenseNumber": "LIC-001",
        "consultationFee": 80.0,
        "experience": 10,
        "rating": 4.5,
        "isActive": True,
        "isAcceptingAppointments": accepting,
        "availability": availability if availability is not None else [
            {"day": "monday", "slots": [
                {"startTime": "09:00", "endTime": "09:30", "isBooked": False},
                {"startTime": "09:30", "endTime": "10:00", "isBooked": False},
            ]},
            {"day": "sunday", "slots": [
                {"startTime": "11:00", "endTime": "11:30", "isBooked": False},
                {"startTime": "14:00", "endTime": "14:30", "isBooked": False},
            ]},
        ],
        **extra,
    }
    doc["_id"] = db[USERS].insert_one(doc).inserted_id
    return doc


def make_patient(db, name="Pat Patient", external_id="ext-patient"):
    doc = {
        "name": name,
        "email": "patient@example.com",
        "role": "patient",
        "externalId": external_id,
        "isActive": True,
    }
    doc["_id"] = db[USERS].insert_one(doc).inserted_id
    return doc


def slot_state(db, doctor_id, day, start):
    doctor = db[USERS].find_one({"_id": doctor_id})
    for entry in doctor["availability"]:
        if entry["day"] == day:
            for slot in entry["slots"]:
                if slot["startTime"] == start:
                    return slot["isBooked"]
    raise AssertionError(f"no slot {day} {start}")


def auth_headers(user):
    token = create_access_token({"sub": str(user["_id"]), "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


def identity_token(uid, email="someone@example.com", name="Some One", **claims):
    return jwt.encode({"sub": uid, "email": email, "name": name, **claims}, IDENTITY_SECRET, algorithm="HS256")


@pytest.fixture
def doctor(db):
    return make_doctor(db)


@pytest.fixture
def patient(db):
    return make_patient(db)


@pytest.fixture
def client(db, clock):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_identity_provider] = lambda: IdentityProvider(
        key=IDENTITY_SECRET, algorithms=["HS256"]
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
