"""Shared fixtures: an in-memory SQLite database and an API client bound to it."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_VISION_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from carelog.main import app  # noqa: E402
from carelog.models.database import Base, SessionLocal, engine, get_db  # noqa: E402
from carelog.models.patient import Patient, Profile  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _profile(db, name, role, specialty=None):
    profile = Profile(full_name=name, email=f"{name.split()[0].lower()}@example.org",
                      role=role, specialty=specialty)
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def admin(db):
    return _profile(db, "Alice Admin", "admin")


@pytest.fixture
def nurse(db):
    return _profile(db, "Nina Nurse", "nurse")


@pytest.fixture
def doctor(db):
    return _profile(db, "Diego Doctor", "doctor", specialty="Cardiology")


@pytest.fixture
def patient(db):
    p = Patient(full_name="Maria Silva", bed="12B")
    db.add(p)
    db.commit()
    return p


def auth(profile):
    return {"X-Profile-Id": str(profile.id)}
