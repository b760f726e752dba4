import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, enable_sqlite_foreign_keys, get_db
from main import app
from utils import ALGORITHM, AUDIENCE, ISSUER, SECRET_KEY


DOCTOR_PAYLOAD = {
    "specialty": "Cardiology",
    "licenseNumber": "LIC-1001",
    "yearsOfExperience": 12,
    "bio": "Heart specialist",
    "consultationFee": 150,
    "availableDays": ["Monday", "Wednesday"],
    "startTime": "09:00",
    "endTime": "17:00",
}

PATIENT_PAYLOAD = {
    "dateOfBirth": "1990-04-12",
    "gender": "female",
    "bloodType": "O+",
    "allergies": "Penicillin",
}


def make_token(sub, **claims):
    payload = {
        "sub": sub,
        "aud": AUDIENCE,
        "iss": ISSUER,
        "exp": datetime.utcnow() + timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def auth_headers(sub, **claims):
    claims.setdefault("email", f"{sub}@example.com")
    claims.setdefault("first_name", sub.split("-")[0].title())
    claims.setdefault("last_name", "Tester")
    return {"Authorization": f"Bearer {make_token(sub, **claims)}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def doctor(client):
    """A registered doctor: (headers, doctor json)."""
    headers = auth_headers("doc-1", first_name="Gregory", last_name="House")
    client.get("/api/auth/user", headers=headers)
    resp = client.post("/api/doctors", json={"userId": "doc-1", **DOCTOR_PAYLOAD}, headers=headers)
    assert resp.status_code == 201, resp.text
    return headers, resp.json()


@pytest.fixture
def patient(client):
    """A registered patient: (headers, patient json)."""
    headers = auth_headers("pat-1", first_name="Alice", last_name="Smith")
    client.get("/api/auth/user", headers=headers)
    resp = client.post("/api/patients", json={"userId": "pat-1", **PATIENT_PAYLOAD}, headers=headers)
    assert resp.status_code == 201, resp.text
    return headers, resp.json()
