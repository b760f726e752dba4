from fastapi.testclient import TestClient

import crud
from errors import StorageError
from main import app
from tests.conftest import auth_headers


def test_storage_failure_is_generic_500(client, monkeypatch):
    def broken(db):
        raise StorageError("UNIQUE constraint failed: doctors.user_id")

    monkeypatch.setattr(crud, "get_doctors", broken)
    resp = client.get("/api/doctors")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal Server Error"}


def test_unexpected_failure_is_generic_500(client, monkeypatch):
    def broken(db, doctor_id):
        raise RuntimeError("connection string postgres://secret@db")

    monkeypatch.setattr(crud, "get_doctor", broken)
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/api/doctors/1")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal Server Error"}


def test_malformed_json_has_no_field(client):
    resp = client.post(
        "/api/patients",
        content=b'{"userId": ',
        headers={**auth_headers("pat-7"), "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert "field" not in body
    assert body["message"] == "JSON decode error"


def test_list_item_errors_name_the_list(client):
    payload = {
        "userId": "doc-7",
        "specialty": "Cardiology",
        "licenseNumber": "LIC-7",
        "yearsOfExperience": 3,
        "consultationFee": 90,
        "availableDays": ["Monday", 5],
        "startTime": "09:00",
        "endTime": "12:00",
    }
    resp = client.post("/api/doctors", json=payload, headers=auth_headers("doc-7"))
    assert resp.status_code == 400
    assert resp.json()["field"] == "availableDays"
