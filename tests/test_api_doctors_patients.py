from tests.conftest import DOCTOR_PAYLOAD, PATIENT_PAYLOAD, auth_headers


def test_missing_token_is_unauthorized(client):
    resp = client.get("/api/patients/me")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Unauthorized"}


def test_bad_token_is_unauthorized(client):
    resp = client.get("/api/patients/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_current_user_is_mirrored_from_claims(client):
    resp = client.get("/api/auth/user", headers=auth_headers("u-9", first_name="Nia", picture="http://img/9.png"))
    assert resp.status_code == 200
    assert resp.json() == {
        "id": "u-9",
        "email": "u-9@example.com",
        "firstName": "Nia",
        "lastName": "Tester",
        "profileImageUrl": "http://img/9.png",
    }


def test_doctor_listing_is_public_and_embeds_user(client, doctor):
    resp = client.get("/api/doctors")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 1
    assert body[0]["specialty"] == "Cardiology"
    assert body[0]["availableDays"] == ["Monday", "Wednesday"]
    assert body[0]["user"]["lastName"] == "House"


def test_get_doctor_round_trip(client, doctor):
    _, created = doctor
    resp = client.get(f"/api/doctors/{created['id']}")
    assert resp.status_code == 200
    body = resp.json()
    for key, value in DOCTOR_PAYLOAD.items():
        assert body[key] == value
    assert body["userId"] == "doc-1"
    assert body["user"]["firstName"] == "Gregory"


def test_get_unknown_doctor_is_404(client):
    resp = client.get("/api/doctors/999")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Doctor not found"}


def test_create_doctor_for_someone_else_is_401(client):
    headers = auth_headers("doc-2")
    resp = client.post("/api/doctors", json={"userId": "doc-1", **DOCTOR_PAYLOAD}, headers=headers)
    assert resp.status_code == 401


def test_create_doctor_validation_names_first_field(client):
    headers = auth_headers("doc-3")
    payload = {"userId": "doc-3", **DOCTOR_PAYLOAD, "startTime": "9am"}
    resp = client.post("/api/doctors", json=payload, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["field"] == "startTime"
    assert resp.json()["message"].startswith("startTime")


def test_create_doctor_rejects_unknown_weekday(client):
    headers = auth_headers("doc-4")
    payload = {"userId": "doc-4", **DOCTOR_PAYLOAD, "availableDays": ["Funday"]}
    resp = client.post("/api/doctors", json=payload, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["field"] == "availableDays"


def test_duplicate_doctor_profile_is_400(client, doctor):
    headers, _ = doctor
    resp = client.post("/api/doctors", json={"userId": "doc-1", **DOCTOR_PAYLOAD}, headers=headers)
    assert resp.status_code == 400


def test_patient_me_without_profile_is_404(client):
    resp = client.get("/api/patients/me", headers=auth_headers("fresh-1"))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Patient profile not found"}


def test_patient_round_trip(client, patient):
    headers, created = patient
    assert created["userId"] == "pat-1"
    resp = client.get("/api/patients/me", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == created["id"]
    for key, value in PATIENT_PAYLOAD.items():
        assert body[key] == value
    assert body["address"] is None


def test_create_patient_for_someone_else_is_401(client):
    resp = client.post(
        "/api/patients", json={"userId": "pat-9", **PATIENT_PAYLOAD}, headers=auth_headers("pat-2")
    )
    assert resp.status_code == 401
    assert resp.json() == {"message": "Unauthorized to create patient for another user"}


def test_create_patient_rejects_bad_birth_date(client):
    payload = {"userId": "pat-3", **PATIENT_PAYLOAD, "dateOfBirth": "12/04/1990"}
    resp = client.post("/api/patients", json=payload, headers=auth_headers("pat-3"))
    assert resp.status_code == 400
    assert resp.json()["field"] == "dateOfBirth"


def test_repeated_gets_are_identical(client, doctor):
    assert client.get("/api/doctors").json() == client.get("/api/doctors").json()
