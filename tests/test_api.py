"""End-to-end tests for the staff-facing HTTP API."""

from uuid import uuid4

from conftest import auth


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "environment": "test", "database": "connected"}


# ---------------------------------------------------------------------------
# Identity and profiles
# ---------------------------------------------------------------------------


def test_identity_header_required(client, nurse):
    assert client.get("/api/v1/profiles/me").status_code == 401
    assert client.get("/api/v1/profiles/me", headers={"X-Profile-Id": "nope"}).status_code == 401
    assert client.get("/api/v1/profiles/me", headers={"X-Profile-Id": str(uuid4())}).status_code == 401

    me = client.get("/api/v1/profiles/me", headers=auth(nurse)).json()
    assert me["full_name"] == "Nina Nurse"
    assert me["role"] == "nurse"


def test_only_admins_create_profiles(client, admin, nurse):
    payload = {"full_name": "Carla Caregiver", "email": "carla@example.org", "role": "caregiver"}
    assert client.post("/api/v1/profiles", json=payload, headers=auth(nurse)).status_code == 403

    resp = client.post("/api/v1/profiles", json=payload, headers=auth(admin))
    assert resp.status_code == 201
    assert resp.json()["role"] == "caregiver"

    assert client.post("/api/v1/profiles", json=payload, headers=auth(admin)).status_code == 409
    names = [p["full_name"] for p in client.get("/api/v1/profiles", headers=auth(nurse)).json()]
    assert names == ["Alice Admin", "Carla Caregiver", "Nina Nurse"]


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------


def test_patient_lifecycle(client, admin, nurse):
    resp = client.post(
        "/api/v1/patients",
        json={"full_name": "Jose Santos", "bed": "3A", "birth_date": "1948-07-02"},
        headers=auth(nurse),
    )
    assert resp.status_code == 201
    patient = resp.json()
    assert patient["is_active"] is True

    resp = client.patch(f"/api/v1/patients/{patient['id']}", json={"bed": "4C"}, headers=auth(nurse))
    assert resp.json()["bed"] == "4C"
    assert resp.json()["full_name"] == "Jose Santos"

    resp = client.post(f"/api/v1/patients/{patient['id']}/deactivate", headers=auth(nurse))
    assert resp.json()["is_active"] is False
    active = client.get("/api/v1/patients", params={"active": True}, headers=auth(nurse)).json()
    assert active == []

    assert client.delete(f"/api/v1/patients/{patient['id']}", headers=auth(nurse)).status_code == 403
    assert client.delete(f"/api/v1/patients/{patient['id']}", headers=auth(admin)).status_code == 204
    assert client.get(f"/api/v1/patients/{patient['id']}", headers=auth(nurse)).status_code == 404


def test_patient_search(client, nurse, patient):
    found = client.get("/api/v1/patients", params={"q": "silva"}, headers=auth(nurse)).json()
    assert [p["full_name"] for p in found] == ["Maria Silva"]
    assert client.get("/api/v1/patients", params={"q": "nobody"}, headers=auth(nurse)).json() == []


def test_patient_reads_are_audited(client, admin, nurse, patient):
    client.get(f"/api/v1/patients/{patient.id}", headers=auth(nurse))
    trail = client.get(f"/api/v1/audit/Patient/{patient.id}", headers=auth(admin)).json()
    assert [(e["actor"], e["action"]) for e in trail] == [(str(nurse.id), "read")]
    assert client.get(f"/api/v1/audit/Patient/{patient.id}", headers=auth(nurse)).status_code == 403


# ---------------------------------------------------------------------------
# Care events
# ---------------------------------------------------------------------------


def record(client, profile, patient, form):
    return client.post(f"/api/v1/patients/{patient.id}/care-events", json=form, headers=auth(profile))


def test_record_and_list_care_events(client, nurse, patient):
    resp = record(client, nurse, patient, {"kind": "liquids", "liquid_type": "Water", "amount_ml": 250})
    assert resp.status_code == 201
    event = resp.json()
    assert event["type"] == "drink"
    assert event["volume_ml"] == 250
    assert event["created_by"] == str(nurse.id)

    record(
        client,
        nurse,
        patient,
        {"kind": "vitals", "heart_rate": 82, "occurred_at": "2024-01-01T08:00:00Z"},
    )

    events = client.get(f"/api/v1/patients/{patient.id}/care-events", headers=auth(nurse)).json()
    assert [e["type"] for e in events] == ["drink", "vital_signs"]

    drinks = client.get(
        f"/api/v1/patients/{patient.id}/care-events", params={"type": "drink"}, headers=auth(nurse)
    ).json()
    assert len(drinks) == 1

    recent = client.get("/api/v1/care-events/recent", params={"hours": 1}, headers=auth(nurse)).json()
    assert [e["type"] for e in recent] == ["drink"]


def test_invalid_care_form(client, nurse, patient):
    resp = record(client, nurse, patient, {"kind": "food", "meal_type": "Brunch", "consumption_percent": 0})
    assert resp.status_code == 422
    assert len(resp.json()["detail"]) == 2

    resp = record(client, nurse, patient, {"liquid_type": "Water", "amount_ml": 250})
    assert resp.status_code == 422


def test_unknown_event_type_filter(client, nurse, patient):
    resp = client.get(
        f"/api/v1/patients/{patient.id}/care-events", params={"type": "shower"}, headers=auth(nurse)
    )
    assert resp.status_code == 422


def test_discharged_patient_takes_no_events(client, nurse, patient):
    client.post(f"/api/v1/patients/{patient.id}/deactivate", headers=auth(nurse))
    resp = record(client, nurse, patient, {"kind": "humor", "humor_scale": 3, "happiness_scale": 3})
    assert resp.status_code == 409


def test_delete_care_event(client, nurse, patient):
    event = record(client, nurse, patient, {"kind": "bathroom", "bathroom_type": "Urine"}).json()
    assert client.delete(f"/api/v1/care-events/{event['id']}", headers=auth(nurse)).status_code == 204
    assert client.delete(f"/api/v1/care-events/{event['id']}", headers=auth(nurse)).status_code == 404


# ---------------------------------------------------------------------------
# Medical records
# ---------------------------------------------------------------------------

RECORD = {
    "chief_complaint": "Shortness of breath",
    "allergies": "Penicillin",
    "status": "completed",
    "diagnoses": [
        {"diagnosis_text": "Heart failure", "diagnosis_code": "I50.9", "primary_diagnosis": True},
        {"diagnosis_text": "   "},
    ],
    "exams": [{"exam_type": "Echocardiogram", "status": "scheduled"}],
}


def test_medical_record_lifecycle(client, doctor, nurse, patient):
    payload = {**RECORD, "patient_id": str(patient.id)}
    assert client.post("/api/v1/medical-records", json=payload, headers=auth(nurse)).status_code == 403

    resp = client.post("/api/v1/medical-records", json=payload, headers=auth(doctor))
    assert resp.status_code == 201
    created = resp.json()
    assert created["doctor"]["full_name"] == "Diego Doctor"
    assert created["record_date"]
    assert [d["diagnosis_text"] for d in created["diagnoses"]] == ["Heart failure"]
    assert created["exams"][0]["status"] == "scheduled"

    update = {**payload, "diagnoses": [{"diagnosis_text": "Pneumonia"}], "exams": []}
    resp = client.put(f"/api/v1/medical-records/{created['id']}", json=update, headers=auth(doctor))
    assert resp.status_code == 200
    assert [d["diagnosis_text"] for d in resp.json()["diagnoses"]] == ["Pneumonia"]
    assert resp.json()["exams"] == []

    timeline = client.get(f"/api/v1/patients/{patient.id}/medical-records", headers=auth(nurse)).json()
    assert [r["id"] for r in timeline] == [created["id"]]
    assert client.get(f"/api/v1/medical-records/{created['id']}", headers=auth(nurse)).status_code == 200


def test_medical_record_needs_existing_patient(client, doctor):
    resp = client.post(
        "/api/v1/medical-records", json={**RECORD, "patient_id": str(uuid4())}, headers=auth(doctor)
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == ["patient_id: an existing patient is required"]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def test_patient_report(client, nurse, patient):
    for form in (
        {"kind": "food", "meal_type": "Lunch", "consumption_percent": 80, "occurred_at": "2024-02-10T12:00:00Z"},
        {"kind": "liquids", "liquid_type": "Tea", "amount_ml": 150, "occurred_at": "2024-02-10T15:00:00Z"},
        {"kind": "liquids", "liquid_type": "Water", "amount_ml": 300, "occurred_at": "2024-02-12T09:00:00Z"},
    ):
        assert record(client, nurse, patient, form).status_code == 201

    report = client.get(f"/api/v1/patients/{patient.id}/report", headers=auth(nurse)).json()
    assert [d["date"] for d in report["days"]] == ["2024-02-10", "2024-02-12"]
    assert report["summary"]["total_events"] == 3
    assert report["patient"]["full_name"] == "Maria Silva"

    window = client.get(
        f"/api/v1/patients/{patient.id}/report",
        params={"start": "2024-02-11", "end": "2024-02-12"},
        headers=auth(nurse),
    ).json()
    assert [d["date"] for d in window["days"]] == ["2024-02-12"]

    resp = client.get(f"/api/v1/patients/{patient.id}/report.csv", headers=auth(nurse))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("date,meal_percent,")
    assert len(lines) == 3


def test_malformed_form_kind(client, nurse, patient):
    resp = record(client, nurse, patient, {"kind": ["liquids"], "liquid_type": "Water", "amount_ml": 250})
    assert resp.status_code == 422
    assert "Unknown care form" in resp.json()["detail"][0]
