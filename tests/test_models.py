"""Tests for model loading behaviour."""

from sqlalchemy import inspect

from carelog.models.patient import CareEvent, Patient


def test_patient_queries_leave_events_unloaded(db, nurse, patient):
    db.add(CareEvent(patient_id=patient.id, type="note", notes="slept well", created_by=str(nurse.id)))
    db.commit()
    db.expunge_all()

    loaded = db.query(Patient).filter(Patient.id == patient.id).one()
    assert "events" in inspect(loaded).unloaded
    assert [e.type for e in loaded.events] == ["note"]


def test_deleting_a_patient_removes_its_events(db, nurse, patient):
    db.add(CareEvent(patient_id=patient.id, type="note", created_by=str(nurse.id)))
    db.commit()

    db.delete(patient)
    db.commit()
    assert db.query(CareEvent).count() == 0
