"""Saving medical records together with their diagnoses and exams."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from carelog.models.database import utcnow
from carelog.models.medical import MedicalDiagnosis, MedicalExam, MedicalRecord
from carelog.models.patient import Patient, Profile
from carelog.services.errors import ValidationFailed

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    "record_date",
    "chief_complaint",
    "history_present_illness",
    "past_medical_history",
    "medications",
    "allergies",
    "social_history",
    "family_history",
    "review_systems",
    "physical_examination",
    "assessment_plan",
    "notes",
    "status",
)


def _check_references(db: Session, patient_id: UUID | None, doctor_id: UUID | None) -> list[str]:
    errors = []
    if not patient_id or db.get(Patient, patient_id) is None:
        errors.append("patient_id: an existing patient is required")
    if not doctor_id or db.get(Profile, doctor_id) is None:
        errors.append("doctor_id: an existing doctor is required")
    return errors


def _replace_children(record: MedicalRecord, diagnoses: list[dict], exams: list[dict]) -> None:
    # Blank rows are left over from the form's "add" buttons; drop them.
    record.diagnoses = [
        MedicalDiagnosis(
            diagnosis_text=d["diagnosis_text"].strip(),
            diagnosis_code=d.get("diagnosis_code") or None,
            primary_diagnosis=bool(d.get("primary_diagnosis")),
        )
        for d in diagnoses
        if (d.get("diagnosis_text") or "").strip()
    ]
    record.exams = [
        MedicalExam(
            exam_type=e["exam_type"].strip(),
            exam_date=e.get("exam_date"),
            status=e.get("status") or "requested",
            result=e.get("result") or None,
            notes=e.get("notes") or None,
        )
        for e in exams
        if (e.get("exam_type") or "").strip()
    ]


def save_medical_record(
    db: Session,
    data: dict[str, Any],
    *,
    record: MedicalRecord | None = None,
) -> MedicalRecord:
    """
    Create (``record`` is None) or update a record. Diagnoses and exams are
    replaced wholesale by what is submitted.
    """
    patient_id = data.get("patient_id") or (record.patient_id if record else None)
    doctor_id = data.get("doctor_id") or (record.doctor_id if record else None)
    errors = _check_references(db, patient_id, doctor_id)
    if errors:
        raise ValidationFailed(errors)

    if record is None:
        record = MedicalRecord(patient_id=patient_id, doctor_id=doctor_id)
        db.add(record)
    else:
        record.patient_id = patient_id
        record.doctor_id = doctor_id

    for name in RECORD_FIELDS:
        if name in data and data[name] is not None:
            setattr(record, name, data[name])
    if record.record_date is None:
        record.record_date = utcnow().date()

    _replace_children(record, data.get("diagnoses") or [], data.get("exams") or [])
    db.flush()
    logger.info(
        "Saved medical record %s (%d diagnoses, %d exams)",
        record.id,
        len(record.diagnoses),
        len(record.exams),
    )
    return record


def patient_timeline(db: Session, patient_id: UUID) -> list[MedicalRecord]:
    """Records for one patient, most recent first."""
    return (
        db.query(MedicalRecord)
        .filter(MedicalRecord.patient_id == patient_id)
        .order_by(MedicalRecord.record_date.desc(), MedicalRecord.created_at.desc())
        .all()
    )
