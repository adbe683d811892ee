"""Medical record routes (doctors and admins write, all staff read)."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from carelog.api.deps import get_current_profile, get_patient_or_404, require_roles
from carelog.models.database import get_db
from carelog.models.medical import MedicalRecord
from carelog.models.patient import Profile
from carelog.schemas.api import MedicalRecordIn, MedicalRecordResponse
from carelog.services.audit import log_action
from carelog.services.medical_records import patient_timeline, save_medical_record

logger = logging.getLogger(__name__)

router = APIRouter(tags=["medical records"])

writer = require_roles("doctor", "admin")


def _get_record_or_404(db: Session, record_id: UUID) -> MedicalRecord:
    record = db.get(MedicalRecord, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Medical record not found")
    return record


def _payload(payload: MedicalRecordIn, author: Profile) -> dict:
    data = payload.model_dump(exclude_unset=True)
    data["patient_id"] = payload.patient_id
    # A new record belongs to whoever writes it unless a doctor is named.
    data["doctor_id"] = payload.doctor_id or author.id
    data["diagnoses"] = [d.model_dump() for d in payload.diagnoses]
    data["exams"] = [e.model_dump() for e in payload.exams]
    return data


@router.post("/medical-records", response_model=MedicalRecordResponse, status_code=201)
def create_medical_record(
    payload: MedicalRecordIn,
    db: Session = Depends(get_db),
    author: Profile = Depends(writer),
):
    record = save_medical_record(db, _payload(payload, author))
    log_action(
        db,
        actor=str(author.id),
        action="create",
        resource_type="MedicalRecord",
        resource_id=record.id,
        detail={"patient_id": str(record.patient_id), "status": record.status},
    )
    db.commit()
    db.refresh(record)
    return record


@router.put("/medical-records/{record_id}", response_model=MedicalRecordResponse)
def update_medical_record(
    record_id: UUID,
    payload: MedicalRecordIn,
    db: Session = Depends(get_db),
    author: Profile = Depends(writer),
):
    record = _get_record_or_404(db, record_id)
    data = _payload(payload, author)
    if payload.doctor_id is None:
        data["doctor_id"] = record.doctor_id
    save_medical_record(db, data, record=record)
    log_action(
        db,
        actor=str(author.id),
        action="update",
        resource_type="MedicalRecord",
        resource_id=record.id,
        detail={"status": record.status},
    )
    db.commit()
    db.refresh(record)
    return record


@router.get("/medical-records/{record_id}", response_model=MedicalRecordResponse)
def get_medical_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    record = _get_record_or_404(db, record_id)
    log_action(db, actor=str(profile.id), action="read", resource_type="MedicalRecord", resource_id=record.id)
    db.commit()
    return record


@router.get("/patients/{patient_id}/medical-records", response_model=list[MedicalRecordResponse])
def medical_timeline(
    patient_id: UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    get_patient_or_404(db, patient_id)
    return patient_timeline(db, patient_id)
