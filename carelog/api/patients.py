"""Patient registry routes."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from carelog.api.deps import get_current_profile, get_patient_or_404, require_roles
from carelog.models.database import get_db
from carelog.models.patient import Patient, Profile
from carelog.schemas.api import PatientCreate, PatientResponse, PatientUpdate
from carelog.services.audit import log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=list[PatientResponse])
def list_patients(
    active: bool | None = None,
    q: str | None = Query(None, description="Case-insensitive name search"),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    query = db.query(Patient)
    if active is not None:
        query = query.filter(Patient.is_active.is_(active))
    if q:
        query = query.filter(Patient.full_name.ilike(f"%{q.strip()}%"))
    return query.order_by(Patient.full_name.asc()).all()


@router.post("", response_model=PatientResponse, status_code=201)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = Patient(**payload.model_dump())
    db.add(patient)
    db.flush()
    log_action(
        db,
        actor=str(profile.id),
        action="create",
        resource_type="Patient",
        resource_id=patient.id,
        detail={"bed": patient.bed},
    )
    db.commit()
    return patient


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = get_patient_or_404(db, patient_id)
    log_action(db, actor=str(profile.id), action="read", resource_type="Patient", resource_id=patient.id)
    db.commit()
    return patient


@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: UUID,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = get_patient_or_404(db, patient_id)
    changes = payload.model_dump(exclude_unset=True)
    for name, value in changes.items():
        setattr(patient, name, value)
    log_action(
        db,
        actor=str(profile.id),
        action="update",
        resource_type="Patient",
        resource_id=patient.id,
        detail={"fields": sorted(changes)},
    )
    db.commit()
    return patient


@router.post("/{patient_id}/deactivate", response_model=PatientResponse)
def deactivate_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Discharge: the patient leaves the active census but keeps its history."""
    patient = get_patient_or_404(db, patient_id)
    patient.is_active = False
    log_action(db, actor=str(profile.id), action="update", resource_type="Patient",
               resource_id=patient.id, detail={"is_active": False})
    db.commit()
    return patient


@router.delete("/{patient_id}", status_code=204)
def delete_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_roles("admin")),
):
    patient = get_patient_or_404(db, patient_id)
    log_action(db, actor=str(admin.id), action="delete", resource_type="Patient", resource_id=patient.id)
    db.delete(patient)
    db.commit()
    logger.info("Patient %s deleted by %s", patient_id, admin.id)
