"""
Family portal routes.

Staff issue and revoke links under ``/patients/{id}/family-tokens``; the
portal itself lives under ``/family/{patient_id}/{token}`` and needs no
staff identity.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from carelog.api.care_events import record_care_form
from carelog.api.deps import get_current_profile, get_patient_or_404
from carelog.models.access import FamilyAccessToken
from carelog.models.database import get_db
from carelog.models.patient import CareEvent, Profile
from carelog.schemas.api import (
    CareEventResponse,
    FamilyDashboardResponse,
    FamilyTokenCreate,
    FamilyTokenIssued,
    FamilyTokenResponse,
    PatientResponse,
)
from carelog.services import family_access
from carelog.services.audit import log_action
from carelog.services.errors import FamilyAccessDenied

logger = logging.getLogger(__name__)

router = APIRouter(tags=["family portal"])


# ---------------------------------------------------------------------------
# Staff side: issuing links
# ---------------------------------------------------------------------------

@router.post("/patients/{patient_id}/family-tokens", response_model=FamilyTokenIssued, status_code=201)
def issue_family_token(
    patient_id: UUID,
    payload: FamilyTokenCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = get_patient_or_404(db, patient_id)
    row, plaintext = family_access.create_token(
        db,
        patient=patient,
        family_member_name=payload.family_member_name,
        role=payload.role,
        ttl_days=payload.ttl_days,
        created_by=profile.id,
    )
    log_action(
        db,
        actor=str(profile.id),
        action="create",
        resource_type="FamilyAccessToken",
        resource_id=row.id,
        detail={"patient_id": str(patient.id), "role": row.role},
    )
    db.commit()
    return FamilyTokenIssued(
        **FamilyTokenResponse.model_validate(row).model_dump(),
        token=plaintext,
        portal_path=f"/family/{patient.id}/{plaintext}",
    )


@router.get("/patients/{patient_id}/family-tokens", response_model=list[FamilyTokenResponse])
def list_family_tokens(
    patient_id: UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    get_patient_or_404(db, patient_id)
    return (
        db.query(FamilyAccessToken)
        .filter(FamilyAccessToken.patient_id == patient_id)
        .order_by(FamilyAccessToken.created_at.desc())
        .all()
    )


@router.delete("/family-tokens/{token_id}", response_model=FamilyTokenResponse)
def revoke_family_token(
    token_id: UUID,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    row = db.get(FamilyAccessToken, token_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Access link not found")
    family_access.revoke_token(db, row)
    log_action(db, actor=str(profile.id), action="update", resource_type="FamilyAccessToken",
               resource_id=row.id, detail={"is_active": False})
    db.commit()
    return row


# ---------------------------------------------------------------------------
# Portal side
# ---------------------------------------------------------------------------

def _portal_events(db: Session, patient_id: UUID, limit: int = 200) -> list[CareEvent]:
    return (
        db.query(CareEvent)
        .filter(CareEvent.patient_id == patient_id)
        .order_by(CareEvent.occurred_at.desc())
        .limit(limit)
        .all()
    )


@router.get("/family/{patient_id}/{token}", response_model=FamilyDashboardResponse)
def family_dashboard(patient_id: UUID, token: str, db: Session = Depends(get_db)):
    row, patient = family_access.validate_token(db, patient_id, token)
    permissions = family_access.get_permissions(row.role)
    if not permissions.can_view:
        raise FamilyAccessDenied("This access link cannot view the dashboard")

    board = family_access.dashboard(patient, _portal_events(db, patient.id), row.role)
    log_action(db, actor=f"family:{row.id}", action="read", resource_type="Patient", resource_id=patient.id)
    db.commit()
    return FamilyDashboardResponse(
        patient=PatientResponse.model_validate(patient),
        permissions=asdict(board["permissions"]),
        stats=board["stats"],
        latest_humor=(
            CareEventResponse.model_validate(board["latest_humor"]) if board["latest_humor"] else None
        ),
        recent_events=[CareEventResponse.model_validate(e) for e in board["recent_events"]],
    )


@router.get("/family/{patient_id}/{token}/care-events", response_model=list[CareEventResponse])
def family_events(patient_id: UUID, token: str, db: Session = Depends(get_db)):
    row, patient = family_access.validate_token(db, patient_id, token)
    if not family_access.get_permissions(row.role).can_view:
        raise FamilyAccessDenied("This access link cannot view care events")
    events = _portal_events(db, patient.id, limit=50)
    db.commit()
    return events


@router.post("/family/{patient_id}/{token}/care-events", response_model=CareEventResponse, status_code=201)
def family_record_care(
    patient_id: UUID,
    token: str,
    payload: dict[str, Any] = Body(..., examples=[{"kind": "humor", "humor_scale": 4, "happiness_scale": 5}]),
    db: Session = Depends(get_db),
):
    row, patient = family_access.validate_token(db, patient_id, token)
    if not family_access.get_permissions(row.role).can_edit:
        raise FamilyAccessDenied("This access link is read-only")
    event = record_care_form(db, patient_id=patient.id, payload=payload, actor=f"family:{row.id}")
    db.commit()
    logger.info("Family token %s recorded a %s event", row.id, event.type)
    return event
