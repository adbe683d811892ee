"""Care-event logging routes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from carelog.api.deps import get_current_profile, get_patient_or_404
from carelog.models.database import as_utc, get_db, utcnow
from carelog.models.patient import CARE_EVENT_TYPES, CareEvent, Profile
from carelog.schemas.api import CareEventResponse
from carelog.services.audit import log_action
from carelog.services.care_forms import build_care_event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["care events"])


def record_care_form(
    db: Session,
    *,
    patient_id: UUID,
    payload: dict[str, Any],
    actor: str,
) -> CareEvent:
    """Shared by the staff screens and the family portal."""
    form = dict(payload)
    kind = form.pop("kind", None)
    occurred_at = form.pop("occurred_at", None)
    if not kind:
        raise HTTPException(status_code=422, detail=["kind: a care form kind is required"])

    event = CareEvent(
        **build_care_event(
            kind,
            form,
            patient_id=patient_id,
            created_by=actor,
            occurred_at=occurred_at,
        )
    )
    db.add(event)
    db.flush()
    log_action(
        db,
        actor=actor,
        action="create",
        resource_type="CareEvent",
        resource_id=event.id,
        detail={"patient_id": str(patient_id), "type": event.type},
    )
    return event


@router.post("/patients/{patient_id}/care-events", response_model=CareEventResponse, status_code=201)
def create_care_event(
    patient_id: UUID,
    payload: dict[str, Any] = Body(
        ...,
        examples=[{"kind": "liquids", "liquid_type": "Water", "amount_ml": 200}],
    ),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """
    Submit one care form. ``kind`` selects the form (liquids, food,
    medication, drain, bathroom, vitals, humor); ``occurred_at`` defaults to
    now; the remaining keys are the form fields.
    """
    patient = get_patient_or_404(db, patient_id)
    if not patient.is_active:
        raise HTTPException(status_code=409, detail="Patient is not active")
    event = record_care_form(db, patient_id=patient.id, payload=payload, actor=str(profile.id))
    db.commit()
    return event


@router.get("/patients/{patient_id}/care-events", response_model=list[CareEventResponse])
def list_patient_events(
    patient_id: UUID,
    event_type: str | None = Query(None, alias="type", description="Filter by event type"),
    since: datetime | None = None,
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    get_patient_or_404(db, patient_id)
    query = db.query(CareEvent).filter(CareEvent.patient_id == patient_id)
    if event_type:
        if event_type not in CARE_EVENT_TYPES:
            raise HTTPException(status_code=422, detail=f"Unknown event type '{event_type}'")
        query = query.filter(CareEvent.type == event_type)
    if since:
        query = query.filter(CareEvent.occurred_at >= as_utc(since))
    return query.order_by(CareEvent.occurred_at.desc()).limit(limit).all()


@router.get("/care-events/recent", response_model=list[CareEventResponse])
def recent_events(
    hours: int = Query(24, ge=1, le=24 * 30),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    since = utcnow() - timedelta(hours=hours)
    return (
        db.query(CareEvent)
        .filter(CareEvent.occurred_at >= since)
        .order_by(CareEvent.occurred_at.desc())
        .all()
    )


@router.delete("/care-events/{event_id}", status_code=204)
def delete_care_event(
    event_id: UUID,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    event = db.get(CareEvent, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Care event not found")
    log_action(
        db,
        actor=str(profile.id),
        action="delete",
        resource_type="CareEvent",
        resource_id=event.id,
        detail={"patient_id": str(event.patient_id), "type": event.type},
    )
    db.delete(event)
    db.commit()
