"""
FastAPI routes: the top-level router, health, staff profiles and the audit
trail. Feature routers are mounted here.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from carelog.api import assistant, care_events, family, medical_records, patients, reports, vitals
from carelog.api.deps import get_current_profile, require_roles
from carelog.config import settings
from carelog.models.database import get_db
from carelog.models.patient import Profile
from carelog.schemas.api import (
    AuditEntryResponse,
    HealthResponse,
    ProfileCreate,
    ProfileResponse,
)
from carelog.services.audit import log_action, trail_for

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as exc:
        logger.error("Health check could not reach the database: %s", exc)
        db_status = "disconnected"
    return HealthResponse(
        status="healthy" if db_status == "connected" else "degraded",
        environment=settings.ENVIRONMENT,
        database=db_status,
    )


# ---------------------------------------------------------------------------
# Staff profiles
# ---------------------------------------------------------------------------

@router.get("/profiles/me", response_model=ProfileResponse)
def who_am_i(profile: Profile = Depends(get_current_profile)):
    return profile


@router.get("/profiles", response_model=list[ProfileResponse])
def list_profiles(
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    return db.query(Profile).order_by(Profile.full_name.asc()).all()


@router.post("/profiles", response_model=ProfileResponse, status_code=201)
def create_profile(
    payload: ProfileCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_roles("admin")),
):
    if payload.email and db.query(Profile).filter(Profile.email == payload.email).first():
        raise HTTPException(status_code=409, detail="A profile with this email already exists")
    profile = Profile(**payload.model_dump())
    db.add(profile)
    db.flush()
    log_action(
        db,
        actor=str(admin.id),
        action="create",
        resource_type="Profile",
        resource_id=profile.id,
        detail={"role": profile.role},
    )
    db.commit()
    return profile


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------

@router.get("/audit/{resource_type}/{resource_id}", response_model=list[AuditEntryResponse])
def audit_trail(
    resource_type: str,
    resource_id: UUID,
    db: Session = Depends(get_db),
    _: Profile = Depends(require_roles("admin")),
):
    return trail_for(db, resource_type, resource_id)


router.include_router(patients.router)
router.include_router(care_events.router)
router.include_router(medical_records.router)
router.include_router(family.router)
router.include_router(reports.router)
router.include_router(vitals.router)
router.include_router(assistant.router)
