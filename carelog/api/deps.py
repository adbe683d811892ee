"""
Request dependencies: staff identity and role checks.

Authentication happens upstream; the gateway forwards the authenticated
profile id in ``X-Profile-Id``.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from carelog.models.database import get_db
from carelog.models.patient import Patient, Profile


def get_current_profile(
    x_profile_id: str | None = Header(None),
    db: Session = Depends(get_db),
) -> Profile:
    if not x_profile_id:
        raise HTTPException(status_code=401, detail="Missing X-Profile-Id header")
    try:
        profile_id = UUID(x_profile_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Malformed X-Profile-Id header") from None
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise HTTPException(status_code=401, detail="Unknown profile")
    return profile


def require_roles(*roles: str):
    """Dependency factory: the current profile must hold one of ``roles``."""

    def checker(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of the roles: {', '.join(roles)}",
            )
        return profile

    return checker


def get_patient_or_404(db: Session, patient_id: UUID) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient
