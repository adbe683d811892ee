"""
Family portal access.

A family member gets a link carrying ``(patient_id, token)``. Only the
SHA-256 of the token is stored, so a leaked database does not leak links.
The token role decides what the portal may do: ``viewer`` reads the
dashboard, ``editor`` may also record care (usually mood entries).
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from carelog.config import settings
from carelog.models.access import FamilyAccessToken
from carelog.models.database import as_utc, utcnow
from carelog.models.patient import CareEvent, Patient
from carelog.services.errors import FamilyAccessDenied

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FamilyPermissions:
    can_view: bool = False
    can_edit: bool = False


_ROLE_PERMISSIONS = {
    "viewer": FamilyPermissions(can_view=True),
    "editor": FamilyPermissions(can_view=True, can_edit=True),
}


def get_permissions(role: str | None) -> FamilyPermissions:
    return _ROLE_PERMISSIONS.get(role or "", FamilyPermissions())


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_token(
    db: Session,
    *,
    patient: Patient,
    family_member_name: str,
    role: str = "viewer",
    ttl_days: int | None = None,
    created_by: UUID | None = None,
) -> tuple[FamilyAccessToken, str]:
    """Returns the stored row and the plaintext token (shown once)."""
    if role not in _ROLE_PERMISSIONS:
        raise ValueError(f"Unknown family role '{role}'")
    ttl = settings.FAMILY_TOKEN_TTL_DAYS if ttl_days is None else ttl_days
    plaintext = secrets.token_urlsafe(24)
    row = FamilyAccessToken(
        patient_id=patient.id,
        token_hash=hash_token(plaintext),
        family_member_name=family_member_name,
        role=role,
        expires_at=utcnow() + timedelta(days=ttl) if ttl > 0 else None,
        created_by=created_by,
    )
    db.add(row)
    db.flush()
    logger.info("Family token %s (%s) issued for patient %s", row.id, role, patient.id)
    return row, plaintext


def validate_token(db: Session, patient_id: UUID, token: str) -> tuple[FamilyAccessToken, Patient]:
    """Resolve a portal link. Raises FamilyAccessDenied when it cannot be used."""
    row = (
        db.query(FamilyAccessToken)
        .filter(
            FamilyAccessToken.token_hash == hash_token(token),
            FamilyAccessToken.patient_id == patient_id,
        )
        .first()
    )
    if row is None:
        raise FamilyAccessDenied("Invalid access link")
    if not row.is_active:
        raise FamilyAccessDenied("This access link has been revoked")
    if is_expired(row):
        raise FamilyAccessDenied("This access link has expired")

    patient = db.get(Patient, patient_id)
    if patient is None or not patient.is_active:
        raise FamilyAccessDenied("Patient is not available")

    row.last_used_at = utcnow()
    db.flush()
    return row, patient


def revoke_token(db: Session, token_row: FamilyAccessToken) -> None:
    token_row.is_active = False
    db.flush()
    logger.info("Family token %s revoked", token_row.id)


def dashboard(
    patient: Patient,
    events: list[CareEvent],
    role: str,
    today: date | None = None,
) -> dict[str, Any]:
    """Today's activity for the portal home screen."""
    today = today or utcnow().date()
    todays = sorted(
        (e for e in events if as_utc(e.occurred_at).date() == today),
        key=lambda e: as_utc(e.occurred_at),
        reverse=True,
    )

    def count(kind: str) -> int:
        return sum(1 for e in todays if e.type == kind)

    latest_humor = next((e for e in todays if e.type == "humor"), None)
    return {
        "patient": patient,
        "permissions": get_permissions(role),
        "stats": {
            "liquids": count("drink"),
            "medications": count("med"),
            "meals": count("meal"),
            "notes": count("note"),
            "humor": count("humor"),
        },
        "latest_humor": latest_humor,
        "recent_events": todays[:5],
    }


def is_expired(row: FamilyAccessToken, now: datetime | None = None) -> bool:
    now = now or utcnow()
    return row.expires_at is not None and as_utc(row.expires_at) <= now
