"""Audit trail: who read or changed which patient data, and when."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from carelog.models.patient import AuditLog

logger = logging.getLogger(__name__)


def _jsonable(detail: dict[str, Any]) -> dict[str, Any]:
    return {
        key: str(value) if isinstance(value, (UUID, datetime, date)) else value
        for key, value in detail.items()
    }


def log_action(
    db: Session,
    *,
    actor: str,
    action: str,
    resource_type: str,
    resource_id: UUID,
    detail: dict[str, Any] | None = None,
) -> AuditLog:
    """
    Append one entry. It is flushed here and committed together with the
    caller's change, so a rolled-back write leaves no trace either.
    """
    entry = AuditLog(
        actor=actor,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        detail=_jsonable(detail) if detail else None,
    )
    db.add(entry)
    db.flush()
    logger.info("AUDIT: %s %s %s/%s", actor, action, resource_type, resource_id)
    return entry


def trail_for(db: Session, resource_type: str, resource_id: UUID) -> list[AuditLog]:
    """Entries for one resource, oldest first."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
        .order_by(AuditLog.timestamp.asc())
        .all()
    )
