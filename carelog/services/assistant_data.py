"""
Data the virtual assistant is allowed to see, and its plain-text rendering
for the prompt context.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from carelog.models.database import as_utc, utcnow
from carelog.models.patient import CareEvent, Patient, Profile

logger = logging.getLogger(__name__)

RECENT_EVENT_LIMIT = 10


def summarize(patients: list[Patient], events: list[CareEvent]) -> dict[str, Any]:
    """Totals over already-fetched rows; ``events`` must be newest first."""
    return {
        "total_patients": len(patients),
        "active_patients": sum(1 for p in patients if p.is_active),
        "total_events": len(events),
        "events_by_type": dict(Counter(e.type for e in events)),
        "recent_events": events[:RECENT_EVENT_LIMIT],
    }


class AssistantDataService:
    def __init__(self, db: Session):
        self.db = db

    def _events(self):
        return self.db.query(CareEvent).order_by(CareEvent.occurred_at.desc())

    def get_all_data(self) -> dict[str, Any]:
        patients = self.db.query(Patient).order_by(Patient.created_at.desc()).all()
        events = self._events().all()
        profiles = self.db.query(Profile).order_by(Profile.created_at.desc()).all()
        return {
            "patients": patients,
            "events": events,
            "profiles": profiles,
            "summary": summarize(patients, events),
        }

    def get_patient_data(self, patient_id: UUID) -> dict[str, Any]:
        return {
            "patient": self.db.get(Patient, patient_id),
            "events": self._events().filter(CareEvent.patient_id == patient_id).all(),
        }

    def get_events_by_type(self, event_type: str) -> list[CareEvent]:
        return self._events().filter(CareEvent.type == event_type).all()

    def get_recent_events(self, hours: int = 24) -> list[CareEvent]:
        since = utcnow() - timedelta(hours=hours)
        return self._events().filter(CareEvent.occurred_at >= since).all()

    def get_active_patients(self) -> list[Patient]:
        return (
            self.db.query(Patient)
            .filter(Patient.is_active.is_(True))
            .order_by(Patient.full_name.asc())
            .all()
        )

    def search(self, query: str) -> dict[str, Any]:
        """Patients by name; events by notes, meal description or medication."""
        pattern = f"%{query.strip()}%"
        patients = self.db.query(Patient).filter(Patient.full_name.ilike(pattern)).all()
        events = (
            self._events()
            .filter(
                or_(
                    CareEvent.notes.ilike(pattern),
                    CareEvent.meal_desc.ilike(pattern),
                    CareEvent.med_name.ilike(pattern),
                )
            )
            .all()
        )
        logger.debug("Assistant search matched %d patients, %d events", len(patients), len(events))
        return {"patients": patients, "events": events}


def format_for_assistant(data: dict[str, Any]) -> str:
    """Compact text block describing the ward, sent as chat context."""
    summary = data["summary"]
    by_type = ", ".join(f"{k}: {v}" for k, v in sorted(summary["events_by_type"].items()))

    lines = [
        "CARE SYSTEM SUMMARY:",
        "",
        "PATIENTS:",
        f"- Total patients: {summary['total_patients']}",
        f"- Active patients: {summary['active_patients']}",
        "",
        "CARE EVENTS:",
        f"- Total events: {summary['total_events']}",
        f"- Events by type: {by_type or 'none'}",
        "",
        "LATEST PATIENTS:",
    ]
    lines += [f"- {p.full_name} (Bed: {p.bed or 'N/A'})" for p in data["patients"][:5]]
    lines += ["", "RECENT EVENTS:"]
    lines += [
        f"- {e.type} - {as_utc(e.occurred_at).strftime('%Y-%m-%d %H:%M')} UTC"
        for e in summary["recent_events"][:5]
    ]
    lines += ["", "STAFF:", f"- Total staff: {len(data['profiles'])}"]
    lines += [f"- {p.full_name} ({p.role or 'no role'})" for p in data["profiles"][:3]]
    return "\n".join(lines)


def patient_context(data: dict[str, Any]) -> dict[str, Any]:
    """JSON-serialisable context for questions about one patient."""
    patient = data["patient"]
    return {
        "patient": {
            "name": patient.full_name,
            "bed": patient.bed,
            "birth_date": patient.birth_date.isoformat() if patient.birth_date else None,
            "active": patient.is_active,
            "notes": patient.notes,
        },
        "events": [
            {
                "type": e.type,
                "occurred_at": as_utc(e.occurred_at).isoformat(),
                "notes": e.notes,
                "volume_ml": e.volume_ml,
                "meal_desc": e.meal_desc,
                "med_name": e.med_name,
                "med_dose": e.med_dose,
            }
            for e in data["events"][:50]
        ],
    }
