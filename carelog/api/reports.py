"""Patient report routes: chart data as JSON and a per-day CSV export."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from carelog.api.deps import get_current_profile, get_patient_or_404
from carelog.models.database import get_db
from carelog.models.patient import CareEvent, Patient, Profile
from carelog.reports.pipeline import build_patient_report, report_to_csv
from carelog.schemas.api import PatientReport
from carelog.services.audit import log_action

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


def _report(db: Session, patient: Patient, start: date | None, end: date | None) -> dict:
    query = db.query(CareEvent).filter(CareEvent.patient_id == patient.id)
    if start:
        query = query.filter(CareEvent.occurred_at >= datetime.combine(start, time.min, tzinfo=timezone.utc))
    if end:
        until = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
        query = query.filter(CareEvent.occurred_at < until)
    header = {"id": str(patient.id), "full_name": patient.full_name, "bed": patient.bed}
    return build_patient_report(header, query.all())


@router.get("/patients/{patient_id}/report", response_model=PatientReport)
def patient_report(
    patient_id: UUID,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = get_patient_or_404(db, patient_id)
    report = _report(db, patient, start, end)
    log_action(db, actor=str(profile.id), action="read", resource_type="Report", resource_id=patient.id)
    db.commit()
    return report


@router.get("/patients/{patient_id}/report.csv")
def patient_report_csv(
    patient_id: UUID,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    patient = get_patient_or_404(db, patient_id)
    report = _report(db, patient, start, end)
    log_action(db, actor=str(profile.id), action="export", resource_type="Report",
               resource_id=patient.id, detail={"format": "csv"})
    db.commit()
    filename = f"report-{patient.id}-{date.today().isoformat()}.csv"
    return Response(
        content=report_to_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
