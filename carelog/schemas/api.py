"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"


# ---------------------------------------------------------------------------
# Staff profiles
# ---------------------------------------------------------------------------

class ProfileCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str | None = None
    role: Literal["admin", "doctor", "nurse", "caregiver"] = "nurse"
    specialty: str | None = None


class ProfileResponse(ORMModel):
    id: UUID
    full_name: str
    email: str | None
    role: str
    specialty: str | None
    created_at: datetime


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

class PatientCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    bed: str | None = None
    birth_date: date | None = None
    photo: str | None = None
    notes: str | None = None


class PatientUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    bed: str | None = None
    birth_date: date | None = None
    photo: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class PatientResponse(ORMModel):
    id: UUID
    full_name: str
    bed: str | None
    birth_date: date | None
    photo: str | None
    notes: str | None
    is_active: bool
    created_at: datetime


# ---------------------------------------------------------------------------
# Care events
# ---------------------------------------------------------------------------

class CareEventResponse(ORMModel):
    id: UUID
    patient_id: UUID
    type: str
    occurred_at: datetime
    volume_ml: float | None = None
    meal_desc: str | None = None
    consumption_percentage: int | None = None
    med_name: str | None = None
    med_dose: str | None = None
    med_route: str | None = None
    drain_type: str | None = None
    drain_left_ml: float | None = None
    drain_right_ml: float | None = None
    bathroom_type: str | None = None
    systolic_bp: int | None = None
    diastolic_bp: int | None = None
    heart_rate: int | None = None
    temperature: float | None = None
    oxygen_saturation: int | None = None
    respiratory_rate: int | None = None
    humor_scale: int | None = None
    happiness_scale: int | None = None
    humor_notes: str | None = None
    notes: str | None = None
    created_by: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Medical records
# ---------------------------------------------------------------------------

class DiagnosisIn(BaseModel):
    diagnosis_text: str = ""
    diagnosis_code: str | None = None
    primary_diagnosis: bool = False


class ExamIn(BaseModel):
    exam_type: str = ""
    exam_date: datetime | None = None
    status: Literal["requested", "scheduled", "completed", "cancelled"] = "requested"
    result: str | None = None
    notes: str | None = None


class MedicalRecordIn(BaseModel):
    patient_id: UUID
    doctor_id: UUID | None = None
    record_date: date | None = None
    chief_complaint: str | None = None
    history_present_illness: str | None = None
    past_medical_history: str | None = None
    medications: str | None = None
    allergies: str | None = None
    social_history: str | None = None
    family_history: str | None = None
    review_systems: str | None = None
    physical_examination: str | None = None
    assessment_plan: str | None = None
    notes: str | None = None
    status: Literal["draft", "completed", "reviewed"] = "draft"
    diagnoses: list[DiagnosisIn] = []
    exams: list[ExamIn] = []


class DiagnosisResponse(ORMModel):
    id: UUID
    diagnosis_text: str
    diagnosis_code: str | None
    primary_diagnosis: bool


class ExamResponse(ORMModel):
    id: UUID
    exam_type: str
    exam_date: datetime | None
    status: str
    result: str | None
    notes: str | None


class DoctorSummary(ORMModel):
    id: UUID
    full_name: str
    specialty: str | None


class MedicalRecordResponse(ORMModel):
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    doctor: DoctorSummary | None = None
    record_date: date
    chief_complaint: str | None
    history_present_illness: str | None
    past_medical_history: str | None
    medications: str | None
    allergies: str | None
    social_history: str | None
    family_history: str | None
    review_systems: str | None
    physical_examination: str | None
    assessment_plan: str | None
    notes: str | None
    status: str
    diagnoses: list[DiagnosisResponse] = []
    exams: list[ExamResponse] = []
    created_at: datetime
    updated_at: datetime | None


# ---------------------------------------------------------------------------
# Family portal
# ---------------------------------------------------------------------------

class FamilyTokenCreate(BaseModel):
    family_member_name: str = Field(..., min_length=1, max_length=255)
    role: Literal["viewer", "editor"] = "viewer"
    ttl_days: int | None = Field(None, ge=0, le=365)


class FamilyTokenResponse(ORMModel):
    id: UUID
    patient_id: UUID
    family_member_name: str
    role: str
    expires_at: datetime | None
    is_active: bool
    created_at: datetime
    last_used_at: datetime | None


class FamilyTokenIssued(FamilyTokenResponse):
    token: str
    portal_path: str


class FamilyPermissionsResponse(BaseModel):
    can_view: bool
    can_edit: bool


class FamilyDashboardResponse(BaseModel):
    patient: PatientResponse
    permissions: FamilyPermissionsResponse
    stats: dict[str, int]
    latest_humor: CareEventResponse | None
    recent_events: list[CareEventResponse]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class DailyVitals(BaseModel):
    count: int
    systolic_bp: int | None = None
    diastolic_bp: int | None = None
    heart_rate: int | None = None
    temperature: float | None = None
    oxygen_saturation: int | None = None
    respiratory_rate: int | None = None


class DailyStats(BaseModel):
    date: str
    meal_percent: int
    meal_count: int
    medication_count: int
    bathroom_count: int
    liquids_ml: float
    drains_ml: float
    urine_ml: float
    humor_score: int
    humor_count: int
    event_count: int
    vitals: DailyVitals


class ReportSummary(BaseModel):
    total_events: int
    days_monitored: int
    events_per_day: int
    last_care_at: datetime | None


class ReportPeriod(BaseModel):
    start: date | None
    end: date | None


class PatientReport(BaseModel):
    patient: dict[str, Any]
    period: ReportPeriod
    summary: ReportSummary
    days: list[DailyStats]
    series: dict[str, list[dict[str, Any]]]


# ---------------------------------------------------------------------------
# Vital-signs OCR
# ---------------------------------------------------------------------------

class OCRTextRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=20000)


class OCRResultResponse(BaseModel):
    success: bool
    data: dict[str, float | int] = {}
    confidence: float = 0.0
    source: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Virtual assistant
# ---------------------------------------------------------------------------

class ChatSettingsIn(BaseModel):
    api_key: str | None = Field(None, description="Omit to keep the stored key")
    model: str
    temperature: float
    max_tokens: int
    presence_penalty: float
    frequency_penalty: float
    system_prompt: str


class ChatSettingsResponse(BaseModel):
    has_api_key: bool
    model: str
    temperature: float
    max_tokens: int
    presence_penalty: float
    frequency_penalty: float
    system_prompt: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=8000)
    session_id: str = Field("default", min_length=1, max_length=64)
    patient_id: UUID | None = None
    include_context: bool = True


class SummaryRequest(BaseModel):
    kind: Literal["patient", "events", "general"] = "general"
    session_id: str = Field("default", min_length=1, max_length=64)
    patient_id: UUID | None = None


class PatternsRequest(BaseModel):
    focus: str | None = None
    session_id: str = Field("default", min_length=1, max_length=64)
    patient_id: UUID | None = None


class ChatReply(BaseModel):
    session_id: str
    message: str
    error: str | None = None


class ChatMessageOut(BaseModel):
    role: str
    content: str


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

class AuditEntryResponse(ORMModel):
    id: UUID
    actor: str
    action: str
    resource_type: str
    resource_id: UUID
    detail: dict[str, Any] | None
    timestamp: datetime


class AssistantSearchResponse(BaseModel):
    patients: list[PatientResponse]
    events: list[CareEventResponse]
