"""
Core care data: staff profiles, patients and the care-event log.

Care events are one wide table keyed by ``type``; each form fills only the
columns it owns, the rest stay NULL.
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from carelog.models.database import Base, utcnow

JSONDocument = JSON().with_variant(JSONB(), "postgresql")

PROFILE_ROLES = ("admin", "doctor", "nurse", "caregiver")
CARE_EVENT_TYPES = (
    "drink",
    "meal",
    "med",
    "drain",
    "bathroom",
    "vital_signs",
    "note",
    "humor",
)


# ---------------------------------------------------------------------------
# Profile – a staff member (identity is asserted upstream)
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    role = Column(Enum(*PROFILE_ROLES, name="profile_role_enum"), nullable=False, default="nurse")
    specialty = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Patient
# ---------------------------------------------------------------------------
class Patient(Base):
    __tablename__ = "patients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    bed = Column(String(32), nullable=True)
    birth_date = Column(Date, nullable=True)
    photo = Column(Text, nullable=True, comment="URL of the patient photo")
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    events = relationship("CareEvent", back_populates="patient", cascade="all, delete-orphan")
    medical_records = relationship(
        "MedicalRecord", back_populates="patient", cascade="all, delete-orphan"
    )
    family_tokens = relationship(
        "FamilyAccessToken", back_populates="patient", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_patients_full_name", "full_name"),)


# ---------------------------------------------------------------------------
# Care Event – one row per logged care action
# ---------------------------------------------------------------------------
class CareEvent(Base):
    __tablename__ = "care_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id"), nullable=False)
    type = Column(Enum(*CARE_EVENT_TYPES, name="care_event_type_enum"), nullable=False)
    occurred_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    volume_ml = Column(Float, nullable=True)
    meal_desc = Column(Text, nullable=True)
    consumption_percentage = Column(Integer, nullable=True)
    med_name = Column(String(255), nullable=True)
    med_dose = Column(String(128), nullable=True)
    med_route = Column(String(64), nullable=True)
    drain_type = Column(String(64), nullable=True)
    drain_left_ml = Column(Float, nullable=True)
    drain_right_ml = Column(Float, nullable=True)
    bathroom_type = Column(String(32), nullable=True)

    systolic_bp = Column(Integer, nullable=True)
    diastolic_bp = Column(Integer, nullable=True)
    heart_rate = Column(Integer, nullable=True)
    temperature = Column(Float, nullable=True)
    oxygen_saturation = Column(Integer, nullable=True)
    respiratory_rate = Column(Integer, nullable=True)

    humor_scale = Column(Integer, nullable=True)
    happiness_scale = Column(Integer, nullable=True)
    humor_notes = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    created_by = Column(String(128), nullable=False, comment="profile id or family:<token id>")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    patient = relationship("Patient", back_populates="events")

    __table_args__ = (
        Index("ix_care_events_patient_occurred", "patient_id", "occurred_at"),
        Index("ix_care_events_type", "type"),
    )


# ---------------------------------------------------------------------------
# Audit Log – immutable compliance trail
# ---------------------------------------------------------------------------
class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    actor = Column(String(128), nullable=False, comment="Profile id, family token or service")
    action = Column(String(64), nullable=False, comment="create | read | update | delete")
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(Uuid(as_uuid=True), nullable=False)
    detail = Column(JSONDocument, comment="Diff or context for the action")
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_audit_timestamp", "timestamp"),
        Index("ix_audit_resource", "resource_type", "resource_id"),
    )
