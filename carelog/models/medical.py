"""Medical records with their diagnoses and requested exams."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from carelog.models.database import Base, utcnow

RECORD_STATUSES = ("draft", "completed", "reviewed")
EXAM_STATUSES = ("requested", "scheduled", "completed", "cancelled")


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    record_date = Column(Date, nullable=False)

    chief_complaint = Column(Text)
    history_present_illness = Column(Text)
    past_medical_history = Column(Text)
    medications = Column(Text)
    allergies = Column(Text)
    social_history = Column(Text)
    family_history = Column(Text)
    review_systems = Column(Text)
    physical_examination = Column(Text)
    assessment_plan = Column(Text)
    notes = Column(Text)
    status = Column(Enum(*RECORD_STATUSES, name="record_status_enum"), default="draft", nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    patient = relationship("Patient", back_populates="medical_records")
    doctor = relationship("Profile", lazy="joined")
    diagnoses = relationship(
        "MedicalDiagnosis",
        back_populates="medical_record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    exams = relationship(
        "MedicalExam",
        back_populates="medical_record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (Index("ix_medical_records_patient_date", "patient_id", "record_date"),)


class MedicalDiagnosis(Base):
    __tablename__ = "medical_diagnoses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    medical_record_id = Column(Uuid(as_uuid=True), ForeignKey("medical_records.id"), nullable=False)
    diagnosis_text = Column(Text, nullable=False)
    diagnosis_code = Column(String(32), nullable=True, comment="ICD-10 code")
    primary_diagnosis = Column(Boolean, default=False, nullable=False)

    medical_record = relationship("MedicalRecord", back_populates="diagnoses")


class MedicalExam(Base):
    __tablename__ = "medical_exams"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    medical_record_id = Column(Uuid(as_uuid=True), ForeignKey("medical_records.id"), nullable=False)
    exam_type = Column(String(255), nullable=False)
    exam_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(Enum(*EXAM_STATUSES, name="exam_status_enum"), default="requested", nullable=False)
    result = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    medical_record = relationship("MedicalRecord", back_populates="exams")
