"""Family portal tokens and per-profile assistant state."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
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
from sqlalchemy.orm import relationship

from carelog.models.database import Base, utcnow

FAMILY_ROLES = ("viewer", "editor")


class FamilyAccessToken(Base):
    __tablename__ = "family_access_tokens"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid(as_uuid=True), ForeignKey("patients.id"), nullable=False)
    token_hash = Column(String(64), unique=True, nullable=False, comment="SHA-256 of the shared token")
    family_member_name = Column(String(255), nullable=False)
    role = Column(Enum(*FAMILY_ROLES, name="family_role_enum"), nullable=False, default="viewer")
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    patient = relationship("Patient", back_populates="family_tokens")

    __table_args__ = (Index("ix_family_tokens_patient", "patient_id"),)


class ChatSettings(Base):
    __tablename__ = "chat_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    profile_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), unique=True, nullable=False)
    encrypted_api_key = Column(Text, nullable=True, comment="Fernet-encrypted API key")
    model = Column(String(64), nullable=False)
    temperature = Column(Float, nullable=False)
    max_tokens = Column(Integer, nullable=False)
    presence_penalty = Column(Float, nullable=False)
    frequency_penalty = Column(Float, nullable=False)
    system_prompt = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class AssistantMessage(Base):
    __tablename__ = "assistant_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(64), nullable=False)
    profile_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    role = Column(Enum("user", "assistant", name="assistant_role_enum"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (Index("ix_assistant_messages_session", "profile_id", "session_id", "id"),)
