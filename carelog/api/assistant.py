"""Virtual assistant routes: chat, canned analyses and per-profile settings."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from carelog.api.deps import get_current_profile
from carelog.models.database import get_db
from carelog.models.patient import CARE_EVENT_TYPES, Profile
from carelog.schemas.api import (
    AssistantSearchResponse,
    CareEventResponse,
    ChatMessageOut,
    ChatReply,
    ChatRequest,
    ChatSettingsIn,
    ChatSettingsResponse,
    PatientResponse,
    PatternsRequest,
    SummaryRequest,
)
from carelog.services.assistant import (
    AssistantService,
    ChatConfig,
    load_chat_config,
    reset_chat_config,
    save_chat_config,
    stored_api_key,
)
from carelog.services.assistant_data import AssistantDataService, format_for_assistant, patient_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["assistant"])


def get_chat_client() -> Any:
    """Chat-completions client; None lets the service build one from the profile's key."""
    return None


def _settings_response(config: ChatConfig) -> ChatSettingsResponse:
    return ChatSettingsResponse(
        has_api_key=bool(config.api_key),
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        presence_penalty=config.presence_penalty,
        frequency_penalty=config.frequency_penalty,
        system_prompt=config.system_prompt,
    )


def _service(db: Session, profile: Profile, session_id: str, client: Any) -> AssistantService:
    return AssistantService(
        db,
        profile_id=profile.id,
        session_id=session_id,
        config=load_chat_config(db, profile.id),
        client=client,
    )


def _context(db: Session, patient_id: UUID | None, include_all: bool) -> dict | str | None:
    data = AssistantDataService(db)
    if patient_id:
        patient_data = data.get_patient_data(patient_id)
        if patient_data["patient"] is None:
            raise HTTPException(status_code=404, detail="Patient not found")
        return patient_context(patient_data)
    if include_all:
        return format_for_assistant(data.get_all_data())
    return None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@router.get("/settings", response_model=ChatSettingsResponse)
def get_settings(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    return _settings_response(load_chat_config(db, profile.id))


@router.put("/settings", response_model=ChatSettingsResponse)
def update_settings(
    payload: ChatSettingsIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    values = payload.model_dump()
    if values["api_key"] is None:
        values["api_key"] = stored_api_key(db, profile.id)
    save_chat_config(db, profile.id, ChatConfig(**values))
    db.commit()
    return _settings_response(load_chat_config(db, profile.id))


@router.delete("/settings", response_model=ChatSettingsResponse)
def reset_settings(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    config = reset_chat_config(db, profile.id)
    db.commit()
    return _settings_response(config)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

@router.post("/chat", response_model=ChatReply)
def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    client: Any = Depends(get_chat_client),
):
    context = _context(db, payload.patient_id, payload.include_context)
    reply = _service(db, profile, payload.session_id, client).send_message(payload.message, context)
    db.commit()
    return ChatReply(session_id=payload.session_id, message=reply.message, error=reply.error)


@router.post("/summary", response_model=ChatReply)
def summary(
    payload: SummaryRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    client: Any = Depends(get_chat_client),
):
    if payload.kind == "patient" and payload.patient_id is None:
        raise HTTPException(status_code=422, detail="patient_id is required for a patient summary")
    context = _context(db, payload.patient_id, include_all=True)
    reply = _service(db, profile, payload.session_id, client).generate_summary(context, payload.kind)
    db.commit()
    return ChatReply(session_id=payload.session_id, message=reply.message, error=reply.error)


@router.post("/patterns", response_model=ChatReply)
def patterns(
    payload: PatternsRequest,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    client: Any = Depends(get_chat_client),
):
    context = _context(db, payload.patient_id, include_all=True)
    reply = _service(db, profile, payload.session_id, client).analyze_patterns(context, payload.focus)
    db.commit()
    return ChatReply(session_id=payload.session_id, message=reply.message, error=reply.error)


@router.get("/sessions/{session_id}/history", response_model=list[ChatMessageOut])
def history(session_id: str, db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    return _service(db, profile, session_id, client=None).get_history()


@router.delete("/sessions/{session_id}", status_code=204)
def clear_history(session_id: str, db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    _service(db, profile, session_id, client=None).clear_history()
    db.commit()


@router.get("/search", response_model=AssistantSearchResponse)
def search(
    q: str = Query(..., min_length=2),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    return AssistantDataService(db).search(q)


# ---------------------------------------------------------------------------
# Data the assistant reads
# ---------------------------------------------------------------------------

@router.get("/data/events", response_model=list[CareEventResponse])
def events_by_type(
    event_type: str = Query(..., alias="type"),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    if event_type not in CARE_EVENT_TYPES:
        raise HTTPException(status_code=422, detail=f"Unknown event type '{event_type}'")
    return AssistantDataService(db).get_events_by_type(event_type)


@router.get("/data/recent", response_model=list[CareEventResponse])
def recent_events(
    hours: int = Query(24, ge=1, le=24 * 30),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    return AssistantDataService(db).get_recent_events(hours)


@router.get("/data/active-patients", response_model=list[PatientResponse])
def active_patients(db: Session = Depends(get_db), _: Profile = Depends(get_current_profile)):
    return AssistantDataService(db).get_active_patients()
