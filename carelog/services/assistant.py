"""
LLM-backed virtual assistant.

Per-profile chat settings (model, sampling parameters, system prompt and an
optional personal API key stored encrypted) and a conversation service that
keeps each session's history in the database and sends the trimmed history
to the chat-completions API.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any
from uuid import UUID

from openai import OpenAI
from sqlalchemy.orm import Session

from carelog.config import settings
from carelog.models.access import AssistantMessage, ChatSettings
from carelog.services.encryption import encryption
from carelog.services.errors import ChatSettingsError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are the virtual assistant of Carelog, a hospital care-management system.

You have access to the following data:
- Patients: personal details, beds, clinical notes
- Care events: medications, meals, hydration, bathroom visits, drains, vital signs, observations
- Staff profiles: healthcare professionals and their roles

Your responsibilities:
1. Help users find information about patients
2. Report on care events
3. Answer questions about patients' medical history
4. Help analyse care patterns
5. Suggest care improvements based on the data

Always be accurate and professional, and keep medical information confidential."""

FALLBACK_REPLY = "Sorry, I could not process your request. Please try again."
EMPTY_REPLY = "Sorry, I could not produce an answer to that."

SUMMARY_PROMPTS = {
    "patient": "Write a detailed summary of this patient based on the data provided:",
    "events": "Analyse and summarise the care events provided, pointing out important patterns:",
    "general": "Give a general summary of the care system data:",
}


# ---------------------------------------------------------------------------
# Chat settings
# ---------------------------------------------------------------------------


@dataclass
class ChatConfig:
    api_key: str
    model: str
    temperature: float
    max_tokens: int
    presence_penalty: float
    frequency_penalty: float
    system_prompt: str


def default_chat_config() -> ChatConfig:
    return ChatConfig(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        temperature=0.7,
        max_tokens=1000,
        presence_penalty=0.1,
        frequency_penalty=0.1,
        system_prompt=DEFAULT_SYSTEM_PROMPT,
    )


def validate_chat_config(config: ChatConfig) -> list[str]:
    errors = []
    if not config.api_key.strip():
        errors.append("API key is required")
    if not config.model.strip():
        errors.append("Model is required")
    if not 0 <= config.temperature <= 2:
        errors.append("Temperature must be between 0 and 2")
    if not 1 <= config.max_tokens <= 4000:
        errors.append("Max tokens must be between 1 and 4000")
    if not -2 <= config.presence_penalty <= 2:
        errors.append("Presence penalty must be between -2 and 2")
    if not -2 <= config.frequency_penalty <= 2:
        errors.append("Frequency penalty must be between -2 and 2")
    if not config.system_prompt.strip():
        errors.append("System prompt is required")
    return errors


def _settings_row(db: Session, profile_id: UUID) -> ChatSettings | None:
    return db.query(ChatSettings).filter(ChatSettings.profile_id == profile_id).first()


def load_chat_config(db: Session, profile_id: UUID) -> ChatConfig:
    """The profile's saved settings, or the defaults when it has none."""
    row = _settings_row(db, profile_id)
    if row is None:
        return default_chat_config()
    return ChatConfig(
        api_key=encryption.decrypt(row.encrypted_api_key or "") or settings.OPENAI_API_KEY,
        model=row.model,
        temperature=row.temperature,
        max_tokens=row.max_tokens,
        presence_penalty=row.presence_penalty,
        frequency_penalty=row.frequency_penalty,
        system_prompt=row.system_prompt,
    )


def stored_api_key(db: Session, profile_id: UUID) -> str:
    """The profile's own key; empty when it relies on the deployment key."""
    row = _settings_row(db, profile_id)
    return encryption.decrypt(row.encrypted_api_key or "") if row else ""


def save_chat_config(db: Session, profile_id: UUID, config: ChatConfig) -> ChatSettings:
    """
    Only a key the profile entered is stored; without one the deployment key
    keeps being used and must exist for the settings to validate.
    """
    effective = config if config.api_key else replace(config, api_key=settings.OPENAI_API_KEY)
    errors = validate_chat_config(effective)
    if errors:
        raise ChatSettingsError(errors)

    row = _settings_row(db, profile_id) or ChatSettings(profile_id=profile_id)
    values = asdict(config)
    row.encrypted_api_key = encryption.encrypt(values.pop("api_key"))
    for name, value in values.items():
        setattr(row, name, value)
    db.add(row)
    db.flush()
    logger.info("Chat settings saved for profile %s", profile_id)
    return row


def reset_chat_config(db: Session, profile_id: UUID) -> ChatConfig:
    row = _settings_row(db, profile_id)
    if row is not None:
        db.delete(row)
        db.flush()
    return default_chat_config()


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


@dataclass
class AssistantReply:
    message: str
    error: str | None = None


class AssistantService:
    """One conversation (profile + session) with the chat-completions API."""

    def __init__(
        self,
        db: Session,
        *,
        profile_id: UUID,
        session_id: str,
        config: ChatConfig,
        client: Any = None,
        history_limit: int | None = None,
    ):
        self.db = db
        self.profile_id = profile_id
        self.session_id = session_id
        self.config = config
        self.history_limit = history_limit or settings.ASSISTANT_HISTORY_LIMIT
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.config.api_key)
        return self._client

    def _stored(self):
        return self.db.query(AssistantMessage).filter(
            AssistantMessage.profile_id == self.profile_id,
            AssistantMessage.session_id == self.session_id,
        )

    def _store(self, role: str, content: str) -> None:
        self.db.add(
            AssistantMessage(
                profile_id=self.profile_id,
                session_id=self.session_id,
                role=role,
                content=content,
            )
        )
        self.db.flush()

    def _trim(self) -> None:
        """Keep the newest ``history_limit - 1`` turns; the system prompt is not stored."""
        keep = max(self.history_limit - 1, 1)
        stale = self._stored().order_by(AssistantMessage.id.desc()).offset(keep).all()
        for message in stale:
            self.db.delete(message)
        if stale:
            self.db.flush()

    def get_history(self) -> list[dict[str, str]]:
        turns = self._stored().order_by(AssistantMessage.id.asc()).all()
        return [{"role": "system", "content": self.config.system_prompt}] + [
            {"role": m.role, "content": m.content} for m in turns
        ]

    def clear_history(self) -> None:
        self._stored().delete(synchronize_session=False)
        self.db.flush()

    def send_message(self, message: str, context: dict[str, Any] | str | None = None) -> AssistantReply:
        content = message
        if context:
            block = context if isinstance(context, str) else json.dumps(context, indent=2, default=str)
            content = f"{message}\n\nContext data:\n{block}"

        self._store("user", content)
        self._trim()

        if not self.config.api_key:
            return AssistantReply(message=FALLBACK_REPLY, error="Assistant API key is not configured")

        try:
            completion = self.client.chat.completions.create(
                model=self.config.model,
                messages=self.get_history(),
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                presence_penalty=self.config.presence_penalty,
                frequency_penalty=self.config.frequency_penalty,
            )
        except Exception as exc:
            logger.error("Chat completion failed for session %s: %s", self.session_id, exc)
            return AssistantReply(message=FALLBACK_REPLY, error=str(exc))

        choices = getattr(completion, "choices", None) or []
        reply = (choices[0].message.content or "").strip() if choices else ""
        reply = reply or EMPTY_REPLY
        self._store("assistant", reply)
        self._trim()
        return AssistantReply(message=reply)

    def generate_summary(self, data: dict[str, Any] | str, kind: str = "general") -> AssistantReply:
        if kind not in SUMMARY_PROMPTS:
            raise ValueError(f"Unknown summary kind '{kind}'")
        return self.send_message(SUMMARY_PROMPTS[kind], data)

    def analyze_patterns(self, data: dict[str, Any] | str, focus: str | None = None) -> AssistantReply:
        prompt = (
            f"Analyse the patterns in the data with a focus on: {focus}"
            if focus
            else "Analyse the patterns and trends in the data provided"
        )
        return self.send_message(prompt, data)
