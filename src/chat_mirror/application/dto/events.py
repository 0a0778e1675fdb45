"""Shapes consumed from the network client: push events and conversation metadata."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class InboundEvent(BaseModel):
    """One push-stream event (message or conversation notification)."""

    conversation_id: str | None = None
    message_id: str | None = None
    user_id: str | None = None
    category: str | None = None
    data: Any = None
    created_at: str | None = None

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    @field_validator("conversation_id", "message_id", "user_id", "category", "created_at", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class RemoteParticipant(BaseModel):
    user_id: str | None = None
    session_id: str | None = None

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    @field_validator("user_id", "session_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class RemoteConversation(BaseModel):
    """Conversation metadata returned by ``fetch_conversation`` / ``create_group``."""

    conversation_id: str | None = None
    name: str | None = None
    category: str | None = None
    created_at: str | None = None
    participant_sessions: list[RemoteParticipant] | None = None

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    @property
    def participant_ids(self) -> list[str] | None:
        if self.participant_sessions is None:
            return None
        ids = (p.user_id.strip() for p in self.participant_sessions if p.user_id)
        return [user_id for user_id in ids if user_id]
