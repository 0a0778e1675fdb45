from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class UpsertConversationDTO:
    conversation_id: str
    name: str
    category: str
    participants: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class CreateGroupDTO:
    name: str
    participant_ids: list[str] = field(default_factory=list)
