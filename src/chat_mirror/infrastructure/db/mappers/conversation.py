from __future__ import annotations

import json
from typing import Any

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.infrastructure.db.models.conversation import ConversationModel


def dump_participants(participants: list[str]) -> str:
    return json.dumps([str(p) for p in participants])


def load_participants(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(entry) for entry in parsed]


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        conversation_id=model.conversation_id,
        name=model.name,
        category=model.category,
        participants=load_participants(model.participants),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def dto_to_values(dto: UpsertConversationDTO, now: str) -> dict[str, Any]:
    created_at = dto.created_at or now
    return {
        "conversation_id": dto.conversation_id,
        "name": dto.name,
        "category": str(dto.category),
        "participants": dump_participants(dto.participants),
        "created_at": created_at,
        "updated_at": dto.updated_at or created_at,
    }
