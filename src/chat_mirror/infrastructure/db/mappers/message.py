from __future__ import annotations

from typing import Any

from chat_mirror.domain.entities.message import Message
from chat_mirror.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        message_id=model.message_id,
        conversation_id=model.conversation_id,
        user_id=model.user_id,
        category=model.category,
        content=model.content,
        created_at=model.created_at,
        direction=model.direction,
        status=model.status,
    )


def entity_to_values(entity: Message, now: str) -> dict[str, Any]:
    return {
        "message_id": entity.message_id,
        "conversation_id": entity.conversation_id,
        "user_id": entity.user_id,
        "category": str(entity.category),
        "content": entity.content,
        "created_at": entity.created_at,
        "direction": str(entity.direction),
        "status": str(entity.status),
        "updated_at": now,
    }
