from __future__ import annotations

import logging
import uuid
from typing import Any

from chat_mirror.application.dto.conversation import CreateGroupDTO, UpsertConversationDTO
from chat_mirror.application.dto.events import InboundEvent, RemoteConversation
from chat_mirror.application.exceptions import ValidationError
from chat_mirror.application.ports.clock import Clock, now_iso
from chat_mirror.application.ports.network import NetworkClient
from chat_mirror.application.ports.store import MessageStore
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.value_objects.enums import ConversationCategory
from chat_mirror.services.payload_decoder import decode_json_object, extract_participants

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "Group"


def _text_field(payload: dict[str, Any] | None, key: str) -> str | None:
    if not payload:
        return None
    value = payload.get(key)
    return value if isinstance(value, str) and value else None


def normalize_participant_ids(participant_ids: list[str]) -> list[str]:
    """Trim, drop blanks and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in participant_ids:
        value = raw.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


async def sync_conversation(
    event: InboundEvent,
    store: MessageStore,
    client: NetworkClient,
    *,
    clock: Clock | None = None,
) -> Conversation | None:
    """Reconcile local conversation metadata from a SYSTEM_CONVERSATION event.

    Each field falls back from the payload to the existing local record, then
    to the event envelope, then to a default. When the payload does not name
    the conversation the remote metadata is fetched; a failed fetch is logged
    and the already computed values are used. A known participant list is
    never replaced by an empty one.
    """
    conversation_id = (event.conversation_id or "").strip()
    if not conversation_id:
        return None

    payload = decode_json_object(event.data)
    existing = await store.get_conversation(conversation_id)

    participants = extract_participants(payload)
    name = _text_field(payload, "name") or (existing.name if existing else None) or DEFAULT_GROUP_NAME
    category = (
        _text_field(payload, "category")
        or (existing.category if existing else None)
        or ConversationCategory.GROUP.value
    )
    created_at = (
        _text_field(payload, "created_at")
        or (existing.created_at if existing else None)
        or event.created_at
        or now_iso(clock)
    )

    if not _text_field(payload, "name"):
        try:
            remote = RemoteConversation.model_validate(
                await client.fetch_conversation(conversation_id)
            )
        except Exception:
            logger.warning(
                "Conversation %s metadata fetch failed, keeping local values",
                conversation_id,
                exc_info=True,
            )
        else:
            name = remote.name or name
            category = remote.category or category
            created_at = remote.created_at or created_at
            if remote.participant_ids is not None:
                participants = remote.participant_ids

    if not participants and existing and existing.participants:
        participants = list(existing.participants)

    await store.upsert_conversation(
        UpsertConversationDTO(
            conversation_id=conversation_id,
            name=name,
            category=category,
            participants=participants,
            created_at=created_at,
            updated_at=event.created_at or created_at,
        )
    )
    logger.debug("Synced conversation %s (%d participants)", conversation_id, len(participants))
    return await store.get_conversation(conversation_id)


async def create_group_conversation(
    dto: CreateGroupDTO,
    store: MessageStore,
    client: NetworkClient,
    *,
    clock: Clock | None = None,
) -> Conversation:
    """Create a group remotely, then mirror the remote answer locally."""
    name = dto.name.strip()
    if not name:
        raise ValidationError("Group name is required.")
    participants = normalize_participant_ids(dto.participant_ids)
    if not participants:
        raise ValidationError("At least one participant is required.")

    conversation_id = str(uuid.uuid4())
    response = RemoteConversation.model_validate(
        await client.create_group(
            conversation_id,
            name,
            [{"user_id": user_id} for user_id in participants],
        )
    )

    created_at = response.created_at or now_iso(clock)
    stored_id = response.conversation_id or conversation_id
    await store.upsert_conversation(
        UpsertConversationDTO(
            conversation_id=stored_id,
            name=response.name or name,
            category=response.category or ConversationCategory.GROUP.value,
            participants=response.participant_ids if response.participant_ids is not None else participants,
            created_at=created_at,
            updated_at=created_at,
        )
    )
    logger.info("Created group conversation %s with %d participants", stored_id, len(participants))

    conversation = await store.get_conversation(stored_id)
    assert conversation is not None
    return conversation

