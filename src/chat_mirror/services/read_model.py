"""Queries the UI layer runs against the local mirror."""
from __future__ import annotations

from chat_mirror.application.ports.store import MessageStore
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import MessageStatus

WITHDRAWN_PLACEHOLDER = "[withdrawn]"


def display_content(message: Message) -> str:
    """Stored content, or the tombstone once the message has been withdrawn."""
    if message.status == MessageStatus.WITHDRAWN:
        return WITHDRAWN_PLACEHOLDER
    return message.content


async def list_local_conversations(store: MessageStore) -> list[Conversation]:
    return await store.list_conversations()


async def get_local_conversation(store: MessageStore, conversation_id: str) -> Conversation | None:
    return await store.get_conversation(conversation_id.strip())


async def list_local_messages(store: MessageStore, conversation_id: str) -> list[Message]:
    return await store.list_messages(conversation_id.strip())


async def list_recent_messages(store: MessageStore, limit: int | None = None) -> list[Message]:
    if limit is None:
        return await store.list_recent_messages()
    return await store.list_recent_messages(limit)


async def get_setting(store: MessageStore, key: str) -> str | None:
    return await store.get_setting(key)


async def set_setting(store: MessageStore, key: str, value: str) -> None:
    await store.set_setting(key, value)
