from __future__ import annotations

from typing import Protocol

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.entities.message import Message


class MessageStore(Protocol):
    """Local mirror of conversations, messages and settings."""

    async def upsert_conversation(self, conversation: UpsertConversationDTO) -> None: ...

    async def get_conversation(self, conversation_id: str) -> Conversation | None: ...

    async def list_conversations(self) -> list[Conversation]: ...

    async def add_message(self, message: Message) -> None: ...

    async def list_messages(self, conversation_id: str) -> list[Message]: ...

    async def list_recent_messages(self, limit: int = 50) -> list[Message]: ...

    async def mark_message_withdrawn(self, message_id: str) -> None: ...

    async def get_setting(self, key: str) -> str | None: ...

    async def set_setting(self, key: str, value: str) -> None: ...

    async def close(self) -> None: ...
