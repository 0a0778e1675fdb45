from __future__ import annotations

from typing import Protocol

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: str) -> Conversation | None: ...

    async def list_recent_first(self) -> list[Conversation]: ...


class ConversationWriter(Protocol):
    async def upsert(self, conversation: UpsertConversationDTO, now: str) -> None: ...

    async def touch_updated_at(self, conversation_id: str, ts: str) -> None: ...
