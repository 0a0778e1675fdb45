from __future__ import annotations

from typing import Protocol

from chat_mirror.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, conversation_id: str) -> list[Message]: ...

    async def list_recent(self, limit: int) -> list[Message]: ...


class MessageWriter(Protocol):
    async def upsert(self, message: Message, now: str) -> None:
        """Insert or, on a known message_id, update content and status only."""
        ...

    async def mark_withdrawn(self, message_id: str, now: str) -> None: ...
