from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import MessageStatus
from chat_mirror.infrastructure.db.mappers import message as mapper
from chat_mirror.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(self, conversation_id: str) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.message_id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_recent(self, limit: int) -> list[Message]:
        stmt = (
            select(MessageModel)
            .order_by(MessageModel.created_at.desc(), MessageModel.message_id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, message: Message, now: str) -> None:
        """Insert idempotently; redelivery only refreshes content and status."""
        stmt = sqlite_insert(MessageModel).values(**mapper.entity_to_values(message, now))
        stmt = stmt.on_conflict_do_update(
            index_elements=[MessageModel.message_id],
            set_={
                "content": stmt.excluded.content,
                "status": stmt.excluded.status,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def mark_withdrawn(self, message_id: str, now: str) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.message_id == message_id)
            .values(status=MessageStatus.WITHDRAWN.value, updated_at=now)
        )
        await self._session.execute(stmt)
