from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.infrastructure.db.mappers import conversation as mapper
from chat_mirror.infrastructure.db.models.conversation import ConversationModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def list_recent_first(self) -> list[Conversation]:
        stmt = select(ConversationModel).order_by(
            ConversationModel.updated_at.desc(),
            ConversationModel.conversation_id,
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, conversation: UpsertConversationDTO, now: str) -> None:
        """Insert or overwrite; created_at of an existing row is kept."""
        values = mapper.dto_to_values(conversation, now)
        stmt = sqlite_insert(ConversationModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ConversationModel.conversation_id],
            set_={
                "name": stmt.excluded.name,
                "category": stmt.excluded.category,
                "participants": stmt.excluded.participants,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def touch_updated_at(self, conversation_id: str, ts: str) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.conversation_id == conversation_id)
            .values(updated_at=ts)
        )
        await self._session.execute(stmt)
