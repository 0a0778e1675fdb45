from __future__ import annotations

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from chat_mirror.domain.entities.setting import Setting
from chat_mirror.infrastructure.db.mappers import setting as mapper
from chat_mirror.infrastructure.db.models.setting import SettingModel


class SettingReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> Setting | None:
        result = await self._session.get(SettingModel, key)
        return mapper.model_to_entity(result) if result else None


class SettingWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set(self, key: str, value: str, now: str) -> None:
        stmt = sqlite_insert(SettingModel).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SettingModel.key],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
        await self._session.execute(stmt)
