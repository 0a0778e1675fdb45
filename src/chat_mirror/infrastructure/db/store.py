"""SQLite-backed local mirror of conversations, messages and settings."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from types import TracebackType
from typing import AsyncIterator, Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.application.exceptions import StorageError
from chat_mirror.application.ports.clock import Clock, SystemClock, to_iso
from chat_mirror.application.uow import UnitOfWork
from chat_mirror.config import MEMORY_DATABASE
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.entities.message import Message
from chat_mirror.infrastructure.db import models  # noqa: F401  (registers tables)
from chat_mirror.infrastructure.db.base import Base
from chat_mirror.infrastructure.db.session import build_engine, build_session_factory
from chat_mirror.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 50
MAX_RECENT_LIMIT = 200


class SqlAlchemyMessageStore:
    """Implements application.ports.store.MessageStore.

    Writes are serialized through one lock (single writer); reads open their
    own sessions and may run concurrently with a write, except on an
    in-memory database where everything goes through the one connection.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock | None = None,
        single_connection: bool = False,
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._write_lock = asyncio.Lock()
        self._closed = False
        # A shared in-memory connection cannot interleave sessions
        self._single_connection = single_connection

    @classmethod
    async def open(cls, database_path: str, *, clock: Clock | None = None) -> SqlAlchemyMessageStore:
        try:
            engine = build_engine(database_path)
        except OSError as exc:
            raise StorageError(f"Cannot prepare database at {database_path}: {exc}") from exc

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StorageError(f"Cannot initialise database at {database_path}: {exc}") from exc

        logger.info("Message store opened at %s", database_path)
        return cls(
            engine,
            build_session_factory(engine),
            clock=clock,
            single_connection=database_path == MEMORY_DATABASE,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()
        logger.info("Message store closed")

    # -- conversations -------------------------------------------------

    async def upsert_conversation(self, conversation: UpsertConversationDTO) -> None:
        async with self._writing() as uow:
            await uow.conversations_w.upsert(conversation, self._now())

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        async with self._reading() as uow:
            return await uow.conversations.get_by_id(conversation_id)

    async def list_conversations(self) -> list[Conversation]:
        async with self._reading() as uow:
            return await uow.conversations.list_recent_first()

    # -- messages ------------------------------------------------------

    async def add_message(self, message: Message) -> None:
        """Upsert by message_id and move the conversation's updated_at to the message time.

        The bump is unconditional: an older message arriving late moves
        updated_at backwards.
        """
        async with self._writing() as uow:
            await uow.messages_w.upsert(message, self._now())
            await uow.conversations_w.touch_updated_at(message.conversation_id, message.created_at)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        async with self._reading() as uow:
            return await uow.messages.list_messages(conversation_id)

    async def list_recent_messages(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[Message]:
        limit = max(1, min(limit, MAX_RECENT_LIMIT))
        async with self._reading() as uow:
            return await uow.messages.list_recent(limit)

    async def mark_message_withdrawn(self, message_id: str) -> None:
        async with self._writing() as uow:
            await uow.messages_w.mark_withdrawn(message_id, self._now())

    # -- settings ------------------------------------------------------

    async def get_setting(self, key: str) -> str | None:
        async with self._reading() as uow:
            setting = await uow.settings.get(key)
        return setting.value if setting else None

    async def set_setting(self, key: str, value: str) -> None:
        async with self._writing() as uow:
            await uow.settings_w.set(key, value, self._now())

    # -- internals -----------------------------------------------------

    def _now(self) -> str:
        return to_iso(self._clock.now())

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageError("Message store is closed")

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[UnitOfWork]:
        self._ensure_open()
        guard = self._write_lock if self._single_connection else nullcontext()
        async with guard:
            try:
                async with self._session_factory() as session:
                    yield SqlAlchemyUoW(session)
            except SQLAlchemyError as exc:
                raise StorageError(f"Local store read failed: {exc}") from exc

    @asynccontextmanager
    async def _writing(self) -> AsyncIterator[UnitOfWork]:
        self._ensure_open()
        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with SqlAlchemyUoW(session) as uow:
                        yield uow
                        await uow.commit()
            except SQLAlchemyError as exc:
                raise StorageError(f"Local store write failed: {exc}") from exc
