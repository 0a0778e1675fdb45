from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from chat_mirror.application.dto.conversation import CreateGroupDTO
from chat_mirror.application.dto.message import MessageRequest
from chat_mirror.application.ports.clock import Clock
from chat_mirror.application.ports.network import NetworkClient
from chat_mirror.application.ports.store import MessageStore
from chat_mirror.config import Settings, settings as default_settings
from chat_mirror.domain.entities.conversation import Conversation
from chat_mirror.domain.entities.message import Message
from chat_mirror.infrastructure.db.store import SqlAlchemyMessageStore
from chat_mirror.infrastructure.stream.supervisor import StreamSupervisor
from chat_mirror.services import (
    conversation_service,
    message_service,
    read_model,
    settings_service,
)
from chat_mirror.services.stream_service import StreamListeners, StreamReconciler

logger = logging.getLogger(__name__)


class ChatMirrorApp:
    """Wires the local mirror, the network client and the one stream supervisor."""

    def __init__(
        self,
        store: MessageStore,
        client: NetworkClient,
        *,
        config: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or default_settings
        self.store = store
        self.client = client
        self.clock = clock
        self._listeners: StreamListeners | None = None
        self.supervisor = StreamSupervisor(
            client,
            ack_status=self.config.ACK_STATUS,
            stop_grace_seconds=self.config.STREAM_STOP_GRACE_SECONDS,
        )

    # -- stream lifecycle ------------------------------------------------

    async def start_conversation_stream(
        self,
        conversation_id: str | None = None,
        listeners: StreamListeners | None = None,
    ) -> StreamReconciler:
        """(Re)start the stream; an active run is replaced by this one.

        Without explicit ``listeners`` the ones given to the background stream are used.
        """
        reconciler = StreamReconciler(
            self.store,
            self.client,
            conversation_id=conversation_id,
            listeners=listeners or self._listeners,
            clock=self.clock,
        )
        await self.supervisor.start(reconciler)
        return reconciler

    async def start_background_stream(self, listeners: StreamListeners | None = None) -> bool:
        if listeners is not None:
            self._listeners = listeners
        if not await settings_service.is_background_streaming_enabled(self.store):
            logger.info("Background streaming disabled, stream not started")
            return False
        await self.start_conversation_stream(listeners=listeners)
        return True

    async def set_background_streaming(self, enabled: bool) -> None:
        await settings_service.set_background_streaming_enabled(self.store, enabled)
        if enabled:
            if self.supervisor.is_running:
                return
            await self.start_conversation_stream()
        else:
            await self.supervisor.stop()

    async def stop_stream(self) -> None:
        await self.supervisor.stop()

    # -- outbound --------------------------------------------------------

    async def send_conversation_text(self, conversation_id: str, text: str) -> Message:
        return await message_service.send_conversation_text(
            conversation_id, text, self.store, self.client,
            app_id=self.config.APP_ID, clock=self.clock,
        )

    async def withdraw_message(self, conversation_id: str, message_id: str) -> MessageRequest:
        return await message_service.withdraw_message(
            conversation_id, message_id, self.store, self.client,
        )

    async def send_text(self, user_id: str, text: str) -> None:
        await message_service.send_text(user_id, text, self.client)

    async def create_group_conversation(self, name: str, participant_ids: list[str]) -> Conversation:
        return await conversation_service.create_group_conversation(
            CreateGroupDTO(name=name, participant_ids=participant_ids),
            self.store, self.client, clock=self.clock,
        )

    # -- read model --------------------------------------------------------

    async def list_conversations(self) -> list[Conversation]:
        return await read_model.list_local_conversations(self.store)

    async def list_messages(self, conversation_id: str) -> list[Message]:
        return await read_model.list_local_messages(self.store, conversation_id)

    async def list_recent_messages(self, limit: int | None = None) -> list[Message]:
        return await read_model.list_recent_messages(self.store, limit)

    async def is_background_streaming_enabled(self) -> bool:
        return await settings_service.is_background_streaming_enabled(self.store)


@asynccontextmanager
async def lifespan(
    client: NetworkClient,
    *,
    database_path: str | None = None,
    config: Settings | None = None,
    listeners: StreamListeners | None = None,
) -> AsyncIterator[ChatMirrorApp]:
    """Startup / shutdown lifecycle: the stream is stopped and the store closed on every exit."""
    config = config or default_settings
    store = await SqlAlchemyMessageStore.open(database_path or config.DATABASE_PATH)
    try:
        app = ChatMirrorApp(store, client, config=config)
        try:
            await app.start_background_stream(listeners)
            yield app
        finally:
            await app.supervisor.stop()
    finally:
        await store.close()
