from __future__ import annotations

from typing import Protocol

from chat_mirror.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from chat_mirror.application.repositories.message import MessageReader, MessageWriter
from chat_mirror.application.repositories.setting import SettingReader, SettingWriter


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    settings: SettingReader
    settings_w: SettingWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
