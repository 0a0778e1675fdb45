"""Shared test fixtures."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio

from chat_mirror.application.dto.conversation import UpsertConversationDTO
from chat_mirror.application.dto.events import InboundEvent
from chat_mirror.application.dto.message import AcknowledgementRequest, MessageRequest
from chat_mirror.application.ports.network import StreamAlreadyRunningError
from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import (
    ConversationCategory,
    MessageCategory,
    MessageDirection,
    MessageStatus,
)
from chat_mirror.infrastructure.db.store import SqlAlchemyMessageStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
FIXED_NOW_ISO = "2024-01-01T12:00:00.000Z"


@dataclass
class FixedClock:
    current: datetime = FIXED_NOW

    def now(self) -> datetime:
        return self.current


def make_message(
    *,
    message_id: str = "msg-1",
    conversation_id: str = "conv-1",
    user_id: str = "user-a",
    content: str = "hello",
    created_at: str = "2024-01-01T10:00:00.000Z",
    direction: str = MessageDirection.INCOMING,
    status: str = MessageStatus.RECEIVED,
    category: str = MessageCategory.PLAIN_TEXT,
) -> Message:
    return Message(
        message_id=message_id,
        conversation_id=conversation_id,
        user_id=user_id,
        category=category,
        content=content,
        created_at=created_at,
        direction=direction,
        status=status,
    )


def make_conversation_dto(
    *,
    conversation_id: str = "conv-1",
    name: str = "Team",
    category: str = ConversationCategory.GROUP,
    participants: list[str] | None = None,
    created_at: str | None = "2024-01-01T09:00:00.000Z",
    updated_at: str | None = None,
) -> UpsertConversationDTO:
    return UpsertConversationDTO(
        conversation_id=conversation_id,
        name=name,
        category=category,
        participants=participants if participants is not None else ["user-a", "user-b"],
        created_at=created_at,
        updated_at=updated_at,
    )


def make_event(
    *,
    conversation_id: str | None = "conv-1",
    message_id: str | None = "msg-1",
    user_id: str | None = "user-a",
    category: str | None = MessageCategory.PLAIN_TEXT,
    data: Any = "hello",
    created_at: str | None = "2024-01-01T10:00:00.000Z",
) -> dict[str, Any]:
    return {
        "conversation_id": conversation_id,
        "message_id": message_id,
        "user_id": user_id,
        "category": category,
        "data": data,
        "created_at": created_at,
    }


@dataclass
class FakeNetworkClient:
    """Records every call; ``fail_*`` fields make the matching call raise."""

    conversations: dict[str, Any] = field(default_factory=dict)
    group_response: dict[str, Any] | None = None
    sent: list[MessageRequest] = field(default_factory=list)
    direct: list[tuple[str, str]] = field(default_factory=list)
    acks: list[AcknowledgementRequest] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)
    groups: list[tuple[str, str, list[dict[str, str]]]] = field(default_factory=list)
    fail_send: Exception | None = None
    fail_ack: Exception | None = None
    fail_fetch: Exception | None = None
    fail_start: Exception | None = None
    already_running: bool = False
    callbacks: Any = None
    start_calls: int = 0
    stop_calls: int = 0

    async def start_stream(self, callbacks: Any) -> None:
        self.start_calls += 1
        if self.fail_start is not None:
            raise self.fail_start
        if self.already_running:
            self.already_running = False
            raise StreamAlreadyRunningError("Blaze is already running")
        self.callbacks = callbacks

    async def stop_stream(self) -> None:
        self.stop_calls += 1
        self.callbacks = None

    async def push_message(self, raw: Any) -> None:
        assert self.callbacks is not None, "stream not started"
        await self.callbacks.on_message(raw)

    async def push_conversation(self, raw: Any) -> None:
        assert self.callbacks is not None, "stream not started"
        await self.callbacks.on_conversation(raw)

    async def send_one(self, message: MessageRequest) -> Any:
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.append(message)
        return {"message_id": message.message_id}

    async def send_text(self, user_id: str, text: str) -> Any:
        if self.fail_send is not None:
            raise self.fail_send
        self.direct.append((user_id, text))
        return None

    async def send_acknowledgement(self, ack: AcknowledgementRequest) -> None:
        if self.fail_ack is not None:
            raise self.fail_ack
        self.acks.append(ack)

    async def fetch_conversation(self, conversation_id: str) -> Any:
        self.fetched.append(conversation_id)
        if self.fail_fetch is not None:
            raise self.fail_fetch
        return self.conversations.get(conversation_id, {})

    async def create_group(
        self, conversation_id: str, name: str, participants: list[dict[str, str]],
    ) -> Any:
        if self.fail_send is not None:
            raise self.fail_send
        self.groups.append((conversation_id, name, participants))
        if self.group_response is not None:
            return self.group_response
        return {
            "conversation_id": conversation_id,
            "name": name,
            "category": "GROUP",
            "participant_sessions": participants,
        }


@dataclass
class RecordingHandler:
    """StreamHandler that records what it was given."""

    name: str = "handler"
    messages: list[InboundEvent] = field(default_factory=list)
    conversations: list[InboundEvent] = field(default_factory=list)
    consume: bool = True
    fail: Exception | None = None

    async def on_message(self, event: InboundEvent) -> bool:
        if self.fail is not None:
            raise self.fail
        self.messages.append(event)
        return self.consume

    async def on_conversation(self, event: InboundEvent) -> bool:
        self.conversations.append(event)
        return self.consume


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def client() -> FakeNetworkClient:
    return FakeNetworkClient()


@pytest_asyncio.fixture
async def store(tmp_path, clock):
    store = await SqlAlchemyMessageStore.open(str(tmp_path / "messages.sqlite"), clock=clock)
    try:
        yield store
    finally:
        await store.close()
