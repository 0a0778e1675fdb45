"""Reconciliation of push-stream events into the local mirror."""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from chat_mirror.application.dto.events import InboundEvent
from chat_mirror.application.ports.clock import Clock, now_iso
from chat_mirror.application.ports.network import NetworkClient
from chat_mirror.application.ports.store import MessageStore
from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import (
    MessageCategory,
    MessageDirection,
    MessageStatus,
)
from chat_mirror.services import conversation_service
from chat_mirror.services.payload_decoder import decode_content, decode_recall_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StreamListeners:
    """Optional UI callbacks; each may be a plain function or a coroutine function."""

    on_message: Callable[[Message], Any] | None = None
    on_recall: Callable[[str], Any] | None = None
    on_conversation: Callable[[str], Any] | None = None


async def _notify(callback: Callable[[Any], Any] | None, value: Any) -> None:
    if callback is None:
        return
    try:
        result = callback(value)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Stream listener failed")


class StreamReconciler:
    """Implements application.ports.network.StreamHandler on top of the store.

    With ``conversation_id`` set, messages of other conversations are left
    unconsumed (and therefore unacknowledged).
    """

    def __init__(
        self,
        store: MessageStore,
        client: NetworkClient,
        *,
        conversation_id: str | None = None,
        listeners: StreamListeners | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._conversation_id = (conversation_id or "").strip() or None
        self._listeners = listeners or StreamListeners()
        self._clock = clock

    async def on_conversation(self, event: InboundEvent) -> bool:
        conversation = await conversation_service.sync_conversation(
            event, self._store, self._client, clock=self._clock,
        )
        if conversation is not None:
            await _notify(self._listeners.on_conversation, conversation.conversation_id)
        return True

    async def on_message(self, event: InboundEvent) -> bool:
        conversation_id = event.conversation_id
        if not conversation_id:
            return False
        if self._conversation_id and conversation_id != self._conversation_id:
            return False

        if event.category == MessageCategory.MESSAGE_RECALL:
            target = decode_recall_target(event.data)
            if target is None:
                logger.debug("Recall %s carries no target, ignoring", event.message_id)
                return True
            await self._store.mark_message_withdrawn(target)
            await _notify(self._listeners.on_recall, target)
            return True

        if not event.message_id:
            logger.warning("Dropping message without id in conversation %s", conversation_id)
            return False

        message = Message(
            message_id=event.message_id,
            conversation_id=conversation_id,
            user_id=event.user_id or "",
            category=event.category or "",
            content=decode_content(event.category, event.data),
            created_at=event.created_at or now_iso(self._clock),
            direction=MessageDirection.INCOMING.value,
            status=MessageStatus.RECEIVED.value,
        )
        await self._store.add_message(message)
        await _notify(self._listeners.on_message, message)
        return True
