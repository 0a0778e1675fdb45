from __future__ import annotations

import base64
import json
import logging
import uuid

from chat_mirror.application.dto.message import MessageRequest
from chat_mirror.application.exceptions import ValidationError
from chat_mirror.application.ports.clock import Clock, now_iso
from chat_mirror.application.ports.network import NetworkClient
from chat_mirror.application.ports.store import MessageStore
from chat_mirror.domain.entities.message import Message
from chat_mirror.domain.value_objects.enums import (
    MessageCategory,
    MessageDirection,
    MessageStatus,
)

logger = logging.getLogger(__name__)


def encode_data_base64(value: str | bytes) -> str:
    """URL-safe base64 without padding, as the network expects for ``data_base64``."""
    raw = value.encode() if isinstance(value, str) else value
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def _require(value: str, detail: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(detail)
    return value


async def send_conversation_text(
    conversation_id: str,
    text: str,
    store: MessageStore,
    client: NetworkClient,
    *,
    app_id: str = "",
    clock: Clock | None = None,
) -> Message:
    """Send text to a conversation and record the local echo.

    The outgoing row is written only after ``send_one`` returns; a remote
    failure propagates and leaves the store untouched.
    """
    conversation_id = _require(conversation_id, "Conversation ID is required.")
    text = _require(text, "Message text is required.")

    request = MessageRequest(
        conversation_id=conversation_id,
        message_id=str(uuid.uuid4()),
        category=MessageCategory.PLAIN_TEXT,
        data_base64=encode_data_base64(text),
    )
    await client.send_one(request)

    message = Message(
        message_id=request.message_id,
        conversation_id=conversation_id,
        user_id=app_id,
        category=MessageCategory.PLAIN_TEXT.value,
        content=text,
        created_at=now_iso(clock),
        direction=MessageDirection.OUTGOING.value,
        status=MessageStatus.SENT.value,
    )
    await store.add_message(message)
    logger.debug("Sent message %s to conversation %s", message.message_id, conversation_id)
    return message


async def withdraw_message(
    conversation_id: str,
    message_id: str,
    store: MessageStore,
    client: NetworkClient,
) -> MessageRequest:
    """Recall a sent message remotely, then flip its local status to withdrawn."""
    conversation_id = _require(conversation_id, "Conversation ID is required.")
    message_id = _require(message_id, "Message ID is required.")

    recall = MessageRequest(
        conversation_id=conversation_id,
        message_id=str(uuid.uuid4()),
        category=MessageCategory.MESSAGE_RECALL,
        data_base64=encode_data_base64(json.dumps({"message_id": message_id}, separators=(",", ":"))),
    )
    await client.send_one(recall)
    await store.mark_message_withdrawn(message_id)
    logger.info("Withdrew message %s in conversation %s", message_id, conversation_id)
    return recall


async def send_text(user_id: str, text: str, client: NetworkClient) -> None:
    """Direct text to a single user; nothing is mirrored locally."""
    user_id = _require(user_id, "User ID is required.")
    text = _require(text, "Message text is required.")
    await client.send_text(user_id, text)
