from __future__ import annotations

from dataclasses import dataclass

from chat_mirror.domain.value_objects.enums import MessageCategory


@dataclass(frozen=True, slots=True)
class MessageRequest:
    """Outbound message handed to the network client's ``send_one``."""

    conversation_id: str
    message_id: str
    category: MessageCategory
    data_base64: str


@dataclass(frozen=True, slots=True)
class AcknowledgementRequest:
    message_id: str
    status: str = "READ"
