from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Message:
    message_id: str
    conversation_id: str
    user_id: str
    category: str
    content: str
    created_at: str
    direction: str
    status: str
