from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Conversation:
    conversation_id: str
    name: str
    category: str
    participants: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
