from __future__ import annotations

from enum import StrEnum


class ConversationCategory(StrEnum):
    GROUP = "GROUP"
    CONTACT = "CONTACT"
    SYSTEM = "SYSTEM"


class MessageCategory(StrEnum):
    PLAIN_TEXT = "PLAIN_TEXT"
    SYSTEM_ACCOUNT_SNAPSHOT = "SYSTEM_ACCOUNT_SNAPSHOT"
    SYSTEM_CONVERSATION = "SYSTEM_CONVERSATION"
    MESSAGE_RECALL = "MESSAGE_RECALL"


class MessageDirection(StrEnum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class MessageStatus(StrEnum):
    RECEIVED = "received"
    SENT = "sent"
    WITHDRAWN = "withdrawn"
