"""Normalization of push-stream payloads into canonical text.

Payloads reach the client in several encodings: plain strings, raw bytes,
lists of byte values, serialized buffer wrappers (``{"type": "Buffer",
"data": [...]}``) and plain JSON objects. ``classify_payload`` turns any of
them into one of the ``Payload`` variants below; every decoder works from
that union so live and replayed content render identically.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

from chat_mirror.domain.value_objects.enums import MessageCategory

BytesSource = Literal["raw", "array", "buffer"]


@dataclass(frozen=True, slots=True)
class EmptyPayload:
    pass


@dataclass(frozen=True, slots=True)
class TextPayload:
    text: str


@dataclass(frozen=True, slots=True)
class BytesPayload:
    data: bytes
    source: BytesSource = "raw"

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True, slots=True)
class ObjectPayload:
    value: dict[str, Any]


@dataclass(frozen=True, slots=True)
class OpaquePayload:
    value: Any


Payload = EmptyPayload | TextPayload | BytesPayload | ObjectPayload | OpaquePayload


def _is_byte_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 255 for v in value
    )


def classify_payload(raw: Any) -> Payload:
    if isinstance(raw, (EmptyPayload, TextPayload, BytesPayload, ObjectPayload, OpaquePayload)):
        return raw
    if raw is None:
        return EmptyPayload()
    if isinstance(raw, str):
        return TextPayload(raw)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return BytesPayload(bytes(raw), "raw")
    if _is_byte_list(raw):
        return BytesPayload(bytes(raw), "array")
    if isinstance(raw, dict):
        if raw.get("type") == "Buffer" and _is_byte_list(raw.get("data")):
            return BytesPayload(bytes(raw["data"]), "buffer")
        return ObjectPayload(raw)
    return OpaquePayload(raw)


def _to_json_text(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    except ValueError:  # circular structures
        return repr(value)


def decode_json_object(raw: Any) -> dict[str, Any] | None:
    """Best-effort decode of a payload into a JSON object; None when impossible."""
    payload = classify_payload(raw)
    if isinstance(payload, ObjectPayload):
        return payload.value
    if isinstance(payload, TextPayload):
        source = payload.text
    elif isinstance(payload, BytesPayload):
        source = payload.text()
    else:
        return None
    try:
        parsed = json.loads(source)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _decode_plain_text(payload: Payload) -> str:
    if isinstance(payload, TextPayload):
        return payload.text
    if isinstance(payload, BytesPayload):
        return payload.text()
    if isinstance(payload, (ObjectPayload, OpaquePayload)):
        return _to_json_text(payload.value)
    return _to_json_text("")


def _decode_snapshot(raw: Any) -> str:
    data = decode_json_object(raw) or {}
    amount = data.get("amount") or "?"
    asset = data.get("asset")
    symbol = (asset.get("symbol") if isinstance(asset, dict) else None) or "Asset"
    return f"Transfer: {amount} {symbol}"


def decode_content(category: str | None, raw: Any) -> str:
    """Render a message payload as display text. Never raises."""
    if category == MessageCategory.PLAIN_TEXT:
        return _decode_plain_text(classify_payload(raw))
    if category == MessageCategory.SYSTEM_ACCOUNT_SNAPSHOT:
        return _decode_snapshot(raw)
    return f"[{category or 'UNKNOWN'}]"


def decode_recall_target(raw: Any) -> str | None:
    """Id of the message a MESSAGE_RECALL payload withdraws, or None."""
    data = decode_json_object(raw)
    if data is None:
        return None
    target = data.get("message_id")
    if isinstance(target, str) and target.strip():
        return target.strip()
    return None


def extract_participants(payload: dict[str, Any] | None) -> list[str]:
    """User ids listed by a SYSTEM_CONVERSATION payload, trimmed, blanks dropped."""
    if not payload:
        return []
    entries = payload.get("participants")
    if entries is None:
        entries = payload.get("participant_sessions")
    if not isinstance(entries, list):
        return []

    ids: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            value = entry
        elif isinstance(entry, dict) and entry.get("user_id") is not None:
            value = str(entry["user_id"])
        else:
            continue
        value = value.strip()
        if value:
            ids.append(value)
    return ids
