from __future__ import annotations

import pytest

from chat_mirror.services.payload_decoder import (
    BytesPayload,
    EmptyPayload,
    ObjectPayload,
    OpaquePayload,
    TextPayload,
    classify_payload,
    decode_content,
    decode_json_object,
    decode_recall_target,
    extract_participants,
)


def test_classify_payload_variants():
    assert classify_payload(None) == EmptyPayload()
    assert classify_payload("hi") == TextPayload("hi")
    assert classify_payload(b"hi") == BytesPayload(b"hi", "raw")
    assert classify_payload([104, 105]) == BytesPayload(b"hi", "array")
    assert classify_payload({"type": "Buffer", "data": [104, 105]}) == BytesPayload(b"hi", "buffer")
    assert classify_payload({"foo": 1}) == ObjectPayload({"foo": 1})
    assert classify_payload(3.5) == OpaquePayload(3.5)


def test_classify_payload_rejects_out_of_range_byte_lists():
    assert classify_payload([300, 1]) == OpaquePayload([300, 1])
    assert classify_payload([True, False]) == OpaquePayload([True, False])
    # a dict that only looks like a buffer stays an object
    assert isinstance(classify_payload({"data": [1, 2]}), ObjectPayload)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("hello", "hello"),
        (b"Hi", "Hi"),
        (bytearray(b"Hi"), "Hi"),
        ([72, 105], "Hi"),
        ({"type": "Buffer", "data": [72, 105]}, "Hi"),
        ("café".encode(), "café"),
        (b"\xff", "�"),
        ({"foo": 1}, '{"foo":1}'),
        ([300], "[300]"),
        (None, '""'),
        (42, "42"),
    ],
)
def test_decode_plain_text(raw, expected):
    assert decode_content("PLAIN_TEXT", raw) == expected


def test_decode_snapshot():
    raw = '{"amount": "1.5", "asset": {"symbol": "BTC"}}'

    assert decode_content("SYSTEM_ACCOUNT_SNAPSHOT", raw) == "Transfer: 1.5 BTC"
    assert decode_content("SYSTEM_ACCOUNT_SNAPSHOT", {"amount": "2"}) == "Transfer: 2 Asset"
    assert decode_content("SYSTEM_ACCOUNT_SNAPSHOT", "garbage") == "Transfer: ? Asset"


def test_decode_other_categories_as_tag():
    assert decode_content("PLAIN_STICKER", b"...") == "[PLAIN_STICKER]"
    assert decode_content("MESSAGE_RECALL", '{"message_id": "m1"}') == "[MESSAGE_RECALL]"
    assert decode_content(None, "x") == "[UNKNOWN]"
    assert decode_content("", "x") == "[UNKNOWN]"


def test_decode_json_object():
    assert decode_json_object('{"a": 1}') == {"a": 1}
    assert decode_json_object(b'{"a": 1}') == {"a": 1}
    assert decode_json_object({"a": 1}) == {"a": 1}
    assert decode_json_object("[1, 2]") is None
    assert decode_json_object("not json") is None
    assert decode_json_object(None) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('{"message_id": "m1"}', "m1"),
        (b'{"message_id": " m1 "}', "m1"),
        ({"type": "Buffer", "data": list(b'{"message_id":"m1"}')}, "m1"),
        ({"message_id": "m1"}, "m1"),
        ('{"message_id": ""}', None),
        ('{"message_id": 7}', None),
        ("{}", None),
        ("not json", None),
        (None, None),
    ],
)
def test_decode_recall_target(raw, expected):
    assert decode_recall_target(raw) == expected


def test_extract_participants():
    assert extract_participants({"participants": [" a ", "", "b"]}) == ["a", "b"]
    assert extract_participants(
        {"participant_sessions": [{"user_id": "a", "session_id": "s"}, {"session_id": "x"}]}
    ) == ["a"]
    assert extract_participants({"participants": ["a", {"user_id": "b"}, 3]}) == ["a", "b"]
    assert extract_participants({"participants": "a"}) == []
    assert extract_participants({}) == []
    assert extract_participants(None) == []
