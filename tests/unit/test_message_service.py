from __future__ import annotations

import base64
import json

import pytest

from chat_mirror.application.exceptions import ValidationError
from chat_mirror.domain.value_objects.enums import MessageCategory, MessageDirection, MessageStatus
from chat_mirror.services import message_service
from tests.conftest import FIXED_NOW_ISO, make_message


def _decode(data_base64: str) -> bytes:
    return base64.urlsafe_b64decode(data_base64 + "=" * (-len(data_base64) % 4))


def test_encode_data_base64_is_url_safe_without_padding():
    assert message_service.encode_data_base64("Hello") == "SGVsbG8"
    assert message_service.encode_data_base64(b"\xfb\xff") == "-_8"


@pytest.mark.asyncio
async def test_send_conversation_text_records_outgoing_message(store, client, clock):
    msg = await message_service.send_conversation_text(
        "conv-1", "  Hello  ", store, client, app_id="bot", clock=clock,
    )

    assert len(client.sent) == 1
    request = client.sent[0]
    assert request.conversation_id == "conv-1"
    assert request.category == MessageCategory.PLAIN_TEXT
    assert request.message_id == msg.message_id
    assert _decode(request.data_base64) == b"Hello"

    stored = await store.list_messages("conv-1")
    assert stored == [msg]
    assert msg.content == "Hello"
    assert msg.user_id == "bot"
    assert msg.direction == MessageDirection.OUTGOING
    assert msg.status == MessageStatus.SENT
    assert msg.created_at == FIXED_NOW_ISO


@pytest.mark.asyncio
async def test_send_conversation_text_uses_fresh_ids(store, client, clock):
    first = await message_service.send_conversation_text("conv-1", "a", store, client, clock=clock)
    second = await message_service.send_conversation_text("conv-1", "a", store, client, clock=clock)

    assert first.message_id != second.message_id
    assert len(await store.list_messages("conv-1")) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(("conversation_id", "text"), [("", "hi"), ("conv-1", ""), ("conv-1", "   ")])
async def test_send_conversation_text_validation(store, client, conversation_id, text):
    with pytest.raises(ValidationError):
        await message_service.send_conversation_text(conversation_id, text, store, client)

    assert client.sent == []
    assert await store.list_recent_messages() == []


@pytest.mark.asyncio
async def test_send_failure_leaves_store_untouched(store, client):
    client.fail_send = ConnectionError("offline")

    with pytest.raises(ConnectionError):
        await message_service.send_conversation_text("conv-1", "hi", store, client)

    assert await store.list_messages("conv-1") == []


@pytest.mark.asyncio
async def test_withdraw_message(store, client):
    await store.add_message(make_message(message_id="m1", content="oops"))

    recall = await message_service.withdraw_message("conv-1", "m1", store, client)

    assert client.sent == [recall]
    assert recall.category == MessageCategory.MESSAGE_RECALL
    assert recall.message_id != "m1"
    assert json.loads(_decode(recall.data_base64)) == {"message_id": "m1"}

    msg = (await store.list_messages("conv-1"))[0]
    assert msg.status == MessageStatus.WITHDRAWN
    assert msg.content == "oops"


@pytest.mark.asyncio
async def test_withdraw_failure_keeps_status(store, client):
    await store.add_message(make_message(message_id="m1", status=MessageStatus.SENT))
    client.fail_send = ConnectionError("offline")

    with pytest.raises(ConnectionError):
        await message_service.withdraw_message("conv-1", "m1", store, client)

    assert (await store.list_messages("conv-1"))[0].status == MessageStatus.SENT


@pytest.mark.asyncio
async def test_withdraw_requires_ids(store, client):
    with pytest.raises(ValidationError):
        await message_service.withdraw_message("conv-1", " ", store, client)
    with pytest.raises(ValidationError):
        await message_service.withdraw_message("", "m1", store, client)

    assert client.sent == []


@pytest.mark.asyncio
async def test_send_text_to_user(client):
    await message_service.send_text(" user-1 ", " hey ", client)

    assert client.direct == [("user-1", "hey")]


@pytest.mark.asyncio
async def test_send_text_validation(client):
    with pytest.raises(ValidationError):
        await message_service.send_text("", "hey", client)

    assert client.direct == []
