"""Remote messaging network collaborator."""
from __future__ import annotations

from typing import Any, Protocol

from chat_mirror.application.dto.events import InboundEvent, RemoteConversation
from chat_mirror.application.dto.message import AcknowledgementRequest, MessageRequest


class StreamAlreadyRunningError(RuntimeError):
    """Raised by ``start_stream`` when the client already has a live stream."""


class StreamCallbacks(Protocol):
    """Callbacks the network client invokes for each pushed event."""

    async def on_message(self, event: Any) -> None: ...

    async def on_conversation(self, event: Any) -> None: ...


class StreamHandler(Protocol):
    """Consumer of validated events, driven sequentially by the stream supervisor.

    ``on_message`` returns False when the event was not consumed and must not
    be acknowledged.
    """

    async def on_message(self, event: InboundEvent) -> bool: ...

    async def on_conversation(self, event: InboundEvent) -> bool: ...


class NetworkClient(Protocol):
    async def start_stream(self, callbacks: StreamCallbacks) -> None:
        """Open the push stream; delivery continues in the background until ``stop_stream``."""
        ...

    async def stop_stream(self) -> None: ...

    async def send_one(self, message: MessageRequest) -> Any: ...

    async def send_text(self, user_id: str, text: str) -> Any: ...

    async def send_acknowledgement(self, ack: AcknowledgementRequest) -> None: ...

    async def fetch_conversation(self, conversation_id: str) -> RemoteConversation | dict[str, Any]: ...

    async def create_group(
        self,
        conversation_id: str,
        name: str,
        participants: list[dict[str, str]],
    ) -> RemoteConversation | dict[str, Any]: ...
