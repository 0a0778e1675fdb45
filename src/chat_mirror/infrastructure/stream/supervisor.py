"""Owner of the single push-stream connection."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ValidationError as PayloadValidationError

from chat_mirror.application.dto.events import InboundEvent
from chat_mirror.application.dto.message import AcknowledgementRequest
from chat_mirror.application.ports.network import (
    NetworkClient,
    StreamAlreadyRunningError,
    StreamHandler,
)

logger = logging.getLogger(__name__)


class StreamState(StrEnum):
    STOPPED = "stopped"
    RUNNING = "running"


class EventKind(StrEnum):
    MESSAGE = "message"
    CONVERSATION = "conversation"


@dataclass(frozen=True, slots=True)
class _Envelope:
    kind: EventKind
    event: InboundEvent


class _RunCallbacks:
    """Callbacks handed to the network client for one run; ignored once that run ends."""

    def __init__(self, supervisor: StreamSupervisor, generation: int) -> None:
        self._supervisor = supervisor
        self._generation = generation

    async def on_message(self, event: Any) -> None:
        self._supervisor._enqueue(self._generation, EventKind.MESSAGE, event)

    async def on_conversation(self, event: Any) -> None:
        self._supervisor._enqueue(self._generation, EventKind.CONVERSATION, event)


def _discard_pending(queue: asyncio.Queue[_Envelope | None]) -> None:
    while not queue.empty():
        queue.get_nowait()
        queue.task_done()


class StreamSupervisor:
    """Two-state (stopped/running) supervisor of the remote push stream.

    Events from the network client are validated, queued and handed to the
    handler one at a time by a dispatcher task, so an event is fully
    reconciled before the next one starts. Starting while running restarts
    with the new handler. After ``stop()`` returns the old handler is never
    invoked again. Each consumed event is acknowledged in a fire-and-forget
    task whose failures are only logged.
    """

    def __init__(
        self,
        client: NetworkClient,
        *,
        ack_status: str = "READ",
        stop_grace_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self._ack_status = ack_status
        self._stop_grace_seconds = stop_grace_seconds
        self._state = StreamState.STOPPED
        self._generation = 0
        self._queue: asyncio.Queue[_Envelope | None] | None = None
        self._task: asyncio.Task[None] | None = None
        self._acks: set[asyncio.Task[None]] = set()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is StreamState.RUNNING

    async def start(self, handler: StreamHandler) -> None:
        async with self._lock:
            if self._state is StreamState.RUNNING:
                logger.info("Stream already running, restarting with a new handler")
                await self._stop_locked()

            self._generation += 1
            generation = self._generation
            queue: asyncio.Queue[_Envelope | None] = asyncio.Queue()
            self._queue = queue
            self._task = asyncio.create_task(
                self._dispatch(generation, queue, handler),
                name=f"stream-dispatch-{generation}",
            )
            try:
                await self._open(_RunCallbacks(self, generation))
            except BaseException:
                self._generation += 1
                await self._finish_dispatcher()
                raise

            self._state = StreamState.RUNNING
            logger.info("Stream started (run %d)", generation)

    async def stop(self) -> None:
        async with self._lock:
            await self._stop_locked()

    async def wait_idle(self) -> None:
        """Wait until queued events are processed and pending acknowledgements are sent."""
        queue = self._queue
        if queue is not None:
            await queue.join()
        if self._acks:
            await asyncio.gather(*list(self._acks), return_exceptions=True)

    async def _open(self, callbacks: _RunCallbacks) -> None:
        try:
            await self._client.start_stream(callbacks)
        except StreamAlreadyRunningError:
            logger.info("Remote stream was already running, stopping it before restart")
            await self._client.stop_stream()
            await self._client.start_stream(callbacks)

    async def _stop_locked(self) -> None:
        if self._state is StreamState.STOPPED and self._task is None:
            return

        self._state = StreamState.STOPPED
        self._generation += 1
        try:
            await self._client.stop_stream()
        except Exception:
            logger.warning("Remote stream stop failed", exc_info=True)
        await self._finish_dispatcher()
        await self._drain_acks()
        logger.info("Stream stopped")

    async def _finish_dispatcher(self) -> None:
        task, queue = self._task, self._queue
        self._task = None
        self._queue = None
        if task is None:
            return
        if queue is not None:
            queue.put_nowait(None)
        if task is asyncio.current_task():
            # stop() called from inside the handler; the dispatcher exits on return
            return

        done, _ = await asyncio.wait({task}, timeout=self._stop_grace_seconds)
        if not done:
            logger.warning(
                "Stream handler still busy after %.1fs, cancelling", self._stop_grace_seconds
            )
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _drain_acks(self) -> None:
        if not self._acks:
            return
        _, pending = await asyncio.wait(set(self._acks), timeout=self._stop_grace_seconds)
        for task in pending:
            task.cancel()

    def _enqueue(self, generation: int, kind: EventKind, raw: Any) -> None:
        queue = self._queue
        if generation != self._generation or queue is None:
            logger.debug("Dropping %s event from a finished stream run", kind)
            return
        try:
            event = InboundEvent.model_validate(raw)
        except PayloadValidationError:
            logger.warning("Dropping malformed %s event", kind, exc_info=True)
            return
        queue.put_nowait(_Envelope(kind, event))

    async def _dispatch(
        self,
        generation: int,
        queue: asyncio.Queue[_Envelope | None],
        handler: StreamHandler,
    ) -> None:
        try:
            while True:
                envelope = await queue.get()
                try:
                    if envelope is None or generation != self._generation:
                        return
                    await self._process(handler, envelope)
                finally:
                    queue.task_done()
        finally:
            _discard_pending(queue)

    async def _process(self, handler: StreamHandler, envelope: _Envelope) -> None:
        event = envelope.event
        try:
            if envelope.kind is EventKind.CONVERSATION:
                consumed = await handler.on_conversation(event)
            else:
                consumed = await handler.on_message(event)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error processing %s event %s", envelope.kind, event.message_id)
            return

        if consumed is not False:
            self._acknowledge(event)

    def _acknowledge(self, event: InboundEvent) -> None:
        if not event.message_id:
            return
        ack = AcknowledgementRequest(message_id=event.message_id, status=self._ack_status)
        task = asyncio.create_task(self._send_ack(ack), name=f"stream-ack-{ack.message_id}")
        self._acks.add(task)
        task.add_done_callback(self._acks.discard)

    async def _send_ack(self, ack: AcknowledgementRequest) -> None:
        try:
            await self._client.send_acknowledgement(ack)
        except Exception:
            logger.warning("Acknowledgement for %s failed", ack.message_id, exc_info=True)
