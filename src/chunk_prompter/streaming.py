"""Event channel used to relay per-chunk results to a single consumer.

The channel behaves like an unbuffered channel: ``send`` returns only once
the consumer has received the event, so a slow consumer holds the producer
back. Closing is the completion signal; iteration stops after the last
event.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional


class PipelineState(str, Enum):
    IDLE = "idle"
    EMITTING = "emitting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class StreamEvent:
    """Either a response text or an error, never both."""

    response: Optional[str] = None
    error: Optional[Exception] = None

    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("StreamEvent needs exactly one of response or error")

    @classmethod
    def of_response(cls, text: str) -> "StreamEvent":
        return cls(response=text)

    @classmethod
    def of_error(cls, error: Exception) -> "StreamEvent":
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None


_CLOSED = object()


class EventChannel:
    """Single-producer, single-consumer async channel of ``StreamEvent``."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._drained = False
        self._producer: Optional[asyncio.Task[None]] = None
        self.state = PipelineState.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    def attach_producer(self, task: asyncio.Task[None]) -> None:
        self._producer = task

    def send_nowait(self, event: StreamEvent) -> None:
        """Queue an event without waiting for the consumer."""
        if self._closed:
            raise RuntimeError("send on closed channel")
        self._queue.put_nowait(event)

    async def send(self, event: StreamEvent) -> None:
        """Queue an event and wait until the consumer has received it."""
        self.send_nowait(event)
        await self._queue.join()

    def close(self) -> None:
        """Close the channel. Repeated calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def aclose(self) -> None:
        """Abandon the stream: stop the producer and close the channel."""
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
            await asyncio.gather(self._producer, return_exceptions=True)
        self.close()
        self._drained = True

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self

    async def __anext__(self) -> StreamEvent:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        self._queue.task_done()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return item
