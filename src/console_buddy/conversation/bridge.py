"""Single-producer, single-consumer event channel for one turn.

Hidden design decisions:
- Rendezvous semantics: send() returns only once the consumer has taken the
  event, so the engine can never run ahead of the UI
- Closure is signalled in-band with a sentinel, so FIFO order covers it too
- After closure every receive() returns None
"""

import asyncio

from ..errors import BridgeClosedError
from .models import StreamEvent

_CLOSED = object()


class StreamingBridge:
    """Unbuffered channel carrying StreamEvents from the engine to the UI.

    Usage:
        bridge = StreamingBridge()
        # producer
        await bridge.send(TextChunk(text="hi"))
        bridge.close()
        # consumer
        async for event in bridge:
            render(event)
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = False
        self._drained = False
        self._close_task: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        """True once the producer has closed the channel."""
        return self._closed

    async def send(self, event: StreamEvent) -> None:
        """Deliver an event and wait until the consumer has taken it.

        Raises:
            BridgeClosedError: If the bridge was already closed
        """
        if self._closed:
            raise BridgeClosedError("cannot send on a closed bridge")
        await self._queue.put(event)
        await self._queue.join()

    def close(self) -> None:
        """Close the channel. Must be called exactly once, by the producer.

        Does not wait for the consumer; pending receives wake up with None.

        Raises:
            BridgeClosedError: If the bridge was already closed
        """
        if self._closed:
            raise BridgeClosedError("bridge already closed")
        self._closed = True
        if self._queue.full():
            # A send is still waiting for the consumer; queue the sentinel behind it
            self._close_task = asyncio.get_running_loop().create_task(self._queue.put(_CLOSED))
        else:
            self._queue.put_nowait(_CLOSED)

    async def receive(self) -> StreamEvent | None:
        """Take the next event, or None once the channel is closed."""
        if self._drained:
            return None
        item = await self._queue.get()
        self._queue.task_done()
        if item is _CLOSED:
            self._drained = True
            return None
        return item

    def __aiter__(self) -> "StreamingBridge":
        return self

    async def __anext__(self) -> StreamEvent:
        event = await self.receive()
        if event is None:
            raise StopAsyncIteration
        return event
