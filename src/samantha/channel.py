"""Closable async pipes and the shared capsule channel."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from samantha.capsule import Capsule
from samantha.errors import ChannelClosedError


T = TypeVar("T")


class Pipe(Generic[T]):
    """Async queue that can be closed once and for all.

    ``receive`` returns ``None`` once the pipe is closed; ``send`` raises
    ``ChannelClosedError``. Both wake up as soon as the closing event is set,
    so a blocked task never outlives the pipe.
    """

    def __init__(self, maxsize: int = 0, *, closed: asyncio.Event | None = None) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._closed = closed or asyncio.Event()

    def __len__(self) -> int:
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def send(self, item: T) -> None:
        if self.closed:
            raise ChannelClosedError("send on closed pipe")
        putter = asyncio.ensure_future(self._queue.put(item))
        if not await self._race(putter):
            raise ChannelClosedError("send on closed pipe")

    async def receive(self) -> T | None:
        if self.closed:
            return None
        getter = asyncio.ensure_future(self._queue.get())
        if not await self._race(getter):
            return None
        return getter.result()

    async def _race(self, operation: asyncio.Future) -> bool:
        """Wait for ``operation`` or closure, whichever comes first.

        Returns whether the operation completed. A completed operation wins
        over a concurrent closure so nothing already queued is lost.
        """
        waiter = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({operation, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not operation.done():
                operation.cancel()
        return operation.done() and not operation.cancelled()


class CapsuleChannel:
    """Bidirectional capsule channel shared by both managers.

    Capsules travel to the back-end through a bounded pipe so a slow back-end
    is felt by the front-end, and come back through an unbounded pipe so the
    back-end can always hand back a finished capsule. Both directions share one
    closing event: ``close`` is the shutdown broadcast for the whole process.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._closed = asyncio.Event()
        self.to_backend: Pipe[Capsule] = Pipe(capacity, closed=self._closed)
        self.to_frontend: Pipe[Capsule] = Pipe(closed=self._closed)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()
