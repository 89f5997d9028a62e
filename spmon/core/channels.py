"""Bounded channels between transport threads and the monitor event loop.

Producers (the MQTT network thread) call :meth:`Channel.send_threadsafe`,
which blocks the calling thread while the channel is full.  The event loop
is the only consumer and awaits :meth:`Channel.receive`.  Nothing else is
shared across the thread boundary.

The consumer closes its channels before it shuts the transport down.  A
producer blocked on a full channel notices within :data:`SEND_POLL_SECONDS`
and gets :class:`ChannelClosed`, so a transport that joins its network
thread on close never waits on a loop that has stopped receiving.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MESSAGE_CHANNEL_DEPTH = 256
CONNECTIVITY_CHANNEL_DEPTH = 4
SEND_POLL_SECONDS = 0.05


class ChannelClosed(RuntimeError):
    """Raised to a producer when the consuming loop has gone away."""


class Channel(Generic[T]):
    """An ``asyncio.Queue`` with a blocking, thread-safe send side.

    Must be created while the consuming event loop is running (or passed
    that loop explicitly).
    """

    def __init__(
        self,
        maxsize: int,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "channel",
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._name = name
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed or self._loop.is_closed()

    def qsize(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Refuse further sends and release producers blocked on a full channel."""
        if not self._closed:
            logger.debug("Closing %r", self)
        self._closed = True

    def send_threadsafe(self, item: T) -> None:
        """Enqueue from a foreign thread, blocking while the channel is full.

        Called from the loop thread itself (e.g. an in-memory transport) it
        degrades to :meth:`send_nowait`, since blocking there would deadlock.
        Raises :class:`ChannelClosed` if the channel is closed before the
        item is accepted.
        """
        self._check_open()
        if self._on_loop_thread():
            self.send_nowait(item)
            return
        future = asyncio.run_coroutine_threadsafe(self._queue.put(item), self._loop)
        while True:
            try:
                future.result(timeout=SEND_POLL_SECONDS)
                return
            except concurrent.futures.CancelledError:
                raise ChannelClosed(f"{self._name}: send cancelled by the event loop") from None
            except concurrent.futures.TimeoutError:
                if self.closed:
                    future.cancel()
                    raise ChannelClosed(f"{self._name}: closed while full") from None

    def send_nowait(self, item: T) -> None:
        """Enqueue from the loop thread itself."""
        self._check_open()
        self._queue.put_nowait(item)

    def _check_open(self) -> None:
        if self._loop.is_closed():
            raise ChannelClosed(f"{self._name}: event loop is closed")
        if self._closed:
            raise ChannelClosed(f"{self._name}: channel is closed")

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    async def receive(self) -> T:
        return await self._queue.get()

    def __repr__(self) -> str:
        return f"Channel(name={self._name!r}, depth={self.qsize()}/{self._queue.maxsize})"
