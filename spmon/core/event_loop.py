"""MonitorLoop — the single-threaded event loop of the live monitor.

Exactly one thread (the asyncio loop) mutates the timeline, the selection
and the rebirth status line.  The transport's network thread only ever
sends onto two bounded channels.  Each iteration races the next message,
the next connectivity change, the next key press and the redraw tick; the
first to complete wins and is handled, the rest stay pending.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from spmon.bridge.transport import Transport, TransportError
from spmon.core.channels import (
    CONNECTIVITY_CHANNEL_DEPTH,
    MESSAGE_CHANNEL_DEPTH,
    Channel,
    ChannelClosed,
)
from spmon.core.rebirth import RebirthDispatcher
from spmon.core.timeline import MessageTimeline
from spmon.monitor.projection import MonitorProjection, MonitorView

logger = logging.getLogger(__name__)

Delivery = tuple[str, bytes, datetime]
FrameCallback = Callable[[MonitorView], None]

QUIT_KEYS = frozenset({"q", "ctrl+c", "eof"})


class KeySource(Protocol):
    async def read_key(self) -> str: ...


class MonitorLoop:
    """Drives the timeline from transport deliveries and key presses.

    Parameters
    ----------
    transport:
        Message source / sink.  Started by ``run()`` and closed on exit.
    timeline:
        The live timeline this loop owns.
    dispatcher:
        Rebirth command dispatcher (``R`` key).
    keys:
        Async key source; ``None`` runs without keyboard input.
    broker:
        Broker address for the header.
    refresh_hz:
        Redraw rate when nothing else happens.
    list_height:
        Callable returning the current list viewport height.
    """

    def __init__(
        self,
        transport: Transport,
        timeline: MessageTimeline,
        dispatcher: RebirthDispatcher,
        *,
        keys: KeySource | None = None,
        broker: str = "",
        refresh_hz: float = 10.0,
        message_queue_depth: int = MESSAGE_CHANNEL_DEPTH,
        connectivity_queue_depth: int = CONNECTIVITY_CHANNEL_DEPTH,
        list_height: Callable[[], int] | None = None,
    ) -> None:
        self._transport = transport
        self.timeline = timeline
        self.dispatcher = dispatcher
        self._keys = keys
        self._projection = MonitorProjection(timeline, broker=broker)
        self._interval = 1.0 / max(refresh_hz, 0.1)
        self._message_depth = message_queue_depth
        self._connectivity_depth = connectivity_queue_depth
        self._list_height = list_height
        self.connected = False
        self.detail_offset = 0
        self._running = False

    # ------------------------------------------------------------------
    # State handlers (loop thread only)
    # ------------------------------------------------------------------

    def handle_delivery(self, delivery: Delivery) -> None:
        topic, payload, received_at = delivery
        self.timeline.ingest(topic, payload, received_at)

    def handle_connectivity(self, connected: bool) -> None:
        if connected != self.connected:
            logger.info("Connectivity changed: %s", "connected" if connected else "disconnected")
        self.connected = connected

    def handle_key(self, key: str) -> bool:
        """Apply one key press.  Returns ``False`` when the loop should stop."""
        timeline = self.timeline
        if key in QUIT_KEYS:
            return False
        if key in ("up", "k"):
            timeline.move_up()
            self.detail_offset = 0
        elif key in ("down", "j"):
            timeline.move_down()
            self.detail_offset = 0
        elif key in ("G", "end"):
            timeline.jump_to_bottom()
            self.detail_offset = 0
        elif key in ("g", "home"):
            timeline.jump_to_top()
            self.detail_offset = 0
        elif key == "c":
            timeline.clear()
            self.detail_offset = 0
        elif key == "R":
            try:
                self.dispatcher.dispatch(timeline, connected=self.connected)
            except TransportError as exc:
                logger.warning("Rebirth publish failed: %s", exc)
                self.dispatcher.status = f"Rebirth failed: {exc}"
        elif key in ("pgdown", "ctrl+f"):
            self.detail_offset += self._half_page()
        elif key in ("pgup", "ctrl+b"):
            self.detail_offset = max(0, self.detail_offset - self._half_page())
        return True

    def _half_page(self) -> int:
        return max(1, self.timeline.list_height // 2)

    def view(self) -> MonitorView:
        """Project the current state for rendering."""
        if self._list_height is not None:
            self.timeline.set_list_height(self._list_height())
        return self._projection.snapshot(
            connected=self.connected,
            status=self.dispatcher.status,
            detail_offset=self.detail_offset,
        )

    def stop(self) -> None:
        self._running = False

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    async def run(self, frame: FrameCallback | None = None) -> None:
        """Run until a quit key (or ``stop()``).  Calls *frame* on each redraw."""
        messages: Channel[Delivery] = Channel(self._message_depth, name="messages")
        connectivity: Channel[bool] = Channel(self._connectivity_depth, name="connectivity")

        def on_message(topic: str, payload: bytes, received_at: datetime) -> None:
            try:
                messages.send_threadsafe((topic, payload, received_at))
            except ChannelClosed:
                logger.debug("Dropped message on %s: monitor loop closed.", topic)
            except asyncio.QueueFull:
                logger.debug("Dropped message on %s: message channel full.", topic)

        def on_connectivity(connected: bool) -> None:
            try:
                connectivity.send_threadsafe(connected)
            except ChannelClosed:
                logger.debug("Dropped connectivity change: monitor loop closed.")
            except asyncio.QueueFull:
                logger.debug("Dropped connectivity change: connectivity channel full.")

        self._transport.start(on_message, on_connectivity)
        self._running = True

        pending: dict[str, asyncio.Task[Any]] = {}
        try:
            while self._running:
                if "message" not in pending:
                    pending["message"] = asyncio.ensure_future(messages.receive())
                if "connectivity" not in pending:
                    pending["connectivity"] = asyncio.ensure_future(connectivity.receive())
                if self._keys is not None and "key" not in pending:
                    pending["key"] = asyncio.ensure_future(self._keys.read_key())

                if frame is not None:
                    frame(self.view())

                done, _ = await asyncio.wait(
                    pending.values(),
                    timeout=self._interval,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for name in [n for n, task in pending.items() if task in done]:
                    result = pending.pop(name).result()
                    if name == "message":
                        self.handle_delivery(result)
                    elif name == "connectivity":
                        self.handle_connectivity(result)
                    elif not self.handle_key(result):
                        self._running = False
        finally:
            for task in pending.values():
                task.cancel()
            messages.close()
            connectivity.close()
            self.dispatcher.cancel()
            # Off the loop: the transport may join a network thread that is
            # still blocked sending on a channel.
            await asyncio.to_thread(self._transport.close)
            if frame is not None:
                frame(self.view())
