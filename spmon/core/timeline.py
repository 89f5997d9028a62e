"""MessageTimeline — the bounded live message list behind the monitor.

The timeline owns the received messages, the selection cursor and follow
mode.  It is mutated from exactly one thread (the monitor's event loop), so
it carries no locks.  Every mutation re-clamps ``selected`` and the visible
window, which keeps out-of-range selection unreachable.

State machine over {empty, populated} x {follow, manual}:

- ``ingest`` in follow mode pins the selection to the newest message.
- ``move_up`` (that moves) and ``jump_to_top`` leave follow mode.
- ``move_down`` onto the last index and ``jump_to_bottom`` enter it.
- ``clear`` returns to empty + follow.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from spmon.core.topics import classify_topic, parse_sparkplug_topic
from spmon.models.messages import MessageCategory, RawMessage
from spmon.sparkplug.decode import DecodeResult, try_decode_payload

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 500


class MessageTimeline:
    """Capacity-bounded FIFO of received messages with a selection cursor.

    Parameters
    ----------
    capacity:
        Maximum number of retained messages.  The oldest is evicted first.
    list_height:
        Number of rows in the visible window; ``list_offset`` is clamped
        so the selection always lies inside it.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, *, list_height: int = 1) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._messages: list[RawMessage] = []
        self.selected = 0
        self.follow = True
        self.list_offset = 0
        self._list_height = max(1, list_height)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def messages(self) -> tuple[RawMessage, ...]:
        """Snapshot of the retained messages, oldest first."""
        return tuple(self._messages)

    @property
    def list_height(self) -> int:
        return self._list_height

    @property
    def selected_message(self) -> RawMessage | None:
        if not self._messages:
            return None
        return self._messages[self.selected]

    @property
    def visible(self) -> list[tuple[int, RawMessage]]:
        """``(index, message)`` pairs inside the visible window."""
        end = min(self.list_offset + self._list_height, len(self._messages))
        return [(i, self._messages[i]) for i in range(self.list_offset, end)]

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> RawMessage:
        return self._messages[index]

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def ingest(
        self,
        topic: str,
        payload: bytes,
        received_at: datetime | None = None,
    ) -> RawMessage:
        """Classify and append a message, evicting the oldest at capacity."""
        message = RawMessage(
            received_at=received_at or datetime.now(timezone.utc),
            topic=topic,
            payload=payload,
            category=classify_topic(topic),
        )
        if len(self._messages) >= self._capacity:
            del self._messages[0]
            if self.selected > 0:
                self.selected -= 1
        self._messages.append(message)
        if self.follow:
            self.selected = len(self._messages) - 1
        self._clamp_list_offset()
        return message

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def move_up(self) -> None:
        if self.selected > 0:
            self.selected -= 1
            self.follow = False
        self._clamp_list_offset()

    def move_down(self) -> None:
        last = len(self._messages) - 1
        if self.selected < last:
            self.selected += 1
            self.follow = self.selected == last
        self._clamp_list_offset()

    def jump_to_bottom(self) -> None:
        if not self._messages:
            return
        self.selected = len(self._messages) - 1
        self.follow = True
        self._clamp_list_offset()

    def jump_to_top(self) -> None:
        self.selected = 0
        self.follow = False
        self.list_offset = 0

    def clear(self) -> None:
        self._messages.clear()
        self.selected = 0
        self.list_offset = 0
        self.follow = True

    def set_list_height(self, height: int) -> None:
        """Resize the visible window (e.g. after a terminal resize)."""
        self._list_height = max(1, height)
        self._clamp_list_offset()

    def _clamp_list_offset(self) -> None:
        if self.selected < self.list_offset:
            self.list_offset = self.selected
        if self.selected >= self.list_offset + self._list_height:
            self.list_offset = self.selected - self._list_height + 1
        if self.list_offset < 0:
            self.list_offset = 0

    # ------------------------------------------------------------------
    # Decoding and rebirth targeting
    # ------------------------------------------------------------------

    def decode_selected(self) -> DecodeResult | None:
        """Decode the selected message if it is a Sparkplug payload.

        Decoding happens on every call; the result is not cached.
        """
        message = self.selected_message
        if message is None or message.category != MessageCategory.SPARKPLUG:
            return None
        result = try_decode_payload(message.payload)
        if result.error is not None:
            logger.debug("Decode error for %s: %s", message.topic, result.error)
        return result

    def build_rebirth_target(self, default_group: str, default_node: str) -> tuple[str, str]:
        """Infer ``(group, node)`` from the nearest Sparkplug message.

        Scans backward from the selection to the oldest message and returns
        the ids from the first Sparkplug topic that parses; otherwise the
        supplied defaults.
        """
        for i in range(min(self.selected, len(self._messages) - 1), -1, -1):
            message = self._messages[i]
            if message.category != MessageCategory.SPARKPLUG:
                continue
            target = parse_sparkplug_topic(message.topic)
            if target is not None:
                return target
        return default_group, default_node
