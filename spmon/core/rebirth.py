"""Node Control/Rebirth dispatch.

Resolves the target edge node from the timeline, publishes the NCMD rebirth
payload through the transport and shows a transient status line that a
one-shot timer clears.  Re-dispatching cancels and re-arms the timer; a
stale timer that still fires is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, NamedTuple

from spmon.core.topics import ncmd_topic
from spmon.sparkplug.encode import Clock, encode_ncmd_rebirth

if TYPE_CHECKING:
    from spmon.bridge.transport import Transport
    from spmon.core.timeline import MessageTimeline

logger = logging.getLogger(__name__)

DEFAULT_STATUS_SECONDS = 3.0

# (delay_seconds, callback, *args) -> handle with a cancel() method
Scheduler = Callable[..., Any]


class RebirthCommand(NamedTuple):
    topic: str
    payload: bytes


class RebirthDispatcher:
    """Publishes rebirth commands and owns the transient status line.

    Parameters
    ----------
    transport:
        Anything with ``publish(topic, payload, qos=..., retain=...)``.
    default_group, default_node:
        Used when no Sparkplug message in the timeline names a node.
    status_seconds:
        How long the status line stays visible.
    clock:
        Time source for the payload timestamp (seconds since the epoch).
    scheduler:
        ``call_later``-style scheduler.  Defaults to the running asyncio
        loop's ``call_later``.
    """

    def __init__(
        self,
        transport: Transport,
        default_group: str,
        default_node: str,
        *,
        status_seconds: float = DEFAULT_STATUS_SECONDS,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._transport = transport
        self.default_group = default_group
        self.default_node = default_node
        self._status_seconds = status_seconds
        self._clock = clock or time.time
        self._scheduler = scheduler
        self._timer: Any | None = None
        self._generation = 0
        self.status = ""

    def resolve(self, timeline: MessageTimeline) -> RebirthCommand | None:
        """Build the command for the selection context, or ``None``."""
        group, node = timeline.build_rebirth_target(self.default_group, self.default_node)
        if not group or not node:
            return None
        payload = encode_ncmd_rebirth(self._clock)
        return RebirthCommand(ncmd_topic(group, node), payload)

    def dispatch(self, timeline: MessageTimeline, *, connected: bool = True) -> RebirthCommand | None:
        """Publish a rebirth command for the current selection context.

        Returns the published command, or ``None`` when disconnected or no
        target could be resolved.
        """
        if not connected:
            logger.info("Rebirth skipped: transport not connected.")
            return None
        command = self.resolve(timeline)
        if command is None:
            logger.info("Rebirth skipped: no group/node to target.")
            return None

        self._transport.publish(command.topic, command.payload, qos=0, retain=False)
        logger.info("Rebirth command sent to %s (%d bytes).", command.topic, len(command.payload))
        self.status = f"Rebirth command sent -> {command.topic}"
        self._arm_timer()
        return command

    def clear_status(self, generation: int) -> None:
        """Timer callback: clear the status unless a newer dispatch re-armed."""
        if generation != self._generation:
            return
        self.status = ""
        self._timer = None

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm_timer(self) -> None:
        self.cancel()
        self._generation += 1
        schedule = self._scheduler or asyncio.get_running_loop().call_later
        self._timer = schedule(self._status_seconds, self.clear_status, self._generation)
