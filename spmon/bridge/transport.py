"""Transport bridge — MQTT session behind a small send/receive interface.

Bridge boundary
---------------
``paho.mqtt.client.Client`` owns the network session: connecting,
reconnecting and the network thread.  This module wraps it behind
``MqttTransport`` so the monitor core only ever sees three things:

1. ``on_message(topic, payload, received_at)`` deliveries,
2. ``on_connectivity(connected)`` transitions,
3. ``publish(topic, payload, qos, retain)`` requests.

Both callbacks run on the paho network thread.  The monitor wires them to
bounded channels (see :mod:`spmon.core.channels`) and never touches shared
state from them.

``LocalTransport`` implements the same interface in memory, for tests and
offline use.  Published messages are kept in a bounded deque.
"""

from __future__ import annotations

import collections
import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any, Protocol

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes, datetime], None]
ConnectivityHandler = Callable[[bool], None]

DEFAULT_PORT = 1883


class TransportError(RuntimeError):
    """Raised when a transport-level operation fails."""


class Transport(Protocol):
    """What the monitor core needs from a message bus session."""

    def start(
        self,
        on_message: MessageHandler,
        on_connectivity: ConnectivityHandler,
    ) -> None: ...

    def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None: ...

    def close(self) -> None: ...


def parse_broker(broker: str) -> tuple[str, int]:
    """Split ``host[:port]`` into ``(host, port)``."""
    host, sep, port = broker.rpartition(":")
    if not sep:
        return broker, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError as exc:
        raise TransportError(f"Invalid broker port in {broker!r}") from exc


# ---------------------------------------------------------------------------
# paho-mqtt transport
# ---------------------------------------------------------------------------


class MqttTransport:
    """paho-mqtt backed transport with automatic reconnect.

    Parameters
    ----------
    broker:
        ``host:port`` of the MQTT broker.
    topics:
        Subscriptions, re-issued on every (re)connect.
    client_id_prefix:
        The client id is ``<prefix>-<epoch ms>``.
    reconnect_interval_seconds:
        Delay between reconnect attempts.
    """

    def __init__(
        self,
        broker: str,
        topics: Iterable[str],
        *,
        client_id_prefix: str = "spmon",
        reconnect_interval_seconds: int = 3,
        keepalive: int = 60,
    ) -> None:
        self._broker = broker
        self._host, self._port = parse_broker(broker)
        self._topics = list(topics)
        self._keepalive = keepalive
        self._on_message: MessageHandler | None = None
        self._on_connectivity: ConnectivityHandler | None = None

        client_id = f"{client_id_prefix}-{int(time.time() * 1000)}"
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
        )
        self._client.reconnect_delay_set(
            min_delay=reconnect_interval_seconds,
            max_delay=reconnect_interval_seconds,
        )
        self._client.on_connect = self._handle_connect
        self._client.on_disconnect = self._handle_disconnect
        self._client.on_message = self._handle_message

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def broker(self) -> str:
        return self._broker

    @property
    def topics(self) -> list[str]:
        return list(self._topics)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, on_message: MessageHandler, on_connectivity: ConnectivityHandler) -> None:
        """Connect asynchronously and start the paho network thread."""
        self._on_message = on_message
        self._on_connectivity = on_connectivity
        logger.info("Transport: connecting to %s:%d", self._host, self._port)
        self._client.connect_async(self._host, self._port, keepalive=self._keepalive)
        self._client.loop_start()

    def publish(
        self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False
    ) -> mqtt.MQTTMessageInfo:
        """Queue a publish on the paho client.

        Returns the paho ``MQTTMessageInfo`` so callers that must know the
        message left the socket can ``wait_for_publish()``.
        """
        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("Transport.publish: %s failed (%s).", topic, mqtt.error_string(info.rc))
            raise TransportError(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")
        logger.debug("Transport.publish: %d bytes to %s", len(payload), topic)
        return info

    def close(self) -> None:
        try:
            self._client.disconnect()
        finally:
            self._client.loop_stop()
        logger.info("Transport: closed (%s).", self._broker)

    def __enter__(self) -> MqttTransport:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MqttTransport(broker={self._broker!r}, topics={len(self._topics)})"

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _handle_connect(
        self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        if reason_code.is_failure:
            logger.warning("Transport: connect refused by %s (%s).", self._broker, reason_code)
            return
        for topic in self._topics:
            client.subscribe(topic, qos=0)
        logger.info("Transport: connected to %s, subscribed to %d topic(s).", self._broker, len(self._topics))
        if self._on_connectivity is not None:
            self._on_connectivity(True)

    def _handle_disconnect(
        self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        logger.info("Transport: disconnected from %s (%s).", self._broker, reason_code)
        if self._on_connectivity is not None:
            self._on_connectivity(False)

    def _handle_message(self, client: mqtt.Client, userdata: Any, message: mqtt.MQTTMessage) -> None:
        if self._on_message is None:
            return
        self._on_message(message.topic, bytes(message.payload), datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# In-memory transport
# ---------------------------------------------------------------------------


class LocalTransport:
    """In-memory transport: inject deliveries by hand, record publishes.

    Parameters
    ----------
    max_local_queue:
        Maximum number of retained publishes (oldest dropped first).
    connected:
        Connectivity reported to the monitor on ``start()``.
    """

    def __init__(self, *, max_local_queue: int = 1024, connected: bool = True) -> None:
        self.published: collections.deque[tuple[str, bytes, int, bool]] = collections.deque(
            maxlen=max_local_queue
        )
        self._connected = connected
        self._on_message: MessageHandler | None = None
        self._on_connectivity: ConnectivityHandler | None = None
        self.closed = False

    @property
    def connected(self) -> bool:
        return self._connected

    def start(self, on_message: MessageHandler, on_connectivity: ConnectivityHandler) -> None:
        self._on_message = on_message
        self._on_connectivity = on_connectivity
        on_connectivity(self._connected)
        logger.info("LocalTransport: started (connected=%s).", self._connected)

    def inject(self, topic: str, payload: bytes, received_at: datetime | None = None) -> None:
        """Deliver a message as if it arrived from the bus.

        Delivery runs synchronously on the caller's thread.  On the monitor's
        loop thread it cannot wait for room, so injecting more messages than
        the message channel holds before the loop drains them drops the
        excess (logged at debug).
        """
        if self._on_message is None:
            raise TransportError("LocalTransport.inject() before start()")
        self._on_message(topic, payload, received_at or datetime.now(timezone.utc))

    def set_connected(self, connected: bool) -> None:
        self._connected = connected
        if self._on_connectivity is not None:
            self._on_connectivity(connected)

    def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        if self.closed:
            raise TransportError("LocalTransport is closed")
        self.published.append((topic, payload, qos, retain))
        logger.debug("LocalTransport.publish: %d bytes to %s", len(payload), topic)

    def close(self) -> None:
        self.closed = True
        self._on_message = None
        self._on_connectivity = None

    def __repr__(self) -> str:
        return f"LocalTransport(connected={self._connected}, published={len(self.published)})"
