"""Bridge layer between spmon and the MQTT bus.

Modules
-------
transport
    ``MqttTransport`` wraps ``paho.mqtt.client.Client`` behind a
    ``start()`` / ``publish()`` / ``close()`` interface; ``LocalTransport``
    provides the same interface in memory.
"""

from spmon.bridge.transport import (
    LocalTransport,
    MqttTransport,
    Transport,
    TransportError,
    parse_broker,
)

__all__ = ["LocalTransport", "MqttTransport", "Transport", "TransportError", "parse_broker"]
