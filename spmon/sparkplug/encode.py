"""Sparkplug B payload encoder.

Only default-valued fields are omitted, so ``decode_payload(encode_payload(p))``
reproduces the scalar content of ``p``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime

from spmon.models.sparkplug import (
    BoolValue,
    BytesValue,
    DataType,
    FloatValue,
    IntValue,
    Metric,
    NoValue,
    Payload,
    StringValue,
)
from spmon.sparkplug.decode import MetricField, PayloadField
from spmon.sparkplug.wire import (
    append_fixed64_field,
    append_length_delimited_field,
    append_varint_field,
)

REBIRTH_METRIC_NAME = "Node Control/Rebirth"

Clock = Callable[[], float]


def _datetime_to_ms(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def encode_metric(metric: Metric) -> bytes:
    """Encode one Metric record (scalar values only)."""
    buf = bytearray()
    if metric.name:
        append_length_delimited_field(buf, MetricField.NAME, metric.name.encode("utf-8"))
    if metric.alias:
        append_varint_field(buf, MetricField.ALIAS, metric.alias)
    if metric.timestamp is not None:
        append_varint_field(buf, MetricField.TIMESTAMP, _datetime_to_ms(metric.timestamp))
    if metric.datatype:
        append_varint_field(buf, MetricField.DATATYPE, metric.datatype)
    if metric.is_null:
        append_varint_field(buf, MetricField.IS_NULL, 1)

    value = metric.value
    if isinstance(value, IntValue):
        append_varint_field(buf, MetricField.LONG_VALUE, value.value)
    elif isinstance(value, FloatValue):
        append_fixed64_field(buf, MetricField.DOUBLE_VALUE, value.value)
    elif isinstance(value, BoolValue):
        append_varint_field(buf, MetricField.BOOLEAN_VALUE, int(value.value))
    elif isinstance(value, StringValue):
        append_length_delimited_field(
            buf, MetricField.STRING_VALUE, value.value.encode("utf-8")
        )
    elif isinstance(value, BytesValue):
        append_length_delimited_field(buf, MetricField.BYTES_VALUE, value.value)
    elif isinstance(value, NoValue):
        pass
    return bytes(buf)


def encode_payload(payload: Payload) -> bytes:
    """Encode a Payload envelope and its metrics."""
    buf = bytearray()
    if payload.timestamp is not None:
        append_varint_field(buf, PayloadField.TIMESTAMP, _datetime_to_ms(payload.timestamp))
    for metric in payload.metrics:
        append_length_delimited_field(buf, PayloadField.METRICS, encode_metric(metric))
    if payload.seq:
        append_varint_field(buf, PayloadField.SEQ, payload.seq)
    if payload.uuid:
        append_length_delimited_field(buf, PayloadField.UUID, payload.uuid.encode("utf-8"))
    return bytes(buf)


def encode_ncmd_rebirth(clock: Clock = time.time) -> bytes:
    """Build the NCMD payload asking an edge node to rebirth.

    Wire layout::

        Payload {
          timestamp (1, varint) = clock() in epoch milliseconds
          metrics   (2, len)    = Metric {
            name          (1, len)     = "Node Control/Rebirth"
            datatype      (4, varint)  = 11 (Boolean)
            boolean_value (14, varint) = 1
          }
        }
    """
    metric = bytearray()
    append_length_delimited_field(metric, MetricField.NAME, REBIRTH_METRIC_NAME.encode("utf-8"))
    append_varint_field(metric, MetricField.DATATYPE, DataType.BOOLEAN)
    append_varint_field(metric, MetricField.BOOLEAN_VALUE, 1)

    buf = bytearray()
    append_varint_field(buf, PayloadField.TIMESTAMP, int(clock() * 1000))
    append_length_delimited_field(buf, PayloadField.METRICS, metric)
    return bytes(buf)
