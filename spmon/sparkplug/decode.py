"""Hand-rolled Sparkplug B payload decoder.

No protoc / generated code: the schema's field numbers live in the
``PayloadField`` and ``MetricField`` tables below, and each decoder level has
a single dispatch chain over ``(field_number, wire_type)``.  Any pair not in
the table is skipped by wire type, which keeps the decoder forward-compatible
with richer payloads (DataSet, Template, properties, ...).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, NamedTuple

from spmon.models.sparkplug import (
    NO_VALUE,
    BoolValue,
    BytesValue,
    FloatValue,
    IntValue,
    Metric,
    Payload,
    StringValue,
)
from spmon.sparkplug.errors import (
    MetricDecodeError,
    SparkplugDecodeError,
)
from spmon.sparkplug.wire import (
    WireType,
    read_fixed32,
    read_fixed64,
    read_length_delimited,
    read_tag,
    read_varint,
    skip_field,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PayloadField(IntEnum):
    TIMESTAMP = 1
    METRICS = 2
    SEQ = 3
    UUID = 4


class MetricField(IntEnum):
    NAME = 1
    ALIAS = 2
    TIMESTAMP = 3
    DATATYPE = 4
    IS_NULL = 7
    INT_VALUE = 10
    LONG_VALUE = 11
    FLOAT_VALUE = 12
    DOUBLE_VALUE = 13
    BOOLEAN_VALUE = 14
    STRING_VALUE = 15
    BYTES_VALUE = 16


class DecodeResult(NamedTuple):
    """Non-raising decode outcome: the (possibly partial) payload and error."""

    payload: Payload
    error: SparkplugDecodeError | None


def _ms_to_datetime(ms: int, offset: int) -> datetime | None:
    """Epoch milliseconds to an aware UTC datetime.

    0 means absent.  Any uint64 is valid on the wire, so an instant past
    what ``datetime`` can hold is also reported as absent.
    """
    if ms == 0:
        return None
    try:
        return _EPOCH + timedelta(milliseconds=ms)
    except OverflowError:
        logger.debug("Timestamp %d ms at offset %d is beyond the datetime range.", ms, offset)
        return None


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _text(raw: memoryview) -> str:
    return bytes(raw).decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Metric decoder
# ---------------------------------------------------------------------------


def decode_metric(data: bytes | memoryview) -> Metric:
    """Decode one embedded Metric record.

    Fields may repeat; the last occurrence wins.  Reaching the end of the
    buffer ends the record — no field is required.
    """
    fields: dict[str, Any] = {}
    value = NO_VALUE
    offset = 0
    while offset < len(data):
        field_offset = offset
        (field_number, wire_type), offset = read_tag(data, offset)

        if wire_type == WireType.VARINT and field_number in (
            MetricField.ALIAS,
            MetricField.TIMESTAMP,
            MetricField.DATATYPE,
            MetricField.IS_NULL,
            MetricField.INT_VALUE,
            MetricField.LONG_VALUE,
            MetricField.BOOLEAN_VALUE,
        ):
            v, offset = read_varint(data, offset)
            if field_number == MetricField.ALIAS:
                fields["alias"] = v
            elif field_number == MetricField.TIMESTAMP:
                fields["timestamp"] = _ms_to_datetime(v, field_offset)
            elif field_number == MetricField.DATATYPE:
                fields["datatype"] = v & 0xFFFFFFFF
            elif field_number == MetricField.IS_NULL:
                fields["is_null"] = v != 0
            elif field_number == MetricField.INT_VALUE:
                value = IntValue(value=_to_signed(v, 32))
            elif field_number == MetricField.LONG_VALUE:
                value = IntValue(value=_to_signed(v, 64))
            else:
                value = BoolValue(value=v != 0)
        elif wire_type == WireType.FIXED32 and field_number == MetricField.FLOAT_VALUE:
            f, offset = read_fixed32(data, offset)
            value = FloatValue(value=f)
        elif wire_type == WireType.FIXED64 and field_number == MetricField.DOUBLE_VALUE:
            f, offset = read_fixed64(data, offset)
            value = FloatValue(value=f)
        elif wire_type == WireType.LENGTH_DELIMITED and field_number in (
            MetricField.NAME,
            MetricField.STRING_VALUE,
            MetricField.BYTES_VALUE,
        ):
            raw, offset = read_length_delimited(data, offset)
            if field_number == MetricField.NAME:
                fields["name"] = _text(raw)
            elif field_number == MetricField.STRING_VALUE:
                value = StringValue(value=_text(raw))
            else:
                value = BytesValue(value=bytes(raw))
        else:
            offset = skip_field(data, offset, wire_type)

    if fields.get("is_null"):
        value = NO_VALUE
    return Metric(value=value, **fields)


# ---------------------------------------------------------------------------
# Payload decoder
# ---------------------------------------------------------------------------


def decode_payload(data: bytes | memoryview) -> Payload:
    """Decode a binary Sparkplug B payload.

    Raises
    ------
    SparkplugDecodeError
        On any malformed input.  The raised error's ``partial`` attribute
        holds the Payload accumulated up to the failure: envelope fields and
        every metric decoded before the failing one.  A failing metric is
        reported as :class:`MetricDecodeError`.
    """
    fields: dict[str, Any] = {}
    metrics: list[Metric] = []
    offset = 0
    try:
        while offset < len(data):
            (field_number, wire_type), offset = read_tag(data, offset)

            if wire_type == WireType.VARINT and field_number == PayloadField.TIMESTAMP:
                v, next_offset = read_varint(data, offset)
                fields["timestamp"] = _ms_to_datetime(v, offset)
                offset = next_offset
            elif wire_type == WireType.VARINT and field_number == PayloadField.SEQ:
                fields["seq"], offset = read_varint(data, offset)
            elif wire_type == WireType.LENGTH_DELIMITED and field_number == PayloadField.METRICS:
                raw, next_offset = read_length_delimited(data, offset)
                try:
                    metrics.append(decode_metric(raw))
                except SparkplugDecodeError as exc:
                    raise MetricDecodeError(len(metrics), exc, offset=offset) from exc
                offset = next_offset
            elif wire_type == WireType.LENGTH_DELIMITED and field_number == PayloadField.UUID:
                raw, offset = read_length_delimited(data, offset)
                fields["uuid"] = _text(raw)
            else:
                offset = skip_field(data, offset, wire_type)
    except SparkplugDecodeError as exc:
        exc.partial = Payload(metrics=metrics, **fields)
        logger.debug("Sparkplug decode failed after %d metric(s): %s", len(metrics), exc)
        raise

    return Payload(metrics=metrics, **fields)


def try_decode_payload(data: bytes | memoryview) -> DecodeResult:
    """Decode without raising: returns the (partial) payload and the error."""
    try:
        return DecodeResult(decode_payload(data), None)
    except SparkplugDecodeError as exc:
        return DecodeResult(exc.partial or Payload(), exc)
