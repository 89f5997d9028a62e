"""proto2 wire-format primitives — no schema knowledge.

Readers take ``(data, offset)`` and return ``(value, new_offset)``.  The
returned offset never exceeds ``len(data)``: every fixed-width or
length-delimited read checks its end offset before slicing.  Failures raise
the typed errors from :mod:`spmon.sparkplug.errors`.

The ``append_*`` helpers are the matching encoder side, writing into a
``bytearray``.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from spmon.sparkplug.errors import (
    TruncatedError,
    UnsupportedWireTypeError,
    VarintOverflowError,
)

_UINT64_MASK = (1 << 64) - 1


class WireType(IntEnum):
    """The proto2 wire types the decoder knows how to size."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    FIXED32 = 5


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def read_varint(data: bytes | memoryview, offset: int) -> tuple[int, int]:
    """Read a little-endian base-128 varint starting at *offset*."""
    value = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise TruncatedError(
                f"sparkplug: varint truncated at offset {offset}", offset=offset
            )
        b = data[offset]
        offset += 1
        value |= (b & 0x7F) << shift
        if not b & 0x80:
            return value & _UINT64_MASK, offset
        shift += 7
        if shift >= 64:
            raise VarintOverflowError(
                f"sparkplug: varint overflow at offset {offset}", offset=offset
            )


def read_tag(data: bytes | memoryview, offset: int) -> tuple[tuple[int, int], int]:
    """Read a field tag and split it into ``(field_number, wire_type)``."""
    tag, offset = read_varint(data, offset)
    return (tag >> 3, tag & 0x7), offset


def read_length_delimited(
    data: bytes | memoryview, offset: int
) -> tuple[memoryview, int]:
    """Read a varint length followed by that many bytes.

    Returns a zero-copy ``memoryview`` over the field body.
    """
    length, start = read_varint(data, offset)
    end = start + length
    if end > len(data):
        raise TruncatedError(
            "sparkplug: length-delimited field extends past end of data "
            f"(need {end}, have {len(data)})",
            offset=start,
        )
    return memoryview(data)[start:end], end


def _read_fixed(data: bytes | memoryview, offset: int, size: int) -> tuple[memoryview, int]:
    end = offset + size
    if end > len(data):
        raise TruncatedError(
            f"sparkplug: {size * 8}-bit field truncated at offset {offset}",
            offset=offset,
        )
    return memoryview(data)[offset:end], end


def read_fixed32(data: bytes | memoryview, offset: int) -> tuple[float, int]:
    """Read a little-endian IEEE-754 float32, widened to a Python float."""
    raw, offset = _read_fixed(data, offset, 4)
    return struct.unpack("<f", raw)[0], offset


def read_fixed64(data: bytes | memoryview, offset: int) -> tuple[float, int]:
    """Read a little-endian IEEE-754 float64."""
    raw, offset = _read_fixed(data, offset, 8)
    return struct.unpack("<d", raw)[0], offset


def skip_field(data: bytes | memoryview, offset: int, wire_type: int) -> int:
    """Advance past one field value of *wire_type* without producing it."""
    if wire_type == WireType.VARINT:
        _, offset = read_varint(data, offset)
        return offset
    if wire_type == WireType.FIXED64:
        return _read_fixed(data, offset, 8)[1]
    if wire_type == WireType.LENGTH_DELIMITED:
        return read_length_delimited(data, offset)[1]
    if wire_type == WireType.FIXED32:
        return _read_fixed(data, offset, 4)[1]
    raise UnsupportedWireTypeError(wire_type, offset=offset)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def append_varint(buf: bytearray, value: int) -> bytearray:
    """Append *value* (treated as uint64) as a base-128 varint."""
    value &= _UINT64_MASK
    while value >= 0x80:
        buf.append((value & 0x7F) | 0x80)
        value >>= 7
    buf.append(value)
    return buf


def append_tag(buf: bytearray, field_number: int, wire_type: WireType) -> bytearray:
    return append_varint(buf, (field_number << 3) | wire_type)


def append_varint_field(buf: bytearray, field_number: int, value: int) -> bytearray:
    """Append a wire-type-0 field."""
    append_tag(buf, field_number, WireType.VARINT)
    return append_varint(buf, value)


def append_length_delimited_field(
    buf: bytearray, field_number: int, body: bytes | bytearray
) -> bytearray:
    """Append a wire-type-2 field."""
    append_tag(buf, field_number, WireType.LENGTH_DELIMITED)
    append_varint(buf, len(body))
    buf.extend(body)
    return buf


def append_fixed32_field(buf: bytearray, field_number: int, value: float) -> bytearray:
    append_tag(buf, field_number, WireType.FIXED32)
    buf.extend(struct.pack("<f", value))
    return buf


def append_fixed64_field(buf: bytearray, field_number: int, value: float) -> bytearray:
    append_tag(buf, field_number, WireType.FIXED64)
    buf.extend(struct.pack("<d", value))
    return buf
