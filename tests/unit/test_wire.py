"""Unit tests for the proto2 wire primitives."""

from __future__ import annotations

import struct

import pytest

from spmon.sparkplug.errors import (
    TruncatedError,
    UnsupportedWireTypeError,
    VarintOverflowError,
)
from spmon.sparkplug.wire import (
    append_varint,
    read_fixed32,
    read_fixed64,
    read_length_delimited,
    read_tag,
    read_varint,
    skip_field,
)


class TestReadVarint:
    def test_single_byte(self):
        assert read_varint(b"\x01", 0) == (1, 1)

    def test_multi_byte(self):
        # 300 = 0b1_0010_1100 -> ac 02
        assert read_varint(b"\xac\x02", 0) == (300, 2)

    def test_reads_from_offset(self):
        assert read_varint(b"\xff\x96\x01", 1) == (150, 3)

    def test_max_uint64_in_ten_bytes(self):
        data = b"\xff" * 9 + b"\x01"
        assert read_varint(data, 0) == ((1 << 64) - 1, 10)

    def test_lone_continuation_byte_is_truncated(self):
        with pytest.raises(TruncatedError) as exc:
            read_varint(b"\x80", 0)
        assert exc.value.offset == 1

    def test_empty_buffer_is_truncated(self):
        with pytest.raises(TruncatedError):
            read_varint(b"", 0)

    def test_eleven_bytes_overflow(self):
        with pytest.raises(VarintOverflowError):
            read_varint(b"\xff" * 10 + b"\x01", 0)

    def test_append_varint_matches_reader(self):
        buf = append_varint(bytearray(), 1_767_225_600_500)
        assert read_varint(bytes(buf), 0) == (1_767_225_600_500, len(buf))

    def test_append_negative_uses_twos_complement(self):
        buf = append_varint(bytearray(), -1)
        assert bytes(buf) == b"\xff" * 9 + b"\x01"


class TestReadTag:
    def test_splits_field_and_wire_type(self):
        # field 13, wire type 1 -> (13 << 3) | 1 = 105 = 0x69
        assert read_tag(b"\x69", 0) == ((13, 1), 1)


class TestLengthDelimited:
    def test_returns_body_slice(self):
        body, offset = read_length_delimited(b"\x03abcXYZ", 0)
        assert bytes(body) == b"abc"
        assert offset == 4

    def test_zero_length(self):
        body, offset = read_length_delimited(b"\x00", 0)
        assert bytes(body) == b""
        assert offset == 1

    def test_length_past_end_is_truncated(self):
        with pytest.raises(TruncatedError, match="past end of data"):
            read_length_delimited(b"\x05abc", 0)

    def test_truncated_length_prefix(self):
        with pytest.raises(TruncatedError):
            read_length_delimited(b"\x85", 0)


class TestFixed:
    def test_fixed32_little_endian_float(self):
        value, offset = read_fixed32(struct.pack("<f", 1.5), 0)
        assert value == 1.5
        assert offset == 4

    def test_fixed64_little_endian_double(self):
        value, offset = read_fixed64(struct.pack("<d", -2.25), 0)
        assert value == -2.25
        assert offset == 8

    def test_short_fixed32(self):
        with pytest.raises(TruncatedError):
            read_fixed32(b"\x00\x00\x00", 0)

    def test_short_fixed64(self):
        with pytest.raises(TruncatedError):
            read_fixed64(b"\x00" * 7, 0)


class TestSkipField:
    @pytest.mark.parametrize(
        ("wire_type", "data", "expected"),
        [
            (0, b"\xac\x02", 2),
            (1, b"\x00" * 8, 8),
            (2, b"\x02ab", 3),
            (5, b"\x00" * 4, 4),
        ],
    )
    def test_skips_supported_wire_types(self, wire_type, data, expected):
        assert skip_field(data, 0, wire_type) == expected

    @pytest.mark.parametrize("wire_type", [3, 4, 6, 7])
    def test_unsupported_wire_type(self, wire_type):
        with pytest.raises(UnsupportedWireTypeError) as exc:
            skip_field(b"\x00" * 16, 0, wire_type)
        assert exc.value.wire_type == wire_type

    def test_skip_never_passes_buffer_end(self):
        with pytest.raises(TruncatedError):
            skip_field(b"\x00" * 5, 0, 1)
