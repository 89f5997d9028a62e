"""Typed decode errors for the Sparkplug B wire codec.

Every error records the byte offset at which it was detected.  When raised
out of :func:`spmon.sparkplug.decode.decode_payload` the error also carries
``partial`` — the Payload accumulated before the failure — so display code
can render what was decoded alongside the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spmon.models.sparkplug import Payload


class SparkplugDecodeError(ValueError):
    """Base class for all Sparkplug B decode failures."""

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset
        self.partial: Payload | None = None


class TruncatedError(SparkplugDecodeError):
    """The buffer ended before a field was complete."""


class VarintOverflowError(SparkplugDecodeError):
    """A varint needed more than 64 bits."""


class UnsupportedWireTypeError(SparkplugDecodeError):
    """A field used a wire type the decoder cannot size (3, 4, 6, 7)."""

    def __init__(self, wire_type: int, *, offset: int | None = None) -> None:
        super().__init__(
            f"sparkplug: unsupported wire type {wire_type} at offset {offset}",
            offset=offset,
        )
        self.wire_type = wire_type


class MetricDecodeError(SparkplugDecodeError):
    """An embedded metric record failed to decode.

    The underlying cursor error is chained as ``__cause__``.
    """

    def __init__(self, index: int, cause: SparkplugDecodeError, *, offset: int) -> None:
        super().__init__(
            f"sparkplug: decoding metric #{index} at offset {offset}: {cause}",
            offset=offset,
        )
        self.index = index
        self.cause = cause
