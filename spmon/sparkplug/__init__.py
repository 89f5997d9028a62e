"""Minimal hand-rolled proto2 codec for Sparkplug B payloads.

Modules
-------
wire
    Schema-free cursor primitives (varints, length-delimited slices,
    fixed-width reads, skip-by-wire-type) and the matching writers.
decode
    ``decode_metric`` / ``decode_payload`` over the fixed Sparkplug B
    field tables, plus the non-raising ``try_decode_payload``.
encode
    ``encode_payload`` and ``encode_ncmd_rebirth``.
errors
    Typed decode errors carrying the offset and the partial payload.
"""

from spmon.sparkplug.decode import (
    DecodeResult,
    decode_metric,
    decode_payload,
    try_decode_payload,
)
from spmon.sparkplug.encode import (
    REBIRTH_METRIC_NAME,
    encode_metric,
    encode_ncmd_rebirth,
    encode_payload,
)
from spmon.sparkplug.errors import (
    MetricDecodeError,
    SparkplugDecodeError,
    TruncatedError,
    UnsupportedWireTypeError,
    VarintOverflowError,
)

__all__ = [
    "DecodeResult",
    "decode_metric",
    "decode_payload",
    "try_decode_payload",
    "REBIRTH_METRIC_NAME",
    "encode_metric",
    "encode_payload",
    "encode_ncmd_rebirth",
    "SparkplugDecodeError",
    "TruncatedError",
    "VarintOverflowError",
    "UnsupportedWireTypeError",
    "MetricDecodeError",
]
